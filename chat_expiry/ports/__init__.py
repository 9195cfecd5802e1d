"""Port interfaces for Chat Expiry.

This module defines Protocol interfaces that establish contracts between
the service layer and infrastructure adapters.
"""

from chat_expiry.ports.chat_store import ChatStoreProtocol
from chat_expiry.ports.policy_store import PolicyStoreProtocol

__all__ = [
    "ChatStoreProtocol",
    "PolicyStoreProtocol",
]
