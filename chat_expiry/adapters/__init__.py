"""Adapters implementing the port interfaces."""

from chat_expiry.adapters.http_chat_store import HttpChatStore
from chat_expiry.adapters.json_policy_store import JsonPolicyStore

__all__ = [
    "HttpChatStore",
    "JsonPolicyStore",
]
