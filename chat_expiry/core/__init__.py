"""Core components for Chat Expiry."""

from chat_expiry.core.errors import (
    ChatExpiryError,
    ConfigurationError,
    PolicyStoreError,
    TransportError,
)
from chat_expiry.core.exclusion import is_active_conversation
from chat_expiry.core.models import (
    BackupCandidate,
    ConversationCandidate,
    ExpirationOutcome,
    ExpirationPolicy,
    Owner,
    OwnerKind,
    PreviewSummary,
    Roster,
    SessionContext,
)
from chat_expiry.core.time_window import backup_capture_instant, is_expired, parse_timestamp

__all__ = [
    # Errors
    "ChatExpiryError",
    "TransportError",
    "ConfigurationError",
    "PolicyStoreError",
    # Models
    "OwnerKind",
    "Owner",
    "Roster",
    "ConversationCandidate",
    "BackupCandidate",
    "ExpirationPolicy",
    "SessionContext",
    "ExpirationOutcome",
    "PreviewSummary",
    # Rules
    "is_expired",
    "parse_timestamp",
    "backup_capture_instant",
    "is_active_conversation",
]
