"""Chat Expiry - age-based cleanup of stale chats and chat backups."""

__version__ = "0.1.0"

# Re-export core components for convenience
from chat_expiry.config import Settings, get_settings
from chat_expiry.core import (
    BackupCandidate,
    ChatExpiryError,
    ConfigurationError,
    ConversationCandidate,
    ExpirationOutcome,
    ExpirationPolicy,
    Owner,
    OwnerKind,
    PolicyStoreError,
    SessionContext,
    TransportError,
)

__all__ = [
    # Version info
    "__version__",
    # Configuration
    "Settings",
    "get_settings",
    # Errors
    "ChatExpiryError",
    "TransportError",
    "ConfigurationError",
    "PolicyStoreError",
    # Models
    "OwnerKind",
    "Owner",
    "ConversationCandidate",
    "BackupCandidate",
    "ExpirationPolicy",
    "SessionContext",
    "ExpirationOutcome",
]
