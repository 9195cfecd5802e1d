"""Custom exceptions for Chat Expiry."""

from pathlib import Path


def sanitize_path_for_error(path: str | Path) -> str:
    """Extract only the filename from a path for safe error messages.

    Args:
        path: Full path or filename.

    Returns:
        Just the filename portion.
    """
    if isinstance(path, Path):
        return path.name
    return Path(path).name


class ChatExpiryError(Exception):
    """Base exception for all chat expiry errors."""

    pass


class TransportError(ChatExpiryError):
    """Raised when a call to the host chat server fails.

    Covers both network failures and non-2xx responses. The message is
    meant for logs only and is never shown to the user.
    """

    def __init__(
        self,
        operation: str,
        message: str,
        status_code: int | None = None,
    ) -> None:
        self.operation = operation
        self.status_code = status_code
        status = f" (HTTP {status_code})" if status_code is not None else ""
        super().__init__(f"{operation} failed{status}: {message}")


class ConfigurationError(ChatExpiryError):
    """Raised when configuration is invalid."""

    pass


class PolicyStoreError(ChatExpiryError):
    """Raised when the expiration policy cannot be loaded or saved.

    Note:
        Error messages only include the filename, not the full path.
    """

    def __init__(self, path: str | Path, message: str) -> None:
        self.path = str(path)
        safe_name = sanitize_path_for_error(path)
        super().__init__(f"Policy store error ({safe_name}): {message}")
