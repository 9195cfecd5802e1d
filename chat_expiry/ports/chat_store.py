"""Protocol interface for the host chat server.

This protocol defines the contract between the expiration services and the
remote store holding chats and backups. Using typing.Protocol enables
structural subtyping (duck typing with type checking).
"""

from __future__ import annotations

from typing import Any, Protocol

from chat_expiry.core.models import Owner


class ChatStoreProtocol(Protocol):
    """Protocol for listing and deleting chats and chat backups.

    The HttpChatStore is the primary implementation. Query operations raise
    TransportError on failure; delete operations report failure through
    their return value.
    """

    def list_characters(self) -> list[dict[str, Any]]:
        """List the characters loaded on the host.

        Returns:
            Raw character records (``name``, ``avatar``, ``chat``).

        Raises:
            TransportError: If the request fails.
        """
        ...

    def list_groups(self) -> list[dict[str, Any]]:
        """List the groups loaded on the host.

        Returns:
            Raw group records (``id``, ``name``, ``chat_id``).

        Raises:
            TransportError: If the request fails.
        """
        ...

    def search_conversations(self, owner: Owner) -> list[dict[str, Any]]:
        """List the chat files of one owner.

        Args:
            owner: Character or group whose chats are listed.

        Returns:
            Raw chat records (``file_name``, ``last_mes``).

        Raises:
            TransportError: If the request fails.
        """
        ...

    def delete_conversation(self, owner: Owner, file_id: str) -> bool:
        """Delete one chat file.

        Args:
            owner: Owner of the chat.
            file_id: Chat file reference, as returned by search.

        Returns:
            True if the server confirmed the deletion.
        """
        ...

    def fetch_maintenance_report(self) -> dict[str, Any]:
        """Fetch the backup maintenance report.

        Returns:
            ``{"backups": [{"name", "hash", "mtime"}, ...], "token": str | None}``.

        Raises:
            TransportError: If the request fails.
        """
        ...

    def delete_backups(self, hashes: list[str], token: str) -> bool:
        """Delete backups by content hash in a single batch.

        Args:
            hashes: Content hashes of the backups to delete.
            token: Maintenance token from the report.

        Returns:
            True if the whole batch succeeded.
        """
        ...

    def finalize_maintenance(self, token: str) -> None:
        """Release a maintenance token. Best-effort; never raises."""
        ...
