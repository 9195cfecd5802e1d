"""Bulk deletion of expired chats and backups.

Chats are deleted one at a time: deletion is scoped to the owner and the
host offers no batch form. A failed deletion is counted and processing moves
on to the next chat. Backups go out in a single batched call, and since the
host does not report per-item results the batch is either entirely
successful or entirely failed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from chat_expiry.core.models import BackupCandidate, ConversationCandidate, ExpirationOutcome
from chat_expiry.core.utils import format_day, plural
from chat_expiry.services.plan import MaintenanceLease

if TYPE_CHECKING:
    from chat_expiry.ports.chat_store import ChatStoreProtocol

logger = logging.getLogger(__name__)


class DeletionOrchestrator:
    """Executes deletions and accounts for every outcome."""

    def __init__(self, store: ChatStoreProtocol) -> None:
        self._store = store

    def _delete_conversation(self, candidate: ConversationCandidate) -> bool:
        logger.info(
            f"Deleting chat: {candidate.owner.name} - {candidate.chat_name} "
            f"(Last message: {format_day(candidate.last_activity_at)})"
        )
        try:
            return bool(self._store.delete_conversation(candidate.owner, candidate.file_id))
        except Exception as e:
            logger.error(f"Failed to delete chat {candidate.file_id}: {e}")
            return False

    def _delete_backups(self, backups: list[BackupCandidate], token: str) -> bool:
        for backup in backups:
            logger.info(f"Deleting backup: {backup.file_name}")
        try:
            return bool(self._store.delete_backups([b.content_hash for b in backups], token))
        except Exception as e:
            logger.error(f"Failed to delete backups: {e}")
            return False

    def execute(
        self,
        conversations: list[ConversationCandidate],
        backups: list[BackupCandidate],
        lease: MaintenanceLease,
    ) -> ExpirationOutcome:
        """Delete the given chats and backups, then release the lease.

        Args:
            conversations: Expired chats to delete.
            backups: Expired backups to delete.
            lease: Maintenance lease; released once all attempts complete.

        Returns:
            Counts of successes and failures per class, plus the identifiers
            of chats that could not be deleted.
        """
        chat_successes = 0
        chat_failures = 0
        failed_chats: list[str] = []
        backup_successes = 0
        backup_failures = 0

        try:
            if conversations:
                logger.info(f"Deleting {plural(len(conversations), 'chat')}...")
            for candidate in conversations:
                if self._delete_conversation(candidate):
                    chat_successes += 1
                else:
                    chat_failures += 1
                    failed_chats.append(candidate.display_id)

            if backups and lease.token is not None:
                logger.info(f"Deleting {plural(len(backups), 'backup')}...")
                if self._delete_backups(backups, lease.token):
                    backup_successes = len(backups)
                else:
                    backup_failures = len(backups)
        finally:
            lease.release()

        outcome = ExpirationOutcome(
            chat_successes=chat_successes,
            chat_failures=chat_failures,
            failed_chats=failed_chats,
            backup_successes=backup_successes,
            backup_failures=backup_failures,
        )
        logger.info(
            f"Expired {chat_successes} chats and {backup_successes} backups. "
            f"{outcome.total_failures} failed."
        )
        return outcome
