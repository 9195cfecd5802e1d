"""Expiration filters for conversation and backup candidates."""

from __future__ import annotations

import logging
from datetime import datetime

from chat_expiry.core.exclusion import is_active_conversation
from chat_expiry.core.models import (
    BackupCandidate,
    ConversationCandidate,
    ExpirationPolicy,
    SessionContext,
)
from chat_expiry.core.time_window import is_expired

logger = logging.getLogger(__name__)


def filter_conversations(
    candidates: list[ConversationCandidate],
    policy: ExpirationPolicy,
    session: SessionContext,
    now: datetime,
) -> list[ConversationCandidate]:
    """Select the chats that are expired and not currently open.

    Args:
        candidates: Chats gathered for this pass.
        policy: Policy read at the start of the pass.
        session: Session state read at the start of the pass.
        now: Reference instant for the pass.

    Returns:
        Expired chats in input order. The open chat is never included.
    """
    expired: list[ConversationCandidate] = []
    for candidate in candidates:
        if is_active_conversation(candidate, session):
            logger.debug(f"Skipping currently open chat: {candidate.display_id}")
            continue
        if is_expired(candidate.last_activity, policy.threshold_days, now):
            expired.append(candidate)
    return expired


def filter_backups(
    candidates: list[BackupCandidate],
    policy: ExpirationPolicy,
    now: datetime,
) -> list[BackupCandidate]:
    """Select the backups older than the threshold.

    The capture instant in the file name takes priority over mtime. Backups
    with neither are never selected.

    Args:
        candidates: Backups listed by the maintenance report.
        policy: Policy read at the start of the pass.
        now: Reference instant for the pass.

    Returns:
        Expired backups in input order; empty when backups are disabled.
    """
    if not policy.include_backups:
        return []
    return [
        backup
        for backup in candidates
        if is_expired(backup.age_instant, policy.threshold_days, now)
    ]
