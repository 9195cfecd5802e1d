"""Expiration plan and maintenance token lease.

The backup maintenance subsystem hands out a token with every report. The
token pins a server-side snapshot and must be finalized exactly once, on
every exit path of a pass. ``MaintenanceLease`` owns that obligation:
``release()`` is idempotent, and the lease is a context manager so callers
can scope it structurally instead of finalizing at each return point.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import TracebackType
from typing import TYPE_CHECKING

from chat_expiry.core.models import BackupCandidate, ConversationCandidate

if TYPE_CHECKING:
    from chat_expiry.ports.chat_store import ChatStoreProtocol

logger = logging.getLogger(__name__)


class MaintenanceLease:
    """A maintenance token together with the backups reported under it."""

    def __init__(
        self,
        store: ChatStoreProtocol | None,
        token: str | None,
        backups: list[BackupCandidate] | None = None,
    ) -> None:
        """Initialize the lease.

        Args:
            store: Store used to finalize the token.
            token: Maintenance token, or None if none was issued.
            backups: Backups listed in the report the token belongs to.
        """
        self._store = store
        self._token = token
        self._backups = list(backups or [])
        self._released = False

    @classmethod
    def empty(cls) -> MaintenanceLease:
        """A lease holding no token and no backups."""
        return cls(store=None, token=None)

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def has_token(self) -> bool:
        return self._token is not None

    @property
    def backups(self) -> list[BackupCandidate]:
        return list(self._backups)

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Finalize the token. Subsequent calls do nothing.

        Finalization is best-effort: failures are logged and swallowed so
        that they never mask the outcome of the pass.
        """
        if self._released:
            return
        self._released = True
        if self._token is None or self._store is None:
            return
        try:
            self._store.finalize_maintenance(self._token)
            logger.debug("Maintenance token finalized")
        except Exception as e:
            logger.error(f"Failed to finalize maintenance token: {e}")

    def __enter__(self) -> MaintenanceLease:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()


@dataclass
class ExpirationPlan:
    """Expired items found by a scan, ready for preview and execution.

    Attributes:
        threshold_days: Threshold the scan was evaluated against.
        include_backups: Whether backups were part of the scan.
        conversations: Expired chats, in discovery order.
        backups: Expired backups, in report order.
        lease: Maintenance lease to release once the plan is done with.
    """

    threshold_days: int
    include_backups: bool
    conversations: list[ConversationCandidate] = field(default_factory=list)
    backups: list[BackupCandidate] = field(default_factory=list)
    lease: MaintenanceLease = field(default_factory=MaintenanceLease.empty)

    @property
    def is_empty(self) -> bool:
        return not self.conversations and not self.backups
