"""Candidate aggregation from the host chat server.

Gathers the two classes of deletable records into typed candidates:

- conversations, queried once per loaded character and group;
- backups, listed by one maintenance report which also issues the
  maintenance token.

Aggregation is best-effort. A failed query contributes nothing and is
logged; it never aborts the pass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from chat_expiry.core.models import (
    BackupCandidate,
    ConversationCandidate,
    Owner,
    OwnerKind,
    Roster,
)
from chat_expiry.services.plan import MaintenanceLease

if TYPE_CHECKING:
    from chat_expiry.ports.chat_store import ChatStoreProtocol

logger = logging.getLogger(__name__)


@dataclass
class OwnerQueryResult:
    """Outcome of querying one owner's chats."""

    owner: Owner
    records: list[dict[str, Any]] = field(default_factory=list)
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _as_optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _as_raw_timestamp(value: Any) -> str | int | float | None:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return None
    return value


class CandidateAggregator:
    """Fetches and normalizes expiration candidates."""

    def __init__(self, store: ChatStoreProtocol) -> None:
        self._store = store

    def load_roster(self) -> Roster:
        """Load the characters and groups known to the host.

        Returns:
            Roster with owners indexed by their position in each collection.
            A collection that fails to load is empty.
        """
        try:
            raw_characters = self._store.list_characters()
        except Exception as e:
            logger.error(f"Failed to load characters: {e}")
            raw_characters = []

        try:
            raw_groups = self._store.list_groups()
        except Exception as e:
            logger.error(f"Failed to load groups: {e}")
            raw_groups = []

        characters = [
            Owner(
                kind=OwnerKind.CHARACTER,
                name=str(raw.get("name") or ""),
                ref=_as_optional_str(raw.get("avatar")),
                index=index,
                current_chat=_as_optional_str(raw.get("chat")),
            )
            for index, raw in enumerate(raw_characters)
        ]
        groups = [
            Owner(
                kind=OwnerKind.GROUP,
                name=str(raw.get("name") or ""),
                ref=_as_optional_str(raw.get("id")),
                index=index,
                current_chat=_as_optional_str(raw.get("chat_id")),
            )
            for index, raw in enumerate(raw_groups)
        ]
        logger.debug(f"Loaded {len(characters)} characters and {len(groups)} groups")
        return Roster(characters=characters, groups=groups)

    def query_owner(self, owner: Owner) -> OwnerQueryResult:
        """Query the chats of a single owner, capturing any failure."""
        try:
            records = self._store.search_conversations(owner)
        except Exception as e:
            kind = "group chats" if owner.is_group else "chats"
            logger.error(f"Failed to fetch {kind} for {owner.name}: {e}")
            return OwnerQueryResult(owner=owner, error=e)
        return OwnerQueryResult(owner=owner, records=records)

    def collect_conversations(self, roster: Roster) -> list[ConversationCandidate]:
        """Collect chats of every character, then every group.

        Owners without an identity are skipped. Queries run sequentially.

        Args:
            roster: Owners loaded for this pass.

        Returns:
            Candidates in owner order, then server order within each owner.
        """
        candidates: list[ConversationCandidate] = []
        for owner in [*roster.characters, *roster.groups]:
            if owner.ref is None:
                continue

            result = self.query_owner(owner)
            if not result.ok:
                continue

            for record in result.records:
                file_name = record.get("file_name")
                if not isinstance(file_name, str) or not file_name:
                    logger.debug(f"Skipping chat record without file name for {owner.name}")
                    continue
                candidates.append(
                    ConversationCandidate(
                        owner=owner,
                        file_id=file_name,
                        last_activity=_as_raw_timestamp(record.get("last_mes")),
                    )
                )

        logger.info(
            f"Found {len(candidates)} chats across {len(roster.characters)} characters "
            f"and {len(roster.groups)} groups"
        )
        return candidates

    def collect_backups(self) -> MaintenanceLease:
        """Fetch the maintenance report.

        Returns:
            A lease over the issued token carrying the reported backups. On
            failure the lease is empty and holds no token.
        """
        try:
            report = self._store.fetch_maintenance_report()
        except Exception as e:
            logger.error(f"Failed to fetch backups: {e}")
            return MaintenanceLease.empty()

        backups: list[BackupCandidate] = []
        for raw in report.get("backups") or []:
            if not isinstance(raw, dict):
                continue
            name = raw.get("name")
            content_hash = raw.get("hash")
            if not name or not content_hash:
                logger.debug("Skipping backup record without name or hash")
                continue
            backups.append(
                BackupCandidate(
                    file_name=str(name),
                    content_hash=str(content_hash),
                    mtime=_as_raw_timestamp(raw.get("mtime")),
                )
            )

        logger.info(f"Found {len(backups)} chat backups")
        return MaintenanceLease(store=self._store, token=report.get("token"), backups=backups)
