"""Pytest fixtures for Chat Expiry tests."""

from __future__ import annotations

import tempfile
from collections.abc import Callable, Generator
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from chat_expiry.config import Settings, override_settings, reset_settings
from chat_expiry.core.models import (
    BackupCandidate,
    ConversationCandidate,
    ExpirationPolicy,
    Owner,
    OwnerKind,
)

FIXED_NOW = datetime(2025, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

# ---------------------------------------------------------------------------
# Basic fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def temp_storage() -> Generator[Path, None, None]:
    """Provide temporary storage directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_settings(temp_storage: Path) -> Generator[Settings, None, None]:
    """Provide test settings with temp policy storage."""
    settings = Settings(
        base_url="http://host.test",
        policy_path=temp_storage / "policy.json",
        log_level="DEBUG",
    )
    override_settings(settings)
    yield settings
    reset_settings()


@pytest.fixture
def now() -> datetime:
    """Fixed reference instant for a pass."""
    return FIXED_NOW


# ---------------------------------------------------------------------------
# Mock fixtures for unit testing (Clean Architecture)
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_store() -> MagicMock:
    """Mock chat store for unit tests.

    Returns a MagicMock that satisfies ChatStoreProtocol with an empty host.
    Configure return values in individual tests.
    """
    store = MagicMock()
    store.list_characters.return_value = []
    store.list_groups.return_value = []
    store.search_conversations.return_value = []
    store.delete_conversation.return_value = True
    store.fetch_maintenance_report.return_value = {"backups": [], "token": "tok-1"}
    store.delete_backups.return_value = True
    store.finalize_maintenance.return_value = None
    return store


@pytest.fixture
def mock_policy_store() -> MagicMock:
    """Mock policy store returning the default policy."""
    policy_store = MagicMock()
    policy_store.load.return_value = ExpirationPolicy()
    return policy_store


# ---------------------------------------------------------------------------
# Factory fixtures for creating test data
# ---------------------------------------------------------------------------


def _days_ago(days: float, reference: datetime = FIXED_NOW) -> str:
    return (reference - timedelta(days=days)).isoformat()


@pytest.fixture
def days_ago() -> Callable[[float], str]:
    """ISO timestamp ``days`` before the fixed reference instant."""
    return _days_ago


@pytest.fixture
def make_owner() -> Callable[..., Owner]:
    """Factory fixture for creating Owner objects.

    Usage:
        owner = make_owner(name="Seraphina", index=0)
        group = make_owner(kind=OwnerKind.GROUP, ref="grp-1")
    """

    def _make(
        name: str = "Seraphina",
        kind: OwnerKind = OwnerKind.CHARACTER,
        ref: str | None = None,
        index: int = 0,
        current_chat: str | None = None,
    ) -> Owner:
        if ref is None:
            ref = f"{name.lower()}.png" if kind is OwnerKind.CHARACTER else f"grp-{index}"
        return Owner(kind=kind, name=name, ref=ref, index=index, current_chat=current_chat)

    return _make


@pytest.fixture
def make_conversation(make_owner: Callable[..., Owner]) -> Callable[..., ConversationCandidate]:
    """Factory fixture for creating ConversationCandidate objects.

    Usage:
        chat = make_conversation(days_old=91)
        chat = make_conversation(owner=group, file_id="Party.jsonl", last_activity=None)
    """

    def _make(
        days_old: float | None = 91,
        owner: Owner | None = None,
        file_id: str = "Seraphina - 2025-1-1 @10h00m00s.jsonl",
        **kwargs: Any,
    ) -> ConversationCandidate:
        if "last_activity" in kwargs:
            last_activity = kwargs.pop("last_activity")
        else:
            last_activity = _days_ago(days_old) if days_old is not None else None
        return ConversationCandidate(
            owner=owner or make_owner(),
            file_id=file_id,
            last_activity=last_activity,
        )

    return _make


@pytest.fixture
def make_backup() -> Callable[..., BackupCandidate]:
    """Factory fixture for creating BackupCandidate objects."""

    def _make(
        file_name: str = "chat_seraphina_20250101-120000.jsonl",
        content_hash: str = "hash-1",
        mtime: Any = None,
    ) -> BackupCandidate:
        return BackupCandidate(file_name=file_name, content_hash=content_hash, mtime=mtime)

    return _make
