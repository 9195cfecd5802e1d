"""Unit tests for previews, result reports and notifications."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from chat_expiry.core.models import (
    BackupCandidate,
    ConversationCandidate,
    ExpirationOutcome,
    Owner,
    OwnerKind,
)
from chat_expiry.services.plan import ExpirationPlan
from chat_expiry.services.reporter import (
    UNDO_WARNING,
    render_nothing_to_expire,
    render_notification,
    render_preview,
    render_result,
    summarize_preview,
)


@pytest.fixture
def mixed_plan(
    make_owner: Callable[..., Owner],
    make_conversation: Callable[..., ConversationCandidate],
    make_backup: Callable[..., BackupCandidate],
) -> ExpirationPlan:
    seraphina = make_owner(name="Seraphina", index=0)
    aqua = make_owner(name="aqua", index=1)
    bob = make_owner(name="Bob", index=2)
    party = make_owner(name="Party", kind=OwnerKind.GROUP, ref="grp-1")
    return ExpirationPlan(
        threshold_days=90,
        include_backups=True,
        conversations=[
            make_conversation(owner=bob, file_id="b1.jsonl"),
            make_conversation(owner=seraphina, file_id="s1.jsonl"),
            make_conversation(owner=aqua, file_id="a1.jsonl"),
            make_conversation(owner=seraphina, file_id="s2.jsonl"),
            make_conversation(owner=party, file_id="p1.jsonl"),
        ],
        backups=[
            make_backup(file_name="chat_seraphina_20250101-120000.jsonl", content_hash="h1"),
            make_backup(file_name="chat_seraphina_20250102-120000.jsonl", content_hash="h2"),
            make_backup(file_name="chat_aqua_20250101-120000.jsonl", content_hash="h3"),
            make_backup(file_name="stray.jsonl", content_hash="h4", mtime=1),
        ],
    )


@pytest.mark.unit
class TestSummarizePreview:
    """Tests for summarize_preview()."""

    def test_counts(self, mixed_plan: ExpirationPlan) -> None:
        """Chats are split by owner kind; backups counted in full."""
        summary = summarize_preview(mixed_plan)

        assert summary.chat_count == 5
        assert summary.character_chat_count == 4
        assert summary.group_chat_count == 1
        assert summary.backup_count == 4

    def test_ranking(self, mixed_plan: ExpirationPlan) -> None:
        """Descending count, ties broken by case-insensitive name."""
        summary = summarize_preview(mixed_plan)

        assert summary.chats_by_owner == [("Seraphina", 2), ("aqua", 1), ("Bob", 1), ("Party", 1)]
        assert summary.backups_by_chat == [("seraphina", 2), ("aqua", 1)]


@pytest.mark.unit
class TestRenderPreview:
    """Tests for render_preview()."""

    def test_full_preview(self, mixed_plan: ExpirationPlan) -> None:
        text = render_preview(summarize_preview(mixed_plan))

        assert text.startswith("Found 5 chats older than 90 days:")
        assert "  - 4 character chats" in text
        assert "  - 1 group chat" in text
        assert "  - Seraphina: 2 chats" in text
        assert "  - Bob: 1 chat" in text
        assert "Found 4 backups older than 90 days:" in text
        assert "  - seraphina: 2 backups" in text
        assert text.endswith(UNDO_WARNING)

    def test_backups_only(self, make_backup: Callable[..., BackupCandidate]) -> None:
        """The chat section is omitted when no chat expired."""
        plan = ExpirationPlan(threshold_days=30, include_backups=True, backups=[make_backup()])

        text = render_preview(summarize_preview(plan))

        assert "chats older" not in text
        assert text.startswith("Found 1 backup older than 30 days:")


@pytest.mark.unit
class TestRenderResult:
    """Tests for render_result() and render_notification()."""

    def test_result_with_failures(self, mixed_plan: ExpirationPlan) -> None:
        outcome = ExpirationOutcome(
            chat_successes=4,
            chat_failures=1,
            failed_chats=["Party: p1.jsonl"],
            backup_successes=4,
        )

        text = render_result(outcome, mixed_plan)

        assert text.splitlines()[0] == "Expiration complete"
        assert "  - Successfully deleted: 4" in text
        assert "  - Failed to delete: 1" in text
        assert "Failed chats:\n  - Party: p1.jsonl" in text

    def test_result_omits_empty_sections(
        self, make_conversation: Callable[..., ConversationCandidate]
    ) -> None:
        plan = ExpirationPlan(
            threshold_days=90, include_backups=False, conversations=[make_conversation()]
        )

        text = render_result(ExpirationOutcome(chat_successes=1), plan)

        assert "Backups:" not in text
        assert "Failed" not in text

    @pytest.mark.parametrize(
        ("outcome", "expected"),
        [
            (ExpirationOutcome(chat_successes=3, backup_successes=2), "Expired 3 chats and 2 backups"),
            (ExpirationOutcome(chat_successes=1), "Expired 1 chat"),
            (ExpirationOutcome(backup_successes=2), "Expired 2 backups"),
            (ExpirationOutcome(chat_successes=2, chat_failures=1), "Expired 2 chats (1 failed)"),
            (ExpirationOutcome(chat_failures=2, backup_failures=1), "Expired 0 items (3 failed)"),
        ],
    )
    def test_notification(self, outcome: ExpirationOutcome, expected: str) -> None:
        assert render_notification(outcome) == expected

    def test_nothing_to_expire(self) -> None:
        assert render_nothing_to_expire(90, False) == "No chats found older than 90 days."
        assert (
            render_nothing_to_expire(7, True) == "No chats or backups found older than 7 days."
        )
