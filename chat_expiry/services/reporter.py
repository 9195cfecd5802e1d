"""Human-readable previews and result reports for expiration passes.

Everything here is pure: building a preview never touches the store. The
rendered text is what the CLI prints in place of the host's dialogs and
toast notifications.
"""

from __future__ import annotations

from collections import Counter

from chat_expiry.core.models import ExpirationOutcome, OwnerKind, PreviewSummary
from chat_expiry.core.utils import plural
from chat_expiry.services.plan import ExpirationPlan

UNDO_WARNING = "This action cannot be undone!"


def _ranked(counts: Counter[str]) -> list[tuple[str, int]]:
    """Order by descending count, then name (case-insensitive first)."""
    return sorted(counts.items(), key=lambda item: (-item[1], item[0].casefold(), item[0]))


def summarize_preview(plan: ExpirationPlan) -> PreviewSummary:
    """Build the structured preview for a plan."""
    character_chats = sum(1 for c in plan.conversations if c.owner_kind is OwnerKind.CHARACTER)
    owner_counts = Counter(c.owner.name for c in plan.conversations)

    backup_counts: Counter[str] = Counter()
    for backup in plan.backups:
        chat_name = backup.chat_name
        if chat_name is not None:
            backup_counts[chat_name] += 1

    return PreviewSummary(
        threshold_days=plan.threshold_days,
        include_backups=plan.include_backups,
        chat_count=len(plan.conversations),
        character_chat_count=character_chats,
        group_chat_count=len(plan.conversations) - character_chats,
        chats_by_owner=_ranked(owner_counts),
        backup_count=len(plan.backups),
        backups_by_chat=_ranked(backup_counts),
    )


def render_preview(summary: PreviewSummary) -> str:
    """Render a preview as plain text, ending with the undo warning."""
    lines: list[str] = []

    if summary.chat_count > 0:
        lines.append(
            f"Found {plural(summary.chat_count, 'chat')} older than {summary.threshold_days} days:"
        )
        lines.append(f"  - {plural(summary.character_chat_count, 'character chat')}")
        lines.append(f"  - {plural(summary.group_chat_count, 'group chat')}")
        lines.append("")
        lines.append("Chats:")
        for name, count in summary.chats_by_owner:
            lines.append(f"  - {name}: {plural(count, 'chat')}")
        lines.append("")

    if summary.include_backups and summary.backup_count > 0:
        lines.append(
            f"Found {plural(summary.backup_count, 'backup')} older than "
            f"{summary.threshold_days} days:"
        )
        for name, count in summary.backups_by_chat:
            lines.append(f"  - {name}: {plural(count, 'backup')}")
        lines.append("")

    lines.append(UNDO_WARNING)
    return "\n".join(lines)


def render_result(outcome: ExpirationOutcome, plan: ExpirationPlan) -> str:
    """Render the report shown after a manual pass."""
    lines = ["Expiration complete"]

    if plan.conversations:
        lines.append("")
        lines.append("Chats:")
        lines.append(f"  - Successfully deleted: {outcome.chat_successes}")
        if outcome.chat_failures > 0:
            lines.append(f"  - Failed to delete: {outcome.chat_failures}")

    if plan.backups:
        lines.append("")
        lines.append("Backups:")
        lines.append(f"  - Successfully deleted: {outcome.backup_successes}")
        if outcome.backup_failures > 0:
            lines.append(f"  - Failed to delete: {outcome.backup_failures}")

    if outcome.failed_chats:
        lines.append("")
        lines.append("Failed chats:")
        lines.extend(f"  - {failed}" for failed in outcome.failed_chats)

    return "\n".join(lines)


def render_notification(outcome: ExpirationOutcome) -> str:
    """Render the one-line notification shown after an automatic pass."""
    chats = outcome.chat_successes
    backups = outcome.backup_successes

    if chats > 0 and backups > 0:
        message = f"Expired {plural(chats, 'chat')} and {plural(backups, 'backup')}"
    elif chats > 0:
        message = f"Expired {plural(chats, 'chat')}"
    elif backups > 0:
        message = f"Expired {plural(backups, 'backup')}"
    else:
        message = f"Expired {plural(outcome.total_successes, 'item')}"

    if outcome.total_failures > 0:
        message += f" ({outcome.total_failures} failed)"
    return message


def render_nothing_to_expire(threshold_days: int, include_backups: bool) -> str:
    """Render the message shown when a manual scan finds nothing."""
    if include_backups:
        return f"No chats or backups found older than {threshold_days} days."
    return f"No chats found older than {threshold_days} days."
