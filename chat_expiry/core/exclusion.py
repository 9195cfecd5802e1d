"""Protection for the conversation currently open in the user's session."""

from __future__ import annotations

from chat_expiry.core.models import ConversationCandidate, OwnerKind, SessionContext


def is_active_conversation(candidate: ConversationCandidate, session: SessionContext) -> bool:
    """Check whether a candidate is the chat the user has open.

    Both the owner and the chat file must match: an owner can have many
    chat files and only the open one is protected.

    Args:
        candidate: Conversation to check.
        session: Session state read at the start of the pass.

    Returns:
        True if the candidate must be excluded from expiration.
    """
    if session.active_file_id is None:
        return False

    if candidate.owner_kind is OwnerKind.GROUP:
        if session.active_group_id is None or candidate.owner.ref != session.active_group_id:
            return False
    else:
        if session.active_owner_index is None:
            return False
        if candidate.owner.index != session.active_owner_index:
            return False

    return candidate.chat_name == session.active_file_id
