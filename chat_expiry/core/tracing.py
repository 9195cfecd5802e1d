"""Pass tracing utilities for Chat Expiry.

Every expiration pass runs inside a ``PassContext`` so that log lines emitted
anywhere during the pass can be correlated. It uses contextvars for
safe propagation.

Usage:
    from chat_expiry.core.tracing import pass_context

    with pass_context("manual") as ctx:
        logger.info("scanning")  # -> "... - [pass=3f2a9c1b0d4e][mode=manual] scanning"
"""

from __future__ import annotations

import contextvars
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from contextvars import Token

from chat_expiry.core.utils import utc_now


@dataclass
class PassContext:
    """Context information for one expiration pass.

    Attributes:
        pass_id: Unique identifier for the pass (first 12 chars of UUID).
        mode: ``manual`` or ``auto``.
        started_at: When the pass started.
    """

    pass_id: str
    mode: str
    started_at: datetime

    @classmethod
    def create(cls, mode: str) -> PassContext:
        """Create a new pass context with auto-generated ID."""
        return cls(
            pass_id=uuid.uuid4().hex[:12],
            mode=mode,
            started_at=utc_now(),
        )

    def elapsed_ms(self) -> float:
        """Elapsed time since the pass started, in milliseconds."""
        return (utc_now() - self.started_at).total_seconds() * 1000


_context: contextvars.ContextVar[PassContext | None] = contextvars.ContextVar(
    "pass_context", default=None
)


def get_current_context() -> PassContext | None:
    """Get the current pass context, or None outside a pass."""
    return _context.get()


def set_context(ctx: PassContext) -> Token[PassContext | None]:
    """Set the current pass context and return the reset token."""
    return _context.set(ctx)


def clear_context(token: Token[PassContext | None]) -> None:
    """Reset the context to its previous value."""
    _context.reset(token)


@contextmanager
def pass_context(mode: str) -> Generator[PassContext, None, None]:
    """Context manager for pass tracing.

    Creates a PassContext, sets it as current, and clears it on exit.

    Args:
        mode: ``manual`` or ``auto``.

    Yields:
        The created PassContext.
    """
    ctx = PassContext.create(mode)
    token = set_context(ctx)
    try:
        yield ctx
    finally:
        clear_context(token)
