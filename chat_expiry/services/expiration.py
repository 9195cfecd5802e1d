"""Expiration service: the manual and automatic entry points.

A pass reads the policy once, scans for expired items, and then either
asks for confirmation (manual) or proceeds unconditionally (automatic)
before deleting and reporting:

    policy ──► scan ──► [preview ─► confirm] ──► execute ──► report
                 │                      │
                 └── lease ◄────────────┘  released on every exit path

Only one pass runs at a time. Unexpected errors are caught at the entry
point, logged, and surfaced as a generic message.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from chat_expiry.core.models import (
    BackupCandidate,
    ExpirationOutcome,
    ExpirationPolicy,
    Roster,
    SessionContext,
)
from chat_expiry.core.tracing import pass_context
from chat_expiry.core.utils import utc_now
from chat_expiry.services.aggregator import CandidateAggregator
from chat_expiry.services.filters import filter_backups, filter_conversations
from chat_expiry.services.orchestrator import DeletionOrchestrator
from chat_expiry.services.plan import ExpirationPlan, MaintenanceLease
from chat_expiry.services.reporter import (
    render_notification,
    render_nothing_to_expire,
    render_preview,
    render_result,
    summarize_preview,
)

if TYPE_CHECKING:
    from chat_expiry.ports.chat_store import ChatStoreProtocol
    from chat_expiry.ports.policy_store import PolicyStoreProtocol

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[str], bool]
NotifyCallback = Callable[[str], None]
SessionResolver = Callable[[Roster], SessionContext]

SCAN_FAILED_MESSAGE = "An error occurred while scanning chats. Please check the logs for details."
AUTO_FAILED_MESSAGE = "Failed to auto-expire chats. Check logs for details."


def _no_session(roster: Roster) -> SessionContext:
    return SessionContext()


class ExpirationService:
    """Runs expiration passes against a chat store.

    Uses Clean Architecture - depends on protocol interfaces, not
    implementations.
    """

    def __init__(
        self,
        store: ChatStoreProtocol,
        policy_store: PolicyStoreProtocol,
        aggregator: CandidateAggregator | None = None,
        orchestrator: DeletionOrchestrator | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the expiration service.

        Args:
            store: Host chat store.
            policy_store: Where the expiration policy is persisted.
            aggregator: Optional aggregator override.
            orchestrator: Optional orchestrator override.
            clock: Source of the reference instant for each pass.
        """
        self._store = store
        self._policy_store = policy_store
        self._aggregator = aggregator or CandidateAggregator(store)
        self._orchestrator = orchestrator or DeletionOrchestrator(store)
        self._clock = clock
        self._pass_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        """Whether a pass is currently in progress."""
        return self._pass_lock.locked()

    # =========================================================================
    # Settings actions
    # =========================================================================

    def get_policy(self) -> ExpirationPolicy:
        """Read the current policy from the policy store."""
        return self._policy_store.load()

    def set_threshold_days(self, value: Any) -> ExpirationPolicy:
        """Set the threshold from user input (clamped to at least one day)."""
        return self._policy_store.update(threshold_days=ExpirationPolicy.coerce_threshold(value))

    def set_include_backups(self, value: bool) -> ExpirationPolicy:
        return self._policy_store.update(include_backups=bool(value))

    def set_auto_run(self, value: bool) -> ExpirationPolicy:
        return self._policy_store.update(auto_run=bool(value))

    # =========================================================================
    # Pass building blocks
    # =========================================================================

    def scan(
        self,
        policy: ExpirationPolicy,
        session_resolver: SessionResolver | None = None,
        now: datetime | None = None,
    ) -> ExpirationPlan:
        """Gather and filter candidates without deleting anything.

        The backup report is only requested when the policy includes
        backups. The returned plan owns the maintenance lease; the caller
        must release it (the plan's lease is a context manager).

        Args:
            policy: Policy read at the start of the pass.
            session_resolver: Resolves the open chat from the loaded roster.
            now: Reference instant (defaults to the service clock).

        Returns:
            The expiration plan.
        """
        now = now or self._clock()
        resolver = session_resolver or _no_session

        roster = self._aggregator.load_roster()
        session = resolver(roster)
        candidates = self._aggregator.collect_conversations(roster)
        expired_chats = filter_conversations(candidates, policy, session, now)

        lease = MaintenanceLease.empty()
        expired_backups: list[BackupCandidate] = []
        if policy.include_backups:
            lease = self._aggregator.collect_backups()
            try:
                expired_backups = filter_backups(lease.backups, policy, now)
            except Exception:
                lease.release()
                raise

        logger.info(
            f"Scan found {len(expired_chats)} expired chats and "
            f"{len(expired_backups)} expired backups (threshold {policy.threshold_days} days)"
        )
        return ExpirationPlan(
            threshold_days=policy.threshold_days,
            include_backups=policy.include_backups,
            conversations=expired_chats,
            backups=expired_backups,
            lease=lease,
        )

    def execute(self, plan: ExpirationPlan) -> ExpirationOutcome:
        """Delete everything in the plan and release its lease."""
        return self._orchestrator.execute(plan.conversations, plan.backups, plan.lease)

    # =========================================================================
    # Entry points
    # =========================================================================

    def run_manual(
        self,
        confirm: ConfirmCallback,
        notify: NotifyCallback,
        session_resolver: SessionResolver | None = None,
    ) -> ExpirationOutcome | None:
        """Preview, ask for confirmation, then expire.

        Args:
            confirm: Shown the preview text; returns True to proceed.
            notify: Receives the "nothing to expire", result, or error text.
            session_resolver: Resolves the open chat from the loaded roster.

        Returns:
            The outcome, or None if nothing was deleted (nothing found,
            cancelled, already running, or failed).
        """
        if not self._pass_lock.acquire(blocking=False):
            logger.warning("An expiration pass is already running")
            return None
        try:
            with pass_context("manual") as ctx:
                try:
                    return self._run_manual(confirm, notify, session_resolver)
                except Exception as e:
                    logger.error(f"Failed to preview expired chats: {e}", exc_info=True)
                    notify(SCAN_FAILED_MESSAGE)
                    return None
                finally:
                    logger.info(f"Manual pass finished in {ctx.elapsed_ms():.0f}ms")
        finally:
            self._pass_lock.release()

    def _run_manual(
        self,
        confirm: ConfirmCallback,
        notify: NotifyCallback,
        session_resolver: SessionResolver | None,
    ) -> ExpirationOutcome | None:
        policy = self._policy_store.load()
        plan = self.scan(policy, session_resolver)

        with plan.lease:
            if plan.is_empty:
                notify(render_nothing_to_expire(plan.threshold_days, plan.include_backups))
                return None

            preview = render_preview(summarize_preview(plan))
            if not confirm(preview):
                logger.info("Expiration cancelled by user")
                return None

            outcome = self.execute(plan)

        notify(render_result(outcome, plan))
        return outcome

    def run_auto(
        self,
        notify: NotifyCallback,
        session_resolver: SessionResolver | None = None,
    ) -> ExpirationOutcome | None:
        """Expire silently, emitting only a terminal notification.

        Nothing is shown when there is nothing to expire.

        Args:
            notify: Receives the summary notification or error text.
            session_resolver: Resolves the open chat from the loaded roster.

        Returns:
            The outcome, or None if nothing was deleted.
        """
        if not self._pass_lock.acquire(blocking=False):
            logger.warning("An expiration pass is already running")
            return None
        try:
            with pass_context("auto") as ctx:
                try:
                    return self._run_auto(notify, session_resolver)
                except Exception as e:
                    logger.error(f"Failed to auto-expire chats: {e}", exc_info=True)
                    notify(AUTO_FAILED_MESSAGE)
                    return None
                finally:
                    logger.info(f"Automatic pass finished in {ctx.elapsed_ms():.0f}ms")
        finally:
            self._pass_lock.release()

    def _run_auto(
        self,
        notify: NotifyCallback,
        session_resolver: SessionResolver | None,
    ) -> ExpirationOutcome | None:
        policy = self._policy_store.load()
        plan = self.scan(policy, session_resolver)

        with plan.lease:
            if plan.is_empty:
                logger.info("Nothing to expire")
                return None
            outcome = self.execute(plan)

        message = render_notification(outcome)
        logger.info(message)
        notify(message)
        return outcome


def schedule_auto_run(
    service: ExpirationService,
    notify: NotifyCallback,
    session_resolver: SessionResolver | None = None,
    delay_seconds: float = 1.0,
) -> threading.Timer | None:
    """Schedule the startup pass if the policy asks for it.

    Args:
        service: Service to run.
        notify: Receives the terminal notification.
        session_resolver: Resolves the open chat from the loaded roster.
        delay_seconds: Delay before the pass starts.

    Returns:
        The started timer, or None if automatic expiration is disabled.
    """
    if not service.get_policy().auto_run:
        logger.debug("Automatic expiration disabled, not scheduling")
        return None

    timer = threading.Timer(
        delay_seconds,
        service.run_auto,
        kwargs={"notify": notify, "session_resolver": session_resolver},
    )
    timer.daemon = True
    timer.name = "chat-expiry-auto"
    timer.start()
    logger.info(f"Automatic expiration scheduled in {delay_seconds:.1f}s")
    return timer
