"""Service layer for Chat Expiry.

This module provides the application services for expiration passes:
- CandidateAggregator: gathers chats and backups from the host
- filter_conversations / filter_backups: select expired candidates
- DeletionOrchestrator: deletes candidates and accounts for failures
- ExpirationService: manual and automatic entry points
"""

from chat_expiry.services.aggregator import CandidateAggregator, OwnerQueryResult
from chat_expiry.services.expiration import ExpirationService, schedule_auto_run
from chat_expiry.services.filters import filter_backups, filter_conversations
from chat_expiry.services.orchestrator import DeletionOrchestrator
from chat_expiry.services.plan import ExpirationPlan, MaintenanceLease

__all__ = [
    "CandidateAggregator",
    "DeletionOrchestrator",
    "ExpirationPlan",
    "ExpirationService",
    "MaintenanceLease",
    "OwnerQueryResult",
    "filter_backups",
    "filter_conversations",
    "schedule_auto_run",
]
