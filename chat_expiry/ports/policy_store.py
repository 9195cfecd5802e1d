"""Protocol interface for expiration policy persistence."""

from __future__ import annotations

from typing import Any, Protocol

from chat_expiry.core.models import ExpirationPolicy


class PolicyStoreProtocol(Protocol):
    """Protocol for loading and saving the expiration policy.

    The JsonPolicyStore is the primary implementation.
    """

    def load(self) -> ExpirationPolicy:
        """Load the current policy, filling missing fields with defaults.

        Raises:
            PolicyStoreError: If stored data cannot be read.
        """
        ...

    def save(self, policy: ExpirationPolicy) -> None:
        """Persist the policy.

        Raises:
            PolicyStoreError: If the policy cannot be written.
        """
        ...

    def update(self, **changes: Any) -> ExpirationPolicy:
        """Change some policy fields atomically, keeping the others as stored.

        Args:
            **changes: Policy fields to change.

        Returns:
            The policy as saved.

        Raises:
            PolicyStoreError: If the policy cannot be read or written.
        """
        ...
