"""JSON file persistence for the expiration policy."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from filelock import FileLock
from filelock import Timeout as FileLockTimeout
from pydantic import ValidationError as PydanticValidationError

from chat_expiry.core.errors import PolicyStoreError
from chat_expiry.core.models import ExpirationPolicy

logger = logging.getLogger(__name__)


class JsonPolicyStore:
    """Stores the expiration policy as a small JSON document.

    A missing file yields the default policy. Keys missing from an existing
    file are filled from the defaults, and unknown keys are preserved on save
    so that other tools sharing the file keep their settings.

    Saving and updating are a read-modify-write guarded by a cross-process
    file lock (``<policy file>.lock``), so concurrent ``settings set`` runs
    never lose each other's changes.
    """

    def __init__(self, path: Path, lock_timeout: float = 10.0) -> None:
        """Initialize the store.

        Args:
            path: Location of the policy JSON file.
            lock_timeout: Maximum seconds to wait for the file lock on save.
        """
        self._path = Path(path)
        self._lock_path = self._path.with_name(self._path.name + ".lock")
        self._lock_timeout = lock_timeout

    @property
    def path(self) -> Path:
        return self._path

    def _read_raw(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as e:
            raise PolicyStoreError(self._path, f"invalid JSON: {e}") from e
        except OSError as e:
            raise PolicyStoreError(self._path, f"cannot read: {e.strerror}") from e
        if not isinstance(data, dict):
            raise PolicyStoreError(self._path, "expected a JSON object")
        return data

    def _policy_from_raw(self, raw: dict[str, Any]) -> ExpirationPolicy:
        defaults = ExpirationPolicy().model_dump()
        merged = {key: raw.get(key, default) for key, default in defaults.items()}
        try:
            return ExpirationPolicy.model_validate(merged)
        except PydanticValidationError as e:
            raise PolicyStoreError(self._path, f"invalid policy: {e.error_count()} error(s)") from e

    def load(self) -> ExpirationPolicy:
        return self._policy_from_raw(self._read_raw())

    def save(self, policy: ExpirationPolicy) -> None:
        """Persist the policy, keeping keys this package does not own.

        Raises:
            PolicyStoreError: If the file cannot be read, locked or written.
        """
        self._commit(lambda raw: policy)

    def update(self, **changes: Any) -> ExpirationPolicy:
        """Change some policy fields, keeping the others as stored.

        The stored policy is read and rewritten under the file lock, so
        concurrent updates of different fields are all kept.

        Args:
            **changes: Policy fields to change.

        Returns:
            The policy as saved.

        Raises:
            PolicyStoreError: If the file cannot be read, locked or written,
                or the changes are not a valid policy.
        """
        def apply(raw: dict[str, Any]) -> ExpirationPolicy:
            current = self._policy_from_raw(raw)
            try:
                return ExpirationPolicy.model_validate({**current.model_dump(), **changes})
            except PydanticValidationError as e:
                raise PolicyStoreError(
                    self._path, f"invalid policy: {e.error_count()} error(s)"
                ) from e

        return self._commit(apply)

    def _commit(self, build: Callable[[dict[str, Any]], ExpirationPolicy]) -> ExpirationPolicy:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PolicyStoreError(self._path, f"cannot create directory: {e.strerror}") from e

        try:
            with FileLock(str(self._lock_path), timeout=self._lock_timeout):
                raw = self._read_raw()
                policy = build(raw)
                raw.update(policy.model_dump())
                self._path.write_text(json.dumps(raw, indent=2) + "\n", encoding="utf-8")
        except FileLockTimeout as e:
            raise PolicyStoreError(
                self._path,
                f"timed out after {self._lock_timeout}s waiting for the policy lock",
            ) from e
        except OSError as e:
            raise PolicyStoreError(self._path, f"cannot write: {e.strerror}") from e
        logger.debug(f"Saved expiration policy to {self._path.name}")
        return policy
