"""Service factory for dependency injection and initialization.

Centralizes the wiring of the chat store, policy store and expiration
service so that the CLI stays thin and tests can inject fakes.

Usage:
    from chat_expiry.factory import ServiceFactory

    factory = ServiceFactory(settings)
    services = factory.create_all()
    services.expiration.run_auto(notify=print)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from chat_expiry.adapters.http_chat_store import HttpChatStore
from chat_expiry.adapters.json_policy_store import JsonPolicyStore
from chat_expiry.config import Settings
from chat_expiry.core.errors import ConfigurationError
from chat_expiry.services.expiration import ExpirationService

if TYPE_CHECKING:
    from chat_expiry.ports.chat_store import ChatStoreProtocol
    from chat_expiry.ports.policy_store import PolicyStoreProtocol

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Container for all initialized services.

    Attributes:
        store: Host chat store.
        policy_store: Expiration policy persistence.
        expiration: Expiration service with the manual/automatic entry points.
    """

    store: ChatStoreProtocol
    policy_store: PolicyStoreProtocol
    expiration: ExpirationService

    def close(self) -> None:
        """Release transport resources."""
        close = getattr(self.store, "close", None)
        if callable(close):
            close()


class ServiceFactory:
    """Factory for creating and wiring all services.

    Example:
        factory = ServiceFactory(settings)
        services = factory.create_all()
    """

    def __init__(
        self,
        settings: Settings,
        store: ChatStoreProtocol | None = None,
        policy_store: PolicyStoreProtocol | None = None,
    ) -> None:
        """Initialize the factory.

        Args:
            settings: Application settings.
            store: Optional chat store override for testing.
            policy_store: Optional policy store override for testing.
        """
        self._settings = settings
        self._injected_store = store
        self._injected_policy_store = policy_store

    def create_chat_store(self) -> ChatStoreProtocol:
        """Create the HTTP chat store.

        Raises:
            ConfigurationError: If basic auth is only partially configured.
        """
        if self._injected_store is not None:
            return self._injected_store

        username = self._settings.basic_auth_username
        password = self._settings.basic_auth_password
        if (username is None) != (password is None):
            raise ConfigurationError(
                "basic_auth_username and basic_auth_password must be set together"
            )
        auth = (username, password) if username is not None and password is not None else None

        logger.debug(f"Connecting to host at {self._settings.base_url}")
        return HttpChatStore(
            base_url=self._settings.base_url,
            timeout=self._settings.request_timeout,
            csrf_enabled=self._settings.csrf_enabled,
            auth=auth,
        )

    def create_policy_store(self) -> PolicyStoreProtocol:
        if self._injected_policy_store is not None:
            return self._injected_policy_store
        return JsonPolicyStore(
            self._settings.policy_path,
            lock_timeout=self._settings.policy_lock_timeout,
        )

    def create_all(self) -> ServiceContainer:
        """Create and wire all services."""
        store = self.create_chat_store()
        policy_store = self.create_policy_store()
        return ServiceContainer(
            store=store,
            policy_store=policy_store,
            expiration=ExpirationService(store=store, policy_store=policy_store),
        )
