"""Configuration system for Chat Expiry."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Chat Expiry Configuration.

    These are deployment settings (where the host lives, how to log). The
    user-facing expiration policy is persisted separately by the policy store.
    """

    # Host server
    base_url: str = Field(
        default="http://127.0.0.1:8000",
        description="Base URL of the host chat server",
    )
    request_timeout_connect: float = Field(
        default=10.0,
        gt=0.0,
        description="Connect timeout for host requests (seconds)",
    )
    request_timeout_read: float = Field(
        default=120.0,
        gt=0.0,
        description="Read timeout for host requests (seconds)",
    )
    csrf_enabled: bool = Field(
        default=True,
        description="Fetch a CSRF token before the first POST",
    )
    basic_auth_username: str | None = Field(
        default=None,
        description="Username for hosts behind HTTP basic auth",
    )
    basic_auth_password: str | None = Field(
        default=None,
        description="Password for hosts behind HTTP basic auth",
    )

    # Policy persistence
    policy_path: Path = Field(
        default=Path("./.chat-expiry/policy.json"),
        description="Path to the JSON file holding the expiration policy",
    )
    policy_lock_timeout: float = Field(
        default=10.0,
        gt=0.0,
        description="Seconds to wait for the policy file lock when saving",
    )

    # Automatic run
    auto_run_delay_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="Delay before the automatic startup pass",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_json: bool = Field(
        default=False,
        description="Emit logs as JSON lines",
    )

    model_config = {
        "env_prefix": "CHAT_EXPIRY_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @property
    def request_timeout(self) -> tuple[float, float]:
        """(connect, read) timeout tuple for requests."""
        return (self.request_timeout_connect, self.request_timeout_read)


# Settings singleton with dependency injection support
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the settings instance (lazy-loaded singleton).

    Returns:
        The Settings instance.

    Example:
        from chat_expiry.config import get_settings
        settings = get_settings()
        print(settings.base_url)
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def override_settings(new_settings: Settings) -> None:
    """Override the settings instance (for testing).

    Args:
        new_settings: The new Settings instance to use.
    """
    global _settings
    _settings = new_settings


def reset_settings() -> None:
    """Reset settings to None (forces reload on next get_settings call)."""
    global _settings
    _settings = None
