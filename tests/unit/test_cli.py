"""Tests for the command line entry points."""

from __future__ import annotations

import argparse
from collections.abc import Callable, Generator
from datetime import datetime
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from chat_expiry.__main__ import (
    _session_resolver,
    main,
    run_auto,
    run_expire,
    run_preview,
    run_settings,
)
from chat_expiry.adapters.json_policy_store import JsonPolicyStore
from chat_expiry.core.errors import ConfigurationError
from chat_expiry.core.models import ExpirationPolicy, Owner, OwnerKind, Roster
from chat_expiry.factory import ServiceContainer
from chat_expiry.services.expiration import ExpirationService


@pytest.fixture
def policy_store(tmp_path: Path) -> JsonPolicyStore:
    return JsonPolicyStore(tmp_path / "policy.json")


@pytest.fixture
def mock_services(
    mock_store: MagicMock, policy_store: JsonPolicyStore, now: datetime
) -> Generator[dict[str, Any], None, None]:
    """Patch settings, logging and the factory with a real service over a mock host."""
    with (
        patch("chat_expiry.config.get_settings") as mock_settings,
        patch("chat_expiry.core.logging.configure_logging"),
        patch("chat_expiry.factory.ServiceFactory") as mock_factory_cls,
    ):
        settings = MagicMock()
        settings.log_level = "INFO"
        settings.log_json = False
        settings.auto_run_delay_seconds = 0.0
        mock_settings.return_value = settings

        container = ServiceContainer(
            store=mock_store,
            policy_store=policy_store,
            expiration=ExpirationService(
                store=mock_store, policy_store=policy_store, clock=lambda: now
            ),
        )
        mock_factory_cls.return_value.create_all.return_value = container

        yield {
            "settings": settings,
            "store": mock_store,
            "policy_store": policy_store,
            "factory": mock_factory_cls,
        }


def _make_args(**overrides: Any) -> argparse.Namespace:
    """Create args namespace with defaults shared by the subcommands."""
    defaults: dict[str, Any] = {
        "active_character": None,
        "active_group": None,
        "active_chat": None,
        "verbose": False,
        "yes": False,
        "no_delay": True,
        "settings_command": None,
        "days": None,
        "backups": None,
        "auto": None,
    }
    defaults.update(overrides)
    return argparse.Namespace(**defaults)


def _with_old_chat(store: MagicMock, days_ago: Callable[[float], str]) -> None:
    store.list_characters.return_value = [{"name": "Seraphina", "avatar": "seraphina.png"}]
    store.search_conversations.return_value = [
        {"file_name": "old.jsonl", "last_mes": days_ago(200)},
    ]


@pytest.mark.unit
class TestSettingsCommand:
    """Tests for run_settings()."""

    def test_show_defaults(
        self, mock_services: dict[str, Any], capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert run_settings(_make_args(settings_command="show")) == 0

        out = capsys.readouterr().out
        assert "Expire chats older than: 90 days" in out
        assert "Include backups:         no" in out

    def test_set_persists(
        self, mock_services: dict[str, Any], capsys: pytest.CaptureFixture[str]
    ) -> None:
        args = _make_args(settings_command="set", days="30 days", backups=True, auto=True)

        assert run_settings(args) == 0

        assert mock_services["policy_store"].load() == ExpirationPolicy(
            threshold_days=30, include_backups=True, auto_run=True
        )
        assert "Run automatically:       yes" in capsys.readouterr().out

    def test_corrupt_policy_reports_error(
        self, mock_services: dict[str, Any], capsys: pytest.CaptureFixture[str]
    ) -> None:
        mock_services["policy_store"].path.write_text("{", encoding="utf-8")

        assert run_settings(_make_args(settings_command="show")) == 1
        assert "Policy store error (policy.json)" in capsys.readouterr().out


@pytest.mark.unit
class TestPassCommands:
    """Tests for preview, expire and auto."""

    def test_preview_nothing(
        self, mock_services: dict[str, Any], capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert run_preview(_make_args()) == 0

        assert "No chats found older than 90 days." in capsys.readouterr().out
        mock_services["store"].delete_conversation.assert_not_called()

    def test_preview_never_deletes(
        self,
        mock_services: dict[str, Any],
        days_ago: Callable[[float], str],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        _with_old_chat(mock_services["store"], days_ago)

        assert run_preview(_make_args()) == 0

        assert "Found 1 chat older than 90 days:" in capsys.readouterr().out
        mock_services["store"].delete_conversation.assert_not_called()

    def test_expire_with_yes(
        self, mock_services: dict[str, Any], days_ago: Callable[[float], str]
    ) -> None:
        _with_old_chat(mock_services["store"], days_ago)

        assert run_expire(_make_args(yes=True)) == 0

        mock_services["store"].delete_conversation.assert_called_once()
        mock_services["store"].close.assert_called_once()

    def test_expire_failure_exit_code(
        self, mock_services: dict[str, Any], days_ago: Callable[[float], str]
    ) -> None:
        _with_old_chat(mock_services["store"], days_ago)
        mock_services["store"].delete_conversation.return_value = False

        assert run_expire(_make_args(yes=True)) == 1

    def test_expire_declined_at_prompt(
        self, mock_services: dict[str, Any], days_ago: Callable[[float], str]
    ) -> None:
        _with_old_chat(mock_services["store"], days_ago)

        with patch("builtins.input", return_value="n"):
            assert run_expire(_make_args()) == 0

        mock_services["store"].delete_conversation.assert_not_called()

    def test_expire_confirmed_at_prompt(
        self, mock_services: dict[str, Any], days_ago: Callable[[float], str]
    ) -> None:
        _with_old_chat(mock_services["store"], days_ago)

        with patch("builtins.input", return_value="yes"):
            assert run_expire(_make_args()) == 0

        mock_services["store"].delete_conversation.assert_called_once()

    def test_auto_disabled(
        self, mock_services: dict[str, Any], capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert run_auto(_make_args()) == 0

        assert "Automatic expiration is disabled" in capsys.readouterr().out

    def test_auto_enabled_runs(
        self,
        mock_services: dict[str, Any],
        days_ago: Callable[[float], str],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        _with_old_chat(mock_services["store"], days_ago)
        mock_services["policy_store"].save(ExpirationPolicy(auto_run=True))

        assert run_auto(_make_args()) == 0

        assert "Expired 1 chat" in capsys.readouterr().out
        mock_services["store"].delete_conversation.assert_called_once()


@pytest.mark.unit
class TestSessionResolver:
    """Tests for --active-* flag handling."""

    @pytest.fixture
    def roster(self) -> Roster:
        return Roster(
            characters=[
                Owner(
                    kind=OwnerKind.CHARACTER,
                    name="Seraphina",
                    ref="seraphina.png",
                    index=3,
                    current_chat="open",
                )
            ],
            groups=[Owner(kind=OwnerKind.GROUP, name="Party", ref="grp-1", index=0)],
        )

    def test_no_flags(self) -> None:
        assert _session_resolver(_make_args()) is None

    def test_active_character(self, roster: Roster) -> None:
        resolver = _session_resolver(_make_args(active_character="seraphina.png"))

        assert resolver is not None
        session = resolver(roster)
        assert session.active_owner_index == 3
        assert session.active_file_id == "open"

    def test_active_group_with_chat(self, roster: Roster) -> None:
        resolver = _session_resolver(_make_args(active_group="grp-1", active_chat="Party.jsonl"))

        assert resolver is not None
        session = resolver(roster)
        assert session.active_group_id == "grp-1"
        assert session.active_file_id == "Party"


@pytest.mark.unit
class TestMain:
    """Tests for argument dispatch."""

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch("sys.argv", ["chat-expiry", "--version"]):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 0
        assert "chat-expiry 0.1.0" in capsys.readouterr().out

    def test_no_command_prints_help(self) -> None:
        with patch("sys.argv", ["chat-expiry"]):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 1

    def test_dispatches_settings(self, mock_services: dict[str, Any]) -> None:
        argv = ["chat-expiry", "settings", "set", "--days", "14", "--no-backups"]
        with patch("sys.argv", argv):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 0
        policy = mock_services["policy_store"].load()
        assert policy.threshold_days == 14
        assert policy.include_backups is False

    def test_active_flags_are_exclusive(self) -> None:
        argv = ["chat-expiry", "preview", "--active-character", "a.png", "--active-group", "g"]
        with patch("sys.argv", argv):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 2

    def test_active_chat_requires_owner(self, capsys: pytest.CaptureFixture[str]) -> None:
        argv = ["chat-expiry", "expire", "--active-chat", "Party - current"]
        with patch("sys.argv", argv):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 2
        assert "--active-chat requires" in capsys.readouterr().err


@pytest.mark.unit
class TestSetupErrors:
    """Tests for configuration errors raised while building services."""

    @pytest.mark.parametrize("command", [run_preview, run_expire, run_auto, run_settings])
    def test_configuration_error_exits_cleanly(
        self,
        mock_services: dict[str, Any],
        capsys: pytest.CaptureFixture[str],
        command: Callable[[argparse.Namespace], int],
    ) -> None:
        mock_services["factory"].return_value.create_all.side_effect = ConfigurationError(
            "Basic auth needs both a username and a password"
        )

        assert command(_make_args(settings_command="show")) == 1

        assert "Error: Basic auth needs both" in capsys.readouterr().out
        mock_services["store"].close.assert_not_called()
