"""Entry point for the Chat Expiry command line."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import TYPE_CHECKING, NoReturn

from chat_expiry.core.errors import ConfigurationError, PolicyStoreError
from chat_expiry.core.models import SessionContext
from chat_expiry.services.expiration import SessionResolver

if TYPE_CHECKING:
    from chat_expiry.config import Settings
    from chat_expiry.factory import ServiceContainer

logger = logging.getLogger(__name__)


def _setup(args: argparse.Namespace) -> tuple[Settings, ServiceContainer]:
    """Configure logging and build the service container.

    Raises:
        ConfigurationError: If the settings cannot be used to build services.
        ValueError: If the environment holds invalid settings.
    """
    from chat_expiry.config import get_settings
    from chat_expiry.core.logging import configure_logging
    from chat_expiry.factory import ServiceFactory

    settings = get_settings()
    configure_logging(
        level="DEBUG" if getattr(args, "verbose", False) else settings.log_level,
        json_format=settings.log_json,
    )
    return settings, ServiceFactory(settings).create_all()


def _session_resolver(args: argparse.Namespace) -> SessionResolver | None:
    """Build the session resolver from --active-* flags."""
    group_id = getattr(args, "active_group", None)
    avatar = getattr(args, "active_character", None)
    chat = getattr(args, "active_chat", None)

    if group_id:
        return lambda roster: SessionContext.for_group(roster, group_id, chat)
    if avatar:
        return lambda roster: SessionContext.for_character(roster, avatar, chat)
    return None


def _assume_yes(preview: str) -> bool:
    print(preview)
    return True


def _confirm(preview: str) -> bool:
    print(preview)
    print()
    try:
        response = input("Delete these items? [y/N] ").strip().lower()
    except EOFError:
        return False
    return response in ("y", "yes")


def run_preview(args: argparse.Namespace) -> int:
    """Show what would be expired without deleting anything.

    Returns:
        Exit code (0 for success, 1 for error).
    """
    from chat_expiry.services.reporter import (
        render_nothing_to_expire,
        render_preview,
        summarize_preview,
    )

    try:
        _, services = _setup(args)
    except (ConfigurationError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    try:
        policy = services.expiration.get_policy()
        plan = services.expiration.scan(policy, _session_resolver(args))
        with plan.lease:
            if plan.is_empty:
                print(render_nothing_to_expire(plan.threshold_days, plan.include_backups))
            else:
                print(render_preview(summarize_preview(plan)))
        return 0
    except Exception as e:
        logger.error(f"Preview failed: {e}", exc_info=args.verbose)
        print(f"\nError: {e}")
        return 1
    finally:
        services.close()


def run_expire(args: argparse.Namespace) -> int:
    """Preview, confirm, and expire.

    Returns:
        Exit code (0 for success, 1 if any deletion failed).
    """
    try:
        _, services = _setup(args)
    except (ConfigurationError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    try:
        confirm = _assume_yes if args.yes else _confirm
        outcome = services.expiration.run_manual(
            confirm=confirm,
            notify=print,
            session_resolver=_session_resolver(args),
        )
    finally:
        services.close()

    if outcome is not None and outcome.total_failures > 0:
        return 1
    return 0


def run_auto(args: argparse.Namespace) -> int:
    """Run the automatic startup pass if enabled.

    Failures are reported through the notification only, as at startup.

    Returns:
        Exit code (0, or 1 if the services cannot be set up).
    """
    from chat_expiry.services.expiration import schedule_auto_run

    try:
        settings, services = _setup(args)
    except (ConfigurationError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    try:
        delay = 0.0 if args.no_delay else settings.auto_run_delay_seconds
        timer = schedule_auto_run(
            services.expiration,
            notify=print,
            session_resolver=_session_resolver(args),
            delay_seconds=delay,
        )
        if timer is None:
            print("Automatic expiration is disabled. Enable it with: settings set --auto")
            return 0
        timer.join()
    finally:
        services.close()
    return 0


def run_settings(args: argparse.Namespace) -> int:
    """Show or update the expiration policy.

    Returns:
        Exit code (0 for success, 1 for error).
    """
    try:
        _, services = _setup(args)
    except (ConfigurationError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    expiration = services.expiration
    try:
        if args.settings_command == "set":
            if args.days is not None:
                expiration.set_threshold_days(args.days)
            if args.backups is not None:
                expiration.set_include_backups(args.backups)
            if args.auto is not None:
                expiration.set_auto_run(args.auto)

        policy = expiration.get_policy()
        print(f"Expire chats older than: {policy.threshold_days} days")
        print(f"Include backups:         {'yes' if policy.include_backups else 'no'}")
        print(f"Run automatically:       {'yes' if policy.auto_run else 'no'}")
        return 0
    except PolicyStoreError as e:
        print(f"Error: {e}")
        return 1
    finally:
        services.close()


def run_version() -> None:
    """Print version information."""
    from chat_expiry import __version__

    print(f"chat-expiry {__version__}")


def _add_session_arguments(parser: argparse.ArgumentParser) -> None:
    session = parser.add_mutually_exclusive_group()
    session.add_argument(
        "--active-character",
        metavar="AVATAR",
        default=None,
        help="Avatar file of the character whose chat is open (protected)",
    )
    session.add_argument(
        "--active-group",
        metavar="ID",
        default=None,
        help="Id of the group whose chat is open (protected)",
    )
    parser.add_argument(
        "--active-chat",
        metavar="NAME",
        default=None,
        help="Name of the open chat (default: the owner's current chat)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )


def main() -> NoReturn:
    """Main entry point with subcommand support."""
    parser = argparse.ArgumentParser(
        prog="chat-expiry",
        description="Delete chats and chat backups older than a retention threshold",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version information",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    preview_parser = subparsers.add_parser(
        "preview",
        help="Show what would be expired (no changes)",
    )
    _add_session_arguments(preview_parser)

    expire_parser = subparsers.add_parser(
        "expire",
        help="Preview, confirm, and delete expired chats",
        description=(
            "Scans all characters and groups for chats older than the configured "
            "threshold, shows a preview, and deletes after confirmation. "
            "Deletion cannot be undone."
        ),
    )
    _add_session_arguments(expire_parser)
    expire_parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Skip confirmation prompt",
    )

    auto_parser = subparsers.add_parser(
        "auto",
        help="Run the silent startup pass if automatic expiration is enabled",
    )
    _add_session_arguments(auto_parser)
    auto_parser.add_argument(
        "--no-delay",
        action="store_true",
        help="Start immediately instead of after the startup delay",
    )

    settings_parser = subparsers.add_parser(
        "settings",
        help="Show or change the expiration policy",
    )
    settings_sub = settings_parser.add_subparsers(dest="settings_command")
    settings_sub.add_parser("show", help="Show the current policy")
    set_parser = settings_sub.add_parser("set", help="Change the policy")
    set_parser.add_argument(
        "--days",
        default=None,
        help="Expire chats older than this many days (minimum 1)",
    )
    set_parser.add_argument(
        "--backups",
        dest="backups",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Also expire chat backups",
    )
    set_parser.add_argument(
        "--auto",
        dest="auto",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Run automatically at startup",
    )

    args = parser.parse_args()

    if getattr(args, "active_chat", None) and not (args.active_character or args.active_group):
        parser.error("--active-chat requires --active-character or --active-group")

    if args.version:
        run_version()
        sys.exit(0)

    if args.command == "preview":
        sys.exit(run_preview(args))
    elif args.command == "expire":
        sys.exit(run_expire(args))
    elif args.command == "auto":
        sys.exit(run_auto(args))
    elif args.command == "settings":
        sys.exit(run_settings(args))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
