"""Secure structured logging for Chat Expiry.

Features:
    - Sensitive data masking (CSRF and maintenance tokens, passwords)
    - JSON structured logging format
    - Pass context integration ([pass=xxx][mode=yyy] prefixes)
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone

# Patterns to mask in logs
SENSITIVE_PATTERNS = [
    (re.compile(r'csrf[_-]?token["\']?\s*[:=]\s*["\']?[\w-]+', re.I), "csrf_token=***MASKED***"),
    (re.compile(r'"?token"?\s*[:=]\s*"?[\w-]{8,}"?', re.I), "token=***MASKED***"),
    (re.compile(r'password["\']?\s*[:=]\s*["\']?[^\s"\']+', re.I), "password=***MASKED***"),
    (re.compile(r"Basic [A-Za-z0-9+/=]{8,}"), "Basic ***MASKED***"),
]


def mask_secrets(message: str) -> str:
    """Apply all masking patterns to a message."""
    for pattern, replacement in SENSITIVE_PATTERNS:
        message = pattern.sub(replacement, message)
    return message


def _get_trace_context() -> tuple[str | None, str | None]:
    """Get pass context without importing at module level.

    Returns:
        Tuple of (pass_id, mode) or (None, None) outside a pass.
    """
    from chat_expiry.core.tracing import get_current_context

    ctx = get_current_context()
    if ctx:
        return ctx.pass_id, ctx.mode
    return None, None


class SecureFormatter(logging.Formatter):
    """Formatter that masks sensitive data and includes pass context."""

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        include_trace_context: bool = True,
    ) -> None:
        """Initialize the secure formatter.

        Args:
            fmt: Format string for log messages.
            datefmt: Date format string.
            include_trace_context: Whether to include [pass=xxx][mode=yyy] prefix.
        """
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.include_trace_context = include_trace_context

    def format(self, record: logging.LogRecord) -> str:
        """Format log record and mask sensitive data."""
        message = super().format(record)

        if self.include_trace_context:
            pass_id, mode = _get_trace_context()
            if pass_id:
                prefix = f"[pass={pass_id}]"
                if mode:
                    prefix += f"[mode={mode}]"
                prefix += " "
                # "2024-01-15 10:30:00 - logger - LEVEL - message"
                parts = message.split(" - ", 3)
                if len(parts) == 4:
                    message = f"{parts[0]} - {parts[1]} - {parts[2]} - {prefix}{parts[3]}"
                else:
                    message = prefix + message

        return mask_secrets(message)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging with pass context."""

    def __init__(self, include_trace_context: bool = True) -> None:
        super().__init__()
        self.include_trace_context = include_trace_context

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON with sensitive data masked."""
        log_data: dict[str, str | None] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": mask_secrets(record.getMessage()),
        }

        if self.include_trace_context:
            pass_id, mode = _get_trace_context()
            if pass_id:
                log_data["pass_id"] = pass_id
            if mode:
                log_data["mode"] = mode

        if record.exc_info:
            log_data["exception"] = mask_secrets(self.formatException(record.exc_info))

        # Mask fields, not the serialized document
        return json.dumps(log_data)


def configure_logging(
    level: str = "INFO",
    json_format: bool = False,
    mask_sensitive: bool = True,
    include_trace_context: bool = True,
) -> None:
    """Configure logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR).
        json_format: Use JSON format for structured logging.
        mask_sensitive: Mask sensitive data in logs.
        include_trace_context: Include [pass=xxx][mode=yyy] in log messages.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)

    if json_format:
        formatter: logging.Formatter = JSONFormatter(include_trace_context=include_trace_context)
    elif mask_sensitive:
        formatter = SecureFormatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            include_trace_context=include_trace_context,
        )
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)
