"""Data models for Chat Expiry."""

from __future__ import annotations

import math
import re
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from chat_expiry.core.time_window import backup_capture_instant, parse_timestamp

# Timestamp exactly as delivered by the host server; parsed lazily
RawTimestamp = str | int | float | datetime | None

CHAT_FILE_EXTENSION = ".jsonl"
DEFAULT_THRESHOLD_DAYS = 90

_BACKUP_CHAT_NAME_PATTERN = re.compile(r"^chat_(.+?)_\d{8}-\d{6}\.jsonl$")
# Leading digits win, so "30 days" reads as 30
_LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)")


def strip_chat_extension(file_id: str) -> str:
    """Strip the chat storage extension from a file reference."""
    return file_id.replace(CHAT_FILE_EXTENSION, "", 1)


class OwnerKind(str, Enum):
    """Kind of owner a conversation belongs to."""

    CHARACTER = "character"
    GROUP = "group"


class Owner(BaseModel):
    """A character or group loaded from the host server."""

    model_config = ConfigDict(frozen=True)

    kind: OwnerKind
    name: str = Field(default="", description="Human-readable name")
    ref: str | None = Field(
        default=None,
        description="Stable identity: avatar file for characters, id for groups",
    )
    index: int = Field(..., ge=0, description="Position within the loaded collection")
    current_chat: str | None = Field(
        default=None, description="Chat the host currently has open for this owner"
    )

    @property
    def is_group(self) -> bool:
        return self.kind is OwnerKind.GROUP


class Roster(BaseModel):
    """Characters and groups loaded for one expiration pass."""

    model_config = ConfigDict(frozen=True)

    characters: list[Owner] = Field(default_factory=list)
    groups: list[Owner] = Field(default_factory=list)

    def find_character(self, avatar: str) -> Owner | None:
        for owner in self.characters:
            if owner.ref == avatar:
                return owner
        return None

    def find_group(self, group_id: str) -> Owner | None:
        for owner in self.groups:
            if owner.ref == group_id:
                return owner
        return None


class ConversationCandidate(BaseModel):
    """A chat file owned by a character or group."""

    model_config = ConfigDict(frozen=True)

    owner: Owner
    file_id: str = Field(..., description="Chat file reference, unique per owner")
    last_activity: RawTimestamp = Field(
        default=None, description="Timestamp of the last message, as reported"
    )

    @property
    def owner_kind(self) -> OwnerKind:
        return self.owner.kind

    @property
    def chat_name(self) -> str:
        return strip_chat_extension(self.file_id)

    @property
    def display_id(self) -> str:
        return f"{self.owner.name}: {self.file_id}"

    @property
    def last_activity_at(self) -> datetime | None:
        return parse_timestamp(self.last_activity)


class BackupCandidate(BaseModel):
    """A chat backup file managed by the maintenance subsystem.

    The file name encodes a logical chat name and a capture instant
    (``chat_{name}_{YYYYMMDD}-{HHmmss}.jsonl``). The content hash is the
    identifier used for deletion.
    """

    model_config = ConfigDict(frozen=True)

    file_name: str
    content_hash: str
    mtime: RawTimestamp = None

    @property
    def capture_instant(self) -> datetime | None:
        return backup_capture_instant(self.file_name)

    @property
    def age_instant(self) -> datetime | None:
        """Capture instant from the file name, falling back to mtime."""
        captured = self.capture_instant
        if captured is not None:
            return captured
        return parse_timestamp(self.mtime)

    @property
    def chat_name(self) -> str | None:
        match = _BACKUP_CHAT_NAME_PATTERN.match(self.file_name)
        return match.group(1) if match else None


class ExpirationPolicy(BaseModel):
    """User-facing expiration settings."""

    model_config = ConfigDict(frozen=True)

    threshold_days: int = Field(
        default=DEFAULT_THRESHOLD_DAYS,
        ge=1,
        description="Chats older than this many days are expired",
    )
    include_backups: bool = Field(
        default=False,
        description="Also expire chat backups",
    )
    auto_run: bool = Field(
        default=False,
        description="Run silently once at startup",
    )

    @staticmethod
    def coerce_threshold(value: Any) -> int:
        """Normalize user input for the threshold.

        Non-numeric or zero input falls back to the default; anything else
        is clamped to a minimum of one day.
        """
        if value is None or isinstance(value, bool):
            return DEFAULT_THRESHOLD_DAYS
        if isinstance(value, (int, float)):
            if not math.isfinite(value):
                return DEFAULT_THRESHOLD_DAYS
            days = int(value)
        else:
            match = _LEADING_INT_PATTERN.match(str(value))
            if not match:
                return DEFAULT_THRESHOLD_DAYS
            days = int(match.group(1))
        if days == 0:
            return DEFAULT_THRESHOLD_DAYS
        return max(1, days)

    @field_validator("threshold_days", mode="before")
    @classmethod
    def _coerce_threshold_days(cls, value: Any) -> int:
        return cls.coerce_threshold(value)


class SessionContext(BaseModel):
    """The conversation currently open in the user's session."""

    model_config = ConfigDict(frozen=True)

    active_owner_index: int | None = Field(
        default=None, description="Index of the active character in the roster"
    )
    active_group_id: str | None = Field(default=None, description="Id of the active group")
    active_file_id: str | None = Field(
        default=None, description="Active chat name, without extension"
    )

    @classmethod
    def for_character(
        cls, roster: Roster, avatar: str, chat: str | None = None
    ) -> SessionContext:
        """Build a session for an open character chat.

        Falls back to the character's current chat when ``chat`` is omitted.
        An unknown avatar yields an empty session.
        """
        owner = roster.find_character(avatar)
        if owner is None:
            return cls()
        active_chat = chat if chat is not None else owner.current_chat
        return cls(
            active_owner_index=owner.index,
            active_file_id=strip_chat_extension(active_chat) if active_chat else None,
        )

    @classmethod
    def for_group(cls, roster: Roster, group_id: str, chat: str | None = None) -> SessionContext:
        """Build a session for an open group chat."""
        owner = roster.find_group(group_id)
        active_chat = chat if chat is not None else (owner.current_chat if owner else None)
        return cls(
            active_group_id=group_id,
            active_file_id=strip_chat_extension(active_chat) if active_chat else None,
        )


class ExpirationOutcome(BaseModel):
    """Result of a deletion run."""

    model_config = ConfigDict(frozen=True)

    chat_successes: int = Field(default=0, ge=0)
    chat_failures: int = Field(default=0, ge=0)
    failed_chats: list[str] = Field(default_factory=list)
    backup_successes: int = Field(default=0, ge=0)
    backup_failures: int = Field(default=0, ge=0)

    @property
    def total_successes(self) -> int:
        return self.chat_successes + self.backup_successes

    @property
    def total_failures(self) -> int:
        return self.chat_failures + self.backup_failures


class PreviewSummary(BaseModel):
    """Structured description of what a pass is about to delete."""

    model_config = ConfigDict(frozen=True)

    threshold_days: int
    include_backups: bool
    chat_count: int = 0
    character_chat_count: int = 0
    group_chat_count: int = 0
    chats_by_owner: list[tuple[str, int]] = Field(default_factory=list)
    backup_count: int = 0
    backups_by_chat: list[tuple[str, int]] = Field(default_factory=list)
