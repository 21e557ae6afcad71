"""Shared types for notesync.

This module defines:
- Note: A single user note as stored locally and remotely
- SyncStatus: Per-note push lifecycle label
- Timestamp helpers used for conflict resolution
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any

UNTITLED_NOTE = "Untitled Note"


class NoteDecodeError(ValueError):
    """Stored note data is malformed."""


class SyncStatus(str, Enum):
    """Sync status of a single note.

    Absence of a status entry is read as NOT_SYNCED.
    """

    NOT_SYNCED = "not-synced"
    SYNCING = "syncing"
    SYNCED = "synced"
    FAILED = "failed"

    @classmethod
    def parse(cls, value: object) -> SyncStatus:
        """Parse a stored status value, defaulting to NOT_SYNCED."""
        try:
            return cls(value)
        except ValueError:
            return cls.NOT_SYNCED


def format_timestamp(moment: datetime) -> str:
    """Format a datetime as UTC ISO-8601 with milliseconds and a Z suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    moment = moment.astimezone(UTC)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into an aware datetime.

    Naive timestamps are read as UTC.

    Raises:
        NoteDecodeError: If the value is not a valid timestamp.
    """
    try:
        moment = datetime.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise NoteDecodeError(f"Invalid timestamp: {value!r}") from e
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment


def utc_now() -> str:
    """Current time as a note timestamp."""
    return format_timestamp(datetime.now(UTC))


def generate_note_id() -> str:
    """Generate a new opaque note identifier."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Note:
    """A user note.

    Attributes:
        id: Opaque unique identifier, immutable once created.
        title: Display title.
        content: Note body, opaque to synchronization.
        created_at: ISO-8601 creation timestamp, never mutated.
        updated_at: ISO-8601 timestamp of the last title/content change.
    """

    id: str
    title: str
    content: str
    created_at: str
    updated_at: str

    @classmethod
    def create(cls, title: str, content: str, *, now: str | None = None) -> Note:
        """Create a new note with a fresh id and timestamps."""
        timestamp = now or utc_now()
        return cls(
            id=generate_note_id(),
            title=title or UNTITLED_NOTE,
            content=content,
            created_at=timestamp,
            updated_at=timestamp,
        )

    @classmethod
    def from_companion(cls, title: str, content: str, timestamp: float) -> Note:
        """Create a note from a companion device message.

        Args:
            title: Note title from the companion.
            content: Note body from the companion.
            timestamp: Creation time in epoch seconds.

        Raises:
            ValueError: If the timestamp is not a representable time.
        """
        try:
            moment = format_timestamp(datetime.fromtimestamp(timestamp, UTC))
        except (OverflowError, OSError, ValueError) as e:
            raise ValueError(f"Timestamp out of range: {timestamp!r}") from e
        return cls.create(title, content, now=moment)

    @classmethod
    def from_dict(cls, data: Any) -> Note:
        """Decode a note from its JSON representation.

        Raises:
            NoteDecodeError: If a field is missing or malformed.
        """
        if not isinstance(data, dict):
            raise NoteDecodeError(f"Note must be an object, got {type(data).__name__}")

        fields = {}
        for key in ("id", "title", "content", "createdAt", "updatedAt"):
            value = data.get(key)
            if not isinstance(value, str):
                raise NoteDecodeError(f"Note field {key!r} missing or not a string")
            fields[key] = value

        if not fields["id"]:
            raise NoteDecodeError("Note id is empty")

        # Validate timestamps up front so comparisons never fail later
        created = parse_timestamp(fields["createdAt"])
        updated = parse_timestamp(fields["updatedAt"])
        if updated < created:
            raise NoteDecodeError(
                f"Note updatedAt {fields['updatedAt']} is before createdAt {fields['createdAt']}"
            )

        return cls(
            id=fields["id"],
            title=fields["title"],
            content=fields["content"],
            created_at=fields["createdAt"],
            updated_at=fields["updatedAt"],
        )

    def to_dict(self) -> dict[str, str]:
        """Encode the note with camelCase keys."""
        data = asdict(self)
        return {
            "id": data["id"],
            "title": data["title"],
            "content": data["content"],
            "createdAt": data["created_at"],
            "updatedAt": data["updated_at"],
        }

    @property
    def updated(self) -> datetime:
        """Parsed updated_at."""
        return parse_timestamp(self.updated_at)

    @property
    def created(self) -> datetime:
        """Parsed created_at."""
        return parse_timestamp(self.created_at)

    def with_changes(
        self,
        *,
        title: str | None = None,
        content: str | None = None,
        now: str | None = None,
    ) -> Note:
        """Return a copy with new title/content and a fresh updated_at.

        updated_at never goes before created_at.
        """
        timestamp = now or utc_now()
        if parse_timestamp(timestamp) < self.created:
            timestamp = self.created_at
        return replace(
            self,
            title=(title or UNTITLED_NOTE) if title is not None else self.title,
            content=content if content is not None else self.content,
            updated_at=timestamp,
        )
