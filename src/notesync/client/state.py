"""Local note storage.

This module provides:
- LocalNoteStore: SQLite-backed key-value store holding the note collection,
  the per-note sync status map, and the sync preference
- PersistenceError: Raised when local state cannot be read or written

Architecture:
    All values live in a single key-value table:

    - "notes"          → JSON array of notes
    - "noteSyncStatus" → JSON object mapping note id → status string
    - "syncEnabled"    → JSON boolean

    Public methods are coroutines. The SQLite work runs in the default
    executor while holding a re-entrant lock, so every read-modify-write
    cycle is atomic with respect to other callers.
"""

from __future__ import annotations

import asyncio
import functools
import json
import logging
import sqlite3
import threading
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

from notesync.core.types import Note, NoteDecodeError, SyncStatus

if TYPE_CHECKING:
    from notesync.client.sync.types import MergeOutcome

logger = logging.getLogger(__name__)

NOTES_KEY = "notes"
STATUS_KEY = "noteSyncStatus"
SYNC_ENABLED_KEY = "syncEnabled"

T = TypeVar("T")


class PersistenceError(Exception):
    """Local state could not be read or written.

    After a failed write the stored state is unknown; re-read before retrying.
    """


class NoteNotFoundError(KeyError):
    """No local note with the requested id."""


class LocalNoteStore:
    """SQLite-based local store for notes and sync status."""

    def __init__(self, db_path: Path) -> None:
        """Initialize local store database.

        Args:
            db_path: Path to SQLite database file.
        """
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        # Lock for thread-safe database access
        self._lock = threading.RLock()

        self._conn = sqlite3.connect(
            str(self._db_path),
            check_same_thread=False,
            isolation_level=None,  # Autocommit mode
        )
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._create_tables()

    def _create_tables(self) -> None:
        """Create database tables if they don't exist."""
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value TEXT
            );
        """)

    @property
    def db_path(self) -> Path:
        """Path of the database file."""
        return self._db_path

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        """Run a blocking store operation in the executor under the lock."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, functools.partial(self._locked, func, *args)
        )

    def _locked(self, func: Callable[..., T], *args: Any) -> T:
        with self._lock:
            try:
                return func(*args)
            except sqlite3.Error as e:
                raise PersistenceError(f"Local store failure: {e}") from e
            except OSError as e:
                raise PersistenceError(f"Local store I/O failure: {e}") from e

    # === Raw key-value access ===

    def _get_value(self, key: str) -> Any:
        row = self._conn.execute(
            "SELECT value FROM kv WHERE key = ?", (key,)
        ).fetchone()
        if row is None or row["value"] is None:
            return None
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Malformed JSON under key {key!r}: {e}") from e

    def _set_value(self, key: str, value: Any) -> None:
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Cannot serialize value for {key!r}: {e}") from e
        self._conn.execute(
            "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", (key, payload)
        )

    # === Notes ===

    def _read_notes(self) -> tuple[list[Note], list[Any]]:
        """Read the note collection.

        Returns:
            Decoded notes, and raw entries that failed to decode.
        """
        raw = self._get_value(NOTES_KEY)
        if raw is None:
            return [], []
        if not isinstance(raw, list):
            raise PersistenceError(f"Expected a list under {NOTES_KEY!r}")

        notes: list[Note] = []
        rejected: list[Any] = []
        for entry in raw:
            try:
                notes.append(Note.from_dict(entry))
            except NoteDecodeError as e:
                logger.warning("Skipping malformed local note: %s", e)
                rejected.append(entry)
        return notes, rejected

    def _write_notes(self, notes: Iterable[Note], rejected: Iterable[Any] = ()) -> None:
        self._set_value(NOTES_KEY, [n.to_dict() for n in notes] + list(rejected))

    def _modify(
        self, func: Callable[[list[Note]], list[Note] | None]
    ) -> list[Note] | None:
        notes, rejected = self._read_notes()
        updated = func(list(notes))
        if updated is None:
            return None
        self._write_notes(updated, rejected)
        return updated

    async def list_notes(self) -> list[Note]:
        """List all notes in stored order.

        Raises:
            PersistenceError: If the collection cannot be read.
        """
        notes, _ = await self._run(self._read_notes)
        return notes

    async def save_notes(self, notes: Iterable[Note]) -> None:
        """Replace the whole note collection.

        Raises:
            PersistenceError: If the write fails.
        """
        await self._run(self._write_notes, list(notes))

    async def modify_notes(
        self, func: Callable[[list[Note]], list[Note] | None]
    ) -> list[Note] | None:
        """Atomically read, transform, and write the note collection.

        Args:
            func: Receives the latest notes. Returns the new collection,
                or None to leave storage untouched.

        Returns:
            The written collection, or None if nothing was written.
        """
        return await self._run(self._modify, func)

    def _merge(
        self, merge: Callable[[list[Note]], MergeOutcome], status: SyncStatus
    ) -> MergeOutcome:
        notes, rejected = self._read_notes()
        outcome = merge(list(notes))
        if outcome.changed:
            self._write_notes(outcome.notes, rejected)
            self._set_statuses([*outcome.added, *outcome.updated], status)
        return outcome

    async def merge_notes(
        self,
        merge: Callable[[list[Note]], MergeOutcome],
        status: SyncStatus = SyncStatus.SYNCED,
    ) -> MergeOutcome:
        """Apply a merge to the latest collection and label the merged notes.

        The collection write and the status write happen under one lock
        hold, so an edit can never land between them. Nothing is written
        when the merge changes nothing.

        Returns:
            The merge outcome.
        """
        return await self._run(self._merge, merge, status)

    async def get_note(self, note_id: str) -> Note | None:
        """Get a note by id."""
        for note in await self.list_notes():
            if note.id == note_id:
                return note
        return None

    async def add_note(self, note: Note) -> Note:
        """Append a new note.

        Raises:
            ValueError: If a note with the same id already exists.
        """

        def _append(notes: list[Note]) -> list[Note]:
            if any(n.id == note.id for n in notes):
                raise ValueError(f"Note {note.id} already exists")
            return [*notes, note]

        await self.modify_notes(_append)
        return note

    def _update_note(
        self, note_id: str, title: str | None, content: str | None
    ) -> Note:
        notes, rejected = self._read_notes()
        for index, note in enumerate(notes):
            if note.id == note_id:
                changed = note.with_changes(title=title, content=content)
                notes[index] = changed
                break
        else:
            raise NoteNotFoundError(note_id)

        self._write_notes(notes, rejected)
        # A local edit always desyncs the note
        self._set_status(note_id, SyncStatus.NOT_SYNCED)
        return changed

    async def update_note(
        self,
        note_id: str,
        *,
        title: str | None = None,
        content: str | None = None,
    ) -> Note:
        """Edit a note's title and/or content.

        Bumps updated_at and resets the note's sync status to NOT_SYNCED.

        Raises:
            NoteNotFoundError: If the note does not exist.
        """
        return await self._run(self._update_note, note_id, title, content)

    def _delete_note(self, note_id: str) -> bool:
        notes, rejected = self._read_notes()
        remaining = [n for n in notes if n.id != note_id]
        if len(remaining) == len(notes):
            return False
        self._write_notes(remaining, rejected)
        self._remove_status(note_id)
        return True

    async def delete_note(self, note_id: str) -> bool:
        """Delete a note and its sync status entry.

        Returns:
            True if a note was removed.
        """
        return await self._run(self._delete_note, note_id)

    # === Sync status ===

    def _read_statuses(self) -> dict[str, SyncStatus]:
        raw = self._get_value(STATUS_KEY)
        if not isinstance(raw, dict):
            return {}
        return {str(k): SyncStatus.parse(v) for k, v in raw.items()}

    def _set_status(self, note_id: str, status: SyncStatus) -> None:
        statuses = self._read_statuses()
        statuses[note_id] = status
        self._set_value(STATUS_KEY, {k: v.value for k, v in statuses.items()})

    def _set_statuses(self, note_ids: list[str], status: SyncStatus) -> None:
        statuses = self._read_statuses()
        for note_id in note_ids:
            statuses[note_id] = status
        self._set_value(STATUS_KEY, {k: v.value for k, v in statuses.items()})

    def _set_status_if_current(
        self, note_id: str, status: SyncStatus, updated_at: str
    ) -> bool:
        notes, _ = self._read_notes()
        current = next((n for n in notes if n.id == note_id), None)
        if current is None:
            self._remove_status(note_id)
            return False
        if current.updated_at != updated_at:
            return False
        self._set_status(note_id, status)
        return True

    def _remove_status(self, note_id: str) -> None:
        statuses = self._read_statuses()
        if statuses.pop(note_id, None) is not None:
            self._set_value(STATUS_KEY, {k: v.value for k, v in statuses.items()})

    async def get_statuses(self) -> dict[str, SyncStatus]:
        """Get the full status map."""
        return await self._run(self._read_statuses)

    async def get_status(self, note_id: str) -> SyncStatus:
        """Get a note's sync status, NOT_SYNCED if absent."""
        statuses = await self.get_statuses()
        return statuses.get(note_id, SyncStatus.NOT_SYNCED)

    async def set_status(self, note_id: str, status: SyncStatus) -> None:
        """Set a note's sync status."""
        await self._run(self._set_status, note_id, status)

    async def set_statuses(self, note_ids: Iterable[str], status: SyncStatus) -> None:
        """Set the same status on several notes in one write."""
        await self._run(self._set_statuses, list(note_ids), status)

    async def set_status_if_current(
        self, note_id: str, status: SyncStatus, updated_at: str
    ) -> bool:
        """Set a note's status only if the stored note is still at updated_at.

        A deleted note has its status entry dropped instead.

        Returns:
            True if the status was written.
        """
        return await self._run(self._set_status_if_current, note_id, status, updated_at)

    async def remove_status(self, note_id: str) -> None:
        """Remove a note's status entry."""
        await self._run(self._remove_status, note_id)

    # === Preferences ===

    async def is_sync_enabled(self) -> bool:
        """Whether the user enabled synchronization."""
        value = await self._run(self._get_value, SYNC_ENABLED_KEY)
        return value is True

    async def set_sync_enabled(self, enabled: bool) -> None:
        """Persist the sync preference."""
        await self._run(self._set_value, SYNC_ENABLED_KEY, bool(enabled))
