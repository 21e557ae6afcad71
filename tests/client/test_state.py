"""Tests for the local note store.

The store keeps three values in one key-value table:
- "notes": the note collection
- "noteSyncStatus": note id → status
- "syncEnabled": the sync preference
"""

from __future__ import annotations

import asyncio
import json
import sqlite3
from collections.abc import Iterator
from pathlib import Path

import pytest

from notesync.client.state import (
    NOTES_KEY,
    STATUS_KEY,
    LocalNoteStore,
    NoteNotFoundError,
    PersistenceError,
)
from notesync.client.sync.types import MergeOutcome
from notesync.core.types import Note, SyncStatus


def make_note(note_id: str, updated_at: str = "2024-01-01T00:00:00.000Z") -> Note:
    return Note(
        id=note_id,
        title=f"Note {note_id}",
        content="body",
        created_at="2024-01-01T00:00:00.000Z",
        updated_at=updated_at,
    )


@pytest.fixture
def store(tmp_path: Path) -> Iterator[LocalNoteStore]:
    """Create a LocalNoteStore instance."""
    s = LocalNoteStore(tmp_path / "notes.db")
    yield s
    s.close()


def write_raw(db_path: Path, key: str, value: str) -> None:
    conn = sqlite3.connect(str(db_path), isolation_level=None)
    conn.execute("INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", (key, value))
    conn.close()


class TestStoreCreation:
    """Tests for LocalNoteStore initialization."""

    def test_creates_database(self, tmp_path: Path) -> None:
        """Should create database file."""
        db_path = tmp_path / "notes.db"
        store = LocalNoteStore(db_path)

        assert db_path.exists()
        store.close()

    def test_creates_parent_dirs(self, tmp_path: Path) -> None:
        """Should create parent directories."""
        db_path = tmp_path / "subdir" / "nested" / "notes.db"
        store = LocalNoteStore(db_path)

        assert db_path.exists()
        store.close()

    @pytest.mark.asyncio
    async def test_reopens_existing_db(self, tmp_path: Path) -> None:
        """Should reopen existing database with data preserved."""
        db_path = tmp_path / "notes.db"

        store1 = LocalNoteStore(db_path)
        await store1.add_note(make_note("a"))
        await store1.set_sync_enabled(True)
        store1.close()

        store2 = LocalNoteStore(db_path)
        assert [n.id for n in await store2.list_notes()] == ["a"]
        assert await store2.is_sync_enabled() is True
        store2.close()


class TestNotes:
    """Tests for note collection operations."""

    @pytest.mark.asyncio
    async def test_empty_initially(self, store: LocalNoteStore) -> None:
        """A new store should hold no notes."""
        assert await store.list_notes() == []

    @pytest.mark.asyncio
    async def test_add_and_get(self, store: LocalNoteStore) -> None:
        """add_note should append and get_note should find it."""
        note = make_note("a")
        await store.add_note(note)

        assert await store.get_note("a") == note
        assert await store.get_note("missing") is None

    @pytest.mark.asyncio
    async def test_add_preserves_order(self, store: LocalNoteStore) -> None:
        """Notes should keep insertion order."""
        for note_id in ("c", "a", "b"):
            await store.add_note(make_note(note_id))

        assert [n.id for n in await store.list_notes()] == ["c", "a", "b"]

    @pytest.mark.asyncio
    async def test_add_duplicate_id(self, store: LocalNoteStore) -> None:
        """Adding an existing id should fail without writing."""
        await store.add_note(make_note("a"))
        with pytest.raises(ValueError):
            await store.add_note(make_note("a"))

        assert len(await store.list_notes()) == 1

    @pytest.mark.asyncio
    async def test_save_notes_replaces(self, store: LocalNoteStore) -> None:
        """save_notes should overwrite the whole collection."""
        await store.add_note(make_note("a"))
        await store.save_notes([make_note("b"), make_note("c")])

        assert [n.id for n in await store.list_notes()] == ["b", "c"]

    @pytest.mark.asyncio
    async def test_stored_as_camel_case_json(self, store: LocalNoteStore) -> None:
        """The collection should be stored as a JSON array under 'notes'."""
        await store.add_note(make_note("a"))
        store.close()

        conn = sqlite3.connect(str(store.db_path))
        (value,) = conn.execute("SELECT value FROM kv WHERE key = ?", (NOTES_KEY,)).fetchone()
        conn.close()

        assert json.loads(value) == [make_note("a").to_dict()]

    @pytest.mark.asyncio
    async def test_delete_note(self, store: LocalNoteStore) -> None:
        """delete_note should remove the note and its status."""
        await store.add_note(make_note("a"))
        await store.set_status("a", SyncStatus.SYNCED)

        assert await store.delete_note("a") is True
        assert await store.list_notes() == []
        assert "a" not in await store.get_statuses()

    @pytest.mark.asyncio
    async def test_delete_missing(self, store: LocalNoteStore) -> None:
        """Deleting an unknown id should return False."""
        assert await store.delete_note("missing") is False


class TestUpdateNote:
    """Tests for editing notes."""

    @pytest.mark.asyncio
    async def test_update_content(self, store: LocalNoteStore) -> None:
        """Should change content and bump updated_at."""
        await store.add_note(make_note("a"))

        updated = await store.update_note("a", content="new body")

        assert updated.content == "new body"
        assert updated.title == "Note a"
        assert updated.updated > make_note("a").updated
        assert await store.get_note("a") == updated

    @pytest.mark.asyncio
    async def test_update_resets_status(self, store: LocalNoteStore) -> None:
        """A local edit should mark the note not-synced."""
        await store.add_note(make_note("a"))
        await store.set_status("a", SyncStatus.SYNCED)

        await store.update_note("a", title="Renamed")

        assert await store.get_status("a") is SyncStatus.NOT_SYNCED

    @pytest.mark.asyncio
    async def test_update_missing(self, store: LocalNoteStore) -> None:
        """Should raise NoteNotFoundError for an unknown id."""
        with pytest.raises(NoteNotFoundError):
            await store.update_note("missing", title="x")


class TestModifyNotes:
    """Tests for atomic read-modify-write."""

    @pytest.mark.asyncio
    async def test_none_skips_write(self, store: LocalNoteStore) -> None:
        """Returning None should leave storage untouched."""
        await store.add_note(make_note("a"))

        result = await store.modify_notes(lambda notes: None)

        assert result is None
        assert [n.id for n in await store.list_notes()] == ["a"]

    @pytest.mark.asyncio
    async def test_sees_latest_collection(self, store: LocalNoteStore) -> None:
        """The function should receive the current notes."""
        await store.add_note(make_note("a"))
        seen: list[str] = []

        def _capture(notes: list[Note]) -> list[Note]:
            seen.extend(n.id for n in notes)
            return [*notes, make_note("b")]

        await store.modify_notes(_capture)

        assert seen == ["a"]
        assert [n.id for n in await store.list_notes()] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_concurrent_adds_not_lost(self, store: LocalNoteStore) -> None:
        """Concurrent adds should all land."""
        await asyncio.gather(*(store.add_note(make_note(str(i))) for i in range(20)))

        assert len(await store.list_notes()) == 20


class TestMergeNotes:
    """Tests for writing a merge and its statuses together."""

    @pytest.mark.asyncio
    async def test_writes_notes_and_statuses(self, store: LocalNoteStore) -> None:
        """Added and updated notes should be stored and labelled in one call."""
        await store.add_note(make_note("a"))
        await store.add_note(make_note("b"))
        newer = make_note("b", "2024-01-02T00:00:00.000Z")

        outcome = await store.merge_notes(
            lambda notes: MergeOutcome(
                notes=[notes[0], newer, make_note("c")], added=["c"], updated=["b"]
            )
        )

        assert outcome.changed
        assert await store.list_notes() == [make_note("a"), newer, make_note("c")]
        assert await store.get_statuses() == {
            "b": SyncStatus.SYNCED,
            "c": SyncStatus.SYNCED,
        }

    @pytest.mark.asyncio
    async def test_unchanged_skips_write(self, store: LocalNoteStore) -> None:
        """A merge that changes nothing should not touch storage."""
        await store.add_note(make_note("a"))

        outcome = await store.merge_notes(lambda notes: MergeOutcome(notes=notes))

        assert not outcome.changed
        assert await store.get_statuses() == {}


class TestMalformedData:
    """Tests for malformed stored data."""

    @pytest.mark.asyncio
    async def test_malformed_entry_skipped_and_preserved(self, tmp_path: Path) -> None:
        """A bad entry should be skipped on read and kept on write."""
        db_path = tmp_path / "notes.db"
        LocalNoteStore(db_path).close()
        write_raw(db_path, NOTES_KEY, json.dumps([make_note("a").to_dict(), {"id": 7}]))

        store = LocalNoteStore(db_path)
        assert [n.id for n in await store.list_notes()] == ["a"]

        await store.add_note(make_note("b"))
        store.close()

        conn = sqlite3.connect(str(db_path))
        (value,) = conn.execute("SELECT value FROM kv WHERE key = ?", (NOTES_KEY,)).fetchone()
        conn.close()
        assert {"id": 7} in json.loads(value)

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self, tmp_path: Path) -> None:
        """Unparseable JSON should raise PersistenceError."""
        db_path = tmp_path / "notes.db"
        LocalNoteStore(db_path).close()
        write_raw(db_path, NOTES_KEY, "{not json")

        store = LocalNoteStore(db_path)
        with pytest.raises(PersistenceError):
            await store.list_notes()
        store.close()

    @pytest.mark.asyncio
    async def test_unknown_status_reads_not_synced(self, tmp_path: Path) -> None:
        """Unknown status labels should read as NOT_SYNCED."""
        db_path = tmp_path / "notes.db"
        LocalNoteStore(db_path).close()
        write_raw(db_path, STATUS_KEY, json.dumps({"a": "weird"}))

        store = LocalNoteStore(db_path)
        assert await store.get_status("a") is SyncStatus.NOT_SYNCED
        store.close()

    @pytest.mark.asyncio
    async def test_closed_store_raises(self, tmp_path: Path) -> None:
        """Operations on a closed store should raise PersistenceError."""
        store = LocalNoteStore(tmp_path / "notes.db")
        store.close()

        with pytest.raises(PersistenceError):
            await store.list_notes()


class TestStatusAndPreferences:
    """Tests for the status map and sync preference."""

    @pytest.mark.asyncio
    async def test_status_defaults_to_not_synced(self, store: LocalNoteStore) -> None:
        """Absent entries should read as NOT_SYNCED."""
        assert await store.get_status("a") is SyncStatus.NOT_SYNCED

    @pytest.mark.asyncio
    async def test_set_statuses(self, store: LocalNoteStore) -> None:
        """set_statuses should update several notes at once."""
        await store.set_status("a", SyncStatus.FAILED)
        await store.set_statuses(["b", "c"], SyncStatus.SYNCED)

        assert await store.get_statuses() == {
            "a": SyncStatus.FAILED,
            "b": SyncStatus.SYNCED,
            "c": SyncStatus.SYNCED,
        }

    @pytest.mark.asyncio
    async def test_set_status_if_current(self, store: LocalNoteStore) -> None:
        """The status should only be written for the expected version."""
        await store.add_note(make_note("a"))

        assert await store.set_status_if_current(
            "a", SyncStatus.SYNCED, "2024-01-02T00:00:00.000Z"
        ) is False
        assert await store.get_status("a") is SyncStatus.NOT_SYNCED

        assert await store.set_status_if_current(
            "a", SyncStatus.SYNCED, "2024-01-01T00:00:00.000Z"
        ) is True
        assert await store.get_status("a") is SyncStatus.SYNCED

    @pytest.mark.asyncio
    async def test_set_status_if_current_deleted(self, store: LocalNoteStore) -> None:
        """A note that no longer exists should lose its status entry."""
        await store.set_status("gone", SyncStatus.SYNCING)

        assert await store.set_status_if_current("gone", SyncStatus.SYNCED, "t") is False
        assert await store.get_statuses() == {}

    @pytest.mark.asyncio
    async def test_remove_status(self, store: LocalNoteStore) -> None:
        """remove_status should drop the entry."""
        await store.set_status("a", SyncStatus.SYNCED)
        await store.remove_status("a")

        assert await store.get_statuses() == {}

    @pytest.mark.asyncio
    async def test_concurrent_status_updates(self, store: LocalNoteStore) -> None:
        """Concurrent updates to different notes should not overwrite each other."""
        await asyncio.gather(
            *(store.set_status(str(i), SyncStatus.SYNCED) for i in range(20))
        )

        assert len(await store.get_statuses()) == 20

    @pytest.mark.asyncio
    async def test_sync_disabled_by_default(self, store: LocalNoteStore) -> None:
        """Sync should be off until enabled."""
        assert await store.is_sync_enabled() is False

    @pytest.mark.asyncio
    async def test_set_sync_enabled(self, store: LocalNoteStore) -> None:
        """The preference should persist."""
        await store.set_sync_enabled(True)
        assert await store.is_sync_enabled() is True

        await store.set_sync_enabled(False)
        assert await store.is_sync_enabled() is False
