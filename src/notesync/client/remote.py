"""Remote note storage in a synchronized container folder.

This module provides:
- RemoteNoteStore: One "<id>.json" file per note in a cloud-backed directory
- RemoteStoreError: Raised on remote I/O failures
- get_default_container: Platform-designated container location

The container is not versioned: writes overwrite unconditionally and
conflict resolution happens in the sync engine.
"""

from __future__ import annotations

import asyncio
import contextlib
import functools
import json
import logging
import os
import platform
import uuid
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from notesync.core.types import Note, NoteDecodeError

logger = logging.getLogger(__name__)

NOTE_SUFFIX = ".json"
PROBE_PREFIX = ".notesync-probe-"
TEMP_PREFIX = ".tmp-"

ICLOUD_CONTAINER = (
    Path.home()
    / "Library"
    / "Mobile Documents"
    / "iCloud~com~hermitweekend~notes"
    / "Documents"
)

T = TypeVar("T")


class RemoteStoreError(Exception):
    """Remote container could not be read or written."""


def get_default_container() -> Path:
    """Get the default synchronized container directory.

    Uses the app's iCloud Drive container on macOS when present,
    otherwise ~/NoteSync/Notes.
    """
    if platform.system() == "Darwin" and ICLOUD_CONTAINER.parent.exists():
        return ICLOUD_CONTAINER
    return Path.home() / "NoteSync" / "Notes"


def is_note_file(path: Path) -> bool:
    """Check if a container entry is a note file (not a probe or temp file)."""
    return path.suffix == NOTE_SUFFIX and not path.name.startswith(".")


class RemoteNoteStore:
    """File-per-note store in a synchronized directory.

    Availability is never cached: the container may disappear between
    calls (sync disabled, connectivity lost, quota exceeded).
    """

    def __init__(self, container: Path) -> None:
        """Initialize the remote store.

        Args:
            container: Directory holding the note files.
        """
        self._container = Path(container).expanduser()

    @property
    def container(self) -> Path:
        """The container directory."""
        return self._container

    def note_path(self, note_id: str) -> Path:
        """Path of the file for a note id."""
        if not note_id or "/" in note_id or "\\" in note_id or note_id.startswith("."):
            raise ValueError(f"Invalid note id: {note_id!r}")
        return self._container / f"{note_id}{NOTE_SUFFIX}"

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(func, *args))

    # === Availability ===

    def _probe(self) -> bool:
        try:
            self._container.mkdir(parents=True, exist_ok=True)
            probe = self._container / f"{PROBE_PREFIX}{uuid.uuid4().hex}"
            probe.write_text("probe", encoding="utf-8")
            probe.unlink()
            return True
        except Exception as e:
            logger.warning("Remote container unavailable at %s: %s", self._container, e)
            return False

    async def is_available(self) -> bool:
        """Check that the container exists (creating it) and is writable.

        Never raises.
        """
        try:
            return await self._run(self._probe)
        except Exception as e:
            logger.warning("Remote availability check failed: %s", e)
            return False

    # === Notes ===

    def _write(self, note: Note) -> None:
        target = self.note_path(note.id)
        temp = self._container / f"{TEMP_PREFIX}{note.id}-{uuid.uuid4().hex[:8]}"
        try:
            temp.write_text(json.dumps(note.to_dict()), encoding="utf-8")
            os.replace(temp, target)
        except OSError as e:
            with contextlib.suppress(OSError):
                temp.unlink()
            raise RemoteStoreError(f"Failed to write note {note.id}: {e}") from e

    async def write_note(self, note: Note) -> None:
        """Store a note, overwriting any previous version.

        Raises:
            RemoteStoreError: If the write fails.
        """
        await self._run(self._write, note)
        logger.debug("Wrote remote note %s", note.id)

    def _read(self, note_id: str) -> Note | None:
        path = self.note_path(note_id)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise RemoteStoreError(f"Failed to read note {note_id}: {e}") from e

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise NoteDecodeError(f"Malformed JSON in {path.name}: {e}") from e
        return Note.from_dict(data)

    async def read_note(self, note_id: str) -> Note | None:
        """Read a note.

        Returns:
            The note, or None if no file exists for that id.

        Raises:
            RemoteStoreError: If the file exists but cannot be read.
            NoteDecodeError: If the file content is malformed.
        """
        return await self._run(self._read, note_id)

    def _delete(self, note_id: str) -> None:
        try:
            self.note_path(note_id).unlink(missing_ok=True)
        except OSError as e:
            raise RemoteStoreError(f"Failed to delete note {note_id}: {e}") from e

    async def delete_note(self, note_id: str) -> None:
        """Delete a note file. A missing file counts as deleted.

        Raises:
            RemoteStoreError: If the delete fails.
        """
        await self._run(self._delete, note_id)
        logger.debug("Deleted remote note %s", note_id)

    def _list_ids(self) -> list[str]:
        try:
            return sorted(p.stem for p in self._container.iterdir() if is_note_file(p))
        except OSError as e:
            raise RemoteStoreError(f"Failed to list {self._container}: {e}") from e

    async def list_note_ids(self) -> list[str]:
        """Enumerate the ids of all notes in the container.

        Raises:
            RemoteStoreError: If the container cannot be listed.
        """
        return await self._run(self._list_ids)
