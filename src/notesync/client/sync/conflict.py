"""Conflict resolution for pulled notes.

Implements note-level last-writer-wins on updated_at:
1. A remote note unknown locally is appended
2. A remote note replaces the local copy only if strictly newer
3. Ties keep the local copy

Timestamps come from the writing device's wall clock. Two edits in the
same clock tick, or under clock skew, can silently lose one side.
"""

from __future__ import annotations

from collections.abc import Iterable

from notesync.client.sync.types import MergeOutcome
from notesync.core.types import Note


def should_replace(local: Note, remote: Note) -> bool:
    """Check if the remote copy wins over the local one."""
    return remote.updated > local.updated


def merge_remote_notes(local_notes: Iterable[Note], remote_notes: Iterable[Note]) -> MergeOutcome:
    """Merge remote notes into a local collection.

    Local order is preserved; new notes are appended in remote order.

    Args:
        local_notes: Current local collection.
        remote_notes: Notes read from the remote store.

    Returns:
        MergeOutcome with the reconciled collection and changed ids.
    """
    merged = list(local_notes)
    index = {note.id: i for i, note in enumerate(merged)}
    outcome = MergeOutcome(notes=merged)

    for remote in remote_notes:
        position = index.get(remote.id)
        if position is None:
            index[remote.id] = len(merged)
            merged.append(remote)
            outcome.added.append(remote.id)
        elif should_replace(merged[position], remote):
            merged[position] = remote
            outcome.updated.append(remote.id)

    return outcome
