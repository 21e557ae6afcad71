"""Per-note sync status tracking.

This module provides:
- SyncStatusTracker: Status map layered on the local store's reserved
  "noteSyncStatus" key

State machine (per note, independent across notes):

    not-synced ──push──► syncing ──ok──► synced
                            │
                            └──error──► failed ──push──► syncing
    synced ──local edit──► not-synced

There is no terminal state.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from notesync.core.types import SyncStatus

if TYPE_CHECKING:
    from notesync.client.state import LocalNoteStore

logger = logging.getLogger(__name__)


class SyncStatusTracker:
    """Maps note id to SyncStatus, defaulting to NOT_SYNCED."""

    def __init__(self, store: LocalNoteStore) -> None:
        self._store = store

    async def get(self, note_id: str) -> SyncStatus:
        """Get a note's status."""
        return await self._store.get_status(note_id)

    async def update(self, note_id: str, status: SyncStatus) -> None:
        """Overwrite a note's status."""
        await self._store.set_status(note_id, status)
        logger.debug("Status %s -> %s", note_id, status.value)

    async def update_if_current(
        self, note_id: str, status: SyncStatus, updated_at: str
    ) -> bool:
        """Set a note's status unless it was edited since updated_at."""
        written = await self._store.set_status_if_current(note_id, status, updated_at)
        if written:
            logger.debug("Status %s -> %s", note_id, status.value)
        return written

    async def all(self) -> dict[str, SyncStatus]:
        """Get every recorded status."""
        return await self._store.get_statuses()

    async def forget(self, note_id: str) -> None:
        """Drop a note's status entry."""
        await self._store.remove_status(note_id)
