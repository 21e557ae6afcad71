"""Sync engine coordinating note synchronization.

This module provides:
- SyncEngine: Push (local → remote) and pull (remote → local) of notes

Every public operation resolves to a result and never raises. Callers
observe outcomes through return values, the status map, and bus events.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from notesync.client.events import NoteSynced, SyncCompleted, SyncFailed, SyncStarted
from notesync.client.remote import RemoteStoreError
from notesync.client.state import PersistenceError
from notesync.client.status import SyncStatusTracker
from notesync.client.sync.conflict import merge_remote_notes
from notesync.client.sync.types import (
    BatchPushResult,
    PullResult,
    SyncResult,
)
from notesync.core.types import Note, NoteDecodeError, SyncStatus

if TYPE_CHECKING:
    from notesync.client.events import EventBus
    from notesync.client.remote import RemoteNoteStore
    from notesync.client.state import LocalNoteStore

logger = logging.getLogger(__name__)

REMOTE_UNAVAILABLE = "remote store unavailable"
SYNC_DISABLED = "sync disabled"


class SyncEngine:
    """Coordinates note synchronization between local and remote stores.

    At most one pull runs at a time. Concurrent pull() calls join the
    running pull; remote change notifications arriving during a pull
    schedule at most one follow-up pull.
    """

    def __init__(
        self,
        local: LocalNoteStore,
        remote: RemoteNoteStore,
        events: EventBus,
        tracker: SyncStatusTracker | None = None,
    ) -> None:
        """Initialize the sync engine.

        Args:
            local: Local note store (authoritative collection).
            remote: Remote note store.
            events: Bus receiving lifecycle events.
            tracker: Status tracker (defaults to one over the local store).
        """
        self._local = local
        self._remote = remote
        self._events = events
        self._tracker = tracker or SyncStatusTracker(local)

        self._pull_task: asyncio.Task[PullResult] | None = None
        self._pull_again = False

    @property
    def tracker(self) -> SyncStatusTracker:
        """The status tracker."""
        return self._tracker

    @property
    def events(self) -> EventBus:
        """The event bus."""
        return self._events

    @property
    def pull_in_flight(self) -> bool:
        """Check if a pull is currently running."""
        return self._pull_task is not None and not self._pull_task.done()

    async def _can_push(self) -> bool:
        """Check the push preconditions: sync enabled and remote available."""
        try:
            enabled = await self._local.is_sync_enabled()
        except PersistenceError as e:
            logger.error(f"Cannot read sync preference: {e}")
            return False
        if not enabled:
            logger.debug("Sync disabled, not pushing")
            return False
        return await self._remote.is_available()

    # === Push ===

    async def push(self, note: Note) -> bool:
        """Push a single note to the remote store.

        The latest stored copy of the note is what gets written. Status
        goes SYNCING, then SYNCED or FAILED. SYNCED is only recorded if
        the note was not edited while the write was in flight; otherwise
        it stays NOT_SYNCED for the next push. NoteSynced is emitted on
        success. If sync is disabled or the remote is unavailable,
        returns False without touching status or emitting anything.

        Returns:
            True if the note was written remotely and is still current.
        """
        try:
            if not await self._can_push():
                return False
            return await self._push_note(note.id)
        except Exception as e:
            logger.error(f"Unexpected error pushing note {note.id}: {e}")
            logger.debug("Full traceback:", exc_info=True)
            return False

    async def _push_note(self, note_id: str) -> bool:
        note = await self._local.get_note(note_id)
        if note is None:
            logger.info(f"Note {note_id} no longer exists locally, not pushing")
            return False

        try:
            await self._tracker.update(note_id, SyncStatus.SYNCING)
            await self._remote.write_note(note)
        except Exception as e:
            logger.error(f"Failed to push note {note_id}: {e}")
            with contextlib.suppress(Exception):
                await self._tracker.update(note_id, SyncStatus.FAILED)
            return False

        try:
            current = await self._tracker.update_if_current(
                note_id, SyncStatus.SYNCED, note.updated_at
            )
        except PersistenceError as e:
            logger.error(f"Pushed note {note_id} but could not record status: {e}")
            current = True

        if not current:
            logger.info(f"Note {note_id} changed during push, leaving it unsynced")
            return False

        logger.info(f"Pushed note {note_id}")
        self._events.emit(NoteSynced(note=note))
        return True

    def _fail_batch(self, error: str) -> BatchPushResult:
        logger.warning(f"Push all failed: {error}")
        self._events.emit(SyncFailed(error=error))
        return BatchPushResult(success=False, error=error)

    async def push_all(self) -> BatchPushResult:
        """Push every local note concurrently.

        Emits SyncStarted before the pushes and SyncCompleted after all of
        them finish. One note failing does not affect the others. Emits a
        single SyncFailed if the remote is unavailable or the local
        collection cannot be read.
        """
        try:
            return await self._push_all()
        except Exception as e:
            logger.debug("Full traceback:", exc_info=True)
            return self._fail_batch(str(e))

    async def _push_all(self) -> BatchPushResult:
        if not await self._local.is_sync_enabled():
            logger.info("Sync disabled, skipping push all")
            return BatchPushResult(success=False, error=SYNC_DISABLED)

        if not await self._remote.is_available():
            return self._fail_batch(REMOTE_UNAVAILABLE)

        notes = await self._local.list_notes()

        self._events.emit(SyncStarted())
        outcomes = await asyncio.gather(*(self.push(note) for note in notes))

        result = BatchPushResult(success=True)
        for note, ok in zip(notes, outcomes, strict=True):
            (result.synced if ok else result.failed).append(note.id)

        logger.info(
            f"Push all complete: {len(result.synced)} synced, {len(result.failed)} failed"
        )
        self._events.emit(SyncCompleted())
        return result

    # === Pull ===

    async def pull(self) -> PullResult:
        """Reconcile remote notes into the local store.

        If a pull is already running, waits for it and returns its result
        instead of starting another one.
        """
        task = self._pull_task
        if task is None or task.done():
            task = self._pull_task = asyncio.create_task(self._drain_pulls())
        return await asyncio.shield(task)

    def request_pull(self) -> asyncio.Task[PullResult]:
        """React to a remote change notification.

        Starts a pull, or, if one is running, schedules a single follow-up.
        Must be called from the event loop thread.

        Returns:
            The task running the pull(s).
        """
        if self._pull_task is not None and not self._pull_task.done():
            if not self._pull_again:
                logger.debug("Pull in flight, scheduling one follow-up")
            self._pull_again = True
            return self._pull_task

        self._pull_task = asyncio.create_task(self._drain_pulls())
        return self._pull_task

    async def _drain_pulls(self) -> PullResult:
        result = await self._pull_once()
        while self._pull_again:
            self._pull_again = False
            result = await self._pull_once()
        return result

    async def _pull_once(self) -> PullResult:
        try:
            return await self._pull()
        except Exception as e:
            logger.error(f"Pull failed: {e}")
            logger.debug("Full traceback:", exc_info=True)
            self._events.emit(SyncFailed(error=str(e)))
            return PullResult(success=False, error=str(e))

    async def _read_remote_notes(self) -> tuple[list[Note], list[str]]:
        """Read every remote note, skipping malformed or unreadable ones."""
        notes: list[Note] = []
        skipped: list[str] = []

        for note_id in await self._remote.list_note_ids():
            try:
                note = await self._remote.read_note(note_id)
            except (NoteDecodeError, RemoteStoreError) as e:
                logger.warning(f"Skipping remote note {note_id}: {e}")
                skipped.append(note_id)
                continue

            if note is None:
                # Deleted between listing and reading
                logger.debug(f"Remote note {note_id} vanished during pull")
                continue
            if note.id != note_id:
                logger.warning(
                    f"Skipping remote file {note_id}.json: contains note {note.id}"
                )
                skipped.append(note_id)
                continue
            notes.append(note)

        return notes, skipped

    async def _pull(self) -> PullResult:
        if not await self._remote.is_available():
            logger.warning("Pull skipped: remote store unavailable")
            self._events.emit(SyncFailed(error=REMOTE_UNAVAILABLE))
            return PullResult(success=False, error=REMOTE_UNAVAILABLE)

        self._events.emit(SyncStarted())
        remote_notes, skipped = await self._read_remote_notes()

        # Notes and statuses are written together against the latest local collection
        outcome = await self._local.merge_notes(
            lambda local_notes: merge_remote_notes(local_notes, remote_notes)
        )

        if outcome.changed:
            logger.info(
                f"Pulled {len(outcome.added)} new and {len(outcome.updated)} updated notes"
            )
        else:
            logger.debug("Pull found no remote changes")

        self._events.emit(SyncCompleted())
        return PullResult(
            success=True,
            added=outcome.added,
            updated=outcome.updated,
            skipped=skipped,
        )

    # === Combined operations ===

    async def sync(self) -> SyncResult:
        """Pull remote changes, then push every local note.

        Pulling first keeps a newer remote copy from being overwritten by
        an older local one.
        """
        pull_result = await self.pull()
        push_result = await self.push_all()
        return SyncResult(pull=pull_result, push=push_result)

    async def delete_note(self, note_id: str) -> bool:
        """Delete a note locally and, when possible, remotely.

        Returns:
            True if the local note was deleted.
        """
        try:
            removed = await self._local.delete_note(note_id)
        except PersistenceError as e:
            logger.error(f"Failed to delete note {note_id}: {e}")
            return False
        if not removed:
            return False

        if await self._can_push():
            try:
                await self._remote.delete_note(note_id)
            except Exception as e:
                logger.warning(f"Failed to delete remote note {note_id}: {e}")
        return True

    async def set_sync_enabled(self, enabled: bool) -> BatchPushResult | None:
        """Persist the sync preference.

        Turning sync on when it was off triggers one push_all().

        Returns:
            The push_all() result if one was triggered, else None.
        """
        try:
            was_enabled = await self._local.is_sync_enabled()
            await self._local.set_sync_enabled(enabled)
        except PersistenceError as e:
            logger.error(f"Failed to save sync preference: {e}")
            return None

        logger.info(f"Sync {'enabled' if enabled else 'disabled'}")
        if enabled and not was_enabled:
            return await self.push_all()
        return None
