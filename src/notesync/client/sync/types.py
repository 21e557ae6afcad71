"""Shared types and dataclasses for sync operations.

This module provides:
- BatchPushResult: Outcome of pushing every local note
- PullResult: Outcome of reconciling remote notes into the local store
- SyncResult: Combined pull + push outcome
- MergeOutcome: Result of the pure last-writer-wins merge
"""

from __future__ import annotations

from dataclasses import dataclass, field

from notesync.core.types import Note


@dataclass
class BatchPushResult:
    """Result of a push-all operation.

    A batch with some failed notes is still a success: failures are
    reflected per note in the status map.
    """

    success: bool
    synced: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def has_failures(self) -> bool:
        """Check if any note failed to push."""
        return len(self.failed) > 0


@dataclass
class PullResult:
    """Result of a pull operation."""

    success: bool
    added: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def changed(self) -> bool:
        """Check if the local collection changed."""
        return bool(self.added or self.updated)


@dataclass
class SyncResult:
    """Result of a full sync (pull then push)."""

    pull: PullResult
    push: BatchPushResult

    @property
    def success(self) -> bool:
        """Both halves succeeded."""
        return self.pull.success and self.push.success


@dataclass
class MergeOutcome:
    """Result of merging remote notes into a local collection."""

    notes: list[Note]
    added: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        """Check if the merge changed anything."""
        return bool(self.added or self.updated)
