"""Composition of the notesync client components.

This module provides:
- NoteSyncApp: Explicitly constructed set of stores, bus, engine, and
  companion bridge sharing one configuration
"""

from __future__ import annotations

from dataclasses import dataclass

from notesync.client.companion import CompanionBridge
from notesync.client.events import EventBus
from notesync.client.remote import RemoteNoteStore
from notesync.client.state import LocalNoteStore
from notesync.client.sync.engine import SyncEngine
from notesync.core.config import SyncConfig


@dataclass
class NoteSyncApp:
    """Wired client components."""

    config: SyncConfig
    local: LocalNoteStore
    remote: RemoteNoteStore
    events: EventBus
    engine: SyncEngine
    companion: CompanionBridge

    @classmethod
    def from_config(cls, config: SyncConfig) -> NoteSyncApp:
        """Build all components for a configuration."""
        local = LocalNoteStore(config.db_path)
        remote = RemoteNoteStore(config.remote_dir)
        events = EventBus()
        engine = SyncEngine(local, remote, events)
        companion = CompanionBridge(local, engine, events)
        return cls(
            config=config,
            local=local,
            remote=remote,
            events=events,
            engine=engine,
            companion=companion,
        )

    def close(self) -> None:
        """Release the local database."""
        self.local.close()

    def __enter__(self) -> NoteSyncApp:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()
