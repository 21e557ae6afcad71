"""Shared configuration classes for notesync."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass
class SyncConfig:
    """Resolved configuration for a notesync client.

    Attributes:
        data_dir: Directory holding the local note database.
        remote_dir: Synchronized container holding one <id>.json per note.
        push_url: Optional WebSocket URL delivering remote change pushes.
        sync_delay_s: Quiet period before a watcher notification fires.
        reconnect_delay: Seconds between push channel reconnection attempts.
    """

    data_dir: Path
    remote_dir: Path
    push_url: str | None = None
    sync_delay_s: float = 1.0
    reconnect_delay: float = 5.0

    def __post_init__(self) -> None:
        """Normalize paths."""
        self.data_dir = Path(self.data_dir).expanduser()
        self.remote_dir = Path(self.remote_dir).expanduser()
        if self.push_url is not None:
            self.push_url = self.push_url.strip() or None

    @property
    def db_path(self) -> Path:
        """Path to the local note database."""
        return self.data_dir / "notes.db"

    @property
    def is_secure(self) -> bool:
        """Check if the push channel uses WSS."""
        return bool(self.push_url and self.push_url.startswith("wss://"))
