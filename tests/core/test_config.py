"""Tests for core configuration classes."""

from __future__ import annotations

from pathlib import Path

from notesync.core.config import SyncConfig


class TestSyncConfig:
    """Tests for SyncConfig class."""

    def test_init_basic(self, tmp_path: Path) -> None:
        """Should initialize with required fields and defaults."""
        config = SyncConfig(data_dir=tmp_path / "data", remote_dir=tmp_path / "remote")
        assert config.data_dir == tmp_path / "data"
        assert config.remote_dir == tmp_path / "remote"
        assert config.push_url is None
        assert config.sync_delay_s == 1.0
        assert config.reconnect_delay == 5.0

    def test_accepts_strings(self, tmp_path: Path) -> None:
        """Should convert string paths to Path."""
        config = SyncConfig(data_dir=str(tmp_path), remote_dir=str(tmp_path / "r"))  # type: ignore[arg-type]
        assert isinstance(config.data_dir, Path)
        assert isinstance(config.remote_dir, Path)

    def test_expands_user(self) -> None:
        """Should expand ~ in paths."""
        config = SyncConfig(data_dir=Path("~/data"), remote_dir=Path("~/remote"))
        assert config.data_dir == Path.home() / "data"
        assert config.remote_dir == Path.home() / "remote"

    def test_db_path(self, tmp_path: Path) -> None:
        """Database should live in the data dir."""
        config = SyncConfig(data_dir=tmp_path, remote_dir=tmp_path / "r")
        assert config.db_path == tmp_path / "notes.db"

    def test_blank_push_url_is_none(self, tmp_path: Path) -> None:
        """A blank push URL should be treated as absent."""
        config = SyncConfig(data_dir=tmp_path, remote_dir=tmp_path, push_url="  ")
        assert config.push_url is None

    def test_is_secure_wss(self, tmp_path: Path) -> None:
        """Should detect WSS URLs."""
        config = SyncConfig(data_dir=tmp_path, remote_dir=tmp_path, push_url="wss://push.example.com")
        assert config.is_secure is True

    def test_is_secure_ws(self, tmp_path: Path) -> None:
        """Plain ws:// should not be secure."""
        config = SyncConfig(data_dir=tmp_path, remote_dir=tmp_path, push_url="ws://localhost:9000")
        assert config.is_secure is False
