"""Configuration utilities for the notesync CLI.

This module provides shared configuration functions used across CLI commands,
plus the `config` command that edits them.
"""

from __future__ import annotations

import json
from pathlib import Path

import click

from notesync.client.remote import get_default_container
from notesync.core.config import SyncConfig


def get_config_dir() -> Path:
    """Get the configuration directory for notesync.

    Returns:
        Path to ~/.notesync.
    """
    return Path.home() / ".notesync"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def load_config() -> dict[str, str]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if not config_file.exists():
        return {}
    try:
        return dict(json.loads(config_file.read_text()))
    except (json.JSONDecodeError, TypeError, ValueError) as e:
        raise click.ClickException(f"Invalid config file {config_file}: {e}") from e


def save_config(config: dict[str, str]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def get_data_dir() -> Path:
    """Get the directory holding the local note database."""
    config = load_config()
    if config.get("data_dir"):
        return Path(config["data_dir"]).expanduser().resolve()
    return get_config_dir()


def get_remote_dir() -> Path:
    """Get the synchronized container directory."""
    config = load_config()
    if config.get("remote_dir"):
        return Path(config["remote_dir"]).expanduser().resolve()
    return get_default_container()


def get_push_url() -> str | None:
    """Get the push relay WebSocket URL, if configured."""
    return load_config().get("push_url") or None


def build_sync_config() -> SyncConfig:
    """Resolve the full client configuration."""
    return SyncConfig(
        data_dir=get_data_dir(),
        remote_dir=get_remote_dir(),
        push_url=get_push_url(),
    )


@click.command("config")
@click.option("--data-dir", type=click.Path(file_okay=False), help="Local database directory.")
@click.option("--remote-dir", type=click.Path(file_okay=False), help="Synchronized container directory.")
@click.option("--push-url", help="WebSocket URL of a push relay (empty string to clear).")
def config_cmd(data_dir: str | None, remote_dir: str | None, push_url: str | None) -> None:
    """Show or change configuration."""
    config = load_config()
    changed = False

    if data_dir is not None:
        config["data_dir"] = str(Path(data_dir).expanduser().resolve())
        changed = True
    if remote_dir is not None:
        config["remote_dir"] = str(Path(remote_dir).expanduser().resolve())
        changed = True
    if push_url is not None:
        if push_url:
            config["push_url"] = push_url
        else:
            config.pop("push_url", None)
        changed = True

    if changed:
        save_config(config)
        click.echo(f"Saved {get_config_file()}")

    resolved = build_sync_config()
    click.echo(f"Data dir:   {resolved.data_dir}")
    click.echo(f"Remote dir: {resolved.remote_dir}")
    click.echo(f"Push URL:   {resolved.push_url or '(none)'}")
