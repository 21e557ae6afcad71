"""Command-line interface for notesync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- add, edit, delete, list, show: Manage notes
- receive: Accept a companion device message
- status: Show sync status
- push, pull, sync: Synchronize with the remote container
- enable, disable: Toggle synchronization
- watch: Stay running and react to remote changes
- config: Show or change configuration
"""

from __future__ import annotations

import logging
import sys

import click

from notesync.client.cli.config import (
    build_sync_config,
    config_cmd,
    get_config_dir,
    get_config_file,
    get_data_dir,
    get_push_url,
    get_remote_dir,
    load_config,
    save_config,
)
from notesync.client.cli.notes import add, delete, edit, list_notes, receive, show
from notesync.client.cli.sync import disable, enable, pull, push, status, sync, watch

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose: bool) -> None:
    """Configure the notesync logger to write to stderr.

    Args:
        verbose: Log at DEBUG instead of WARNING.
    """
    notesync_logger = logging.getLogger("notesync")
    for handler in notesync_logger.handlers[:]:
        notesync_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    notesync_logger.addHandler(handler)
    notesync_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    notesync_logger.propagate = False


@click.group()
@click.version_option(package_name="notesync")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """NoteSync - Notes kept in sync across your devices."""
    setup_logging(verbose)


# Note commands
cli.add_command(add)
cli.add_command(edit)
cli.add_command(delete)
cli.add_command(list_notes)
cli.add_command(show)
cli.add_command(receive)

# Sync commands
cli.add_command(status)
cli.add_command(push)
cli.add_command(pull)
cli.add_command(sync)
cli.add_command(enable)
cli.add_command(disable)
cli.add_command(watch)

# Config command
cli.add_command(config_cmd)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    # Main entry points
    "cli",
    "main",
    "setup_logging",
    # Config utilities
    "build_sync_config",
    "get_config_dir",
    "get_config_file",
    "get_data_dir",
    "get_push_url",
    "get_remote_dir",
    "load_config",
    "save_config",
]
