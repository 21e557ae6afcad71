"""Sync commands for the notesync CLI.

Commands:
- status: Show sync preference, remote availability, and per-status counts
- push: Push every local note
- pull: Pull remote changes
- sync: Pull, then push
- enable / disable: Toggle the sync preference
- watch: Stay running and pull whenever the remote changes
"""

from __future__ import annotations

import asyncio
import sys
from collections import Counter

import click

from notesync.client.app import NoteSyncApp
from notesync.client.cli.config import build_sync_config
from notesync.client.cli.runtime import run_with_app
from notesync.client.events import NoteSynced, SyncFailed
from notesync.client.notifications import attach_notifications, notify_sync_complete
from notesync.client.sync import (
    BatchPushResult,
    ContainerWatcher,
    PullResult,
    RemoteChangeListener,
    RemoteChangeNotifier,
    SyncResult,
)
from notesync.core.types import SyncStatus


def _echo_push(result: BatchPushResult) -> None:
    if not result.success:
        click.echo(f"Push failed: {result.error}", err=True)
        return
    click.echo(f"Pushed {len(result.synced)} note(s)")
    for note_id in result.failed:
        click.echo(f"  ✗ {note_id}", err=True)


def _echo_pull(result: PullResult) -> None:
    if not result.success:
        click.echo(f"Pull failed: {result.error}", err=True)
        return
    click.echo(f"Pulled {len(result.added)} new, {len(result.updated)} updated note(s)")
    for note_id in result.skipped:
        click.echo(f"  skipped malformed {note_id}", err=True)


@click.command()
def status() -> None:
    """Show synchronization status."""

    async def _status(app: NoteSyncApp) -> tuple[bool, bool, int, Counter[SyncStatus]]:
        enabled = await app.local.is_sync_enabled()
        available = await app.remote.is_available()
        notes = await app.local.list_notes()
        statuses = await app.local.get_statuses()
        counts = Counter(statuses.get(n.id, SyncStatus.NOT_SYNCED) for n in notes)
        return enabled, available, len(notes), counts

    config = build_sync_config()
    enabled, available, total, counts = run_with_app(_status)

    click.echo(f"Sync:      {'enabled' if enabled else 'disabled'}")
    click.echo(f"Container: {config.remote_dir} ({'available' if available else 'unavailable'})")
    click.echo(f"Notes:     {total}")
    for state in SyncStatus:
        click.echo(f"  {state.value:<11} {counts.get(state, 0)}")


@click.command()
def push() -> None:
    """Push every local note to the remote container."""
    result = run_with_app(lambda app: app.engine.push_all())
    _echo_push(result)
    if not result.success:
        sys.exit(1)


@click.command()
def pull() -> None:
    """Pull remote changes into the local store."""
    result = run_with_app(lambda app: app.engine.pull())
    _echo_pull(result)
    if not result.success:
        sys.exit(1)


@click.command()
@click.option("--notify", is_flag=True, help="Show a desktop notification when done.")
def sync(notify: bool) -> None:
    """Pull remote changes, then push every local note."""
    result: SyncResult = run_with_app(lambda app: app.engine.sync())
    _echo_pull(result.pull)
    _echo_push(result.push)
    if notify:
        pulled = len(result.pull.added) + len(result.pull.updated)
        notify_sync_complete(pushed=len(result.push.synced), pulled=pulled)
    if not result.success:
        sys.exit(1)


@click.command()
def enable() -> None:
    """Enable sync and push every note."""
    result = run_with_app(lambda app: app.engine.set_sync_enabled(True))
    click.echo("Sync enabled.")
    if result is not None:
        _echo_push(result)


@click.command()
def disable() -> None:
    """Disable sync."""
    run_with_app(lambda app: app.engine.set_sync_enabled(False))
    click.echo("Sync disabled.")


@click.command()
@click.option("--no-notify", is_flag=True, help="Disable desktop notifications.")
def watch(no_notify: bool) -> None:
    """Sync, then keep pulling whenever the remote container changes."""
    config = build_sync_config()

    async def _watch(app: NoteSyncApp) -> None:
        if not no_notify:
            attach_notifications(app.events)
        app.events.on(NoteSynced, lambda event: click.echo(f"  ↑ {event.note.title}"))
        app.events.on(SyncFailed, lambda event: click.echo(f"  ✗ {event.error}", err=True))

        if not await app.local.is_sync_enabled():
            click.echo("Warning: sync is disabled; only pulling. Run 'notesync enable'.", err=True)

        if not await app.remote.is_available():
            click.echo(f"Error: Remote container unavailable: {config.remote_dir}", err=True)
            sys.exit(1)

        result = await app.engine.sync()
        _echo_pull(result.pull)

        notifier = RemoteChangeNotifier(app.engine, asyncio.get_running_loop())
        watcher = ContainerWatcher(app.remote.container, notifier, sync_delay_s=config.sync_delay_s)
        listener = None
        if config.push_url:
            listener = RemoteChangeListener(
                config.push_url, notifier, reconnect_delay=config.reconnect_delay
            )

        watcher.start()
        if listener:
            listener.start()
        click.echo(f"Watching {watcher.watch_path}. Press Ctrl+C to stop.")

        try:
            await asyncio.Event().wait()
        finally:
            watcher.stop()
            if listener:
                listener.stop()

    try:
        run_with_app(_watch)
    except KeyboardInterrupt:
        click.echo("\nStopped.")
