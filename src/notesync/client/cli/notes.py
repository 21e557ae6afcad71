"""Note commands for the notesync CLI.

Commands:
- add: Create a note (pushed immediately when sync is enabled)
- edit: Change a note's title and/or content
- delete: Delete a note locally and remotely
- list: List notes, newest first
- show: Show one note, optionally with a summary
- receive: Accept a companion device message
"""

from __future__ import annotations

import json
import sys
from datetime import datetime

import click

from notesync.client.app import NoteSyncApp
from notesync.client.cli.runtime import run_with_app
from notesync.client.state import NoteNotFoundError
from notesync.core.text import extract_key_topics, generate_summary
from notesync.core.types import Note, SyncStatus, parse_timestamp

STATUS_BADGES = {
    SyncStatus.NOT_SYNCED: " ",
    SyncStatus.SYNCING: "~",
    SyncStatus.SYNCED: "✓",
    SyncStatus.FAILED: "!",
}


def _read_text(value: str | None) -> str:
    """Return the value, reading stdin when it is None or '-'."""
    if value is None or value == "-":
        return click.get_text_stream("stdin").read()
    return value


def _format_date(timestamp: str) -> str:
    moment: datetime = parse_timestamp(timestamp).astimezone()
    return moment.strftime("%b %d, %Y %H:%M")


@click.command()
@click.argument("title")
@click.argument("content", required=False)
def add(title: str, content: str | None) -> None:
    """Create a note. CONTENT is read from stdin when omitted."""
    text = _read_text(content)
    if not text.strip():
        click.echo("Error: Cannot save an empty note.", err=True)
        sys.exit(1)

    note = Note.create(title.strip(), text)

    async def _add(app: NoteSyncApp) -> bool:
        await app.local.add_note(note)
        return await app.engine.push(note)

    pushed = run_with_app(_add)
    click.echo(note.id)
    if pushed:
        click.echo("Synced.", err=True)


@click.command()
@click.argument("note_id")
@click.option("--title", "-t", help="New title.")
@click.option("--content", "-c", help="New content ('-' reads stdin).")
def edit(note_id: str, title: str | None, content: str | None) -> None:
    """Edit a note's title and/or content."""
    if title is None and content is None:
        click.echo("Error: Nothing to change. Use --title and/or --content.", err=True)
        sys.exit(1)
    new_content = _read_text(content) if content is not None else None

    async def _edit(app: NoteSyncApp) -> Note | None:
        try:
            note = await app.local.update_note(note_id, title=title, content=new_content)
        except NoteNotFoundError:
            return None
        await app.engine.push(note)
        return note

    note = run_with_app(_edit)
    if note is None:
        click.echo(f"Error: Note not found: {note_id}", err=True)
        sys.exit(1)
    click.echo(f"Updated {note.id}")


@click.command()
@click.argument("note_id")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
def delete(note_id: str, yes: bool) -> None:
    """Delete a note."""
    if not yes:
        click.confirm(f"Delete note {note_id}?", abort=True)

    removed = run_with_app(lambda app: app.engine.delete_note(note_id))
    if not removed:
        click.echo(f"Error: Note not found: {note_id}", err=True)
        sys.exit(1)
    click.echo(f"Deleted {note_id}")


@click.command("list")
@click.option("--search", "-s", help="Only notes whose title or content contains this text.")
def list_notes(search: str | None) -> None:
    """List notes, newest first."""

    async def _list(app: NoteSyncApp) -> tuple[list[Note], dict[str, SyncStatus]]:
        return await app.local.list_notes(), await app.local.get_statuses()

    notes, statuses = run_with_app(_list)

    if search:
        query = search.lower()
        notes = [n for n in notes if query in n.title.lower() or query in n.content.lower()]

    if not notes:
        click.echo("No notes match your search." if search else "No notes yet.")
        return

    for note in sorted(notes, key=lambda n: n.created, reverse=True):
        badge = STATUS_BADGES[statuses.get(note.id, SyncStatus.NOT_SYNCED)]
        click.echo(f"{badge} {note.id}  {_format_date(note.created_at)}  {note.title}")


@click.command()
@click.argument("note_id")
@click.option("--summary", is_flag=True, help="Show a summary and key topics.")
def show(note_id: str, summary: bool) -> None:
    """Show a note."""

    async def _show(app: NoteSyncApp) -> tuple[Note | None, SyncStatus]:
        return await app.local.get_note(note_id), await app.local.get_status(note_id)

    note, status = run_with_app(_show)
    if note is None:
        click.echo(f"Error: Note not found: {note_id}", err=True)
        sys.exit(1)

    click.echo(note.title)
    click.echo(f"Created {_format_date(note.created_at)} · Updated {_format_date(note.updated_at)} · {status.value}")
    click.echo("")
    if summary:
        click.echo(generate_summary(note.content, 200))
        topics = extract_key_topics(note.content)
        if topics:
            click.echo("")
            click.echo("Topics: " + ", ".join(topics))
    else:
        click.echo(note.content)


@click.command()
@click.argument("payload")
def receive(payload: str) -> None:
    """Accept a companion message: JSON {title, content, timestamp} or '-' for stdin."""
    try:
        message = json.loads(_read_text(payload))
    except json.JSONDecodeError as e:
        click.echo(f"Error: Invalid JSON: {e}", err=True)
        sys.exit(1)

    async def _receive(app: NoteSyncApp) -> Note:
        return await app.companion.receive(message)

    try:
        note = run_with_app(_receive)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(note.id)
