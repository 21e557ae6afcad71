"""Helpers for running async client operations from click commands."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import click

from notesync.client.app import NoteSyncApp
from notesync.client.cli.config import build_sync_config
from notesync.client.state import PersistenceError

T = TypeVar("T")


def run_with_app(func: Callable[[NoteSyncApp], Awaitable[T]]) -> T:
    """Build the app from config, run an async operation, and clean up.

    Local persistence failures become click errors.
    """
    try:
        app = NoteSyncApp.from_config(build_sync_config())
    except (PersistenceError, OSError) as e:
        raise click.ClickException(f"Cannot open local store: {e}") from e

    with app:
        try:
            return asyncio.run(func(app))
        except PersistenceError as e:
            raise click.ClickException(str(e)) from e
