"""Core module - Note model, configuration, and text helpers."""

from notesync.core.config import SyncConfig
from notesync.core.text import extract_key_topics, generate_summary
from notesync.core.types import (
    UNTITLED_NOTE,
    Note,
    NoteDecodeError,
    SyncStatus,
    format_timestamp,
    generate_note_id,
    parse_timestamp,
    utc_now,
)

__all__ = [
    # Config
    "SyncConfig",
    # Text
    "extract_key_topics",
    "generate_summary",
    # Types
    "UNTITLED_NOTE",
    "Note",
    "NoteDecodeError",
    "SyncStatus",
    "format_timestamp",
    "generate_note_id",
    "parse_timestamp",
    "utc_now",
]
