"""notesync - Local-first note storage with cross-device synchronization."""

__version__ = "0.1.0"
