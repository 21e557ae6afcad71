"""Client-side note storage and synchronization."""
