"""Inbound port for remote change signals.

This module provides:
- PullTrigger: Anything that can react to a remote change (the SyncEngine)
- RemoteChangeNotifier: Thread-safe bridge from change sources to a trigger

Architecture:
    ContainerWatcher ──┐
                       ├─► RemoteChangeNotifier ─► SyncEngine.request_pull()
    RemoteChangeListener┘         (event loop thread)

Sources may call notify() from any thread. Coalescing of overlapping
notifications is done by the engine.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Protocol

logger = logging.getLogger(__name__)


class PullTrigger(Protocol):
    """Reacts to remote changes by pulling."""

    def request_pull(self) -> object:
        """Start a pull or schedule a follow-up."""
        ...


class RemoteChangeNotifier:
    """Delivers remote change signals to a PullTrigger on its event loop."""

    def __init__(self, trigger: PullTrigger, loop: asyncio.AbstractEventLoop) -> None:
        """Initialize the notifier.

        Args:
            trigger: Receiver of change signals.
            loop: Event loop the trigger runs on.
        """
        self._trigger = trigger
        self._loop = loop
        self._count = 0
        self._lock = threading.Lock()

    @property
    def notification_count(self) -> int:
        """Number of signals received."""
        with self._lock:
            return self._count

    def notify(self) -> None:
        """Signal that the remote store changed. Safe from any thread."""
        with self._lock:
            self._count += 1

        if self._loop.is_closed():
            logger.debug("Ignoring remote change: event loop closed")
            return
        try:
            self._loop.call_soon_threadsafe(self._fire)
        except RuntimeError:
            # Loop closed between the check and the call
            logger.debug("Ignoring remote change: event loop closed")

    def _fire(self) -> None:
        logger.debug("Remote change signalled")
        self._trigger.request_pull()
