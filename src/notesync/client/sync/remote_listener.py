"""Remote change listener for push notifications.

This module provides:
- RemoteChangeListener: WebSocket client that receives push notifications
  when notes change on another device

Architecture:
    Push relay ─ws─► RemoteChangeListener ─► RemoteChangeNotifier ─► SyncEngine
                            │
                     (on every connect: notify, to catch missed changes)

Supported messages:
    {"type": "notes_changed"}   remote store changed, pull
Anything else is ignored.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import ssl
import threading
from typing import TYPE_CHECKING

import websockets
from websockets.exceptions import WebSocketException

if TYPE_CHECKING:
    from websockets.asyncio.client import ClientConnection

    from notesync.client.sync.notifier import RemoteChangeNotifier

logger = logging.getLogger(__name__)

NOTES_CHANGED = "notes_changed"


class RemoteChangeListener:
    """WebSocket listener for remote change notifications.

    Runs its own event loop in a background thread and reconnects after
    errors. Each (re)connect signals a change, since notifications sent
    while disconnected are lost.
    """

    def __init__(
        self,
        url: str,
        notifier: RemoteChangeNotifier,
        reconnect_delay: float = 5.0,
        verify_ssl: bool = True,
    ) -> None:
        self._url = url
        self._notifier = notifier
        self._reconnect_delay = reconnect_delay
        self._verify_ssl = verify_ssl

        self._ws: ClientConnection | None = None
        self._connected = False
        self._should_run = False

        self._thread: threading.Thread | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stop_event: asyncio.Event | None = None

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def url(self) -> str:
        return self._url

    def start(self) -> None:
        """Start listening in a background thread."""
        if self._thread and self._thread.is_alive():
            logger.warning("RemoteChangeListener already running")
            return

        self._should_run = True
        self._thread = threading.Thread(
            target=self._run_loop,
            name="RemoteChangeListener",
            daemon=True,
        )
        self._thread.start()
        logger.info("Listening for remote changes on %s", self._url)

    def stop(self) -> None:
        """Disconnect and wait for the listener thread to exit."""
        self._should_run = False

        loop, stop_event = self._loop, self._stop_event
        if loop and stop_event:
            # RuntimeError: the loop closed on its own meanwhile
            with contextlib.suppress(RuntimeError, TimeoutError):
                loop.call_soon_threadsafe(stop_event.set)
                if self._ws:
                    asyncio.run_coroutine_threadsafe(
                        self._close_connection(), loop
                    ).result(timeout=2.0)

        if self._thread:
            self._thread.join(timeout=5.0)
            self._thread = None

        logger.info("Stopped listening for remote changes")

    def _run_loop(self) -> None:
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)
        self._stop_event = asyncio.Event()

        try:
            self._loop.run_until_complete(self._connection_loop())
        finally:
            self._loop.close()
            self._loop = None
            self._stop_event = None

    async def _connection_loop(self) -> None:
        was_connected = False

        while self._should_run:
            try:
                await self._connect()
                if was_connected:
                    logger.info("Reconnected to push relay, pulling missed changes")
                was_connected = True
                self._notifier.notify()
                await self._listen_for_messages()
            except (WebSocketException, OSError) as e:
                if was_connected:
                    logger.warning("Lost connection to push relay: %s", e)
                else:
                    logger.debug("Push relay unreachable: %s", e)
            except Exception as e:
                logger.warning("RemoteChangeListener error: %s", e)
                logger.debug("Full traceback:", exc_info=True)

            self._connected = False
            if not self._should_run or await self._wait_for_stop(self._reconnect_delay):
                break

    async def _wait_for_stop(self, delay: float) -> bool:
        """Sleep up to delay seconds. Returns True if stop() was called."""
        if self._stop_event is None:
            return True
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
        except TimeoutError:
            return False
        return True

    def _ssl_context(self) -> ssl.SSLContext | None:
        if not self._url.startswith("wss://"):
            return None
        context = ssl.create_default_context()
        if not self._verify_ssl:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    async def _connect(self) -> None:
        self._ws = await websockets.connect(
            self._url,
            ssl=self._ssl_context(),
            open_timeout=10,
            close_timeout=5,
        )
        self._connected = True
        logger.info("Connected to push relay")

    async def _listen_for_messages(self) -> None:
        while self._should_run and self._ws:
            try:
                # Wake up now and then to notice stop()
                message = await asyncio.wait_for(self._ws.recv(), timeout=30.0)
            except TimeoutError:
                continue
            except websockets.ConnectionClosed:
                logger.info("Push relay closed the connection")
                break

            if isinstance(message, bytes):
                message = message.decode("utf-8", errors="replace")
            self._handle_message(message)

    def _handle_message(self, message: str) -> bool:
        """Signal a pull for a notes_changed message.

        Returns:
            True if the message signalled a remote change.
        """
        try:
            data = json.loads(message)
        except json.JSONDecodeError:
            logger.warning("Ignoring non-JSON message: %s", message[:100])
            return False

        if not isinstance(data, dict) or data.get("type") != NOTES_CHANGED:
            return False

        logger.info("Notes changed on another device")
        self._notifier.notify()
        return True

    async def _close_connection(self) -> None:
        if self._ws:
            with contextlib.suppress(WebSocketException):
                await self._ws.close()
            self._ws = None
        self._connected = False
