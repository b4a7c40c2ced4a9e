"""Reload hub — fans reload tokens out to connected browsers.

The hub owns every live-reload client.  File changes call ``notify()`` from
any thread; a single broadcast task drains the pending queue and writes one
token to each registered client.  A client whose write fails (or stalls past
the write timeout) is dropped and closed without delaying the others.

Thread Safety:
    The client set is protected by a ``threading.Lock``.  No lock is held
    while writing to clients.  ``notify()`` may be called from any thread.

"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from typing import Protocol

logger = logging.getLogger(__name__)

RELOAD_TOKEN = "reload"

# Queue sentinel that ends the broadcast loop.
_STOP = None


class Transport(Protocol):
    """Outbound side of a client channel (satisfied by aiohttp's WebSocketResponse)."""

    async def send_str(self, data: str) -> None: ...

    async def close(self) -> object: ...


@dataclass(frozen=True, slots=True)
class ClientConnection:
    """A connected live-reload client.

    Attributes:
        client_id: Unique identifier for this connection.
        transport: Channel used to push tokens to the browser.

    """

    client_id: str
    transport: Transport = field(compare=False, hash=False, repr=False)

    async def send(self, token: str) -> None:
        await self.transport.send_str(token)

    async def close(self) -> None:
        await self.transport.close()


class ReloadHub:
    """Tracks live-reload clients and broadcasts reload tokens.

    Args:
        write_timeout: Seconds one client write may take before the client
            is considered dead.

    """

    def __init__(self, *, write_timeout: float = 5.0) -> None:
        self._clients: set[ClientConnection] = set()
        self._lock = threading.Lock()
        self._write_timeout = write_timeout
        self._loop: asyncio.AbstractEventLoop | None = None
        self._pending: asyncio.Queue[str | None] | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def client_count(self) -> int:
        with self._lock:
            return len(self._clients)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def clients(self) -> frozenset[ClientConnection]:
        """Snapshot of registered clients (no lock held on return)."""
        with self._lock:
            return frozenset(self._clients)

    def register(self, conn: ClientConnection) -> None:
        with self._lock:
            self._clients.add(conn)
            count = len(self._clients)
        logger.debug("live-reload client connected: %s (total: %d)", conn.client_id, count)

    def unregister(self, conn: ClientConnection) -> bool:
        """Remove a client.  Returns False if it was not registered."""
        with self._lock:
            if conn not in self._clients:
                return False
            self._clients.discard(conn)
            count = len(self._clients)
        logger.debug("live-reload client disconnected: %s (total: %d)", conn.client_id, count)
        return True

    # -- lifecycle --------------------------------------------------------

    async def start(self) -> None:
        """Bind to the running loop and start the broadcast task."""
        if self.is_running:
            return
        self._loop = asyncio.get_running_loop()
        self._pending = asyncio.Queue()
        self._task = asyncio.create_task(self._broadcast_loop(), name="mdserve-broadcast")

    async def stop(self, timeout: float = 5.0) -> None:
        """Stop the broadcast task and close every client."""
        task, self._task = self._task, None
        if task is not None and self._pending is not None:
            self._pending.put_nowait(_STOP)
            try:
                await asyncio.wait_for(task, timeout=timeout)
            except TimeoutError:
                logger.warning("broadcast task did not stop within %.1fs", timeout)
        self._loop = None
        self._pending = None

        with self._lock:
            clients = list(self._clients)
            self._clients.clear()
        await asyncio.gather(*(self._close(conn) for conn in clients))

    # -- notification -----------------------------------------------------

    def notify(self) -> None:
        """Queue one reload token.  Safe to call from any thread."""
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.debug("reload requested while hub is not running")
            return
        try:
            loop.call_soon_threadsafe(self._enqueue)
        except RuntimeError:
            # Loop closed between the check and the call.
            logger.debug("reload requested during shutdown")

    def _enqueue(self) -> None:
        if self._pending is not None:
            self._pending.put_nowait(RELOAD_TOKEN)

    async def _broadcast_loop(self) -> None:
        assert self._pending is not None
        pending = self._pending
        while True:
            token = await pending.get()
            if token is _STOP:
                return
            # Tokens queued while we were idle or busy collapse into one.
            stopping = False
            while not pending.empty():
                if pending.get_nowait() is _STOP:
                    stopping = True
                    break
            await self.broadcast(token)
            if stopping:
                return

    async def broadcast(self, token: str = RELOAD_TOKEN) -> int:
        """Send *token* to every registered client.

        Returns:
            Number of clients that received the token.

        """
        clients = self.clients()
        if not clients:
            return 0
        results = await asyncio.gather(*(self._deliver(conn, token) for conn in clients))
        delivered = sum(results)
        logger.debug("reload sent to %d of %d clients", delivered, len(clients))
        return delivered

    async def _deliver(self, conn: ClientConnection, token: str) -> bool:
        try:
            await asyncio.wait_for(conn.send(token), timeout=self._write_timeout)
        except (OSError, RuntimeError) as exc:
            # OSError covers ConnectionResetError and TimeoutError.
            logger.info("dropping live-reload client %s: %s", conn.client_id, exc or type(exc).__name__)
            self.unregister(conn)
            await self._close(conn)
            return False
        except Exception:
            logger.exception("dropping live-reload client %s after unexpected error", conn.client_id)
            self.unregister(conn)
            await self._close(conn)
            return False
        return True

    async def _close(self, conn: ClientConnection) -> None:
        try:
            await conn.close()
        except Exception as exc:
            logger.debug("error closing client %s: %s", conn.client_id, exc)
