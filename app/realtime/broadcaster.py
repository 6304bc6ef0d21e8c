"""
Realtime Broadcaster

Fans out named events to connected WebSocket clients, optionally scoped to
a room. publish() is synchronous and never blocks the caller: each client
owns a queue drained by its own sender task, so delivery is FIFO per
connection and a slow client cannot stall a request. Events are not stored;
a client that connects late re-fetches current state instead.
"""
import asyncio
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Set

from fastapi import WebSocket

from app.core.config import settings

logger = logging.getLogger(__name__)

Listener = Callable[[str, Any, Optional[str]], None]


class ClientConnection:
    """One connected WebSocket and the rooms it joined"""

    # Close code sent to a client that fell too far behind
    OVERFLOW_CLOSE_CODE = 1013

    def __init__(self, websocket: WebSocket, loop: asyncio.AbstractEventLoop, max_pending: int = 0):
        self.websocket = websocket
        self.loop = loop
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=max_pending)
        self.rooms: Set[str] = set()
        self.closed = False

    def enqueue(self, message: Dict[str, Any]) -> None:
        """Queue a message for delivery; safe to call from any thread"""
        if self.closed:
            return
        try:
            self.loop.call_soon_threadsafe(self._put, message)
        except RuntimeError:
            # Loop already shut down
            self.closed = True

    def _put(self, message: Dict[str, Any]) -> None:
        if self.closed:
            return
        try:
            self.queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(f"Realtime client not reading ({self.queue.qsize()} pending), disconnecting")
            self.closed = True
            self.loop.create_task(self._close(self.OVERFLOW_CLOSE_CODE))

    async def _close(self, code: int) -> None:
        try:
            await self.websocket.close(code=code)
        except Exception as e:
            logger.debug(f"Close after overflow failed: {e}")

    async def pump(self) -> None:
        """Send queued messages until the socket goes away"""
        while not self.closed:
            message = await self.queue.get()
            try:
                await self.websocket.send_json(message)
            except Exception as e:
                logger.debug(f"Dropping client after send failure: {e}")
                self.closed = True
                return


class Broadcaster:
    """In-process registry of realtime clients"""

    def __init__(self, max_pending: Optional[int] = None):
        self.max_pending = settings.REALTIME_MAX_PENDING if max_pending is None else max_pending
        self._clients: Set[ClientConnection] = set()
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    @property
    def client_count(self) -> int:
        with self._lock:
            return len(self._clients)

    async def connect(self, websocket: WebSocket) -> ClientConnection:
        client = ClientConnection(websocket, asyncio.get_running_loop(), self.max_pending)
        # Register before accepting so nothing published after the handshake is missed
        with self._lock:
            self._clients.add(client)
        await websocket.accept()
        logger.info(f"Realtime client connected ({self.client_count} total)")
        return client

    def disconnect(self, client: ClientConnection) -> None:
        client.closed = True
        with self._lock:
            self._clients.discard(client)
        logger.info(f"Realtime client disconnected ({self.client_count} total)")

    def join(self, client: ClientConnection, room: str) -> None:
        client.rooms.add(room)

    def leave(self, client: ClientConnection, room: str) -> None:
        client.rooms.discard(room)

    def add_listener(self, listener: Listener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def publish(self, event: str, data: Any = None, room: Optional[str] = None) -> None:
        """Fire-and-forget an event to every client, or only to members of `room`"""
        message: Dict[str, Any] = {"event": event, "data": data}
        if room:
            message["room"] = room

        with self._lock:
            # Clients dropped for falling behind are pruned here
            self._clients = {c for c in self._clients if not c.closed}
            targets = [c for c in self._clients if room is None or room in c.rooms]
            listeners = list(self._listeners)

        for client in targets:
            client.enqueue(message)

        for listener in listeners:
            try:
                listener(event, data, room)
            except Exception:
                logger.exception(f"Broadcast listener failed for {event}")

        logger.debug(f"Published {event} to {len(targets)} client(s)")


broadcaster = Broadcaster()
