"""WebSocket mirror of the shared namespace for remote dashboard clients."""

import asyncio
import json
import logging
import weakref
from dataclasses import dataclass
from typing import Any

import websockets

from shuffleboard.foundation.namespace import EntryKind, EntryNamespace

logger = logging.getLogger(__name__)


@dataclass
class BroadcasterStats:
    """Statistics for the broadcaster."""

    messages_broadcast: int = 0
    messages_dropped: int = 0
    clients_connected: int = 0
    clients_disconnected: int = 0


def to_wire(value: Any) -> Any:
    """JSON-compatible form of a namespace value (raw bytes as hex)."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    if isinstance(value, tuple):
        return list(value)
    return value


def entry_message(key: str, value: Any, kind: EntryKind) -> dict[str, Any]:
    return {"type": "entry", "key": key, "value": to_wire(value), "kind": kind.value}


class NamespaceBroadcaster:
    """
    WebSocket server that mirrors namespace changes to all connected clients.

    Protocol: server -> client entry messages. A new client first receives
    a snapshot of every key under the prefix; clients may send
    {"action": "ping"} for keepalive, nothing else.
    """

    def __init__(
        self,
        namespace: EntryNamespace,
        host: str = "localhost",
        port: int = 5810,
        prefix: str = "/",
        max_queue_size: int = 10000,
    ):
        self.namespace = namespace
        self.host = host
        self.port = port
        self.prefix = prefix
        self._clients: set[weakref.ref] = set()
        self._server = None
        self._is_running = False
        self._stats = BroadcasterStats()
        self._max_queue_size = max_queue_size
        self._queue: asyncio.Queue | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._listener_handle: int | None = None

    @property
    def client_count(self) -> int:
        """Number of connected clients."""
        self._clients = {ref for ref in self._clients if ref() is not None}
        return len(self._clients)

    @property
    def is_running(self) -> bool:
        return self._is_running

    async def start(self) -> None:
        """Serve until stop() is called or the task is cancelled."""
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue(maxsize=self._max_queue_size)
        self._is_running = True
        self._listener_handle = self.namespace.add_listener(self._on_change, self.prefix)

        logger.info(f"Starting namespace broadcaster on ws://{self.host}:{self.port}")
        try:
            async with websockets.serve(
                self._handle_client,
                self.host,
                self.port,
                ping_interval=30,
                ping_timeout=10,
            ) as server:
                self._server = server
                try:
                    await self._broadcast_loop()
                except asyncio.CancelledError:
                    pass
        finally:
            self.namespace.remove_listener(self._listener_handle)
            self._listener_handle = None
            self._is_running = False
            self._server = None
            logger.info("Namespace broadcaster stopped")

    async def stop(self) -> None:
        self._is_running = False
        if self._server:
            self._server.close()
            await self._server.wait_closed()

    def _on_change(self, key: str, value: Any, kind: EntryKind) -> None:
        """Namespace listener; runs on the writer's thread."""
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        message = entry_message(key, value, kind)
        try:
            loop.call_soon_threadsafe(self._enqueue, message)
        except RuntimeError:
            # Loop shut down between the check and the call
            self._stats.messages_dropped += 1

    def _enqueue(self, message: dict[str, Any]) -> None:
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            self._stats.messages_dropped += 1
            logger.warning("Broadcast queue full, dropping message")

    def snapshot_messages(self) -> list[dict[str, Any]]:
        """Entry messages describing the current namespace contents."""
        return [
            entry_message(key, value, EntryKind.NEW)
            for key, value in sorted(self.namespace.snapshot(self.prefix).items())
        ]

    async def _handle_client(self, websocket) -> None:
        client_ref = weakref.ref(websocket)
        client_id = id(websocket)
        remote = getattr(websocket, "remote_address", "unknown")
        logger.info(f"Client {client_id} connected from {remote}")

        try:
            await websocket.send(json.dumps({"type": "snapshot", "entries": self.snapshot_messages()}))
            self._clients.add(client_ref)
            self._stats.clients_connected += 1

            async for message in websocket:
                try:
                    data = json.loads(message)
                except json.JSONDecodeError:
                    continue
                if isinstance(data, dict) and data.get("action") == "ping":
                    await websocket.send(json.dumps({"type": "pong", "ts": data.get("ts")}))
        except Exception as e:
            logger.debug(f"Client {client_id} error: {e}")
        finally:
            if client_ref in self._clients:
                self._clients.discard(client_ref)
                self._stats.clients_disconnected += 1
            logger.info(f"Client {client_id} disconnected")

    async def _broadcast_loop(self) -> None:
        while self._is_running:
            try:
                message = await asyncio.wait_for(self._queue.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue
            try:
                await self.send_to_all(message)
            except Exception as e:
                logger.error(f"Broadcast error: {e}")

    async def send_to_all(self, message: dict[str, Any]) -> None:
        """Send a message to every live client."""
        if not self._clients:
            return

        payload = json.dumps(message)
        live_clients = []
        for ref in list(self._clients):
            ws = ref()
            if ws is None:
                self._clients.discard(ref)
            else:
                live_clients.append(ws)

        if live_clients:
            await asyncio.gather(
                *[self._safe_send(ws, payload) for ws in live_clients], return_exceptions=True
            )
            self._stats.messages_broadcast += 1

    async def _safe_send(self, websocket, payload: str) -> None:
        try:
            await websocket.send(payload)
        except Exception as e:
            logger.debug(f"Send failed, client will be dropped on disconnect: {e}")

    def get_stats(self) -> dict[str, Any]:
        return {
            "client_count": self.client_count,
            "is_running": self.is_running,
            "messages_broadcast": self._stats.messages_broadcast,
            "messages_dropped": self._stats.messages_dropped,
            "clients_connected": self._stats.clients_connected,
            "clients_disconnected": self._stats.clients_disconnected,
        }
