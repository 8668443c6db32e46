"""
Tests for NamespaceBroadcaster (no real sockets; clients are fakes)
"""

import asyncio
import json
import weakref

import pytest

from shuffleboard.foundation.broadcaster import NamespaceBroadcaster, entry_message, to_wire
from shuffleboard.foundation.namespace import EntryKind


class FakeWebSocket:
    """Minimal websocket stand-in: scripted incoming messages, recorded sends."""

    def __init__(self, incoming=()):
        self.incoming = list(incoming)
        self.sent = []
        self.remote_address = ("127.0.0.1", 1234)

    async def send(self, message):
        self.sent.append(json.loads(message))

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self.incoming:
            raise StopAsyncIteration
        return self.incoming.pop(0)


class TestWireFormat:
    """Tests for message encoding"""

    def test_to_wire(self):
        assert to_wire(b"\x01\xff") == "01ff"
        assert to_wire((1.0, 2.0)) == [1.0, 2.0]
        assert to_wire("x") == "x"

    def test_entry_message(self):
        assert entry_message("/a", True, EntryKind.UPDATE) == {
            "type": "entry",
            "key": "/a",
            "value": True,
            "kind": "update",
        }


class TestBroadcasterClients:
    """Tests for client handling"""

    async def test_new_client_gets_snapshot(self, namespace):
        """A connecting client first receives every key under the prefix"""
        namespace.set_value("/Shuffleboard/a", 1)
        namespace.set_value("/Other/b", "x")
        broadcaster = NamespaceBroadcaster(namespace, prefix="/Shuffleboard/")
        ws = FakeWebSocket()

        await broadcaster._handle_client(ws)

        assert ws.sent[0]["type"] == "snapshot"
        assert ws.sent[0]["entries"] == [
            {"type": "entry", "key": "/Shuffleboard/a", "value": 1.0, "kind": "new"}
        ]

    async def test_ping_gets_pong(self, namespace):
        broadcaster = NamespaceBroadcaster(namespace)
        ws = FakeWebSocket([json.dumps({"action": "ping", "ts": 42}), "not json"])

        await broadcaster._handle_client(ws)

        assert ws.sent[-1] == {"type": "pong", "ts": 42}

    async def test_client_counts(self, namespace):
        broadcaster = NamespaceBroadcaster(namespace)
        await broadcaster._handle_client(FakeWebSocket())

        stats = broadcaster.get_stats()
        assert stats["clients_connected"] == 1
        assert stats["clients_disconnected"] == 1
        assert stats["client_count"] == 0

    async def test_send_to_all(self, namespace):
        broadcaster = NamespaceBroadcaster(namespace)
        ws = FakeWebSocket()
        broadcaster._clients.add(weakref.ref(ws))

        await broadcaster.send_to_all({"type": "entry", "key": "/a"})

        assert ws.sent == [{"type": "entry", "key": "/a"}]
        assert broadcaster.get_stats()["messages_broadcast"] == 1


class TestBroadcasterQueue:
    """Tests for namespace change forwarding"""

    async def test_changes_are_queued_on_the_loop(self, namespace):
        """Namespace writes are handed to the event loop thread-safely"""
        broadcaster = NamespaceBroadcaster(namespace, max_queue_size=10)
        broadcaster._loop = asyncio.get_running_loop()
        broadcaster._queue = asyncio.Queue(maxsize=10)
        namespace.add_listener(broadcaster._on_change)

        namespace.set_value("/a", b"\x02")
        await asyncio.sleep(0)

        message = broadcaster._queue.get_nowait()
        assert message == {"type": "entry", "key": "/a", "value": "02", "kind": "new"}

    async def test_full_queue_drops(self, namespace):
        broadcaster = NamespaceBroadcaster(namespace, max_queue_size=1)
        broadcaster._queue = asyncio.Queue(maxsize=1)

        broadcaster._enqueue({"n": 1})
        broadcaster._enqueue({"n": 2})

        assert broadcaster.get_stats()["messages_dropped"] == 1

    def test_changes_ignored_before_start(self, namespace):
        """Without a running loop nothing is queued"""
        broadcaster = NamespaceBroadcaster(namespace)
        broadcaster._on_change("/a", 1.0, EntryKind.NEW)
        assert broadcaster.get_stats()["messages_dropped"] == 0


@pytest.mark.parametrize("port", [5810, 1735])
def test_configuration(namespace, port):
    broadcaster = NamespaceBroadcaster(namespace, host="0.0.0.0", port=port)
    assert broadcaster.port == port
    assert broadcaster.is_running is False
