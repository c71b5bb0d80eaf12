"""Tests for the WebSocket-backed connection and its outbound queue."""

import asyncio
import json

import pytest
from starlette.websockets import WebSocketState

from connection import Connection, WebSocketConnection


class FakeWebSocket:
    """Stand-in exposing the parts of starlette's WebSocket a connection uses."""

    def __init__(self, fail: bool = False, gate: asyncio.Event = None):
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.sent = []
        self.fail = fail
        self.gate = gate

    async def send_text(self, text):
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise RuntimeError("socket went away")
        self.sent.append(json.loads(text))


async def settle():
    for _ in range(10):
        await asyncio.sleep(0)


class TestWebSocketConnection:

    def test_connections_are_distinct(self):
        ws = FakeWebSocket()
        first = WebSocketConnection(ws)
        second = WebSocketConnection(ws)

        assert first != second
        assert first.connection_id != second.connection_id
        assert len({first, second}) == 2

    @pytest.mark.asyncio
    async def test_writer_delivers_in_order(self):
        ws = FakeWebSocket()
        conn = WebSocketConnection(ws)
        conn.start()

        assert conn.send({"type": "joined"})
        assert conn.send({"type": "ready"})
        await settle()

        assert ws.sent == [{"type": "joined"}, {"type": "ready"}]
        await conn.close()

    @pytest.mark.asyncio
    async def test_send_does_not_wait_for_slow_peer(self):
        gate = asyncio.Event()
        ws = FakeWebSocket(gate=gate)
        conn = WebSocketConnection(ws)
        conn.start()

        assert conn.send({"type": "offer", "room": "lobby"})
        assert conn.send({"type": "candidate", "room": "lobby"})
        await settle()
        assert ws.sent == []

        gate.set()
        await settle()
        assert [m["type"] for m in ws.sent] == ["offer", "candidate"]
        await conn.close()

    @pytest.mark.asyncio
    async def test_full_queue_drops_message(self):
        conn = WebSocketConnection(FakeWebSocket(), max_queue_size=2)

        assert conn.send({"type": "one"})
        assert conn.send({"type": "two"})
        assert conn.send({"type": "three"}) is False
        assert conn.pending == 2

    @pytest.mark.asyncio
    async def test_is_open_follows_socket_state(self):
        ws = FakeWebSocket()
        conn = WebSocketConnection(ws)
        assert conn.is_open

        ws.client_state = WebSocketState.DISCONNECTED
        assert not conn.is_open

    @pytest.mark.asyncio
    async def test_close_stops_writer_and_refuses_sends(self):
        conn = WebSocketConnection(FakeWebSocket())
        task = conn.start()

        await conn.close()

        assert task.done()
        assert not conn.is_open
        assert conn.send({"type": "leave"}) is False

    @pytest.mark.asyncio
    async def test_send_failure_marks_connection_closed(self):
        conn = WebSocketConnection(FakeWebSocket(fail=True))
        task = conn.start()

        conn.send({"type": "ready"})
        await settle()

        assert task.done()
        assert not conn.is_open
        await conn.close()


class TestConnectionInterface:
    """Transports must supply liveness and sending."""

    def test_transport_without_send_text_cannot_be_built(self):
        class HalfConnection(Connection):
            @property
            def is_open(self):
                return True

        with pytest.raises(TypeError):
            HalfConnection()

    def test_transport_without_is_open_cannot_be_built(self):
        class MuteConnection(Connection):
            def send_text(self, text):
                return True

        with pytest.raises(TypeError):
            MuteConnection()
