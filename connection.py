import asyncio
import json
import uuid
from abc import ABC, abstractmethod
from typing import Optional

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from logging_config import get_logger

logger = get_logger(__name__)


class Connection(ABC):
    """Handle to one connected peer as seen by the broker.

    Equality and hashing stay the object defaults: two connections are the
    same only if they are the same object. `room_key` is set once the peer
    has joined a room.
    """

    def __init__(self, connection_id: Optional[str] = None):
        self.connection_id = connection_id or uuid.uuid4().hex
        self.room_key: Optional[str] = None

    @property
    @abstractmethod
    def is_open(self) -> bool:
        ...

    @abstractmethod
    def send_text(self, text: str) -> bool:
        ...

    def send(self, message: dict) -> bool:
        return self.send_text(json.dumps(message))

    def __repr__(self):
        return f"{type(self).__name__}(id={self.connection_id[:8]}, room={self.room_key!r})"


class WebSocketConnection(Connection):
    """Connection backed by a Starlette WebSocket.

    send_text() only enqueues; a writer task owned by the connection drains
    the queue, so a slow peer never stalls the code that handed it a frame.
    """

    def __init__(self, websocket: WebSocket, max_queue_size: int = 64, connection_id: Optional[str] = None):
        super().__init__(connection_id)
        self.websocket = websocket
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue_size)
        self._writer_task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def is_open(self) -> bool:
        return (
            not self._closed
            and self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def start(self) -> asyncio.Task:
        if self._writer_task is None or self._writer_task.done():
            self._writer_task = asyncio.create_task(self._write_loop())
            logger.debug(f"Started writer for connection {self.connection_id}")
        return self._writer_task

    def send_text(self, text: str) -> bool:
        if self._closed:
            return False
        try:
            self._queue.put_nowait(text)
        except asyncio.QueueFull:
            logger.warning(f"Outbound queue full for connection {self.connection_id}, dropping message")
            return False
        return True

    async def _write_loop(self):
        try:
            while True:
                text = await self._queue.get()
                await self.websocket.send_text(text)
        except Exception as e:
            self._closed = True
            logger.error(f"Error sending to connection {self.connection_id}: {e}", exc_info=True)

    async def close(self):
        self._closed = True
        task = self._writer_task
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.debug(f"Closed connection {self.connection_id} ({self.pending} frames discarded)")
