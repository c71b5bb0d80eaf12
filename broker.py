import json
from typing import Optional, Union

from pydantic import ValidationError

from backend import RoomRegistry
from connection import Connection
from logging_config import get_logger
from schemas.messages import (
    FORWARDED_TYPES,
    JOIN,
    InboundMessage,
    joined_message,
    leave_message,
    ready_message,
)

logger = get_logger(__name__)


class RoomBroker:
    """Pairs two peers per room and relays their handshake messages.

    Every method is synchronous and never awaits, so when driven from a
    single event loop each call runs to completion before the next event
    is looked at. Outbound frames go through Connection.send(), which must
    not block.
    """

    def __init__(self, registry: Optional[RoomRegistry] = None):
        self.registry = registry if registry is not None else RoomRegistry()

    def on_connect(self, connection: Connection):
        logger.info(f"Client connected: {connection.connection_id}")

    def on_message(self, connection: Connection, raw: Union[str, bytes]):
        try:
            data = json.loads(raw)
            message = InboundMessage.model_validate(data)
        except (ValueError, RecursionError, ValidationError) as e:
            logger.warning(f"Invalid message from connection {connection.connection_id}: {e}")
            return

        if message.type == JOIN:
            self._join(connection, message.room)
        elif message.type in FORWARDED_TYPES:
            self._forward(connection, message.room, message.type, data)
        else:
            logger.debug(f"Ignoring message type {message.type!r} from connection {connection.connection_id}")

    def on_disconnect(self, connection: Connection):
        logger.info(f"Client disconnected: {connection.connection_id}")
        room_key = connection.room_key
        if room_key is None:
            return
        connection.room_key = None

        room = self.registry.get_room(room_key)
        if room is None or connection not in room.members:
            return

        if not self.registry.remove_user_from_room(room_key, connection):
            self.broadcast(room_key, leave_message(), connection)

    def broadcast(self, room_key: str, message: dict, exclude: Optional[Connection] = None) -> int:
        """Send `message` to every open member of the room except `exclude`.

        Closed members are skipped but left in the room; only the disconnect
        path removes members. Returns the number of members handed the message.
        """
        sent = 0
        for member in self.registry.get_users_in_room(room_key):
            if member is exclude or not member.is_open:
                continue
            if member.send(message):
                sent += 1
        logger.debug(f"Broadcast {message.get('type')!r} in room {room_key!r} to {sent} member(s)")
        return sent

    def _join(self, connection: Connection, room_key: Optional[str]):
        if room_key is None:
            logger.warning(f"Join without room from connection {connection.connection_id}, dropping")
            return
        if connection.room_key is not None:
            logger.warning(
                f"Connection {connection.connection_id} already in room {connection.room_key!r}, "
                f"ignoring join to {room_key!r}"
            )
            return

        logger.info(f"Client {connection.connection_id} wants to join room: {room_key!r}")
        room = self.registry.get_room(room_key)
        if room is not None and room.is_full:
            logger.warning(f"Room {room_key!r} is full, dropping join from connection {connection.connection_id}")
            return

        room = self.registry.add_user_to_room(room_key, connection)
        connection.room_key = room_key

        if room.size == 1:
            connection.send(joined_message())
        else:
            # Only the member already waiting hears about the pairing.
            self.broadcast(room_key, ready_message(), connection)

    def _forward(self, connection: Connection, room_key: Optional[str], message_type: str, data: dict):
        room = self.registry.get_room(room_key) if room_key is not None else None
        if room is None or connection not in room.members:
            logger.debug(
                f"Dropping {message_type!r} from connection {connection.connection_id}: "
                f"not a member of room {room_key!r}"
            )
            return
        self.broadcast(room_key, data, connection)
