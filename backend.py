from typing import Dict, Optional, Set, Tuple, TYPE_CHECKING
from logging_config import get_logger

if TYPE_CHECKING:
    from connection import Connection

logger = get_logger(__name__)


class Room:
    """A rendezvous point for at most two connections."""

    MAX_MEMBERS = 2

    def __init__(self, key: str):
        self.key = key
        self.members: Set["Connection"] = set()

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def is_empty(self) -> bool:
        return not self.members

    @property
    def is_full(self) -> bool:
        return len(self.members) >= self.MAX_MEMBERS

    def __repr__(self):
        return f"Room(key={self.key!r}, size={self.size})"


class RoomRegistry:
    """In-memory room state for a single broker process.

    Nothing here is persisted. Every instance is independent; the owner
    creates one and hands it to the broker.
    """

    def __init__(self):
        self.rooms: Dict[str, Room] = {}

    def get_room(self, room_key: str) -> Optional[Room]:
        return self.rooms.get(room_key)

    def get_or_create_room(self, room_key: str) -> Room:
        room = self.rooms.get(room_key)
        if room is None:
            room = Room(room_key)
            self.rooms[room_key] = room
            logger.info(f"Created room {room_key!r} (active rooms: {len(self.rooms)})")
        return room

    def delete_room(self, room_key: str) -> bool:
        room = self.rooms.pop(room_key, None)
        if room is None:
            return False
        logger.info(f"Deleted room {room_key!r} (active rooms: {len(self.rooms)})")
        return True

    def add_user_to_room(self, room_key: str, connection: "Connection") -> Room:
        room = self.get_or_create_room(room_key)
        room.members.add(connection)
        logger.debug(f"Added connection {connection.connection_id} to room {room_key!r} ({room.size}/{Room.MAX_MEMBERS})")
        return room

    def remove_user_from_room(self, room_key: str, connection: "Connection") -> bool:
        """Remove a connection and drop the room once it is empty.

        Returns True when the room was deleted as a result.
        """
        room = self.rooms.get(room_key)
        if room is None:
            return False
        room.members.discard(connection)
        logger.debug(f"Removed connection {connection.connection_id} from room {room_key!r} ({room.size} left)")
        if room.is_empty:
            return self.delete_room(room_key)
        return False

    def get_users_in_room(self, room_key: str) -> Tuple["Connection", ...]:
        room = self.rooms.get(room_key)
        if room is None:
            return ()
        return tuple(room.members)

    def __contains__(self, room_key: str) -> bool:
        return room_key in self.rooms

    def __len__(self) -> int:
        return len(self.rooms)
