"""
Room presence management: membership, display names and roster snapshots.
"""

from typing import Dict, Optional, List, Any
from datetime import datetime
from dataclasses import dataclass, field

from loguru import logger

from .connection_manager import ConnectionManager
from .events import DEFAULT_DISPLAY_NAME


@dataclass
class Room:
    """
    A named group of connections.

    Rooms are created on the first join and destroyed on the last leave, so
    a Room record never exists without members.
    """
    room_id: str
    created_at: datetime = field(default_factory=datetime.utcnow)
    members: Dict[str, datetime] = field(default_factory=dict)  # connection_id -> joined_at, join order

    def member_ids(self) -> List[str]:
        return list(self.members)

    def is_empty(self) -> bool:
        return not self.members

    def to_dict(self) -> Dict[str, Any]:
        return {
            "room_id": self.room_id,
            "created_at": self.created_at.isoformat(),
            "member_count": len(self.members),
        }


@dataclass(frozen=True)
class RosterEntry:
    id: str
    name: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "name": self.name}


@dataclass(frozen=True)
class RosterSnapshot:
    """Room state handed to a connection when it joins."""
    users_in_room: List[RosterEntry]
    users_sharing: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "usersInRoom": [entry.to_dict() for entry in self.users_in_room],
            "usersSharing": list(self.users_sharing),
        }


@dataclass(frozen=True)
class Departure:
    """Outcome of a connection leaving its room."""
    room_id: str
    room_empty: bool


@dataclass(frozen=True)
class JoinResult:
    room_id: str
    name: str
    snapshot: RosterSnapshot
    previous: Optional[Departure] = None


class RoomManager:
    """Manages rooms and their membership."""

    def __init__(self, connection_manager: ConnectionManager):
        self.connection_manager = connection_manager
        self.rooms: Dict[str, Room] = {}

        self.stats = {
            "rooms_created": 0,
            "rooms_deleted": 0,
            "total_member_joins": 0,
            "total_member_leaves": 0
        }

    def _create_room(self, room_id: str) -> Room:
        assert room_id not in self.rooms, f"Room {room_id} already exists"

        room = Room(room_id=room_id)
        self.rooms[room_id] = room
        self.stats["rooms_created"] += 1

        logger.info(f"Created room {room_id}")
        return room

    def _destroy_room(self, room: Room):
        assert room.is_empty(), f"Room {room.room_id} destroyed with members"
        assert self.rooms.get(room.room_id) is room

        del self.rooms[room.room_id]
        self.stats["rooms_deleted"] += 1

        logger.info(f"Deleted empty room {room.room_id}")

    def join(self, connection_id: str, room_id: str, name: Optional[str] = None) -> JoinResult:
        """
        Add a connection to a room and compute its roster snapshot.

        A connection is a member of at most one room: joining a different room
        leaves the current one first. The snapshot excludes the joiner from
        ``users_in_room``; ``users_sharing`` covers every member, joiner included.
        """
        connection = self.connection_manager.get(connection_id)
        if connection is None:
            raise LookupError(f"Unknown connection {connection_id}")

        previous = None
        if connection.room_id is not None and connection.room_id != room_id:
            previous = self.leave(connection_id)

        room = self.rooms.get(room_id)
        if room is None:
            room = self._create_room(room_id)

        if connection_id not in room.members:
            room.members[connection_id] = datetime.utcnow()
            self.stats["total_member_joins"] += 1

        connection.room_id = room_id
        connection.name = name or DEFAULT_DISPLAY_NAME

        logger.info(f"{connection.name} ({connection_id}) joined {room_id}")

        return JoinResult(
            room_id=room_id,
            name=connection.name,
            snapshot=self._roster(room, exclude=connection_id),
            previous=previous,
        )

    def leave(self, connection_id: str) -> Optional[Departure]:
        """
        Remove a connection from its room.

        Returns None when the connection is not in a room.
        """
        connection = self.connection_manager.get(connection_id)
        if connection is None or connection.room_id is None:
            return None

        room_id = connection.room_id
        room = self.rooms.get(room_id)
        assert room is not None and connection_id in room.members, (
            f"{connection_id} claims room {room_id} without membership"
        )

        del room.members[connection_id]
        connection.room_id = None
        self.stats["total_member_leaves"] += 1

        logger.info(f"{connection.name} ({connection_id}) left {room_id}")

        room_empty = room.is_empty()
        if room_empty:
            self._destroy_room(room)

        return Departure(room_id=room_id, room_empty=room_empty)

    def _roster(self, room: Room, exclude: str) -> RosterSnapshot:
        users_in_room = []
        users_sharing = []

        for member_id in room.member_ids():
            member = self.connection_manager.get(member_id)
            if member is None:
                continue

            if member_id != exclude:
                users_in_room.append(RosterEntry(id=member_id, name=member.name or DEFAULT_DISPLAY_NAME))

            if member.is_sharing:
                users_sharing.append(member_id)

        return RosterSnapshot(users_in_room=users_in_room, users_sharing=users_sharing)

    def get_room(self, room_id: str) -> Optional[Room]:
        return self.rooms.get(room_id)

    def members_of(self, room_id: str) -> List[str]:
        room = self.rooms.get(room_id)
        return room.member_ids() if room else []

    def is_member(self, connection_id: str, room_id: str) -> bool:
        room = self.rooms.get(room_id)
        return room is not None and connection_id in room.members

    def get_statistics(self) -> Dict[str, Any]:
        return {
            **self.stats,
            "active_rooms": len(self.rooms),
            "total_active_members": sum(len(room.members) for room in self.rooms.values())
        }
