"""
Connection registry for live transport sessions.
"""

from typing import Dict, Optional, Any, List
from datetime import datetime
from dataclasses import dataclass, field

from loguru import logger

from .events import DEFAULT_DISPLAY_NAME


@dataclass
class Connection:
    """Coordination state attached to one transport session."""
    connection_id: str
    connected_at: datetime = field(default_factory=datetime.utcnow)
    room_id: Optional[str] = None
    name: str = DEFAULT_DISPLAY_NAME
    is_sharing: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "connection_id": self.connection_id,
            "connected_at": self.connected_at.isoformat(),
            "room_id": self.room_id,
            "name": self.name,
            "is_sharing": self.is_sharing,
        }


class ConnectionManager:
    """
    Tracks every live connection by its transport-assigned id.

    The transport owns connection identity; this registry only holds the
    room, display name and sharing flag attached during the session.
    """

    def __init__(self):
        self.connections: Dict[str, Connection] = {}

        self.connection_stats = {
            "total_connections": 0,
            "disconnections": 0,
        }

    def connect(self, connection_id: str) -> Connection:
        """Register a new transport session."""
        existing = self.connections.get(connection_id)
        if existing is not None:
            logger.warning(f"Connection {connection_id} registered twice; keeping existing state")
            return existing

        connection = Connection(connection_id=connection_id)
        self.connections[connection_id] = connection
        self.connection_stats["total_connections"] += 1
        return connection

    def disconnect(self, connection_id: str) -> Optional[Connection]:
        """Forget a connection. Unknown ids are ignored."""
        connection = self.connections.pop(connection_id, None)
        if connection is not None:
            self.connection_stats["disconnections"] += 1
        return connection

    def get(self, connection_id: str) -> Optional[Connection]:
        return self.connections.get(connection_id)

    def exists(self, connection_id: str) -> bool:
        return connection_id in self.connections

    def set_sharing(self, connection_id: str, is_sharing: bool) -> bool:
        connection = self.connections.get(connection_id)
        if connection is None:
            return False
        connection.is_sharing = is_sharing
        return True

    def active_count(self) -> int:
        return len(self.connections)

    def all_ids(self) -> List[str]:
        return list(self.connections)

    def get_statistics(self) -> Dict[str, Any]:
        return {
            **self.connection_stats,
            "active_connections": self.active_count(),
            "sharing_connections": sum(1 for c in self.connections.values() if c.is_sharing),
        }
