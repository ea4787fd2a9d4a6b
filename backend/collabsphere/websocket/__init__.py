"""
Real-time session coordination over Socket.IO.

This package provides:
- Connection lifecycle and cleanup on disconnect
- Room presence and roster snapshots
- Negotiation payload relay between peers
- Single-recorder arbitration per room
- Bounded chat history replayed to late joiners
"""

from .chat_history import ChatHistoryStore, MAX_CHAT_HISTORY
from .connection_manager import ConnectionManager, Connection
from .events import ClientEvent, ServerEvent, ChatMessage, RecordResult, InvalidPayloadError
from .handlers import SessionHandlers
from .recording import RecordingArbiter
from .rooms import RoomManager, Room, RosterSnapshot
from .server import SignalingServer, create_socketio_server
from .signaling import SignalRelay

__all__ = [
    "ChatHistoryStore",
    "MAX_CHAT_HISTORY",
    "ConnectionManager",
    "Connection",
    "ClientEvent",
    "ServerEvent",
    "ChatMessage",
    "RecordResult",
    "InvalidPayloadError",
    "SessionHandlers",
    "RecordingArbiter",
    "RoomManager",
    "Room",
    "RosterSnapshot",
    "SignalingServer",
    "create_socketio_server",
    "SignalRelay"
]
