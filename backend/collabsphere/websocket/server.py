"""
Socket.IO signaling server assembly.
"""

import time
from datetime import datetime
from typing import Any, Dict, Optional

import socketio
from loguru import logger

from ..core.config import Settings, get_settings
from .chat_history import ChatHistoryStore
from .connection_manager import ConnectionManager
from .handlers import SessionHandlers
from .recording import RecordingArbiter
from .rooms import RoomManager
from .signaling import SignalRelay


def create_socketio_server(settings: Settings) -> socketio.AsyncServer:
    """Build the Socket.IO server with the transport settings."""
    return socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=settings.cors_origins,
        cors_credentials=settings.allow_credentials,
        transports=settings.transports,
        ping_timeout=settings.ping_timeout,
        ping_interval=settings.ping_interval,
        max_http_buffer_size=settings.max_http_buffer_size,
        logger=settings.socketio_logger,
        engineio_logger=False
    )


class SignalingServer:
    """
    Owns all coordination state for one process.

    Connection attributes, room records, recorder locks and chat history all
    live here and are lost on restart.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        sio: Optional[socketio.AsyncServer] = None
    ):
        self.settings = settings or get_settings()
        self.sio = sio or create_socketio_server(self.settings)

        # Core components
        self.connection_manager = ConnectionManager()
        self.room_manager = RoomManager(self.connection_manager)
        self.recording_arbiter = RecordingArbiter()
        self.chat_history = ChatHistoryStore()
        self.signal_relay = SignalRelay(self.sio, self.connection_manager)
        self.handlers = SessionHandlers(
            self.sio,
            self.connection_manager,
            self.room_manager,
            self.recording_arbiter,
            self.chat_history,
            self.signal_relay
        )
        self.handlers.register()

        self.started_at = datetime.utcnow()
        self._started_monotonic = time.monotonic()
        self.is_shutting_down = False

    def uptime_seconds(self) -> float:
        return time.monotonic() - self._started_monotonic

    def connection_count(self) -> int:
        return self.connection_manager.active_count()

    def get_server_stats(self) -> Dict[str, Any]:
        """Get server statistics."""
        return {
            "started_at": self.started_at.isoformat(),
            "uptime_seconds": self.uptime_seconds(),
            "events": dict(self.handlers.stats),
            "connections": self.connection_manager.get_statistics(),
            "rooms": self.room_manager.get_statistics(),
            "chat": self._chat_statistics(),
            "signals": dict(self.signal_relay.stats),
            "active_recordings": len(self.recording_arbiter.active_recordings()),
        }

    def _chat_statistics(self) -> Dict[str, Any]:
        # Posting to a room nobody has joined keeps a buffer until that room
        # next empties; these are counted so they stay visible.
        chat = self.chat_history.get_statistics()
        chat["rooms_without_members"] = sum(
            1 for room_id in self.chat_history.room_ids()
            if self.room_manager.get_room(room_id) is None
        )
        return chat

    def log_startup_banner(self):
        logger.info(f"Server running on {self.settings.host}:{self.settings.port}")
        logger.info(f"CORS enabled for: {', '.join(self.settings.cors_origins)}")
        logger.info(f"Socket.IO transports: {', '.join(self.settings.transports)}")
        logger.info(
            f"Ping timeout: {self.settings.ping_timeout}s, interval: {self.settings.ping_interval}s"
        )

    async def shutdown(self):
        """Disconnect every client and stop the Socket.IO background tasks."""
        if self.is_shutting_down:
            return
        self.is_shutting_down = True

        connection_ids = self.connection_manager.all_ids()
        logger.info(f"Shutting down signaling server, closing {len(connection_ids)} connections...")

        for connection_id in connection_ids:
            await self.sio.disconnect(connection_id)

        await self.sio.shutdown()

        logger.info("Signaling server shutdown complete")
