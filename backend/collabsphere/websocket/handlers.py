"""
Real-time event handlers and connection lifecycle.

Each handler performs its state changes synchronously before its first
``await`` so that roster snapshots, lock checks and history updates are never
interleaved with another connection's event.
"""

from typing import Any, Awaitable, Callable, Dict, Optional

import socketio
from loguru import logger

from .chat_history import ChatHistoryStore
from .connection_manager import Connection, ConnectionManager
from .events import (
    ClientEvent, ServerEvent, ChatMessage, RecordResult, InvalidPayloadError,
    JoinRoomPayload, ChatMessagePayload, SignalPayload, ScreenTrackRequestPayload,
    ScreenSharePayload, parse_payload, parse_room_id
)
from .recording import RecordingArbiter, NOT_IN_ROOM_MESSAGE
from .rooms import RoomManager, Departure
from .signaling import SignalRelay


INVALID_ROOM_MESSAGE = "A room id is required."

EventHandler = Callable[..., Awaitable[Any]]


class SessionHandlers:
    """Dispatches client events to the presence, chat, relay and recording components."""

    def __init__(
        self,
        sio: socketio.AsyncServer,
        connection_manager: ConnectionManager,
        room_manager: RoomManager,
        recording_arbiter: RecordingArbiter,
        chat_history: ChatHistoryStore,
        signal_relay: SignalRelay
    ):
        self.sio = sio
        self.connection_manager = connection_manager
        self.room_manager = room_manager
        self.recording_arbiter = recording_arbiter
        self.chat_history = chat_history
        self.signal_relay = signal_relay

        # Event handler registry
        self.handlers: Dict[ClientEvent, EventHandler] = {
            # Connection lifecycle
            ClientEvent.CONNECT: self.handle_connect,
            ClientEvent.DISCONNECT: self.handle_disconnect,

            # Presence
            ClientEvent.JOIN_ROOM: self.handle_join_room,
            ClientEvent.LEAVE_ROOM: self.handle_leave_room,

            # Chat
            ClientEvent.CHAT_MESSAGE: self.handle_chat_message,
            ClientEvent.REQUEST_CHAT_HISTORY: self.handle_request_chat_history,

            # Negotiation relay
            ClientEvent.SIGNAL: self.handle_signal,
            ClientEvent.REQUEST_SCREEN_TRACK: self.handle_request_screen_track,

            # Screen sharing and recording
            ClientEvent.SCREEN_SHARE_STATUS: self.handle_screen_share_status,
            ClientEvent.REQUEST_START_RECORD: self.handle_request_start_record,
            ClientEvent.REQUEST_STOP_RECORD: self.handle_request_stop_record,
        }

        self.stats = {
            "events_processed": 0,
            "invalid_payloads": 0,
            "handler_errors": 0,
        }

    def register(self, sio: Optional[socketio.AsyncServer] = None):
        """Attach every handler to the Socket.IO server."""
        sio = sio or self.sio
        for event, handler in self.handlers.items():
            sio.on(event.value, handler=self.dispatcher(event, handler))

    def dispatcher(self, event: ClientEvent, handler: EventHandler) -> EventHandler:
        """
        Wrap a handler so that bad payloads and handler failures never reach
        the transport loop.
        """
        async def dispatch(sid, *args):
            self.stats["events_processed"] += 1
            try:
                return await handler(sid, *args)
            except InvalidPayloadError as e:
                self.stats["invalid_payloads"] += 1
                logger.warning(f"Ignoring {event.value} from {sid}: {e.reason}")
            except Exception:
                self.stats["handler_errors"] += 1
                logger.exception(f"Error handling {event.value} from {sid}")
            return None

        dispatch.__name__ = f"on_{event.name.lower()}"
        return dispatch

    def _require_connection(self, sid: str, event: ClientEvent) -> Optional[Connection]:
        connection = self.connection_manager.get(sid)
        if connection is None:
            logger.warning(f"Ignoring {event.value} from unregistered connection {sid}")
        return connection

    def _cleanup_departure(self, departure: Departure):
        if departure.room_empty:
            logger.info(f"Room {departure.room_id} is empty, cleaning up chat history")
            self.chat_history.drop(departure.room_id)

    async def _broadcast_user_left(self, sid: str, room_id: str):
        await self.sio.emit(ServerEvent.USER_LEFT.value, sid, to=room_id, skip_sid=sid)

    # Connection lifecycle

    async def handle_connect(self, sid: str, environ: Optional[dict] = None, auth: Any = None):
        """Register the connection and tell it its own id."""
        self.connection_manager.connect(sid)
        logger.info(f"New client connected: {sid}")

        await self.sio.emit(ServerEvent.IDENTITY.value, sid, to=sid)

    async def handle_disconnect(self, sid: str, reason: Optional[str] = None):
        """
        Clean up after a vanished connection.

        Cascade: notify the room, drop its history if it is now empty, clear
        the sharing flag, then release any recorder lock and announce it.
        """
        logger.info(f"Client disconnected: {sid}, reason: {reason}")

        connection = self.connection_manager.get(sid)
        if connection is None:
            return

        departure = self.room_manager.leave(sid)
        if departure:
            self._cleanup_departure(departure)

        connection.is_sharing = False
        released_rooms = self.recording_arbiter.release_all(sid)
        self.connection_manager.disconnect(sid)

        if departure:
            await self._broadcast_user_left(sid, departure.room_id)

        for room_id in released_rooms:
            await self.sio.emit(ServerEvent.RECORD_STOPPED.value, {"userId": sid}, to=room_id)

    # Presence

    async def handle_join_room(self, sid: str, data: Any = None):
        """Join a room, send the joiner its roster and announce it to the others."""
        payload = parse_payload(ClientEvent.JOIN_ROOM, JoinRoomPayload, data)
        if self._require_connection(sid, ClientEvent.JOIN_ROOM) is None:
            return

        result = self.room_manager.join(sid, payload.room_id, payload.name)
        if result.previous:
            self._cleanup_departure(result.previous)
            await self.sio.leave_room(sid, result.previous.room_id)
        await self.sio.enter_room(sid, result.room_id)

        # Transport groups now match the room records. userJoined goes out
        # first so its recipients are exactly the members the snapshot lists.
        await self.sio.emit(
            ServerEvent.USER_JOINED.value,
            {"id": sid, "name": result.name},
            to=result.room_id,
            skip_sid=sid,
        )
        await self.sio.emit(ServerEvent.ALL_USERS.value, result.snapshot.to_dict(), to=sid)
        if result.previous:
            await self._broadcast_user_left(sid, result.previous.room_id)

    async def handle_leave_room(self, sid: str, data: Any = None):
        """Leave the current room. A no-op when not in one."""
        departure = self.room_manager.leave(sid)
        if departure is None:
            return

        self._cleanup_departure(departure)

        await self.sio.leave_room(sid, departure.room_id)
        await self._broadcast_user_left(sid, departure.room_id)

    # Chat

    async def handle_chat_message(self, sid: str, data: Any = None):
        """
        Append to the room transcript and broadcast to the room, sender included.

        Posting does not require membership; a buffer for a room with no members
        is reported as ``rooms_without_members`` in the server stats.
        """
        payload = parse_payload(ClientEvent.CHAT_MESSAGE, ChatMessagePayload, data)
        connection = self._require_connection(sid, ClientEvent.CHAT_MESSAGE)
        if connection is None:
            return

        message = ChatMessage(
            sender=payload.sender if payload.sender is not None else connection.name,
            message=payload.message,
            user_id=sid,
        )
        self.chat_history.append(payload.room_id, message)

        await self.sio.emit(ServerEvent.CHAT_MESSAGE.value, message.to_dict(), to=payload.room_id)

    async def handle_request_chat_history(self, sid: str, data: Any = None):
        """Send the room's transcript to the requester only."""
        room_id = parse_room_id(ClientEvent.REQUEST_CHAT_HISTORY, data)
        history = [message.to_dict() for message in self.chat_history.get(room_id)]

        await self.sio.emit(ServerEvent.CHAT_HISTORY.value, history, to=sid)
        logger.info(f"Sent {len(history)} messages to {sid}")

    # Negotiation relay

    async def handle_signal(self, sid: str, data: Any = None):
        payload = parse_payload(ClientEvent.SIGNAL, SignalPayload, data)
        await self.signal_relay.relay(sid, payload.target_id, payload.signal)

    async def handle_request_screen_track(self, sid: str, data: Any = None):
        payload = parse_payload(ClientEvent.REQUEST_SCREEN_TRACK, ScreenTrackRequestPayload, data)
        await self.signal_relay.request_track(sid, payload.target_id)

    # Screen sharing and recording

    async def handle_screen_share_status(self, sid: str, data: Any = None):
        """Update the sharing flag and announce it to the whole room, sender included."""
        payload = parse_payload(ClientEvent.SCREEN_SHARE_STATUS, ScreenSharePayload, data)
        connection = self._require_connection(sid, ClientEvent.SCREEN_SHARE_STATUS)
        if connection is None:
            return

        self.connection_manager.set_sharing(sid, payload.is_sharing)
        logger.info(
            f"{connection.name} ({sid}) {'started' if payload.is_sharing else 'stopped'} screen sharing"
        )

        await self.sio.emit(
            ServerEvent.PEER_SCREEN_SHARE_STATUS.value,
            {"userId": sid, "isSharing": payload.is_sharing},
            to=payload.room_id,
        )

    async def handle_request_start_record(self, sid: str, data: Any = None) -> Dict[str, Any]:
        """Claim the room's recorder lock; the result is returned as the event ack."""
        try:
            room_id = parse_room_id(ClientEvent.REQUEST_START_RECORD, data)
        except InvalidPayloadError as e:
            logger.warning(f"Rejecting record request from {sid}: {e.reason}")
            return RecordResult(success=False, message=INVALID_ROOM_MESSAGE).to_dict()

        if not self.room_manager.is_member(sid, room_id):
            return RecordResult(success=False, message=NOT_IN_ROOM_MESSAGE).to_dict()

        result = self.recording_arbiter.start(room_id, sid)
        if result.success:
            await self.sio.emit(ServerEvent.RECORD_STARTED.value, {"userId": sid}, to=room_id)

        return result.to_dict()

    async def handle_request_stop_record(self, sid: str, data: Any = None):
        """Release the recorder lock if the caller holds it; otherwise ignore."""
        room_id = parse_room_id(ClientEvent.REQUEST_STOP_RECORD, data)

        if self.recording_arbiter.stop(room_id, sid):
            await self.sio.emit(ServerEvent.RECORD_STOPPED.value, {"userId": sid}, to=room_id)
