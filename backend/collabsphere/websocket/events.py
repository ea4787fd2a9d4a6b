"""
Real-time event definitions for the signaling server.

Every inbound and outbound event name is a member of a closed enum, and every
structured inbound payload has a pydantic schema that is checked before the
payload reaches component logic.
"""

from datetime import datetime, timezone
from typing import Dict, Any, Optional, Type, TypeVar
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, StrictBool, ValidationError


DEFAULT_DISPLAY_NAME = "Anonymous"


class ClientEvent(Enum):
    """Events received from clients."""

    # System events raised by the transport
    CONNECT = "connect"
    DISCONNECT = "disconnect"

    # Presence
    JOIN_ROOM = "joinRoom"
    LEAVE_ROOM = "leaveRoom"

    # Chat
    CHAT_MESSAGE = "chatMessage"
    REQUEST_CHAT_HISTORY = "requestChatHistory"

    # Negotiation relay
    SIGNAL = "signal"
    REQUEST_SCREEN_TRACK = "requestScreenTrack"

    # Screen sharing and recording
    SCREEN_SHARE_STATUS = "screenShareStatus"
    REQUEST_START_RECORD = "requestStartRecord"
    REQUEST_STOP_RECORD = "requestStopRecord"


class ServerEvent(Enum):
    """Events emitted to clients."""

    IDENTITY = "me"
    ALL_USERS = "allUsers"
    USER_JOINED = "userJoined"
    USER_LEFT = "userLeft"
    CHAT_MESSAGE = "chatMessage"
    CHAT_HISTORY = "chatHistory"
    SIGNAL = "signal"
    REQUEST_SCREEN_TRACK = "requestScreenTrack"
    PEER_SCREEN_SHARE_STATUS = "peerScreenShareStatus"
    RECORD_STARTED = "recordStarted"
    RECORD_STOPPED = "recordStopped"


class InvalidPayloadError(ValueError):
    """Raised when an inbound payload is missing or malformed."""

    def __init__(self, event: ClientEvent, reason: str):
        self.event = event
        self.reason = reason
        super().__init__(f"Invalid {event.value} payload: {reason}")


# Inbound payload schemas

class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class JoinRoomPayload(_Payload):
    """Payload of ``joinRoom``."""
    room_id: str = Field(..., alias="roomId", min_length=1, description="Room to join")
    name: Optional[str] = Field(None, description="Display name shown to other members")


class ChatMessagePayload(_Payload):
    """Payload of ``chatMessage``. Empty message bodies are rejected."""
    room_id: str = Field(..., alias="roomId", min_length=1)
    sender: Optional[str] = Field(None, description="Sender label shown in the transcript")
    message: str = Field(..., min_length=1)


class SignalPayload(_Payload):
    """Payload of ``signal``; ``signal`` is opaque and never inspected."""
    target_id: str = Field(..., alias="targetId", min_length=1)
    signal: Any = None


class ScreenTrackRequestPayload(_Payload):
    """Payload of ``requestScreenTrack``."""
    target_id: str = Field(..., alias="targetId", min_length=1)


class ScreenSharePayload(_Payload):
    """Payload of ``screenShareStatus``. ``isSharing`` must be a JSON boolean, not merely truthy."""
    room_id: str = Field(..., alias="roomId", min_length=1)
    is_sharing: StrictBool = Field(..., alias="isSharing")


PayloadT = TypeVar("PayloadT", bound=BaseModel)


def parse_payload(event: ClientEvent, model: Type[PayloadT], data: Any) -> PayloadT:
    """
    Validate a structured payload against its schema.

    Raises:
        InvalidPayloadError: if ``data`` is not a mapping or fails validation
    """
    if not isinstance(data, dict):
        raise InvalidPayloadError(event, f"expected an object, got {type(data).__name__}")

    try:
        return model.model_validate(data)
    except ValidationError as e:
        fields = ", ".join(".".join(str(loc) for loc in err["loc"]) for err in e.errors())
        raise InvalidPayloadError(event, f"invalid fields: {fields}") from e


def parse_room_id(event: ClientEvent, data: Any) -> str:
    """Validate a bare room identifier payload."""
    if not isinstance(data, str) or not data:
        raise InvalidPayloadError(event, "room id must be a non-empty string")
    return data


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a ``Z`` suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# Outbound values

@dataclass(frozen=True)
class ChatMessage:
    """A single transcript entry."""
    sender: Optional[str]
    message: str
    user_id: str
    timestamp: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sender": self.sender,
            "message": self.message,
            "timestamp": self.timestamp,
            "userId": self.user_id,
        }


@dataclass(frozen=True)
class RecordResult:
    """Direct answer to ``requestStartRecord``."""
    success: bool
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"success": self.success}
        if self.message:
            result["message"] = self.message
        return result
