"""
Tests for event names and inbound payload validation.
"""

import pytest

from collabsphere.websocket.events import (
    ClientEvent, ServerEvent, ChatMessage, InvalidPayloadError,
    JoinRoomPayload, ChatMessagePayload, SignalPayload, ScreenSharePayload,
    parse_payload, parse_room_id
)


class TestEventNames:

    def test_wire_names(self):
        assert ClientEvent.JOIN_ROOM.value == "joinRoom"
        assert ClientEvent.REQUEST_START_RECORD.value == "requestStartRecord"
        assert ServerEvent.IDENTITY.value == "me"
        assert ServerEvent.PEER_SCREEN_SHARE_STATUS.value == "peerScreenShareStatus"


class TestParsePayload:
    """Test suite for boundary validation."""

    def test_aliases_are_accepted(self):
        payload = parse_payload(ClientEvent.JOIN_ROOM, JoinRoomPayload, {"roomId": "R1", "name": "Alice"})

        assert payload.room_id == "R1"
        assert payload.name == "Alice"

    def test_unknown_fields_ignored(self):
        payload = parse_payload(
            ClientEvent.JOIN_ROOM, JoinRoomPayload, {"roomId": "R1", "avatar": "x.png"}
        )
        assert payload.name is None

    @pytest.mark.parametrize("data", [None, "R1", ["R1"], {}, {"roomId": ""}, {"name": "Alice"}])
    def test_invalid_join_payloads(self, data):
        with pytest.raises(InvalidPayloadError) as exc_info:
            parse_payload(ClientEvent.JOIN_ROOM, JoinRoomPayload, data)

        assert exc_info.value.event is ClientEvent.JOIN_ROOM

    def test_chat_message_requires_text(self):
        with pytest.raises(InvalidPayloadError):
            parse_payload(ClientEvent.CHAT_MESSAGE, ChatMessagePayload, {"roomId": "R1", "sender": "A"})

    def test_chat_message_rejects_empty_body(self):
        with pytest.raises(InvalidPayloadError):
            parse_payload(ClientEvent.CHAT_MESSAGE, ChatMessagePayload, {"roomId": "R1", "message": ""})

    def test_signal_payload_is_opaque(self):
        blob = {"type": "offer", "sdp": "v=0...", "nested": [1, {"x": None}]}

        payload = parse_payload(ClientEvent.SIGNAL, SignalPayload, {"targetId": "B", "signal": blob})

        assert payload.signal == blob

    def test_screen_share_requires_boolean(self):
        with pytest.raises(InvalidPayloadError):
            parse_payload(
                ClientEvent.SCREEN_SHARE_STATUS, ScreenSharePayload, {"roomId": "R1", "isSharing": "yes"}
            )

        payload = parse_payload(
            ClientEvent.SCREEN_SHARE_STATUS, ScreenSharePayload, {"roomId": "R1", "isSharing": True}
        )
        assert payload.is_sharing is True


class TestParseRoomId:

    def test_valid_room_id(self):
        assert parse_room_id(ClientEvent.REQUEST_CHAT_HISTORY, "R1") == "R1"

    @pytest.mark.parametrize("data", [None, "", 42, {"roomId": "R1"}])
    def test_invalid_room_ids(self, data):
        with pytest.raises(InvalidPayloadError):
            parse_room_id(ClientEvent.REQUEST_CHAT_HISTORY, data)


class TestChatMessage:

    def test_wire_shape(self):
        message = ChatMessage(sender="Alice", message="hi", user_id="A")

        data = message.to_dict()

        assert set(data) == {"sender", "message", "timestamp", "userId"}
        assert data["userId"] == "A"
        assert data["timestamp"].endswith("Z")

    def test_is_immutable(self):
        message = ChatMessage(sender="Alice", message="hi", user_id="A")

        with pytest.raises(AttributeError):
            message.message = "changed"
