"""
Tests for the per-room chat history buffer.
"""

import pytest

from collabsphere.websocket.chat_history import ChatHistoryStore, MAX_CHAT_HISTORY
from collabsphere.websocket.events import ChatMessage


def make_message(index: int, user_id: str = "A") -> ChatMessage:
    return ChatMessage(sender=user_id, message=f"message {index}", user_id=user_id)


class TestChatHistoryStore:
    """Test suite for ChatHistoryStore."""

    def test_append_creates_buffer(self):
        store = ChatHistoryStore()

        assert not store.has_history("R1")
        store.append("R1", make_message(0))

        assert store.has_history("R1")
        assert [m.message for m in store.get("R1")] == ["message 0"]

    def test_history_is_ordered_oldest_first(self):
        store = ChatHistoryStore()
        for i in range(5):
            store.append("R1", make_message(i))

        assert [m.message for m in store.get("R1")] == [f"message {i}" for i in range(5)]

    def test_unknown_room_returns_empty_list(self):
        assert ChatHistoryStore().get("nowhere") == []

    def test_get_returns_a_copy(self):
        store = ChatHistoryStore()
        store.append("R1", make_message(0))

        snapshot = store.get("R1")
        snapshot.clear()

        assert len(store.get("R1")) == 1

    def test_rooms_are_independent(self):
        store = ChatHistoryStore()
        store.append("R1", make_message(0))
        store.append("R2", make_message(1))

        assert [m.message for m in store.get("R1")] == ["message 0"]
        assert [m.message for m in store.get("R2")] == ["message 1"]

    def test_cap_evicts_oldest_first(self):
        store = ChatHistoryStore()
        for i in range(MAX_CHAT_HISTORY + 1):
            store.append("R1", make_message(i))

        history = store.get("R1")
        assert MAX_CHAT_HISTORY == 100
        assert len(history) == 100
        assert history[0].message == "message 1"
        assert history[-1].message == "message 100"
        assert store.get_statistics()["evicted_messages"] == 1

    def test_history_never_exceeds_cap(self):
        store = ChatHistoryStore(max_messages=3)
        for i in range(10):
            store.append("R1", make_message(i))
            assert len(store.get("R1")) <= 3

        assert [m.message for m in store.get("R1")] == ["message 7", "message 8", "message 9"]

    def test_drop_deletes_history(self):
        store = ChatHistoryStore()
        store.append("R1", make_message(0))

        assert store.drop("R1") is True
        assert not store.has_history("R1")
        assert store.get("R1") == []
        assert store.drop("R1") is False

    def test_append_after_drop_starts_fresh(self):
        store = ChatHistoryStore()
        for i in range(3):
            store.append("R1", make_message(i))
        store.drop("R1")

        store.append("R1", make_message(99))

        assert [m.message for m in store.get("R1")] == ["message 99"]

    def test_invalid_capacity_rejected(self):
        with pytest.raises(ValueError):
            ChatHistoryStore(max_messages=0)

    def test_statistics(self):
        store = ChatHistoryStore()
        store.append("R1", make_message(0))
        store.append("R2", make_message(1))
        store.drop("R2")

        stats = store.get_statistics()
        assert stats["total_messages"] == 2
        assert stats["histories_dropped"] == 1
        assert stats["rooms_with_history"] == 1
