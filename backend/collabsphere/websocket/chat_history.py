"""
Per-room bounded chat transcript.
"""

from collections import deque
from typing import Deque, Dict, List

from loguru import logger

from .events import ChatMessage


MAX_CHAT_HISTORY = 100


class ChatHistoryStore:
    """Ordered, bounded chat history for every room that has one."""

    def __init__(self, max_messages: int = MAX_CHAT_HISTORY):
        if max_messages < 1:
            raise ValueError("max_messages must be positive")
        self.max_messages = max_messages
        self._history: Dict[str, Deque[ChatMessage]] = {}
        self.stats = {
            "total_messages": 0,
            "evicted_messages": 0,
            "histories_dropped": 0,
        }

    def append(self, room_id: str, message: ChatMessage) -> ChatMessage:
        """
        Append a message to a room's transcript, creating it if absent.

        Once the cap is reached the oldest message is evicted first.
        """
        buffer = self._history.get(room_id)
        if buffer is None:
            buffer = self._history[room_id] = deque(maxlen=self.max_messages)

        if len(buffer) == self.max_messages:
            self.stats["evicted_messages"] += 1

        buffer.append(message)
        self.stats["total_messages"] += 1
        return message

    def get(self, room_id: str) -> List[ChatMessage]:
        """Return a copy of the room's transcript, oldest first."""
        return list(self._history.get(room_id, ()))

    def has_history(self, room_id: str) -> bool:
        return room_id in self._history

    def room_ids(self) -> List[str]:
        return list(self._history)

    def drop(self, room_id: str) -> bool:
        """Delete a room's transcript entirely. Returns True if one existed."""
        removed = self._history.pop(room_id, None)
        if removed is None:
            return False

        self.stats["histories_dropped"] += 1
        logger.info(f"Dropped chat history for room {room_id} ({len(removed)} messages)")
        return True

    def get_statistics(self) -> Dict[str, int]:
        return {
            **self.stats,
            "rooms_with_history": len(self._history),
        }
