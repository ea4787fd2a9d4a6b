"""
Single-recorder-per-room arbitration.
"""

from typing import Dict, List, Optional

from loguru import logger

from .events import RecordResult


ALREADY_RECORDING_MESSAGE = "Someone is already recording."
NOT_IN_ROOM_MESSAGE = "Join the room before recording."


class RecordingArbiter:
    """Tracks which connection, if any, is recording each room."""

    def __init__(self):
        self._recorders: Dict[str, str] = {}  # room_id -> connection_id

    def start(self, room_id: str, connection_id: str) -> RecordResult:
        """Claim the recorder lock for ``room_id`` if nobody holds it."""
        holder = self._recorders.get(room_id)
        if holder is not None:
            logger.info(
                f"Record request from {connection_id} rejected: {holder} is recording {room_id}"
            )
            return RecordResult(success=False, message=ALREADY_RECORDING_MESSAGE)

        self._recorders[room_id] = connection_id
        logger.info(f"{connection_id} started recording {room_id}")
        return RecordResult(success=True)

    def stop(self, room_id: str, connection_id: str) -> bool:
        """
        Release the lock only if ``connection_id`` holds it.

        Requests from anyone else are ignored so a stale stop cannot end
        another member's recording.
        """
        if self._recorders.get(room_id) != connection_id:
            return False

        del self._recorders[room_id]
        logger.info(f"{connection_id} stopped recording {room_id}")
        return True

    def release_all(self, connection_id: str) -> List[str]:
        """Release every lock held by ``connection_id`` and return the affected rooms."""
        rooms = [room_id for room_id, holder in self._recorders.items() if holder == connection_id]
        for room_id in rooms:
            del self._recorders[room_id]
            logger.info(f"Released recording lock on {room_id} held by {connection_id}")
        return rooms

    def recorder_for(self, room_id: str) -> Optional[str]:
        return self._recorders.get(room_id)

    def active_recordings(self) -> Dict[str, str]:
        return dict(self._recorders)
