"""
Unicast relay for peer negotiation payloads.
"""

from typing import Any

import socketio
from loguru import logger

from .connection_manager import ConnectionManager
from .events import ServerEvent


class SignalRelay:
    """
    Forwards opaque negotiation payloads between two connections.

    Delivery is fire-and-forget: a missing target is dropped without telling
    the sender.
    """

    def __init__(self, sio: socketio.AsyncServer, connection_manager: ConnectionManager):
        self.sio = sio
        self.connection_manager = connection_manager
        self.stats = {
            "signals_relayed": 0,
            "track_requests_relayed": 0,
            "undeliverable": 0,
        }

    async def relay(self, sender_id: str, target_id: str, signal: Any) -> bool:
        """Forward ``{from, signal}`` to ``target_id``. Returns False if the target is gone."""
        if not self.connection_manager.exists(target_id):
            self.stats["undeliverable"] += 1
            logger.debug(f"Dropping signal from {sender_id}: target {target_id} not connected")
            return False

        await self.sio.emit(
            ServerEvent.SIGNAL.value,
            {"from": sender_id, "signal": signal},
            to=target_id,
        )
        self.stats["signals_relayed"] += 1
        return True

    async def request_track(self, requester_id: str, target_id: str) -> bool:
        """Ask ``target_id`` to resend its screen track to ``requester_id``."""
        if not self.connection_manager.exists(target_id):
            self.stats["undeliverable"] += 1
            logger.debug(f"Dropping track request from {requester_id}: target {target_id} not connected")
            return False

        logger.info(f"{requester_id} requesting screen track from {target_id}")
        await self.sio.emit(
            ServerEvent.REQUEST_SCREEN_TRACK.value,
            {"requesterId": requester_id},
            to=target_id,
        )
        self.stats["track_requests_relayed"] += 1
        return True
