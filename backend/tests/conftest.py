"""
Pytest configuration and shared fixtures for the signaling server tests.
"""

import asyncio

import pytest
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Optional, Set

from collabsphere.core.config import Settings
from collabsphere.websocket import SignalingServer


@dataclass(frozen=True)
class Emit:
    """One emit call as seen by the transport."""
    event: str
    data: Any
    target: Optional[str]
    recipients: FrozenSet[str]


class FakeSocketServer:
    """
    In-memory stand-in for ``socketio.AsyncServer``.

    Tracks connected sids and room membership and resolves ``to``/``room``
    and ``skip_sid`` into concrete recipients the way python-socketio does.
    """

    def __init__(self):
        self.handlers: Dict[str, Any] = {}
        self.connected: Set[str] = set()
        self.rooms: Dict[str, Set[str]] = {}
        self.emitted: List[Emit] = []
        self.shutdown_called = False

    # Server API used by the application

    def on(self, event, handler=None, namespace=None):
        self.handlers[event] = handler

    async def enter_room(self, sid, room, namespace=None):
        self.rooms.setdefault(room, set()).add(sid)

    async def leave_room(self, sid, room, namespace=None):
        members = self.rooms.get(room)
        if members is not None:
            members.discard(sid)
            if not members:
                del self.rooms[room]

    async def emit(self, event, data=None, to=None, room=None, skip_sid=None, namespace=None, callback=None):
        target = to if to is not None else room
        if target is None:
            recipients = set(self.connected)
        elif target in self.rooms:
            recipients = set(self.rooms[target])
        elif target in self.connected:
            recipients = {target}
        else:
            recipients = set()

        if skip_sid is not None:
            recipients.discard(skip_sid)

        self.emitted.append(Emit(event, data, target, frozenset(recipients)))

        # python-socketio resolves recipients first, then awaits delivery
        if recipients:
            await asyncio.sleep(0)

    async def disconnect(self, sid, namespace=None):
        if sid not in self.connected:
            return
        await self.handlers["disconnect"](sid, "server disconnect")
        self._drop(sid)

    async def shutdown(self):
        self.shutdown_called = True

    # Client-side helpers for tests

    async def connect_client(self, sid: str):
        self.connected.add(sid)
        return await self.handlers["connect"](sid, {}, None)

    async def client_disconnect(self, sid: str, reason: str = "transport close"):
        await self.handlers["disconnect"](sid, reason)
        self._drop(sid)

    async def send(self, sid: str, event: str, *args):
        return await self.handlers[event](sid, *args)

    def received(self, sid: str, event: Optional[str] = None) -> List[Any]:
        """Payloads delivered to ``sid``, optionally filtered by event name."""
        return [
            emit.data for emit in self.emitted
            if sid in emit.recipients and (event is None or emit.event == event)
        ]

    def events_for(self, sid: str) -> List[str]:
        return [emit.event for emit in self.emitted if sid in emit.recipients]

    def clear(self):
        self.emitted.clear()

    def _drop(self, sid: str):
        self.connected.discard(sid)
        for room in list(self.rooms):
            self.rooms[room].discard(sid)
            if not self.rooms[room]:
                del self.rooms[room]


@pytest.fixture
def test_settings():
    """Settings isolated from the developer's environment."""
    return Settings(_env_file=None, environment="testing", frontend_url=None)


@pytest.fixture
def fake_sio():
    return FakeSocketServer()


@pytest.fixture
def signaling_server(test_settings, fake_sio):
    """A fully wired signaling server on top of the fake transport."""
    return SignalingServer(settings=test_settings, sio=fake_sio)


@pytest.fixture
def connected(fake_sio, signaling_server):
    """Connect clients by id: ``await connected("A", "B")``."""
    async def _connect(*sids):
        for sid in sids:
            await fake_sio.connect_client(sid)
    return _connect


@pytest.fixture
def joined(fake_sio, connected):
    """Connect clients and join them to a room, then clear recorded emits."""
    async def _join(room_id, *sids, names=None):
        names = names or {}
        await connected(*[sid for sid in sids if sid not in fake_sio.connected])
        for sid in sids:
            await fake_sio.send(sid, "joinRoom", {"roomId": room_id, "name": names.get(sid, sid)})
        fake_sio.clear()
    return _join
