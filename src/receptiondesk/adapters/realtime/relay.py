"""
In-process real-time relay.

Sessions (one websocket per browser tab) join rooms keyed by the canonical
doctor id. Mutations publish ``{"event": ..., "data": ...}`` to a room and
every session in it receives the message. Rooms live in this process only.
"""

import asyncio
import logging
from typing import Any, Dict, List, Protocol, Set

from ...application.ports.services.realtime_publisher import RealtimePublisher
from ...observability.metrics import record_relay_publish

logger = logging.getLogger(__name__)


class RelaySession(Protocol):
    """Anything that can receive a JSON message, e.g. a Starlette WebSocket."""

    async def send_json(self, data: Any) -> None:
        ...


class Relay(RealtimePublisher):
    """Room registry and fan-out."""

    def __init__(self, send_timeout_seconds: float = 5.0):
        self._rooms: Dict[str, Set[RelaySession]] = {}
        self._memberships: Dict[RelaySession, Set[str]] = {}
        self._room_locks: Dict[str, asyncio.Lock] = {}
        self._send_timeout = send_timeout_seconds

    def join(self, session: RelaySession, doctor_id: str) -> None:
        """Add session to the doctor's room; joining twice is a no-op."""
        self._rooms.setdefault(doctor_id, set()).add(session)
        self._memberships.setdefault(session, set()).add(doctor_id)
        logger.debug("Session joined room %s (%d members)", doctor_id, len(self._rooms[doctor_id]))

    def leave(self, session: RelaySession, doctor_id: str) -> None:
        """Remove session from the room; safe when it is not a member."""
        members = self._rooms.get(doctor_id)
        if members is not None:
            members.discard(session)
            if not members:
                del self._rooms[doctor_id]
                self._room_locks.pop(doctor_id, None)
        rooms = self._memberships.get(session)
        if rooms is not None:
            rooms.discard(doctor_id)
            if not rooms:
                del self._memberships[session]

    def leave_all(self, session: RelaySession) -> None:
        for doctor_id in list(self._memberships.get(session, ())):
            self.leave(session, doctor_id)

    def room_size(self, doctor_id: str) -> int:
        return len(self._rooms.get(doctor_id, ()))

    def rooms(self) -> Dict[str, int]:
        return {doctor_id: len(members) for doctor_id, members in self._rooms.items()}

    @property
    def session_count(self) -> int:
        return len(self._memberships)

    def rooms_of(self, session: RelaySession) -> List[str]:
        return sorted(self._memberships.get(session, ()))

    async def publish(self, doctor_id: str, event: str, data: Dict[str, Any]) -> int:
        """Send to every session in the room, in call order per room.

        At-most-once: a session whose send fails is dropped from every room and
        the message is not retried. Never raises.
        """
        members = self._rooms.get(doctor_id)
        if not members:
            logger.debug("No sessions in room %s for %s", doctor_id, event)
            return 0

        message = {"event": event, "data": data}
        lock = self._room_locks.setdefault(doctor_id, asyncio.Lock())
        delivered = 0
        broken: List[RelaySession] = []
        async with lock:
            for session in list(members):
                try:
                    await asyncio.wait_for(session.send_json(message), timeout=self._send_timeout)
                    delivered += 1
                except Exception as exc:  # noqa: BLE001
                    logger.warning("Dropping relay session after failed send to %s: %s", doctor_id, exc)
                    broken.append(session)

        for session in broken:
            self.leave_all(session)
        record_relay_publish(event, delivered, len(broken))
        logger.info("Published %s to room %s (%d delivered)", event, doctor_id, delivered)
        return delivered

