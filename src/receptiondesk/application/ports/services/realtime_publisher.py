"""
Real-time publisher port.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

APPOINTMENT_UPDATE = "appointment-update"
QUEUE_UPDATE = "queue-update"


class RealtimePublisher(ABC):
    """Fan-out of events to sessions subscribed to a doctor.

    Delivery is at-most-once and best effort: publish never raises and
    nothing is queued for sessions that are not connected. Clients must treat
    the HTTP read endpoints as the source of truth.
    """

    @abstractmethod
    async def publish(self, doctor_id: str, event: str, data: Dict[str, Any]) -> int:
        """Deliver event to the doctor's room; returns the number of sessions reached."""
        pass
