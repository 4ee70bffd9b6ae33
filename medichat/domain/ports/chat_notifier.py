"""Port (interface) for the real-time delivery channel."""

from abc import ABC, abstractmethod
from typing import Any


SUPER_ADMIN_ROOM = "super-admin"


def session_room(tenant_id: str, session_id: str) -> str:
    """Room of one visitor's connected widget."""
    return f"session:{tenant_id}:{session_id}"


def agents_room(tenant_id: str) -> str:
    """Room of a hospital's agent consoles."""
    return f"agents:{tenant_id}"


class ChatNotifier(ABC):
    """
    Best-effort, at-most-once event publisher.

    Publishing never raises to the caller; a missed event is recovered by
    the client re-fetching session state.
    """

    @abstractmethod
    async def publish(self, room: str, event: str, data: dict[str, Any]) -> int:
        """
        Push an event to every connection in a room.

        Args:
            room: Target room name
            event: Event name, e.g. 'chat:newMessage'
            data: JSON-serializable payload

        Returns:
            Number of connections the event was delivered to
        """
        pass
