"""Room-based WebSocket fan-out for chat events."""

import logging
from collections import defaultdict
from typing import Any

from fastapi import WebSocket

from medichat.domain.ports import ChatNotifier

logger = logging.getLogger(__name__)


class ChatEventHub(ChatNotifier):
    """
    In-process publish/subscribe over connected WebSockets.

    Delivery is best-effort and at-most-once: a socket that fails to
    receive an event is dropped from every room, and nothing is replayed
    when it reconnects.
    """

    def __init__(self):
        self._rooms: dict[str, set[WebSocket]] = defaultdict(set)
        self._memberships: dict[WebSocket, set[str]] = defaultdict(set)

    def join(self, websocket: WebSocket, room: str) -> None:
        """Subscribe a connection to a room."""
        self._rooms[room].add(websocket)
        self._memberships[websocket].add(room)
        logger.debug(f"Socket joined room {room}")

    def leave_all(self, websocket: WebSocket) -> None:
        """Remove a connection from every room it joined."""
        for room in self._memberships.pop(websocket, set()):
            members = self._rooms.get(room)
            if members is None:
                continue
            members.discard(websocket)
            if not members:
                del self._rooms[room]

    def room_size(self, room: str) -> int:
        return len(self._rooms.get(room, ()))

    async def send(self, websocket: WebSocket, event: str, data: dict[str, Any]) -> bool:
        """Send one event to one connection."""
        try:
            await websocket.send_json({"event": event, "data": data})
            return True
        except Exception as e:
            logger.warning(f"⚠️ Dropping socket after failed '{event}' delivery: {e}")
            self.leave_all(websocket)
            return False

    async def publish(self, room: str, event: str, data: dict[str, Any]) -> int:
        delivered = 0
        for websocket in list(self._rooms.get(room, ())):
            if await self.send(websocket, event, data):
                delivered += 1
        logger.debug(f"📣 {event} -> {room} ({delivered} sockets)")
        return delivered
