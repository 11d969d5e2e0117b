# core/connections.py

"""WebSocket connection registry with per-cluster broadcast groups."""

from collections import defaultdict
from typing import Any

from fastapi import WebSocket

from .frames import Frame
from .logging import get_logger


class ConnectionManager:
    """Tracks open sockets and the cluster group each one belongs to."""

    def __init__(self):
        self._connections: dict[str, WebSocket] = {}
        self._groups: dict[str, set[str]] = defaultdict(set)
        self.logger = get_logger(f"{__name__}.ConnectionManager")

    def connect(self, connection_id: str, websocket: WebSocket) -> None:
        self._connections[connection_id] = websocket
        self.logger.debug("connection.registered", connection_id=connection_id)

    def disconnect(self, connection_id: str) -> None:
        """Forget a socket and remove it from every group."""
        self._connections.pop(connection_id, None)
        for group in list(self._groups):
            self.remove_from_group(connection_id, group)
        self.logger.debug("connection.unregistered", connection_id=connection_id)

    def add_to_group(self, connection_id: str, group: str) -> None:
        self._groups[group].add(connection_id)

    def remove_from_group(self, connection_id: str, group: str) -> None:
        members = self._groups.get(group)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self._groups[group]

    def group_members(self, group: str) -> set[str]:
        return set(self._groups.get(group, ()))

    def connection_count(self) -> int:
        return len(self._connections)

    async def send_to(self, connection_id: str, frame: Frame) -> bool:
        """Send a frame to one connection.

        Returns:
            True if sent, False if the connection is unknown or the send failed
        """
        websocket = self._connections.get(connection_id)
        if websocket is None:
            return False

        try:
            await websocket.send_json(frame.to_dict())
            return True
        except Exception as e:
            self.logger.error(
                "connection.send_failed",
                connection_id=connection_id,
                frame_type=frame.frame_type.value,
                error=str(e),
            )
            return False

    async def broadcast(self, group: str, frame: Frame) -> int:
        """Send a frame to every connection in a group.

        Returns:
            Number of connections the frame was delivered to
        """
        delivered = 0
        for connection_id in sorted(self.group_members(group)):
            if await self.send_to(connection_id, frame):
                delivered += 1
        return delivered

    def stats(self) -> dict[str, Any]:
        return {
            "connection_count": len(self._connections),
            "group_count": len(self._groups),
        }
