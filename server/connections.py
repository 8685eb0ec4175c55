"""
WebSocket connection tracking for the UNO server.

Rooms address their members by connection id; ConnectionManager resolves
those ids to live sockets. Sends are fire-and-forget: a socket that fails
mid-send is logged and skipped, and its disconnect is handled by its own
receive loop.
"""

import logging
from typing import Iterable, Optional

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manage live WebSocket connections by connection id."""

    def __init__(self) -> None:
        self._sockets: dict[str, WebSocket] = {}

    def connect(self, connection_id: str, websocket: WebSocket) -> None:
        self._sockets[connection_id] = websocket

    def disconnect(self, connection_id: str) -> Optional[WebSocket]:
        return self._sockets.pop(connection_id, None)

    def get(self, connection_id: str) -> Optional[WebSocket]:
        return self._sockets.get(connection_id)

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._sockets

    def __len__(self) -> int:
        return len(self._sockets)

    async def send_to(self, connection_id: str, message: dict) -> bool:
        """
        Send a message to one connection.

        Returns:
            True if the message was handed to the socket.
        """
        websocket = self._sockets.get(connection_id)
        if websocket is None:
            return False
        try:
            await websocket.send_json(message)
        except Exception as e:
            logger.debug(f"Send to {connection_id} failed: {e}")
            return False
        return True

    async def send_to_many(
        self,
        connection_ids: Iterable[str],
        message: dict,
        exclude: Optional[str] = None,
    ) -> None:
        """
        Send the same message to several connections.

        Args:
            connection_ids: Recipients (typically a room's member ids).
            message: JSON-serializable message dict.
            exclude: Optional connection id to skip.
        """
        for connection_id in list(connection_ids):
            if connection_id != exclude:
                await self.send_to(connection_id, message)

    async def broadcast_all(self, message: dict) -> None:
        """Send a message to every connected client (lobby notices)."""
        await self.send_to_many(self._sockets.keys(), message)

    async def close_all(self, code: int = 1001, reason: str = "Server shutting down") -> None:
        """Close all active WebSocket connections gracefully."""
        for connection_id, websocket in list(self._sockets.items()):
            try:
                await websocket.close(code=code, reason=reason)
            except Exception as e:
                logger.debug(f"Close of {connection_id} failed: {e}")
        self._sockets.clear()
        logger.info("All WebSocket connections closed")
