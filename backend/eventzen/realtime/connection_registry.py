"""
Registry of live socket connections keyed by user id.

One registry belongs to one application instance (see `eventzen.main`) and
is handed to whatever sends notifications through the
`get_connection_registry` dependency. Pushes are fire-and-forget: a socket
that fails on send is dropped and the failure is logged, never raised.
"""

from typing import Any, Dict, Optional, Protocol, Set

from fastapi import Request, WebSocket

from eventzen.core.logging import get_logger
from eventzen.core.metrics import record_notification_push

logger = get_logger(__name__)


class SocketLike(Protocol):
    async def send_json(self, data: Any, mode: str = "text") -> None: ...


class ConnectionRegistry:
    def __init__(self):
        self.user_connections: Dict[int, Set[SocketLike]] = {}

    def connect(self, user_id: int, socket: SocketLike) -> None:
        self.user_connections.setdefault(user_id, set()).add(socket)
        logger.info("socket_connected", user_id=user_id, connections=len(self.user_connections[user_id]))

    def disconnect(self, user_id: int, socket: SocketLike) -> None:
        sockets = self.user_connections.get(user_id)
        if not sockets:
            return
        sockets.discard(socket)
        if not sockets:
            del self.user_connections[user_id]
        logger.info("socket_disconnected", user_id=user_id)

    def connection_count(self, user_id: Optional[int] = None) -> int:
        if user_id is not None:
            return len(self.user_connections.get(user_id, ()))
        return sum(len(sockets) for sockets in self.user_connections.values())

    async def _send(self, user_id: int, socket: SocketLike, message: dict) -> bool:
        try:
            await socket.send_json(message)
            return True
        except Exception as e:
            logger.warning("socket_send_failed", user_id=user_id, error=str(e))
            self.disconnect(user_id, socket)
            return False

    async def send_notification(self, user_id: int, payload: dict) -> int:
        """Push a notification to every open socket of `user_id`. Returns sockets reached."""
        sockets = list(self.user_connections.get(user_id, ()))
        if not sockets:
            record_notification_push("offline")
            return 0

        message = {"type": "notification", "data": payload}
        delivered = 0
        for socket in sockets:
            if await self._send(user_id, socket, message):
                delivered += 1
        record_notification_push("delivered" if delivered else "failed")
        return delivered

    async def broadcast_event_update(self, event_id: int, data: dict) -> int:
        message = {"type": "eventUpdate", "eventId": event_id, "data": data}
        delivered = 0
        for user_id, sockets in list(self.user_connections.items()):
            for socket in list(sockets):
                if await self._send(user_id, socket, message):
                    delivered += 1
        return delivered


def get_connection_registry(request: Request) -> ConnectionRegistry:
    return request.app.state.connections


def get_websocket_registry(websocket: WebSocket) -> ConnectionRegistry:
    return websocket.app.state.connections
