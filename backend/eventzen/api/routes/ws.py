"""
Notification socket.

Protocol:
  client -> {"type": "auth", "token": "<jwt>"}
  server -> {"type": "notifications", "data": [...]}   unread backlog, if any
  server -> {"type": "notification", "data": {...}}     live pushes
  server -> {"type": "eventUpdate", "eventId": n, "data": {...}}
  client -> {"type": "ping"}  server -> {"type": "pong"}
"""

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventzen.db.session import get_db
from eventzen.core.exceptions import AuthenticationError
from eventzen.core.logging import get_logger
from eventzen.core.security import resolve_principal
from eventzen.realtime.connection_registry import ConnectionRegistry, get_websocket_registry
from eventzen.services.notification_service import list_notifications, serialize_notification

logger = get_logger(__name__)
router = APIRouter(tags=["Realtime"])


@router.websocket("/ws")
async def notifications_socket(
    websocket: WebSocket,
    registry: ConnectionRegistry = Depends(get_websocket_registry),
    db: AsyncSession = Depends(get_db),
):
    await websocket.accept()
    user_id = None

    try:
        while True:
            try:
                data = await websocket.receive_json()
            except ValueError:
                await websocket.send_json({"type": "error", "message": "Messages must be JSON objects"})
                continue
            if not isinstance(data, dict):
                await websocket.send_json({"type": "error", "message": "Messages must be JSON objects"})
                continue

            message_type = data.get("type")
            if message_type == "auth" and user_id is None:
                try:
                    principal = await resolve_principal(db, str(data.get("token") or ""))
                except AuthenticationError as e:
                    await websocket.send_json({"type": "error", "message": e.message})
                    await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
                    return

                user_id = principal.user_id
                registry.connect(user_id, websocket)

                unread = await list_notifications(db, user_id, unread_only=True)
                # Release the connection; the socket may stay open for hours
                await db.commit()
                if unread:
                    await websocket.send_json({
                        "type": "notifications",
                        "data": [serialize_notification(n) for n in unread],
                    })
            elif message_type == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        if user_id is not None:
            registry.disconnect(user_id, websocket)
