"""
Notification service: persist a user-facing message, then try to push it live.

The row is committed before the push, so a notification survives even when
the user has no open socket or the push fails.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventzen.core.exceptions import NotFoundError
from eventzen.core.logging import get_logger
from eventzen.models.notification import Notification
from eventzen.realtime.connection_registry import ConnectionRegistry
from eventzen.schemas.notification import NotificationResponse

logger = get_logger(__name__)

TYPE_BOOKING_CREATED = "booking_created"
TYPE_PAYMENT_PROCESSED = "payment_processed"


def serialize_notification(notification: Notification) -> dict:
    return NotificationResponse.model_validate(notification).model_dump(mode="json", by_alias=True)


async def notify_user(
    db: AsyncSession,
    registry: ConnectionRegistry,
    user_id: int,
    message: str,
    type: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        message=message,
        type=type,
        read=False,
        entity_type=entity_type,
        entity_id=entity_id,
    )
    db.add(notification)
    await db.commit()
    await db.refresh(notification)

    logger.info(
        "notification_created",
        notification_id=notification.id,
        user_id=user_id,
        type=type,
    )

    # Best effort: the registry already swallows socket failures, this guards
    # against anything else going wrong while serializing or sending.
    try:
        delivered = await registry.send_notification(user_id, serialize_notification(notification))
        logger.debug("notification_pushed", notification_id=notification.id, sockets=delivered)
    except Exception as e:
        logger.warning("notification_push_failed", notification_id=notification.id, error=str(e))

    return notification


async def list_notifications(
    db: AsyncSession,
    user_id: int,
    unread_only: bool = False,
) -> list[Notification]:
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.read.is_(False))
    result = await db.execute(query.order_by(Notification.created_at.desc(), Notification.id.desc()))
    return list(result.scalars().all())


async def mark_notification_read(db: AsyncSession, notification_id: int, user_id: int) -> Notification:
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
    )
    notification = result.scalar_one_or_none()
    if not notification:
        raise NotFoundError("Notification not found")

    if not notification.read:
        notification.read = True
        await db.commit()
        await db.refresh(notification)
    return notification
