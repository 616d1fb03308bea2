"""
Notification endpoints for the authenticated user.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from eventzen.db.session import get_db
from eventzen.schemas.notification import NotificationResponse
from eventzen.services.notification_service import list_notifications, mark_notification_read
from eventzen.core.security import Principal, require_user

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=list[NotificationResponse])
async def list_notifications_endpoint(
    unread_only: bool = Query(False, alias="unreadOnly"),
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await list_notifications(db, principal.user_id, unread_only=unread_only)


@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read_endpoint(
    notification_id: int,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await mark_notification_read(db, notification_id, principal.user_id)
