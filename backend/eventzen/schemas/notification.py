"""
Pydantic schemas for notifications.
"""

from datetime import datetime
from typing import Optional

from eventzen.schemas.common import APIModel


class NotificationResponse(APIModel):
    id: int
    user_id: int
    message: str
    type: str
    read: bool
    entity_type: Optional[str]
    entity_id: Optional[int]
    created_at: datetime
