from __future__ import annotations

from pydantic import BaseModel


class NotificationOut(BaseModel):
    notification_id: int
    type: str
    message: str
    is_read: bool
    created_at: str


class NotificationListResponse(BaseModel):
    notifications: list[NotificationOut]


class UnreadCountResponse(BaseModel):
    unread_count: int
