from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from packages.shared.schemas.order_v1 import ActorTypeV1, RecipientTypeV1
from services.api.app.db.deps import Actor, get_current_actor, get_db
from services.api.app.db.models import Notification
from services.api.app.models.cart import MessageResponse
from services.api.app.models.notification import (
    NotificationListResponse,
    NotificationOut,
    UnreadCountResponse,
)
from services.api.app.services.notifications import NotificationService
from sqlalchemy.orm import Session

router = APIRouter()


def _recipient_type(actor: Actor) -> str:
    # Vendors, couriers, admins and superusers all share the "user" inbox namespace.
    if actor.user_type == ActorTypeV1.CUSTOMER.value:
        return RecipientTypeV1.CUSTOMER.value
    return RecipientTypeV1.USER.value


def _notification_out(n: Notification) -> NotificationOut:
    return NotificationOut(
        notification_id=n.id,
        type=n.type,
        message=n.message,
        is_read=n.is_read,
        created_at=n.created_at.isoformat() if n.created_at else "",
    )


@router.get("/notifications", response_model=NotificationListResponse)
def list_notifications(
    actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)
) -> NotificationListResponse:
    service = NotificationService(db)
    recipient_type = _recipient_type(actor)

    # Snapshot before marking, so this response still shows which were unread.
    notifications = [_notification_out(n) for n in service.list_for(actor.id, recipient_type)]
    service.mark_all_read(actor.id, recipient_type)
    return NotificationListResponse(notifications=notifications)


@router.get("/notifications/unread-count", response_model=UnreadCountResponse)
def unread_count(
    actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)
) -> UnreadCountResponse:
    count = NotificationService(db).unread_count(actor.id, _recipient_type(actor))
    return UnreadCountResponse(unread_count=count)


@router.put("/notifications/{notification_id}/read", response_model=MessageResponse)
def mark_notification_read(
    notification_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> MessageResponse:
    updated = NotificationService(db).mark_as_read(
        notification_id, actor.id, _recipient_type(actor)
    )
    if not updated:
        raise HTTPException(status_code=404, detail={"error": "notification_not_found"})
    return MessageResponse(message="Notification marked as read")
