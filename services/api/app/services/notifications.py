from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

from packages.shared.schemas.order_v1 import NotificationTypeV1, RecipientTypeV1, UserRoleV1
from services.api.app.db.models import Notification, User
from services.api.app.services.order_base import PlacedLine
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    def create_notification(
        self, recipient_id: int, recipient_type: str, type: str, message: str
    ) -> bool: ...


class NotificationService:
    """Notification rows for customers and operational users."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def create_notification(
        self, recipient_id: int, recipient_type: str, type: str, message: str
    ) -> bool:
        if not recipient_id or not recipient_type or not type or not message:
            logger.warning(
                "notification_rejected",
                extra={"recipient_id": recipient_id, "recipient_type": recipient_type},
            )
            return False

        try:
            self._db.add(
                Notification(
                    recipient_id=recipient_id,
                    recipient_type=recipient_type,
                    type=type,
                    message=message,
                    is_read=False,
                )
            )
            self._db.commit()
        except Exception as e:
            self._db.rollback()
            logger.warning(
                "notification_insert_failed",
                extra={
                    "recipient_id": recipient_id,
                    "recipient_type": recipient_type,
                    "error": str(e),
                },
            )
            return False
        return True

    def list_for(self, recipient_id: int, recipient_type: str) -> list[Notification]:
        stmt = (
            select(Notification)
            .where(
                Notification.recipient_id == recipient_id,
                Notification.recipient_type == recipient_type,
            )
            .order_by(Notification.created_at.desc(), Notification.id.desc())
        )
        return list(self._db.execute(stmt).scalars())

    def unread_count(self, recipient_id: int, recipient_type: str) -> int:
        stmt = select(func.count(Notification.id)).where(
            Notification.recipient_id == recipient_id,
            Notification.recipient_type == recipient_type,
            Notification.is_read.is_(False),
        )
        return int(self._db.execute(stmt).scalar_one())

    def mark_as_read(self, notification_id: int, recipient_id: int, recipient_type: str) -> bool:
        result = self._db.execute(
            update(Notification)
            .where(
                Notification.id == notification_id,
                Notification.recipient_id == recipient_id,
                Notification.recipient_type == recipient_type,
            )
            .values(is_read=True)
        )
        self._db.commit()
        return result.rowcount > 0

    def mark_all_read(self, recipient_id: int, recipient_type: str) -> int:
        result = self._db.execute(
            update(Notification)
            .where(
                Notification.recipient_id == recipient_id,
                Notification.recipient_type == recipient_type,
                Notification.is_read.is_(False),
            )
            .values(is_read=True)
        )
        self._db.commit()
        return result.rowcount


class OrderNotifier:
    """Best-effort "order created" notifications, sent after the order commits."""

    def __init__(self, db: Session, sink: NotificationSink) -> None:
        self._db = db
        self._sink = sink

    def notify_order_created(self, orders: Sequence[PlacedLine], customer_id: int) -> None:
        for order in orders:
            self._send(
                customer_id,
                RecipientTypeV1.CUSTOMER,
                f"Your order #{order.purchase_id} has been placed successfully.",
            )
            self._send(
                order.vendor_id,
                RecipientTypeV1.USER,
                f"New order #{order.purchase_id} received for product {order.product_id}.",
            )
            if self._courier_can_be_notified(order.courier_id):
                self._send(
                    order.courier_id,
                    RecipientTypeV1.USER,
                    f"Order #{order.purchase_id} has been assigned to you for delivery.",
                )

    def _courier_can_be_notified(self, courier_id: int | None) -> bool:
        if courier_id is None:
            return False
        try:
            courier = self._db.get(User, courier_id)
        except Exception as e:
            logger.warning(
                "courier_lookup_failed", extra={"courier_id": courier_id, "error": str(e)}
            )
            return False
        return (
            courier is not None
            and courier.role == UserRoleV1.COURIER.value
            and courier.is_active
            and not courier.is_blacklisted
        )

    def _send(self, recipient_id: int, recipient_type: RecipientTypeV1, message: str) -> None:
        try:
            ok = self._sink.create_notification(
                recipient_id, recipient_type.value, NotificationTypeV1.ORDER.value, message
            )
        except Exception as e:
            logger.warning(
                "notification_failed",
                extra={
                    "recipient_id": recipient_id,
                    "recipient_type": recipient_type.value,
                    "error": str(e),
                },
            )
            return
        if not ok:
            logger.warning(
                "notification_not_stored",
                extra={"recipient_id": recipient_id, "recipient_type": recipient_type.value},
            )
