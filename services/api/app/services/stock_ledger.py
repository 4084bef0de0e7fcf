"""Row-locked stock check-and-decrement for vendor offerings.

Every stock mutation on the order path goes through a read-modify-write on a row that
the current transaction holds FOR UPDATE. Never issue a blind ``stock = stock - n``.
"""

from __future__ import annotations

import logging

from services.api.app.db.models import VendorOffering
from services.api.app.services.order_base import (
    InsufficientStockError,
    OfferingUnavailableError,
    StockChange,
)
from sqlalchemy import select
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def lock_offering(db: Session, offering_id: int, product_id: int) -> VendorOffering:
    stmt = (
        select(VendorOffering)
        .where(
            VendorOffering.id == offering_id,
            VendorOffering.product_id == product_id,
            VendorOffering.is_deleted.is_(False),
            VendorOffering.is_unavailable.is_(False),
        )
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    offering = db.execute(stmt).scalar_one_or_none()
    if offering is None:
        raise OfferingUnavailableError(offering_id, product_id)
    return offering


def ensure_available(offering: VendorOffering, requested_qty: int) -> None:
    if offering.stock_quantity < requested_qty:
        raise InsufficientStockError(
            product_id=offering.product_id,
            available=offering.stock_quantity,
            requested=requested_qty,
        )


def decrement(db: Session, offering: VendorOffering, requested_qty: int) -> StockChange:
    """Write back the new stock for an offering already locked by this transaction."""

    previous = offering.stock_quantity
    # Floor at zero even though ensure_available should already have prevented it.
    offering.stock_quantity = max(0, previous - requested_qty)
    db.flush()

    logger.info(
        "stock_decremented",
        extra={
            "offering_id": offering.id,
            "previous_stock": previous,
            "new_stock": offering.stock_quantity,
        },
    )
    return StockChange(
        offering_id=offering.id,
        previous_stock=previous,
        new_stock=offering.stock_quantity,
    )


def reserve_and_decrement(
    db: Session, offering_id: int, product_id: int, requested_qty: int
) -> StockChange:
    offering = lock_offering(db, offering_id, product_id)
    ensure_available(offering, requested_qty)
    return decrement(db, offering, requested_qty)
