from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import JSONResponse
from services.api.app.db.deps import Actor, get_current_customer, get_db
from services.api.app.db.models import FulfillmentRecord, Purchase
from services.api.app.models.order import (
    OrderDetailResponse,
    OrderHistoryResponse,
    PlaceOrderResponse,
    fulfillment_out,
    purchase_out,
)
from services.api.app.services.idempotency import IdempotencyInProgressError
from services.api.app.services.order_base import (
    EmptyCartError,
    InsufficientStockError,
    OfferingUnavailableError,
    OrderPlacementError,
)
from services.api.app.services.order_placement import OrderPlacementService
from sqlalchemy import select
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)
router = APIRouter()


def _raise_order_http_error(e: Exception) -> None:
    if isinstance(e, EmptyCartError):
        raise HTTPException(
            status_code=400, detail={"error": "cart_empty", "message": str(e)}
        ) from e

    if isinstance(e, InsufficientStockError):
        raise HTTPException(
            status_code=400,
            detail={
                "error": "insufficient_stock",
                "message": str(e),
                "product_id": e.product_id,
                "available": e.available,
            },
        ) from e

    if isinstance(e, OfferingUnavailableError):
        raise HTTPException(
            status_code=400,
            detail={
                "error": "offering_unavailable",
                "message": str(e),
                "product_id": e.product_id,
            },
        ) from e

    if isinstance(e, OrderPlacementError):
        raise HTTPException(
            status_code=400, detail={"error": "order_rejected", "message": str(e)}
        ) from e

    if isinstance(e, IdempotencyInProgressError):
        raise HTTPException(
            status_code=409, detail={"error": "request_in_progress", "message": str(e)}
        ) from e

    logger.exception("order_place_failed")
    raise HTTPException(status_code=500, detail={"error": "server_error"}) from e


@router.post("/order/place", response_model=PlaceOrderResponse)
def place_order(
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
    customer: Actor = Depends(get_current_customer),
    db: Session = Depends(get_db),
) -> JSONResponse:
    try:
        service = OrderPlacementService.from_env(db)
    except ValueError as e:
        raise HTTPException(
            status_code=500, detail={"error": "server_error", "message": str(e)}
        ) from e

    try:
        payload = service.place_order(customer.id, idempotency_key=idempotency_key or None)
    except Exception as e:
        _raise_order_http_error(e)

    # Replays must be byte-identical, so the stored JSON body is returned as-is.
    return JSONResponse(content=payload)


@router.get("/order/history", response_model=OrderHistoryResponse)
def order_history(
    customer: Actor = Depends(get_current_customer), db: Session = Depends(get_db)
) -> OrderHistoryResponse:
    rows = db.execute(
        select(Purchase)
        .where(Purchase.customer_id == customer.id)
        .order_by(Purchase.order_date.desc(), Purchase.id.desc())
    ).scalars()
    return OrderHistoryResponse(orders=[purchase_out(p) for p in rows])


@router.get("/order/{purchase_id}", response_model=OrderDetailResponse)
def get_order(
    purchase_id: int,
    customer: Actor = Depends(get_current_customer),
    db: Session = Depends(get_db),
) -> OrderDetailResponse:
    purchase = db.get(Purchase, purchase_id)
    if purchase is None or purchase.customer_id != customer.id:
        raise HTTPException(status_code=404, detail={"error": "order_not_found"})

    fulfillment = db.get(FulfillmentRecord, purchase.id)
    return OrderDetailResponse(
        order=purchase_out(purchase),
        fulfillment=fulfillment_out(fulfillment) if fulfillment is not None else None,
    )
