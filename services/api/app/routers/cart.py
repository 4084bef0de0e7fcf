from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from services.api.app.db.deps import Actor, get_current_customer, get_db
from services.api.app.models.cart import (
    CartAddRequest,
    CartCountResponse,
    CartLineOut,
    CartRemoveRequest,
    CartResponse,
    CartUpdateRequest,
    MessageResponse,
)
from services.api.app.services.cart_store import CartStore
from services.api.app.services.order_base import InsufficientStockError, OfferingUnavailableError
from sqlalchemy.orm import Session

router = APIRouter()


def _raise_cart_http_error(e: Exception) -> None:
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

    raise e


@router.get("/cart", response_model=CartResponse)
def get_cart(
    customer: Actor = Depends(get_current_customer), db: Session = Depends(get_db)
) -> CartResponse:
    lines = CartStore(db).list_cart_lines(customer.id)
    return CartResponse(
        cart=[
            CartLineOut(
                cart_line_id=line.id,
                product_id=line.product_id,
                offering_id=line.offering_id,
                quantity=line.quantity,
            )
            for line in lines
        ]
    )


@router.post("/cart/add", response_model=MessageResponse)
def add_to_cart(
    payload: CartAddRequest,
    customer: Actor = Depends(get_current_customer),
    db: Session = Depends(get_db),
) -> MessageResponse:
    try:
        CartStore(db).add(customer.id, payload.product_id, payload.offering_id, payload.quantity)
    except (InsufficientStockError, OfferingUnavailableError) as e:
        _raise_cart_http_error(e)
    return MessageResponse(message="Product added to cart")


@router.put("/cart/update", response_model=MessageResponse)
def update_cart(
    payload: CartUpdateRequest,
    customer: Actor = Depends(get_current_customer),
    db: Session = Depends(get_db),
) -> MessageResponse:
    try:
        line = CartStore(db).update_quantity(
            customer.id, payload.product_id, payload.quantity, offering_id=payload.offering_id
        )
    except (InsufficientStockError, OfferingUnavailableError) as e:
        _raise_cart_http_error(e)

    if line is None:
        raise HTTPException(status_code=404, detail={"error": "cart_item_not_found"})
    return MessageResponse(message="Cart updated")


@router.delete("/cart/remove", response_model=MessageResponse)
def remove_from_cart(
    payload: CartRemoveRequest,
    customer: Actor = Depends(get_current_customer),
    db: Session = Depends(get_db),
) -> MessageResponse:
    removed = CartStore(db).remove(customer.id, payload.product_id)
    if removed == 0:
        raise HTTPException(status_code=404, detail={"error": "cart_item_not_found"})
    return MessageResponse(message="Product removed from cart")


@router.get("/cart/count", response_model=CartCountResponse)
def cart_count(
    customer: Actor = Depends(get_current_customer), db: Session = Depends(get_db)
) -> CartCountResponse:
    return CartCountResponse(count=CartStore(db).count(customer.id))
