from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from services.api.app.db.models import FulfillmentRecord, Purchase
    from services.api.app.services.recommendations import Recommendation


class PurchaseOut(BaseModel):
    purchase_id: int
    product_id: int
    customer_id: int
    order_status: str
    mrp_total: Decimal
    gst_total: Decimal
    discount_total: Decimal
    total_amount: Decimal
    payment_status: str
    payment_mode: str
    order_date: str


class RecommendationOut(BaseModel):
    product_id: int
    model: str | None = None
    product_name: str
    price: Decimal
    category: str
    subcategory: str
    score: float
    reason: str


class PlaceOrderResponse(BaseModel):
    message: str
    order: PurchaseOut | None = None
    recommendations: list[RecommendationOut] = Field(default_factory=list)


class FulfillmentOut(BaseModel):
    vendor_id: int
    courier_id: int | None = None
    offering_id: int
    unit_mrp: Decimal
    unit_gst: Decimal
    unit_discount_percent: Decimal
    purchase_qty: int
    created_at: str

    ready_for_pickup: bool
    picked_by_courier: bool
    dispatched: bool
    out_for_delivery: bool
    delivered: bool
    partial_delivery: bool
    returned: bool
    tracking_number: str | None = None


class OrderHistoryResponse(BaseModel):
    orders: list[PurchaseOut]


class OrderDetailResponse(BaseModel):
    order: PurchaseOut
    fulfillment: FulfillmentOut | None = None


def purchase_out(p: Purchase) -> PurchaseOut:
    return PurchaseOut(
        purchase_id=p.id,
        product_id=p.product_id,
        customer_id=p.customer_id,
        order_status=p.order_status,
        mrp_total=p.mrp_total,
        gst_total=p.gst_total,
        discount_total=p.discount_total,
        total_amount=p.total_amount,
        payment_status=p.payment_status,
        payment_mode=p.payment_mode,
        order_date=p.order_date.isoformat(),
    )


def fulfillment_out(f: FulfillmentRecord) -> FulfillmentOut:
    return FulfillmentOut(
        vendor_id=f.vendor_id,
        courier_id=f.courier_id,
        offering_id=f.offering_id,
        unit_mrp=f.unit_mrp,
        unit_gst=f.unit_gst,
        unit_discount_percent=f.unit_discount_percent,
        purchase_qty=f.purchase_qty,
        created_at=f.created_at.isoformat(),
        ready_for_pickup=f.ready_for_pickup,
        picked_by_courier=f.picked_by_courier,
        dispatched=f.dispatched,
        out_for_delivery=f.out_for_delivery,
        delivered=f.delivered,
        partial_delivery=f.partial_delivery,
        returned=f.returned,
        tracking_number=f.tracking_number,
    )


def recommendation_out(r: Recommendation) -> RecommendationOut:
    return RecommendationOut(
        product_id=r.product_id,
        model=r.model,
        product_name=r.product_name,
        price=r.price,
        category=r.category,
        subcategory=r.subcategory,
        score=r.score,
        reason=r.reason,
    )
