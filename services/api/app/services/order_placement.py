"""Order placement: turn a customer's cart into purchases in one transaction.

Flow: idempotency check -> cart validation -> per-line lock/price/insert/decrement ->
clear cart -> commit -> post-commit notifications and recommendations -> cached reply.

Anything raised before the commit rolls the whole cart back and releases the
idempotency lock. Nothing after the commit may fail the order.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from typing import Any

from packages.shared.schemas.order_v1 import OrderStatusV1, PaymentModeV1, PaymentStatusV1
from services.api.app.db.models import CartLine, FulfillmentRecord, Purchase
from services.api.app.models.order import (
    PlaceOrderResponse,
    PurchaseOut,
    purchase_out,
    recommendation_out,
)
from services.api.app.services import stock_ledger
from services.api.app.services.cart_store import CartStore
from services.api.app.services.idempotency import IdempotencyGuard, Reuse
from services.api.app.services.notifications import NotificationService, OrderNotifier
from services.api.app.services.order_base import EmptyCartError, PlacedLine
from services.api.app.services.pricing import compute_line_pricing
from services.api.app.services.recommendations import (
    DEFAULT_RECOMMENDATION_LIMIT,
    CatalogRecommendationSource,
    Recommendation,
    RecommendationGenerator,
)
from sqlalchemy import select
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

ORDER_PLACED_MESSAGE = "Order placed successfully"


class OrderPlacementService:
    def __init__(
        self,
        db: Session,
        guard: IdempotencyGuard,
        *,
        notifier: OrderNotifier,
        recommender: RecommendationGenerator,
    ) -> None:
        self._db = db
        self._guard = guard
        self._notifier = notifier
        self._recommender = recommender

    @classmethod
    def from_env(cls, db: Session) -> "OrderPlacementService":
        limit = int(os.getenv("ECOMGM_RECOMMENDATION_LIMIT", str(DEFAULT_RECOMMENDATION_LIMIT)))
        return cls(
            db,
            IdempotencyGuard.from_env(scope="order"),
            notifier=OrderNotifier(db, NotificationService(db)),
            recommender=RecommendationGenerator(CatalogRecommendationSource(db), limit=limit),
        )

    def place_order(self, customer_id: int, idempotency_key: str | None = None) -> dict[str, Any]:
        """Place an order for everything in the customer's cart.

        Returns the JSON-ready response body. A retry carrying the same idempotency key
        gets the stored body back without touching the database.
        """

        decision = self._guard.begin_or_reuse(customer_id, idempotency_key)
        if isinstance(decision, Reuse):
            return decision.result
        token = decision.token

        try:
            placed = self._place_cart(customer_id)
        except Exception:
            self._guard.abort(token)
            raise

        order = self._order_snapshot(customer_id)
        self._notify_after_commit(placed, customer_id)
        recommendations = self._recommend_after_commit(customer_id, placed)

        payload = PlaceOrderResponse(
            message=ORDER_PLACED_MESSAGE,
            order=order,
            recommendations=[recommendation_out(r) for r in recommendations],
        ).model_dump(mode="json")

        self._guard.complete(token, payload)
        return payload

    def _place_cart(self, customer_id: int) -> list[PlacedLine]:
        db = self._db
        cart = CartStore(db)
        try:
            lines = cart.list_cart_lines(customer_id)
            if not lines:
                raise EmptyCartError(customer_id)

            placed = [self._place_line(customer_id, line) for line in lines]

            # The whole cart goes, matching the lines processed above.
            cart.clear_cart(customer_id, commit=False)
            db.commit()
        except Exception as e:
            db.rollback()
            logger.info(
                "order_rolled_back",
                extra={"customer_id": customer_id, "reason": type(e).__name__, "error": str(e)},
            )
            raise

        logger.info(
            "order_placed",
            extra={"customer_id": customer_id, "purchase_ids": [p.purchase_id for p in placed]},
        )
        return placed

    def _place_line(self, customer_id: int, line: CartLine) -> PlacedLine:
        db = self._db

        offering = stock_ledger.lock_offering(db, line.offering_id, line.product_id)
        stock_ledger.ensure_available(offering, line.quantity)

        pricing = compute_line_pricing(
            offering.unit_mrp, offering.unit_gst, offering.discount_percent, line.quantity
        )

        purchase = Purchase(
            product_id=line.product_id,
            customer_id=customer_id,
            order_status=OrderStatusV1.PENDING.value,
            mrp_total=pricing.mrp_total,
            gst_total=pricing.gst_total,
            discount_total=pricing.discount_total,
            total_amount=pricing.total_amount,
            payment_status=PaymentStatusV1.PENDING.value,
            payment_mode=PaymentModeV1.COD.value,
        )
        db.add(purchase)
        db.flush()

        # The offering's default courier is assigned directly; there is no courier
        # acceptance step.
        db.add(
            FulfillmentRecord(
                purchase_id=purchase.id,
                customer_id=customer_id,
                product_id=line.product_id,
                vendor_id=offering.vendor_id,
                courier_id=offering.courier_id,
                offering_id=offering.id,
                unit_mrp=offering.unit_mrp,
                unit_gst=offering.unit_gst,
                unit_discount_percent=offering.discount_percent,
                purchase_qty=line.quantity,
                tracking_number=None,
            )
        )

        stock_ledger.decrement(db, offering, line.quantity)

        return PlacedLine(
            purchase_id=purchase.id,
            product_id=line.product_id,
            vendor_id=offering.vendor_id,
            courier_id=offering.courier_id,
            offering_id=offering.id,
        )

    def _latest_purchase(self, customer_id: int) -> Purchase | None:
        stmt = (
            select(Purchase)
            .where(Purchase.customer_id == customer_id)
            .order_by(Purchase.order_date.desc(), Purchase.id.desc())
            .limit(1)
        )
        return self._db.execute(stmt).scalar_one_or_none()

    def _order_snapshot(self, customer_id: int) -> PurchaseOut | None:
        try:
            latest = self._latest_purchase(customer_id)
            return purchase_out(latest) if latest is not None else None
        except Exception as e:
            self._db.rollback()
            logger.warning(
                "order_snapshot_failed",
                extra={"customer_id": customer_id, "error": str(e)},
            )
            return None

    def _notify_after_commit(self, placed: Sequence[PlacedLine], customer_id: int) -> None:
        try:
            self._notifier.notify_order_created(placed, customer_id)
        except Exception as e:
            logger.warning(
                "order_notifications_failed",
                extra={"customer_id": customer_id, "error": str(e)},
            )

    def _recommend_after_commit(
        self, customer_id: int, placed: Sequence[PlacedLine]
    ) -> list[Recommendation]:
        """Suggestions anchored on the first placed line's product."""

        if not placed:
            return []
        try:
            return self._recommender.recommend(customer_id, placed[0].product_id)
        except Exception as e:
            logger.warning(
                "order_recommendations_failed",
                extra={"customer_id": customer_id, "error": str(e)},
            )
            return []
