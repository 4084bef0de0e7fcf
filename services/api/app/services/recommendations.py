from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from services.api.app.db.models import Product, ProductCategory, ProductSubCategory, Purchase
from sqlalchemy import func, select
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

DEFAULT_RECOMMENDATION_LIMIT = 3
_CANDIDATES_PER_SOURCE = 5


@dataclass(frozen=True, slots=True)
class Recommendation:
    product_id: int
    model: str | None
    product_name: str
    price: Decimal
    category: str
    subcategory: str
    score: float
    reason: str


class RecommendationSource(Protocol):
    def get_product(self, product_id: int) -> Product | None: ...

    def random_in_category(
        self, category_id: int, exclude_product_id: int, limit: int
    ) -> list[Product]: ...

    def popular_in_category(self, category_id: int, limit: int) -> list[Product]: ...

    def category_name(self, category_id: int | None) -> str | None: ...

    def subcategory_name(self, subcategory_id: int | None) -> str | None: ...


class CatalogRecommendationSource:
    """Read-only catalog and purchase-history queries."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def get_product(self, product_id: int) -> Product | None:
        return self._db.get(Product, product_id)

    def random_in_category(
        self, category_id: int, exclude_product_id: int, limit: int
    ) -> list[Product]:
        stmt = (
            select(Product)
            .where(Product.category_id == category_id, Product.id != exclude_product_id)
            .order_by(func.random())
            .limit(limit)
        )
        return list(self._db.execute(stmt).scalars())

    def popular_in_category(self, category_id: int, limit: int) -> list[Product]:
        purchase_count = func.count(Purchase.id).label("purchase_count")
        stmt = (
            select(Product, purchase_count)
            .join(Purchase, Purchase.product_id == Product.id)
            .where(Product.category_id == category_id)
            .group_by(Product.id)
            .order_by(purchase_count.desc(), Product.id)
            .limit(limit)
        )
        return [row[0] for row in self._db.execute(stmt).all()]

    def category_name(self, category_id: int | None) -> str | None:
        if category_id is None:
            return None
        category = self._db.get(ProductCategory, category_id)
        return category.name if category else None

    def subcategory_name(self, subcategory_id: int | None) -> str | None:
        if subcategory_id is None:
            return None
        subcategory = self._db.get(ProductSubCategory, subcategory_id)
        return subcategory.name if subcategory else None


class RecommendationGenerator:
    """Same-category suggestions shown after checkout.

    Candidates are a random sample of the anchor's category followed by the category's
    most purchased products. The score is informational only; candidates keep their
    merge order.
    """

    def __init__(
        self,
        source: RecommendationSource,
        *,
        limit: int = DEFAULT_RECOMMENDATION_LIMIT,
        rng: random.Random | None = None,
    ) -> None:
        self._source = source
        self._limit = limit
        self._rng = rng or random.Random()

    def recommend(self, customer_id: int, anchor_product_id: int) -> list[Recommendation]:
        try:
            return self._recommend(anchor_product_id)
        except Exception as e:
            logger.warning(
                "recommendation_failed",
                extra={
                    "customer_id": customer_id,
                    "product_id": anchor_product_id,
                    "error": str(e),
                },
            )
            return []

    def _recommend(self, anchor_product_id: int) -> list[Recommendation]:
        anchor = self._source.get_product(anchor_product_id)
        if anchor is None or anchor.category_id is None:
            return []

        candidates = [
            *self._source.random_in_category(
                anchor.category_id, anchor.id, _CANDIDATES_PER_SOURCE
            ),
            *self._source.popular_in_category(anchor.category_id, _CANDIDATES_PER_SOURCE),
        ]

        seen: set[int] = set()
        out: list[Recommendation] = []
        for product in candidates:
            if product.id in seen:
                continue
            seen.add(product.id)
            out.append(
                Recommendation(
                    product_id=product.id,
                    model=product.model,
                    product_name=product.name,
                    price=product.mrp if product.mrp is not None else Decimal("0"),
                    category=self._source.category_name(product.category_id) or "Unknown",
                    subcategory=self._source.subcategory_name(product.subcategory_id) or "Unknown",
                    score=self._rng.random(),
                    reason="Category-based recommendation",
                )
            )
            if len(out) >= self._limit:
                break

        return out
