from __future__ import annotations

from dataclasses import dataclass


class OrderPlacementError(Exception):
    """Base class for expected, client-correctable order placement failures."""


class EmptyCartError(OrderPlacementError):
    def __init__(self, customer_id: int) -> None:
        super().__init__("Cart is empty")
        self.customer_id = customer_id


class OfferingUnavailableError(OrderPlacementError):
    def __init__(self, offering_id: int, product_id: int) -> None:
        super().__init__(
            f"Product {product_id} is no longer available from this vendor "
            f"(offering {offering_id})."
        )
        self.offering_id = offering_id
        self.product_id = product_id


class InsufficientStockError(OrderPlacementError):
    def __init__(self, product_id: int, available: int, requested: int) -> None:
        super().__init__(
            f"Insufficient stock for product {product_id}. "
            f"Available: {available}, requested: {requested}."
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested


@dataclass(frozen=True, slots=True)
class StockChange:
    offering_id: int
    previous_stock: int
    new_stock: int


@dataclass(frozen=True, slots=True)
class PlacedLine:
    purchase_id: int
    product_id: int
    vendor_id: int
    courier_id: int | None
    offering_id: int
