from __future__ import annotations

from services.api.app.db.models import CartLine, VendorOffering
from services.api.app.services.order_base import InsufficientStockError, OfferingUnavailableError
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session


class CartStore:
    """A customer's cart lines.

    The stock checks here are advisory; order placement re-checks under a row lock.
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def list_cart_lines(self, customer_id: int) -> list[CartLine]:
        stmt = select(CartLine).where(CartLine.customer_id == customer_id).order_by(CartLine.id)
        return list(self._db.execute(stmt).scalars())

    def count(self, customer_id: int) -> int:
        stmt = select(func.count(CartLine.id)).where(CartLine.customer_id == customer_id)
        return int(self._db.execute(stmt).scalar_one())

    def add(self, customer_id: int, product_id: int, offering_id: int, quantity: int) -> CartLine:
        offering = self._orderable_offering(offering_id, product_id)

        line = self._find(customer_id, product_id, offering_id)
        new_quantity = quantity + (line.quantity if line is not None else 0)
        if new_quantity > offering.stock_quantity:
            raise InsufficientStockError(product_id, offering.stock_quantity, new_quantity)

        if line is None:
            line = CartLine(
                customer_id=customer_id,
                product_id=product_id,
                offering_id=offering_id,
                quantity=new_quantity,
            )
            self._db.add(line)
        else:
            line.quantity = new_quantity

        self._db.commit()
        self._db.refresh(line)
        return line

    def update_quantity(
        self, customer_id: int, product_id: int, quantity: int, offering_id: int | None = None
    ) -> CartLine | None:
        line = self._find(customer_id, product_id, offering_id)
        if line is None:
            return None

        offering = self._orderable_offering(line.offering_id, product_id)
        if quantity > offering.stock_quantity:
            raise InsufficientStockError(product_id, offering.stock_quantity, quantity)

        line.quantity = quantity
        self._db.commit()
        self._db.refresh(line)
        return line

    def remove(self, customer_id: int, product_id: int) -> int:
        result = self._db.execute(
            delete(CartLine).where(
                CartLine.customer_id == customer_id, CartLine.product_id == product_id
            )
        )
        self._db.commit()
        return result.rowcount

    def clear_cart(self, customer_id: int, *, commit: bool = True) -> None:
        self._db.execute(delete(CartLine).where(CartLine.customer_id == customer_id))
        if commit:
            self._db.commit()

    def _find(
        self, customer_id: int, product_id: int, offering_id: int | None
    ) -> CartLine | None:
        stmt = select(CartLine).where(
            CartLine.customer_id == customer_id, CartLine.product_id == product_id
        )
        if offering_id is not None:
            stmt = stmt.where(CartLine.offering_id == offering_id)
        return self._db.execute(stmt.order_by(CartLine.id).limit(1)).scalar_one_or_none()

    def _orderable_offering(self, offering_id: int, product_id: int) -> VendorOffering:
        offering = self._db.get(VendorOffering, offering_id)
        if (
            offering is None
            or offering.product_id != product_id
            or offering.is_deleted
            or offering.is_unavailable
        ):
            raise OfferingUnavailableError(offering_id, product_id)
        return offering
