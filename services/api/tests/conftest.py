from __future__ import annotations

from collections.abc import Iterator
from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from packages.shared.schemas.order_v1 import UserRoleV1
from services.api.app.db.database import db_session
from services.api.app.db.init_db import init_db
from services.api.app.db.models import (
    CartLine,
    Customer,
    Product,
    ProductCategory,
    ProductSubCategory,
    User,
    VendorOffering,
)
from services.api.app.services.cache_memory import memory_cache
from sqlalchemy import func, select


@pytest.fixture(autouse=True)
def _isolated_db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{tmp_path / 'ecomgm_test.db'}")
    monkeypatch.setenv("ECOMGM_DB_AUTO_CREATE", "true")
    monkeypatch.setenv("ECOMGM_IDEMPOTENCY_CACHE", "memory")
    memory_cache.clear()
    init_db()
    yield
    memory_cache.clear()


@pytest.fixture()
def client() -> Iterator[TestClient]:
    from services.api.app.main import app

    with TestClient(app) as c:
        yield c


class Seeder:
    """Writes fixtures through short-lived sessions.

    Every SQLite transaction takes the write lock, so no session may stay open across
    an API call.
    """

    @staticmethod
    def headers(actor_id: int, actor_type: str = "customer", role: str | None = None) -> dict:
        headers = {"X-Actor-Id": str(actor_id), "X-Actor-Type": actor_type}
        if role is not None:
            headers["X-Actor-Role"] = role
        return headers

    def customer(self, name: str = "Customer 1") -> int:
        with db_session() as db:
            customer = Customer(name=name)
            db.add(customer)
            db.commit()
            return customer.id

    def user(
        self,
        role: str = UserRoleV1.VENDOR.value,
        *,
        is_active: bool = True,
        is_blacklisted: bool = False,
    ) -> int:
        with db_session() as db:
            user = User(
                display_name=f"{role} user",
                role=role,
                is_active=is_active,
                is_blacklisted=is_blacklisted,
            )
            db.add(user)
            db.commit()
            return user.id

    def category(self, name: str = "Electronics", subcategory: str = "Phones") -> tuple[int, int]:
        with db_session() as db:
            category = ProductCategory(name=name)
            db.add(category)
            db.flush()
            sub = ProductSubCategory(category_id=category.id, name=subcategory)
            db.add(sub)
            db.commit()
            return category.id, sub.id

    def offering(
        self,
        *,
        vendor_id: int,
        courier_id: int | None = None,
        product_id: int | None = None,
        offering_id: int | None = None,
        name: str = "Phone",
        mrp: str = "500",
        gst: str = "20",
        discount: str = "5",
        stock: int = 5,
        category_id: int | None = None,
        subcategory_id: int | None = None,
        is_deleted: bool = False,
        is_unavailable: bool = False,
    ) -> tuple[int, int]:
        with db_session() as db:
            product = Product(
                id=product_id,
                name=name,
                model=f"{name}-M",
                mrp=Decimal(mrp),
                category_id=category_id,
                subcategory_id=subcategory_id,
            )
            db.add(product)
            db.flush()
            offering = VendorOffering(
                id=offering_id,
                product_id=product.id,
                vendor_id=vendor_id,
                courier_id=courier_id,
                unit_mrp=Decimal(mrp),
                unit_gst=Decimal(gst),
                discount_percent=Decimal(discount),
                stock_quantity=stock,
                is_deleted=is_deleted,
                is_unavailable=is_unavailable,
            )
            db.add(offering)
            db.commit()
            return product.id, offering.id

    def cart_line(self, customer_id: int, product_id: int, offering_id: int, quantity: int) -> None:
        with db_session() as db:
            db.add(
                CartLine(
                    customer_id=customer_id,
                    product_id=product_id,
                    offering_id=offering_id,
                    quantity=quantity,
                )
            )
            db.commit()

    def stock(self, offering_id: int) -> int:
        with db_session() as db:
            return db.get(VendorOffering, offering_id).stock_quantity

    def count(self, model: type, *criteria) -> int:
        with db_session() as db:
            stmt = select(func.count()).select_from(model)
            if criteria:
                stmt = stmt.where(*criteria)
            return int(db.execute(stmt).scalar_one())


@pytest.fixture()
def seed() -> Seeder:
    return Seeder()
