from __future__ import annotations

import argparse
from decimal import Decimal

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

# (name, model, mrp, unit_gst, discount_percent, stock)
_CATALOG = (
    ("Phone X", "PX-1", Decimal("500"), Decimal("10"), Decimal("10"), 5),
    ("Phone Y", "PY-2", Decimal("300"), Decimal("6"), Decimal("0"), 10),
    ("Phone Z", "PZ-3", Decimal("800"), Decimal("16"), Decimal("5"), 3),
)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Seed a minimal ecomgm catalog")
    parser.add_argument("--customer-name", default="Customer 1")
    parser.add_argument("--vendor-name", default="Vendor 1")
    parser.add_argument("--courier-name", default="Courier 1")
    parser.add_argument("--category", default="Electronics")
    parser.add_argument("--subcategory", default="Phones")
    parser.add_argument("--cart-quantity", type=int, default=2)
    args = parser.parse_args(argv)

    init_db()

    db = db_session()
    try:
        existing = db.query(Product).limit(1).count()
        if existing:
            print("Catalog already seeded")
            return 0

        category = ProductCategory(name=args.category)
        db.add(category)
        db.flush()
        subcategory = ProductSubCategory(category_id=category.id, name=args.subcategory)
        db.add(subcategory)

        vendor = User(display_name=args.vendor_name, role=UserRoleV1.VENDOR.value)
        courier = User(display_name=args.courier_name, role=UserRoleV1.COURIER.value)
        customer = Customer(name=args.customer_name)
        db.add_all([vendor, courier, customer])
        db.flush()

        offerings: list[VendorOffering] = []
        for name, model, mrp, gst, discount, stock in _CATALOG:
            product = Product(
                name=name,
                model=model,
                mrp=mrp,
                category_id=category.id,
                subcategory_id=subcategory.id,
            )
            db.add(product)
            db.flush()
            offering = VendorOffering(
                product_id=product.id,
                vendor_id=vendor.id,
                courier_id=courier.id,
                unit_mrp=mrp,
                unit_gst=gst,
                discount_percent=discount,
                stock_quantity=stock,
            )
            db.add(offering)
            offerings.append(offering)
        db.flush()

        # Cart
        if args.cart_quantity > 0:
            first = offerings[0]
            db.add(
                CartLine(
                    customer_id=customer.id,
                    product_id=first.product_id,
                    offering_id=first.id,
                    quantity=args.cart_quantity,
                )
            )

        db.commit()
        print(f"Seeded customer={customer.id} vendor={vendor.id} courier={courier.id}")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
