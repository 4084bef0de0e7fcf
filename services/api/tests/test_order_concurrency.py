from __future__ import annotations

import threading

import pytest
from services.api.app.db.database import db_session
from services.api.app.db.models import Purchase
from services.api.app.services.idempotency import IdempotencyInProgressError
from services.api.app.services.order_base import InsufficientStockError
from services.api.app.services.order_placement import OrderPlacementService


def _place_in_own_session(customer_id: int, start: threading.Barrier, results: dict) -> None:
    db = db_session()
    try:
        start.wait()
        service = OrderPlacementService.from_env(db)
        results[customer_id] = service.place_order(customer_id)
    except InsufficientStockError as e:
        results[customer_id] = e
    finally:
        db.close()


def test_concurrent_orders_never_oversell(seed) -> None:
    vendor_id = seed.user("vendor")
    product_id, offering_id = seed.offering(vendor_id=vendor_id, stock=5)

    customers = [seed.customer(f"Customer {i}") for i in range(3)]
    for customer_id in customers:
        seed.cart_line(customer_id, product_id, offering_id, 2)

    start = threading.Barrier(len(customers))
    results: dict = {}
    threads = [
        threading.Thread(target=_place_in_own_session, args=(customer_id, start, results))
        for customer_id in customers
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    assert len(results) == 3
    succeeded = [c for c, r in results.items() if isinstance(r, dict)]
    rejected = [c for c, r in results.items() if isinstance(r, InsufficientStockError)]

    assert len(succeeded) == 2
    assert len(rejected) == 1
    assert results[rejected[0]].available == 1
    assert seed.stock(offering_id) == 1
    assert seed.count(Purchase) == 2


def test_idempotent_retries_across_sessions_execute_once(seed) -> None:
    vendor_id = seed.user("vendor")
    product_id, offering_id = seed.offering(vendor_id=vendor_id, stock=5)
    customer_id = seed.customer()
    seed.cart_line(customer_id, product_id, offering_id, 2)

    bodies = []
    for _ in range(2):
        with db_session() as db:
            bodies.append(OrderPlacementService.from_env(db).place_order(customer_id, "retry-1"))

    assert bodies[0] == bodies[1]
    assert seed.count(Purchase) == 1
    assert seed.stock(offering_id) == 3


def test_duplicate_while_first_is_running_gets_in_progress(seed, monkeypatch) -> None:
    import services.api.app.services.order_placement as order_placement

    vendor_id = seed.user("vendor")
    product_id, offering_id = seed.offering(vendor_id=vendor_id, stock=5)
    customer_id = seed.customer()
    seed.cart_line(customer_id, product_id, offering_id, 2)

    entered = threading.Event()
    release = threading.Event()
    real_pricing = order_placement.compute_line_pricing

    def _gated_pricing(*args, **kwargs):
        entered.set()
        assert release.wait(timeout=30)
        return real_pricing(*args, **kwargs)

    monkeypatch.setattr(order_placement, "compute_line_pricing", _gated_pricing)

    results: dict = {}

    def _first() -> None:
        db = db_session()
        try:
            results["first"] = OrderPlacementService.from_env(db).place_order(
                customer_id, "same-key"
            )
        finally:
            db.close()

    worker = threading.Thread(target=_first)
    worker.start()
    try:
        assert entered.wait(timeout=30)

        # Rejected by the guard before any database access, so the held write lock
        # does not matter here.
        with db_session() as db:
            with pytest.raises(IdempotencyInProgressError):
                OrderPlacementService.from_env(db).place_order(customer_id, "same-key")
    finally:
        release.set()
        worker.join(timeout=60)

    assert "first" in results
    assert seed.count(Purchase) == 1
    assert seed.stock(offering_id) == 3

    with db_session() as db:
        replay = OrderPlacementService.from_env(db).place_order(customer_id, "same-key")
    assert replay == results["first"]
    assert seed.count(Purchase) == 1
