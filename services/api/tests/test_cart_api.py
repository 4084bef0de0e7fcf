from __future__ import annotations

from fastapi.testclient import TestClient


def _catalog(seed, stock: int = 5) -> tuple[int, int, int]:
    customer_id = seed.customer()
    vendor_id = seed.user("vendor")
    product_id, offering_id = seed.offering(vendor_id=vendor_id, stock=stock)
    return customer_id, product_id, offering_id


def test_add_then_list_cart(client: TestClient, seed) -> None:
    customer_id, product_id, offering_id = _catalog(seed)
    headers = seed.headers(customer_id)

    response = client.post(
        "/cart/add",
        json={"product_id": product_id, "offering_id": offering_id, "quantity": 2},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json() == {"message": "Product added to cart"}

    cart = client.get("/cart", headers=headers).json()["cart"]
    assert len(cart) == 1
    assert cart[0]["product_id"] == product_id
    assert cart[0]["offering_id"] == offering_id
    assert cart[0]["quantity"] == 2

    assert client.get("/cart/count", headers=headers).json() == {"count": 1}


def test_adding_same_offering_merges_quantity(client: TestClient, seed) -> None:
    customer_id, product_id, offering_id = _catalog(seed)
    headers = seed.headers(customer_id)
    payload = {"product_id": product_id, "offering_id": offering_id, "quantity": 2}

    client.post("/cart/add", json=payload, headers=headers)
    client.post("/cart/add", json=payload, headers=headers)

    cart = client.get("/cart", headers=headers).json()["cart"]
    assert [line["quantity"] for line in cart] == [4]


def test_add_beyond_stock_is_rejected(client: TestClient, seed) -> None:
    customer_id, product_id, offering_id = _catalog(seed, stock=1)

    response = client.post(
        "/cart/add",
        json={"product_id": product_id, "offering_id": offering_id, "quantity": 2},
        headers=seed.headers(customer_id),
    )

    assert response.status_code == 400
    assert response.json()["error"] == "insufficient_stock"
    assert response.json()["available"] == 1


def test_add_unavailable_offering_is_rejected(client: TestClient, seed) -> None:
    customer_id = seed.customer()
    vendor_id = seed.user("vendor")
    product_id, offering_id = seed.offering(vendor_id=vendor_id, is_deleted=True)

    response = client.post(
        "/cart/add",
        json={"product_id": product_id, "offering_id": offering_id, "quantity": 1},
        headers=seed.headers(customer_id),
    )

    assert response.status_code == 400
    assert response.json()["error"] == "offering_unavailable"


def test_add_validates_quantity(client: TestClient, seed) -> None:
    customer_id, product_id, offering_id = _catalog(seed)

    response = client.post(
        "/cart/add",
        json={"product_id": product_id, "offering_id": offering_id, "quantity": 0},
        headers=seed.headers(customer_id),
    )

    assert response.status_code == 422


def test_update_quantity(client: TestClient, seed) -> None:
    customer_id, product_id, offering_id = _catalog(seed)
    seed.cart_line(customer_id, product_id, offering_id, 1)
    headers = seed.headers(customer_id)

    response = client.put(
        "/cart/update", json={"product_id": product_id, "quantity": 3}, headers=headers
    )
    assert response.status_code == 200

    cart = client.get("/cart", headers=headers).json()["cart"]
    assert cart[0]["quantity"] == 3


def test_update_missing_line_is_404(client: TestClient, seed) -> None:
    customer_id, product_id, _ = _catalog(seed)

    response = client.put(
        "/cart/update",
        json={"product_id": product_id, "quantity": 1},
        headers=seed.headers(customer_id),
    )

    assert response.status_code == 404
    assert response.json() == {"error": "cart_item_not_found"}


def test_update_beyond_stock_is_rejected(client: TestClient, seed) -> None:
    customer_id, product_id, offering_id = _catalog(seed, stock=2)
    seed.cart_line(customer_id, product_id, offering_id, 1)

    response = client.put(
        "/cart/update",
        json={"product_id": product_id, "offering_id": offering_id, "quantity": 3},
        headers=seed.headers(customer_id),
    )

    assert response.status_code == 400
    assert response.json()["error"] == "insufficient_stock"


def test_remove_line(client: TestClient, seed) -> None:
    customer_id, product_id, offering_id = _catalog(seed)
    seed.cart_line(customer_id, product_id, offering_id, 1)
    headers = seed.headers(customer_id)

    response = client.request(
        "DELETE", "/cart/remove", json={"product_id": product_id}, headers=headers
    )
    assert response.status_code == 200
    assert client.get("/cart/count", headers=headers).json() == {"count": 0}

    again = client.request(
        "DELETE", "/cart/remove", json={"product_id": product_id}, headers=headers
    )
    assert again.status_code == 404


def test_carts_are_per_customer(client: TestClient, seed) -> None:
    customer_id, product_id, offering_id = _catalog(seed)
    other_id = seed.customer("Other")
    seed.cart_line(customer_id, product_id, offering_id, 1)

    assert client.get("/cart", headers=seed.headers(other_id)).json() == {"cart": []}


def test_cart_is_customer_only(client: TestClient, seed) -> None:
    vendor_id = seed.user("vendor")

    response = client.get("/cart", headers=seed.headers(vendor_id, "user", "vendor"))

    assert response.status_code == 403
