from datetime import timedelta


def create_order(client, headers, items, address_payload, **extra):
    payload = {"items": items, "address": address_payload, **extra}
    return client.post("/orders/", json=payload, headers=headers)


def test_root_and_health(client):
    assert client.get("/").json()["service"] == "order-ledger"
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "pass"
    assert client.get("/health/live").json() == {"status": "alive"}


def test_request_id_echoed(client):
    resp = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert resp.headers["X-Request-ID"] == "req-123"


def test_missing_token(client):
    resp = client.get("/orders/my")
    assert resp.status_code == 401


def test_invalid_token(client):
    resp = client.get("/orders/my", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_expired_token(client, auth_headers):
    resp = client.get("/orders/my", headers=auth_headers(7, expires_minutes=-5))
    assert resp.status_code == 401


def test_create_order(client, seed, auth_headers, address_payload):
    customer = seed.customer()
    product = seed.product(price="25.00", stock=5, seller_id=77)
    seed.coupon(name="WELCOME", discount="50", expires_in=timedelta(days=1))

    resp = create_order(
        client, auth_headers(customer.id),
        [{"product_id": product.id, "quantity": 2}],
        address_payload,
        coupon_code="WELCOME",
        payment_method="Debit-Card",
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "Order created successfully"
    order = body["order"]
    assert order["customer_id"] == customer.id
    assert order["status"] == "pending"
    assert order["total_price"] == 50.0
    assert order["discount"] == 25.0
    assert order["final_price"] == 25.0
    assert order["payment_method"] == "Debit-Card"
    assert order["items"] == [{"product_id": product.id, "seller_id": 77, "quantity": 2, "unit_price": 25.0}]
    assert order["address"]["country"] == "India"


def test_create_order_errors(client, seed, auth_headers, address_payload):
    customer = seed.customer()
    product = seed.product(stock=1)
    headers = auth_headers(customer.id)

    resp = create_order(client, headers, [], address_payload)
    assert resp.status_code == 400

    resp = create_order(client, headers, [{"product_id": 999, "quantity": 1}], address_payload)
    assert resp.status_code == 404
    assert resp.json()["detail"] == "One or more products not found"

    resp = create_order(client, headers, [{"product_id": product.id, "quantity": 2}], address_payload)
    assert resp.status_code == 409
    assert "Only 1 units available" in resp.json()["detail"]

    resp = create_order(client, headers, [{"product_id": product.id, "quantity": 1}], address_payload, coupon_code="BOGUS")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid or inactive coupon"

    resp = create_order(client, headers, [{"product_id": product.id, "quantity": 1}], address_payload, payment_method="Cheque")
    assert resp.status_code == 422


def test_cancel_and_refund_endpoints(client, seed, auth_headers, address_payload):
    customer = seed.customer()
    product = seed.product(stock=3)
    headers = auth_headers(customer.id)
    order_id = create_order(
        client, headers, [{"product_id": product.id, "quantity": 2}], address_payload, payment_method="UPI"
    ).json()["order"]["id"]

    other = auth_headers(customer.id + 50)
    assert client.put(f"/orders/cancel/{order_id}", headers=other).status_code == 403

    resp = client.put(f"/orders/cancel/{order_id}", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"
    assert resp.json()["refund_process"] == "processing"

    resp = client.put(f"/orders/cancel/{order_id}", headers=headers)
    assert resp.status_code == 409

    refund = {"refund_process": "done", "status": "refunded"}
    assert client.put(f"/orders/refund/{order_id}", json=refund, headers=headers).status_code == 403
    resp = client.put(f"/orders/refund/{order_id}", json=refund, headers=auth_headers(1, "admin"))
    assert resp.status_code == 200
    assert resp.json()["status"] == "refunded"
    assert resp.json()["refund_process"] == "done"

    reopen = client.put(f"/orders/refund/{order_id}", json={"status": "pending"}, headers=auth_headers(1, "admin"))
    assert reopen.status_code == 409


def test_status_endpoint(client, seed, auth_headers, address_payload):
    customer = seed.customer()
    product = seed.product(seller_id=42)
    order_id = create_order(
        client, auth_headers(customer.id), [{"product_id": product.id, "quantity": 1}], address_payload
    ).json()["order"]["id"]
    seller = auth_headers(42, "seller")

    assert client.put(f"/orders/status/{order_id}", json={"status": "shipped"}, headers=auth_headers(customer.id)).status_code == 403
    assert client.put(f"/orders/status/{order_id}", json={"status": "delivered"}, headers=seller).status_code == 409
    assert client.put(f"/orders/status/{order_id}", json={"status": "shipped"}, headers=auth_headers(43, "seller")).status_code == 403

    resp = client.put(f"/orders/status/{order_id}", json={"status": "shipped"}, headers=seller)
    assert resp.status_code == 200
    assert resp.json()["status"] == "shipped"

    resp = client.put(f"/orders/cancel/{order_id}", headers=auth_headers(customer.id))
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Cannot cancel order with status: shipped"


def test_listings_and_pagination(client, seed, auth_headers, address_payload):
    alice = seed.customer("Alice")
    bob = seed.customer("Bob")
    mine = seed.product(stock=50, seller_id=10)
    theirs = seed.product(stock=50, seller_id=20)

    for _ in range(3):
        create_order(client, auth_headers(alice.id), [{"product_id": mine.id, "quantity": 1}], address_payload)
    create_order(client, auth_headers(bob.id), [{"product_id": theirs.id, "quantity": 1}], address_payload)

    admin = auth_headers(1, "admin")
    assert client.get("/orders/", headers=auth_headers(alice.id)).status_code == 403

    resp = client.get("/orders/", params={"page": 2, "limit": 3}, headers=admin)
    assert resp.status_code == 200
    body = resp.json()
    assert body["pagination"] == {"page": 2, "limit": 3, "total": 4, "pages": 2}
    assert len(body["orders"]) == 1

    resp = client.get("/orders/", params={"limit": 500}, headers=admin)
    assert resp.json()["pagination"]["limit"] == 100

    mine_resp = client.get("/orders/my", headers=auth_headers(alice.id))
    assert [o["customer_id"] for o in mine_resp.json()] == [alice.id] * 3

    assert client.get(f"/orders/user/{bob.id}", headers=auth_headers(alice.id)).status_code == 403
    assert len(client.get(f"/orders/user/{bob.id}", headers=admin).json()) == 1

    seller_resp = client.get("/orders/seller", headers=auth_headers(20, "seller"))
    assert seller_resp.json()["pagination"]["total"] == 1
    assert client.get("/orders/seller", headers=auth_headers(alice.id)).status_code == 403

    resp = client.get("/orders/seller/10", headers=admin)
    assert resp.json()["pagination"]["total"] == 3


def test_get_and_delete(client, seed, auth_headers, address_payload):
    customer = seed.customer()
    product = seed.product(seller_id=5)
    order_id = create_order(
        client, auth_headers(customer.id), [{"product_id": product.id, "quantity": 1}], address_payload
    ).json()["order"]["id"]

    assert client.get(f"/orders/{order_id}", headers=auth_headers(customer.id)).status_code == 200
    assert client.get(f"/orders/{order_id}", headers=auth_headers(5, "seller")).status_code == 200
    assert client.get(f"/orders/{order_id}", headers=auth_headers(6, "seller")).status_code == 403
    assert client.get(f"/orders/{order_id}", headers=auth_headers(customer.id + 1)).status_code == 403

    admin = auth_headers(1, "admin")
    assert client.delete(f"/orders/{order_id}", headers=auth_headers(customer.id)).status_code == 403
    assert client.delete(f"/orders/{order_id}", headers=admin).status_code == 204
    assert client.get(f"/orders/{order_id}", headers=admin).status_code == 404
    assert client.delete(f"/orders/{order_id}", headers=admin).status_code == 404
