"""
HTTP API tests.

Requests run in their own app context; ids are read from fixtures before
the first request and state is checked through the API.
"""

from conftest import order_payload


def test_ping_and_health(client, db_session):
    assert client.get("/api/ping").status_code == 200
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.get_json()["checks"]["database"]["status"] == "healthy"


def test_email_status_reports_configuration(app, client, monkeypatch):
    body = client.get("/api/email/status").get_json()
    assert body["configured"] is False
    assert "apiKey" not in body

    monkeypatch.setitem(app.config, "EMAIL_API_KEY", "re_test")
    body = client.get("/api/email/status").get_json()
    assert body["configured"] is True
    assert "re_test" not in str(body)


def test_checkout_and_tracking(client, db_session, sheet_set, sent_emails):
    product_id = sheet_set.id
    payload = order_payload({"productId": product_id, "name": "Sheets", "qty": 2, "size": "Queen", "color": "White"})

    response = client.post("/api/orders", json=payload)
    assert response.status_code == 201
    order = response.get_json()
    assert order["status"] == "pending"
    assert order["statusHistory"][0]["status"] == "pending"

    tracked = client.get(f"/api/orders/track/{order['orderNumber'].lower()}")
    assert tracked.status_code == 200
    assert tracked.get_json()["id"] == order["id"]

    product = client.get(f"/api/products/{product_id}").get_json()
    assert product["variantStock"]["Queen-White"] == 0

    again = client.post("/api/orders", json=payload)
    assert again.status_code == 400
    body = again.get_json()
    assert "out of stock" in body["message"]
    assert body["details"]["errors"] == ["Sheets (Queen/White) is out of stock"]


def test_checkout_rejects_empty_cart(client, db_session):
    response = client.post("/api/orders", json=order_payload())
    assert response.status_code == 400
    assert response.get_json()["message"] == "No items in order"


def test_cancel_via_status_endpoint(client, db_session, towel, sent_emails):
    product_id = towel.id
    created = client.post("/api/orders", json=order_payload({"productId": product_id, "name": "Towel", "qty": 3})).get_json()

    response = client.patch(f"/api/orders/{created['id']}/status", json={"status": "cancelled"})
    assert response.status_code == 200
    assert [h["status"] for h in response.get_json()["statusHistory"]] == ["pending", "cancelled"]

    product = client.get(f"/api/products/{product_id}").get_json()
    assert product["variantStock"]["Standard-White"] == 10


def test_status_endpoint_errors(client, db_session):
    assert client.patch("/api/orders/1/status", json={}).status_code == 400
    assert client.patch("/api/orders/424242/status", json={"status": "confirmed"}).status_code == 404
    assert client.get("/api/orders/track/NOPE00").status_code == 404


def test_customer_orders_by_email(client, db_session, towel, sent_emails):
    product_id = towel.id
    client.post("/api/orders", json=order_payload({"productId": product_id, "name": "Towel", "qty": 1}))
    orders = client.get("/api/orders/customer/AISHA@example.com").get_json()
    assert len(orders) == 1


def test_coupon_validation_endpoint(client, db_session, bedding_coupon):
    response = client.post("/api/coupons/validate", json={
        "code": "bed10",
        "items": [
            {"price": 1000, "qty": 1, "category": "Bedding"},
            {"price": 500, "qty": 1, "category": "Bath"},
        ],
    })
    body = response.get_json()
    assert response.status_code == 200
    assert body["valid"] is True
    assert body["eligibleSubtotal"] == 1000
    assert body["discountAmount"] == 100
    assert body["message"] == "Coupon applied to 1 of 2 items"

    assert client.get("/api/coupons/validate/NOPE").get_json() == {"valid": False}


def test_coupon_admin(client, db_session):
    created = client.post("/api/coupons", json={"code": "flat50", "discount": 50, "type": "flat"})
    assert created.status_code == 201
    assert created.get_json()["code"] == "FLAT50"
    assert client.post("/api/coupons", json={"code": "FLAT50", "discount": 5, "type": "flat"}).status_code == 409
    assert client.post("/api/coupons", json={"code": "BAD", "discount": 500, "type": "percentage"}).status_code == 400
    assert client.delete(f"/api/coupons/{created.get_json()['id']}").status_code == 200


def test_pos_checkout_and_void(client, db_session, towel):
    product_id = towel.id
    response = client.post("/api/pos/transactions", json={
        "items": [{"productId": product_id, "name": "Towel", "qty": 2, "price": 500}],
        "total": 1000,
        "paymentMethod": "card",
    })
    assert response.status_code == 201
    tx = response.get_json()
    assert tx["transactionNumber"].startswith("POS-")

    voided = client.patch(f"/api/pos/transactions/{tx['id']}", json={"status": "voided"})
    assert voided.status_code == 200
    assert voided.get_json()["status"] == "voided"

    product = client.get(f"/api/products/{product_id}").get_json()
    assert product["variantStock"]["Standard-White"] == 10

    stats = client.get("/api/pos/stats/today").get_json()
    assert stats["totalTransactions"] == 0


def test_pos_insufficient_stock(client, db_session, towel):
    response = client.post("/api/pos/transactions", json={
        "items": [{"productId": towel.id, "name": "Towel", "qty": 11}],
    })
    assert response.status_code == 400
    assert "only has 10 available" in response.get_json()["message"]


def test_product_crud_and_variant_stock(client, db_session):
    created = client.post("/api/products", json={
        "name": "Wool Rug",
        "category": "Living",
        "price": 2500,
        "colors": ["Ivory"],
        "variants": [{"size": "Small"}, {"size": "Large", "price": 4000}],
    })
    assert created.status_code == 201
    product_id = created.get_json()["id"]

    updated = client.patch(f"/api/products/{product_id}/variant-stock", json={"size": "Large", "color": "Ivory", "stock": 3})
    assert updated.get_json()["variantStock"] == {"Large-Ivory": 3}
    assert client.patch(f"/api/products/{product_id}/variant-stock", json={"size": "Large", "stock": -1}).status_code == 400
    assert client.patch(f"/api/products/{product_id}/stock", json={"stock": 9}).get_json()["stock"] == 9

    assert client.get("/api/products/search?q=rug").get_json()[0]["id"] == product_id
    assert client.post("/api/products", json={"name": "No price", "category": "Living"}).status_code == 400
    assert client.delete(f"/api/products/{product_id}").status_code == 200
    assert client.get(f"/api/products/{product_id}").status_code == 404


def test_categories_endpoints(client, db_session):
    assert client.post("/api/categories", json={"name": "Bath"}).status_code == 201
    assert client.post("/api/categories", json={"name": "Bath"}).status_code == 400
    assert [c["name"] for c in client.get("/api/categories").get_json()] == ["Bath"]


def test_customer_signup_and_login(client, db_session):
    signup = client.post("/api/customers/signup", json={"name": "Ali", "email": "ali@example.com", "password": "coconut1"})
    assert signup.status_code == 201
    customer_id = signup.get_json()["customer"]["id"]

    assert client.post("/api/customers/login", json={"email": "ALI@example.com", "password": "coconut1"}).status_code == 200
    assert client.post("/api/customers/login", json={"email": "ali@example.com", "password": "wrong"}).status_code == 401

    address = client.post(f"/api/customers/{customer_id}/addresses", json={"label": "Home", "fullAddress": "H. Reef, Male"})
    assert address.status_code == 201
    assert len(client.get(f"/api/customers/{customer_id}/addresses").get_json()) == 1
    assert client.post("/api/customers/424242/addresses", json={"label": "Home", "fullAddress": "x"}).status_code == 404


def test_admin_login(client, db_session):
    assert client.post("/api/admins", json={"name": "Owner", "email": "owner@homestore.local", "password": "secret123"}).status_code == 201
    assert client.post("/api/admin/login", json={"email": "owner@homestore.local", "password": "secret123"}).status_code == 200
    assert client.post("/api/admin/login", json={"email": "owner@homestore.local", "password": "nope"}).status_code == 401


def test_cors_only_for_allowed_origins(app, client, db_session, monkeypatch):
    monkeypatch.setitem(app.config, "CORS_ALLOWED_ORIGINS", ["https://shop.example"])
    allowed = client.get("/api/ping", headers={"Origin": "https://shop.example"})
    assert allowed.headers["Access-Control-Allow-Origin"] == "https://shop.example"
    other = client.get("/api/ping", headers={"Origin": "https://evil.example"})
    assert "Access-Control-Allow-Origin" not in other.headers
