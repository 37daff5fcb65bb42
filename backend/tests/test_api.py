"""
HTTP API tests through the Flask test client.
"""

import pytest


def _create_product(client, **overrides):
    payload = {"name": "Kola", "price": 40, "stock": 5, "category": "Drinks", **overrides}
    resp = client.post("/api/products", json=payload)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["product"]


def _create_table(client, name="A 1", section="Alt Kat"):
    resp = client.post("/api/tables", json={"name": name, "section": section})
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["table"]


def test_health(client, db_session):
    resp = client.get("/health")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "healthy"
    assert body["checks"]["database"]["details"]["active_orders"] == 0


def test_product_validation(client, db_session):
    resp = client.post("/api/products", json={"name": "Kola"})
    assert resp.status_code == 400
    assert "price" in resp.get_json()["error"]

    resp = client.post("/api/products", json={"name": "Kola", "price": 12.5})
    assert resp.status_code == 400

    resp = client.post("/api/products", json={"name": "Kola", "price": 10, "default_item_type": "gift"})
    assert resp.status_code == 400


def test_product_crud(client, db_session):
    product = _create_product(client)

    resp = client.put(f"/api/products/{product['id']}", json={"price": 45})
    assert resp.status_code == 200
    assert resp.get_json()["product"]["price"] == 45

    # Stock only moves through the inventory endpoints
    resp = client.put(f"/api/products/{product['id']}", json={"stock": 100})
    assert resp.status_code == 400

    resp = client.get("/api/products?category=Drinks")
    assert resp.get_json()["count"] == 1
    assert client.get("/api/products/categories").get_json() == {"categories": ["Drinks"]}

    resp = client.delete(f"/api/products/{product['id']}")
    assert resp.status_code == 200
    assert client.get(f"/api/products/{product['id']}").status_code == 404


def test_order_flow(client, db_session):
    product = _create_product(client, price=50, stock=5)
    table = _create_table(client)

    resp = client.post("/api/orders/start", json={"table_id": table["id"], "product_id": product["id"], "quantity": 3})
    assert resp.status_code == 201
    body = resp.get_json()
    order_id = body["order"]["id"]
    item_id = body["item"]["id"]
    assert body["order"]["total_amount"] == 150

    resp = client.get(f"/api/tables/{table['id']}/active-order")
    assert resp.get_json()["order"]["id"] == order_id

    resp = client.post(f"/api/orders/items/{item_id}/pay", json={"quantity": 1})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["item"]["is_paid"] is True
    assert body["balance"] == {
        "order_id": order_id,
        "total_amount": 150,
        "paid_amount": 50,
        "remaining_amount": 100,
    }

    resp = client.post(f"/api/orders/items/{body['item']['id']}/unpay")
    assert resp.status_code == 200
    assert [i["quantity"] for i in resp.get_json()["items"]] == [3]

    resp = client.post(f"/api/orders/{order_id}/close", json={"status": "no_payment", "table_id": table["id"]})
    assert resp.status_code == 200
    assert resp.get_json()["order"]["status"] == "no_payment"

    resp = client.get(f"/api/tables/{table['id']}")
    assert resp.get_json()["table"]["status"] == "available"

    resp = client.post(f"/api/orders/{order_id}/items", json={"product_id": product["id"]})
    assert resp.status_code == 409
    assert resp.get_json()["code"] == "ORDER_CLOSED"

    resp = client.patch(f"/api/orders/{order_id}/status", json={"status": "paid"})
    assert resp.status_code == 200
    assert resp.get_json()["order"]["status"] == "paid"


def test_order_errors(client, db_session):
    product = _create_product(client, stock=1)
    table = _create_table(client)

    resp = client.post("/api/orders", json={"table_id": table["id"]})
    assert resp.status_code == 201
    order_id = resp.get_json()["order"]["id"]

    resp = client.post("/api/orders", json={"table_id": table["id"]})
    assert resp.status_code == 409
    assert resp.get_json()["code"] == "TABLE_OCCUPIED"

    resp = client.post(f"/api/orders/{order_id}/items", json={"product_id": product["id"], "quantity": 2})
    assert resp.status_code == 409
    body = resp.get_json()
    assert body["code"] == "OUT_OF_STOCK"
    assert body["details"]["available"] == 1

    resp = client.post(f"/api/orders/{order_id}/items", json={"product_id": product["id"], "quantity": 0})
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "INVALID_QUANTITY"

    resp = client.post(f"/api/orders/{order_id}/items", json={})
    assert resp.status_code == 400

    resp = client.post("/api/orders/items/999/pay", json={})
    assert resp.status_code == 404
    assert resp.get_json()["code"] == "ITEM_NOT_FOUND"

    resp = client.post(f"/api/orders/{order_id}/close", json={"status": "maybe"})
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "INVALID_ORDER_STATUS"

    assert client.get("/api/orders/999").status_code == 404


def test_inventory_endpoints(client, db_session):
    product = _create_product(client, stock=2)

    resp = client.post(f"/api/inventory/{product['id']}/adjust", json={"change_amount": 4, "reason": "Delivery"})
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["product"]["stock"] == 6
    assert body["entry"]["reason"] == "Delivery"

    resp = client.post(f"/api/inventory/{product['id']}/adjust", json={"change_amount": 0})
    assert resp.status_code == 400

    resp = client.post("/api/inventory/999/adjust", json={"change_amount": 1})
    assert resp.status_code == 404

    resp = client.post(f"/api/inventory/{product['id']}/toggle-unlimited")
    assert resp.get_json()["product"]["is_unlimited"] is True

    resp = client.get(f"/api/inventory/log?product_id={product['id']}")
    assert resp.get_json()["count"] == 1


def test_sections_endpoint(client, db_session):
    _create_table(client, "T 1", "Teras")
    _create_table(client, "A 1", "Alt Kat")

    resp = client.get("/api/tables/sections")
    sections = resp.get_json()["sections"]
    assert [s["section"] for s in sections] == ["Alt Kat", "Teras"]


@pytest.mark.parametrize("path", ["/api/reports/summary", "/api/reports/product-sales", "/api/reports/orders"])
def test_reports_endpoints(client, db_session, path):
    resp = client.get(f"{path}?period=week")
    assert resp.status_code == 200

    resp = client.get(f"{path}?period=decade")
    assert resp.status_code == 400


def test_reports_after_sale(client, db_session):
    product = _create_product(client, price=40)
    table = _create_table(client)
    resp = client.post("/api/orders/start", json={"table_id": table["id"], "product_id": product["id"], "quantity": 2})
    order_id = resp.get_json()["order"]["id"]
    client.post(f"/api/orders/{order_id}/close", json={})

    summary = client.get("/api/reports/summary?period=today").get_json()
    assert summary["total_revenue"] == 80
    assert summary["total_orders"] == 1

    sales = client.get("/api/reports/product-sales").get_json()
    assert sales["total_revenue"] == 80
    assert sales["items"][0]["paid"] == 2

    history = client.get("/api/reports/orders?status=paid").get_json()
    assert history["count"] == 1
    assert history["items"][0]["remaining_amount"] == 80


def test_set_stock_endpoint(client, db_session):
    product = _create_product(client, stock=5)

    resp = client.post(f"/api/inventory/{product['id']}/set", json={"new_stock": 12, "reason": "Recount"})
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["entry"]["change_amount"] == 7
    assert body["product"]["stock"] == 12

    resp = client.post(f"/api/inventory/{product['id']}/set", json={"new_stock": 12})
    assert resp.status_code == 200
    assert resp.get_json()["entry"] is None

    resp = client.post(f"/api/inventory/{product['id']}/set", json={})
    assert resp.status_code == 400

    assert client.get("/api/inventory/log").get_json()["count"] == 1


def test_product_update_cannot_touch_stock(client, db_session):
    product = _create_product(client, stock=5)

    resp = client.put(f"/api/products/{product['id']}", json={"is_unlimited": True})
    assert resp.status_code == 400
    assert client.get(f"/api/products/{product['id']}").get_json()["product"]["is_unlimited"] is False
