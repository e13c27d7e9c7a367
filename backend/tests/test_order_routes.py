"""
Order, refund and menu API tests.

Verifies status codes and JSON shapes at the HTTP boundary.
"""

import pytest


def tea(qty=1, price=30):
    return {"name": "Tea", "category": "Hot Beverages", "qty": qty, "price": price}


def create(client, **body):
    body.setdefault("items", [tea(2)])
    return client.post("/api/orders", json=body)


# =============================================================================
# ORDERS
# =============================================================================


class TestOrdersApi:

    def test_create_returns_camel_case_order(self, client, db_session):
        resp = create(client, categories=["Hot Beverages"], totalAmount=60)
        assert resp.status_code == 201

        body = resp.get_json()
        assert body["orderNumber"] == 1
        assert body["totalAmount"] == 60
        assert body["status"] == "PENDING"
        assert body["isEmployeeOrder"] is False
        assert body["items"] == [{"name": "Tea", "category": "Hot Beverages", "qty": 2, "price": 30, "addOns": []}]
        assert body["createdAt"].endswith("Z")
        assert body["deliveredAt"] is None

    def test_employee_flag(self, client, db_session):
        body = create(client, employee=True).get_json()
        assert body["totalAmount"] == 0
        assert body["isEmployeeOrder"] is True

    @pytest.mark.parametrize("body", [
        {"items": []},
        {"items": [{"name": "Tea", "category": "Hot Beverages", "qty": 0, "price": 30}]},
        {"items": [tea()], "totalAmount": "lots"},
    ])
    def test_create_validation_errors(self, client, db_session, body):
        resp = client.post("/api/orders", json=body)
        assert resp.status_code == 400
        assert "error" in resp.get_json()

    def test_create_rejects_non_json(self, client, db_session):
        resp = client.post("/api/orders", data="nope", content_type="text/plain")
        assert resp.status_code == 400

    def test_list_newest_first(self, client, db_session):
        create(client)
        create(client)
        orders = client.get("/api/orders").get_json()
        assert [o["orderNumber"] for o in orders] == [2, 1]

    def test_get_and_404(self, client, db_session):
        order_id = create(client).get_json()["id"]
        assert client.get(f"/api/orders/{order_id}").status_code == 200
        assert client.get("/api/orders/999").status_code == 404

    def test_put_recomputes_total(self, client, db_session):
        order_id = create(client).get_json()["id"]
        resp = client.put(f"/api/orders/{order_id}", json={"items": [tea(3)], "totalAmount": 1})
        assert resp.status_code == 200
        assert resp.get_json()["totalAmount"] == 90

    def test_lifecycle(self, client, db_session, ledger):
        order_id = create(client).get_json()["id"]

        assert client.patch(f"/api/orders/{order_id}/deliver").status_code == 400

        confirmed = client.patch(f"/api/orders/{order_id}/confirm")
        assert confirmed.status_code == 200
        assert confirmed.get_json()["status"] == "CONFIRMED"
        assert len(ledger.orders) == 1

        delivered = client.patch(f"/api/orders/{order_id}/deliver")
        assert delivered.status_code == 200
        assert delivered.get_json()["deliveredAt"] is not None

        edit = client.put(f"/api/orders/{order_id}", json={"items": [tea(5)]})
        assert edit.status_code == 409
        assert client.get(f"/api/orders/{order_id}").get_json()["items"][0]["qty"] == 2

    def test_confirm_and_deliver_404(self, client, db_session):
        assert client.patch("/api/orders/999/confirm").status_code == 404
        assert client.patch("/api/orders/999/deliver").status_code == 404

    def test_confirm_survives_ledger_outage(self, client, db_session, ledger):
        ledger.fail = True
        order_id = create(client).get_json()["id"]
        assert client.patch(f"/api/orders/{order_id}/confirm").status_code == 200

    def test_put_backwards_status_is_400(self, client, db_session, ledger):
        order_id = create(client).get_json()["id"]
        client.patch(f"/api/orders/{order_id}/confirm")
        assert client.put(f"/api/orders/{order_id}", json={"status": "PENDING"}).status_code == 400

    def test_put_confirm_reaches_ledger(self, client, db_session, ledger):
        order_id = create(client).get_json()["id"]
        resp = client.put(f"/api/orders/{order_id}", json={"status": "CONFIRMED"})
        assert resp.status_code == 200
        assert len(ledger.orders) == 1

    def test_delete_all_requires_staff(self, client, db_session):
        create(client)
        assert client.delete("/api/orders").status_code == 401

    def test_delete_all(self, client, db_session, staff_headers):
        create(client)
        create(client)
        resp = client.delete("/api/orders", headers=staff_headers)
        assert resp.status_code == 200
        assert resp.get_json() == {"deletedCount": 2}
        assert client.get("/api/orders").get_json() == []


# =============================================================================
# REFUNDS
# =============================================================================


class TestRefundsApi:

    @pytest.fixture
    def order_number(self, client, db_session, ledger):
        body = create(client, items=[tea(3)]).get_json()
        client.patch(f"/api/orders/{body['id']}/confirm")
        return body["orderNumber"]

    def test_create_and_clamp(self, client, order_number, ledger):
        resp = client.post("/api/refunds", json={
            "orderNumber": order_number,
            "refundedItems": [{"name": "Tea", "qty": 5, "price": 30}],
        })
        assert resp.status_code == 201
        refund = resp.get_json()["refund"]
        assert refund["refundAmount"] == 90
        assert refund["refundedItems"][0]["qty"] == 3
        assert len(ledger.refunds) == 1

    def test_nothing_left_is_400(self, client, order_number):
        client.post("/api/refunds", json={"orderNumber": order_number, "refundedItems": [{"name": "Tea", "qty": 3}]})
        resp = client.post("/api/refunds", json={"orderNumber": order_number, "refundedItems": [{"name": "Tea", "qty": 1}]})
        assert resp.status_code == 400
        assert len(client.get("/api/refunds").get_json()) == 1

    def test_malformed_payload(self, client, order_number):
        assert client.post("/api/refunds", json={"orderNumber": order_number, "refundedItems": []}).status_code == 400
        assert client.post("/api/refunds", json={"refundedItems": [{"name": "Tea", "qty": 1}]}).status_code == 400

    def test_unknown_order_is_404(self, client, db_session):
        resp = client.post("/api/refunds", json={"orderNumber": 77, "refundedItems": [{"name": "Tea", "qty": 1}]})
        assert resp.status_code == 404

    def test_list_filter_and_remaining(self, client, order_number):
        client.post("/api/refunds", json={"orderNumber": order_number, "refundedItems": [{"name": "Tea", "qty": 1}]})

        assert len(client.get(f"/api/refunds?orderNumber={order_number}").get_json()) == 1
        assert client.get(f"/api/refunds?orderNumber={order_number + 1}").get_json() == []

        remaining = client.get(f"/api/refunds/orders/{order_number}/remaining").get_json()
        assert remaining["items"][0]["remaining"] == 2
        assert client.get("/api/refunds/orders/999/remaining").status_code == 404


# =============================================================================
# MENU
# =============================================================================


class TestMenuApi:

    def test_menu(self, client):
        body = client.get("/api/menu").get_json()
        assert "Salad Bowls" in body["categories"]
        assert any(item["id"] == "hot-tea" for item in body["items"])

    def test_quote(self, client):
        resp = client.post("/api/menu/quote", json={
            "lines": [
                {"itemId": "hot-tea", "qty": 2},
                {"itemId": "salad-roasted-crispy-potato", "addOns": ["Yogurt", "Mint"], "qty": 1},
                {"itemId": "juice-abc", "qty": 1},
            ],
            "outOfStock": ["juice-abc"],
        })
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["totalAmount"] == 240
        assert body["itemCount"] == 3
        assert body["categories"] == ["Hot Beverages", "Salad Bowls"]

    def test_quote_rejects_unknown_item(self, client):
        resp = client.post("/api/menu/quote", json={"lines": [{"itemId": "nope", "qty": 1}]})
        assert resp.status_code == 400


# =============================================================================
# HEALTH
# =============================================================================


def test_health(client, db_session):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "healthy"
    assert body["checks"]["ledger"]["status"] in ("disabled", "configured")
