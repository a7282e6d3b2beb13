"""Tests for the FastAPI API."""

import pytest
from fastapi.testclient import TestClient

from .conftest import make_shipping

SHIPPING = make_shipping().to_dict()
CARD = {
    "method": "card",
    "cardholder": "Selam Bekele",
    "card_number": "4242 4242 4242 4242",
    "expiry": "12/29",
    "cvc": "123",
}


@pytest.fixture
def api_client(temp_dir, monkeypatch):
    """Create test client over an empty data directory."""
    from storefront import api, config

    monkeypatch.setattr(config, "DATA_DIR", temp_dir)
    monkeypatch.setattr(config, "MERCHANT_PIN", "1234")
    monkeypatch.setattr(config, "SAVE_LATENCY", 0.0)
    monkeypatch.setattr(config, "LIST_LATENCY", 0.0)
    api.reset_registry()

    yield TestClient(api.app)

    api.reset_registry()


@pytest.fixture
def session_id(api_client):
    response = api_client.post("/api/sessions")
    assert response.status_code == 201
    return response.json()["id"]


def add(api_client, session_id, product_id="jebena"):
    return api_client.post(
        f"/api/sessions/{session_id}/cart/items", json={"product_id": product_id}
    )


def unlock(api_client, session_id, pin="1234"):
    return api_client.post(f"/api/sessions/{session_id}/merchant/unlock", json={"pin": pin})


def place_order(api_client, session_id, payment=None):
    """Run a full checkout and return the final checkout state."""
    add(api_client, session_id)
    add(api_client, session_id)
    base = f"/api/sessions/{session_id}/checkout"
    assert api_client.post(base).status_code == 200
    assert api_client.put(f"{base}/shipping", json=SHIPPING).status_code == 200
    response = api_client.post(f"{base}/payment", json=payment or CARD)
    assert response.status_code == 200
    return response.json()


class TestHealthCheck:
    def test_health(self, api_client):
        response = api_client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["sessions"] == 0


class TestProducts:
    def test_list_all(self, api_client):
        response = api_client.get("/api/products")
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == len(data["products"]) == 8
        assert {"id", "price", "imageUrl", "inStock"} <= set(data["products"][0])

    def test_filter_by_category(self, api_client):
        response = api_client.get("/api/products", params={"category": "Art"})
        data = response.json()
        assert data["count"] == 2
        assert all(p["category"] == "Art" for p in data["products"])

    def test_unknown_category(self, api_client):
        response = api_client.get("/api/products", params={"category": "Furniture"})
        assert response.status_code == 422
        assert response.json()["fields"] == ["category"]

    def test_get_product(self, api_client):
        response = api_client.get("/api/products/jebena")
        assert response.status_code == 200
        assert response.json()["price"] == 40

    def test_get_missing_product(self, api_client):
        response = api_client.get("/api/products/nope")
        assert response.status_code == 404
        assert response.json()["error_type"] == "ProductNotFoundError"


class TestCart:
    def test_unknown_session(self, api_client):
        response = api_client.get("/api/sessions/nope/cart")
        assert response.status_code == 404
        assert response.json()["error_type"] == "SessionNotFoundError"

    def test_add_merges_lines(self, api_client, session_id):
        add(api_client, session_id)
        response = add(api_client, session_id)

        assert response.status_code == 201
        data = response.json()
        assert len(data["items"]) == 1
        assert data["items"][0]["quantity"] == 2
        assert data["count"] == 2
        assert data["subtotal"] == 80

    def test_add_out_of_stock_product(self, api_client, session_id):
        response = add(api_client, session_id, "amber-beads")

        assert response.status_code == 409
        assert response.json()["error_type"] == "ProductUnavailableError"
        assert api_client.get(f"/api/sessions/{session_id}/cart").json()["count"] == 0

    def test_update_quantity_clamps_at_one(self, api_client, session_id):
        add(api_client, session_id)

        response = api_client.patch(
            f"/api/sessions/{session_id}/cart/items/jebena", json={"delta": -5}
        )

        assert response.status_code == 200
        assert response.json()["items"][0]["quantity"] == 1

    def test_update_unknown_line_is_noop(self, api_client, session_id):
        add(api_client, session_id)

        response = api_client.patch(
            f"/api/sessions/{session_id}/cart/items/gabi-shawl", json={"delta": 1}
        )

        assert response.status_code == 200
        assert response.json()["count"] == 1

    def test_remove_and_clear(self, api_client, session_id):
        add(api_client, session_id)
        add(api_client, session_id, "gabi-shawl")

        response = api_client.delete(f"/api/sessions/{session_id}/cart/items/jebena")
        assert [i["productId"] for i in response.json()["items"]] == ["gabi-shawl"]

        response = api_client.delete(f"/api/sessions/{session_id}/cart")
        assert response.json() == {"items": [], "count": 0, "subtotal": 0}

    def test_sessions_are_isolated(self, api_client, session_id):
        other = api_client.post("/api/sessions").json()["id"]
        add(api_client, session_id)

        assert api_client.get(f"/api/sessions/{other}/cart").json()["count"] == 0


class TestCheckout:
    def test_open_empty_cart(self, api_client, session_id):
        response = api_client.post(f"/api/sessions/{session_id}/checkout")
        assert response.status_code == 409
        assert response.json()["error_type"] == "EmptyCartError"

    def test_open(self, api_client, session_id):
        add(api_client, session_id)

        response = api_client.post(f"/api/sessions/{session_id}/checkout")

        data = response.json()
        assert data["open"] is True
        assert data["step"] == "shipping"
        assert data["order_id"].startswith("ETH-")
        assert data["quote"] == {
            "subtotal": 40,
            "shippingCost": 25,
            "duties": 12.5,
            "total": 77.5,
        }

    def test_missing_shipping_fields(self, api_client, session_id):
        add(api_client, session_id)
        api_client.post(f"/api/sessions/{session_id}/checkout")

        response = api_client.put(
            f"/api/sessions/{session_id}/checkout/shipping",
            json={**SHIPPING, "email": "", "city": "  "},
        )

        assert response.status_code == 422
        assert response.json()["fields"] == ["email", "city"]
        state = api_client.get(f"/api/sessions/{session_id}/checkout").json()
        assert state["step"] == "shipping"

    def test_payment_before_shipping(self, api_client, session_id):
        add(api_client, session_id)
        api_client.post(f"/api/sessions/{session_id}/checkout")

        response = api_client.post(f"/api/sessions/{session_id}/checkout/payment", json=CARD)

        assert response.status_code == 409
        assert response.json()["error_type"] == "InvalidStepError"

    def test_back_keeps_shipping(self, api_client, session_id):
        add(api_client, session_id)
        base = f"/api/sessions/{session_id}/checkout"
        api_client.post(base)
        api_client.put(f"{base}/shipping", json=SHIPPING)

        response = api_client.post(f"{base}/back")

        data = response.json()
        assert data["step"] == "shipping"
        assert data["shipping"] == SHIPPING

    def test_card_fields_required(self, api_client, session_id):
        add(api_client, session_id)
        base = f"/api/sessions/{session_id}/checkout"
        api_client.post(base)
        api_client.put(f"{base}/shipping", json=SHIPPING)

        response = api_client.post(f"{base}/payment", json={"method": "card"})

        assert response.status_code == 422
        assert response.json()["fields"] == ["cardholder", "number", "expiry", "cvc"]

    def test_full_checkout(self, api_client, session_id):
        data = place_order(api_client, session_id)

        assert data["step"] == "confirmation"
        order = data["order"]
        assert order["id"] == data["order_id"]
        assert order["total"] == 117.5
        assert order["paymentMethod"] == "card"
        assert order["status"] == "pending"
        assert order["items"][0]["quantity"] == 2
        assert api_client.get(f"/api/sessions/{session_id}/cart").json()["count"] == 0

    def test_bank_transfer_shows_instructions(self, api_client, session_id):
        data = place_order(api_client, session_id, payment={"method": "bank_transfer"})

        assert data["order"]["paymentMethod"] == "bank_transfer"
        assert "IBAN" in data["bank_instructions"]

    def test_close_discards_draft(self, api_client, session_id):
        add(api_client, session_id)
        base = f"/api/sessions/{session_id}/checkout"
        api_client.post(base)
        api_client.put(f"{base}/shipping", json=SHIPPING)

        data = api_client.delete(base).json()

        assert data["open"] is False
        assert data["shipping"] is None
        assert data["order_id"] is None

    def test_bank_transfer_endpoint(self, api_client):
        response = api_client.get("/api/bank-transfer")
        assert "IBAN" in response.json()["instructions"]


class TestMerchant:
    def test_locked_by_default(self, api_client, session_id):
        response = api_client.get(f"/api/sessions/{session_id}/merchant/orders")
        assert response.status_code == 403
        assert response.json()["error_type"] == "AuthorizationError"

    def test_wrong_pin(self, api_client, session_id):
        response = unlock(api_client, session_id, "0000")

        assert response.status_code == 403
        assert response.json()["detail"] == "Incorrect PIN"
        assert api_client.get(f"/api/sessions/{session_id}/merchant/orders").status_code == 403

    def test_unlock_and_list(self, api_client, session_id):
        placed = place_order(api_client, session_id)

        assert unlock(api_client, session_id).json() == {"unlocked": True, "error": False}
        response = api_client.get(f"/api/sessions/{session_id}/merchant/orders")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["orders"][0]["id"] == placed["order_id"]

    def test_orders_visible_across_sessions(self, api_client, session_id):
        placed = place_order(api_client, session_id)
        merchant = api_client.post("/api/sessions").json()["id"]
        unlock(api_client, merchant)

        response = api_client.get(
            f"/api/sessions/{merchant}/merchant/orders/{placed['order_id']}"
        )

        assert response.status_code == 200
        assert response.json()["total"] == 117.5

    def test_get_missing_order(self, api_client, session_id):
        unlock(api_client, session_id)

        response = api_client.get(f"/api/sessions/{session_id}/merchant/orders/ETH-0")

        assert response.status_code == 404

    def test_summary(self, api_client, session_id):
        place_order(api_client, session_id)
        unlock(api_client, session_id)

        response = api_client.get(f"/api/sessions/{session_id}/merchant/summary")

        assert response.json() == {
            "order_count": 1,
            "revenue": 117.5,
            "by_payment_method": {"card": 1},
        }

    def test_clear(self, api_client, session_id):
        place_order(api_client, session_id)
        unlock(api_client, session_id)

        response = api_client.delete(f"/api/sessions/{session_id}/merchant/orders")

        assert response.json() == {"deleted": 1}
        listing = api_client.get(f"/api/sessions/{session_id}/merchant/orders").json()
        assert listing["count"] == 0


class TestEndSession:
    def test_end_session(self, api_client, session_id):
        response = api_client.delete(f"/api/sessions/{session_id}")

        assert response.status_code == 204
        assert api_client.get(f"/api/sessions/{session_id}/cart").status_code == 404
