"""HTTP tests for the storefront routes via TestClient."""

import pytest
from fastapi.testclient import TestClient

from storefront.api.deps import (
    get_lock_service,
    get_notifier,
    get_product_client,
    get_store_settings,
)
from storefront.data.database import get_db
from storefront.main import create_app

CUSTOMER = {"X-Customer-Id": "cust-001"}
STAFF = {"X-Staff-Id": "staff-01"}


@pytest.fixture()
def client(session_factory, catalog, notifier, lock_service, store_settings):
    app = create_app()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_product_client] = lambda: catalog
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_lock_service] = lambda: lock_service
    app.dependency_overrides[get_store_settings] = lambda: store_settings
    return TestClient(app)


def _add(client, variant_id, quantity, headers):
    return client.post("/cart/lines", json={"variant_id": variant_id, "quantity": quantity}, headers=headers)


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestCartEndpoints:
    def test_anonymous_cart_issues_session_header(self, client):
        response = _add(client, "v1", 2, {})

        assert response.status_code == 200
        token = response.headers["X-Session-Id"]
        assert response.json()["session_token"] == token

        again = client.get("/cart", headers={"X-Session-Id": token})
        assert again.headers["X-Session-Id"] == token
        body = again.json()
        assert body["item_count"] == 2
        assert body["subtotal"] == "50.00"

    def test_customer_cart_has_no_session_header(self, client):
        response = _add(client, "v1", 1, CUSTOMER)

        assert response.status_code == 200
        assert "X-Session-Id" not in response.headers
        assert response.json()["customer_id"] == "cust-001"

    def test_insufficient_stock_is_409_with_details(self, client):
        response = _add(client, "v2", 6, CUSTOMER)

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["code"] == "insufficient_stock"
        assert detail["available"] == 5
        assert detail["requested"] == 6

    def test_cart_limit_is_409(self, client):
        _add(client, "v3", 50, CUSTOMER)

        response = _add(client, "v1", 1, CUSTOMER)

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "cart_limit_exceeded"
        assert response.json()["detail"]["limit"] == 50

    def test_unknown_variant_is_404(self, client):
        response = _add(client, "missing", 1, CUSTOMER)

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "variant_not_found"

    def test_zero_quantity_fails_validation(self, client):
        assert _add(client, "v1", 0, CUSTOMER).status_code == 422

    def test_update_and_remove_lines(self, client):
        line_id = _add(client, "v1", 1, CUSTOMER).json()["lines"][0]["id"]

        updated = client.patch(f"/cart/lines/{line_id}", json={"quantity": 4}, headers=CUSTOMER)
        assert updated.json()["lines"][0]["quantity"] == 4

        removed = client.patch(f"/cart/lines/{line_id}", json={"quantity": 0}, headers=CUSTOMER)
        assert removed.json()["lines"] == []

        assert client.delete(f"/cart/lines/{line_id}", headers=CUSTOMER).status_code == 404

    def test_clear_cart(self, client):
        _add(client, "v1", 1, CUSTOMER)
        _add(client, "v2", 1, CUSTOMER)

        response = client.delete("/cart", headers=CUSTOMER)

        assert response.status_code == 200
        assert response.json()["lines"] == []

    def test_catalog_outage_is_503(self, client, catalog):
        catalog.unavailable = True

        response = _add(client, "v1", 1, CUSTOMER)

        assert response.status_code == 503
        assert response.json()["detail"]["code"] == "infrastructure_failure"


class TestMergeEndpoint:
    def test_merge_moves_anonymous_lines(self, client):
        token = _add(client, "v1", 2, {}).headers["X-Session-Id"]
        _add(client, "v1", 3, CUSTOMER)

        response = client.post("/cart/merge", headers={**CUSTOMER, "X-Session-Id": token})

        assert response.status_code == 200
        body = response.json()
        assert body["error"] is None
        assert [(l["variant_id"], l["quantity"]) for l in body["cart"]["lines"]] == [("v1", 5)]

    def test_merge_requires_customer(self, client):
        assert client.post("/cart/merge", headers={"X-Session-Id": "abc"}).status_code == 401


class TestOrderEndpoints:
    def test_checkout_flow(self, client, notifier):
        _add(client, "v1", 2, CUSTOMER)

        created = client.post(
            "/orders",
            json={"delivery_type": "STORE_PICKUP", "payment_method": "STORE_PAYMENT"},
            headers=CUSTOMER,
        )

        assert created.status_code == 201
        order = created.json()
        assert order["order_number"].startswith("BLD-")
        assert order["total"] == "50.00"
        assert client.get("/cart", headers=CUSTOMER).json()["lines"] == []
        assert len(notifier.sent) == 1

        listed = client.get("/orders", headers=CUSTOMER).json()
        assert [o["id"] for o in listed["orders"]] == [order["id"]]

        fetched = client.get(f"/orders/{order['id']}", headers=CUSTOMER)
        assert fetched.status_code == 200

        other = client.get(f"/orders/{order['id']}", headers={"X-Customer-Id": "cust-002"})
        assert other.status_code == 404

    def test_checkout_empty_cart_is_400(self, client):
        response = client.post(
            "/orders",
            json={"delivery_type": "STORE_PICKUP", "payment_method": "STORE_PAYMENT"},
            headers=CUSTOMER,
        )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "empty_cart"

    def test_checkout_requires_customer(self, client):
        response = client.post(
            "/orders",
            json={"delivery_type": "STORE_PICKUP", "payment_method": "STORE_PAYMENT"},
        )
        assert response.status_code == 401

    def test_home_delivery_without_address_is_404(self, client):
        _add(client, "v1", 1, CUSTOMER)

        response = client.post(
            "/orders",
            json={"delivery_type": "HOME_DELIVERY", "payment_method": "CASH_ON_DELIVERY"},
            headers=CUSTOMER,
        )

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "address_not_found"

    def test_cancel_and_cancel_again(self, client):
        _add(client, "v1", 1, CUSTOMER)
        order_id = client.post(
            "/orders",
            json={"delivery_type": "STORE_PICKUP", "payment_method": "STORE_PAYMENT"},
            headers=CUSTOMER,
        ).json()["id"]

        first = client.post(f"/orders/{order_id}/cancel", headers=CUSTOMER)
        second = client.post(f"/orders/{order_id}/cancel", headers=CUSTOMER)

        assert first.status_code == 200
        assert first.json()["status"] == "CANCELLED"
        assert second.status_code == 409
        assert second.json()["detail"]["code"] == "invalid_state_transition"

    def test_admin_status_update(self, client):
        _add(client, "v1", 1, CUSTOMER)
        order_id = client.post(
            "/orders",
            json={"delivery_type": "STORE_PICKUP", "payment_method": "STORE_PAYMENT"},
            headers=CUSTOMER,
        ).json()["id"]

        assert client.patch(
            f"/admin/orders/{order_id}/status", json={"status": "CONFIRMED"}
        ).status_code == 401

        response = client.patch(
            f"/admin/orders/{order_id}/status",
            json={"status": "CONFIRMED", "admin_notes": "Paid at counter"},
            headers=STAFF,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "CONFIRMED"

        listed = client.get("/admin/orders", params={"status": "CONFIRMED"}, headers=STAFF)
        assert listed.json()["pagination"]["total"] == 1

        in_range = client.get(
            "/admin/orders",
            params={"start_date": "2000-01-01T00:00:00", "end_date": "2999-12-31T23:59:59"},
            headers=STAFF,
        )
        assert in_range.json()["pagination"]["total"] == 1
        later = client.get("/admin/orders", params={"start_date": "2999-01-01T00:00:00"}, headers=STAFF)
        assert later.json()["orders"] == []


class TestPosEndpoints:
    SALE = {
        "items": [
            {
                "variant_id": "v1",
                "product_name": "Basic Tee",
                "variant_label": "M / Black",
                "product_sku": "TEE-M-BLK",
                "quantity": 2,
                "unit_price": "25.00",
            }
        ],
        "payment_type": "CASH",
    }

    def test_create_get_and_void_sale(self, client, catalog):
        created = client.post("/pos/sales", json=self.SALE, headers=STAFF)

        assert created.status_code == 201
        sale = created.json()
        assert sale["total"] == "50.00"
        assert catalog.stock("v1") == 8

        by_number = client.get(f"/pos/sales/{sale['sale_number']}", headers=STAFF)
        assert by_number.json()["id"] == sale["id"]

        voided = client.post(f"/pos/sales/{sale['id']}/void", headers=STAFF)
        assert voided.json()["status"] == "VOIDED"
        assert catalog.stock("v1") == 10

        again = client.post(f"/pos/sales/{sale['id']}/void", headers=STAFF)
        assert again.status_code == 409

    def test_list_sales_by_date_range(self, client):
        client.post("/pos/sales", json=self.SALE, headers=STAFF)

        wide = client.get(
            "/pos/sales", params={"start_date": "2000-01-01", "end_date": "2999-12-31"}, headers=STAFF
        )
        future = client.get("/pos/sales", params={"start_date": "2999-01-01"}, headers=STAFF)

        assert wide.json()["pagination"]["total"] == 1
        assert future.json()["pagination"]["total"] == 0
        assert client.get("/pos/sales", params={"end_date": "14-03-2026"}, headers=STAFF).status_code == 422

    def test_sale_requires_staff(self, client):
        assert client.post("/pos/sales", json=self.SALE).status_code == 401

    def test_sale_without_items_fails_validation(self, client):
        response = client.post("/pos/sales", json={"items": []}, headers=STAFF)
        assert response.status_code == 422
