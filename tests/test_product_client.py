"""Tests for the HTTP catalog client."""

from decimal import Decimal

import pytest
import requests

from storefront.domain.errors import CatalogUnavailable, VariantNotFound
from storefront.services import product_client as product_client_module
from storefront.services.product_client import ProductClient


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self.payload = payload or {}

    def json(self):
        return self.payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


VARIANT_PAYLOAD = {
    "variant_id": "v1",
    "display_name": "Basic Tee",
    "variant_label": "M / Black",
    "unit_price": "45000.00",
    "available_stock": 7,
}


@pytest.fixture()
def client():
    return ProductClient(base_url="http://catalog.test/")


@pytest.fixture(autouse=True)
def no_retry_wait(monkeypatch):
    # tenacity czeka miedzy probami, w testach nie
    monkeypatch.setattr(ProductClient._fetch_variant.retry, "sleep", lambda seconds: None)


class TestGetVariant:
    def test_returns_catalog_variant(self, client, monkeypatch):
        calls = []

        def fake_get(url, timeout):
            calls.append(url)
            return FakeResponse(200, VARIANT_PAYLOAD)

        monkeypatch.setattr(product_client_module.requests, "get", fake_get)

        variant = client.get_variant("v1")

        assert calls == ["http://catalog.test/variants/v1"]
        assert variant.unit_price == Decimal("45000.00")
        assert variant.available_stock == 7
        assert variant.variant_label == "M / Black"

    def test_missing_variant_is_none(self, client, monkeypatch):
        monkeypatch.setattr(product_client_module.requests, "get", lambda url, timeout: FakeResponse(404))

        assert client.get_variant("nope") is None

    def test_network_failure_is_retried_then_reported(self, client, monkeypatch):
        calls = []

        def failing_get(url, timeout):
            calls.append(url)
            raise requests.ConnectionError("connection refused")

        monkeypatch.setattr(product_client_module.requests, "get", failing_get)

        with pytest.raises(CatalogUnavailable):
            client.get_variant("v1")

        assert len(calls) == 3

    def test_server_error_is_reported_as_unavailable(self, client, monkeypatch):
        monkeypatch.setattr(product_client_module.requests, "get", lambda url, timeout: FakeResponse(500))

        with pytest.raises(CatalogUnavailable):
            client.get_variant("v1")


class TestStockChanges:
    def test_decrement_posts_quantity(self, client, monkeypatch):
        posted = []

        def fake_post(url, json, timeout):
            posted.append((url, json))
            return FakeResponse(200)

        monkeypatch.setattr(product_client_module.requests, "post", fake_post)

        assert client.decrement_stock("v1", 2) is True
        assert posted == [("http://catalog.test/variants/v1/stock/decrement", {"quantity": 2})]

    def test_decrement_conflict_is_false(self, client, monkeypatch):
        monkeypatch.setattr(
            product_client_module.requests, "post", lambda url, json, timeout: FakeResponse(409)
        )

        assert client.decrement_stock("v1", 99) is False

    def test_stock_change_for_unknown_variant(self, client, monkeypatch):
        monkeypatch.setattr(
            product_client_module.requests, "post", lambda url, json, timeout: FakeResponse(404)
        )

        with pytest.raises(VariantNotFound):
            client.increment_stock("nope", 1)

    def test_stock_change_is_not_retried(self, client, monkeypatch):
        calls = []

        def failing_post(url, json, timeout):
            calls.append(url)
            raise requests.ConnectionError("connection refused")

        monkeypatch.setattr(product_client_module.requests, "post", failing_post)

        with pytest.raises(CatalogUnavailable):
            client.decrement_stock("v1", 1)

        assert len(calls) == 1
