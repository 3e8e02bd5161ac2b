"""Tests for the dev catalog mock."""

import copy

import pytest
from fastapi.testclient import TestClient

from storefront.product_service import main as product_service


@pytest.fixture()
def client(monkeypatch):
    monkeypatch.setattr(product_service, "VARIANTS", copy.deepcopy(product_service.VARIANTS))
    return TestClient(product_service.app)


class TestCatalogMock:
    def test_get_variant(self, client):
        response = client.get("/variants/v-tee-m-black")

        assert response.status_code == 200
        assert response.json()["available_stock"] == 10

    def test_unknown_variant_is_404(self, client):
        assert client.get("/variants/nope").status_code == 404

    def test_decrement_and_increment(self, client):
        assert client.post("/variants/v-jeans-32/stock/decrement", json={"quantity": 4}).status_code == 200
        assert client.get("/variants/v-jeans-32").json()["available_stock"] == 2

        client.post("/variants/v-jeans-32/stock/increment", json={"quantity": 1})
        assert client.get("/variants/v-jeans-32").json()["available_stock"] == 3

    def test_decrement_beyond_stock_is_409(self, client):
        response = client.post("/variants/v-tee-l-white/stock/decrement", json={"quantity": 5})

        assert response.status_code == 409
        assert client.get("/variants/v-tee-l-white").json()["available_stock"] == 4

    def test_quantity_must_be_positive(self, client):
        response = client.post("/variants/v-tee-l-white/stock/decrement", json={"quantity": 0})
        assert response.status_code == 422
