"""Tests for the lock-free catalog endpoints."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from app.db.bootstrap import DEMO_CATALOG
from conftest import product_row, seed_via_client


def test_stock_for_existing_product(client: TestClient, api_resources) -> None:
    [pid] = seed_via_client(client, api_resources, [product_row(stock=100)])

    response = client.get(f"/api/stock/{pid}")

    assert response.status_code == 200
    assert response.json() == {"success": True, "stock": 100}


def test_stock_reflects_committed_purchases(client: TestClient, api_resources) -> None:
    [pid] = seed_via_client(client, api_resources, [product_row(stock=10)])

    client.post("/api/purchase", json={"productId": pid, "userId": "user123", "quantity": 4})

    assert client.get(f"/api/stock/{pid}").json()["stock"] == 6


def test_stock_for_unknown_product_is_404(client: TestClient, api_resources) -> None:
    [pid] = seed_via_client(client, api_resources, [product_row(stock=1)])

    response = client.get(f"/api/stock/{pid + 1}")

    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Product not found"


def test_stock_with_non_integer_id_is_400(client: TestClient) -> None:
    response = client.get("/api/stock/laptop")

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "invalid_request"


@pytest.mark.parametrize("path", ["/api/stock", "/api/products"])
@pytest.mark.parametrize("bad_id", [2**70, 2**31, 0])
def test_id_outside_key_range_is_400(client: TestClient, path: str, bad_id: int) -> None:
    response = client.get(f"{path}/{bad_id}")

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "invalid_request"


def test_stock_polling_is_not_rate_limited(client: TestClient, api_resources) -> None:
    [pid] = seed_via_client(client, api_resources, [product_row(stock=3)])

    codes = {client.get(f"/api/stock/{pid}").status_code for _ in range(30)}

    assert codes == {200}


def test_stock_read_failure_is_500(client: TestClient, api_resources, monkeypatch) -> None:
    [pid] = seed_via_client(client, api_resources, [product_row(stock=3)])

    def broken_factory():
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(api_resources, "session_factory", broken_factory)

    response = client.get(f"/api/stock/{pid}")

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "stock_read_failed"
    assert "locked" not in response.text


def test_product_detail(client: TestClient, api_resources) -> None:
    ids = seed_via_client(client, api_resources, DEMO_CATALOG)

    response = client.get(f"/api/products/{ids[2]}")

    assert response.status_code == 200
    product = response.json()["product"]
    assert product["id"] == ids[2]
    assert product["name"] == "Mechanical Keyboard"
    assert product["stock"] == 15
    assert product["price"] == pytest.approx(149.99)
    assert product["imageUrl"].startswith("https://")
    assert "Cherry MX" in product["description"]


def test_product_detail_for_unknown_product_is_404(client: TestClient, api_resources) -> None:
    ids = seed_via_client(client, api_resources, DEMO_CATALOG)

    response = client.get(f"/api/products/{max(ids) + 1}")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "product_not_found"
