from __future__ import annotations

from fastapi.testclient import TestClient

from app.core.app_factory import create_app
from app.main import app


client = TestClient(app)


def test_preserves_incoming_request_id_header():
    incoming_id = "test-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing():
    resp = client.get("/health")

    assert resp.status_code == 200
    generated = resp.headers.get("X-Request-ID")
    assert generated
    assert isinstance(generated, str)
    assert len(generated) > 0

    duration = resp.headers.get("X-Request-Duration-ms")
    assert duration is not None


def test_error_body_carries_the_request_id(client: TestClient):
    resp = client.post("/api/purchase", json={}, headers={"X-Request-ID": "req-purchase-1"})

    assert resp.status_code == 400
    assert resp.headers["X-Request-ID"] == "req-purchase-1"
    assert resp.json()["error"]["request_id"] == "req-purchase-1"


def test_unhandled_error_keeps_the_request_id(api_resources):
    failing_app = create_app(api_resources)

    @failing_app.get("/explode")
    async def explode():
        raise RuntimeError("connection reset by peer")

    with TestClient(failing_app, raise_server_exceptions=False) as failing_client:
        resp = failing_client.get("/explode", headers={"X-Request-ID": "req-crash-7"})

    assert resp.status_code == 500
    assert resp.headers["X-Request-ID"] == "req-crash-7"
    error = resp.json()["error"]
    assert error["code"] == "internal_server_error"
    assert error["request_id"] == "req-crash-7"
