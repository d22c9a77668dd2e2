from fastapi.testclient import TestClient

from conftest import ADMIN_KEY, API_KEY


def test_root_lists_endpoints(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "POST /upload/request" in response.text
    assert "DELETE /pdf/{id}" in response.text


def test_health_status(client: TestClient) -> None:
    body = client.get("/health/status").json()

    assert body["status"] == "healthy"
    assert body["storage_backend"] == "memory"


def test_store_health_requires_admin(client: TestClient) -> None:
    response = client.get("/health/stores", headers={"Authorization": f"Bearer {API_KEY}"})

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_store_health(client: TestClient) -> None:
    response = client.get("/health/stores", headers={"Authorization": f"Bearer {ADMIN_KEY}"})

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["blob_store"] == {"configured": True, "reachable": True}


def test_security_headers(client: TestClient) -> None:
    response = client.get("/health/status")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
