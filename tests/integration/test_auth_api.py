from fastapi.testclient import TestClient

from conftest import ADMIN_KEY, API_KEY


class TestValidateKey:
    def test_standard_key(self, client: TestClient) -> None:
        response = client.post("/validate-key", json={"apiKey": API_KEY})

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "API key is valid", "clientId": "user"}

    def test_admin_key(self, client: TestClient) -> None:
        response = client.post("/validate-key", json={"apiKey": ADMIN_KEY})

        assert response.json()["clientId"] == "admin"

    def test_invalid_key(self, client: TestClient) -> None:
        response = client.post("/validate-key", json={"apiKey": "wrong"})

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_missing_key(self, client: TestClient) -> None:
        response = client.post("/validate-key", json={})

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "API key is required"


class TestBearerHandling:
    def test_wrong_scheme_is_unauthorized(self, client: TestClient) -> None:
        response = client.get("/pdfs", headers={"Authorization": f"Basic {API_KEY}"})

        assert response.status_code == 401

    def test_admin_key_works_on_standard_routes(self, client: TestClient) -> None:
        response = client.get("/pdfs", headers={"Authorization": f"Bearer {ADMIN_KEY}"})

        assert response.status_code == 200

    def test_request_id_is_echoed(self, client: TestClient) -> None:
        response = client.get("/pdfs", headers={"Authorization": f"Bearer {API_KEY}", "X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    def test_error_envelope_carries_request_id(self, client: TestClient) -> None:
        response = client.get("/pdfs", headers={"X-Request-ID": "req-456"})

        body = response.json()
        assert body["success"] is False
        assert body["request_id"] == "req-456"
