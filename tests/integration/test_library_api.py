import pytest
from fastapi.testclient import TestClient

from adapters.record_store import InMemoryRecordStore
from app import create_app
from conftest import ADMIN_KEY, PDF_BYTES, bearer, make_settings


def _upload(client: TestClient, filename: str = "doc.pdf") -> str:
    response = client.post(
        "/upload",
        files={"file": (filename, PDF_BYTES, "application/pdf")},
        headers=bearer(),
    )
    assert response.status_code == 200, response.text
    return response.json()["pdfId"]


class TestListPdfs:
    def test_empty_library_message(self, client: TestClient) -> None:
        response = client.get("/pdfs", headers=bearer())

        assert response.status_code == 200
        assert response.json() == {
            "pdfs": [],
            "count": 0,
            "message": "Your PDF library is currently empty. Upload some PDFs to get started!",
        }

    def test_lists_without_uploader(self, client: TestClient) -> None:
        first = _upload(client, "one.pdf")
        second = _upload(client, "two.pdf")

        body = client.get("/pdfs", headers=bearer()).json()

        assert body["count"] == 2
        assert {p["id"] for p in body["pdfs"]} == {first, second}
        assert "message" not in body
        assert all("uploadedBy" not in p for p in body["pdfs"])

    def test_requires_auth(self, client: TestClient) -> None:
        assert client.get("/pdfs").status_code == 401

    def test_store_failure_returns_empty_200(self, client: TestClient, record_store: InMemoryRecordStore, monkeypatch) -> None:
        async def broken(prefix):
            raise ConnectionError("unreachable")

        monkeypatch.setattr(record_store, "list_keys", broken)

        response = client.get("/pdfs", headers=bearer())

        assert response.status_code == 200
        assert response.json()["pdfs"] == []
        assert response.json()["message"].startswith("Unable to load PDF library")


def test_list_without_configured_store() -> None:
    settings = make_settings(storage_backend="remote", redis_url=None, s3_bucket=None)
    with TestClient(create_app(settings)) as client:
        listed = client.get("/pdfs", headers=bearer())
        metadata = client.get("/pdf/abc/metadata", headers=bearer())

    assert listed.status_code == 200
    assert listed.json()["message"] == "PDF storage is not configured yet. No PDFs available."
    assert metadata.status_code == 500
    assert metadata.json()["error"]["code"] == "STORAGE_NOT_CONFIGURED"


def test_routes_use_settings_the_app_was_created_with() -> None:
    settings = make_settings(api_key="custom-key", delete_requires_admin=False)

    with TestClient(create_app(settings)) as client:
        uploaded = client.post(
            "/upload",
            files={"file": ("doc.pdf", PDF_BYTES, "application/pdf")},
            headers=bearer("custom-key"),
        )
        rejected = client.get("/pdfs", headers=bearer())
        deleted = client.delete(f"/pdf/{uploaded.json()['pdfId']}", headers=bearer("custom-key"))

    assert uploaded.status_code == 200
    assert rejected.status_code == 401
    assert deleted.status_code == 200


class TestGetPdf:
    def test_download(self, client: TestClient) -> None:
        pdf_id = _upload(client)

        response = client.get(f"/pdf/{pdf_id}", headers=bearer())

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["content-disposition"] == 'attachment; filename="doc.pdf"'
        assert response.content == PDF_BYTES

    def test_missing_pdf(self, client: TestClient) -> None:
        response = client.get("/pdf/nope", headers=bearer())

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "PDF not found"


class TestMetadata:
    def test_returns_record_without_uploader(self, client: TestClient) -> None:
        pdf_id = _upload(client)

        response = client.get(f"/pdf/{pdf_id}/metadata", headers=bearer())

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == pdf_id
        assert body["originalName"] == "doc.pdf"
        assert body["contentType"] == "application/pdf"
        assert "uploadedBy" not in body

    def test_repeated_fetch_is_byte_identical(self, client: TestClient) -> None:
        pdf_id = _upload(client)

        first = client.get(f"/pdf/{pdf_id}/metadata", headers=bearer())
        second = client.get(f"/pdf/{pdf_id}/metadata", headers=bearer())

        assert first.content == second.content

    def test_missing(self, client: TestClient) -> None:
        assert client.get("/pdf/nope/metadata", headers=bearer()).status_code == 404


class TestDeleteRequiresAdmin:
    def test_admin_can_delete(self, client: TestClient) -> None:
        pdf_id = _upload(client)

        response = client.delete(f"/pdf/{pdf_id}", headers=bearer(ADMIN_KEY))

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "PDF deleted successfully"}
        assert client.get(f"/pdf/{pdf_id}/metadata", headers=bearer()).status_code == 404
        assert client.get(f"/pdf/{pdf_id}", headers=bearer()).status_code == 404

    def test_standard_key_is_unauthorized(self, client: TestClient) -> None:
        pdf_id = _upload(client)

        response = client.delete(f"/pdf/{pdf_id}", headers=bearer())

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["error"]["code"] == "AUTH_FAILED"
        assert client.get(f"/pdf/{pdf_id}/metadata", headers=bearer()).status_code == 200

    def test_no_key_is_unauthorized(self, client: TestClient) -> None:
        assert client.delete("/pdf/whatever").status_code == 401

    def test_unknown_id_succeeds(self, client: TestClient) -> None:
        assert client.delete("/pdf/ghost", headers=bearer(ADMIN_KEY)).status_code == 200


class TestDeleteWithoutAdminRequirement:
    @pytest.fixture()
    def settings(self):
        return make_settings(delete_requires_admin=False)

    def test_standard_key_can_delete(self, client: TestClient) -> None:
        pdf_id = _upload(client)

        response = client.delete(f"/pdf/{pdf_id}", headers=bearer())

        assert response.status_code == 200
        assert client.get(f"/pdf/{pdf_id}/metadata", headers=bearer()).status_code == 404
