import asyncio

import pytest
from fastapi.testclient import TestClient

from adapters.blob_store import InMemoryBlobStore
from common.validation import MB
from conftest import ADMIN_KEY, PDF_BYTES, bearer, make_settings


def _request_upload(client: TestClient, **body) -> dict:
    payload = {"filename": "a.pdf", "size": 1000}
    payload.update(body)
    response = client.post("/upload/request", json=payload, headers=bearer())
    assert response.status_code == 200, response.text
    return response.json()


def _put_blob(blob_store: InMemoryBlobStore, upload_id: str, data: bytes = PDF_BYTES) -> None:
    asyncio.run(blob_store.put(blob_store.blob_key(upload_id), data, content_type="application/pdf"))


class TestUploadRequest:
    def test_returns_presigned_url(self, client: TestClient) -> None:
        body = _request_upload(client)

        assert body["success"] is True
        assert body["upload_id"]
        assert body["presigned_url"]
        assert body["expires_in"] == 3600
        assert body["instructions"]["method"] == "PUT"
        assert body["instructions"]["headers"] == {"Content-Type": "application/pdf"}

    def test_requires_auth(self, client: TestClient) -> None:
        response = client.post("/upload/request", json={"filename": "a.pdf", "size": 1000})

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["error"]["code"] == "AUTH_FAILED"

    def test_invalid_key(self, client: TestClient) -> None:
        response = client.post("/upload/request", json={"filename": "a.pdf", "size": 1000}, headers=bearer("bad"))

        assert response.status_code == 401

    def test_missing_fields(self, client: TestClient) -> None:
        response = client.post("/upload/request", json={"filename": "a.pdf"}, headers=bearer())

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Missing required field: size"

    def test_empty_body(self, client: TestClient) -> None:
        response = client.post("/upload/request", headers=bearer())

        assert response.status_code == 400

    def test_too_large(self, client: TestClient) -> None:
        response = client.post(
            "/upload/request", json={"filename": "a.pdf", "size": 200 * MB + 1}, headers=bearer()
        )

        assert response.status_code == 413
        assert response.json()["error"]["message"] == "PDF must be smaller than 200MB"

    def test_non_integer_size(self, client: TestClient) -> None:
        response = client.post("/upload/request", json={"filename": "a.pdf", "size": "big"}, headers=bearer())

        assert response.status_code == 400
        body = response.json()
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["validation_errors"][0]["field"] == "body.size"

    def test_eleventh_upload_in_an_hour_is_rejected(self, client: TestClient) -> None:
        for _ in range(10):
            _request_upload(client)

        response = client.post("/upload/request", json={"filename": "a.pdf", "size": 1000}, headers=bearer())

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "3600"
        error = response.json()["error"]
        assert error["message"] == "Hourly upload limit of 10 exceeded"
        assert error["context"]["limits"] == {"uploads_per_hour": 10, "uploads_per_day": 50}

    def test_next_hour_admits_again(self, client: TestClient, clock) -> None:
        for _ in range(10):
            _request_upload(client)

        clock.advance(3600)

        _request_upload(client)


class TestUploadComplete:
    def test_full_two_phase_flow(self, client: TestClient, blob_store: InMemoryBlobStore) -> None:
        upload_id = _request_upload(client, name="Report", tags="q1,finance")["upload_id"]
        _put_blob(blob_store, upload_id, b"x" * 2048)

        response = client.post("/upload/complete", json={"upload_id": upload_id, "etag": "abc"}, headers=bearer())

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["pdf_id"] == upload_id
        assert body["metadata"]["originalName"] == "Report"
        assert body["metadata"]["size"] == 2048
        assert body["metadata"]["tags"] == ["q1", "finance"]
        assert "uploadedBy" not in body["metadata"]

        listed = client.get("/pdfs", headers=bearer()).json()
        assert [p["id"] for p in listed["pdfs"]] == [upload_id]

    def test_unknown_upload_id(self, client: TestClient) -> None:
        response = client.post("/upload/complete", json={"upload_id": "X"}, headers=bearer())

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Upload not found or expired"

    def test_missing_upload_id(self, client: TestClient) -> None:
        response = client.post("/upload/complete", json={}, headers=bearer())

        assert response.status_code == 400

    def test_malformed_json(self, client: TestClient) -> None:
        response = client.post(
            "/upload/complete",
            content=b"{not json",
            headers={**bearer(), "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_blob_not_uploaded(self, client: TestClient) -> None:
        upload_id = _request_upload(client)["upload_id"]

        response = client.post("/upload/complete", json={"upload_id": upload_id}, headers=bearer())

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "File not found in storage. Please retry the upload."

    def test_other_client_is_forbidden(self, client: TestClient, blob_store: InMemoryBlobStore) -> None:
        upload_id = _request_upload(client)["upload_id"]
        _put_blob(blob_store, upload_id)

        response = client.post("/upload/complete", json={"upload_id": upload_id}, headers=bearer(ADMIN_KEY))

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "UPLOAD_OWNERSHIP_MISMATCH"

    def test_expired_upload(self, client: TestClient, blob_store: InMemoryBlobStore, clock) -> None:
        upload_id = _request_upload(client)["upload_id"]
        _put_blob(blob_store, upload_id)
        clock.advance(3601)

        response = client.post("/upload/complete", json={"upload_id": upload_id}, headers=bearer())

        assert response.status_code == 404


class TestDirectUpload:
    def test_uploads_pdf(self, client: TestClient) -> None:
        response = client.post(
            "/upload",
            files={"file": ("report.pdf", PDF_BYTES, "application/pdf")},
            data={"name": "Quarterly", "tags": "a, b"},
            headers=bearer(),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "PDF uploaded successfully"
        assert body["metadata"]["originalName"] == "Quarterly"
        assert body["metadata"]["tags"] == ["a", "b"]
        assert body["metadata"]["size"] == len(PDF_BYTES)
        assert "uploadedBy" not in body["metadata"]

        download = client.get(f"/pdf/{body['pdfId']}", headers=bearer())
        assert download.content == PDF_BYTES
        assert download.headers["content-disposition"] == 'attachment; filename="Quarterly"'

    def test_rejects_non_pdf(self, client: TestClient) -> None:
        response = client.post(
            "/upload",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            headers=bearer(),
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Please upload a valid PDF file"

    def test_rejects_missing_file(self, client: TestClient) -> None:
        response = client.post("/upload", data={"name": "x"}, headers=bearer())

        assert response.status_code == 400

    def test_requires_auth(self, client: TestClient) -> None:
        response = client.post("/upload", files={"file": ("a.pdf", PDF_BYTES, "application/pdf")})

        assert response.status_code == 401


class TestDirectUploadCeiling:
    @pytest.fixture()
    def settings(self):
        return make_settings(max_direct_upload_bytes=MB)

    def test_oversized_file_points_to_two_phase(self, client: TestClient) -> None:
        response = client.post(
            "/upload",
            files={"file": ("big.pdf", b"0" * (MB + 1), "application/pdf")},
            headers=bearer(),
        )

        assert response.status_code == 413
        error = response.json()["error"]
        assert error["message"] == (
            "Files larger than 1MB must use the presigned upload method. Use /upload/request instead."
        )
        assert error["context"]["recommendation"] == "Use /upload/request endpoint for files up to 200MB"
