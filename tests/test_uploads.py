import pytest

from app.config import settings
from app.services import spaces_service


class FakeS3:
    def __init__(self):
        self.completed = []
        self.aborted = []

    def generate_presigned_url(self, operation, Params, ExpiresIn):
        part = Params.get("PartNumber")
        suffix = f"&part={part}" if part else ""
        return f"https://storage.test/{Params['Key']}?op={operation}{suffix}"

    def create_multipart_upload(self, **kwargs):
        return {"UploadId": "upload-1"}

    def complete_multipart_upload(self, **kwargs):
        self.completed.append(kwargs)
        return {}

    def abort_multipart_upload(self, **kwargs):
        self.aborted.append(kwargs)
        return {}


@pytest.fixture()
def storage(monkeypatch):
    fake = FakeS3()
    monkeypatch.setattr(spaces_service, "s3", fake)
    monkeypatch.setattr(settings, "SPACES_KEY", "key")
    monkeypatch.setattr(settings, "SPACES_SECRET", "secret")
    monkeypatch.setattr(settings, "SPACES_NAME", "bucket")
    monkeypatch.setattr(settings, "SPACES_CDN_URL", "https://cdn.test")
    monkeypatch.setattr(settings, "UPLOAD_MULTIPART_THRESHOLD", 5 * 1024 * 1024)
    monkeypatch.setattr(settings, "UPLOAD_PART_SIZE", 5 * 1024 * 1024)
    return fake


def test_authorization_fails_without_storage_credentials(client):
    response = client.post(
        "/api/blob/upload",
        json={"filename": "roof.jpg", "content_type": "image/jpeg", "size": 1024},
    )

    assert response.status_code == 500
    assert response.json()["message"] == "Storage is not configured"


def test_small_file_gets_single_presigned_put(client, storage):
    response = client.post(
        "/api/blob/upload",
        json={"filename": "My Roof.jpg", "content_type": "image/jpeg", "size": 2048, "client_payload": {"form": "contact"}},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["multipart"] is False
    assert data["method"] == "PUT"
    assert data["key"].startswith("uploads/My-Roof-")
    assert data["key"].endswith(".jpg")
    assert "op=put_object" in data["url"]
    assert data["public_url"] == f"https://cdn.test/{data['key']}"
    assert data["client_payload"] == {"form": "contact"}


def test_random_suffix_can_be_disabled(client, storage, monkeypatch):
    monkeypatch.setattr(settings, "UPLOAD_ADD_RANDOM_SUFFIX", False)

    response = client.post(
        "/api/blob/upload",
        json={"filename": "../plans.pdf", "content_type": "application/pdf", "size": 10},
    )

    assert response.json()["data"]["key"] == "uploads/plans.pdf"


def test_large_file_gets_multipart_urls(client, storage):
    size = 12 * 1024 * 1024
    response = client.post(
        "/api/blob/upload",
        json={"filename": "plans.pdf", "content_type": "application/pdf", "size": size},
    )

    data = response.json()["data"]
    assert data["multipart"] is True
    assert data["upload_id"] == "upload-1"
    assert data["part_size"] == 5 * 1024 * 1024
    assert [part["part_number"] for part in data["parts"]] == [1, 2, 3]
    assert all("op=upload_part" in part["url"] for part in data["parts"])


def test_rejects_disallowed_content_type(client, storage):
    response = client.post(
        "/api/blob/upload",
        json={"filename": "run.exe", "content_type": "application/x-msdownload", "size": 10},
    )

    assert response.status_code == 400
    assert "not allowed" in response.json()["message"]


def test_rejects_empty_file(client, storage):
    response = client.post(
        "/api/blob/upload",
        json={"filename": "roof.png", "content_type": "image/png", "size": 0},
    )

    assert response.status_code == 400


def test_complete_multipart_upload(client, storage):
    response = client.post(
        "/api/blob/upload/complete",
        json={
            "key": "uploads/plans.pdf",
            "upload_id": "upload-1",
            "parts": [{"part_number": 2, "etag": "b"}, {"part_number": 1, "etag": "a"}],
        },
    )

    assert response.status_code == 200
    assert response.json()["data"]["url"] == "https://cdn.test/uploads/plans.pdf"
    (call,) = storage.completed
    assert call["MultipartUpload"]["Parts"] == [
        {"PartNumber": 1, "ETag": "a"},
        {"PartNumber": 2, "ETag": "b"},
    ]


def test_abort_multipart_upload(client, storage):
    response = client.post("/api/blob/upload/abort", json={"key": "uploads/plans.pdf", "upload_id": "upload-1"})

    assert response.status_code == 200
    assert storage.aborted == [{"Bucket": "bucket", "Key": "uploads/plans.pdf", "UploadId": "upload-1"}]
