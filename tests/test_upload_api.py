from datetime import datetime, timedelta
from unittest.mock import patch
from urllib.parse import unquote

from botocore.exceptions import EndpointConnectionError
from sqlalchemy.exc import SQLAlchemyError

from conftest import upload
from filevault.repo.crud.file.file_record_repo import FileRecordRepository


def _list_total(client) -> int:
    return client.get("/api/files").json()["pagination"]["total"]


def test_upload_notes_with_one_hour_duration(alice, storage_client):
    response = upload(alice, "notes.txt", b"meeting notes", duration="1h")

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["code"] == "CREATED"

    data = body["data"]
    assert data["original_name"] == "notes.txt"
    assert data["storage_key"].endswith("-notes.txt")
    assert data["size"] == len(b"meeting notes")
    assert data["mime_type"] == "text/plain"
    assert data["extension"] == ".txt"
    assert data["duration"] == "1h"
    assert data["download_url"] == f"http://testserver/api/download/{data['storage_key']}"

    uploaded_at = datetime.fromisoformat(data["uploaded_at"])
    expires_at = datetime.fromisoformat(data["expires_at"])
    assert expires_at - uploaded_at == timedelta(hours=1)

    stored = storage_client.objects[data["storage_key"]]
    assert stored["body"] == b"meeting notes"
    assert stored["content_type"] == "text/plain"
    assert unquote(stored["metadata"]["original-name"]) == "notes.txt"
    assert stored["metadata"]["duration"] == "1h"
    assert stored["metadata"]["expires-at"] != "never"


def test_upload_defaults_to_unlimited(alice, storage_client):
    data = upload(alice, "photo.PNG", b"\x89PNG....", content_type="image/png").json()["data"]

    assert data["duration"] == "unlimited"
    assert data["expires_at"] is None
    assert data["storage_key"].endswith("-photo.png")
    assert storage_client.objects[data["storage_key"]]["metadata"]["expires-at"] == "never"


def test_upload_keeps_metadata(alice):
    response = upload(alice, metadata='{"description": "q3 numbers", "tags": ["finance", "q3"]}')
    assert response.status_code == 201
    assert response.json()["data"]["metadata"] == {"description": "q3 numbers", "tags": ["finance", "q3"]}


def test_upload_with_multiple_files_keeps_only_the_first(alice, storage_client):
    response = alice.post(
        "/api/upload",
        files=[
            ("file", ("first.txt", b"one", "text/plain")),
            ("file", ("second.txt", b"two", "text/plain")),
        ],
    )
    assert response.status_code == 201
    assert response.json()["data"]["original_name"] == "first.txt"
    assert len(storage_client.objects) == 1


def test_rejected_extension(alice, storage_client):
    response = upload(alice, "setup.exe", b"MZ", content_type="application/octet-stream")

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_FILE_TYPE"
    assert storage_client.objects == {}
    assert _list_total(alice) == 0


def test_overlong_filename_is_rejected_before_storage(alice, storage_client):
    response = upload(alice, "n" * 300 + ".txt", b"hello")

    assert response.status_code == 400
    assert response.json()["code"] == "FILENAME_TOO_LONG"
    assert storage_client.objects == {}
    assert _list_total(alice) == 0


def test_empty_file(alice, storage_client):
    response = upload(alice, "empty.txt", b"")
    assert response.status_code == 400
    assert response.json()["code"] == "NO_FILE"
    assert storage_client.objects == {}


def test_missing_file_part(alice):
    response = alice.post("/api/upload", data={"duration": "1h"}, files={"other": ("x.txt", b"x", "text/plain")})
    assert response.status_code == 400
    assert response.json()["code"] == "NO_FILE"


def test_invalid_metadata(alice):
    for raw in ("{not json", "[1, 2]", '{"tags": "not-a-list"}', '{"description": 5}'):
        response = upload(alice, metadata=raw)
        assert response.status_code == 400, raw
        assert response.json()["code"] == "INVALID_METADATA"
    assert _list_total(alice) == 0


def test_invalid_duration(alice, storage_client):
    response = upload(alice, duration="2h")
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_UPLOAD_OPTIONS"
    assert storage_client.objects == {}


def test_non_multipart_request(alice):
    response = alice.post("/api/upload", json={"file": "nope"})
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_CONTENT_TYPE"


def test_file_too_large(alice, storage_client):
    # the test configuration caps uploads at 1 MiB
    response = upload(alice, "big.txt", b"x" * (1024 * 1024 + 1))
    assert response.status_code == 400
    assert response.json()["code"] == "FILE_TOO_LARGE"
    assert storage_client.objects == {}


def test_store_failure_leaves_no_catalog_row(alice, storage_client):
    with patch.object(storage_client, "put_object", side_effect=EndpointConnectionError(endpoint_url="http://store")):
        response = upload(alice)

    assert response.status_code == 500
    assert response.json()["code"] == "UPLOAD_ERROR"
    assert _list_total(alice) == 0


def test_catalog_failure_removes_orphaned_object(alice, storage_client):
    with patch.object(FileRecordRepository, "create", side_effect=SQLAlchemyError("insert failed")):
        response = upload(alice)

    assert response.status_code == 500
    assert response.json()["code"] == "METADATA_ERROR"
    assert storage_client.objects == {}
    assert len(storage_client.deleted) == 1
    assert _list_total(alice) == 0


def test_upload_requires_authentication(client_for):
    anonymous = client_for()
    response = upload(anonymous)
    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "code": "UNAUTHENTICATED",
        "message": "Authentication required",
        "data": None,
    }
