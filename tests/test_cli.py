from datetime import timedelta
from unittest.mock import patch

import httpx
import pytest
from botocore.exceptions import EndpointConnectionError
from typer.testing import CliRunner

from conftest import seed_file
from filevault.cli import app
from filevault.client import upload_client
from filevault.models._model_utils.datetime import utcnow
from filevault.repo.crud.users.user_repo import UserRepository
from filevault.schemas.users.user_schemas import UserCreate
from filevault.services.file.reconciler import ExpiryReconciler

runner = CliRunner()


@pytest.fixture
def owner_id(db):
    async def _create(factory):
        user = await factory.get_repo_by_type(UserRepository).create(UserCreate(email="cron@example.com"))
        return user.id
    return db(_create)


def test_init_db():
    result = runner.invoke(app, ["init-db"])
    assert result.exit_code == 0
    assert "Database tables created." in result.output


def test_cleanup_reports_the_summary(object_store, storage_client, owner_id):
    expired = seed_file(storage_client, owner_id, "old.txt", expires_at=utcnow() - timedelta(hours=1))
    seed_file(storage_client, owner_id, "new.txt")

    result = runner.invoke(app, ["cleanup"])

    assert result.exit_code == 0, result.output
    assert "Processed 1 records, deleted 1 files, 0 errors" in result.output
    assert expired.storage_key not in storage_client.objects
    assert len(storage_client.objects) == 1


def test_cleanup_exits_non_zero_on_delete_errors(object_store, storage_client, owner_id):
    seed_file(storage_client, owner_id, "old.txt", expires_at=utcnow() - timedelta(hours=1))

    with patch.object(storage_client, "remove_object", side_effect=EndpointConnectionError(endpoint_url="http://s")):
        result = runner.invoke(app, ["cleanup"])

    assert result.exit_code == 1
    assert "1 errors" in result.output


def test_cleanup_exits_non_zero_when_the_sweep_fails(object_store):
    with patch.object(ExpiryReconciler, "run_cleanup", side_effect=RuntimeError("database is gone")):
        result = runner.invoke(app, ["cleanup"])

    assert result.exit_code == 1
    assert "Cleanup failed: database is gone" in result.output


# ==========================
# upload
# ==========================

@pytest.fixture
def mock_server(monkeypatch):
    """Route the CLI's HTTP client to an in-process handler."""
    received = []

    def handler(request: httpx.Request) -> httpx.Response:
        received.append(request)
        if b'filename="bad.exe"' in request.content:
            return httpx.Response(400, json={"success": False, "code": "INVALID_FILE_TYPE",
                                             "message": "File type is not allowed", "data": None})
        return httpx.Response(201, json={"success": True, "code": "CREATED", "message": "ok",
                                         "data": {"download_url": "http://vault/api/download/key"}})

    real_client = upload_client.FileVaultUploadClient

    def _client(*args, **kwargs):
        return real_client(*args, transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(upload_client, "FileVaultUploadClient", _client)
    return received


def test_upload_command(mock_server, tmp_path):
    first = tmp_path / "one.txt"
    first.write_text("1")
    second = tmp_path / "two.txt"
    second.write_text("2")

    result = runner.invoke(app, [
        "upload", str(first), str(second),
        "--api-key", "fv-cli", "--base-url", "http://vault/api", "--duration", "7d",
    ])

    assert result.exit_code == 0, result.output
    assert "✔ one.txt -> http://vault/api/download/key" in result.output
    assert "2/2 uploaded." in result.output
    assert all(r.headers["authorization"] == "Bearer fv-cli" for r in mock_server)
    assert all(b"7d" in r.content for r in mock_server)


def test_upload_command_reports_failures(mock_server, tmp_path):
    good = tmp_path / "good.txt"
    good.write_text("ok")
    bad = tmp_path / "bad.exe"
    bad.write_bytes(b"MZ")

    result = runner.invoke(app, ["upload", str(good), str(bad), "--api-key", "fv-cli",
                                 "--base-url", "http://vault/api"])

    assert result.exit_code == 1
    assert "✖ bad.exe: [INVALID_FILE_TYPE] File type is not allowed" in result.output
    assert "1/2 uploaded." in result.output


def test_upload_reads_the_key_from_the_environment(mock_server, tmp_path, monkeypatch):
    monkeypatch.setenv("FILEVAULT_API_KEY", "fv-from-env")
    path = tmp_path / "one.txt"
    path.write_text("1")

    result = runner.invoke(app, ["upload", str(path), "--base-url", "http://vault/api"])

    assert result.exit_code == 0, result.output
    assert mock_server[0].headers["authorization"] == "Bearer fv-from-env"


def test_upload_validates_options(mock_server, tmp_path, monkeypatch):
    monkeypatch.delenv("FILEVAULT_API_KEY", raising=False)
    path = tmp_path / "one.txt"
    path.write_text("1")

    assert runner.invoke(app, ["upload", str(path)]).exit_code == 2
    assert runner.invoke(app, ["upload", str(path), "--api-key", "fv-x", "--duration", "2h"]).exit_code == 2
    assert runner.invoke(app, ["upload", str(path), "--api-key", "fv-x", "--metadata", "{oops"]).exit_code == 2
    assert mock_server == []
