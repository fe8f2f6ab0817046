from datetime import timedelta
from unittest.mock import patch

import pytest
from botocore.exceptions import EndpointConnectionError
from sqlmodel import select

from conftest import seed_file, signed_in_user_id
from filevault.enums.file_enums import UploadSessionStatus
from filevault.models._model_utils.datetime import utcnow
from filevault.models.files.file_record import FileRecord
from filevault.models.files.file_share import FileShare
from filevault.models.files.upload_session import UploadSession

ADMIN_HEADERS = {"Authorization": "Bearer test-admin-secret"}


@pytest.fixture
def alice_id(alice):
    return signed_in_user_id(alice, "alice@example.com")


def _cleanup(client):
    return client.post("/api/admin/cleanup", headers=ADMIN_HEADERS)


@pytest.mark.parametrize("headers", [
    {},
    {"Authorization": "Bearer wrong-secret"},
    {"Authorization": "test-admin-secret"},
])
def test_cleanup_requires_the_admin_secret(alice, headers):
    response = alice.post("/api/admin/cleanup", headers=headers)
    assert response.status_code == 401
    assert response.json()["message"] == "Unauthorized"


def test_cleanup_with_nothing_to_do(alice):
    response = _cleanup(alice)
    assert response.status_code == 200
    assert response.json()["data"] == {
        "processed_count": 0,
        "deleted_count": 0,
        "error_count": 0,
        "purged_sessions": 0,
        "purged_shares": 0,
    }


def test_cleanup_sweeps_expired_files_sessions_and_shares(alice, alice_id, db, storage_client):
    now = utcnow()
    expired = [
        seed_file(storage_client, alice_id, f"old{i}.txt", expires_at=now - timedelta(minutes=i + 1))
        for i in range(3)
    ]
    live = seed_file(storage_client, alice_id, "fresh.txt", expires_at=now + timedelta(hours=1))
    forever = seed_file(storage_client, alice_id, "keep.txt")

    async def _seed(factory):
        session = factory.get_session()
        session.add(UploadSession(user_id=alice_id, session_id="stale", expires_at=now - timedelta(hours=1)))
        session.add(UploadSession(user_id=alice_id, session_id="closed", expires_at=now + timedelta(hours=1),
                                  status=UploadSessionStatus.INACTIVE))
        session.add(UploadSession(user_id=alice_id, session_id="open", expires_at=now + timedelta(hours=1)))
        session.add(FileShare(file_id=live.id, shared_by_user_id=alice_id, share_token="old",
                              expires_at=now - timedelta(days=1)))
        session.add(FileShare(file_id=live.id, shared_by_user_id=alice_id, share_token="open-ended"))
    db(_seed)

    summary = _cleanup(alice).json()["data"]
    assert summary == {
        "processed_count": 3,
        "deleted_count": 3,
        "error_count": 0,
        "purged_sessions": 2,
        "purged_shares": 1,
    }

    assert set(storage_client.objects) == {live.storage_key, forever.storage_key}
    names = sorted(f["original_name"] for f in alice.get("/api/files").json()["data"])
    assert names == ["fresh.txt", "keep.txt"]

    async def _state(factory):
        session = factory.get_session()
        records = (await session.execute(select(FileRecord).where(FileRecord.id.in_([r.id for r in expired])))).scalars()
        sessions = (await session.execute(select(UploadSession.session_id))).scalars()
        shares = (await session.execute(select(FileShare.share_token))).scalars()
        return [r.is_deleted for r in records], list(sessions), list(shares)

    flags, sessions, shares = db(_state)
    assert flags == [True, True, True]
    assert sessions == ["open"]
    assert shares == ["open-ended"]

    # a second run finds nothing
    assert _cleanup(alice).json()["data"]["processed_count"] == 0


def test_failed_object_deletes_are_counted(alice, alice_id, storage_client):
    for i in range(2):
        seed_file(storage_client, alice_id, f"old{i}.txt", expires_at=utcnow() - timedelta(minutes=5))

    with patch.object(storage_client, "remove_object", side_effect=EndpointConnectionError(endpoint_url="http://s")):
        summary = _cleanup(alice).json()["data"]

    assert summary["processed_count"] == 2
    assert summary["deleted_count"] == 0
    assert summary["error_count"] == 2
    # the rows are flagged anyway, the objects are left for manual cleanup
    assert alice.get("/api/files").json()["pagination"]["total"] == 0
    assert len(storage_client.objects) == 2


def test_sweep_only_takes_files_strictly_past_their_deadline(alice, alice_id, storage_client):
    deadline = utcnow() + timedelta(hours=1)
    seed_file(storage_client, alice_id, "edge.txt", expires_at=deadline)

    with patch("filevault.services.file.reconciler.utcnow", return_value=deadline):
        summary = _cleanup(alice).json()["data"]
    assert summary["processed_count"] == 0


def test_sweep_treats_missing_objects_as_deleted(alice, alice_id, storage_client):
    seed_file(storage_client, alice_id, "old.txt", expires_at=utcnow() - timedelta(minutes=1), with_object=False)
    summary = _cleanup(alice).json()["data"]
    assert summary["deleted_count"] == 1
    assert summary["error_count"] == 0
