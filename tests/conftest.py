import asyncio
import os
import tempfile
from typing import Dict, List, Optional

# configuration is read at import time, so the test environment is set first
_TMP_DIR = tempfile.mkdtemp(prefix="filevault-tests-")
os.environ["ENV"] = "test"
os.environ.setdefault("TEST_DATABASE_URL", f"sqlite+aiosqlite:///{_TMP_DIR}/filevault.db")

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient

from filevault.core.security.session_token import create_session_token
from filevault.db.session import AsyncSessionLocal, create_db_and_tables, drop_db_and_tables
from filevault.enums.file_enums import UploadDuration
from filevault.infra.db.repository_factory import RepositoryFactory
from filevault.infra.storage.object_store import ObjectStore
from filevault.infra.storage.storage_factory import storage_factory
from filevault.infra.storage.storage_interface import StorageClientInterface
from filevault.main import app
from filevault.models._model_utils.datetime import utcnow
from filevault.repo.crud.file.file_record_repo import FileRecordRepository
from filevault.repo.crud.users.user_repo import UserRepository
from filevault.utils.filename_utils import build_storage_key

SESSION_COOKIE = "filevault_session"


class InMemoryStorageClient(StorageClientInterface):
    """Dict backed driver that fails like S3 does for missing keys."""

    def __init__(self, public_base_url: Optional[str] = None):
        self.objects: Dict[str, dict] = {}
        self.public_base_url = public_base_url
        self.deleted: List[str] = []

    @staticmethod
    def _no_such_key(operation: str) -> ClientError:
        return ClientError(
            {"Error": {"Code": "NoSuchKey", "Message": "The specified key does not exist."},
             "ResponseMetadata": {"HTTPStatusCode": 404}},
            operation,
        )

    def put_object(self, object_name, data, length, content_type, metadata=None):
        body = data.read()
        self.objects[object_name] = {
            "body": body,
            "content_type": content_type,
            "metadata": dict(metadata or {}),
        }
        return {"key": object_name}

    def remove_object(self, object_name):
        self.deleted.append(object_name)
        self.objects.pop(object_name, None)

    def get_object(self, object_name):
        if object_name not in self.objects:
            raise self._no_such_key("GetObject")
        obj = self.objects[object_name]
        return {
            "body": obj["body"],
            "content_type": obj["content_type"],
            "content_length": len(obj["body"]),
            "metadata": obj["metadata"],
        }

    def stat_object(self, object_name):
        if object_name not in self.objects:
            raise self._no_such_key("HeadObject")
        obj = self.objects[object_name]
        return {
            "content_type": obj["content_type"],
            "content_length": len(obj["body"]),
            "metadata": obj["metadata"],
        }

    def get_presigned_url(self, client_method, object_name, expires_in):
        return f"https://storage.test/filevault-test/{object_name}?X-Amz-Expires={expires_in}"

    def build_final_url(self, object_name):
        if not self.public_base_url:
            return None
        return f"{self.public_base_url.rstrip('/')}/{object_name}"

    def list_objects(self, prefix=""):
        return [
            {"key": key, "size": len(obj["body"]), "last_modified": None}
            for key, obj in sorted(self.objects.items())
            if key.startswith(prefix)
        ]

    def ensure_bucket(self):
        return None


# ==========================
# Database
# ==========================

async def _reset_db():
    await drop_db_and_tables()
    await create_db_and_tables()


@pytest.fixture(autouse=True)
def reset_db():
    asyncio.run(_reset_db())
    yield


def run_with_factory(fn):
    """Run ``await fn(repo_factory)`` on a fresh session and commit."""
    async def _inner():
        async with AsyncSessionLocal() as session:
            factory = RepositoryFactory(session)
            result = await fn(factory)
            await session.commit()
            return result
    return asyncio.run(_inner())


@pytest.fixture
def db():
    return run_with_factory


def user_id_for(email: str):
    async def _lookup(factory):
        user = await factory.get_repo_by_type(UserRepository).get_by_email(email)
        return user.id if user else None
    return run_with_factory(_lookup)


# ==========================
# Storage
# ==========================

@pytest.fixture
def storage_client():
    return InMemoryStorageClient()


@pytest.fixture
def object_store(storage_client, monkeypatch):
    store = ObjectStore(storage_client, signed_url_ttl=600)
    # the routes, the lifespan and the CLI all obtain the store through the factory
    monkeypatch.setattr(storage_factory, "get_object_store", lambda: store)
    return store


# ==========================
# HTTP clients
# ==========================

def session_cookies(email: str) -> Dict[str, str]:
    return {SESSION_COOKIE: create_session_token(email)}


@pytest.fixture
def client_for(object_store):
    """client_for("alice@example.com") -> TestClient signed in as alice."""
    opened = []

    def _make(email: Optional[str] = None, headers: Optional[Dict[str, str]] = None) -> TestClient:
        client = TestClient(app, cookies=session_cookies(email) if email else None, headers=headers)
        client.__enter__()
        opened.append(client)
        return client

    yield _make
    for client in opened:
        client.__exit__(None, None, None)


@pytest.fixture
def alice(client_for):
    return client_for("alice@example.com")


@pytest.fixture
def bob(client_for):
    return client_for("bob@example.com")


def upload(client: TestClient, name: str = "notes.txt", content: bytes = b"hello world",
           content_type: str = "text/plain", **fields):
    return client.post("/api/upload", files={"file": (name, content, content_type)}, data=fields)


def seed_file(storage_client: InMemoryStorageClient, user_id, name: str = "notes.txt", *,
              uploaded_at=None, expires_at=None, duration=None, with_object: bool = True,
              content: bytes = b"seeded", content_type: str = "text/plain", is_deleted: bool = False):
    """Insert a catalog row directly (and its object unless with_object is False)."""
    storage_key = build_storage_key(name)

    async def _create(factory):
        return await factory.get_repo_by_type(FileRecordRepository).create({
            "original_name": name,
            "storage_key": storage_key,
            "size": len(content),
            "mime_type": content_type,
            "extension": "." + name.rsplit(".", 1)[-1].lower(),
            "uploaded_at": uploaded_at or utcnow(),
            "expires_at": expires_at,
            "duration": duration or (UploadDuration.ONE_HOUR if expires_at else UploadDuration.UNLIMITED),
            "user_id": user_id,
            "is_deleted": is_deleted,
        })

    record = run_with_factory(_create)
    if with_object:
        storage_client.objects[storage_key] = {"body": content, "content_type": content_type, "metadata": {}}
    return record


def signed_in_user_id(client: TestClient, email: str):
    """Make one request so the user row exists, then return its id."""
    client.get("/api/files")
    return user_id_for(email)
