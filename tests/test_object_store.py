import io
from unittest.mock import patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError
from botocore.stub import Stubber

from conftest import InMemoryStorageClient
from filevault.config.config_settings.config_schema import S3Params
from filevault.core.exceptions import ObjectNotFoundException, StoreUnavailableException
from filevault.infra.storage.object_store import ObjectStore
from filevault.infra.storage.s3_client import S3CompatibleClient
from filevault.utils.url_builder import build_endpoint_url, build_public_storage_url


def _client_error(code: str, status: int, operation: str = "HeadObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}, "ResponseMetadata": {"HTTPStatusCode": status}},
                       operation)


@pytest.fixture
def memory_client():
    return InMemoryStorageClient()


@pytest.fixture
def store(memory_client):
    return ObjectStore(memory_client, signed_url_ttl=120)


async def test_put_head_get(store, memory_client):
    await store.put("k1", io.BytesIO(b"payload"), "text/plain", 7, {"duration": "1h"})

    head = await store.head("k1")
    assert head.size == 7
    assert head.content_type == "text/plain"
    assert head.attributes == {"duration": "1h"}

    data = await store.get("k1")
    assert data.body == b"payload"


async def test_missing_key_is_not_found(store):
    with pytest.raises(ObjectNotFoundException):
        await store.head("nope")
    with pytest.raises(ObjectNotFoundException):
        await store.get("nope")


@pytest.mark.parametrize("error", [
    _client_error("AccessDenied", 403),
    _client_error("InternalError", 500),
    EndpointConnectionError(endpoint_url="http://storage"),
    ConnectionResetError("reset"),
])
async def test_other_failures_are_unavailable(store, memory_client, error):
    with patch.object(memory_client, "stat_object", side_effect=error):
        with pytest.raises(StoreUnavailableException) as exc_info:
            await store.head("k1")
    assert exc_info.value.code == "STORAGE_UNAVAILABLE"


async def test_bare_404_status_is_not_found(store, memory_client):
    with patch.object(memory_client, "stat_object", side_effect=_client_error("SomethingElse", 404)):
        with pytest.raises(ObjectNotFoundException):
            await store.head("k1")


async def test_delete_of_missing_key_succeeds(store, memory_client):
    with patch.object(memory_client, "remove_object", side_effect=_client_error("NoSuchKey", 404, "DeleteObject")):
        await store.delete("gone")


async def test_delete_propagates_outages(store, memory_client):
    with patch.object(memory_client, "remove_object", side_effect=EndpointConnectionError(endpoint_url="http://s")):
        with pytest.raises(StoreUnavailableException):
            await store.delete("k1")


async def test_signed_url_presigns_with_the_default_ttl(store):
    assert await store.signed_url("a/b.txt") == "https://storage.test/filevault-test/a/b.txt?X-Amz-Expires=120"
    assert (await store.signed_url("a/b.txt", ttl=30)).endswith("X-Amz-Expires=30")


async def test_signed_url_prefers_public_base_url(memory_client):
    memory_client.public_base_url = "https://cdn.example.com"
    store = ObjectStore(memory_client)
    assert await store.signed_url("x.png") == "https://cdn.example.com/x.png"


async def test_list(store):
    await store.put("a/1.txt", io.BytesIO(b"1"), "text/plain", 1)
    await store.put("b/2.txt", io.BytesIO(b"22"), "text/plain", 2)
    listed = await store.list("a/")
    assert [(o.key, o.size) for o in listed] == [("a/1.txt", 1)]


# ==========================
# boto3 driver
# ==========================

@pytest.fixture
def s3_driver():
    return S3CompatibleClient(S3Params(
        endpoint="localhost:9000",
        region="us-east-1",
        access_key="test",
        secret_key="test",
        bucket_name="filevault-test",
        secure=False,
        path_style=True,
    ))


async def test_driver_head_404_maps_to_not_found(s3_driver):
    store = ObjectStore(s3_driver)
    with Stubber(s3_driver.s3) as stubber:
        stubber.add_client_error("head_object", service_error_code="404", http_status_code=404)
        with pytest.raises(ObjectNotFoundException):
            await store.head("missing.txt")


async def test_driver_head_reads_metadata(s3_driver):
    store = ObjectStore(s3_driver)
    with Stubber(s3_driver.s3) as stubber:
        stubber.add_response(
            "head_object",
            {"ContentType": "application/pdf", "ContentLength": 42, "Metadata": {"user-id": "u1"}},
            {"Bucket": "filevault-test", "Key": "doc.pdf"},
        )
        head = await store.head("doc.pdf")
    assert (head.size, head.content_type, head.attributes) == (42, "application/pdf", {"user-id": "u1"})


async def test_driver_access_denied_is_unavailable(s3_driver):
    store = ObjectStore(s3_driver)
    with Stubber(s3_driver.s3) as stubber:
        stubber.add_client_error("delete_object", service_error_code="AccessDenied", http_status_code=403)
        with pytest.raises(StoreUnavailableException):
            await store.delete("doc.pdf")


async def test_driver_presigns_offline(s3_driver):
    url = await ObjectStore(s3_driver, signed_url_ttl=600).signed_url("doc.pdf")
    assert url.startswith("http://localhost:9000/filevault-test/doc.pdf?")
    assert "X-Amz-Expires=600" in url


def test_driver_endpoint_and_public_url(s3_driver):
    assert s3_driver.endpoint_url == "http://localhost:9000"
    assert s3_driver.build_final_url("doc.pdf") is None


@pytest.mark.parametrize("endpoint, secure, expected", [
    (None, True, None),
    ("minio:9000", False, "http://minio:9000"),
    ("acct.r2.cloudflarestorage.com", True, "https://acct.r2.cloudflarestorage.com"),
    ("https://s3.example.com/", True, "https://s3.example.com"),
])
def test_build_endpoint_url(endpoint, secure, expected):
    assert build_endpoint_url(endpoint, secure) == expected


def test_build_public_storage_url():
    assert build_public_storage_url("a b.png", "https://cdn.example.com/") == "https://cdn.example.com/a%20b.png"
    assert build_public_storage_url("a.png", None) is None
