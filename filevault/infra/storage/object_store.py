from typing import BinaryIO, Callable, Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool
from tenacity import retry, stop_after_attempt, wait_fixed

from filevault.core.exceptions import ObjectNotFoundException, StoreUnavailableException
from filevault.core.logger import get_logger
from filevault.infra.storage.storage_interface import StorageClientInterface
from filevault.schemas.file.storage_schemas import ObjectData, ObjectHead, ObjectSummary

logger = get_logger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def _is_not_found(error: ClientError) -> bool:
    code = str(error.response.get("Error", {}).get("Code", ""))
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return code in _NOT_FOUND_CODES or status == 404


class ObjectStore:
    """
    Async gateway over a synchronous storage driver.

    Every call runs in the thread pool. Driver errors are translated into two
    outcomes only: ObjectNotFoundException for a definitive "no such key" and
    StoreUnavailableException for everything else.
    """

    def __init__(self, client: StorageClientInterface, signed_url_ttl: int = 3600):
        self.client = client
        self.signed_url_ttl = signed_url_ttl

    async def _call(self, operation: str, key: str, func: Callable, *args, **kwargs):
        try:
            return await run_in_threadpool(func, *args, **kwargs)
        except ClientError as e:
            if _is_not_found(e):
                raise ObjectNotFoundException(key) from e
            logger.error(f"[ObjectStore] {operation} failed for {key}: {e}")
            raise StoreUnavailableException() from e
        except (BotoCoreError, OSError) as e:
            logger.error(f"[ObjectStore] {operation} transport error for {key}: {e}")
            raise StoreUnavailableException() from e

    async def put(
            self,
            key: str,
            stream: BinaryIO,
            content_type: str,
            size: int,
            attributes: Optional[Dict[str, str]] = None,
    ) -> None:
        await self._call(
            "put", key, self.client.put_object,
            object_name=key,
            data=stream,
            length=size,
            content_type=content_type,
            metadata=attributes or {},
        )

    async def head(self, key: str) -> ObjectHead:
        raw = await self._call("head", key, self.client.stat_object, key)
        return ObjectHead(
            size=raw["content_length"],
            content_type=raw["content_type"],
            attributes=raw.get("metadata") or {},
        )

    async def get(self, key: str) -> ObjectData:
        raw = await self._call("get", key, self.client.get_object, key)
        return ObjectData(
            body=raw["body"],
            size=raw["content_length"],
            content_type=raw["content_type"],
            attributes=raw.get("metadata") or {},
        )

    async def delete(self, key: str) -> None:
        """Idempotent: a key that is already gone counts as deleted."""
        try:
            await self._call("delete", key, self.client.remove_object, key)
        except ObjectNotFoundException:
            logger.debug(f"[ObjectStore] delete of missing key {key} treated as success")

    async def signed_url(self, key: str, ttl: Optional[int] = None) -> str:
        """Public URL when a public base URL is configured, otherwise a presigned GET."""
        public_url = self.client.build_final_url(key)
        if public_url:
            return public_url
        return await self._call(
            "signed_url", key, self.client.get_presigned_url,
            "get_object", key, ttl or self.signed_url_ttl,
        )

    async def list(self, prefix: str = "") -> List[ObjectSummary]:
        raw = await self._call("list", prefix, self.client.list_objects, prefix)
        return [ObjectSummary(**item) for item in raw]

    @retry(wait=wait_fixed(2), stop=stop_after_attempt(3), reraise=True)
    async def ensure_bucket(self) -> None:
        await self._call("ensure_bucket", "<bucket>", self.client.ensure_bucket)
