"""
Async client for the upload API.

Files are queued as UploadTask objects and processed by a fixed number of
workers. Each task carries its own status, result and error, so callers read
outcomes from the tasks instead of shared flags.
"""
import asyncio
import json
import mimetypes
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

import httpx
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from filevault.core.logger import get_logger
from filevault.enums.file_enums import UploadDuration

logger = get_logger(__name__)


class UploadStatus(str, Enum):
    PENDING = "pending"
    UPLOADING = "uploading"
    ERROR = "error"
    SUCCESS = "success"


@dataclass
class UploadTask:
    path: Path
    duration: UploadDuration = UploadDuration.UNLIMITED
    metadata: Optional[Dict[str, Any]] = None
    status: UploadStatus = UploadStatus.PENDING
    attempts: int = 0
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @property
    def done(self) -> bool:
        return self.status in (UploadStatus.SUCCESS, UploadStatus.ERROR)


class UploadRejected(Exception):
    """The server answered with a final (non-retryable) error envelope."""

    def __init__(self, status_code: int, code: Optional[str], message: str):
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class ServerUnavailable(Exception):
    """5xx answer, worth another attempt."""


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, (httpx.TransportError, ServerUnavailable))


class FileVaultUploadClient:
    def __init__(
            self,
            base_url: str,
            api_key: str,
            *,
            concurrency: int = 3,
            max_attempts: int = 3,
            timeout: float = 300.0,
            transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.concurrency = max(1, concurrency)
        self.max_attempts = max(1, max_attempts)
        self.timeout = timeout
        self.transport = transport

    def _new_http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=self.timeout,
            transport=self.transport,
        )

    async def _post_once(self, http: httpx.AsyncClient, task: UploadTask) -> Dict[str, Any]:
        task.attempts += 1
        content_type = mimetypes.guess_type(task.path.name)[0] or "application/octet-stream"
        data = {"duration": task.duration.value}
        if task.metadata:
            data["metadata"] = json.dumps(task.metadata)

        with task.path.open("rb") as fh:
            response = await http.post("/upload", data=data, files={"file": (task.path.name, fh, content_type)})

        if response.status_code >= 500:
            raise ServerUnavailable(f"Server error {response.status_code}")
        try:
            body = response.json()
        except ValueError:
            raise UploadRejected(response.status_code, None, f"Unexpected response ({response.status_code})")
        if not response.is_success or not body.get("success"):
            raise UploadRejected(response.status_code, body.get("code"), body.get("message") or "Upload failed")
        return body["data"]

    async def upload_one(self, http: httpx.AsyncClient, task: UploadTask) -> UploadTask:
        task.status = UploadStatus.UPLOADING
        try:
            async for attempt in AsyncRetrying(
                    stop=stop_after_attempt(self.max_attempts),
                    wait=wait_exponential(multiplier=0.5, max=8),
                    retry=retry_if_exception(_is_transient),
                    reraise=True,
            ):
                with attempt:
                    task.result = await self._post_once(http, task)
            task.status = UploadStatus.SUCCESS
        except UploadRejected as e:
            task.status = UploadStatus.ERROR
            task.error, task.error_code = str(e), e.code
        except (httpx.HTTPError, ServerUnavailable, OSError) as e:
            task.status = UploadStatus.ERROR
            task.error, task.error_code = str(e) or e.__class__.__name__, "CLIENT_ERROR"
        if task.status is UploadStatus.ERROR:
            logger.warning(f"Upload of {task.path.name} failed after {task.attempts} attempt(s): {task.error}")
        return task

    async def _worker(
            self,
            http: httpx.AsyncClient,
            queue: "asyncio.Queue[UploadTask]",
            on_done: Optional[Callable[[UploadTask], None]],
    ) -> None:
        while True:
            task = await queue.get()
            try:
                await self.upload_one(http, task)
                if on_done:
                    on_done(task)
            finally:
                queue.task_done()

    async def upload_all(
            self,
            tasks: Iterable[UploadTask],
            on_done: Optional[Callable[[UploadTask], None]] = None,
    ) -> List[UploadTask]:
        tasks = list(tasks)
        queue: "asyncio.Queue[UploadTask]" = asyncio.Queue()
        for task in tasks:
            queue.put_nowait(task)

        async with self._new_http_client() as http:
            workers = [
                asyncio.create_task(self._worker(http, queue, on_done))
                for _ in range(min(self.concurrency, len(tasks)) or 1)
            ]
            try:
                await queue.join()
            finally:
                for worker in workers:
                    worker.cancel()
                await asyncio.gather(*workers, return_exceptions=True)
        return tasks


def build_tasks(
        paths: Iterable[Path],
        duration: UploadDuration = UploadDuration.UNLIMITED,
        metadata: Optional[Dict[str, Any]] = None,
) -> List[UploadTask]:
    return [UploadTask(path=Path(p), duration=duration, metadata=metadata) for p in paths]
