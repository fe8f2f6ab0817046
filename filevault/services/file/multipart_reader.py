import mimetypes
import os
from dataclasses import dataclass, field
from enum import Enum
from tempfile import SpooledTemporaryFile
from typing import AsyncIterator, Dict, List, Optional, Set, Tuple

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header
from starlette.concurrency import run_in_threadpool

from filevault.core.exceptions import UploadRejectedException
from filevault.core.logger import get_logger
from filevault.core.response_codes import ResponseCodeEnum
from filevault.utils.filename_utils import MAX_FILENAME_LENGTH

logger = get_logger(__name__)


class PartKind(str, Enum):
    FILE = "file"
    FIELD = "field"
    DISCARD = "discard"


class _Message(Enum):
    HEADERS_FINISHED = 1
    DATA = 2
    PART_END = 3
    END = 4


@dataclass
class ReceivedFile:
    filename: str
    content_type: str
    extension: str
    spool: SpooledTemporaryFile
    size: int = 0

    def close(self) -> None:
        self.spool.close()


@dataclass
class ReceivedUpload:
    file: Optional[ReceivedFile] = None
    fields: Dict[str, str] = field(default_factory=dict)
    discarded_files: int = 0

    def close(self) -> None:
        if self.file is not None:
            self.file.close()


@dataclass
class _Part:
    headers: List[Tuple[bytes, bytes]] = field(default_factory=list)
    name: str = ""
    filename: Optional[str] = None
    kind: PartKind = PartKind.DISCARD
    data: bytearray = field(default_factory=bytearray)


def parse_multipart_boundary(content_type: Optional[str]) -> bytes:
    """Boundary of a multipart/form-data Content-Type, INVALID_CONTENT_TYPE otherwise."""
    if not content_type:
        raise UploadRejectedException(ResponseCodeEnum.INVALID_CONTENT_TYPE)
    media_type, params = parse_options_header(content_type)
    if media_type.strip().lower() != b"multipart/form-data" or not params.get(b"boundary"):
        raise UploadRejectedException(ResponseCodeEnum.INVALID_CONTENT_TYPE)
    return params[b"boundary"]


class MultipartUploadReader:
    """
    Single-pass reader for an upload request body.

    Only the first part named ``file_field`` that carries a filename is kept;
    it is spooled to a SpooledTemporaryFile while its size is enforced, so an
    oversized body is rejected as soon as the limit is crossed. Later file
    parts are drained and dropped. Text fields are buffered up to
    ``max_field_size`` bytes each.

    The parser callbacks only queue messages; the queue is processed between
    chunks so file writes can go through the thread pool.
    """

    def __init__(
            self,
            boundary: bytes,
            *,
            allowed_extensions: Set[str],
            max_file_size: int,
            max_field_size: int,
            spool_max_memory: int,
            file_field: str = "file",
    ):
        self.allowed_extensions = allowed_extensions
        self.max_file_size = max_file_size
        self.max_field_size = max_field_size
        self.spool_max_memory = spool_max_memory
        self.file_field = file_field

        self._upload = ReceivedUpload()
        self._part = _Part()
        self._header_name = b""
        self._header_value = b""
        self._messages: List[Tuple[_Message, _Part, bytes]] = []
        self._ended = False

        callbacks = {
            "on_part_begin": self._on_part_begin,
            "on_part_data": self._on_part_data,
            "on_part_end": self._on_part_end,
            "on_header_field": self._on_header_field,
            "on_header_value": self._on_header_value,
            "on_header_end": self._on_header_end,
            "on_headers_finished": self._on_headers_finished,
            "on_end": self._on_end,
        }
        self._parser = MultipartParser(boundary, callbacks)

    # --- parser callbacks (sync, queue only) ---

    def _on_part_begin(self) -> None:
        self._part = _Part()

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_name += data[start:end]

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def _on_header_end(self) -> None:
        self._part.headers.append((self._header_name.lower(), self._header_value))
        self._header_name = b""
        self._header_value = b""

    def _on_headers_finished(self) -> None:
        self._messages.append((_Message.HEADERS_FINISHED, self._part, b""))

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        self._messages.append((_Message.DATA, self._part, data[start:end]))

    def _on_part_end(self) -> None:
        self._messages.append((_Message.PART_END, self._part, b""))

    def _on_end(self) -> None:
        self._messages.append((_Message.END, self._part, b""))

    # --- message processing (async) ---

    def _classify(self, part: _Part) -> None:
        disposition = next((v for k, v in part.headers if k == b"content-disposition"), None)
        if disposition is None:
            raise UploadRejectedException(ResponseCodeEnum.PARSE_ERROR, "Part without Content-Disposition")
        _, options = parse_options_header(disposition)
        part.name = options.get(b"name", b"").decode("utf-8", errors="replace")
        raw_filename = options.get(b"filename")
        part.filename = raw_filename.decode("utf-8", errors="replace") if raw_filename is not None else None

        if part.filename is None:
            part.kind = PartKind.FIELD
            return

        if part.name != self.file_field or not part.filename or self._upload.file is not None:
            part.kind = PartKind.DISCARD
            self._upload.discarded_files += 1
            logger.debug(f"Discarding extra file part '{part.name}'")
            return

        filename = os.path.basename(part.filename.replace("\\", "/"))
        if len(filename) > MAX_FILENAME_LENGTH:
            raise UploadRejectedException(
                ResponseCodeEnum.FILENAME_TOO_LONG,
                f"File name must be at most {MAX_FILENAME_LENGTH} characters",
            )
        _, ext = os.path.splitext(filename)
        if ext.lower() not in self.allowed_extensions:
            raise UploadRejectedException(
                ResponseCodeEnum.INVALID_FILE_TYPE,
                f"File type '{ext or filename}' is not allowed",
            )

        declared = next((v for k, v in part.headers if k == b"content-type"), b"").decode("latin-1").strip()
        content_type = declared or mimetypes.guess_type(filename)[0] or "application/octet-stream"

        part.kind = PartKind.FILE
        self._upload.file = ReceivedFile(
            filename=filename,
            content_type=content_type,
            extension=ext.lower(),
            spool=SpooledTemporaryFile(max_size=self.spool_max_memory),
        )

    async def _process_messages(self) -> None:
        messages, self._messages = self._messages, []
        for message, part, data in messages:
            if message is _Message.HEADERS_FINISHED:
                self._classify(part)
            elif message is _Message.DATA:
                await self._consume(part, data)
            elif message is _Message.PART_END:
                if part.kind is PartKind.FIELD and part.name not in self._upload.fields:
                    self._upload.fields[part.name] = self._decode_field(part)
            elif message is _Message.END:
                self._ended = True

    async def _consume(self, part: _Part, data: bytes) -> None:
        if part.kind is PartKind.FILE:
            received = self._upload.file
            received.size += len(data)
            if received.size > self.max_file_size:
                raise UploadRejectedException(
                    ResponseCodeEnum.FILE_TOO_LARGE,
                    f"File exceeds the maximum size of {self.max_file_size} bytes",
                )
            await run_in_threadpool(received.spool.write, data)
        elif part.kind is PartKind.FIELD:
            if len(part.data) + len(data) > self.max_field_size:
                raise UploadRejectedException(ResponseCodeEnum.PARSE_ERROR, f"Field '{part.name}' is too large")
            part.data.extend(data)
        # discarded parts are drained without being kept

    @staticmethod
    def _decode_field(part: _Part) -> str:
        try:
            return part.data.decode("utf-8")
        except UnicodeDecodeError:
            raise UploadRejectedException(ResponseCodeEnum.PARSE_ERROR, f"Field '{part.name}' is not valid UTF-8")

    async def read(self, stream: AsyncIterator[bytes]) -> ReceivedUpload:
        """
        Consume the body. On any error the spool is closed and the error is
        re-raised; the remaining body is left unread.
        """
        try:
            async for chunk in stream:
                if not chunk:
                    continue
                try:
                    self._parser.write(chunk)
                except MultipartParseError as e:
                    raise UploadRejectedException(ResponseCodeEnum.PARSE_ERROR) from e
                await self._process_messages()

            self._parser.finalize()
            await self._process_messages()
            if not self._ended:
                raise UploadRejectedException(ResponseCodeEnum.PARSE_ERROR, "Multipart body ended unexpectedly")
        except BaseException:
            self._upload.close()
            raise

        if self._upload.file is not None:
            await run_in_threadpool(self._upload.file.spool.seek, 0)
        return self._upload
