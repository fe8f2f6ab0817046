import pytest

from filevault.core.exceptions import UploadRejectedException
from filevault.core.response_codes import ResponseCodeEnum
from filevault.services.file.multipart_reader import MultipartUploadReader, parse_multipart_boundary

BOUNDARY = "----filevault-test-boundary"


def build_body(parts, boundary=BOUNDARY, close=True) -> bytes:
    """parts: (name, filename or None, content bytes, content type or None)"""
    out = b""
    for name, filename, content, content_type in parts:
        out += f"--{boundary}\r\n".encode()
        disposition = f'form-data; name="{name}"'
        if filename is not None:
            disposition += f'; filename="{filename}"'
        out += f"Content-Disposition: {disposition}\r\n".encode()
        if content_type:
            out += f"Content-Type: {content_type}\r\n".encode()
        out += b"\r\n" + content + b"\r\n"
    if close:
        out += f"--{boundary}--\r\n".encode()
    return out


async def chunked(body: bytes, size: int = 7):
    for i in range(0, len(body), size):
        yield body[i:i + size]


def make_reader(max_file_size=1024, max_field_size=64):
    return MultipartUploadReader(
        BOUNDARY.encode(),
        allowed_extensions={".txt", ".pdf"},
        max_file_size=max_file_size,
        max_field_size=max_field_size,
        spool_max_memory=16,
    )


async def test_reads_first_file_and_fields():
    body = build_body([
        ("duration", None, b"24h", None),
        ("file", "notes.txt", b"hello world", "text/plain"),
        ("file", "other.txt", b"ignored", "text/plain"),
        ("metadata", None, b'{"tags": ["a"]}', None),
    ])
    upload = await make_reader().read(chunked(body))
    try:
        assert upload.file.filename == "notes.txt"
        assert upload.file.size == 11
        assert upload.file.content_type == "text/plain"
        assert upload.file.spool.read() == b"hello world"
        assert upload.fields == {"duration": "24h", "metadata": '{"tags": ["a"]}'}
        assert upload.discarded_files == 1
    finally:
        upload.close()


async def test_large_file_is_spooled_intact():
    content = bytes(range(256)) * 3
    body = build_body([("file", "data.pdf", content, "application/pdf")])
    upload = await make_reader().read(chunked(body, size=50))
    try:
        assert upload.file.spool.read() == content
    finally:
        upload.close()


async def test_content_type_is_guessed_when_missing():
    body = build_body([("file", "report.PDF", b"%PDF-1.4", None)])
    upload = await make_reader().read(chunked(body))
    assert upload.file.content_type == "application/pdf"
    assert upload.file.extension == ".pdf"
    upload.close()


async def test_disallowed_extension_is_rejected_before_body():
    body = build_body([("file", "evil.exe", b"MZ" * 10, "application/octet-stream")])
    with pytest.raises(UploadRejectedException) as exc_info:
        await make_reader().read(chunked(body))
    assert exc_info.value.code_enum is ResponseCodeEnum.INVALID_FILE_TYPE


async def test_overlong_filename_is_rejected_before_body():
    body = build_body([("file", "a" * 252 + ".txt", b"hello", "text/plain")])
    with pytest.raises(UploadRejectedException) as exc_info:
        await make_reader().read(chunked(body))
    assert exc_info.value.code_enum is ResponseCodeEnum.FILENAME_TOO_LONG


async def test_filename_at_the_column_limit_is_accepted():
    name = "a" * 251 + ".txt"
    upload = await make_reader().read(chunked(build_body([("file", name, b"hello", "text/plain")])))
    assert upload.file.filename == name
    upload.close()


async def test_oversized_file_is_rejected_while_streaming():
    received = []
    body = build_body([("file", "big.txt", b"x" * 100, "text/plain")])

    async def stream():
        async for chunk in chunked(body):
            received.append(chunk)
            yield chunk

    with pytest.raises(UploadRejectedException) as exc_info:
        await make_reader(max_file_size=10).read(stream())
    assert exc_info.value.code_enum is ResponseCodeEnum.FILE_TOO_LARGE
    # aborted before the whole body was consumed
    assert sum(len(c) for c in received) < len(body)


async def test_oversized_field_is_rejected():
    body = build_body([("metadata", None, b"x" * 100, None)])
    with pytest.raises(UploadRejectedException) as exc_info:
        await make_reader(max_field_size=10).read(chunked(body))
    assert exc_info.value.code_enum is ResponseCodeEnum.PARSE_ERROR


async def test_no_file_part_returns_empty_upload():
    body = build_body([("duration", None, b"1h", None)])
    upload = await make_reader().read(chunked(body))
    assert upload.file is None
    assert upload.fields == {"duration": "1h"}


async def test_garbage_body_is_a_parse_error():
    with pytest.raises(UploadRejectedException) as exc_info:
        await make_reader().read(chunked(b"this is not multipart at all"))
    assert exc_info.value.code_enum is ResponseCodeEnum.PARSE_ERROR


async def test_truncated_body_is_a_parse_error():
    body = build_body([("file", "notes.txt", b"hello", "text/plain")], close=False)
    with pytest.raises(UploadRejectedException) as exc_info:
        await make_reader().read(chunked(body))
    assert exc_info.value.code_enum is ResponseCodeEnum.PARSE_ERROR


@pytest.mark.parametrize("content_type", [
    None,
    "application/json",
    "multipart/form-data",
    "text/plain; boundary=abc",
])
def test_boundary_requires_multipart_form_data(content_type):
    with pytest.raises(UploadRejectedException) as exc_info:
        parse_multipart_boundary(content_type)
    assert exc_info.value.code_enum is ResponseCodeEnum.INVALID_CONTENT_TYPE


def test_boundary_is_extracted():
    assert parse_multipart_boundary(f"multipart/form-data; boundary={BOUNDARY}") == BOUNDARY.encode()
