import os
import re
import time
from typing import Tuple
from urllib.parse import quote
from uuid import uuid4

MAX_FILENAME_LENGTH = 255

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")
_REPEATED_DOTS = re.compile(r"\.{2,}")


def split_extension(filename: str) -> Tuple[str, str]:
    """('report.final.PDF') -> ('report.final', '.PDF'). A leading dot is not an extension."""
    base, ext = os.path.splitext(filename)
    return base, ext


def sanitize_filename(name: str) -> str:
    """
    Keep [A-Za-z0-9.-], replace anything else with '_', collapse repeated
    dots, trim leading/trailing dots and cap the length. Falls back to a
    timestamp based name when nothing usable is left.
    """
    sanitized = _UNSAFE_CHARS.sub("_", name or "")
    sanitized = _REPEATED_DOTS.sub(".", sanitized)
    sanitized = sanitized.strip(".")
    sanitized = sanitized[:MAX_FILENAME_LENGTH]
    if not sanitized:
        return f"file_{int(time.time() * 1000)}"
    return sanitized


def build_storage_key(original_name: str) -> str:
    """<uuid4>-<sanitized base><lower-cased extension>"""
    base, ext = split_extension(os.path.basename(original_name or ""))
    safe_base = sanitize_filename(base) if base else "file"
    return f"{uuid4()}-{safe_base}{ext.lower()}"


_NON_PRINTABLE_ASCII = re.compile(r"[^\x20-\x7E]")


def content_disposition(filename: str, disposition: str = "attachment") -> str:
    """
    Header value with a printable-ASCII fallback and the RFC 5987 encoded
    UTF-8 name, so every client gets a usable filename.
    """
    fallback = _NON_PRINTABLE_ASCII.sub("_", filename).replace("\\", "_").replace('"', "_")
    encoded = quote(filename, safe="")
    return f"{disposition}; filename=\"{fallback}\"; filename*=UTF-8''{encoded}"
