# filevault/utils/url_builder.py

from typing import Optional
from urllib.parse import quote


def build_public_storage_url(object_name: str, public_base_url: Optional[str]) -> Optional[str]:
    """
    Join a public base URL (CDN / R2 public bucket domain) with an object key.
    Returns None when either part is missing, so callers fall back to presigning.
    """
    if not object_name or not public_base_url:
        return None
    return f"{public_base_url.rstrip('/')}/{quote(object_name.lstrip('/'))}"


def build_endpoint_url(endpoint: Optional[str], secure: bool) -> Optional[str]:
    """'host:port' -> 'https://host:port'. AWS S3 leaves the endpoint empty."""
    if not endpoint:
        return None
    if endpoint.startswith(("http://", "https://")):
        return endpoint.rstrip("/")
    protocol = "https" if secure else "http"
    return f"{protocol}://{endpoint.rstrip('/')}"
