from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from filevault.enums.file_enums import UploadDuration


class FileRecordCreate(BaseModel):
    original_name: str
    storage_key: str
    size: int = Field(..., gt=0)
    mime_type: str
    extension: str
    uploaded_at: datetime
    expires_at: Optional[datetime] = None
    duration: UploadDuration = UploadDuration.UNLIMITED
    user_metadata: Optional[Dict[str, Any]] = None
    user_id: UUID


class FileRecordRead(BaseModel):
    """Public view of a catalog row."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    original_name: str
    storage_key: str
    size: int
    mime_type: str
    extension: str
    uploaded_at: datetime
    expires_at: Optional[datetime] = None
    duration: UploadDuration
    download_url: str
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def from_record(cls, record, base_url: str) -> "FileRecordRead":
        return cls(
            id=record.id,
            original_name=record.original_name,
            storage_key=record.storage_key,
            size=record.size,
            mime_type=record.mime_type,
            extension=record.extension,
            uploaded_at=record.uploaded_at,
            expires_at=record.expires_at,
            duration=record.duration,
            download_url=build_download_url(base_url, record.storage_key),
            metadata=record.user_metadata,
        )


class FileListResult(BaseModel):
    items: List[FileRecordRead]
    page: int
    limit: int
    total: int
    total_pages: int


def build_download_url(base_url: str, storage_key: str) -> str:
    """download_url is never stored; it is derived from the storage key."""
    return f"{base_url.rstrip('/')}/download/{quote(storage_key, safe='')}"
