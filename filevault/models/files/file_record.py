from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import JSON
from sqlmodel import Field

from filevault.enums.file_enums import UploadDuration
from filevault.models._model_utils.datetime import UTCDateTime, utcnow
from filevault.models.base.base_model import IdMixin, SoftDeleteMixin


class FileRecord(IdMixin, SoftDeleteMixin, table=True):
    """
    Catalog entry for one stored object.

    Rows are inserted only after the object store write succeeded and are never
    updated afterwards except for the soft-delete flag. The bytes live in the
    object store under ``storage_key``.
    """
    __tablename__ = "files"

    original_name: str = Field(..., index=True, max_length=255, description="Filename supplied by the uploader")
    storage_key: str = Field(..., unique=True, index=True, max_length=320, description="Object key in the store")
    size: int = Field(..., gt=0, description="Size in bytes")
    mime_type: str = Field(..., max_length=255)
    extension: str = Field(..., max_length=32)
    uploaded_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime(), index=True)
    expires_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime(), index=True)
    duration: UploadDuration = Field(default=UploadDuration.UNLIMITED)
    user_metadata: Optional[Dict[str, Any]] = Field(default=None, sa_type=JSON)

    user_id: UUID = Field(foreign_key="users.id", index=True, description="Owner")

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now
