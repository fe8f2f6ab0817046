from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import JSON
from sqlmodel import Field

from filevault.models._model_utils.datetime import UTCDateTime, utcnow
from filevault.models.base.base_model import IdMixin


class FileShare(IdMixin, table=True):
    """Share grant for a file. Only its lifecycle (expiry purge, account deletion) is handled here."""
    __tablename__ = "file_shares"

    file_id: UUID = Field(foreign_key="files.id", index=True)
    shared_by_user_id: UUID = Field(foreign_key="users.id", index=True)
    shared_with_user_id: Optional[UUID] = Field(default=None, foreign_key="users.id", index=True)
    share_token: str = Field(..., unique=True, index=True, max_length=255)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime())
    expires_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime(), index=True)
    permissions: Optional[Dict[str, Any]] = Field(default=None, sa_type=JSON)
