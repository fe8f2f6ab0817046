from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import Text
from sqlmodel import Field

from filevault.models._model_utils.datetime import UTCDateTime, utcnow
from filevault.models.base.base_model import IdMixin


class ApiKey(IdMixin, table=True):
    """
    Bearer credential owned by a user.
    The raw key is never stored: hashed_key verifies it, encrypted_key lets the owner see it again.
    Deleting a key sets revoked_at.
    """
    __tablename__ = "api_keys"

    user_id: UUID = Field(foreign_key="users.id", index=True)
    name: str = Field(..., max_length=100)
    hashed_key: str = Field(..., sa_type=Text)
    encrypted_key: str = Field(..., sa_type=Text)
    prefix: str = Field(..., max_length=32)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime())
    last_used_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime())
    revoked_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime(), index=True)
