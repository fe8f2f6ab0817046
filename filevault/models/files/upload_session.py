from datetime import datetime
from uuid import UUID

from sqlmodel import Field

from filevault.enums.file_enums import UploadSessionStatus
from filevault.models._model_utils.datetime import UTCDateTime, utcnow
from filevault.models.base.base_model import IdMixin


class UploadSession(IdMixin, table=True):
    __tablename__ = "upload_sessions"

    user_id: UUID = Field(foreign_key="users.id", index=True)
    session_id: str = Field(..., unique=True, index=True, max_length=255)
    status: UploadSessionStatus = Field(default=UploadSessionStatus.ACTIVE)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime())
    expires_at: datetime = Field(..., sa_type=UTCDateTime(), index=True)
