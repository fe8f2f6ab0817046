from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession

from filevault.enums.file_enums import UploadSessionStatus
from filevault.models.files.upload_session import UploadSession
from filevault.repo.crud.common.base_repo import BaseRepository


class UploadSessionRepository(BaseRepository[UploadSession, UploadSession]):
    def __init__(self, db: AsyncSession, context: Optional[dict] = None):
        super().__init__(db, UploadSession, context)

    async def purge_stale(self, now: datetime) -> int:
        """Hard delete sessions that are expired or no longer active."""
        return await self.delete_where(
            or_(
                self.model.expires_at < now,
                self.model.status == UploadSessionStatus.INACTIVE,
            )
        )

    async def delete_all_for_user(self, user_id: UUID) -> int:
        return await self.delete_where(self.model.user_id == user_id)
