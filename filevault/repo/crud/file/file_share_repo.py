from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession

from filevault.models.files.file_share import FileShare
from filevault.repo.crud.common.base_repo import BaseRepository, expired_before


class FileShareRepository(BaseRepository[FileShare, FileShare]):
    def __init__(self, db: AsyncSession, context: Optional[dict] = None):
        super().__init__(db, FileShare, context)

    async def purge_expired(self, now: datetime) -> int:
        return await self.delete_where(expired_before(self.model.expires_at, now))

    async def delete_for_user(self, user_id: UUID, file_ids: List[UUID]) -> int:
        """Shares created by, granted to, or pointing at files of the user."""
        conditions = [
            self.model.shared_by_user_id == user_id,
            self.model.shared_with_user_id == user_id,
        ]
        if file_ids:
            conditions.append(self.model.file_id.in_(file_ids))
        return await self.delete_where(or_(*conditions))
