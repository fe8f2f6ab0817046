from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from filevault.models.files.file_record import FileRecord
from filevault.repo.crud.common.base_repo import BaseRepository, expired_before
from filevault.schemas.file.file_record_schemas import FileRecordCreate


class FileRecordRepository(BaseRepository[FileRecord, FileRecordCreate]):
    """
    Catalog queries for FileRecord.
    Every lookup goes through _base_stmt, so soft-deleted rows never match
    unless a method says otherwise.
    """
    def __init__(self, db: AsyncSession, context: Optional[dict] = None):
        super().__init__(db, FileRecord, context)

    async def get_by_storage_key(self, storage_key: str) -> Optional[FileRecord]:
        stmt = self._base_stmt().where(self.model.storage_key == storage_key)
        return await self._run_and_scalar(stmt, "get_by_storage_key")

    async def get_first_by_original_name(self, original_name: str, user_id: UUID) -> Optional[FileRecord]:
        """Oldest live upload with this name; the name is not unique per user."""
        stmt = (
            self._base_stmt()
            .where(self.model.original_name == original_name, self.model.user_id == user_id)
            .order_by(self.model.uploaded_at.asc(), self.model.id.asc())
            .limit(1)
        )
        return await self._run_and_scalar(stmt, "get_first_by_original_name")

    async def get_deleted_owned(
            self,
            user_id: UUID,
            *,
            record_id: Optional[UUID] = None,
            storage_key: Optional[str] = None,
            original_name: Optional[str] = None,
    ) -> Optional[FileRecord]:
        """Tombstone lookup used to make repeated deletes succeed."""
        conditions = []
        if record_id is not None:
            conditions.append(self.model.id == record_id)
        if storage_key is not None:
            conditions.append(self.model.storage_key == storage_key)
        if original_name is not None:
            conditions.append(self.model.original_name == original_name)
        if not conditions:
            return None

        stmt = (
            select(self.model)
            .where(self.model.is_deleted == True, self.model.user_id == user_id)  # noqa: E712
            .where(or_(*conditions))
            .limit(1)
        )
        return await self._run_and_scalar(stmt, "get_deleted_owned")

    def live_for_user_stmt(self, user_id: UUID, now: datetime):
        """Live (not deleted, not expired) files of one user."""
        return (
            self._base_stmt()
            .where(self.model.user_id == user_id)
            .where(or_(self.model.expires_at.is_(None), self.model.expires_at > now))
        )

    async def find_expired(self, now: datetime) -> List[FileRecord]:
        stmt = self._base_stmt().where(expired_before(self.model.expires_at, now))
        return await self._run_and_scalars(stmt, "find_expired")

    async def list_all_for_user(self, user_id: UUID) -> List[FileRecord]:
        """Every row of a user, soft-deleted ones included."""
        stmt = select(self.model).where(self.model.user_id == user_id)
        return await self._run_and_scalars(stmt, "list_all_for_user")

    async def delete_all_for_user(self, user_id: UUID) -> int:
        return await self.delete_where(self.model.user_id == user_id)
