from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from filevault.models.users.api_key import ApiKey
from filevault.repo.crud.common.base_repo import BaseRepository
from filevault.schemas.users.api_key_schemas import ApiKeyCreate


class ApiKeyRepository(BaseRepository[ApiKey, ApiKeyCreate]):
    def __init__(self, db: AsyncSession, context: Optional[dict] = None):
        super().__init__(db, ApiKey, context)

    def _base_stmt(self):
        # revoked keys are the "deleted" ones
        return super()._base_stmt().where(self.model.revoked_at.is_(None))

    async def list_active(self) -> List[ApiKey]:
        """All non-revoked keys of every user: the bearer check scans these."""
        return await self._run_and_scalars(self._base_stmt(), "list_active")

    async def list_active_for_user(self, user_id: UUID) -> List[ApiKey]:
        stmt = (
            self._base_stmt()
            .where(self.model.user_id == user_id)
            .order_by(self.model.created_at.asc())
        )
        return await self._run_and_scalars(stmt, "list_active_for_user")

    async def count_active_for_user(self, user_id: UUID) -> int:
        return await self.count(self._base_stmt().where(self.model.user_id == user_id))

    async def get_active_owned(self, key_id: UUID, user_id: UUID) -> Optional[ApiKey]:
        stmt = self._base_stmt().where(self.model.id == key_id, self.model.user_id == user_id)
        return await self._run_and_scalar(stmt, "get_active_owned")

    async def revoke(self, api_key: ApiKey, now: datetime) -> ApiKey:
        return await self.update(api_key, {"revoked_at": now})

    async def touch_last_used(self, key_id: UUID, now: datetime) -> int:
        return await self.update_by_id(key_id, {"last_used_at": now})

    async def delete_all_for_user(self, user_id: UUID) -> int:
        return await self.delete_where(self.model.user_id == user_id)
