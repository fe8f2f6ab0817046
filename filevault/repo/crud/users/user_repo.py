from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from filevault.models.users.user import User
from filevault.repo.crud.common.base_repo import BaseRepository
from filevault.schemas.users.user_schemas import UserCreate


class UserRepository(BaseRepository[User, UserCreate]):
    def __init__(self, db: AsyncSession, context: Optional[dict] = None):
        super().__init__(db, User, context)

    async def get_by_email(self, email: str) -> Optional[User]:
        return await self.find_by_field(email, "email")
