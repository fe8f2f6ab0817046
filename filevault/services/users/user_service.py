import asyncio
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from filevault.core.exceptions import NotFoundException
from filevault.infra.db.repository_factory import RepositoryFactory
from filevault.infra.storage.object_store import ObjectStore
from filevault.models.users.user import User
from filevault.repo.crud.file.file_record_repo import FileRecordRepository
from filevault.repo.crud.file.file_share_repo import FileShareRepository
from filevault.repo.crud.file.upload_session_repo import UploadSessionRepository
from filevault.repo.crud.users.api_key_repo import ApiKeyRepository
from filevault.repo.crud.users.user_repo import UserRepository
from filevault.schemas.users.user_schemas import UserCreate
from filevault.services._base_service import BaseService


class UserService(BaseService):
    """
    User identity and account lifecycle.
    Sign-in itself happens elsewhere; this service only mirrors the identity
    into the catalog and removes it again on request.
    """

    def __init__(self, repo_factory: RepositoryFactory, store: Optional[ObjectStore] = None):
        super().__init__()
        self.factory = repo_factory
        self.store = store
        self.user_repo: UserRepository = repo_factory.get_repo_by_type(UserRepository)

    async def get_user_by_id(self, user_id: UUID) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundException(message="User not found")
        return user

    async def get_or_create_by_email(self, email: str, name: Optional[str] = None) -> User:
        """First sign-in creates the row."""
        user = await self.user_repo.get_by_email(email)
        if user:
            return user
        try:
            user = await self.user_repo.create(UserCreate(email=email, name=name))
            await self.factory.commit()
            self.logger.info(f"Created user {user.id} on first sign-in")
            return user
        except IntegrityError:
            # concurrent first sign-in of the same email
            await self.factory.rollback()
            user = await self.user_repo.get_by_email(email)
            if not user:
                raise
            return user

    async def update_profile_picture(self, user_id: UUID, image: Optional[str]) -> User:
        user = await self.get_user_by_id(user_id)
        user = await self.user_repo.update(user, {"image": image})
        await self.factory.commit()
        return user

    async def delete_account(self, user_id: UUID) -> int:
        """
        Removes the user and everything it owns in one catalog transaction.
        Objects are deleted afterwards on a best-effort basis; failures are
        logged and left for manual cleanup.

        Returns:
            number of objects that could not be deleted.
        """
        user = await self.get_user_by_id(user_id)
        file_repo = self.factory.get_repo_by_type(FileRecordRepository)

        records = await file_repo.list_all_for_user(user_id)
        storage_keys = [r.storage_key for r in records]

        async with self.factory.transaction():
            await self.factory.get_repo_by_type(FileShareRepository).delete_for_user(
                user_id, [r.id for r in records]
            )
            await self.factory.get_repo_by_type(UploadSessionRepository).delete_all_for_user(user_id)
            await self.factory.get_repo_by_type(ApiKeyRepository).delete_all_for_user(user_id)
            await file_repo.delete_all_for_user(user_id)
            await self.user_repo.delete(user)

        self.logger.info(f"Deleted account {user_id} with {len(storage_keys)} files")
        return await self._delete_objects(storage_keys)

    async def _delete_objects(self, keys: List[str]) -> int:
        if not keys or self.store is None:
            return 0
        semaphore = asyncio.Semaphore(self.settings.cleanup.delete_concurrency)

        async def _delete(key: str) -> None:
            async with semaphore:
                await self.store.delete(key)

        results = await asyncio.gather(*(_delete(k) for k in keys), return_exceptions=True)
        failures = 0
        for key, result in zip(keys, results):
            if isinstance(result, Exception):
                failures += 1
                self.logger.error(f"Account deletion left object {key} behind: {result!r}")
            elif isinstance(result, BaseException):
                raise result
        return failures
