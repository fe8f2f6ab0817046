# filevault/infra/db/repository_factory.py
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional, Type, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from filevault.repo.crud.common.base_repo import BaseRepository

# repositories register themselves on import
from filevault.repo.crud.file import file_record_repo, file_share_repo, upload_session_repo  # noqa: F401
from filevault.repo.crud.users import api_key_repo, user_repo  # noqa: F401

RepoType = TypeVar("RepoType", bound=BaseRepository)


class RepositoryNotFoundError(Exception):
    pass


class RepositoryFactory:
    """
    Builds and caches repository instances that share one AsyncSession,
    and exposes the session's transaction controls to the service layer.
    """

    def __init__(self, db: AsyncSession, *, context: Optional[dict] = None):
        self._db = db
        self.context = context or {}
        self._registry: Dict[type, BaseRepository] = {}

    def get_repo_by_type(self, repo_type: Type[RepoType]) -> RepoType:
        for repo in self._registry.values():
            if isinstance(repo, repo_type):
                return repo

        for cls in BaseRepository.registry.values():
            if issubclass(cls, repo_type):
                instance = cls(self._db, context=self.context)
                self._registry[cls] = instance
                return instance

        raise RepositoryNotFoundError(f"Repository of type '{repo_type.__name__}' not found.")

    # ==========
    # Session controls
    # ==========
    async def commit(self): await self._db.commit()
    async def rollback(self): await self._db.rollback()
    def get_session(self) -> AsyncSession: return self._db

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[None, None]:
        """Commit on success, roll back and re-raise on failure."""
        try:
            yield
            await self.commit()
        except Exception:
            await self.rollback()
            raise
