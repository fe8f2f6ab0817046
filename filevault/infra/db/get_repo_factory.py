from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from filevault.db.session import AsyncSessionLocal, get_session
from filevault.infra.db.repository_factory import RepositoryFactory


# --- FastAPI dependency ---
def get_repository_factory(
        session: AsyncSession = Depends(get_session),
) -> RepositoryFactory:
    return RepositoryFactory(db=session)


# --- for scripts, background tasks and the CLI ---
@asynccontextmanager
async def get_standalone_repository_factory(
        context: dict = None
) -> AsyncGenerator[RepositoryFactory, None]:
    """
    Session outside of any request. The caller controls commits.

    async with get_standalone_repository_factory() as repo_factory:
        ...
    """
    session = AsyncSessionLocal()
    try:
        yield RepositoryFactory(db=session, context=context or {})
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()
