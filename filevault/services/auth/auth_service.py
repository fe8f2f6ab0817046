import asyncio
from typing import Optional, Set
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from filevault.core.exceptions import NotFoundException, UnauthenticatedException
from filevault.core.logger import get_logger
from filevault.core.security.api_key import looks_like_api_key, verify_api_key
from filevault.core.security.session_token import decode_session_token
from filevault.db.session import AsyncSessionLocal
from filevault.infra.db.repository_factory import RepositoryFactory
from filevault.models._model_utils.datetime import utcnow
from filevault.repo.crud.users.api_key_repo import ApiKeyRepository
from filevault.schemas.users.user_context import AuthMethod, UserContext
from filevault.services._base_service import BaseService
from filevault.services.users.user_service import UserService

logger = get_logger(__name__)

# strong references to in-flight background updates
_background_tasks: Set[asyncio.Task] = set()


async def _touch_last_used(key_id: UUID) -> None:
    """Runs detached from the request, on its own session."""
    async with AsyncSessionLocal() as session:
        try:
            repo = RepositoryFactory(session).get_repo_by_type(ApiKeyRepository)
            await repo.touch_last_used(key_id, utcnow())
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Failed to update last_used_at of API key {key_id}: {e}")


def schedule_last_used_update(key_id: UUID) -> asyncio.Task:
    task = asyncio.create_task(_touch_last_used(key_id))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task


async def wait_for_background_tasks() -> None:
    """Drain pending last-used updates, used on shutdown and in tests."""
    loop = asyncio.get_running_loop()
    pending = [t for t in _background_tasks if t.get_loop() is loop]
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)


class AuthService(BaseService):
    """
    Turns request credentials into a UserContext.

    A bearer token shaped like an API key is checked against every active
    key and never falls back to the session cookie. Otherwise the session
    cookie is verified.
    """

    def __init__(self, repo_factory: RepositoryFactory):
        super().__init__()
        self.factory = repo_factory
        self.api_key_repo: ApiKeyRepository = repo_factory.get_repo_by_type(ApiKeyRepository)
        self.user_service = UserService(repo_factory)

    async def authenticate(
            self,
            bearer_token: Optional[str],
            session_token: Optional[str],
            allow_api_key: bool = True,
    ) -> UserContext:
        if bearer_token and looks_like_api_key(bearer_token):
            if not allow_api_key:
                raise UnauthenticatedException(message="This endpoint requires a signed-in session")
            return await self.authenticate_api_key(bearer_token)
        if session_token:
            return await self.authenticate_session(session_token)
        raise UnauthenticatedException(message="Authentication required")

    async def authenticate_api_key(self, raw_key: str) -> UserContext:
        for api_key in await self.api_key_repo.list_active():
            if await run_in_threadpool(verify_api_key, raw_key, api_key.hashed_key):
                schedule_last_used_update(api_key.id)
                return UserContext(id=api_key.user_id, auth_method=AuthMethod.API_KEY, api_key_id=api_key.id)
        self.logger.info("Rejected unknown or revoked API key")
        raise UnauthenticatedException(message="Invalid API key")

    async def authenticate_session(self, token: str) -> UserContext:
        payload = decode_session_token(token)
        email = payload.get("email")
        if email:
            user = await self.user_service.get_or_create_by_email(email, payload.get("name"))
            return UserContext(id=user.id, email=user.email, auth_method=AuthMethod.SESSION)

        subject = payload.get("sub")
        try:
            user = await self.user_service.get_user_by_id(UUID(str(subject)))
        except (ValueError, NotFoundException):
            raise UnauthenticatedException(message="Session does not identify a user")
        return UserContext(id=user.id, email=user.email, auth_method=AuthMethod.SESSION)
