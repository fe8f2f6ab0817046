from typing import List, Optional
from uuid import UUID

from filevault.core.exceptions import (
    InvalidKeyNameException,
    KeyNameTooLongException,
    MaxApiKeysReachedException,
    NotFoundException,
)
from filevault.core.security.api_key import (
    decrypt_api_key,
    encrypt_api_key,
    generate_api_key,
    hash_api_key,
)
from filevault.infra.db.repository_factory import RepositoryFactory
from filevault.models._model_utils.datetime import utcnow
from filevault.models.users.api_key import ApiKey
from filevault.repo.crud.users.api_key_repo import ApiKeyRepository
from filevault.schemas.users.api_key_schemas import ApiKeyRead
from filevault.services._base_service import BaseService

MAX_KEY_NAME_LENGTH = 100


class ApiKeyService(BaseService):
    def __init__(self, repo_factory: RepositoryFactory):
        super().__init__()
        self.factory = repo_factory
        self.api_key_repo: ApiKeyRepository = repo_factory.get_repo_by_type(ApiKeyRepository)

    @staticmethod
    def _to_read(api_key: ApiKey, raw_key: Optional[str] = None) -> ApiKeyRead:
        return ApiKeyRead(
            id=api_key.id,
            name=api_key.name,
            key=raw_key,
            prefix=api_key.prefix,
            created_at=api_key.created_at,
            last_used_at=api_key.last_used_at,
        )

    async def list_keys(self, user_id: UUID) -> List[ApiKeyRead]:
        """Active keys with the raw value recovered from the encrypted copy."""
        keys = await self.api_key_repo.list_active_for_user(user_id)
        result = []
        for api_key in keys:
            raw_key = decrypt_api_key(api_key.encrypted_key)
            if raw_key is None:
                self.logger.warning(f"API key {api_key.id} cannot be decrypted with the current encryption key")
            result.append(self._to_read(api_key, raw_key))
        return result

    async def create_key(self, user_id: UUID, name: Optional[str]) -> ApiKeyRead:
        if not isinstance(name, str) or not name.strip():
            raise InvalidKeyNameException(message="API key name is required")
        name = name.strip()
        if len(name) > MAX_KEY_NAME_LENGTH:
            raise KeyNameTooLongException(
                message=f"API key name must be at most {MAX_KEY_NAME_LENGTH} characters"
            )

        limit = self.settings.security_settings.max_api_keys
        if await self.api_key_repo.count_active_for_user(user_id) >= limit:
            raise MaxApiKeysReachedException(limit)

        raw_key, display_prefix = generate_api_key()
        api_key = await self.api_key_repo.create({
            "user_id": user_id,
            "name": name,
            "hashed_key": hash_api_key(raw_key),
            "encrypted_key": encrypt_api_key(raw_key),
            "prefix": display_prefix,
        })
        await self.factory.commit()
        self.logger.info(f"Created API key {api_key.id} for user {user_id}")
        return self._to_read(api_key, raw_key)

    async def revoke_key(self, user_id: UUID, key_id: UUID) -> None:
        api_key = await self.api_key_repo.get_active_owned(key_id, user_id)
        if api_key is None:
            raise NotFoundException(message="API key not found")
        await self.api_key_repo.revoke(api_key, utcnow())
        await self.factory.commit()
        self.logger.info(f"Revoked API key {key_id}")
