from fastapi import Depends

from filevault.api.dependencies.service_getters.common_service_getter import get_object_store
from filevault.infra.db.get_repo_factory import RepositoryFactory, get_repository_factory
from filevault.infra.storage.object_store import ObjectStore
from filevault.services.users.api_key_service import ApiKeyService
from filevault.services.users.user_service import UserService


def get_user_service(
    repo_factory: RepositoryFactory = Depends(get_repository_factory),
    store: ObjectStore = Depends(get_object_store),
) -> UserService:
    return UserService(repo_factory, store=store)


def get_api_key_service(
    repo_factory: RepositoryFactory = Depends(get_repository_factory),
) -> ApiKeyService:
    return ApiKeyService(repo_factory)
