from fastapi import Depends

from filevault.infra.db.get_repo_factory import RepositoryFactory, get_repository_factory
from filevault.infra.storage.object_store import ObjectStore
from filevault.infra.storage.storage_factory import storage_factory
from filevault.services.auth.auth_service import AuthService
from filevault.services.file.file_record_service import FileRecordService
from filevault.services.file.ingestion_service import IngestionService
from filevault.services.file.reconciler import ExpiryReconciler


def get_object_store() -> ObjectStore:
    """Process-wide gateway; tests override this dependency with an in-memory driver."""
    return storage_factory.get_object_store()


def get_auth_service(
    repo_factory: RepositoryFactory = Depends(get_repository_factory),
) -> AuthService:
    return AuthService(repo_factory)


def get_file_record_service(
    repo_factory: RepositoryFactory = Depends(get_repository_factory),
    store: ObjectStore = Depends(get_object_store),
) -> FileRecordService:
    return FileRecordService(repo_factory, store)


def get_ingestion_service(
    repo_factory: RepositoryFactory = Depends(get_repository_factory),
    store: ObjectStore = Depends(get_object_store),
) -> IngestionService:
    return IngestionService(repo_factory, store)


def get_reconciler(
    repo_factory: RepositoryFactory = Depends(get_repository_factory),
    store: ObjectStore = Depends(get_object_store),
) -> ExpiryReconciler:
    return ExpiryReconciler(repo_factory, store)
