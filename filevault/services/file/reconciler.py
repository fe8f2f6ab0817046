import asyncio
from datetime import datetime
from typing import Optional

from filevault.core.exceptions import (
    FileExpiredException,
    FileMissingInStorageException,
    ObjectNotFoundException,
    StoreUnavailableException,
)
from filevault.infra.db.repository_factory import RepositoryFactory
from filevault.infra.storage.object_store import ObjectStore
from filevault.models._model_utils.datetime import utcnow
from filevault.models.files.file_record import FileRecord
from filevault.repo.crud.file.file_record_repo import FileRecordRepository
from filevault.repo.crud.file.file_share_repo import FileShareRepository
from filevault.repo.crud.file.upload_session_repo import UploadSessionRepository
from filevault.schemas.file.cleanup_schemas import CleanupSummary
from filevault.schemas.file.storage_schemas import ObjectData, ObjectHead
from filevault.services._base_service import BaseService


class ExpiryReconciler(BaseService):
    """
    Keeps the catalog and the object store consistent.

    The lazy path runs inline on every read or delete: expired rows and rows
    whose object has disappeared are soft-deleted and committed before the
    caller sees the error, so the next request gets a plain not-found.
    A transient store failure never mutates the catalog.

    The sweep is the bulk counterpart, triggered by the admin endpoint or the CLI.
    """

    def __init__(self, repo_factory: RepositoryFactory, store: ObjectStore):
        super().__init__()
        self.repo_factory = repo_factory
        self.store = store
        self.file_repo: FileRecordRepository = repo_factory.get_repo_by_type(FileRecordRepository)

    # ==========================
    # Lazy, read-path reconciliation
    # ==========================

    async def _tombstone(self, record: FileRecord) -> None:
        # committed here: the request will end with an error and roll back otherwise
        await self.file_repo.soft_delete(record)
        await self.repo_factory.commit()

    async def _best_effort_delete(self, key: str) -> bool:
        try:
            await self.store.delete(key)
            return True
        except StoreUnavailableException as e:
            self.logger.warning(f"[Reconciler] Could not delete object {key}, left for the sweep: {e}")
            return False

    async def check_expiry(self, record: FileRecord, now: Optional[datetime] = None) -> None:
        now = now or utcnow()
        if not record.is_expired(now):
            return
        self.logger.info(f"[Reconciler] File {record.id} expired at {record.expires_at}, removing")
        await self._tombstone(record)
        await self._best_effort_delete(record.storage_key)
        raise FileExpiredException()

    async def _heal_drift(self, record: FileRecord) -> None:
        self.logger.warning(
            f"[Reconciler] Drift: catalog row {record.id} has no object at {record.storage_key}, soft-deleting"
        )
        await self._tombstone(record)

    async def head(self, record: FileRecord) -> ObjectHead:
        try:
            return await self.store.head(record.storage_key)
        except ObjectNotFoundException:
            await self._heal_drift(record)
        raise FileMissingInStorageException()

    async def fetch(self, record: FileRecord) -> ObjectData:
        try:
            return await self.store.get(record.storage_key)
        except ObjectNotFoundException:
            await self._heal_drift(record)
        raise FileMissingInStorageException()

    # ==========================
    # Bulk sweep
    # ==========================

    async def run_cleanup(self) -> CleanupSummary:
        now = utcnow()
        summary = CleanupSummary()

        expired = await self.file_repo.find_expired(now)
        summary.processed_count = len(expired)
        self.logger.info(f"[Cleanup] Found {len(expired)} expired files")

        if expired:
            semaphore = asyncio.Semaphore(self.settings.cleanup.delete_concurrency)

            async def _delete(record: FileRecord) -> None:
                async with semaphore:
                    await self.store.delete(record.storage_key)

            results = await asyncio.gather(*(_delete(r) for r in expired), return_exceptions=True)
            for record, result in zip(expired, results):
                if isinstance(result, BaseException):
                    summary.error_count += 1
                    self.logger.error(f"[Cleanup] Failed to delete object {record.storage_key}: {result!r}")
                else:
                    summary.deleted_count += 1

            # the catalog is authoritative, flag every matched row whatever the store said
            await self.file_repo.soft_delete_by_ids([r.id for r in expired])

        session_repo = self.repo_factory.get_repo_by_type(UploadSessionRepository)
        share_repo = self.repo_factory.get_repo_by_type(FileShareRepository)
        summary.purged_sessions = await session_repo.purge_stale(now)
        summary.purged_shares = await share_repo.purge_expired(now)

        await self.repo_factory.commit()
        self.logger.info(
            f"[Cleanup] Done: processed={summary.processed_count} deleted={summary.deleted_count} "
            f"errors={summary.error_count} sessions={summary.purged_sessions} shares={summary.purged_shares}"
        )
        return summary
