from dataclasses import dataclass
from uuid import UUID

from filevault.core.exceptions import (
    AccessDeniedException,
    FileNotFoundException,
    PreviewNotSupportedException,
)
from filevault.infra.db.repository_factory import RepositoryFactory
from filevault.infra.storage.object_store import ObjectStore
from filevault.models._model_utils.datetime import utcnow
from filevault.models.files.file_record import FileRecord
from filevault.repo.crud.file.file_record_repo import FileRecordRepository
from filevault.schemas.file.file_record_schemas import FileListResult, FileRecordRead
from filevault.services._base_service import BaseService
from filevault.services.file.identifier_resolver import IdentifierResolver
from filevault.services.file.reconciler import ExpiryReconciler

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 10
DEFAULT_SORT = ["-uploaded_at", "-id"]


@dataclass
class DownloadPayload:
    filename: str
    content_type: str
    size: int
    body: bytes


def clamp_limit(limit) -> int:
    if limit is None:
        return DEFAULT_PAGE_SIZE
    return max(1, min(int(limit), MAX_PAGE_SIZE))


class FileRecordService(BaseService):
    """Read and delete operations on the caller's files."""

    def __init__(self, repo_factory: RepositoryFactory, store: ObjectStore):
        super().__init__()
        self.repo_factory = repo_factory
        self.store = store
        self.file_repo: FileRecordRepository = repo_factory.get_repo_by_type(FileRecordRepository)
        self.resolver = IdentifierResolver(repo_factory)
        self.reconciler = ExpiryReconciler(repo_factory, store)

    def _to_read(self, record: FileRecord) -> FileRecordRead:
        return FileRecordRead.from_record(record, self.api_base_url)

    async def _resolve_live(self, identifier: str, user_id: UUID) -> FileRecord:
        record = await self.resolver.resolve(identifier, user_id)
        await self.reconciler.check_expiry(record)
        return record

    # ==========================
    # Listing
    # ==========================

    async def list_user_files(self, user_id: UUID, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> FileListResult:
        """
        Live files of the user, newest first. Expired rows the sweep has not
        reached yet are filtered out. A page past the end is pulled back to
        the last page.
        """
        limit = clamp_limit(limit)
        page = max(1, page or 1)
        stmt = self.file_repo.live_for_user_stmt(user_id, utcnow())
        paged = await self.file_repo.get_paged_list(
            page=page,
            per_page=limit,
            sort_by=DEFAULT_SORT,
            stmt_in=stmt,
            clamp_page=True,
        )
        return FileListResult(
            items=[self._to_read(r) for r in paged.items],
            page=paged.page,
            limit=limit,
            total=paged.total,
            total_pages=paged.total_pages,
        )

    # ==========================
    # Single file
    # ==========================

    async def get_file(self, identifier: str, user_id: UUID) -> FileRecordRead:
        record = await self._resolve_live(identifier, user_id)
        await self.reconciler.head(record)
        return self._to_read(record)

    async def delete_file(self, identifier: str, user_id: UUID) -> FileRecordRead:
        """
        Removes the object, then soft-deletes the row. Deleting something that
        is already deleted succeeds again. A store failure aborts before the
        catalog is touched.
        """
        lookup = await self.resolver.lookup(identifier, user_id)
        if lookup.record is None:
            tombstone = await self.resolver.resolve_tombstone(identifier, user_id)
            if tombstone is None:
                raise FileNotFoundException()
            self.logger.debug(f"Delete of already deleted file {tombstone.id}")
            return self._to_read(tombstone)

        record = lookup.record
        await self.reconciler.check_expiry(record)

        await self.store.delete(record.storage_key)
        await self.file_repo.soft_delete(record)
        await self.repo_factory.commit()
        self.logger.info(f"Deleted file {record.id} for user {user_id}")
        return self._to_read(record)

    async def download(self, identifier: str, user_id: UUID) -> DownloadPayload:
        lookup = await self.resolver.lookup(identifier, user_id)
        if lookup.record is None:
            if lookup.foreign_match:
                self.logger.warning(f"User {user_id} requested a file owned by someone else: {identifier}")
                raise AccessDeniedException()
            raise FileNotFoundException()

        record = lookup.record
        await self.reconciler.check_expiry(record)
        data = await self.reconciler.fetch(record)
        return DownloadPayload(
            filename=record.original_name,
            content_type=data.content_type or record.mime_type or "application/octet-stream",
            size=data.size,
            body=data.body,
        )

    async def preview_url(self, identifier: str, user_id: UUID) -> str:
        record = await self._resolve_live(identifier, user_id)
        head = await self.reconciler.head(record)
        mime_type = (head.content_type or record.mime_type or "").split(";")[0].strip().lower()
        if mime_type not in self.settings.upload.previewable_mime_types:
            raise PreviewNotSupportedException(mime_type)
        return await self.store.signed_url(record.storage_key)
