import json
from typing import AsyncIterator, Dict, Optional
from urllib.parse import quote
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.requests import ClientDisconnect

from filevault.core.exceptions import StoreUnavailableException, UploadFailedException, UploadRejectedException
from filevault.core.response_codes import ResponseCodeEnum
from filevault.enums.file_enums import UploadDuration
from filevault.infra.db.repository_factory import RepositoryFactory
from filevault.infra.storage.object_store import ObjectStore
from filevault.models._model_utils.datetime import utcnow
from filevault.repo.crud.file.file_record_repo import FileRecordRepository
from filevault.schemas.file.file_record_schemas import FileRecordCreate, FileRecordRead
from filevault.schemas.file.upload_schemas import UploadMetadata
from filevault.services._base_service import BaseService
from filevault.services.file.multipart_reader import (
    MultipartUploadReader,
    ReceivedUpload,
    parse_multipart_boundary,
)
from filevault.utils.filename_utils import build_storage_key


def parse_metadata(raw: Optional[str]) -> Optional[Dict]:
    if raw is None or raw.strip() == "":
        return None
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        raise UploadRejectedException(ResponseCodeEnum.INVALID_METADATA, "Metadata must be valid JSON")
    if not isinstance(payload, dict):
        raise UploadRejectedException(ResponseCodeEnum.INVALID_METADATA, "Metadata must be a JSON object")
    try:
        return UploadMetadata.model_validate(payload).model_dump(exclude_none=True)
    except ValidationError:
        raise UploadRejectedException(
            ResponseCodeEnum.INVALID_METADATA,
            "Metadata 'description' must be a string and 'tags' a list of strings",
        )


def parse_duration(raw: Optional[str]) -> UploadDuration:
    try:
        return UploadDuration.parse(raw)
    except ValueError:
        allowed = ", ".join(d.value for d in UploadDuration)
        raise UploadRejectedException(
            ResponseCodeEnum.INVALID_UPLOAD_OPTIONS,
            f"Invalid duration '{raw}', expected one of: {allowed}",
        )


class IngestionService(BaseService):
    """
    Upload pipeline: receive -> validate -> write object -> insert catalog row.

    The object write always precedes the catalog insert. A failed write leaves
    nothing behind; a failed insert leaves an orphaned object which is logged
    and removed on a best-effort basis.
    """

    def __init__(self, repo_factory: RepositoryFactory, store: ObjectStore):
        super().__init__()
        self.repo_factory = repo_factory
        self.store = store
        self.file_repo: FileRecordRepository = repo_factory.get_repo_by_type(FileRecordRepository)

    def _new_reader(self, content_type: Optional[str]) -> MultipartUploadReader:
        upload_cfg = self.settings.upload
        return MultipartUploadReader(
            parse_multipart_boundary(content_type),
            allowed_extensions=set(upload_cfg.allowed_extensions),
            max_file_size=upload_cfg.max_file_size,
            max_field_size=upload_cfg.max_field_size,
            spool_max_memory=upload_cfg.spool_max_memory,
        )

    async def ingest(
            self,
            content_type: Optional[str],
            body: AsyncIterator[bytes],
            user_id: UUID,
    ) -> FileRecordRead:
        reader = self._new_reader(content_type)
        try:
            received = await reader.read(body)
        except ClientDisconnect:
            self.logger.info(f"Upload aborted by client (user {user_id})")
            raise

        try:
            return await self._store_and_catalog(received, user_id)
        finally:
            received.close()

    async def _store_and_catalog(self, received: ReceivedUpload, user_id: UUID) -> FileRecordRead:
        upload = received.file
        if upload is None or upload.size == 0:
            raise UploadRejectedException(ResponseCodeEnum.NO_FILE)

        metadata = parse_metadata(received.fields.get("metadata"))
        duration = parse_duration(received.fields.get("duration"))

        uploaded_at = utcnow()
        expires_at = duration.expires_at(uploaded_at)
        storage_key = build_storage_key(upload.filename)
        attributes = {
            "original-name": quote(upload.filename, safe=""),
            "uploaded-at": uploaded_at.isoformat(),
            "expires-at": expires_at.isoformat() if expires_at else "never",
            "duration": duration.value,
            "user-id": str(user_id),
        }

        try:
            await self.store.put(storage_key, upload.spool, upload.content_type, upload.size, attributes)
        except StoreUnavailableException:
            raise UploadFailedException(ResponseCodeEnum.UPLOAD_ERROR)

        try:
            record = await self.file_repo.create(FileRecordCreate(
                original_name=upload.filename,
                storage_key=storage_key,
                size=upload.size,
                mime_type=upload.content_type,
                extension=upload.extension,
                uploaded_at=uploaded_at,
                expires_at=expires_at,
                duration=duration,
                user_metadata=metadata,
                user_id=user_id,
            ))
            await self.repo_factory.commit()
        except SQLAlchemyError as e:
            await self.repo_factory.rollback()
            self.logger.error(f"Catalog insert failed, orphaned object {storage_key}: {e}")
            try:
                await self.store.delete(storage_key)
            except StoreUnavailableException as cleanup_error:
                self.logger.error(f"Could not remove orphaned object {storage_key}: {cleanup_error}")
            raise UploadFailedException(ResponseCodeEnum.METADATA_ERROR)

        self.logger.info(f"Stored {storage_key} ({upload.size} bytes, {duration.value}) for user {user_id}")
        return FileRecordRead.from_record(record, self.api_base_url)
