import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional
from uuid import UUID

from filevault.core.exceptions import FileNotFoundException
from filevault.infra.db.repository_factory import RepositoryFactory
from filevault.models._model_utils.datetime import utcnow
from filevault.models.files.file_record import FileRecord
from filevault.repo.crud.file.file_record_repo import FileRecordRepository
from filevault.services._base_service import BaseService

_UUID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


def is_uuid(identifier: str) -> bool:
    return bool(_UUID_PATTERN.match(identifier))


class ResolutionStep(str, Enum):
    BY_ID = "by_id"
    BY_STORAGE_KEY = "by_storage_key"
    BY_ORIGINAL_NAME = "by_original_name"


@dataclass
class ResolutionResult:
    record: Optional[FileRecord] = None
    step: Optional[ResolutionStep] = None
    # the id matched a live, unexpired record of another user
    foreign_match: bool = False


class IdentifierResolver(BaseService):
    """
    Turns a user supplied identifier into one live, owned FileRecord.

    Attempts run in a fixed order and the first owned match wins:
    id (only for UUID shaped input), storage key, then original name.
    Matching is case-sensitive. Ownership is checked at every step.
    """

    def __init__(self, repo_factory: RepositoryFactory):
        super().__init__()
        self.file_repo: FileRecordRepository = repo_factory.get_repo_by_type(FileRecordRepository)

    def _steps(self, identifier: str) -> Iterator[ResolutionStep]:
        if is_uuid(identifier):
            yield ResolutionStep.BY_ID
        yield ResolutionStep.BY_STORAGE_KEY
        yield ResolutionStep.BY_ORIGINAL_NAME

    async def _attempt(self, step: ResolutionStep, identifier: str, user_id: UUID) -> Optional[FileRecord]:
        if step is ResolutionStep.BY_ID:
            return await self.file_repo.get_by_id(UUID(identifier))
        if step is ResolutionStep.BY_STORAGE_KEY:
            return await self.file_repo.get_by_storage_key(identifier)
        return await self.file_repo.get_first_by_original_name(identifier, user_id)

    async def lookup(self, identifier: str, user_id: UUID) -> ResolutionResult:
        result = ResolutionResult()
        if not identifier:
            return result

        for step in self._steps(identifier):
            candidate = await self._attempt(step, identifier, user_id)
            if candidate is None:
                continue
            if candidate.user_id == user_id:
                result.record = candidate
                result.step = step
                result.foreign_match = False
                self.logger.debug(f"Resolved identifier via {step.value}: {candidate.id}")
                return result
            if step is ResolutionStep.BY_ID and not candidate.is_expired(utcnow()):
                result.foreign_match = True

        return result

    async def resolve(self, identifier: str, user_id: UUID) -> FileRecord:
        result = await self.lookup(identifier, user_id)
        if result.record is None:
            raise FileNotFoundException()
        return result.record

    async def resolve_tombstone(self, identifier: str, user_id: UUID) -> Optional[FileRecord]:
        """Soft-deleted record of this user matching the identifier, if any."""
        if not identifier:
            return None
        return await self.file_repo.get_deleted_owned(
            user_id,
            record_id=UUID(identifier) if is_uuid(identifier) else None,
            storage_key=identifier,
            original_name=identifier,
        )
