from typing import List

from fastapi import APIRouter, Depends, Query

from filevault.api.dependencies.permissions import get_current_user
from filevault.api.dependencies.service_getters.common_service_getter import get_file_record_service
from filevault.core.api_response import PaginationMeta, StandardResponse, response_success
from filevault.schemas.file.file_record_schemas import FileRecordRead
from filevault.schemas.users.user_context import UserContext
from filevault.services.file.file_record_service import DEFAULT_PAGE_SIZE, FileRecordService

router = APIRouter()


async def list_files_response(service: FileRecordService, current_user: UserContext, page: int, limit: int):
    result = await service.list_user_files(current_user.id, page=page, limit=limit)
    return response_success(
        data=result.items,
        pagination=PaginationMeta(
            page=result.page,
            limit=result.limit,
            total=result.total,
            total_pages=result.total_pages,
        ),
    )


@router.get(
    "",
    response_model=StandardResponse[List[FileRecordRead]],
    summary="List the caller's live files, newest first",
)
async def list_files(
    page: int = Query(1, description="Values below 1 are treated as 1"),
    limit: int = Query(DEFAULT_PAGE_SIZE, description="Clamped to 1..100"),
    current_user: UserContext = Depends(get_current_user),
    service: FileRecordService = Depends(get_file_record_service),
):
    return await list_files_response(service, current_user, page, limit)


@router.get(
    "/{identifier:path}",
    response_model=StandardResponse[FileRecordRead],
    summary="File metadata by id, storage key or original name",
)
async def get_file(
    identifier: str,
    current_user: UserContext = Depends(get_current_user),
    service: FileRecordService = Depends(get_file_record_service),
):
    record = await service.get_file(identifier, current_user.id)
    return response_success(data=record)


@router.delete(
    "/{identifier:path}",
    response_model=StandardResponse[FileRecordRead],
    summary="Delete a file",
)
async def delete_file(
    identifier: str,
    current_user: UserContext = Depends(get_current_user),
    service: FileRecordService = Depends(get_file_record_service),
):
    record = await service.delete_file(identifier, current_user.id)
    return response_success(data=record, message="File deleted successfully")
