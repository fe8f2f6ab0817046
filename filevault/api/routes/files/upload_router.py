from fastapi import APIRouter, Depends, Query, Request, status

from filevault.api.dependencies.permissions import get_current_user
from filevault.api.dependencies.service_getters.common_service_getter import (
    get_file_record_service,
    get_ingestion_service,
)
from filevault.api.routes.files.file_router import list_files_response
from filevault.core.api_response import StandardResponse, response_success
from filevault.core.response_codes import ResponseCodeEnum
from filevault.schemas.file.file_record_schemas import FileRecordRead
from filevault.schemas.users.user_context import UserContext
from filevault.services.file.file_record_service import DEFAULT_PAGE_SIZE, FileRecordService
from filevault.services.file.ingestion_service import IngestionService

router = APIRouter()


@router.post(
    "",
    response_model=StandardResponse[FileRecordRead],
    status_code=status.HTTP_201_CREATED,
    summary="Upload one file",
)
async def upload_file(
    request: Request,
    current_user: UserContext = Depends(get_current_user),
    service: IngestionService = Depends(get_ingestion_service),
):
    """
    multipart/form-data with a `file` part and optional `duration`
    (1h, 24h, 7d, unlimited) and `metadata` (JSON object) fields.
    The body is streamed; it is never read into memory as a whole.
    """
    record = await service.ingest(
        request.headers.get("content-type"),
        request.stream(),
        current_user.id,
    )
    return response_success(
        data=record,
        code=ResponseCodeEnum.CREATED,
        message="File uploaded successfully",
        http_status=status.HTTP_201_CREATED,
    )


@router.get("", summary="List files (alias of GET /files)")
async def list_uploads(
    page: int = Query(1, description="Values below 1 are treated as 1"),
    limit: int = Query(DEFAULT_PAGE_SIZE),
    current_user: UserContext = Depends(get_current_user),
    service: FileRecordService = Depends(get_file_record_service),
):
    return await list_files_response(service, current_user, page, limit)
