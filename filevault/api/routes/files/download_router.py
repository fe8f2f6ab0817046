from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse, Response

from filevault.api.dependencies.permissions import get_current_user, require_session_user
from filevault.api.dependencies.service_getters.common_service_getter import get_file_record_service
from filevault.schemas.users.user_context import UserContext
from filevault.services.file.file_record_service import FileRecordService
from filevault.utils.filename_utils import content_disposition

router = APIRouter()

NO_CACHE_HEADERS = {
    "Cache-Control": "private, no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


@router.get("/download/{identifier:path}", summary="Download the file bytes")
async def download_file(
    identifier: str,
    current_user: UserContext = Depends(get_current_user),
    service: FileRecordService = Depends(get_file_record_service),
):
    payload = await service.download(identifier, current_user.id)
    headers = {
        "Content-Disposition": content_disposition(payload.filename),
        **NO_CACHE_HEADERS,
    }
    return Response(content=payload.body, media_type=payload.content_type, headers=headers)


@router.get("/preview/{identifier:path}", summary="Redirect to a viewable URL of the file")
async def preview_file(
    identifier: str,
    current_user: UserContext = Depends(require_session_user),
    service: FileRecordService = Depends(get_file_record_service),
):
    url = await service.preview_url(identifier, current_user.id)
    return RedirectResponse(url=url, status_code=status.HTTP_307_TEMPORARY_REDIRECT, headers=NO_CACHE_HEADERS)
