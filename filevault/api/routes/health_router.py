from fastapi import APIRouter

from filevault.core.api_response import response_success

router = APIRouter()


@router.get("/health", summary="Liveness probe")
async def health():
    return response_success(data={"status": "ok"})
