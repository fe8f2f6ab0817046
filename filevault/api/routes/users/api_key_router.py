from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status

from filevault.api.dependencies.permissions import require_session_user
from filevault.api.dependencies.service_getters.users_service_getter import get_api_key_service
from filevault.core.api_response import StandardResponse, response_success
from filevault.core.response_codes import ResponseCodeEnum
from filevault.schemas.users.api_key_schemas import ApiKeyCreate, ApiKeyRead
from filevault.schemas.users.user_context import UserContext
from filevault.services.users.api_key_service import ApiKeyService

router = APIRouter()


@router.get("", response_model=StandardResponse[List[ApiKeyRead]], summary="List my API keys")
async def list_api_keys(
    current_user: UserContext = Depends(require_session_user),
    service: ApiKeyService = Depends(get_api_key_service),
):
    keys = await service.list_keys(current_user.id)
    return response_success(data=keys)


@router.post(
    "",
    response_model=StandardResponse[ApiKeyRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create an API key",
)
async def create_api_key(
    payload: ApiKeyCreate,
    current_user: UserContext = Depends(require_session_user),
    service: ApiKeyService = Depends(get_api_key_service),
):
    api_key = await service.create_key(current_user.id, payload.name)
    return response_success(
        data=api_key,
        code=ResponseCodeEnum.CREATED,
        message="API key created successfully. Save this key securely.",
        http_status=status.HTTP_201_CREATED,
    )


@router.delete("/{key_id}", response_model=StandardResponse[None], summary="Revoke an API key")
async def revoke_api_key(
    key_id: UUID,
    current_user: UserContext = Depends(require_session_user),
    service: ApiKeyService = Depends(get_api_key_service),
):
    await service.revoke_key(current_user.id, key_id)
    return response_success(message="API key revoked successfully")
