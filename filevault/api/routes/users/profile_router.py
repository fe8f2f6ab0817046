from fastapi import APIRouter, Depends

from filevault.api.dependencies.permissions import require_session_user
from filevault.api.dependencies.service_getters.users_service_getter import get_user_service
from filevault.core.api_response import StandardResponse, response_success
from filevault.schemas.users.user_schemas import ProfilePictureUpdate, UserRead
from filevault.schemas.users.user_context import UserContext
from filevault.services.users.user_service import UserService

router = APIRouter()


@router.put("/picture", response_model=StandardResponse[UserRead], summary="Set or clear the profile picture")
async def update_profile_picture(
    payload: ProfilePictureUpdate,
    current_user: UserContext = Depends(require_session_user),
    service: UserService = Depends(get_user_service),
):
    user = await service.update_profile_picture(current_user.id, payload.image)
    return response_success(data=UserRead.model_validate(user), message="Profile picture updated successfully")


@router.delete("", response_model=StandardResponse[None], summary="Delete my account and all my files")
async def delete_account(
    current_user: UserContext = Depends(require_session_user),
    service: UserService = Depends(get_user_service),
):
    await service.delete_account(current_user.id)
    return response_success(message="Account deleted successfully")
