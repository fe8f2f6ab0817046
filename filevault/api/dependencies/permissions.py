import hmac
from typing import Optional

from fastapi import Depends, Header, Request

from filevault.api.dependencies.service_getters.common_service_getter import get_auth_service
from filevault.config.settings import settings
from filevault.core.exceptions import UnauthenticatedException
from filevault.core.security.api_key import extract_bearer
from filevault.schemas.users.user_context import UserContext
from filevault.services.auth.auth_service import AuthService


def _session_cookie(request: Request) -> Optional[str]:
    return request.cookies.get(settings.security_settings.session_cookie_name)


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    auth_service: AuthService = Depends(get_auth_service),
) -> UserContext:
    """API key or browser session."""
    return await auth_service.authenticate(extract_bearer(authorization), _session_cookie(request))


async def require_session_user(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    auth_service: AuthService = Depends(get_auth_service),
) -> UserContext:
    """
    Account management (keys, profile) and preview are only available to a
    signed-in browser session; an API key is refused.
    """
    return await auth_service.authenticate(
        extract_bearer(authorization),
        _session_cookie(request),
        allow_api_key=False,
    )


def require_admin_secret(authorization: Optional[str] = Header(default=None)) -> None:
    """Static shared secret for the maintenance endpoints, compared in constant time."""
    expected = settings.security_settings.admin_api_key
    provided = extract_bearer(authorization)
    if not expected or not provided:
        raise UnauthenticatedException(message="Unauthorized")
    if not hmac.compare_digest(provided.encode(), expected.encode()):
        raise UnauthenticatedException(message="Unauthorized")
