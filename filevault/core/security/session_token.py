# filevault/core/security/session_token.py
#
# Session cookies are issued by the external sign-in provider (OAuth login is
# not handled here). This module only verifies them with the shared secret.

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from jwt import ExpiredSignatureError, InvalidTokenError

from filevault.config.settings import settings
from filevault.core.exceptions import UnauthenticatedException

ALGORITHM = settings.security_settings.session_algorithm or "HS256"
AUDIENCE = settings.security_settings.session_audience or None


def decode_session_token(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            settings.security_settings.session_secret,
            algorithms=[ALGORITHM],
            audience=AUDIENCE,
            options={"require": ["exp"], "verify_aud": AUDIENCE is not None},
        )
    except ExpiredSignatureError:
        raise UnauthenticatedException(message="Session expired")
    except InvalidTokenError:
        raise UnauthenticatedException(message="Invalid session")


def create_session_token(
        email: str,
        user_id: Optional[str] = None,
        name: Optional[str] = None,
        expires_delta: timedelta = timedelta(days=30),
) -> str:
    """
    Mint a session token the way the sign-in provider does.
    Used by local tooling and tests.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "email": email,
        "iat": now,
        "exp": now + expires_delta,
    }
    if user_id:
        payload["sub"] = user_id
    if name:
        payload["name"] = name
    if AUDIENCE:
        payload["aud"] = AUDIENCE
    return jwt.encode(payload, settings.security_settings.session_secret, algorithm=ALGORITHM)
