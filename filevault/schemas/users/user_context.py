from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class AuthMethod(str, Enum):
    API_KEY = "api_key"
    SESSION = "session"


class UserContext(BaseModel):
    """Identity attached to a request by the auth gate."""
    id: UUID
    email: Optional[str] = None
    auth_method: AuthMethod
    api_key_id: Optional[UUID] = None
