from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ApiKeyCreate(BaseModel):
    """Request body; the name is validated in the service so the error codes stay stable."""
    name: Optional[str] = None


class ApiKeyRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    key: Optional[str] = None
    prefix: str
    created_at: datetime
    last_used_at: Optional[datetime] = None
