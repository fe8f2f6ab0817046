from datetime import datetime
from typing import Optional
from urllib.parse import urlparse
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_DATA_URL_LENGTH = 5_000_000
MAX_IMAGE_URL_LENGTH = 2048


class UserCreate(BaseModel):
    email: str
    name: Optional[str] = None
    image: Optional[str] = None


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: Optional[str] = None
    image: Optional[str] = None
    created_at: datetime


class ProfilePictureUpdate(BaseModel):
    """An empty or missing image clears the picture."""
    image: Optional[str] = Field(default=None)

    @field_validator("image")
    @classmethod
    def validate_image(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        if value.startswith("data:image/"):
            if len(value) > MAX_DATA_URL_LENGTH:
                raise ValueError("Data URL is too large")
            return value
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("Invalid image URL or data URL format")
        if len(value) > MAX_IMAGE_URL_LENGTH:
            raise ValueError("Image URL is too long")
        return value
