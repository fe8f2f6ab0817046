from typing import Optional

from sqlalchemy import Text
from sqlmodel import Field

from filevault.models.base.base_model import IdMixin, TimestampMixin


class User(IdMixin, TimestampMixin, table=True):
    """
    Identity record. Created on first external sign-in, never soft-deleted:
    account deletion removes the row together with everything it owns.
    """
    __tablename__ = "users"

    email: str = Field(..., unique=True, index=True, max_length=255)
    name: Optional[str] = Field(default=None, max_length=255)
    # profile picture: http(s) URL or an inline data URL
    image: Optional[str] = Field(default=None, sa_type=Text)
