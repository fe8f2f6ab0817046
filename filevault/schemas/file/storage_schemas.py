from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field


class ObjectHead(BaseModel):
    size: int
    content_type: str
    attributes: Dict[str, str] = Field(default_factory=dict)


class ObjectData(ObjectHead):
    body: bytes


class ObjectSummary(BaseModel):
    key: str
    size: int
    last_modified: Optional[datetime] = None
