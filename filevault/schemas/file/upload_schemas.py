from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class UploadMetadata(BaseModel):
    """Optional JSON object sent in the `metadata` form field."""
    model_config = ConfigDict(extra="allow")

    description: Optional[str] = None
    tags: Optional[List[str]] = None
