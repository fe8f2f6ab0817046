from typing import Generic, List, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


# ==========================
# Generic page container
# ==========================
class PageResponse(BaseModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    total_pages: int
    per_page: int

    model_config = {
        "from_attributes": True,
        "arbitrary_types_allowed": True,
    }
