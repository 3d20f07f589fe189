import math
from typing import Generic, TypeVar, Optional
from pydantic import BaseModel

T = TypeVar("T")


class StandardResponse(BaseModel, Generic[T]):
    """Envelope returned by every workout tracking endpoint."""
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class ErrorResponse(BaseModel):
    success: bool = False
    detail: str
    field: Optional[str] = None
    request_id: Optional[str] = None


def pagination_meta(page: int, limit: int, total: int, *, total_key: str) -> dict:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "current_page": page,
        "total_pages": total_pages,
        total_key: total,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }
