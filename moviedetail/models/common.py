from typing import Any, List, TypeVar, Generic, Optional
from pydantic import BaseModel, Field

DataT = TypeVar("DataT")

# ---------------------------------------------------------------------------
# Universal ID aliases used across the domain models
# ---------------------------------------------------------------------------
# The movie backend hands out numeric ids in some places and strings in
# others; the detail view treats both as opaque strings.
RecordID = str
CommentID = str
ExternalVideoID = str
ViewID = str

__all__ = [
    "ProblemDetail",
    "Pagination",
    "PaginatedResponse",
    "RecordID",
    "CommentID",
    "ExternalVideoID",
    "ViewID",
    "coerce_identifier",
]


def coerce_identifier(value: Any) -> Any:
    """Normalise numeric identifiers to their string form."""

    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return str(int(value)) if float(value).is_integer() else str(value)
    return value


class ProblemDetail(BaseModel):
    type: str = Field(default="about:blank")
    title: str
    status: int
    detail: Optional[str] = None
    instance: Optional[str] = None


class Pagination(BaseModel):
    currentPage: int
    pageSize: int
    totalItems: int
    totalPages: int
    hasNextPage: bool = False
    hasPreviousPage: bool = False


class PaginatedResponse(BaseModel, Generic[DataT]):
    data: List[DataT]
    pagination: Pagination
