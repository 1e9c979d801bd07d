"""Snapshot and pagination models."""

from typing import Any
from typing import Generic
from typing import Literal
from typing import NamedTuple
from typing import TypeVar

from pydantic import BaseModel
from pydantic import Field

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
DEFAULT_SORT_BY = "created_at"
DEFAULT_SORT_ORDER = "desc"


class CacheMetrics(BaseModel):
    """Counters of a cache instance at a point in time."""

    hits: int = 0
    misses: int = 0
    hit_rate: float = 0.0
    total_size: int = 0
    entry_count: int = 0
    evictions: int = 0
    average_access_time: float = Field(
        default=0.0, description="Mean duration of a get() call in seconds"
    )


class TopKey(BaseModel):
    key: str
    access_count: int
    size: int


class CacheStats(BaseModel):
    """Introspection data of a cache instance."""

    size: int
    memory_usage: int
    top_keys: list[TopKey]
    tag_distribution: dict[str, int]


class PaginationParams(BaseModel):
    """Pagination and sorting parameters of a list request.

    ``sort_order`` is kept as a plain string so that values coming from
    outside can be checked with ``validate_params`` instead of failing here.
    """

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    cursor: str | None = None
    sort_by: str = DEFAULT_SORT_BY
    sort_order: str = DEFAULT_SORT_ORDER


class PageInfo(BaseModel):
    """Offset pagination descriptor.

    The cursors are page aliases: they encode ``(page +/- 1, limit)`` and are
    not stable when rows are inserted concurrently.
    """

    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool
    next_cursor: str | None = None
    prev_cursor: str | None = None


class PaginationResult(BaseModel, Generic[T]):
    data: list[T]
    pagination: PageInfo


class CursorPageInfo(BaseModel):
    """Cursor pagination descriptor; cursors point at concrete rows."""

    cursor: str | None = None
    limit: int
    has_next: bool
    has_prev: bool
    next_cursor: str | None = None
    prev_cursor: str | None = None


class CursorPaginationResult(BaseModel, Generic[T]):
    data: list[T]
    pagination: CursorPageInfo


class DecodedCursor(BaseModel):
    id: int | float | str | None
    timestamp: str | None = None


class ValidationResult(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)


class CursorFilter(BaseModel):
    field: str
    operator: Literal["gt", "lt"]
    value: str


class CursorQuery(BaseModel):
    """Storage-agnostic description of a cursor page fetch.

    ``limit`` is the number of rows to fetch, one more than the page size.
    """

    filter: CursorFilter | None = None
    order_by: str
    ascending: bool
    limit: int


class OffsetQuery(BaseModel):
    offset: int
    limit: int
    order_by: str
    ascending: bool

    @property
    def end(self) -> int:
        """Inclusive index of the last row of the page."""
        return self.offset + self.limit - 1


class CursorBatch(NamedTuple):
    data: list[Any]
    has_more: bool
