"""Offset and cursor pagination helpers.

All functions are pure. Offset results (``create_result``) carry cursors
that are only page aliases; use ``create_cursor_result`` together with
``build_cursor_query`` and ``process_cursor_results`` for cursors that stay
stable when rows are inserted ahead of them.
"""

import base64
import binascii
import json
import math
from collections.abc import Mapping
from collections.abc import Sequence
from datetime import datetime
from typing import Any
from typing import Optional
from typing import TypeVar
from urllib.parse import urlencode

from fastapi_pagecache.models import DEFAULT_LIMIT
from fastapi_pagecache.models import DEFAULT_PAGE
from fastapi_pagecache.models import DEFAULT_SORT_BY
from fastapi_pagecache.models import DEFAULT_SORT_ORDER
from fastapi_pagecache.models import CursorBatch
from fastapi_pagecache.models import CursorFilter
from fastapi_pagecache.models import CursorPageInfo
from fastapi_pagecache.models import CursorPaginationResult
from fastapi_pagecache.models import CursorQuery
from fastapi_pagecache.models import DecodedCursor
from fastapi_pagecache.models import OffsetQuery
from fastapi_pagecache.models import PageInfo
from fastapi_pagecache.models import PaginationParams
from fastapi_pagecache.models import PaginationResult
from fastapi_pagecache.models import ValidationResult

T = TypeVar("T")

MAX_LIMIT = 100
MAX_PAGE = 10000
SORT_ORDERS = ("asc", "desc")

OPTIMAL_PAGE_SIZES = {
    "inventory": 20,
    "users": 25,
    "categories": 50,
    "locations": 50,
    "audit_logs": 15,
    "projects": 20,
    "transactions": 30,
}


def _parse_int(raw: Optional[str], default: int) -> int:
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def parse_params(query: Mapping[str, str]) -> PaginationParams:
    """Build clamped pagination parameters from a query string mapping.

    ``page`` is at least 1 and ``limit`` is kept within ``[1, MAX_LIMIT]``.
    Missing or non-numeric values fall back to the defaults.
    """
    sort_order = (query.get("sortOrder") or query.get("sort_order") or "").lower()
    return PaginationParams(
        page=max(1, _parse_int(query.get("page"), DEFAULT_PAGE)),
        limit=min(MAX_LIMIT, max(1, _parse_int(query.get("limit"), DEFAULT_LIMIT))),
        cursor=query.get("cursor") or None,
        sort_by=query.get("sortBy") or query.get("sort_by") or DEFAULT_SORT_BY,
        sort_order=sort_order if sort_order in SORT_ORDERS else DEFAULT_SORT_ORDER,
    )


def create_result(
    data: Sequence[T], total: int, params: PaginationParams
) -> PaginationResult[T]:
    """Wrap one page of rows in an offset pagination envelope."""
    page = params.page
    limit = params.limit if params.limit > 0 else DEFAULT_LIMIT
    total_pages = math.ceil(total / limit)
    has_next = page < total_pages
    has_prev = page > 1

    return PaginationResult(
        data=list(data),
        pagination=PageInfo(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next=has_next,
            has_prev=has_prev,
            next_cursor=encode_cursor(page + 1, limit) if has_next else None,
            prev_cursor=encode_cursor(page - 1, limit) if has_prev else None,
        ),
    )


def create_cursor_result(
    data: Sequence[T],
    params: PaginationParams,
    has_more: bool = False,
    id_field: str = "id",
    timestamp_field: str = "created_at",
) -> CursorPaginationResult[T]:
    """Wrap one page of rows in a cursor pagination envelope.

    The next cursor points at the last row and the previous cursor at the
    first one, so both stay valid when rows are inserted elsewhere.
    """
    has_prev = params.cursor is not None
    next_cursor = None
    prev_cursor = None

    if data:
        if has_more:
            last = data[-1]
            next_cursor = encode_cursor(
                _field(last, id_field), _field(last, timestamp_field)
            )
        if has_prev:
            first = data[0]
            prev_cursor = encode_cursor(
                _field(first, id_field), _field(first, timestamp_field)
            )

    return CursorPaginationResult(
        data=list(data),
        pagination=CursorPageInfo(
            cursor=params.cursor,
            limit=params.limit,
            has_next=has_more,
            has_prev=has_prev,
            next_cursor=next_cursor,
            prev_cursor=prev_cursor,
        ),
    )


def encode_cursor(id: int | float | str | None, timestamp: Any = None) -> str:
    """Encode a resume point as base64 of ``{"id": ..., "timestamp": ...}``."""
    payload: dict[str, Any] = {"id": id}
    if isinstance(timestamp, datetime):
        payload["timestamp"] = timestamp.isoformat()
    elif timestamp is not None:
        payload["timestamp"] = str(timestamp)
    raw = json.dumps(payload, separators=(",", ":")).encode()
    return base64.b64encode(raw).decode("ascii")


def decode_cursor(cursor: str) -> Optional[DecodedCursor]:
    """Decode a cursor made by ``encode_cursor``.

    Returns None for anything malformed; callers should then start from the
    beginning.
    """
    try:
        raw = base64.b64decode(cursor, validate=True).decode("utf-8")
        return DecodedCursor.model_validate_json(raw)
    except (binascii.Error, ValueError):
        return None


def validate_params(params: PaginationParams) -> ValidationResult:
    errors = []
    if not 1 <= params.page <= MAX_PAGE:
        errors.append(f"Page must be between 1 and {MAX_PAGE}")
    if not 1 <= params.limit <= MAX_LIMIT:
        errors.append(f"Limit must be between 1 and {MAX_LIMIT}")
    if params.sort_order not in SORT_ORDERS:
        errors.append('Sort order must be "asc" or "desc"')
    return ValidationResult(valid=not errors, errors=errors)


def calculate_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def get_optimal_page_size(data_type: str) -> int:
    return OPTIMAL_PAGE_SIZES.get(data_type, DEFAULT_LIMIT)


def build_offset_query(params: PaginationParams) -> OffsetQuery:
    return OffsetQuery(
        offset=calculate_offset(params.page, params.limit),
        limit=params.limit,
        order_by=params.sort_by,
        ascending=params.sort_order == "asc",
    )


def build_cursor_query(
    params: PaginationParams, cursor_field: str = "created_at"
) -> CursorQuery:
    """Describe the fetch of the page following ``params.cursor``.

    One row more than the page size is requested so that
    ``process_cursor_results`` can tell whether another page exists. A cursor
    that does not decode is ignored and the fetch starts from the beginning.
    """
    ascending = params.sort_order == "asc"
    cursor_filter = None

    if params.cursor:
        decoded = decode_cursor(params.cursor)
        if decoded is not None and decoded.timestamp is not None:
            cursor_filter = CursorFilter(
                field=cursor_field,
                operator="gt" if ascending else "lt",
                value=decoded.timestamp,
            )

    return CursorQuery(
        filter=cursor_filter,
        order_by=params.sort_by,
        ascending=ascending,
        limit=params.limit + 1,
    )


def process_cursor_results(results: Sequence[T], limit: int) -> CursorBatch:
    """Trim the extra row fetched by ``build_cursor_query``."""
    has_more = len(results) > limit
    data = list(results[:limit]) if has_more else list(results)
    return CursorBatch(data=data, has_more=has_more)


def generate_links(
    base_url: str,
    pagination: PageInfo,
    additional_params: Optional[Mapping[str, str]] = None,
) -> dict[str, str]:
    """Build prev/next page links and cursor links for a response."""
    params: dict[str, str] = {**(additional_params or {}), "limit": str(pagination.limit)}
    links: dict[str, str] = {}

    if pagination.has_prev:
        params["page"] = str(pagination.page - 1)
        links["prev"] = f"{base_url}?{urlencode(params)}"

    if pagination.has_next:
        params["page"] = str(pagination.page + 1)
        links["next"] = f"{base_url}?{urlencode(params)}"

    if pagination.next_cursor:
        params.pop("page", None)
        params["cursor"] = pagination.next_cursor
        links["next_cursor"] = f"{base_url}?{urlencode(params)}"

    if pagination.prev_cursor:
        params.pop("page", None)
        params["cursor"] = pagination.prev_cursor
        links["prev_cursor"] = f"{base_url}?{urlencode(params)}"

    return links
