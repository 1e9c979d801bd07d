import hashlib
import inspect
from collections.abc import Callable
from collections.abc import Iterable
from email.utils import formatdate
from functools import wraps
from logging import getLogger
from typing import Any
from typing import Optional
from urllib.parse import urlencode

from fastapi import Request
from fastapi import Response
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.status import HTTP_200_OK
from starlette.status import HTTP_304_NOT_MODIFIED

from fastapi_pagecache.config import get_endpoint_config
from fastapi_pagecache.directives import DirectiveType
from fastapi_pagecache.exceptions import CacheError
from fastapi_pagecache.registry import GLOBAL_CACHE
from fastapi_pagecache.registry import get_registry
from fastapi_pagecache.types import CACHE_KEY_SEPARATOR
from fastapi_pagecache.types import CachedResponse

REVALIDATE_RATIO = 0.2

logger = getLogger(__name__)


class CacheControl:
    def __init__(self) -> None:
        self.directives: list[str] = []

    def add(self, directive: DirectiveType, value: Optional[int] = None) -> None:
        if value is not None:
            self.directives.append(f"{directive.value}={value}")
        else:
            self.directives.append(directive.value)

    def __str__(self) -> str:
        return ", ".join(self.directives)


def default_key_builder(
    request: Request, vary_by: Optional[Iterable[str]] = None
) -> str:
    """Build ``method|||host|||path|||query`` with sorted query parameters.

    When ``vary_by`` is given, only those query parameters take part in the key.
    """
    allowed = set(vary_by) if vary_by is not None else None
    params = sorted(
        (name, value)
        for name, value in request.query_params.multi_items()
        if allowed is None or name in allowed
    )
    return CACHE_KEY_SEPARATOR.join(
        [
            request.method,
            request.headers.get("host", ""),
            request.url.path,
            urlencode(params),
        ]
    )


def generate_etag(content: bytes) -> str:
    return f'W/"{hashlib.md5(content).hexdigest()}"'  # noqa: S324


async def get_response(func: Callable, *args: Any, **kwargs: Any) -> Response:
    """Call the endpoint and turn a plain return value into a JSON response."""
    if inspect.iscoroutinefunction(func):
        result = await func(*args, **kwargs)
    else:
        result = func(*args, **kwargs)

    if isinstance(result, Response):
        return result
    return JSONResponse(content=jsonable_encoder(result))


def _cache_control(ttl: float, revalidate: bool, private: bool) -> str:
    cache_control = CacheControl()
    cache_control.add(DirectiveType.PRIVATE if private else DirectiveType.PUBLIC)
    max_age = int(ttl)
    cache_control.add(DirectiveType.MAX_AGE, max_age)
    if revalidate:
        cache_control.add(
            DirectiveType.STALE_WHILE_REVALIDATE, int(max_age * REVALIDATE_RATIO)
        )
    return str(cache_control)


def cache(  # noqa: C901
    ttl: Optional[float] = None,
    tags: Iterable[str] = (),
    vary_by: Optional[Iterable[str]] = None,
    revalidate: bool = False,
    private: bool = False,
    skip_cache: bool = False,
    cache_name: str = GLOBAL_CACHE,
    key_builder: Optional[Callable[[Request], str]] = None,
) -> Callable:
    """Cache successful GET responses of an endpoint in a named cache.

    Args:
        ttl: Seconds to keep the response (default: the cache's default TTL)
        tags: Tags attached to the cached response for group invalidation
        vary_by: Query parameters that take part in the cache key (None = all)
        revalidate: Advertise ``stale-while-revalidate`` to clients
        private: Emit ``private`` instead of ``public`` and keep the response
            out of the server-side cache
        skip_cache: Never store responses, only mark them ``no-store``
        cache_name: Name of the cache in the application's registry
        key_builder: Custom ``(request) -> key`` function
    """
    tags = tuple(tags)
    vary_by = tuple(vary_by) if vary_by is not None else None

    def decorator(func: Callable) -> Callable:  # noqa: C901
        sig = inspect.signature(func)
        params = list(sig.parameters.values())

        request_param = next(
            (
                param.name
                for param in params
                if param.annotation in (Request, Optional[Request])
            ),
            None,
        )

        # Add Request parameter if it's not present
        if request_param is None:
            injected = inspect.Parameter(
                "request",
                inspect.Parameter.KEYWORD_ONLY,
                annotation=Request,
            )
            func.__signature__ = sig.replace(parameters=[*params, injected])

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Response:  # noqa: C901
            if request_param is None:
                request: Request | None = kwargs.pop("request", None)
            else:
                request = kwargs.get(request_param)

            # Only cache GET requests
            if request is None or request.method != "GET":
                return await get_response(func, *args, **kwargs)

            manager = get_registry(request.app).get(cache_name)
            effective_ttl = ttl if ttl is not None else manager.config.default_ttl

            if key_builder is not None:
                cache_key = key_builder(request)
            else:
                cache_key = default_key_builder(request, vary_by)

            # Private responses belong to one client and never enter the shared cache
            shared = not (skip_cache or private)
            cached = manager.get(cache_key) if shared else None
            if isinstance(cached, CachedResponse):
                if request.headers.get("if-none-match") == cached.etag:
                    return Response(
                        status_code=HTTP_304_NOT_MODIFIED,
                        headers={
                            "ETag": cached.etag,
                            "Cache-Control": cached.headers["Cache-Control"],
                        },
                    )
                return Response(
                    content=cached.content,
                    status_code=cached.status_code,
                    media_type=cached.media_type,
                    headers={**cached.headers, "X-Cache": "HIT"},
                )

            response = await get_response(func, *args, **kwargs)
            content = getattr(response, "body", None)
            if response.status_code != HTTP_200_OK or content is None:
                return response

            etag = generate_etag(content)
            response.headers["ETag"] = etag

            if skip_cache:
                response.headers["Cache-Control"] = DirectiveType.NO_STORE.value
                return response

            headers = {
                "ETag": etag,
                "Cache-Control": _cache_control(effective_ttl, revalidate, private),
                "Last-Modified": formatdate(usegmt=True),
            }
            if private:
                response.headers.update(headers)
                return response

            manager.set(
                cache_key,
                CachedResponse(
                    etag=etag,
                    content=bytes(content),
                    status_code=response.status_code,
                    media_type=response.media_type,
                    headers=headers,
                ),
                ttl=effective_ttl,
                tags=tags,
            )
            logger.debug("Cached response for %s in %r cache", cache_key, cache_name)

            response.headers.update({**headers, "X-Cache": "MISS"})
            return response

        return wrapper

    return decorator


def cache_for(endpoint: str, action: str, **kwargs: Any) -> Callable:
    """Apply the predefined caching policy of ``endpoint``/``action``.

    Raises:
        CacheError: If no policy exists for the pair
    """
    config = get_endpoint_config(endpoint, action)
    if config is None:
        msg = f"No cache policy defined for {endpoint}.{action}"
        raise CacheError(msg)
    return cache(**{**config.model_dump(), **kwargs})
