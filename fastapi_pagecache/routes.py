"""Cache monitoring and invalidation routes."""

import re
from typing import Any
from typing import Optional

from fastapi import FastAPI
from fastapi import HTTPException
from pydantic import BaseModel
from pydantic import Field
from pydantic import field_validator
from starlette.status import HTTP_404_NOT_FOUND

from fastapi_pagecache.dependencies import CacheRegistryDep
from fastapi_pagecache.exceptions import CacheNotFoundError


class InvalidateRequest(BaseModel):
    tags: list[str] = Field(default_factory=list, description="Tags to invalidate")
    pattern: Optional[str] = Field(
        default=None, description="Regular expression matched against cache keys"
    )
    cache: Optional[str] = Field(
        default=None, description="Restrict invalidation to one cache (None = all)"
    )

    @field_validator("pattern")
    @classmethod
    def pattern_must_compile(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            try:
                re.compile(v)
            except re.error as e:
                msg = f"Invalid regular expression: {e}"
                raise ValueError(msg) from e
        return v


def add_routes(app: FastAPI, prefix: str = "/cache") -> None:
    """Register cache stats, invalidation and cleanup routes on ``app``."""

    @app.get(f"{prefix}/stats")
    async def cache_stats(registry: CacheRegistryDep) -> dict[str, Any]:
        return {
            name: {
                "metrics": manager.get_metrics().model_dump(),
                "stats": manager.get_stats().model_dump(),
            }
            for name, manager in registry.items()
        }

    @app.post(f"{prefix}/invalidate")
    async def invalidate_cache(
        body: InvalidateRequest, registry: CacheRegistryDep
    ) -> dict[str, Any]:
        if body.cache is not None:
            try:
                managers = [(body.cache, registry.get(body.cache))]
            except CacheNotFoundError as e:
                raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail=str(e)) from e
        else:
            managers = list(registry.items())

        invalidated: dict[str, int] = {}
        for name, manager in managers:
            count = manager.invalidate_by_tags(body.tags) if body.tags else 0
            if body.pattern:
                count += manager.invalidate_by_pattern(body.pattern)
            invalidated[name] = count

        return {"invalidated": invalidated, "total": sum(invalidated.values())}

    @app.post(f"{prefix}/cleanup")
    async def cleanup_cache(registry: CacheRegistryDep) -> dict[str, Any]:
        cleaned = registry.cleanup()
        return {"cleaned": cleaned, "total": sum(cleaned.values())}
