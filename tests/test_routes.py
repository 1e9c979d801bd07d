"""Tests for cache monitoring and invalidation routes."""

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from fastapi_pagecache import CacheConfig
from fastapi_pagecache import CacheManager
from fastapi_pagecache import CacheRegistry
from fastapi_pagecache import add_routes
from fastapi_pagecache import install_registry


@pytest.fixture
def registry(clock):
    registry = CacheRegistry()
    registry.register(
        "inventory", CacheManager(CacheConfig(max_size=10, default_ttl=60), clock=clock)
    )
    registry.register(
        "project", CacheManager(CacheConfig(max_size=10, default_ttl=60), clock=clock)
    )
    return registry


@pytest.fixture
def client(registry):
    app = FastAPI()
    install_registry(app, registry)
    add_routes(app)
    return TestClient(app)


class TestStatsRoute:
    def test_empty_caches(self, client):
        response = client.get("/cache/stats")

        assert response.status_code == 200
        data = response.json()
        assert set(data) == {"inventory", "project"}
        assert data["inventory"]["metrics"]["entry_count"] == 0
        assert data["inventory"]["metrics"]["hit_rate"] == 0
        assert data["inventory"]["stats"]["top_keys"] == []

    def test_with_entries(self, client, registry):
        inventory = registry.get("inventory")
        inventory.set("inventory:1", {"id": 1}, tags=["inventory"])
        inventory.get("inventory:1")
        inventory.get("inventory:2")

        data = client.get("/cache/stats").json()["inventory"]

        assert data["metrics"]["hits"] == 1
        assert data["metrics"]["misses"] == 1
        assert data["metrics"]["hit_rate"] == 0.5
        assert data["stats"]["top_keys"] == [
            {"key": "inventory:1", "access_count": 1, "size": 16}
        ]
        assert data["stats"]["tag_distribution"] == {"inventory": 1}


class TestInvalidateRoute:
    def test_by_tags_across_caches(self, client, registry):
        registry.get("inventory").set("a", 1, tags=["list"])
        registry.get("project").set("b", 2, tags=["list"])
        registry.get("project").set("c", 3, tags=["item"])

        response = client.post("/cache/invalidate", json={"tags": ["list"]})

        assert response.status_code == 200
        assert response.json() == {
            "invalidated": {"inventory": 1, "project": 1},
            "total": 2,
        }
        assert registry.get("project").keys() == ["c"]

    def test_by_pattern_in_one_cache(self, client, registry):
        registry.get("inventory").set("GET|||host|||/api/inventory", 1)
        registry.get("project").set("GET|||host|||/api/inventory", 2)

        response = client.post(
            "/cache/invalidate", json={"pattern": "/api/inventory", "cache": "project"}
        )

        assert response.json() == {"invalidated": {"project": 1}, "total": 1}
        assert registry.get("inventory").size() == 1

    def test_unknown_cache(self, client):
        response = client.post("/cache/invalidate", json={"cache": "nope"})

        assert response.status_code == 404

    def test_invalid_pattern_rejected(self, client, registry):
        registry.get("inventory").set("GET|||host|||/api/inventory", 1)

        response = client.post("/cache/invalidate", json={"pattern": "("})

        assert response.status_code == 422
        assert registry.get("inventory").size() == 1


class TestCleanupRoute:
    def test_removes_expired_entries(self, client, registry, clock):
        registry.get("inventory").set("old", 1, ttl=1)
        registry.get("inventory").set("fresh", 2, ttl=100)
        clock.advance(5)

        response = client.post("/cache/cleanup")

        assert response.json() == {
            "cleaned": {"inventory": 1, "project": 0},
            "total": 1,
        }
        assert registry.get("inventory").keys() == ["fresh"]


def test_custom_prefix(registry):
    app = FastAPI()
    install_registry(app, registry)
    add_routes(app, prefix="/admin/cache")

    assert TestClient(app).get("/admin/cache/stats").status_code == 200


@pytest.mark.asyncio
async def test_routes_over_asgi_transport(registry):
    app = FastAPI()
    install_registry(app, registry)
    add_routes(app)
    registry.get("inventory").set("a", 1, tags=["inventory"])

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        invalidated = await client.post(
            "/cache/invalidate", json={"tags": ["inventory"]}
        )
        stats = await client.get("/cache/stats")

    assert invalidated.json()["total"] == 1
    assert stats.json()["inventory"]["metrics"]["entry_count"] == 0
