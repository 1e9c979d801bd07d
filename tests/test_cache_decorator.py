"""Integration tests for endpoint response caching."""

import pytest
from fastapi import FastAPI
from fastapi import Request
from fastapi import Response
from fastapi.testclient import TestClient

from fastapi_pagecache import CacheConfig
from fastapi_pagecache import CacheRegistry
from fastapi_pagecache import cache
from fastapi_pagecache import cache_for
from fastapi_pagecache import install_registry
from fastapi_pagecache.cache import default_key_builder
from fastapi_pagecache.exceptions import CacheError
from fastapi_pagecache.types import CACHE_KEY_SEPARATOR
from fastapi_pagecache.types import CachedResponse


@pytest.fixture
def registry():
    registry = CacheRegistry()
    registry.create("global", CacheConfig(max_size=50, default_ttl=120))
    registry.create("inventory", CacheConfig(max_size=50, default_ttl=60))
    return registry


@pytest.fixture
def app(registry):
    app = FastAPI()
    install_registry(app, registry)
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


def test_cache_hit_returns_cached_content(app, client):
    call_count = {"value": 0}

    @app.get("/items")
    @cache(ttl=60)
    async def get_items():
        call_count["value"] += 1
        return {"count": call_count["value"]}

    response1 = client.get("/items")
    assert response1.status_code == 200
    assert response1.json() == {"count": 1}
    assert response1.headers["X-Cache"] == "MISS"
    etag = response1.headers["ETag"]
    assert etag.startswith('W/"')

    response2 = client.get("/items")
    assert response2.status_code == 200
    assert response2.json() == {"count": 1}
    assert response2.headers["X-Cache"] == "HIT"
    assert response2.headers["ETag"] == etag
    assert call_count["value"] == 1


def test_if_none_match_returns_304(app, client):
    @app.get("/etag")
    @cache(ttl=60)
    async def get_etag():
        return {"data": "test"}

    etag = client.get("/etag").headers["ETag"]

    response = client.get("/etag", headers={"If-None-Match": etag})
    assert response.status_code == 304
    assert response.headers["ETag"] == etag
    assert response.content == b""


def test_cache_control_headers(app, client):
    @app.get("/plain")
    @cache(ttl=100)
    async def plain():
        return {}

    @app.get("/revalidate")
    @cache(ttl=100, revalidate=True, private=True)
    async def revalidate():
        return {}

    assert client.get("/plain").headers["Cache-Control"] == "public, max-age=100"
    response = client.get("/revalidate")
    assert (
        response.headers["Cache-Control"]
        == "private, max-age=100, stale-while-revalidate=20"
    )
    assert "Last-Modified" in response.headers


def test_default_ttl_comes_from_cache(app, client, registry):
    @app.get("/default-ttl")
    @cache()
    async def default_ttl():
        return {}

    response = client.get("/default-ttl")

    assert response.headers["Cache-Control"] == "public, max-age=120"
    assert registry.get("global").size() == 1


def test_query_params_vary_the_key(app, client):
    call_count = {"value": 0}

    @app.get("/list")
    @cache(ttl=60)
    async def get_list(page: int = 1):
        call_count["value"] += 1
        return {"page": page}

    client.get("/list?page=1")
    client.get("/list?page=1")
    client.get("/list?page=2")

    assert call_count["value"] == 2


def test_vary_by_ignores_other_params(app, client):
    call_count = {"value": 0}

    @app.get("/vary")
    @cache(ttl=60, vary_by=["page"])
    async def vary(page: int = 1, tracking: str = ""):
        call_count["value"] += 1
        return {"page": page}

    client.get("/vary?page=1&tracking=a")
    client.get("/vary?tracking=b&page=1")

    assert call_count["value"] == 1


def test_tags_and_named_cache(app, client, registry):
    call_count = {"value": 0}

    @app.get("/inventory")
    @cache(tags=["inventory", "list"], cache_name="inventory")
    async def inventory():
        call_count["value"] += 1
        return {"count": call_count["value"]}

    client.get("/inventory")
    inventory_cache = registry.get("inventory")
    assert inventory_cache.get_stats().tag_distribution == {"inventory": 1, "list": 1}
    assert registry.get("global").size() == 0

    assert inventory_cache.invalidate_by_tags(["inventory"]) == 1
    assert client.get("/inventory").json() == {"count": 2}


def test_non_get_requests_bypass_cache(app, client, registry):
    call_count = {"value": 0}

    @app.post("/items")
    @cache(ttl=60)
    async def create_item():
        call_count["value"] += 1
        return {"count": call_count["value"]}

    assert client.post("/items").json() == {"count": 1}
    assert client.post("/items").json() == {"count": 2}
    assert registry.get("global").size() == 0


def test_error_responses_not_cached(app, client, registry):
    @app.get("/broken")
    @cache(ttl=60)
    async def broken():
        return Response(content=b"nope", status_code=500)

    assert client.get("/broken").status_code == 500
    assert registry.get("global").size() == 0


def test_skip_cache(app, client, registry):
    @app.get("/skip")
    @cache(ttl=60, skip_cache=True)
    async def skip():
        return {}

    response = client.get("/skip")

    assert response.headers["Cache-Control"] == "no-store"
    assert registry.get("global").size() == 0


def test_existing_request_parameter_is_kept(app, client):
    @app.get("/echo")
    @cache(ttl=60)
    async def echo(request: Request):
        return {"path": request.url.path}

    assert client.get("/echo").json() == {"path": "/echo"}
    assert client.get("/echo").headers["X-Cache"] == "HIT"


def test_sync_endpoint(app, client):
    @app.get("/sync")
    @cache(ttl=60)
    def sync_endpoint():
        return {"sync": True}

    assert client.get("/sync").json() == {"sync": True}
    assert client.get("/sync").json() == {"sync": True}


def test_custom_key_builder(app, client, registry):
    def key_builder(request: Request) -> str:
        return f"custom:{request.url.path}"

    @app.get("/custom")
    @cache(ttl=60, key_builder=key_builder)
    async def custom():
        return {}

    client.get("/custom?ignored=1")

    assert registry.get("global").keys() == ["custom:/custom"]
    assert isinstance(registry.get("global").get("custom:/custom"), CachedResponse)


def test_default_key_builder_format(app, client, registry):
    @app.get("/api/users")
    @cache(ttl=60)
    async def users():
        return []

    client.get("/api/users?role=admin&page=2")

    key = registry.get("global").keys()[0]
    method, host, path, query = key.split(CACHE_KEY_SEPARATOR)
    assert method == "GET"
    assert host == "testserver"
    assert path == "/api/users"
    assert query == "page=2&role=admin"


def test_default_key_builder_vary_by():
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/api/inventory",
        "query_string": b"search=bolt&page=1&utm=x",
        "headers": [(b"host", b"example.com")],
    }

    key = default_key_builder(Request(scope), vary_by=["page", "search"])

    assert key == "GET|||example.com|||/api/inventory|||page=1&search=bolt"


def test_registry_installed_on_first_use():
    app = FastAPI()

    @app.get("/lazy")
    @cache(ttl=60)
    async def lazy():
        return {}

    client = TestClient(app)
    client.get("/lazy")

    assert app.state.cache_registry.get("global").size() == 1


def test_cache_for_endpoint_policy(app, client, registry):
    @app.get("/api/inventory")
    @cache_for("inventory", "list", cache_name="inventory")
    async def inventory_list(page: int = 1, utm: str = ""):
        return {"page": page}

    response = client.get("/api/inventory?page=2&utm=mail")

    assert response.headers["Cache-Control"] == "public, max-age=300"
    key = registry.get("inventory").keys()[0]
    assert key.endswith("|||page=2")
    assert registry.get("inventory").get_stats().tag_distribution == {
        "inventory": 1,
        "list": 1,
    }


def test_cache_for_unknown_policy():
    with pytest.raises(CacheError):
        cache_for("inventory", "unknown")


def test_private_responses_not_shared_between_clients(app, client, registry):
    @app.get("/me")
    @cache(ttl=60, private=True)
    async def me(request: Request):
        return {"user": request.headers.get("authorization")}

    alice = client.get("/me", headers={"Authorization": "alice"})
    bob = client.get("/me", headers={"Authorization": "bob"})

    assert alice.json() == {"user": "alice"}
    assert bob.json() == {"user": "bob"}
    assert bob.headers["Cache-Control"] == "private, max-age=60"
    assert "ETag" in bob.headers
    assert "X-Cache" not in bob.headers
    assert registry.get("global").size() == 0
