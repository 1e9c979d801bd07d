import pytest

from fastapi_pagecache.config import CacheConfig
from fastapi_pagecache.manager import CacheManager


class FakeClock:
    """Manually advanced replacement for ``time.time``."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_cache(clock):
    """Factory building an isolated cache driven by the fake clock."""

    def factory(
        max_size: int = 100, default_ttl: float = 60, strategy: str = "lru"
    ) -> CacheManager:
        config = CacheConfig(
            max_size=max_size, default_ttl=default_ttl, strategy=strategy
        )
        return CacheManager(config, clock=clock)

    return factory
