"""Process-wide cache, rate log and run registry shared by every tool call."""

from functools import lru_cache

from arcade_filemaker.cache import TTLCache
from arcade_filemaker.cancellation import RunRegistry
from arcade_filemaker.rate_limit import RateLimiter
from arcade_filemaker.settings import get_settings


@lru_cache(maxsize=1)
def get_cache() -> TTLCache:
    return TTLCache()


@lru_cache(maxsize=1)
def get_rate_limiter() -> RateLimiter:
    return RateLimiter(default_limit=get_settings().default_rate_limit)


@lru_cache(maxsize=1)
def get_run_registry() -> RunRegistry:
    return RunRegistry()
