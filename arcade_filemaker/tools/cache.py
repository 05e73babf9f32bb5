from collections.abc import Callable
from typing import Annotated, Any

from arcade_tdk import ToolContext, tool

from arcade_filemaker.cache import TTLCache
from arcade_filemaker.enums import CacheAction
from arcade_filemaker.exceptions import FileMakerValidationError
from arcade_filemaker.settings import get_settings
from arcade_filemaker.state import get_cache
from arcade_filemaker.tools.utils import require_text

CacheHandler = Callable[[TTLCache, str | None, Any, float], dict[str, Any]]


def _set(cache: TTLCache, key: str | None, value: Any, ttl_seconds: float) -> dict[str, Any]:
    key = require_text(key, "key")
    if value is None:
        raise FileMakerValidationError("'value' is required for the set action")
    cache.set(key, value, ttl_seconds)
    return {"operation": "cache_set", "key": key, "ttl_seconds": ttl_seconds, "success": True}


def _get(cache: TTLCache, key: str | None, value: Any, ttl_seconds: float) -> dict[str, Any]:
    key = require_text(key, "key")
    lookup = cache.get(key)
    return {"operation": "cache_get", "key": key, "found": lookup.found, "data": lookup.value}


def _delete(cache: TTLCache, key: str | None, value: Any, ttl_seconds: float) -> dict[str, Any]:
    key = require_text(key, "key")
    return {"operation": "cache_delete", "key": key, "success": cache.delete(key)}


def _clear(cache: TTLCache, key: str | None, value: Any, ttl_seconds: float) -> dict[str, Any]:
    return {"operation": "cache_clear", "removed": cache.clear(), "success": True}


def _stats(cache: TTLCache, key: str | None, value: Any, ttl_seconds: float) -> dict[str, Any]:
    return {"operation": "cache_stats", "stats": cache.stats()}


CACHE_HANDLERS: dict[CacheAction, CacheHandler] = {
    CacheAction.SET: _set,
    CacheAction.GET: _get,
    CacheAction.DELETE: _delete,
    CacheAction.CLEAR: _clear,
    CacheAction.STATS: _stats,
}


@tool
async def manage_cache(
    context: ToolContext,
    action: Annotated[CacheAction, "What to do with the cache"],
    key: Annotated[str | None, "Cache key. Required for get, set and delete"] = None,
    value: Annotated[
        dict | list | str | int | float | bool | None,
        "JSON data to store: an object, array, string, number or boolean. Required for set",
    ] = None,
    ttl_seconds: Annotated[
        float | None, "How long a set entry stays valid, in seconds. Defaults to 300"
    ] = None,
) -> Annotated[dict[str, Any], "The result of the cache action"]:
    """
    Store, read and manage short-lived data in the toolkit's in-memory cache.

    Entries expire after their time to live; an expired entry is reported as not found.
    Use 'stats' to list the keys currently held.
    """
    ttl = ttl_seconds if ttl_seconds is not None else get_settings().default_cache_ttl_seconds
    if ttl <= 0:
        raise FileMakerValidationError(f"'ttl_seconds' must be positive, got {ttl}")
    return CACHE_HANDLERS[CacheAction(action)](get_cache(), key, value, ttl)
