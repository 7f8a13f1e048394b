"""Cache management API routes."""

import logging
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel

from xcstrings_translator.api.dependencies import CacheDep

logger = logging.getLogger(__name__)

router = APIRouter()


class CacheStatsResponse(BaseModel):
    """Cache statistics response."""
    total_entries: int
    approximate_size_bytes: int
    formatted_size: str
    oldest_entry_timestamp: Optional[int] = None
    ttl_days: float
    max_entries: int


class CacheClearResponse(BaseModel):
    """Cache clear response."""
    entries_deleted: int
    action: str


@router.get("/cache/stats")
async def get_cache_stats(cache: CacheDep) -> CacheStatsResponse:
    """Get translation cache statistics.

    Returns the number of entries, the approximate persisted size and the
    timestamp of the oldest entry, alongside the TTL and size cap in force.
    """
    stats = cache.get_stats()

    return CacheStatsResponse(
        total_entries=stats.total_entries,
        approximate_size_bytes=stats.approximate_size_bytes,
        formatted_size=stats.formatted_size,
        oldest_entry_timestamp=stats.oldest_entry_timestamp,
        ttl_days=cache.ttl_ms / (24 * 60 * 60 * 1000),
        max_entries=cache.max_entries,
    )


@router.post("/cache/clear")
async def clear_cache(cache: CacheDep) -> CacheClearResponse:
    """Clear all cached translations.

    Subsequent translations will call the provider until the cache is rebuilt.
    """
    count = cache.clear()

    return CacheClearResponse(entries_deleted=count, action="clear_all")


@router.post("/cache/clear-expired")
async def clear_expired_cache(cache: CacheDep) -> CacheClearResponse:
    """Remove entries past their TTL and re-apply the size cap.

    Active entries within the cap are preserved.
    """
    count = cache.perform_maintenance()
    logger.info(f"[Cache API] Maintenance removed {count} entries")

    return CacheClearResponse(entries_deleted=count, action="clear_expired")
