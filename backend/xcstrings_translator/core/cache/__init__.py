"""Translation cache package."""

from typing import Optional

from xcstrings_translator.config import Settings, settings as default_settings

from .store import CacheStore, InMemoryCacheStore, JsonFileCacheStore
from .translation_cache import (
    DEFAULT_MAX_ENTRIES,
    DEFAULT_TTL_MS,
    CacheEntry,
    CacheStats,
    SimilarTranslation,
    TranslationCache,
    build_cache_key,
)


def create_cache(config: Optional[Settings] = None) -> TranslationCache:
    """Build a TranslationCache from settings.

    Uses the JSON file store when persistence is enabled, otherwise an
    in-memory store so nothing touches disk.
    """
    config = config or default_settings
    store: CacheStore
    if config.cache_persist:
        store = JsonFileCacheStore(config.cache_file)
    else:
        store = InMemoryCacheStore()

    return TranslationCache(
        store=store,
        ttl_ms=config.cache_ttl_ms,
        max_entries=config.cache_max_entries,
    )


__all__ = [
    "CacheStore",
    "InMemoryCacheStore",
    "JsonFileCacheStore",
    "CacheEntry",
    "CacheStats",
    "SimilarTranslation",
    "TranslationCache",
    "build_cache_key",
    "create_cache",
    "DEFAULT_MAX_ENTRIES",
    "DEFAULT_TTL_MS",
]
