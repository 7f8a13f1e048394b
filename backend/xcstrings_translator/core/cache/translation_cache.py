"""Translation cache with TTL expiry and a size cap.

Memoizes (text, source language, target language, model) -> translated text
so repeated translation actions skip the provider. Entries expire after a TTL
and the oldest entries are evicted once the cache grows past its cap. The
cache is persisted through a CacheStore on a best-effort basis.
"""

import hashlib
import json
import logging
import threading
import time
from difflib import SequenceMatcher
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from xcstrings_translator.utils.text import format_bytes

from .store import CacheStore, InMemoryCacheStore

logger = logging.getLogger(__name__)

DEFAULT_TTL_MS = 7 * 24 * 60 * 60 * 1000  # 7 days
DEFAULT_MAX_ENTRIES = 10_000
CACHE_FORMAT_VERSION = 1


def _now_ms() -> int:
    return int(time.time() * 1000)


def build_cache_key(
    text: str,
    source_language: str,
    target_language: str,
    model: str,
) -> str:
    """Build the cache key for a translation.

    BLAKE2b-128 over the length-prefixed tuple, so ("a|b", "c") and
    ("a", "b|c") never share a key. This is a memoization key, not a
    security token.
    """
    parts = (text, source_language, target_language, model)
    payload = "".join(f"{len(part)}:{part}" for part in parts).encode("utf-8", "surrogatepass")
    return hashlib.blake2b(payload, digest_size=16).hexdigest()


class CacheEntry(BaseModel):
    """A single cached translation."""

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    translated_text: str = Field(..., alias="translatedText")
    timestamp: int = Field(..., description="Creation time, epoch milliseconds")
    source_language: str = Field(..., alias="sourceLanguage")
    target_language: str = Field(..., alias="targetLanguage")
    model: str
    source_text: Optional[str] = Field(
        default=None, alias="sourceText", description="Original text, used by fuzzy lookup"
    )


class CacheStats(BaseModel):
    """Cache statistics."""

    total_entries: int
    approximate_size_bytes: int
    oldest_entry_timestamp: Optional[int] = None

    @property
    def formatted_size(self) -> str:
        return format_bytes(self.approximate_size_bytes)


class SimilarTranslation(BaseModel):
    """Fuzzy cache match returned by find_similar."""

    text: str
    translation: str
    similarity: float


class TranslationCache:
    """Process-wide translation memo.

    Usage:
        cache = TranslationCache(JsonFileCacheStore(path))
        cache.set("Hello", "en", "fr", "gpt-4o-mini", "Bonjour")
        cache.get("Hello", "en", "fr", "gpt-4o-mini")  # "Bonjour"

    All public methods are guarded by a re-entrant lock so language tasks
    running in worker threads can share one instance.
    """

    def __init__(
        self,
        store: Optional[CacheStore] = None,
        ttl_ms: int = DEFAULT_TTL_MS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], int] = _now_ms,
    ):
        """Initialize the cache.

        Args:
            store: Durable store; None keeps the cache in memory only
            ttl_ms: Entry lifetime in milliseconds
            max_entries: Maximum number of entries kept
            clock: Returns the current time in epoch milliseconds
        """
        self._store = store if store is not None else InMemoryCacheStore()
        self._ttl_ms = ttl_ms
        self._max_entries = max_entries
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._loaded = False
        self._dirty = False
        self._lock = threading.RLock()

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def __len__(self) -> int:
        with self._lock:
            self._ensure_loaded()
            return len(self._entries)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Load persisted entries and drop the expired ones.

        Called lazily on first access; calling it again reloads from the store.
        """
        with self._lock:
            self._entries = self._read_store()
            self._loaded = True
            removed = self._remove_expired()
            if removed:
                logger.info(f"[Translation Cache] Purged {removed} expired entries on load")
                self._persist()

    def close(self) -> None:
        """Flush unsaved changes, such as expired-entry removals or a failed persist."""
        with self._lock:
            if self._loaded and self._dirty:
                self._persist()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(
        self,
        text: str,
        source_language: str,
        target_language: str,
        model: str,
    ) -> Optional[str]:
        """Return the cached translation, or None if absent or expired.

        Dropping an expired entry only marks the cache dirty; the removal is
        written with the next store or on close.
        """
        key = build_cache_key(text, source_language, target_language, model)
        with self._lock:
            self._ensure_loaded()
            entry = self._entries.get(key)
            if entry is None:
                return None

            if self._is_expired(entry, self._clock()):
                del self._entries[key]
                self._dirty = True
                return None

            return entry.translated_text

    def set(
        self,
        text: str,
        source_language: str,
        target_language: str,
        model: str,
        translated_text: str,
    ) -> None:
        """Store a translation, evict past the cap and persist."""
        self.set_many([(text, source_language, target_language, model, translated_text)])

    def set_many(self, items: Iterable[Tuple[str, str, str, str, str]]) -> None:
        """Store several translations with a single persist.

        Args:
            items: (text, source_language, target_language, model, translated_text)
        """
        with self._lock:
            self._ensure_loaded()
            stored = 0
            for text, source_language, target_language, model, translated_text in items:
                key = build_cache_key(text, source_language, target_language, model)
                self._entries[key] = CacheEntry(
                    translated_text=translated_text,
                    timestamp=self._clock(),
                    source_language=source_language,
                    target_language=target_language,
                    model=model,
                    source_text=text,
                )
                stored += 1

            if not stored:
                return

            self._enforce_size_limit()
            self._persist()

    def clear(self) -> int:
        """Drop every entry and the persisted copy.

        Returns:
            Number of entries dropped
        """
        with self._lock:
            self._ensure_loaded()
            count = len(self._entries)
            self._entries = {}
            self._loaded = True
            self._dirty = False
            try:
                self._store.delete()
            except Exception as e:
                logger.warning(f"[Translation Cache] Failed to delete persisted cache: {e}")
            logger.info(f"[Translation Cache] Cleared {count} entries")
            return count

    def purge_expired(self) -> int:
        """Remove expired entries.

        Returns:
            Number of entries removed
        """
        with self._lock:
            self._ensure_loaded()
            removed = self._remove_expired()
            if removed:
                self._persist()
            return removed

    def perform_maintenance(self) -> int:
        """Purge expired entries and re-apply the size cap.

        Returns:
            Number of entries removed
        """
        with self._lock:
            self._ensure_loaded()
            removed = self._remove_expired() + self._enforce_size_limit()
            if removed:
                self._persist()
            return removed

    def get_stats(self) -> CacheStats:
        """Summarize the cache contents."""
        with self._lock:
            self._ensure_loaded()
            size = len(json.dumps(self._serialize(), ensure_ascii=False).encode("utf-8"))
            oldest = min((e.timestamp for e in self._entries.values()), default=None)
            return CacheStats(
                total_entries=len(self._entries),
                approximate_size_bytes=size,
                oldest_entry_timestamp=oldest,
            )

    def find_similar(
        self,
        text: str,
        source_language: str,
        target_language: str,
        model: str,
        threshold: float = 0.8,
    ) -> List[SimilarTranslation]:
        """Find cached translations whose source text resembles `text`.

        Only entries for the same language pair and model are considered.
        Expired entries are skipped.

        Returns:
            Matches sorted by similarity, highest first
        """
        now = self._clock()
        matches: List[SimilarTranslation] = []
        with self._lock:
            self._ensure_loaded()
            for entry in self._entries.values():
                if (
                    entry.source_text is None
                    or entry.source_language != source_language
                    or entry.target_language != target_language
                    or entry.model != model
                    or self._is_expired(entry, now)
                ):
                    continue

                similarity = SequenceMatcher(None, text, entry.source_text).ratio()
                if similarity >= threshold:
                    matches.append(
                        SimilarTranslation(
                            text=entry.source_text,
                            translation=entry.translated_text,
                            similarity=similarity,
                        )
                    )

        return sorted(matches, key=lambda m: m.similarity, reverse=True)

    # ------------------------------------------------------------------
    # Internals (callers hold the lock)
    # ------------------------------------------------------------------

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def _is_expired(self, entry: CacheEntry, now: int) -> bool:
        return now - entry.timestamp > self._ttl_ms

    def _remove_expired(self) -> int:
        now = self._clock()
        expired = [k for k, e in self._entries.items() if self._is_expired(e, now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def _enforce_size_limit(self) -> int:
        overflow = len(self._entries) - self._max_entries
        if overflow <= 0:
            return 0

        oldest_first = sorted(self._entries.items(), key=lambda item: item[1].timestamp)
        for key, _ in oldest_first[:overflow]:
            del self._entries[key]

        logger.debug(f"[Translation Cache] Evicted {overflow} oldest entries")
        return overflow

    def _serialize(self) -> Dict[str, Any]:
        return {
            "version": CACHE_FORMAT_VERSION,
            "entries": {
                key: entry.model_dump(by_alias=True, exclude_none=True)
                for key, entry in self._entries.items()
            },
        }

    def _persist(self) -> None:
        try:
            self._store.save(self._serialize())
            self._dirty = False
        except Exception as e:
            self._dirty = True
            logger.warning(f"[Translation Cache] Failed to persist cache: {e}")

    def _read_store(self) -> Dict[str, CacheEntry]:
        try:
            data = self._store.load()
        except Exception as e:
            logger.warning(f"[Translation Cache] Failed to load cache, starting empty: {e}")
            return {}

        if not data:
            return {}
        if not isinstance(data, dict):
            logger.warning("[Translation Cache] Persisted cache has an unexpected shape, ignoring it")
            return {}

        # Older documents were a flat {key: entry} mapping
        raw_entries = data.get("entries") if "version" in data else data
        if not isinstance(raw_entries, dict):
            logger.warning("[Translation Cache] Persisted cache has no entry map, ignoring it")
            return {}

        entries: Dict[str, CacheEntry] = {}
        skipped = 0
        for key, raw in raw_entries.items():
            try:
                entries[key] = CacheEntry.model_validate(raw)
            except ValidationError:
                skipped += 1

        if skipped:
            logger.warning(f"[Translation Cache] Skipped {skipped} malformed cache entries")

        return entries
