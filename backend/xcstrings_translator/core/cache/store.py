"""Durable backing stores for the translation cache.

A store persists the whole cache document. Stores may raise; the cache
treats every store failure as "no persistence" and keeps working in memory.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class CacheStore(ABC):
    """Key-value document store used to persist cache entries."""

    @abstractmethod
    def load(self) -> Optional[Dict[str, Any]]:
        """Return the persisted document, or None if nothing was saved."""
        pass

    @abstractmethod
    def save(self, data: Dict[str, Any]) -> None:
        """Replace the persisted document."""
        pass

    @abstractmethod
    def delete(self) -> None:
        """Remove the persisted document."""
        pass


class InMemoryCacheStore(CacheStore):
    """Store that keeps a JSON-serialized copy in process memory."""

    def __init__(self, initial: Optional[str] = None):
        self._payload: Optional[str] = initial
        self.save_count = 0

    def load(self) -> Optional[Dict[str, Any]]:
        if self._payload is None:
            return None
        return json.loads(self._payload)

    def save(self, data: Dict[str, Any]) -> None:
        self._payload = json.dumps(data, ensure_ascii=False)
        self.save_count += 1

    def delete(self) -> None:
        self._payload = None


class JsonFileCacheStore(CacheStore):
    """Store that persists the cache as a single JSON file.

    Writes go to a temporary file in the same directory and are moved into
    place, so a crash mid-write never leaves a truncated document behind.
    Text is written with ASCII escapes, so lone surrogates survive a reload.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            return None
        with open(self.path, "r", encoding="utf-8") as f:
            return json.load(f)

    def save(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def delete(self) -> None:
        if self.path.exists():
            self.path.unlink()
            logger.info(f"[Cache Store] Deleted persisted cache: {self.path}")
