"""Cache stores for fetched skill content.

A store is a plain key/value mapping of `CacheEntry` objects. Freshness is
decided by callers through `is_cache_valid`; stores never expire entries on
their own.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Union

from skillsync.exceptions import ConfigError
from skillsync.models import CacheEntry

logger = logging.getLogger(__name__)


class CacheStore(ABC):
    """Abstract cache interface used by the fetcher."""

    @abstractmethod
    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the entry stored under `key`, or None."""

    @abstractmethod
    def set(self, key: str, entry: CacheEntry) -> None:
        """Store `entry` under `key`, replacing any previous entry."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove `key` if present."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry."""

    def has(self, key: str) -> bool:
        return self.get(key) is not None


class MemoryCache(CacheStore):
    """Unbounded in-process cache."""

    def __init__(self) -> None:
        self._store: Dict[str, CacheEntry] = {}

    def get(self, key: str) -> Optional[CacheEntry]:
        return self._store.get(key)

    def set(self, key: str, entry: CacheEntry) -> None:
        self._store[key] = entry

    def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()

    def has(self, key: str) -> bool:
        return key in self._store

    def size(self) -> int:
        return len(self._store)

    def keys(self) -> List[str]:
        return list(self._store.keys())


class NullCache(CacheStore):
    """A store that keeps nothing; every fetch goes to the network."""

    def get(self, key: str) -> Optional[CacheEntry]:
        return None

    def set(self, key: str, entry: CacheEntry) -> None:
        return None

    def delete(self, key: str) -> None:
        return None

    def clear(self) -> None:
        return None


class FileCache(CacheStore):
    """Directory-backed cache holding one JSON document per key.

    Unreadable or corrupt files are treated as misses.
    """

    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory).expanduser()
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"Cannot create cache directory {self.directory}: {e}") from e

    def _path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.directory / f"{digest}.json"

    def get(self, key: str) -> Optional[CacheEntry]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return CacheEntry(
                content=data["content"],
                cached_at=float(data["cached_at"]),
                etag=data.get("etag"),
                last_modified=data.get("last_modified"),
            )
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.debug("Ignoring unreadable cache file %s: %s", path, e)
            return None

    def set(self, key: str, entry: CacheEntry) -> None:
        payload = {
            "key": key,
            "content": entry.content,
            "etag": entry.etag,
            "last_modified": entry.last_modified,
            "cached_at": entry.cached_at,
        }
        path = self._path(key)
        # Write then rename so content and validators land together
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(payload), encoding="utf-8")
        tmp.replace(path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def clear(self) -> None:
        for path in self.directory.glob("*.json"):
            path.unlink(missing_ok=True)


def is_cache_valid(entry: CacheEntry, ttl_seconds: float, *, now: Optional[float] = None) -> bool:
    """Return True if `entry` is younger than `ttl_seconds`."""
    current = time.time() if now is None else now
    return (current - entry.cached_at) < ttl_seconds


def create_cache_key(url: str) -> str:
    """Cache key for an absolute skill content URL."""
    return f"skill:{url}"
