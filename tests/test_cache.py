import time
from pathlib import Path

import pytest

from skillsync.cache import FileCache, MemoryCache, NullCache, create_cache_key, is_cache_valid
from skillsync.models import CacheEntry


def test_memory_cache_basic_operations() -> None:
    cache = MemoryCache()
    entry = CacheEntry(content="body", cached_at=1.0, etag='"x"')

    assert cache.get("k") is None
    assert cache.has("k") is False

    cache.set("k", entry)
    assert cache.get("k") is entry
    assert cache.has("k") is True
    assert cache.size() == 1
    assert cache.keys() == ["k"]

    cache.delete("k")
    cache.delete("missing")
    assert cache.size() == 0

    cache.set("a", entry)
    cache.set("b", entry)
    cache.clear()
    assert cache.keys() == []


def test_is_cache_valid_compares_age_with_ttl() -> None:
    entry = CacheEntry(content="body", cached_at=1000.0)
    assert is_cache_valid(entry, 60, now=1059.0) is True
    assert is_cache_valid(entry, 60, now=1060.0) is False
    assert is_cache_valid(entry, 0, now=1000.0) is False
    assert is_cache_valid(CacheEntry(content="body", cached_at=time.time()), 3600) is True


def test_create_cache_key_uses_full_url() -> None:
    assert create_cache_key("https://h/skills/a.md") == "skill:https://h/skills/a.md"


def test_file_cache_persists_entries(tmp_path: Path) -> None:
    cache = FileCache(tmp_path / "cache")
    entry = CacheEntry(
        content="# Skill\n",
        cached_at=1234.5,
        etag='"abc"',
        last_modified="Mon, 01 Jan 2024 00:00:00 GMT",
    )
    cache.set("skill:https://h/a.md", entry)

    reopened = FileCache(tmp_path / "cache")
    loaded = reopened.get("skill:https://h/a.md")
    assert loaded == entry
    assert reopened.has("skill:https://h/a.md")
    assert reopened.get("skill:https://h/b.md") is None

    reopened.delete("skill:https://h/a.md")
    assert reopened.get("skill:https://h/a.md") is None


def test_file_cache_clear_and_corrupt_files(tmp_path: Path) -> None:
    cache = FileCache(tmp_path)
    cache.set("one", CacheEntry(content="1", cached_at=1.0))
    cache.set("two", CacheEntry(content="2", cached_at=2.0))

    # Corrupt one entry on disk; it reads as a miss
    for path in tmp_path.glob("*.json"):
        path.write_text("{not json", encoding="utf-8")
        break
    assert sum(1 for k in ("one", "two") if cache.get(k) is not None) == 1

    cache.clear()
    assert list(tmp_path.glob("*.json")) == []


@pytest.mark.parametrize("key", ["a", "skill:https://h/x.md"])
def test_null_cache_keeps_nothing(key: str) -> None:
    cache = NullCache()
    cache.set(key, CacheEntry(content="x", cached_at=1.0))
    assert cache.get(key) is None
    assert cache.has(key) is False
