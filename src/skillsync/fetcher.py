"""HTTP retrieval of feeds and skill content.

Uses an injected `httpx.AsyncClient`. Every network attempt is bounded by a
timeout and retried with exponential backoff (100ms, 200ms, 400ms, ...).
Skill content is cached and revalidated with ETag / Last-Modified.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Dict, Optional, TypeVar
from urllib.parse import urljoin, urlsplit

import httpx

from skillsync.cache import CacheStore, create_cache_key, is_cache_valid
from skillsync.config import DEFAULT_CACHE_TTL, DEFAULT_RETRIES, DEFAULT_TIMEOUT_MS
from skillsync.exceptions import FetchError, HttpStatusError, ManifestError, TransportError
from skillsync.models import CacheEntry, FetchResult, SkillFeed
from skillsync.validation import validate_feed

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT = DEFAULT_TIMEOUT_MS / 1000
BACKOFF_BASE = 0.1  # seconds

SleepFn = Callable[[float], Awaitable[None]]


async def with_retry(
    attempt: Callable[[], Awaitable[T]],
    *,
    timeout: float,
    retries: int,
    url: str = "",
    sleep: SleepFn = asyncio.sleep,
) -> T:
    """Run `attempt` until it succeeds, at most `retries + 1` times.

    Each call is cancelled once it exceeds `timeout` seconds. Only `FetchError`
    failures are retried; the last one is re-raised when attempts run out.
    """
    if retries < 0:
        raise ValueError("retries must be >= 0")
    last_error: Optional[FetchError] = None
    for index in range(retries + 1):
        try:
            return await asyncio.wait_for(attempt(), timeout=timeout)
        except asyncio.TimeoutError:
            last_error = TransportError(url, f"Request timed out after {timeout:g}s")
        except FetchError as e:
            last_error = e
        if index < retries:
            delay = BACKOFF_BASE * 2**index
            logger.debug("Attempt %d for %s failed (%s); retrying in %.1fs", index + 1, url, last_error, delay)
            await sleep(delay)
    raise last_error  # type: ignore[misc]


async def _get(client: httpx.AsyncClient, url: str, headers: Dict[str, str]) -> httpx.Response:
    try:
        return await client.get(url, headers=headers)
    except httpx.TimeoutException as e:
        raise TransportError(url, f"Request timed out: {e}") from e
    except httpx.HTTPError as e:
        raise TransportError(url, f"Request failed: {e}") from e
    except (httpx.InvalidURL, ValueError) as e:
        raise TransportError(url, f"Invalid URL: {e}") from e


async def fetch_feed(
    url: str,
    *,
    client: httpx.AsyncClient,
    timeout: float = DEFAULT_TIMEOUT,
    retries: int = DEFAULT_RETRIES,
    sleep: SleepFn = asyncio.sleep,
) -> SkillFeed:
    """Fetch and validate a feed document. Feeds are never cached here."""

    async def attempt() -> httpx.Response:
        resp = await _get(client, url, {"Accept": "application/json"})
        if not resp.is_success:
            raise HttpStatusError(url, resp.status_code, resp.reason_phrase)
        return resp

    resp = await with_retry(attempt, timeout=timeout, retries=retries, url=url, sleep=sleep)

    try:
        data = resp.json()
    except ValueError as e:
        raise ManifestError(url, f"Feed is not valid JSON: {e}") from e
    result = validate_feed(data)
    if not result.valid:
        details = "; ".join(f"{err.path or '<root>'}: {err.message}" for err in result.errors)
        raise ManifestError(url, f"Invalid feed document: {details}")
    return SkillFeed.from_dict(data)


async def fetch_skill_content(
    url: str,
    cache: CacheStore,
    *,
    client: httpx.AsyncClient,
    timeout: float = DEFAULT_TIMEOUT,
    retries: int = DEFAULT_RETRIES,
    cache_ttl: float = DEFAULT_CACHE_TTL,
    force_refresh: bool = False,
    sleep: SleepFn = asyncio.sleep,
) -> FetchResult:
    """Fetch skill content from `url`, serving fresh cache entries without I/O.

    Stale entries are revalidated with If-None-Match / If-Modified-Since; a 304
    answer only refreshes the entry's timestamp.
    """
    cache_key = create_cache_key(url)
    if force_refresh:
        cache.delete(cache_key)

    cached = cache.get(cache_key)
    if cached is not None and is_cache_valid(cached, cache_ttl):
        logger.debug("Cache hit for %s", url)
        return FetchResult(content=cached.content, from_cache=True, etag=cached.etag)

    headers = {"Accept": "text/markdown, text/plain, */*"}
    if cached is not None:
        if cached.etag:
            headers["If-None-Match"] = cached.etag
        if cached.last_modified:
            headers["If-Modified-Since"] = cached.last_modified

    async def attempt() -> httpx.Response:
        resp = await _get(client, url, headers)
        if resp.status_code == 304 and cached is not None:
            return resp
        if not resp.is_success:
            raise HttpStatusError(url, resp.status_code, resp.reason_phrase)
        return resp

    resp = await with_retry(attempt, timeout=timeout, retries=retries, url=url, sleep=sleep)

    if resp.status_code == 304 and cached is not None:
        logger.debug("Not modified: %s", url)
        cache.set(
            cache_key,
            CacheEntry(
                content=cached.content,
                cached_at=time.time(),
                etag=cached.etag,
                last_modified=cached.last_modified,
            ),
        )
        return FetchResult(content=cached.content, from_cache=True, etag=cached.etag)

    content = resp.text
    etag = resp.headers.get("etag")
    last_modified = resp.headers.get("last-modified")
    cache.set(
        cache_key,
        CacheEntry(content=content, cached_at=time.time(), etag=etag, last_modified=last_modified),
    )
    return FetchResult(content=content, from_cache=False, etag=etag)


def resolve_url(base_url: str, path: str) -> str:
    """Resolve a skill `content_url` against the origin of its feed URL.

    Absolute http(s) URLs are returned unchanged. Relative paths are joined to
    the feed's scheme and host, not to the feed's own path.
    """
    if path.startswith(("http://", "https://")):
        return path
    parts = urlsplit(base_url)
    host = parts.netloc.rpartition("@")[2]
    return urljoin(f"{parts.scheme}://{host}/", path)
