"""Subscription client that synchronizes skills from remote feeds.

A sync pass runs in two stages. First every enabled subscription's feed is
fetched, then the skills selected from those feeds are fetched through the
content cache. Both stages run in fixed batches of at most `concurrent`
requests; the next batch starts only when the whole previous batch settled.
A feed or skill that cannot be retrieved is logged and reported in
`SyncResult.failures`; it never aborts the pass.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar, Union

import httpx

from skillsync.cache import CacheStore, FileCache, MemoryCache, NullCache
from skillsync.config import (
    DEFAULT_CACHE_TTL,
    DEFAULT_CONCURRENT,
    DEFAULT_RETRIES,
    CacheConfig,
    FetchConfig,
    SkillsSubscription,
    Subscription,
    load_subscription_config,
)
from skillsync.exceptions import FetchError
from skillsync.fetcher import DEFAULT_TIMEOUT, SleepFn, fetch_feed, fetch_skill_content, resolve_url
from skillsync.models import FetchPlanEntry, ResolvedSkill, SkillFeed, SyncFailure, SyncResult
from skillsync.resolver import enabled_subscriptions, resolve_fetch_plan, select_skills

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

USER_AGENT = "skillsync/0.1"


def _first(*values: Any) -> Any:
    return next((v for v in values if v is not None), None)


async def run_in_batches(
    items: Sequence[T], limit: int, func: Callable[[T], Awaitable[R]]
) -> List[Tuple[T, Union[R, FetchError]]]:
    """Apply `func` to `items`, at most `limit` at a time, in input order.

    `FetchError` outcomes are returned in place of results. Any other exception
    is re-raised once its batch has settled.
    """
    out: List[Tuple[T, Union[R, FetchError]]] = []
    step = max(1, int(limit))
    for start in range(0, len(items), step):
        batch = items[start : start + step]
        results = await asyncio.gather(*(func(item) for item in batch), return_exceptions=True)
        for item, result in zip(batch, results):
            if isinstance(result, BaseException) and not isinstance(result, FetchError):
                raise result
            out.append((item, result))
    return out


def _default_cache(cfg: CacheConfig) -> CacheStore:
    if not cfg.enabled:
        return NullCache()
    if cfg.directory:
        return FileCache(cfg.directory)
    return MemoryCache()


class SkillsClient:
    """Fetch and manage skill subscriptions.

    Parameters
    ----------
    config:
        Subscription configuration. Its `fetch` and `cache` sections take
        precedence over the keyword arguments below.
    cache:
        Cache store to use. An injected store is shared with the caller;
        otherwise one is built from `config.cache`.
    timeout:
        Per-attempt timeout in seconds (the subscription file uses milliseconds).
    retries:
        Retries after the first failed attempt.
    concurrent:
        Maximum number of requests in flight.
    cache_ttl:
        Seconds during which cached content is served without revalidation.
    transport:
        Optional httpx transport, e.g. `httpx.MockTransport` in tests.
    """

    def __init__(
        self,
        config: SkillsSubscription,
        *,
        cache: Optional[CacheStore] = None,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
        concurrent: Optional[int] = None,
        cache_ttl: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        fetch_cfg = config.fetch or FetchConfig()
        cache_cfg = config.cache or CacheConfig()
        self._config = config
        config_timeout = fetch_cfg.timeout / 1000 if fetch_cfg.timeout is not None else None
        self.timeout: float = _first(config_timeout, timeout, DEFAULT_TIMEOUT)
        self.retries: int = _first(fetch_cfg.retries, retries, DEFAULT_RETRIES)
        self.concurrent: int = _first(fetch_cfg.concurrent, concurrent, DEFAULT_CONCURRENT)
        self.cache_ttl: int = _first(cache_cfg.ttl, cache_ttl, DEFAULT_CACHE_TTL)
        self.cache: CacheStore = cache if cache is not None else _default_cache(cache_cfg)
        self.feed_cache: Dict[str, SkillFeed] = {}
        self._transport = transport
        self._sleep = sleep

    @classmethod
    def from_config(cls, config: SkillsSubscription, **kwargs: Any) -> SkillsClient:
        """Create a client from a subscription configuration object."""
        return cls(config, **kwargs)

    @classmethod
    def from_urls(cls, urls: Sequence[str], **kwargs: Any) -> SkillsClient:
        """Create a client subscribed to every skill of each feed URL."""
        config = SkillsSubscription(subscriptions=[Subscription(url=u, skills="*") for u in urls])
        return cls(config, **kwargs)

    @classmethod
    def from_file(cls, path: Union[str, Path], **kwargs: Any) -> SkillsClient:
        """Create a client from a JSON subscription file."""
        return cls(load_subscription_config(path), **kwargs)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
            headers={"User-Agent": USER_AGENT},
        )

    # ----- Feeds -----

    async def _fetch_feeds(
        self,
        client: httpx.AsyncClient,
        subscriptions: Sequence[Subscription],
        failures: List[SyncFailure],
    ) -> Dict[str, SkillFeed]:
        feeds: Dict[str, SkillFeed] = {}

        async def fetch_one(sub: Subscription) -> SkillFeed:
            return await fetch_feed(
                sub.url, client=client, timeout=self.timeout, retries=self.retries, sleep=self._sleep
            )

        outcomes = await run_in_batches(enabled_subscriptions(subscriptions), self.concurrent, fetch_one)
        for sub, outcome in outcomes:
            if isinstance(outcome, FetchError):
                logger.warning("Failed to fetch feed %s: %s", sub.url, outcome)
                failures.append(SyncFailure(stage="feed", url=sub.url, error=outcome))
                continue
            feeds[sub.url] = outcome
            self.feed_cache[sub.url] = outcome
        return feeds

    async def fetch_feeds(self) -> Dict[str, SkillFeed]:
        """Fetch all enabled feeds, keyed by subscription URL. Failed feeds are omitted."""
        async with self._client() as client:
            return await self._fetch_feeds(client, list(self._config.subscriptions), [])

    # ----- Skills -----

    async def sync(
        self,
        *,
        force_refresh: bool = False,
        skill_ids: Optional[Sequence[str]] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> SyncResult:
        """Run a full sync pass and return the skills retrieved plus any failures.

        Remote failures never raise; inspect `SyncResult.failures` instead.
        """
        result = SyncResult()
        subscriptions = list(self._config.subscriptions)
        async with self._client() as client:
            result.feeds = await self._fetch_feeds(client, subscriptions, result.failures)
            plan = resolve_fetch_plan(subscriptions, result.feeds, skill_ids=skill_ids, tags=tags)

            async def fetch_one(entry: FetchPlanEntry) -> ResolvedSkill:
                try:
                    url = resolve_url(entry.feed_url, entry.skill.content_url)
                except ValueError as e:
                    raise FetchError(entry.skill.content_url, f"Invalid content URL: {e}") from e
                fetched = await fetch_skill_content(
                    url,
                    self.cache,
                    client=client,
                    timeout=self.timeout,
                    retries=self.retries,
                    cache_ttl=self.cache_ttl,
                    force_refresh=force_refresh,
                    sleep=self._sleep,
                )
                return ResolvedSkill(
                    skill=entry.skill,
                    content=fetched.content,
                    feed_url=entry.feed_url,
                    feed_name=entry.feed_name,
                )

            for entry, outcome in await run_in_batches(plan, self.concurrent, fetch_one):
                if isinstance(outcome, FetchError):
                    logger.warning("Failed to fetch skill %s from %s: %s", entry.skill.id, entry.feed_url, outcome)
                    result.failures.append(SyncFailure(stage="skill", url=outcome.url, error=outcome))
                    continue
                result.skills.append(outcome)

        logger.info(
            "Synced %d skill(s) from %d feed(s), %d failure(s)",
            len(result.skills),
            len(result.feeds),
            len(result.failures),
        )
        return result

    async def fetch_all(
        self,
        *,
        force_refresh: bool = False,
        skill_ids: Optional[Sequence[str]] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> List[ResolvedSkill]:
        """Fetch all subscribed skills with their content, in fetch-plan order."""
        result = await self.sync(force_refresh=force_refresh, skill_ids=skill_ids, tags=tags)
        return result.skills

    async def fetch_skill(self, skill_id: str) -> Optional[ResolvedSkill]:
        """Fetch a single skill by id; the highest-priority match wins."""
        skills = await self.fetch_all(skill_ids=[skill_id])
        return skills[0] if skills else None

    async def fetch_by_tag(self, tag: str) -> List[ResolvedSkill]:
        return await self.fetch_all(tags=[tag])

    async def list_skills(self) -> List[FetchPlanEntry]:
        """List subscribed skills without fetching their content.

        Entries follow subscription order, then feed order.
        """
        subscriptions = list(self._config.subscriptions)
        feeds = await self.fetch_feeds()
        out: List[FetchPlanEntry] = []
        for sub in enabled_subscriptions(subscriptions):
            feed = feeds.get(sub.url)
            if feed is None:
                continue
            for skill in select_skills(sub, feed):
                out.append(FetchPlanEntry(skill=skill, feed_url=sub.url, feed_name=feed.name, priority=sub.priority))
        return out

    # ----- Configuration -----

    def clear_cache(self) -> None:
        self.cache.clear()
        self.feed_cache.clear()

    def get_config(self) -> SkillsSubscription:
        return self._config

    def add_subscription(self, subscription: Subscription) -> None:
        self._config.subscriptions.append(subscription)

    def remove_subscription(self, url: str) -> None:
        """Remove every subscription with the given URL."""
        self._config.subscriptions = [s for s in self._config.subscriptions if s.url != url]
