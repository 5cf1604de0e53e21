"""Subscribe to remote skill feeds and keep their content in sync."""

from skillsync.cache import CacheStore, FileCache, MemoryCache, NullCache, create_cache_key, is_cache_valid
from skillsync.client import SkillsClient
from skillsync.config import SkillsSubscription, Subscription, load_subscription_config
from skillsync.exceptions import (
    ConfigError,
    FetchError,
    HttpStatusError,
    ManifestError,
    ParsingError,
    SkillSyncError,
    TransportError,
)
from skillsync.fetcher import fetch_feed, fetch_skill_content, resolve_url, with_retry
from skillsync.models import (
    CacheEntry,
    FetchPlanEntry,
    FetchResult,
    ResolvedSkill,
    Skill,
    SkillFeed,
    SyncFailure,
    SyncResult,
)
from skillsync.resolver import resolve_fetch_plan
from skillsync.validation import ValidationResult, validate_feed

__all__ = [
    "CacheEntry",
    "CacheStore",
    "ConfigError",
    "FetchError",
    "FetchPlanEntry",
    "FetchResult",
    "FileCache",
    "HttpStatusError",
    "ManifestError",
    "MemoryCache",
    "NullCache",
    "ParsingError",
    "ResolvedSkill",
    "Skill",
    "SkillFeed",
    "SkillSyncError",
    "SkillsClient",
    "SkillsSubscription",
    "Subscription",
    "SyncFailure",
    "SyncResult",
    "TransportError",
    "ValidationResult",
    "create_cache_key",
    "fetch_feed",
    "fetch_skill_content",
    "is_cache_valid",
    "load_subscription_config",
    "resolve_fetch_plan",
    "resolve_url",
    "validate_feed",
    "with_retry",
]
