from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from skillsync.exceptions import ConfigError

DEFAULT_TIMEOUT_MS = 10_000
DEFAULT_RETRIES = 3
DEFAULT_CONCURRENT = 5
DEFAULT_CACHE_TTL = 3600


class AppConfig(BaseModel):
    """Application-specific configuration values."""

    log_level: str = "INFO"
    # Transport settings for FastMCP: "stdio" (default), "http", or "sse"
    transport: Literal["stdio", "http", "sse"] = "stdio"
    host: str = "127.0.0.1"
    port: int = 8000


class ClientConfig(BaseModel):
    """Defaults for the subscription client, overridden by the subscription file."""

    subscriptions_file: Optional[str] = None
    timeout: int = DEFAULT_TIMEOUT_MS  # milliseconds
    retries: int = DEFAULT_RETRIES
    concurrent: int = DEFAULT_CONCURRENT
    cache_ttl: int = DEFAULT_CACHE_TTL  # seconds
    cache_dir: Optional[str] = None


class ServerConfig(BaseModel):
    """Feed server configuration values."""

    skills_dir: str = "./skills"
    host: str = "127.0.0.1"
    port: int = 3001
    feed_name: str = "my-skills"
    author: Optional[str] = None
    homepage: Optional[str] = None
    description: Optional[str] = None
    cors: bool = True
    etag: bool = True


class Settings(BaseSettings):
    """Top-level settings loaded from environment variables and .env only."""

    model_config = SettingsConfigDict(
        env_prefix="SKILLSYNC_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    app: AppConfig = AppConfig()
    client: ClientConfig = ClientConfig()
    server: ServerConfig = ServerConfig()


def load_settings() -> Settings:
    """Load settings from environment variables and .env only."""
    return Settings()  # type: ignore[call-arg]


# ----- Subscription file -----


class Subscription(BaseModel):
    """One feed subscription as written in a subscription file."""

    url: str = Field(min_length=1)
    name: Optional[str] = None
    # "*" subscribes to every skill in the feed
    skills: Union[Literal["*"], List[str]] = "*"
    enabled: bool = True
    priority: int = 0


class CacheConfig(BaseModel):
    enabled: bool = True
    ttl: Optional[int] = None  # seconds
    directory: Optional[str] = None


class FetchConfig(BaseModel):
    timeout: Optional[int] = None  # milliseconds
    retries: Optional[int] = Field(default=None, ge=0)
    concurrent: Optional[int] = Field(default=None, ge=1)


class SkillsSubscription(BaseModel):
    """A full subscription configuration: feeds plus cache and fetch tuning."""

    subscriptions: List[Subscription] = Field(default_factory=list)
    cache: Optional[CacheConfig] = None
    fetch: Optional[FetchConfig] = None


def parse_subscription_config(data: Dict[str, Any]) -> SkillsSubscription:
    """Validate a decoded subscription document.

    Raises `ConfigError` with the pydantic error details when the shape is wrong.
    """
    try:
        return SkillsSubscription.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid subscription configuration: {e}") from e


def load_subscription_config(path: Union[str, Path]) -> SkillsSubscription:
    """Read and validate a JSON subscription file."""
    p = Path(path)
    try:
        raw = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read subscription file {p}: {e}") from e
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Subscription file {p} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Subscription file {p} must contain a JSON object")
    return parse_subscription_config(data)
