"""Custom exception hierarchy for skillsync.

These exceptions allow callers to discriminate error categories
and handle them appropriately while preserving the original context.
"""

from __future__ import annotations

from typing import Optional


class SkillSyncError(Exception):
    """Base class for all skillsync exceptions."""


class ConfigError(SkillSyncError):
    """Raised when configuration loading or validation fails."""


class ParsingError(SkillSyncError):
    """Raised when a skill file fails to parse."""


class FetchError(SkillSyncError):
    """Raised when a remote feed or skill cannot be retrieved."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"{message} ({url})")
        self.url = url


class TransportError(FetchError):
    """Raised on connection failures, timeouts and aborted requests."""


class HttpStatusError(FetchError):
    """Raised when the origin answers with a non-success status."""

    def __init__(self, url: str, status_code: int, reason: Optional[str] = None) -> None:
        super().__init__(url, f"HTTP {status_code} {reason or ''}".rstrip())
        self.status_code = status_code
        self.reason = reason or ""


class ManifestError(FetchError, ConfigError):
    """Raised when a fetched feed is not valid JSON or not a valid feed document."""
