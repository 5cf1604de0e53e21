"""Domain records shared by the client and the feed server.

`SkillFeed` and `Skill` mirror the feed JSON document; `from_dict` expects a
document that already passed `skillsync.validation.validate_feed`.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


def _str_list(value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    return [str(v) for v in value]


@dataclass(slots=True)
class Skill:
    """One entry of a feed's `skills` array."""

    id: str
    name: str
    version: str
    updated_at: str
    content_url: str
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    triggers: Optional[List[str]] = None
    dependencies: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Skill:
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            version=str(data["version"]),
            updated_at=str(data["updated_at"]),
            content_url=str(data["content_url"]),
            description=data.get("description"),
            tags=_str_list(data.get("tags")),
            triggers=_str_list(data.get("triggers")),
            dependencies=_str_list(data.get("dependencies")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the wire shape, omitting unset optional fields."""
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass(slots=True)
class SkillFeed:
    """A feed manifest listing the skills published by one origin."""

    version: str
    name: str
    updated_at: str
    skills: List[Skill] = field(default_factory=list)
    author: Optional[str] = None
    homepage: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SkillFeed:
        return cls(
            version=str(data["version"]),
            name=str(data["name"]),
            updated_at=str(data["updated_at"]),
            skills=[Skill.from_dict(s) for s in data.get("skills") or []],
            author=data.get("author"),
            homepage=data.get("homepage"),
            description=data.get("description"),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"version": self.version, "name": self.name}
        for key in ("author", "homepage", "description"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        out["updated_at"] = self.updated_at
        out["skills"] = [s.to_dict() for s in self.skills]
        return out


@dataclass(slots=True)
class ResolvedSkill:
    """A skill whose content has been fetched successfully."""

    skill: Skill
    content: str
    feed_url: str
    feed_name: str

    @property
    def id(self) -> str:
        return self.skill.id

    @property
    def name(self) -> str:
        return self.skill.name

    @property
    def version(self) -> str:
        return self.skill.version

    @property
    def tags(self) -> Optional[List[str]]:
        return self.skill.tags

    def to_dict(self) -> Dict[str, Any]:
        out = self.skill.to_dict()
        out.update(content=self.content, feed_url=self.feed_url, feed_name=self.feed_name)
        return out


@dataclass(slots=True)
class CacheEntry:
    """Cached skill content with the validators it was served with."""

    content: str
    cached_at: float  # POSIX seconds
    etag: Optional[str] = None
    last_modified: Optional[str] = None


@dataclass(slots=True)
class FetchResult:
    content: str
    from_cache: bool
    etag: Optional[str] = None


@dataclass(slots=True)
class FetchPlanEntry:
    """A skill scheduled for content retrieval during one sync pass."""

    skill: Skill
    feed_url: str
    feed_name: str
    priority: int = 0


@dataclass(slots=True)
class SyncFailure:
    """A feed or skill that could not be retrieved during a sync pass."""

    stage: str  # "feed" or "skill"
    url: str
    error: Exception

    def __str__(self) -> str:
        return f"{self.stage} {self.url}: {self.error}"


@dataclass(slots=True)
class SyncResult:
    skills: List[ResolvedSkill] = field(default_factory=list)
    failures: List[SyncFailure] = field(default_factory=list)
    feeds: Dict[str, SkillFeed] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """True when every feed and skill of the pass was retrieved."""
        return not self.failures
