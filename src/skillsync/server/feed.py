"""Build a feed document from a directory of skill Markdown files.

Each `*.md` file (searched recursively) becomes one skill. Frontmatter keys
`id`, `name`, `description`, `version`, `tags`, `triggers` and
`dependencies` override the values derived from the file itself.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from skillsync.exceptions import ParsingError
from skillsync.models import Skill, SkillFeed
from skillsync.parsers.frontmatter_parser import FrontmatterParser

logger = logging.getLogger(__name__)

FEED_VERSION = "1.0"
DEFAULT_SKILL_VERSION = "1.0.0"

_parser = FrontmatterParser()


@dataclass(slots=True)
class FeedMetadata:
    name: str
    author: Optional[str] = None
    homepage: Optional[str] = None
    description: Optional[str] = None


@dataclass(slots=True)
class SkillFile:
    """A skill file split into frontmatter and body."""

    frontmatter: Dict[str, Any]
    content: str
    file_path: str  # relative to the skills directory, "/"-separated
    updated_at: datetime


def _iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _str_list(value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


def parse_skill_file(path: Path, base_dir: Path) -> SkillFile:
    """Read one skill file. Raises `ParsingError` on bad frontmatter."""
    raw = path.read_text(encoding="utf-8")
    parsed = _parser.parse_content(raw)
    mtime = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
    return SkillFile(
        frontmatter=parsed.metadata,
        content=parsed.text,
        file_path=path.relative_to(base_dir).as_posix(),
        updated_at=mtime,
    )


def generate_id(file_path: str) -> str:
    """Slug from a file name: `Git Commit_Style.md` -> `git-commit-style`."""
    stem = Path(file_path).stem.lower()
    return re.sub(r"[^a-z0-9]+", "-", stem).strip("-")


def generate_name(skill_id: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in skill_id.split("-"))


def to_skill(parsed: SkillFile) -> Skill:
    fm = parsed.frontmatter
    skill_id = str(fm.get("id") or generate_id(parsed.file_path))
    description = fm.get("description")
    return Skill(
        id=skill_id,
        name=str(fm.get("name") or generate_name(skill_id)),
        version=str(fm.get("version") or DEFAULT_SKILL_VERSION),
        updated_at=_iso(parsed.updated_at),
        content_url=f"/skills/{parsed.file_path}",
        description=str(description) if description is not None else None,
        tags=_str_list(fm.get("tags")),
        triggers=_str_list(fm.get("triggers")),
        dependencies=_str_list(fm.get("dependencies")),
    )


def generate_feed(skills_dir: Union[str, Path], metadata: FeedMetadata) -> SkillFeed:
    """Scan `skills_dir` and return the feed, skills sorted by name.

    Files with unparseable frontmatter are skipped with a warning, as are files
    whose id was already taken by an earlier path.
    """
    base = Path(skills_dir)
    parsed_files: List[SkillFile] = []
    for path in sorted(base.rglob("*.md")):
        if not path.is_file():
            continue
        try:
            parsed_files.append(parse_skill_file(path, base))
        except ParsingError as e:
            logger.warning("Skipping skill file %s: %s", path, e)

    by_id: Dict[str, Skill] = {}
    for parsed in parsed_files:
        skill = to_skill(parsed)
        if skill.id in by_id:
            logger.warning(
                "Skipping skill file %s: id '%s' already used by %s",
                parsed.file_path,
                skill.id,
                by_id[skill.id].content_url,
            )
            continue
        by_id[skill.id] = skill

    skills = sorted(by_id.values(), key=lambda s: s.name.casefold())
    latest = max(
        (p.updated_at for p in parsed_files),
        default=datetime.fromtimestamp(0, tz=timezone.utc),
    )
    return SkillFeed(
        version=FEED_VERSION,
        name=metadata.name,
        author=metadata.author,
        homepage=metadata.homepage,
        description=metadata.description,
        updated_at=_iso(latest),
        skills=skills,
    )


def get_skill_content(skills_dir: Union[str, Path], skill_path: str) -> Optional[str]:
    """Return a skill's body without frontmatter, or None if it cannot be served.

    Paths that escape `skills_dir` are treated as missing.
    """
    base = Path(skills_dir).resolve()
    target = (base / skill_path).resolve()
    if not target.is_relative_to(base) or not target.is_file():
        return None
    try:
        return _parser.parse_content(target.read_text(encoding="utf-8")).text
    except (OSError, UnicodeDecodeError, ParsingError) as e:
        logger.debug("Cannot serve skill %s: %s", skill_path, e)
        return None
