"""Shape checks for feed documents.

`validate_feed` never raises; it collects every problem it finds so callers
can report them together.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

VERSION_PATTERN = re.compile(r"[0-9]+\.[0-9]+")

_LIST_FIELDS = ("tags", "triggers", "dependencies")


@dataclass(slots=True)
class ValidationError:
    path: str
    message: str


@dataclass(slots=True)
class ValidationResult:
    valid: bool
    errors: List[ValidationError] = field(default_factory=list)
    # Summary {name, skill_count, version}, present only when valid
    feed: Optional[Dict[str, Any]] = None


def _is_non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and len(value) > 0


def _validate_skill(skill: Any, index: int, errors: List[ValidationError]) -> None:
    prefix = f"skills[{index}]"
    if not isinstance(skill, dict):
        errors.append(ValidationError(prefix, "skill must be an object"))
        return

    for key in ("id", "name", "version", "content_url"):
        if not _is_non_empty_str(skill.get(key)):
            errors.append(ValidationError(f"{prefix}.{key}", f"{key} is required"))
    if not isinstance(skill.get("updated_at"), str):
        errors.append(ValidationError(f"{prefix}.updated_at", "updated_at is required"))

    for key in _LIST_FIELDS:
        value = skill.get(key)
        if value is None:
            continue
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            errors.append(ValidationError(f"{prefix}.{key}", f"{key} must be an array of strings"))

    description = skill.get("description")
    if description is not None and not isinstance(description, str):
        errors.append(ValidationError(f"{prefix}.description", "description must be a string"))


def validate_feed(document: Any) -> ValidationResult:
    """Validate a decoded feed document."""
    errors: List[ValidationError] = []

    if not isinstance(document, dict):
        errors.append(ValidationError("", "feed must be an object"))
        return ValidationResult(valid=False, errors=errors)

    version = document.get("version")
    if not isinstance(version, str):
        errors.append(ValidationError("version", "version is required"))
    elif not VERSION_PATTERN.fullmatch(version):
        errors.append(ValidationError("version", "version must match format X.Y (e.g., 1.0)"))

    if not _is_non_empty_str(document.get("name")):
        errors.append(ValidationError("name", "name is required"))

    if not isinstance(document.get("updated_at"), str):
        errors.append(ValidationError("updated_at", "updated_at is required"))

    skills = document.get("skills")
    if not isinstance(skills, list):
        errors.append(ValidationError("skills", "skills must be an array"))
        skills = []

    seen: Dict[str, int] = {}
    for i, skill in enumerate(skills):
        _validate_skill(skill, i, errors)
        sid = skill.get("id") if isinstance(skill, dict) else None
        if _is_non_empty_str(sid):
            if sid in seen:
                errors.append(
                    ValidationError(
                        f"skills[{i}].id", f"duplicate skill id '{sid}' (first at skills[{seen[sid]}])"
                    )
                )
            else:
                seen[sid] = i

    if errors:
        return ValidationResult(valid=False, errors=errors)
    return ValidationResult(
        valid=True,
        errors=[],
        feed={"name": document["name"], "skill_count": len(skills), "version": version},
    )
