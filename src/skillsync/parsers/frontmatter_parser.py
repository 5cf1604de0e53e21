"""Frontmatter parser for skill Markdown files.

A skill file may start with a YAML block delimited by `---` lines:

    ---
    id: commit-messages
    tags: [git, style]
    ---
    # Writing commit messages
    ...

The block becomes `ParsedDocument.metadata`; the remainder is the body text.
Files without a block parse to empty metadata and the unchanged text.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from skillsync.exceptions import ParsingError

from .base_parser import BaseParser, ParsedDocument

_FRONTMATTER_RE = re.compile(r"\A\ufeff?---[ \t]*\r?\n(.*?)(?:\r?\n)?^---[ \t]*(?:\r?\n|\Z)", re.S | re.M)


class FrontmatterParser(BaseParser):
    """Split a leading YAML frontmatter block from the Markdown body."""

    def can_parse(self, path: Path) -> bool:
        return path.suffix.lower() in {".md", ".mdx"}

    def parse_content(
        self, raw: str, *, metadata: Optional[Dict[str, Any]] = None
    ) -> ParsedDocument:
        match = _FRONTMATTER_RE.match(raw)
        if not match:
            return ParsedDocument(text=raw, metadata=dict(metadata or {}))

        try:
            data = yaml.safe_load(match.group(1)) or {}
        except yaml.YAMLError as e:
            raise ParsingError(f"Invalid frontmatter: {e}") from e
        if not isinstance(data, dict):
            raise ParsingError("Frontmatter must be a mapping of keys to values")

        merged: Dict[str, Any] = dict(metadata or {})
        merged.update(data)
        return ParsedDocument(text=raw[match.end() :], metadata=merged)
