"""Markdown parser that converts skill bodies into a ParsedDocument.

Markdown is rendered to HTML with the `markdown` library, then `HTMLParser`
extracts plain text and the heading outline.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import markdown as md  # type: ignore[import-untyped]

from .base_parser import BaseParser, ParsedDocument
from .html_parser import HTMLParser


class MarkdownParser(BaseParser):
    """Parser for `.md` and `.mdx` skill bodies."""

    def __init__(self) -> None:
        self._html = HTMLParser()
        self._extensions = ["tables", "fenced_code", "sane_lists"]

    def can_parse(self, path: Path) -> bool:
        return path.suffix.lower() in {".md", ".mdx"}

    def parse_content(
        self, raw: str, *, metadata: Optional[Dict[str, Any]] = None
    ) -> ParsedDocument:
        html = md.markdown(raw, extensions=self._extensions)
        return self._html.parse_content(html, metadata=metadata or {})
