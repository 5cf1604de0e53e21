"""HTML parser extracting visible text and heading sections.

Used on the HTML rendered from skill Markdown so outlines come from the same
structure a reader sees.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup  # type: ignore[import-untyped]

from .base_parser import BaseParser, ParsedDocument, SectionInfo


class HTMLParser(BaseParser):
    """Parser for HTML content."""

    def can_parse(self, path: Path) -> bool:
        return path.suffix.lower() in {".html", ".htm"}

    def parse_content(
        self, raw: str, *, metadata: Optional[Dict[str, Any]] = None
    ) -> ParsedDocument:
        """Parse an HTML string into text plus h1-h6 sections in document order."""
        soup = BeautifulSoup(raw, "html.parser")
        text = soup.get_text(" ", strip=True)

        sections: List[SectionInfo] = []
        for tag in soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"]):
            title = tag.get_text(" ", strip=True)
            if title:
                sections.append(SectionInfo(title=title, level=int(tag.name[1])))

        return ParsedDocument(text=text, sections=sections, metadata=metadata or {})
