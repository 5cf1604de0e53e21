"""Abstract base classes and data structures for skill file parsers.

Parsers turn raw skill text (Markdown with an optional frontmatter block)
into body text, heading structure and metadata.

Concrete implementations should subclass `BaseParser` and implement
`can_parse()` and `parse_content()`.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass(slots=True)
class SectionInfo:
    """A heading within a skill document.

    Attributes
    ----------
    title: str
        The human-readable heading text.
    level: int
        A hierarchical level where 1 is top-level (H1), 2 is H2, etc.
    """

    title: str
    level: int


@dataclass(slots=True)
class ParsedDocument:
    """Container for parsed document outputs."""

    text: str = ""
    sections: List[SectionInfo] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


class BaseParser(ABC):
    """Abstract parser interface."""

    @abstractmethod
    def can_parse(self, path: Path) -> bool:
        """Return True if this parser can handle the given file/path."""

    @abstractmethod
    def parse_content(
        self, raw: str, *, metadata: Optional[Dict[str, Any]] = None
    ) -> ParsedDocument:
        """Parse raw text and return a `ParsedDocument`.

        Implementations should raise `skillsync.exceptions.ParsingError` on failure.
        """
        raise NotImplementedError

    def parse(self, path: Path) -> ParsedDocument:
        """Parse a file from disk."""
        raw = path.read_text(encoding="utf-8")
        return self.parse_content(raw, metadata={"source_path": str(path)})
