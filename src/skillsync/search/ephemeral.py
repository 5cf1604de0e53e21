"""Ephemeral in-memory search over synced skills using Whoosh.

Builds a temporary RAM index for a fetch->index->search cycle with no
persistence. Skill names, descriptions, tags and triggers are indexed next to
the content so short trigger phrases find their skill.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Tuple

from whoosh import scoring
from whoosh.analysis import StemmingAnalyzer
from whoosh.fields import ID, KEYWORD, NUMERIC, TEXT, Schema
from whoosh.filedb.filestore import RamStorage
from whoosh.qparser import MultifieldParser, OrGroup
from whoosh.qparser.common import QueryParserError

from skillsync.models import ResolvedSkill


def _make_schema() -> Schema:
    analyzer = StemmingAnalyzer()
    return Schema(
        docnum=NUMERIC(stored=True, unique=True),
        title=TEXT(stored=True, analyzer=analyzer, field_boost=1.8),
        summary=TEXT(analyzer=analyzer, field_boost=1.4),
        keywords=KEYWORD(lowercase=True, commas=True, scorable=True, field_boost=1.6),
        # Store content for snippet highlighting
        content=TEXT(stored=True, analyzer=analyzer),
        skill_id=ID(stored=True),
        feed_name=ID(stored=True),
        feed_url=ID(stored=True),
    )


def _to_index_rows(skills: List[ResolvedSkill]) -> Iterable[Tuple[int, Dict[str, Any]]]:
    for i, s in enumerate(skills):
        keywords = [*(s.skill.tags or []), *(s.skill.triggers or [])]
        yield i, {
            "title": s.name,
            "summary": s.skill.description or "",
            "keywords": ",".join(keywords),
            "content": s.content or "",
            "skill_id": s.id,
            "feed_name": s.feed_name,
            "feed_url": s.feed_url,
        }


def search_skills_ephemeral(
    skills: List[ResolvedSkill], query: str, *, k: int = 5
) -> List[Dict[str, Any]]:
    """Search resolved skills with an in-memory Whoosh index.

    Returns list of dicts: {score, snippet, title, skill_id, feed_name, feed_url, docnum}
    where `docnum` is the hit's index in `skills`.
    """
    if not query or not str(query).strip() or not skills:
        return []

    schema = _make_schema()
    storage = RamStorage()
    idx = storage.create_index(schema)

    writer = idx.writer(limitmb=32)
    for docnum, row in _to_index_rows(skills):
        writer.add_document(docnum=docnum, **row)
    writer.commit()

    with idx.searcher(weighting=scoring.BM25F()) as searcher:
        parser = MultifieldParser(
            ["title", "summary", "keywords", "content"], schema=idx.schema, group=OrGroup
        )
        try:
            q = parser.parse(query)
        except QueryParserError:
            # Fall back to a phrase of the raw text
            q = parser.parse('"' + query.replace('"', " ") + '"')
        results = searcher.search(q, limit=max(1, int(k)))
        results.fragmenter.charlimit = 300
        out: List[Dict[str, Any]] = []
        for hit in results:
            out.append(
                {
                    "score": float(hit.score or 0.0),
                    "snippet": hit.highlights("content", top=2) or "",
                    "title": hit.get("title", ""),
                    "skill_id": hit.get("skill_id", ""),
                    "feed_name": hit.get("feed_name", ""),
                    "feed_url": hit.get("feed_url", ""),
                    "docnum": int(hit["docnum"]),
                }
            )
    return out
