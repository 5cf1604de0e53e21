"""Skill subscription tools for FastMCP.

Expose the subscription client to agents: list, fetch, search and format
synced skills for use as model context.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from fastmcp import FastMCP

from skillsync.client import SkillsClient
from skillsync.models import ResolvedSkill
from skillsync.parsers.markdown_parser import MarkdownParser
from skillsync.search.ephemeral import search_skills_ephemeral


def format_skills_for_context(skills: List[ResolvedSkill]) -> str:
    """Render skills as one Markdown block suitable for a system prompt."""
    if not skills:
        return "No skills available."
    sections = [f"## {s.name} (v{s.version})\n\n{s.content}" for s in skills]
    return "# Available Skills\n\n" + "\n\n---\n\n".join(sections)


def register_skills_tools(mcp: FastMCP, get_state: Callable[[], Any]) -> None:
    """Register skill tools on the given FastMCP instance.

    The `get_state` callable should return an object with attribute `client`
    holding a `SkillsClient` (or None when no subscriptions are configured).
    """

    md_parser = MarkdownParser()

    def _get_client() -> SkillsClient:
        state = get_state()
        client = getattr(state, "client", None)
        if client is None:
            raise RuntimeError(
                "No subscriptions configured. Set SKILLSYNC_CLIENT__SUBSCRIPTIONS_FILE."
            )
        return client

    @mcp.tool
    async def skills_list() -> List[Dict[str, Any]]:
        """List subscribed skills (metadata only, no content)."""
        entries = await _get_client().list_skills()
        return [
            {
                "id": e.skill.id,
                "name": e.skill.name,
                "version": e.skill.version,
                "description": e.skill.description,
                "tags": e.skill.tags or [],
                "feed_name": e.feed_name,
                "feed_url": e.feed_url,
            }
            for e in entries
        ]

    @mcp.tool
    async def skills_fetch(
        skill_ids: Optional[List[str]] = None,
        tags: Optional[List[str]] = None,
        force_refresh: bool = False,
    ) -> Dict[str, Any]:
        """Sync subscribed skills and return their content.

        Parameters
        ----------
        skill_ids: list[str] | None
            Only fetch these skill ids.
        tags: list[str] | None
            Only fetch skills carrying at least one of these tags.
        force_refresh: bool
            Ignore cached content and validators.
        """
        result = await _get_client().sync(
            force_refresh=force_refresh, skill_ids=skill_ids, tags=tags
        )
        return {
            "skills": [s.to_dict() for s in result.skills],
            "failures": [str(f) for f in result.failures],
        }

    @mcp.tool
    async def skills_get(skill_id: str) -> Dict[str, Any]:
        """Fetch one skill by id, with its heading outline."""
        sid = (skill_id or "").strip()
        if not sid:
            raise ValueError("skill_id is required")
        skill = await _get_client().fetch_skill(sid)
        if skill is None:
            raise ValueError(f"Skill not found: '{sid}'")
        doc = md_parser.parse_content(skill.content)
        out = skill.to_dict()
        out["sections"] = [{"title": s.title, "level": s.level} for s in doc.sections]
        return out

    @mcp.tool
    async def skills_by_tag(tag: str) -> List[Dict[str, Any]]:
        """Fetch all subscribed skills carrying `tag`."""
        skills = await _get_client().fetch_by_tag(tag)
        return [s.to_dict() for s in skills]

    @mcp.tool
    async def skills_search(query: str, k: Optional[int] = 5) -> List[Dict[str, Any]]:
        """Search synced skills and return top-k snippets."""
        if not query or not str(query).strip():
            return []
        skills = await _get_client().fetch_all()
        return search_skills_ephemeral(skills, query, k=int(k or 5))

    @mcp.tool
    async def skills_context(query: Optional[str] = None, k: Optional[int] = 5) -> str:
        """Format synced skills as a system-prompt block.

        With `query`, only the best matching skills are included.
        """
        skills = await _get_client().fetch_all()
        if query and query.strip():
            hits = search_skills_ephemeral(skills, query, k=int(k or 5))
            # Ids may repeat across feeds, so map hits back by index
            skills = [skills[h["docnum"]] for h in hits]
        return format_skills_for_context(skills)

    @mcp.tool
    def skills_clear_cache() -> str:
        """Drop cached skill content and feeds."""
        _get_client().clear_cache()
        return "ok"
