import json
from typing import Any, Dict, List, Optional, Union

import httpx
import pytest
from fastmcp import Client, FastMCP

from skillsync.client import SkillsClient
from skillsync.config import SkillsSubscription, Subscription
from skillsync.mcp.tools import format_skills_for_context, register_skills_tools
from skillsync.models import ResolvedSkill, Skill

FEED_URL = "https://skills.example.com/feed.json"

FEED = {
    "version": "1.0",
    "name": "team",
    "updated_at": "2024-01-01T00:00:00.000Z",
    "skills": [
        {
            "id": "commits",
            "name": "Commit Messages",
            "version": "1.2.0",
            "updated_at": "2024-01-01T00:00:00.000Z",
            "content_url": "/skills/commits.md",
            "tags": ["git"],
        },
        {
            "id": "typing",
            "name": "Python Typing",
            "version": "1.0.0",
            "updated_at": "2024-01-01T00:00:00.000Z",
            "content_url": "/skills/typing.md",
            "tags": ["python"],
        },
    ],
}

CONTENT = {
    "https://skills.example.com/skills/commits.md": "# Commits\n\n## Subject line\n\nUse the imperative mood.\n",
    "https://skills.example.com/skills/typing.md": "# Typing\n\nAnnotate public functions.\n",
}


def handler(request: httpx.Request) -> httpx.Response:
    url = str(request.url)
    if url == FEED_URL:
        return httpx.Response(200, json=FEED)
    if url in CONTENT:
        return httpx.Response(200, text=CONTENT[url])
    return httpx.Response(404)


class DummyState:
    def __init__(self, client: Optional[SkillsClient]) -> None:
        self.client = client


def make_state() -> DummyState:
    client = SkillsClient(
        SkillsSubscription(subscriptions=[Subscription(url=FEED_URL)]),
        transport=httpx.MockTransport(handler),
        retries=0,
    )
    return DummyState(client)


def _extract_json_payload(result: Any) -> Union[Dict[str, Any], List[Dict[str, Any]], str]:
    if isinstance(result, (dict, list, str)):
        return result
    content = getattr(result, "content", None)
    if isinstance(content, list) and content:
        for item in content:
            text = getattr(item, "text", None)
            if isinstance(text, str):
                try:
                    return json.loads(text)
                except json.JSONDecodeError:
                    return text
    raise AssertionError("Unable to extract JSON payload from tool result")


def test_format_skills_for_context() -> None:
    assert format_skills_for_context([]) == "No skills available."

    skill = Skill(
        id="a", name="A", version="2.0.0", updated_at="2024-01-01T00:00:00.000Z", content_url="/a.md"
    )
    rendered = format_skills_for_context(
        [
            ResolvedSkill(skill=skill, content="first", feed_url=FEED_URL, feed_name="team"),
            ResolvedSkill(skill=skill, content="second", feed_url=FEED_URL, feed_name="team"),
        ]
    )
    assert rendered == "# Available Skills\n\n## A (v2.0.0)\n\nfirst\n\n---\n\n## A (v2.0.0)\n\nsecond"


@pytest.mark.asyncio
async def test_skills_list_fetch_and_get() -> None:
    mcp = FastMCP("test")
    state = make_state()
    register_skills_tools(mcp, get_state=lambda: state)

    client = Client(mcp)
    async with client:
        res_list = await client.call_tool("skills_list", {})
        res_fetch = await client.call_tool("skills_fetch", {"tags": ["git"]})
        res_get = await client.call_tool("skills_get", {"skill_id": "commits"})

    listing = _extract_json_payload(res_list)
    assert isinstance(listing, list)
    assert [s["id"] for s in listing] == ["commits", "typing"]
    assert listing[0]["feed_name"] == "team"

    fetched = _extract_json_payload(res_fetch)
    assert isinstance(fetched, dict)
    assert [s["id"] for s in fetched["skills"]] == ["commits"]
    assert fetched["failures"] == []

    got = _extract_json_payload(res_get)
    assert isinstance(got, dict)
    assert got["content"].startswith("# Commits")
    assert got["sections"] == [{"title": "Commits", "level": 1}, {"title": "Subject line", "level": 2}]


@pytest.mark.asyncio
async def test_skills_context_and_search() -> None:
    mcp = FastMCP("test")
    state = make_state()
    register_skills_tools(mcp, get_state=lambda: state)

    client = Client(mcp)
    async with client:
        res_context = await client.call_tool("skills_context", {})
        res_search = await client.call_tool("skills_search", {"query": "imperative", "k": 3})
        res_clear = await client.call_tool("skills_clear_cache", {})

    context = _extract_json_payload(res_context)
    assert isinstance(context, str)
    assert context.startswith("# Available Skills")
    assert "## Commit Messages (v1.2.0)" in context
    assert "## Python Typing (v1.0.0)" in context

    hits = _extract_json_payload(res_search)
    assert isinstance(hits, list) and hits
    assert hits[0]["skill_id"] == "commits"

    assert _extract_json_payload(res_clear) == "ok"


@pytest.mark.asyncio
async def test_tools_fail_without_subscriptions() -> None:
    mcp = FastMCP("test")
    state = DummyState(None)
    register_skills_tools(mcp, get_state=lambda: state)

    client = Client(mcp)
    async with client:
        with pytest.raises(Exception):
            await client.call_tool("skills_list", {})
        with pytest.raises(Exception):
            await client.call_tool("skills_get", {"skill_id": "  "})


@pytest.mark.asyncio
async def test_skills_context_keeps_the_matching_duplicate() -> None:
    def feed(name: str) -> Dict[str, Any]:
        return {
            "version": "1.0",
            "name": name,
            "updated_at": "2024-01-01T00:00:00.000Z",
            "skills": [dict(FEED["skills"][0])],
        }

    routes: Dict[str, Any] = {
        "https://high.example/feed.json": feed("high"),
        "https://low.example/feed.json": feed("low"),
        "https://high.example/skills/commits.md": "Plan the rollout first.",
        "https://low.example/skills/commits.md": "Squash before merging.",
    }

    def two_feeds(request: httpx.Request) -> httpx.Response:
        value = routes.get(str(request.url))
        if value is None:
            return httpx.Response(404)
        if isinstance(value, dict):
            return httpx.Response(200, json=value)
        return httpx.Response(200, text=value)

    client = SkillsClient(
        SkillsSubscription(
            subscriptions=[
                Subscription(url="https://low.example/feed.json", priority=0),
                Subscription(url="https://high.example/feed.json", priority=5),
            ]
        ),
        transport=httpx.MockTransport(two_feeds),
        retries=0,
    )
    state = DummyState(client)
    mcp = FastMCP("test")
    register_skills_tools(mcp, get_state=lambda: state)

    async with Client(mcp) as mcp_client:
        res_rollout = await mcp_client.call_tool("skills_context", {"query": "rollout"})
        res_squash = await mcp_client.call_tool("skills_context", {"query": "squash"})

    rollout = _extract_json_payload(res_rollout)
    assert isinstance(rollout, str)
    assert "Plan the rollout first." in rollout
    assert "Squash before merging." not in rollout

    squash = _extract_json_payload(res_squash)
    assert isinstance(squash, str)
    assert "Squash before merging." in squash
    assert "Plan the rollout first." not in squash
