from typing import List, Optional

from skillsync.config import Subscription
from skillsync.models import Skill, SkillFeed
from skillsync.resolver import matches_filters, resolve_fetch_plan, select_skills


def make_skill(skill_id: str, tags: Optional[List[str]] = None) -> Skill:
    return Skill(
        id=skill_id,
        name=skill_id.upper(),
        version="1.0.0",
        updated_at="2024-01-01T00:00:00.000Z",
        content_url=f"/skills/{skill_id}.md",
        tags=tags,
    )


def make_feed(name: str, *skills: Skill) -> SkillFeed:
    return SkillFeed(version="1.0", name=name, updated_at="2024-01-01T00:00:00.000Z", skills=list(skills))


def test_higher_priority_occurrence_comes_first() -> None:
    subs = [
        Subscription(url="https://low/feed.json", priority=0),
        Subscription(url="https://high/feed.json", priority=10),
    ]
    feeds = {
        "https://low/feed.json": make_feed("low", make_skill("x")),
        "https://high/feed.json": make_feed("high", make_skill("x")),
    }

    plan = resolve_fetch_plan(subs, feeds)

    assert [(e.skill.id, e.feed_name, e.priority) for e in plan] == [("x", "high", 10), ("x", "low", 0)]


def test_equal_priorities_keep_original_order() -> None:
    subs = [
        Subscription(url="https://a/feed.json", priority=1),
        Subscription(url="https://b/feed.json", priority=5),
        Subscription(url="https://c/feed.json", priority=1),
    ]
    feeds = {
        "https://a/feed.json": make_feed("a", make_skill("a1"), make_skill("a2")),
        "https://b/feed.json": make_feed("b", make_skill("b1")),
        "https://c/feed.json": make_feed("c", make_skill("c1")),
    }

    plan = resolve_fetch_plan(subs, feeds)

    assert [e.skill.id for e in plan] == ["b1", "a1", "a2", "c1"]
    assert plan[0].feed_url == "https://b/feed.json"


def test_disabled_and_failed_subscriptions_are_skipped() -> None:
    subs = [
        Subscription(url="https://off/feed.json", enabled=False),
        Subscription(url="https://failed/feed.json"),
        Subscription(url="https://ok/feed.json"),
    ]
    feeds = {
        "https://off/feed.json": make_feed("off", make_skill("off")),
        "https://ok/feed.json": make_feed("ok", make_skill("ok")),
    }

    plan = resolve_fetch_plan(subs, feeds)

    assert [e.skill.id for e in plan] == ["ok"]


def test_explicit_skill_list_keeps_feed_order_and_ignores_unknown_ids() -> None:
    feed = make_feed("f", make_skill("a"), make_skill("b"), make_skill("c"))
    sub = Subscription(url="https://f/feed.json", skills=["c", "missing", "a"])

    assert [s.id for s in select_skills(sub, feed)] == ["a", "c"]
    assert [s.id for s in select_skills(Subscription(url="https://f/feed.json"), feed)] == ["a", "b", "c"]


def test_caller_filters_on_ids_and_tags() -> None:
    subs = [Subscription(url="https://f/feed.json")]
    feeds = {
        "https://f/feed.json": make_feed(
            "f",
            make_skill("a", tags=["git"]),
            make_skill("b", tags=["python", "style"]),
            make_skill("c"),
        )
    }

    assert [e.skill.id for e in resolve_fetch_plan(subs, feeds, skill_ids=["b", "c"])] == ["b", "c"]
    assert [e.skill.id for e in resolve_fetch_plan(subs, feeds, tags=["style", "git"])] == ["a", "b"]
    assert resolve_fetch_plan(subs, feeds, skill_ids=["a"], tags=["python"]) == []


def test_matches_filters_without_filters_accepts_everything() -> None:
    assert matches_filters(make_skill("a")) is True
    assert matches_filters(make_skill("a"), tags=["git"]) is False


def test_duplicate_subscription_urls_are_independent() -> None:
    subs = [
        Subscription(url="https://f/feed.json", skills=["a"]),
        Subscription(url="https://f/feed.json", skills=["b"], priority=3),
    ]
    feeds = {"https://f/feed.json": make_feed("f", make_skill("a"), make_skill("b"))}

    plan = resolve_fetch_plan(subs, feeds)

    assert [(e.skill.id, e.priority) for e in plan] == [("b", 3), ("a", 0)]
