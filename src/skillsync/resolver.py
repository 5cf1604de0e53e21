"""Turn subscriptions and fetched feeds into an ordered fetch plan."""

from __future__ import annotations

from typing import Iterable, List, Mapping, Optional, Sequence

from skillsync.config import Subscription
from skillsync.models import FetchPlanEntry, Skill, SkillFeed


def enabled_subscriptions(subscriptions: Iterable[Subscription]) -> List[Subscription]:
    return [s for s in subscriptions if s.enabled]


def select_skills(subscription: Subscription, feed: SkillFeed) -> List[Skill]:
    """Skills of `feed` covered by the subscription's filter, in feed order.

    Ids listed in the subscription but missing from the feed are ignored.
    """
    if subscription.skills == "*":
        return list(feed.skills)
    wanted = set(subscription.skills)
    return [s for s in feed.skills if s.id in wanted]


def matches_filters(
    skill: Skill,
    *,
    skill_ids: Optional[Sequence[str]] = None,
    tags: Optional[Sequence[str]] = None,
) -> bool:
    if skill_ids is not None and skill.id not in skill_ids:
        return False
    if tags is not None and not any(t in tags for t in skill.tags or []):
        return False
    return True


def resolve_fetch_plan(
    subscriptions: Iterable[Subscription],
    feeds: Mapping[str, SkillFeed],
    *,
    skill_ids: Optional[Sequence[str]] = None,
    tags: Optional[Sequence[str]] = None,
) -> List[FetchPlanEntry]:
    """Build the list of skills to fetch, highest subscription priority first.

    Subscriptions whose feed is absent from `feeds` (their fetch failed) are
    skipped. Equal priorities keep subscription order, then feed order.
    Duplicate skill ids across feeds are all kept.
    """
    plan: List[FetchPlanEntry] = []
    for sub in enabled_subscriptions(subscriptions):
        feed = feeds.get(sub.url)
        if feed is None:
            continue
        for skill in select_skills(sub, feed):
            if not matches_filters(skill, skill_ids=skill_ids, tags=tags):
                continue
            plan.append(
                FetchPlanEntry(skill=skill, feed_url=sub.url, feed_name=feed.name, priority=sub.priority)
            )
    # sorted() is stable
    return sorted(plan, key=lambda entry: -entry.priority)
