"""
Cache key builders and invalidation rules.

Keys are deterministic functions of route parameters. A mutation lists every
key whose aggregate it can change; those keys are deleted so the next read
refetches from the server.
"""

from __future__ import annotations

from prepsync.curriculum.rules import ExperienceLevel

PREFIX = "prepsync"

GLOBAL_PROGRESS_KEY = f"{PREFIX}:global_progress"
DUE_REVIEWS_KEY = f"{PREFIX}:reviews_due"

# Local profile state
ONBOARDING_KEY = f"{PREFIX}:onboarding"
PATH_KEY = f"{PREFIX}:path"
EXPERIENCE_KEY = f"{PREFIX}:experience_level"
STREAK_KEY = f"{PREFIX}:streak"
BOOKMARKS_KEY = f"{PREFIX}:bookmarks"

AGGREGATE_PREFIXES = (
    f"{PREFIX}:topics",
    f"{PREFIX}:topic_agg",
    f"{PREFIX}:category_agg",
    f"{PREFIX}:section_agg",
    GLOBAL_PROGRESS_KEY,
    DUE_REVIEWS_KEY,
)


def _level(experience_level: str | ExperienceLevel | None) -> str:
    return ExperienceLevel.parse(experience_level).value


def topics_key(experience_level: str | ExperienceLevel | None = None) -> str:
    return f"{PREFIX}:topics:{_level(experience_level)}"


def topic_key(slug: str, experience_level: str | ExperienceLevel | None = None) -> str:
    return f"{PREFIX}:topic_agg:{slug}:{_level(experience_level)}"


def category_key(topic_slug: str, category_slug: str) -> str:
    return f"{PREFIX}:category_agg:{topic_slug}:{category_slug}"


def section_key(topic_slug: str, section_slug: str) -> str:
    return f"{PREFIX}:section_agg:{topic_slug}:{section_slug}"


def _topic_keys(topic_slug: str) -> list[str]:
    # A topic aggregate and the catalog progress column are cached per tier
    keys = [topic_key(topic_slug, level) for level in ExperienceLevel]
    keys += [topics_key(level) for level in ExperienceLevel]
    return keys


def keys_for_section_toggle(
    topic_slug: str,
    category_slug: str | None,
    section_slug: str,
) -> list[str]:
    """Keys made stale by marking one section complete/incomplete."""
    keys = [section_key(topic_slug, section_slug)]
    if category_slug:
        keys.append(category_key(topic_slug, category_slug))
    keys += _topic_keys(topic_slug)
    keys.append(GLOBAL_PROGRESS_KEY)
    return keys


def keys_for_category_toggle(
    topic_slug: str,
    category_slug: str,
    section_slugs: list[str] | tuple[str, ...] = (),
) -> list[str]:
    """Keys made stale by marking a whole category complete/incomplete."""
    keys = [category_key(topic_slug, category_slug)]
    keys += [section_key(topic_slug, slug) for slug in section_slugs]
    keys += _topic_keys(topic_slug)
    keys.append(GLOBAL_PROGRESS_KEY)
    return keys


def keys_for_review_update(topic_slug: str, section_slug: str) -> list[str]:
    """Keys made stale by rating a review."""
    return [DUE_REVIEWS_KEY, section_key(topic_slug, section_slug)]
