"""
Progress sync service.

Keeps the local cache of server aggregates consistent with local mutations:

- Reads are stale-while-revalidate: ``cached_*`` returns the cached aggregate
  for instant display, ``load_*`` always refetches and overwrites the cache
  on success (a failed refetch leaves the cache as it was and re-raises).
- Mutations are optimistic: snapshot the prior value, apply the new value to
  the in-memory view, invalidate every cache key embedding the aggregate,
  call the server, and on failure restore the snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from loguru import logger

from prepsync.cache import keys
from prepsync.cache.store import CacheStore
from prepsync.client import CurriculumApiClient
from prepsync.curriculum.rules import ExperienceLevel, GoalId
from prepsync.curriculum.scheduler import CurriculumScheduler
from prepsync.models import DueReview, Node, ProgressStats, ReviewState
from prepsync.review.scheduler import ReviewScheduler


@dataclass
class CategoryView:
    """In-memory state of a category page."""

    topic_slug: str
    category_slug: str
    category: dict[str, Any] = field(default_factory=dict)
    topic: dict[str, Any] = field(default_factory=dict)
    sections: list[dict[str, Any]] = field(default_factory=list)
    progress: dict[str, bool] = field(default_factory=dict)

    @classmethod
    def from_aggregate(
        cls, topic_slug: str, category_slug: str, data: dict[str, Any]
    ) -> CategoryView:
        return cls(
            topic_slug=topic_slug,
            category_slug=category_slug,
            category=data.get("category") or {},
            topic=data.get("topic") or {},
            sections=list(data.get("sections") or []),
            progress=dict(data.get("progress") or {}),
        )

    def apply(self, data: dict[str, Any]) -> None:
        """Replace the view's content with a fresher aggregate."""
        fresh = CategoryView.from_aggregate(self.topic_slug, self.category_slug, data)
        self.category = fresh.category
        self.topic = fresh.topic
        self.sections = fresh.sections
        self.progress = fresh.progress

    def is_complete(self, section_slug: str) -> bool:
        return bool(self.progress.get(section_slug, False))

    @property
    def section_slugs(self) -> list[str]:
        return [s["slug"] for s in self.sections if "slug" in s]

    @property
    def all_studied(self) -> bool:
        slugs = self.section_slugs
        return bool(slugs) and all(self.is_complete(slug) for slug in slugs)

    @property
    def stats(self) -> ProgressStats:
        """Completion totals recomputed from the in-memory flags."""
        slugs = self.section_slugs
        done = sum(1 for slug in slugs if self.is_complete(slug))
        percentage = round(done * 100 / len(slugs)) if slugs else 0
        return ProgressStats(len(slugs), done, percentage)


@dataclass(frozen=True)
class ToggleOutcome:
    """Result of an optimistic mutation."""

    ok: bool
    completed: bool
    error: Exception | None = None


class ProgressSync:
    """
    Coordinates the API client, the cache and the pure schedulers.

    Single-threaded: all state changes happen on the event loop between
    awaits, so no locking is used.
    """

    def __init__(
        self,
        client: CurriculumApiClient,
        cache: CacheStore,
        scheduler: CurriculumScheduler | None = None,
        review_scheduler: ReviewScheduler | None = None,
    ):
        self.client = client
        self.cache = cache
        self.scheduler = scheduler or CurriculumScheduler()
        self.review_scheduler = review_scheduler or ReviewScheduler()

    def invalidate(self, cache_keys: list[str]) -> None:
        """Delete every listed key (idempotent)."""
        for key in cache_keys:
            self.cache.invalidate(key)
        logger.debug("Invalidated {} cache keys", len(cache_keys))

    # =========================================================================
    # Stale-While-Revalidate Reads
    # =========================================================================

    def cached_topics(self, experience_level: str | ExperienceLevel | None = None) -> list[Node] | None:
        data = self.cache.get(keys.topics_key(experience_level))
        if not isinstance(data, list):
            return None
        return [Node.from_dict(item) for item in data]

    async def load_topics(self, experience_level: str | ExperienceLevel | None = None) -> list[Node]:
        """Fetch the catalog and refresh its cache entry."""
        topics = await self.client.get_topics(experience_level)
        self.cache.put(keys.topics_key(experience_level), [t.to_dict() for t in topics])
        return topics

    def cached_topic(
        self, slug: str, experience_level: str | ExperienceLevel | None = None
    ) -> dict[str, Any] | None:
        return self.cache.get(keys.topic_key(slug, experience_level))

    async def load_topic(
        self, slug: str, experience_level: str | ExperienceLevel | None = None
    ) -> dict[str, Any]:
        data = await self.client.get_topic_aggregate(slug, experience_level)
        self.cache.put(keys.topic_key(slug, experience_level), data)
        return data

    def cached_category(self, topic_slug: str, category_slug: str) -> CategoryView | None:
        data = self.cache.get(keys.category_key(topic_slug, category_slug))
        if not isinstance(data, dict):
            return None
        return CategoryView.from_aggregate(topic_slug, category_slug, data)

    async def load_category(
        self,
        topic_slug: str,
        category_slug: str,
        view: CategoryView | None = None,
    ) -> CategoryView:
        """
        Fetch a category aggregate and refresh its cache entry.

        Args:
            view: Existing page state to update in place (e.g. one shown from cache)
        """
        data = await self.client.get_category_aggregate(topic_slug, category_slug)
        self.cache.put(keys.category_key(topic_slug, category_slug), data)
        if view is None:
            return CategoryView.from_aggregate(topic_slug, category_slug, data)
        view.apply(data)
        return view

    def cached_global_progress(self) -> list[Node] | None:
        data = self.cache.get(keys.GLOBAL_PROGRESS_KEY)
        if not isinstance(data, list):
            return None
        return [Node.from_dict(item) for item in data]

    async def load_global_progress(
        self, experience_level: str | ExperienceLevel | None = None
    ) -> list[Node]:
        """Per-topic completion across the whole catalog."""
        topics = await self.client.get_topics(experience_level)
        self.cache.put(keys.GLOBAL_PROGRESS_KEY, [t.to_dict() for t in topics])
        return topics

    def cached_due_reviews(self) -> list[DueReview] | None:
        data = self.cache.get(keys.DUE_REVIEWS_KEY)
        if not isinstance(data, dict):
            return None
        return [DueReview.from_dict(item) for item in data.get("reviews", [])]

    async def load_due_reviews(self) -> list[DueReview]:
        data = await self.client.get_due_reviews_payload()
        self.cache.put(keys.DUE_REVIEWS_KEY, data)
        return [DueReview.from_dict(item) for item in data.get("reviews", [])]

    # =========================================================================
    # Learning Path
    # =========================================================================

    async def personalized_path(
        self,
        goal_id: str | GoalId | None,
        experience_level: str | ExperienceLevel | None = None,
    ) -> list[Node]:
        """Fetch the catalog (refreshing the cache) and order it for a goal."""
        catalog = await self.load_topics(experience_level)
        return self.scheduler.generate_path(catalog, goal_id, experience_level)

    def cached_personalized_path(
        self,
        goal_id: str | GoalId | None,
        experience_level: str | ExperienceLevel | None = None,
    ) -> list[Node] | None:
        catalog = self.cached_topics(experience_level)
        if catalog is None:
            return None
        return self.scheduler.generate_path(catalog, goal_id, experience_level)

    # =========================================================================
    # Optimistic Mutations
    # =========================================================================

    async def toggle_section(self, view: CategoryView, section_slug: str) -> ToggleOutcome:
        """
        Flip one section's completion flag.

        The in-memory flag changes immediately; on server failure it is
        restored to its prior value. Affected keys are invalidated before
        the request and again once it settles, so a read that raced the
        mutation cannot leave a stale aggregate behind.
        """
        previous = view.is_complete(section_slug)
        completed = not previous
        view.progress[section_slug] = completed

        stale = keys.keys_for_section_toggle(view.topic_slug, view.category_slug, section_slug)
        self.invalidate(stale)

        try:
            await self.client.toggle_section(view.topic_slug, section_slug, completed)
        except Exception as e:
            logger.warning(
                "Toggle of {}/{} failed, rolling back: {}", view.topic_slug, section_slug, e
            )
            view.progress[section_slug] = previous
            return ToggleOutcome(ok=False, completed=previous, error=e)
        finally:
            self.invalidate(stale)

        return ToggleOutcome(ok=True, completed=completed)

    async def toggle_category(self, view: CategoryView, completed: bool) -> ToggleOutcome:
        """Mark every section of the category; all flags roll back together on failure."""
        snapshot = dict(view.progress)
        for slug in view.section_slugs:
            view.progress[slug] = completed

        stale = keys.keys_for_category_toggle(
            view.topic_slug, view.category_slug, view.section_slugs
        )
        self.invalidate(stale)

        try:
            await self.client.toggle_category(view.topic_slug, view.category_slug, completed)
        except Exception as e:
            logger.warning(
                "Category toggle of {}/{} failed, rolling back: {}",
                view.topic_slug,
                view.category_slug,
                e,
            )
            view.progress = snapshot
            return ToggleOutcome(ok=False, completed=not completed, error=e)
        finally:
            self.invalidate(stale)

        return ToggleOutcome(ok=True, completed=completed)

    async def submit_review(
        self,
        topic_slug: str,
        section_slug: str,
        quality: int,
        current: ReviewState | None = None,
        now: datetime | None = None,
    ) -> ReviewState:
        """
        Rate a review and persist it.

        Validation errors are raised before any request is made. Server
        failures propagate to the caller.

        Returns:
            The server's updated state, or the locally computed one when the
            ack carries no review data
        """
        item_id = current.item_id if current else f"{topic_slug}/{section_slug}"
        state = current or ReviewState(item_id=item_id)
        local = self.review_scheduler.review(state, quality, now=now)

        stale = keys.keys_for_review_update(topic_slug, section_slug)
        self.invalidate(stale)
        try:
            remote = await self.client.update_review(topic_slug, section_slug, quality)
        finally:
            self.invalidate(stale)
        return remote or local
