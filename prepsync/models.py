"""
Core domain models shared by the scheduling and sync layers.

Payloads from the curriculum API use camelCase keys; the dataclasses here
expose snake_case attributes and convert at the boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

DEFAULT_EASE_FACTOR = 2.5
MINIMUM_EASE_FACTOR = 1.3


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp (or pass through a datetime), normalized to UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def format_timestamp(value: datetime) -> str:
    """Serialize a timestamp the way the API emits it."""
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class Node:
    """A curriculum topic, unique by slug."""

    slug: str
    name: str
    category_count: int = 0
    progress: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Node:
        """Parse a topic from the catalog payload."""
        raw_progress = data.get("progress")
        if raw_progress is None:
            raw_progress = data.get("completionPercentage", 0)
        progress = int(round(float(raw_progress or 0)))
        return cls(
            slug=data["slug"],
            name=data.get("name") or data.get("title") or data["slug"],
            category_count=int(data.get("categoryCount", 0) or 0),
            progress=max(0, min(100, progress)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "slug": self.slug,
            "name": self.name,
            "categoryCount": self.category_count,
            "progress": self.progress,
        }

    @property
    def is_complete(self) -> bool:
        return self.progress >= 100


@dataclass(frozen=True)
class ReviewState:
    """
    Spaced-repetition state of one studied item.

    Created on first study, superseded (never deleted) by every review.
    """

    item_id: str
    interval: int = 1
    ease_factor: float = DEFAULT_EASE_FACTOR
    review_count: int = 0
    next_review_at: datetime | None = None

    @classmethod
    def initial(cls, item_id: str, now: datetime | None = None) -> ReviewState:
        """State for an item studied for the first time: due tomorrow."""
        now = now or datetime.now(UTC)
        return cls(
            item_id=item_id,
            interval=1,
            ease_factor=DEFAULT_EASE_FACTOR,
            review_count=0,
            next_review_at=now + timedelta(days=1),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any], item_id: str | None = None) -> ReviewState:
        """Parse the server's ``reviewData`` shape."""
        return cls(
            item_id=item_id or str(data.get("itemId", "")),
            interval=int(data.get("interval", 1)),
            ease_factor=float(data.get("easeFactor", DEFAULT_EASE_FACTOR)),
            review_count=int(data.get("reviewCount", 0)),
            next_review_at=parse_timestamp(data.get("nextReview") or data.get("nextReviewAt")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "itemId": self.item_id,
            "interval": self.interval,
            "easeFactor": self.ease_factor,
            "reviewCount": self.review_count,
            "nextReview": format_timestamp(self.next_review_at) if self.next_review_at else None,
        }


@dataclass(frozen=True)
class DueReview:
    """One entry of the due-review queue."""

    item_id: str
    section_name: str
    review: ReviewState

    @property
    def next_review_at(self) -> datetime | None:
        return self.review.next_review_at

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DueReview:
        item_id = str(data.get("itemId", ""))
        return cls(
            item_id=item_id,
            section_name=data.get("sectionName", ""),
            review=ReviewState.from_dict(data.get("reviewData") or {}, item_id=item_id),
        )


@dataclass(frozen=True)
class ProgressStats:
    """Section completion totals for a topic."""

    total_sections: int = 0
    completed_sections: int = 0
    percentage: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ProgressStats:
        data = data or {}
        return cls(
            total_sections=int(data.get("totalSections", 0)),
            completed_sections=int(data.get("completedSections", 0)),
            percentage=int(data.get("percentage", 0)),
        )
