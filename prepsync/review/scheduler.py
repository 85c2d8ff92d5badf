"""
SM-2 Spaced Repetition Scheduler.

Quality scale (1-5):
1 - Again: complete failure to recall
2 - Hard: recalled only after seeing the answer
3 - Good: correct, with significant difficulty
4 - Easy: correct, with some hesitation
5 - Perfect: correct, instant recall

Ratings below 3 are lapses and restart the schedule.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol, TypeVar

from prepsync.exceptions import ReviewValidationError
from prepsync.models import DEFAULT_EASE_FACTOR, MINIMUM_EASE_FACTOR, ReviewState

MIN_QUALITY = 1
MAX_QUALITY = 5
PASSING_QUALITY = 3

DIFFICULTY_LABELS = {
    1: "Again",
    2: "Hard",
    3: "Good",
    4: "Easy",
    5: "Perfect",
}


class _Schedulable(Protocol):
    @property
    def next_review_at(self) -> datetime | None: ...


T = TypeVar("T", bound=_Schedulable)


@dataclass
class ReviewConfig:
    """Configuration for the SM-2 algorithm."""

    initial_ease_factor: float = DEFAULT_EASE_FACTOR
    minimum_ease_factor: float = MINIMUM_EASE_FACTOR
    first_interval: int = 1  # Days after the first successful review
    second_interval: int = 6  # Days after the second


@dataclass(frozen=True)
class ScheduleResult:
    """Next schedule computed from a rating."""

    next_review_at: datetime
    interval: int
    ease_factor: float
    review_count: int


class ReviewScheduler:
    """
    Implements the SM-2 spaced repetition algorithm.

    Each item carries:
    - Ease factor: how quickly intervals grow (2.5 default, min 1.3)
    - Interval: days until the next review
    - Review count: consecutive successful reviews
    """

    def __init__(self, config: ReviewConfig | None = None):
        self.config = config or ReviewConfig()

    @staticmethod
    def validate_quality(quality: object) -> int:
        """Reject ratings outside 1..5 instead of clamping them."""
        if isinstance(quality, bool) or not isinstance(quality, int):
            raise ReviewValidationError(f"Quality must be an integer, got {quality!r}")
        if quality < MIN_QUALITY or quality > MAX_QUALITY:
            raise ReviewValidationError(
                f"Quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {quality}"
            )
        return quality

    def schedule(
        self,
        quality: int,
        interval: int,
        ease_factor: float,
        review_count: int,
        now: datetime | None = None,
    ) -> ScheduleResult:
        """
        Calculate the next review from a rating.

        Args:
            quality: User rating (1-5)
            interval: Current interval in days
            ease_factor: Current ease factor
            review_count: Successful reviews so far
            now: Reference time (defaults to the current UTC time)

        Returns:
            ScheduleResult with the new interval, ease factor and due date

        Raises:
            ReviewValidationError: If quality is outside 1..5
        """
        quality = self.validate_quality(quality)
        now = now or datetime.now(UTC)

        # EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
        miss = MAX_QUALITY - quality
        new_ef = max(
            self.config.minimum_ease_factor,
            ease_factor + (0.1 - miss * (0.08 + miss * 0.02)),
        )

        if quality < PASSING_QUALITY:
            new_interval = self.config.first_interval
            new_count = 0
        else:
            if review_count <= 0:
                new_interval = self.config.first_interval
            elif review_count == 1:
                new_interval = self.config.second_interval
            else:
                new_interval = round(interval * new_ef)
            new_count = review_count + 1

        return ScheduleResult(
            next_review_at=now + timedelta(days=new_interval),
            interval=new_interval,
            ease_factor=new_ef,
            review_count=new_count,
        )

    def review(
        self,
        state: ReviewState,
        quality: int,
        now: datetime | None = None,
    ) -> ReviewState:
        """Supersede an item's state with the schedule for a new rating."""
        result = self.schedule(
            quality,
            state.interval,
            state.ease_factor,
            state.review_count,
            now=now,
        )
        return ReviewState(
            item_id=state.item_id,
            interval=result.interval,
            ease_factor=result.ease_factor,
            review_count=result.review_count,
            next_review_at=result.next_review_at,
        )


# =============================================================================
# Review Queue Helpers
# =============================================================================


def is_due(next_review_at: datetime | None, now: datetime | None = None) -> bool:
    """Check if an item is due; items with no date are not."""
    if next_review_at is None:
        return False
    now = now or datetime.now(UTC)
    return now >= next_review_at


def due_items(items: Iterable[T], now: datetime | None = None) -> list[T]:
    """Items due for review, earliest first."""
    now = now or datetime.now(UTC)
    due = [item for item in items if is_due(item.next_review_at, now)]
    # is_due already excluded None dates
    return sorted(due, key=lambda item: item.next_review_at)  # type: ignore[arg-type,return-value]


def queue_stats(items: Iterable[_Schedulable], now: datetime | None = None) -> dict[str, int]:
    """
    Summarize a review queue.

    Returns:
        Dict with total, today (scheduled for the current UTC date) and
        overdue (scheduled before now) counts
    """
    now = now or datetime.now(UTC)
    items = list(items)
    today = 0
    overdue = 0
    for item in items:
        when = item.next_review_at
        if when is None:
            continue
        if when.astimezone(UTC).date() == now.astimezone(UTC).date():
            today += 1
        if when < now:
            overdue += 1
    return {"total": len(items), "today": today, "overdue": overdue}


def difficulty_label(quality: int) -> str:
    """Button label for a rating."""
    return DIFFICULTY_LABELS.get(quality, "Good")
