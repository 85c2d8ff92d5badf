"""Spaced repetition scheduling and review-queue selection."""
from .scheduler import (
    ReviewConfig,
    ReviewScheduler,
    ScheduleResult,
    difficulty_label,
    due_items,
    is_due,
    queue_stats,
)

__all__ = [
    "ReviewConfig",
    "ReviewScheduler",
    "ScheduleResult",
    "difficulty_label",
    "due_items",
    "is_due",
    "queue_stats",
]
