"""
Daily study streak.

Stored as one JSON record:
    {currentStreak, longestStreak, lastVisit, studyDates[], totalDays}
with dates as ISO ``YYYY-MM-DD`` strings.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from loguru import logger

from prepsync.cache.keys import STREAK_KEY
from prepsync.cache.store import CacheStore


@dataclass
class StreakRecord:
    current_streak: int = 1
    longest_streak: int = 1
    last_visit: date = field(default_factory=date.today)
    study_dates: list[date] = field(default_factory=list)
    total_days: int = 1

    @classmethod
    def first_visit(cls, today: date) -> StreakRecord:
        return cls(
            current_streak=1,
            longest_streak=1,
            last_visit=today,
            study_dates=[today],
            total_days=1,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StreakRecord:
        return cls(
            current_streak=int(data["currentStreak"]),
            longest_streak=int(data["longestStreak"]),
            last_visit=date.fromisoformat(data["lastVisit"]),
            study_dates=[date.fromisoformat(d) for d in data.get("studyDates", [])],
            total_days=int(data.get("totalDays", len(data.get("studyDates", [])) or 1)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "lastVisit": self.last_visit.isoformat(),
            "studyDates": [d.isoformat() for d in self.study_dates],
            "totalDays": self.total_days,
        }


class StreakTracker:
    """Track consecutive study days in the local store."""

    def __init__(self, cache: CacheStore, today: Callable[[], date] | None = None):
        self.cache = cache
        self._today = today or date.today

    def load(self) -> StreakRecord:
        """Current record; a missing or corrupt record starts a new streak."""
        data = self.cache.get(STREAK_KEY)
        if isinstance(data, dict):
            try:
                return StreakRecord.from_dict(data)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Discarding unreadable streak record: {}", e)
        record = StreakRecord.first_visit(self._today())
        self.save(record)
        return record

    def save(self, record: StreakRecord) -> None:
        self.cache.put(STREAK_KEY, record.to_dict())

    def record_visit(self) -> StreakRecord:
        """
        Register today's visit.

        - Same day: unchanged
        - Next day: streak +1 (longest updated)
        - After a gap: streak restarts at 1
        """
        record = self.load()
        today = self._today()
        gap = (today - record.last_visit).days

        if gap <= 0:
            return record

        if gap == 1:
            record.current_streak += 1
            record.longest_streak = max(record.longest_streak, record.current_streak)
        else:
            record.current_streak = 1

        record.last_visit = today
        record.study_dates.append(today)
        record.total_days += 1
        self.save(record)
        return record

    def reset(self) -> StreakRecord:
        self.cache.invalidate(STREAK_KEY)
        return self.load()


def streak_message(streak: int) -> str:
    if streak >= 30:
        return "Legendary streak!"
    if streak >= 14:
        return "Amazing consistency!"
    if streak >= 7:
        return "Week streak!"
    if streak >= 3:
        return "Great start!"
    return "Keep it up!"
