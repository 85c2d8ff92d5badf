"""Learner choices made during onboarding."""

from __future__ import annotations

from prepsync.cache.keys import EXPERIENCE_KEY, ONBOARDING_KEY, PATH_KEY
from prepsync.cache.store import CacheStore
from prepsync.curriculum.rules import ExperienceLevel, GoalId


class Preferences:
    """Onboarding flag, chosen goal and experience tier."""

    def __init__(self, cache: CacheStore):
        self.cache = cache

    @property
    def onboarding_complete(self) -> bool:
        return self.cache.get(ONBOARDING_KEY) is True

    def complete_onboarding(
        self,
        goal: str | GoalId | None,
        experience_level: str | ExperienceLevel | None,
    ) -> None:
        """Persist the onboarding answers and mark onboarding done."""
        self.goal = goal
        self.experience_level = experience_level
        self.cache.put(ONBOARDING_KEY, True)

    def reset_onboarding(self) -> None:
        for key in (ONBOARDING_KEY, PATH_KEY, EXPERIENCE_KEY):
            self.cache.invalidate(key)

    @property
    def goal(self) -> GoalId | None:
        stored = self.cache.get(PATH_KEY)
        return GoalId.parse(stored) if isinstance(stored, str) else None

    @goal.setter
    def goal(self, value: str | GoalId | None) -> None:
        goal = GoalId.parse(value)
        if goal is None:
            self.cache.invalidate(PATH_KEY)
        else:
            self.cache.put(PATH_KEY, goal.value)

    @property
    def experience_level(self) -> ExperienceLevel:
        stored = self.cache.get(EXPERIENCE_KEY)
        return ExperienceLevel.parse(stored if isinstance(stored, str) else None)

    @experience_level.setter
    def experience_level(self, value: str | ExperienceLevel | None) -> None:
        self.cache.put(EXPERIENCE_KEY, ExperienceLevel.parse(value).value)
