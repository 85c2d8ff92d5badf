"""Local learner profile state: preferences, streak and bookmarks."""
from .bookmarks import BookmarkResult, Bookmarks
from .preferences import Preferences
from .streak import StreakRecord, StreakTracker, streak_message

__all__ = [
    "BookmarkResult",
    "Bookmarks",
    "Preferences",
    "StreakRecord",
    "StreakTracker",
    "streak_message",
]
