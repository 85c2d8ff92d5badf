"""
prepsync - learning-progress synchronization and curriculum scheduling.

Components:
- curriculum: dependency graph, goal path rules, path generation
- review: SM-2 spaced repetition scheduling
- gateway: retry-with-backoff and in-flight request deduplication
- cache: persistent key/value store for server-derived aggregates
- sync: stale-while-revalidate reads and optimistic progress writes
- profile: streak, bookmarks and learner preferences
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
