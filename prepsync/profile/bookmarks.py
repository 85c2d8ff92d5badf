"""Bookmarked topics, categories and sections."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from prepsync.cache.keys import BOOKMARKS_KEY
from prepsync.cache.store import CacheStore


@dataclass(frozen=True)
class BookmarkResult:
    success: bool
    message: str


class Bookmarks:
    """Bookmark list persisted as one JSON array, unique by ``id``."""

    def __init__(self, cache: CacheStore):
        self.cache = cache

    def all(self) -> list[dict[str, Any]]:
        data = self.cache.get(BOOKMARKS_KEY)
        return data if isinstance(data, list) else []

    def _save(self, bookmarks: list[dict[str, Any]]) -> bool:
        return self.cache.put(BOOKMARKS_KEY, bookmarks)

    def is_bookmarked(self, item_id: str) -> bool:
        return any(b.get("id") == item_id for b in self.all())

    def add(self, item: dict[str, Any]) -> BookmarkResult:
        if "id" not in item:
            raise ValueError("Bookmark item needs an 'id'")
        bookmarks = self.all()
        if any(b.get("id") == item["id"] for b in bookmarks):
            return BookmarkResult(False, "Already bookmarked")
        bookmarks.append({**item, "bookmarkedAt": datetime.now(UTC).isoformat()})
        if not self._save(bookmarks):
            return BookmarkResult(False, "Failed to add bookmark")
        return BookmarkResult(True, "Bookmark added")

    def remove(self, item_id: str) -> BookmarkResult:
        bookmarks = [b for b in self.all() if b.get("id") != item_id]
        if not self._save(bookmarks):
            return BookmarkResult(False, "Failed to remove bookmark")
        return BookmarkResult(True, "Bookmark removed")

    def toggle(self, item: dict[str, Any]) -> BookmarkResult:
        if self.is_bookmarked(item["id"]):
            return self.remove(item["id"])
        return self.add(item)

    def by_type(self, item_type: str) -> list[dict[str, Any]]:
        return [b for b in self.all() if b.get("type") == item_type]

    def count(self) -> int:
        return len(self.all())

    def clear(self) -> BookmarkResult:
        self.cache.invalidate(BOOKMARKS_KEY)
        return BookmarkResult(True, "All bookmarks cleared")
