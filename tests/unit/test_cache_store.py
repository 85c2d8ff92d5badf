"""
Unit tests for the local cache stores and invalidation rules.
"""

import pytest

from prepsync.cache import keys
from prepsync.cache.store import CacheStore, MemoryCacheStore, SqliteCacheStore


@pytest.fixture(params=["sqlite", "memory"])
def store(request, tmp_path):
    if request.param == "sqlite":
        sqlite_store = SqliteCacheStore(tmp_path / "cache.db")
        yield sqlite_store
        sqlite_store.close()
    else:
        yield MemoryCacheStore()


class TestCacheStore:
    def test_implements_protocol(self, store):
        assert isinstance(store, CacheStore)

    def test_key_lifecycle(self, store):
        key = keys.category_key("react", "hooks")
        assert store.get(key) is None

        assert store.put(key, {"progress": {"use-state": False}}) is True
        assert store.get(key) == {"progress": {"use-state": False}}

        store.put(key, {"progress": {"use-state": True}})
        assert store.get(key) == {"progress": {"use-state": True}}

        store.invalidate(key)
        assert store.get(key) is None

        store.put(key, {"progress": {}})
        assert store.get(key) == {"progress": {}}

    def test_invalidate_absent_key_is_noop(self, store):
        store.invalidate("prepsync:nothing")
        store.invalidate("prepsync:nothing")
        assert store.keys() == []

    def test_oversized_payload_is_skipped(self, tmp_path):
        small = MemoryCacheStore(max_payload_bytes=32)
        assert small.put("k", {"blob": "x" * 100}) is False
        assert small.get("k") is None

        small_sqlite = SqliteCacheStore(tmp_path / "c.db", max_payload_bytes=32)
        assert small_sqlite.put("k", ["y" * 100]) is False
        assert small_sqlite.get("k") is None

    def test_prefix_keys_and_clear(self, store):
        store.put(keys.topic_key("react"), {})
        store.put(keys.topic_key("vue"), {})
        store.put(keys.STREAK_KEY, {})

        assert store.keys("prepsync:topic_agg") == sorted(
            [keys.topic_key("react"), keys.topic_key("vue")]
        )
        assert store.clear("prepsync:topic_agg") == 2
        assert store.keys() == [keys.STREAK_KEY]


class TestSqliteCacheStore:
    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "nested" / "cache.db"
        first = SqliteCacheStore(path)
        first.put(keys.GLOBAL_PROGRESS_KEY, [{"slug": "react", "progress": 40}])
        first.close()

        second = SqliteCacheStore(path)
        assert second.get(keys.GLOBAL_PROGRESS_KEY) == [{"slug": "react", "progress": 40}]

    def test_corrupt_payload_is_a_miss(self, tmp_path):
        store = SqliteCacheStore(tmp_path / "cache.db")
        store.conn.execute("INSERT INTO cache (key, payload) VALUES (?, ?)", ("bad", "{not json"))
        store.conn.commit()

        assert store.get("bad") is None


class TestKeys:
    def test_keys_are_deterministic(self):
        assert keys.category_key("react", "hooks") == keys.category_key("react", "hooks")
        assert keys.topic_key("react", None) == keys.topic_key("react", "0-1_year")
        assert keys.topic_key("react", "1-3_years") != keys.topic_key("react", "3-5_years")

    def test_section_toggle_invalidates_owning_aggregates(self):
        stale = keys.keys_for_section_toggle("react", "hooks", "use-state")

        assert keys.category_key("react", "hooks") in stale
        assert keys.section_key("react", "use-state") in stale
        assert keys.GLOBAL_PROGRESS_KEY in stale
        for level in ("0-1_year", "1-3_years", "3-5_years"):
            assert keys.topic_key("react", level) in stale
            assert keys.topics_key(level) in stale
        assert keys.topic_key("vue") not in stale
        assert keys.STREAK_KEY not in stale

    def test_category_toggle_covers_each_section(self):
        stale = keys.keys_for_category_toggle("react", "hooks", ["a", "b"])
        assert keys.section_key("react", "a") in stale
        assert keys.section_key("react", "b") in stale
        assert keys.GLOBAL_PROGRESS_KEY in stale

    def test_review_update_keys(self):
        assert keys.keys_for_review_update("react", "hooks") == [
            keys.DUE_REVIEWS_KEY,
            keys.section_key("react", "hooks"),
        ]
