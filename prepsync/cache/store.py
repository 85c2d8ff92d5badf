"""
Local key/value cache for server-derived aggregates.

Entries are plain JSON payloads under deterministic string keys. Nothing
expires on a timer: an entry lives until it is overwritten by a fresh fetch
or deleted by an invalidation.

Database location: ~/.prepsync/cache.db
"""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from loguru import logger

DEFAULT_MAX_PAYLOAD_BYTES = 4 * 1024 * 1024


@runtime_checkable
class CacheStore(Protocol):
    """Interface every cache backend implements."""

    def get(self, key: str) -> Any | None: ...

    def put(self, key: str, payload: Any) -> bool: ...

    def invalidate(self, key: str) -> None: ...

    def keys(self, prefix: str = "") -> list[str]: ...

    def clear(self, prefix: str = "") -> int: ...


def _encode(key: str, payload: Any, max_bytes: int) -> str | None:
    """Serialize a payload, or None when it is too large to cache."""
    text = json.dumps(payload, separators=(",", ":"), default=str)
    size = len(text.encode("utf-8"))
    if size > max_bytes:
        logger.warning(
            "Payload for {} too large to cache ({} bytes > {}), skipping",
            key,
            size,
            max_bytes,
        )
        return None
    return text


def _decode(key: str, text: str) -> Any | None:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse cached payload for {}: {}", key, e)
        return None


# =============================================================================
# SQLite Store
# =============================================================================


class SqliteCacheStore:
    """
    SQLite-backed persistent cache.

    One row per key; payloads are stored as JSON text.
    """

    def __init__(
        self,
        db_path: Path | str,
        max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES,
    ):
        """
        Initialize the cache store.

        Args:
            db_path: SQLite file (parent directories are created)
            max_payload_bytes: Larger payloads are not cached
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.max_payload_bytes = max_payload_bytes

        self._conn: sqlite3.Connection | None = None
        self._init_schema()

        logger.debug(f"SqliteCacheStore initialized at {self.db_path}")

    @property
    def conn(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path))
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def _init_schema(self) -> None:
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS cache (
                key TEXT PRIMARY KEY,
                payload TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        self.conn.commit()

    def get(self, key: str) -> Any | None:
        """Cached payload for ``key``; a missing or unreadable entry is a miss."""
        row = self.conn.execute("SELECT payload FROM cache WHERE key = ?", (key,)).fetchone()
        if row is None:
            return None
        return _decode(key, row["payload"])

    def put(self, key: str, payload: Any) -> bool:
        """Store ``payload`` under ``key``, replacing any previous value."""
        text = _encode(key, payload, self.max_payload_bytes)
        if text is None:
            return False
        self.conn.execute(
            """
            INSERT INTO cache (key, payload, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(key) DO UPDATE SET
                payload = excluded.payload,
                updated_at = excluded.updated_at
            """,
            (key, text),
        )
        self.conn.commit()
        return True

    def invalidate(self, key: str) -> None:
        """Delete ``key``; deleting an absent key is a no-op."""
        self.conn.execute("DELETE FROM cache WHERE key = ?", (key,))
        self.conn.commit()

    def keys(self, prefix: str = "") -> list[str]:
        rows = self.conn.execute(
            "SELECT key FROM cache WHERE substr(key, 1, ?) = ? ORDER BY key",
            (len(prefix), prefix),
        ).fetchall()
        return [row["key"] for row in rows]

    def clear(self, prefix: str = "") -> int:
        """Delete every key starting with ``prefix``; returns the count."""
        cursor = self.conn.execute(
            "DELETE FROM cache WHERE substr(key, 1, ?) = ?",
            (len(prefix), prefix),
        )
        self.conn.commit()
        return cursor.rowcount

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None


# =============================================================================
# In-Memory Store
# =============================================================================


class MemoryCacheStore:
    """Process-local cache with the same semantics, for tests and offline use."""

    def __init__(self, max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES):
        self.max_payload_bytes = max_payload_bytes
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Any | None:
        text = self._data.get(key)
        if text is None:
            return None
        return _decode(key, text)

    def put(self, key: str, payload: Any) -> bool:
        text = _encode(key, payload, self.max_payload_bytes)
        if text is None:
            return False
        self._data[key] = text
        return True

    def invalidate(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._data if k.startswith(prefix))

    def clear(self, prefix: str = "") -> int:
        doomed = self.keys(prefix)
        for key in doomed:
            del self._data[key]
        return len(doomed)
