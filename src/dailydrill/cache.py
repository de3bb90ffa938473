"""SQLite-backed offline cache for the daily question set.

The cache holds a single entry keyed by `CACHE_KEY`. Entries expire a fixed
TTL after they were written; an expired entry is treated as absent by every
reader and evicted by `load` and `clear_expired`. Reads never raise: storage
failures are logged and collapsed to an empty result.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from .errors import InvalidArgument, StorageCorrupt, StorageError, StorageUnavailable
from .models import QuestionRecord, question_from_dict, question_to_dict
from .timeutils import Clock, from_epoch_ms, to_epoch_ms, utcnow

logger = logging.getLogger(__name__)

DB_SCHEMA_VERSION = 1
CACHE_SCHEMA_VERSION = 1
CACHE_KEY = "cache"
CACHE_TTL = timedelta(days=7)


@dataclass(frozen=True)
class CacheInfo:
    """Metadata about the stored entry, whether or not it is still fresh."""

    cached_at: datetime
    expires_at: datetime
    question_count: int
    schema_version: int


@dataclass(frozen=True)
class CacheEntry:
    """Decoded cache entry."""

    questions: tuple[QuestionRecord, ...]
    cached_at: datetime
    expires_at: datetime
    schema_version: int

    def is_expired(self, now: datetime) -> bool:
        return to_epoch_ms(now) > to_epoch_ms(self.expires_at)


def default_cache_path() -> Path:
    """Return the default on-disk cache location."""
    return Path(".dailydrill") / "cache.db"


def migrate_question_payload(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of a stored question dict with current-version fields backfilled."""
    migrated = dict(raw)
    if migrated.get("explanation") is None:
        migrated["explanation"] = ""
    return migrated


class OfflineQuestionCache:
    """Versioned, TTL-bound store for one day's question snapshot."""

    def __init__(
        self,
        db_path: Path | str,
        *,
        ttl: timedelta = CACHE_TTL,
        clock: Clock | None = None,
    ) -> None:
        """Prepare the cache; the database is opened on first use."""
        if ttl <= timedelta(0):
            raise InvalidArgument("Cache TTL must be positive.")
        if isinstance(db_path, Path):
            db_path.parent.mkdir(parents=True, exist_ok=True)
            self._target = str(db_path)
        else:
            self._target = db_path
        self._ttl_ms = ttl // timedelta(milliseconds=1)
        self._clock: Clock = clock or utcnow
        self._conn: sqlite3.Connection | None = None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is not None:
            return self._conn
        try:
            conn = sqlite3.connect(self._target)
        except sqlite3.Error as exc:
            raise StorageUnavailable(f"Could not open question cache at {self._target}: {exc}") from exc
        try:
            conn.row_factory = sqlite3.Row
            self._apply_migrations(conn)
        except sqlite3.Error as exc:
            conn.close()
            raise StorageUnavailable(f"Could not open question cache at {self._target}: {exc}") from exc
        self._conn = conn
        return conn

    def _apply_migrations(self, conn: sqlite3.Connection) -> None:
        """Apply forward-only schema migrations to latest version."""
        current = int(conn.execute("PRAGMA user_version").fetchone()[0])
        if current > DB_SCHEMA_VERSION:
            conn.close()
            raise StorageUnavailable(
                f"Cache database schema version {current} is newer than supported {DB_SCHEMA_VERSION}."
            )

        with conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
                """)

        for version in range(current + 1, DB_SCHEMA_VERSION + 1):
            if version == 1:
                self._migrate_to_v1(conn)
            with conn:
                conn.execute(f"PRAGMA user_version = {version}")
                conn.execute(
                    "INSERT OR REPLACE INTO schema_migrations (version, applied_at) VALUES (?, ?)",
                    (version, datetime.now(UTC).isoformat()),
                )

    def _migrate_to_v1(self, conn: sqlite3.Connection) -> None:
        """Create the singleton cache table."""
        with conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS question_cache (
                    cache_key TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    cached_at INTEGER NOT NULL,
                    expires_at INTEGER NOT NULL,
                    schema_version INTEGER NOT NULL
                )
                """)

    def _now(self, now: datetime | None) -> datetime:
        return now if now is not None else self._clock()

    def save(self, questions: Iterable[QuestionRecord], now: datetime | None = None) -> None:
        """Replace the cached entry with a new snapshot.

        Raises `StorageUnavailable` when the write fails; the previous entry is
        left as it was.
        """
        cached_at_ms = to_epoch_ms(self._now(now))
        expires_at_ms = cached_at_ms + self._ttl_ms
        snapshot = [question_to_dict(question) for question in questions]
        payload = json.dumps(snapshot, ensure_ascii=False)
        try:
            conn = self._connection()
            with conn:
                conn.execute(
                    """
                    INSERT INTO question_cache (cache_key, payload, cached_at, expires_at, schema_version)
                    VALUES (?, ?, ?, ?, ?)
                    ON CONFLICT(cache_key) DO UPDATE SET
                        payload = excluded.payload,
                        cached_at = excluded.cached_at,
                        expires_at = excluded.expires_at,
                        schema_version = excluded.schema_version
                    """,
                    (CACHE_KEY, payload, cached_at_ms, expires_at_ms, CACHE_SCHEMA_VERSION),
                )
        except sqlite3.Error as exc:
            raise StorageUnavailable(f"Could not write question cache: {exc}") from exc
        logger.debug("Cached %d questions until %s", len(snapshot), from_epoch_ms(expires_at_ms).isoformat())

    def load(self, now: datetime | None = None) -> list[QuestionRecord]:
        """Return the cached questions, or an empty list when missing, expired or unreadable."""
        current_ms = to_epoch_ms(self._now(now))
        try:
            row = self._read_row()
            if row is None:
                return []
            if current_ms > _row_int(row, "expires_at"):
                logger.info("Question cache expired; evicting entry.")
                self._delete_quietly()
                return []
            entry = self._decode(row)
        except StorageError as exc:
            logger.warning("Failed to load questions from cache: %s", exc)
            return []
        return list(entry.questions)

    def read_entry(self) -> CacheEntry | None:
        """Return the decoded entry regardless of expiry.

        Unlike the public read operations this raises `StorageError` so that
        callers who need to distinguish failures can do so.
        """
        row = self._read_row()
        if row is None:
            return None
        return self._decode(row)

    def info(self) -> CacheInfo | None:
        """Return metadata for the stored entry, including stale ones."""
        try:
            entry = self.read_entry()
        except StorageError as exc:
            logger.warning("Failed to read question cache info: %s", exc)
            return None
        if entry is None:
            return None
        return CacheInfo(
            cached_at=entry.cached_at,
            expires_at=entry.expires_at,
            question_count=len(entry.questions),
            schema_version=entry.schema_version,
        )

    def clear_expired(self, now: datetime | None = None) -> None:
        """Remove the entry only if it has expired."""
        current_ms = to_epoch_ms(self._now(now))
        try:
            row = self._read_row()
            if row is None or current_ms <= _row_int(row, "expires_at"):
                return
            self._delete()
        except StorageError as exc:
            logger.warning("Failed to clear expired question cache: %s", exc)

    def clear_all(self) -> None:
        """Remove the entry unconditionally."""
        try:
            self._delete()
        except StorageError as exc:
            logger.warning("Failed to clear question cache: %s", exc)

    def _read_row(self) -> sqlite3.Row | None:
        try:
            row: sqlite3.Row | None = (
                self._connection()
                .execute(
                    """
                    SELECT payload, cached_at, expires_at, schema_version
                    FROM question_cache
                    WHERE cache_key = ?
                    """,
                    (CACHE_KEY,),
                )
                .fetchone()
            )
        except sqlite3.Error as exc:
            raise StorageUnavailable(f"Could not read question cache: {exc}") from exc
        return row

    def _decode(self, row: sqlite3.Row) -> CacheEntry:
        schema_version = _row_int(row, "schema_version")
        if schema_version > CACHE_SCHEMA_VERSION:
            raise StorageCorrupt(
                f"Cache entry schema version {schema_version} is newer than supported {CACHE_SCHEMA_VERSION}."
            )
        try:
            raw: object = json.loads(row["payload"])
        except (TypeError, ValueError) as exc:
            raise StorageCorrupt(f"Cache payload is not valid JSON: {exc}") from exc
        if not isinstance(raw, list):
            raise StorageCorrupt("Cache payload must be a JSON array.")

        questions: list[QuestionRecord] = []
        for item in raw:
            if not isinstance(item, dict):
                raise StorageCorrupt("Cache payload contains a non-object question.")
            try:
                questions.append(question_from_dict(migrate_question_payload(item)))
            except InvalidArgument as exc:
                raise StorageCorrupt(f"Cache payload contains an invalid question: {exc}") from exc

        return CacheEntry(
            questions=tuple(questions),
            cached_at=from_epoch_ms(_row_int(row, "cached_at")),
            expires_at=from_epoch_ms(_row_int(row, "expires_at")),
            schema_version=schema_version,
        )

    def _delete(self) -> None:
        try:
            conn = self._connection()
            with conn:
                conn.execute("DELETE FROM question_cache WHERE cache_key = ?", (CACHE_KEY,))
        except sqlite3.Error as exc:
            raise StorageUnavailable(f"Could not delete question cache: {exc}") from exc

    def _delete_quietly(self) -> None:
        try:
            self._delete()
        except StorageError as exc:
            logger.warning("Failed to evict expired question cache: %s", exc)

    def close(self) -> None:
        """Close db connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __del__(self) -> None:  # pragma: no cover
        """Best-effort connection cleanup."""
        try:
            self.close()
        except Exception:
            pass


def _row_int(row: sqlite3.Row, column: str) -> int:
    try:
        return int(row[column])
    except (TypeError, ValueError) as exc:
        raise StorageCorrupt(f"Cache column {column} is not an integer.") from exc
