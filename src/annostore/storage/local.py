"""
Local annotation store on an embedded SQLite file.

Physical layout: one table clustered on ``(tag, key)`` (``WITHOUT ROWID``),
so each tag's entries form a contiguous, key-ordered run of the B-tree, one
ordered bucket per tag. Keys look like ``2024-05-01T12:00:00Z-seq:000000000017``:
a fixed-width UTC second stamp, so byte order equals time order, followed by
a per-store sequence number that keeps same-second writes apart. Values hold
the annotation without its tags; bucket membership already says which tag
it belongs to.
"""

import json
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path

from loguru import logger

from annostore.models import Annotation

from .base import (
    MILLIS_PER_SECOND,
    AnnotationStore,
    StorageConnectionError,
    StorageError,
    TagStats,
    TransactionError,
)

_STAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
# 9999-12-31T23:59:59Z, the last second the stamp format can hold
MAX_TIMESTAMP = 253402300799
# Sorts after every "-seq:" suffix, turning a stamp into an inclusive upper bound
_KEY_CEILING = "\uffff"
_SEQ_MARK = "-seq:"
_SEQ_WIDTH = 12

_SCHEMA = """
    CREATE TABLE IF NOT EXISTS annotations (
        tag TEXT NOT NULL,
        key TEXT NOT NULL,
        value TEXT NOT NULL,
        PRIMARY KEY (tag, key)
    ) WITHOUT ROWID
"""


def time_stamp(seconds: int) -> str:
    """Fixed-width UTC stamp for unix ``seconds``; the sortable key prefix."""
    seconds = min(max(int(seconds), 0), MAX_TIMESTAMP)
    return datetime.fromtimestamp(seconds, tz=timezone.utc).strftime(_STAMP_FORMAT)


def bucket_key(created_at: int, seq: int) -> str:
    """Key of one entry inside a tag bucket."""
    return f"{time_stamp(created_at)}{_SEQ_MARK}{seq:0{_SEQ_WIDTH}d}"


class LocalStore(AnnotationStore):
    """SQLite-backed tag-indexed store.

    One connection is shared by all threads; a lock serializes access to it.
    Writes run in a single transaction per annotation, so an annotation is
    visible under all of its tags or none.
    """

    backend = "local"

    def __init__(self, path: str | Path):
        """
        Args:
            path: SQLite database file. Created if missing; the parent
                directory must exist and be writable.
        """
        self.path = Path(path)
        self._lock = threading.RLock()
        self._seq = 0
        try:
            self._conn: sqlite3.Connection | None = sqlite3.connect(str(self.path), check_same_thread=False)
            self._conn.execute(_SCHEMA)
            self._conn.commit()
            self._seq = self._stored_seq()
        except sqlite3.Error as e:
            raise StorageConnectionError(f"Cannot open local storage at {self.path}: {e}") from e
        logger.info(f"Opened local storage at {self.path}")

    def _require_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError(f"Local storage at {self.path} is closed")
        return self._conn

    def _stored_seq(self) -> int:
        """Highest sequence number already on disk, 0 for an empty store.

        Resuming from it keeps keys written after a reopen distinct from
        earlier keys in the same second.
        """
        row = self._conn.execute(
            "SELECT MAX(substr(key, ?)) FROM annotations WHERE substr(key, ?, ?) = ?",
            (-_SEQ_WIDTH, -(_SEQ_WIDTH + len(_SEQ_MARK)), len(_SEQ_MARK), _SEQ_MARK),
        ).fetchone()
        return int(row[0]) if row[0] and row[0].isdigit() else 0

    def _next_seq(self) -> int:
        # Caller holds self._lock
        self._seq += 1
        return self._seq

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def add(self, annotation: Annotation) -> None:
        value = json.dumps(
            {"created_at": annotation.created_at, "message": annotation.message},
            ensure_ascii=False,
        )
        with self._lock:
            conn = self._require_conn()
            try:
                with conn:
                    for tag in annotation.tags:
                        key = bucket_key(annotation.created_at, self._next_seq())
                        conn.execute(
                            "INSERT INTO annotations (tag, key, value) VALUES (?, ?, ?)",
                            (tag, key, value),
                        )
            except sqlite3.Error as e:
                raise TransactionError(f"Adding annotation to tags {annotation.tags} failed: {e}") from e

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def range_for_tag(self, tag: str, range_seconds: int, until_seconds: int) -> list[Annotation]:
        if until_seconds < 0:
            return []
        start = time_stamp(until_seconds - range_seconds)
        end = time_stamp(until_seconds)

        with self._lock:
            conn = self._require_conn()
            try:
                rows = conn.execute(
                    """
                    SELECT value FROM annotations
                    WHERE tag = ? AND key >= ? AND key <= ?
                    ORDER BY key
                    """,
                    (tag, start, end + _KEY_CEILING),
                ).fetchall()
            except sqlite3.Error as e:
                raise TransactionError(f"Scanning tag {tag!r} failed: {e}") from e

        results = []
        for (value,) in rows:
            try:
                stored = Annotation.from_dict(json.loads(value))
            except (json.JSONDecodeError, AttributeError, TypeError, ValueError) as e:
                raise TransactionError(f"Corrupt entry under tag {tag!r}: {e}") from e
            results.append(
                Annotation(
                    created_at=stored.created_at * MILLIS_PER_SECOND,
                    message=stored.message,
                    tags=[tag],
                )
            )
        return results

    def count_for_tag(self, tag: str) -> int:
        with self._lock:
            conn = self._require_conn()
            try:
                return conn.execute("SELECT COUNT(*) FROM annotations WHERE tag = ?", (tag,)).fetchone()[0]
            except sqlite3.Error as e:
                raise TransactionError(f"Counting tag {tag!r} failed: {e}") from e

    def all_tags(self) -> set[str]:
        with self._lock:
            conn = self._require_conn()
            try:
                return {row[0] for row in conn.execute("SELECT DISTINCT tag FROM annotations")}
            except sqlite3.Error as e:
                raise TransactionError(f"Listing tags failed: {e}") from e

    def tag_stats(self) -> TagStats:
        # One statement, so the counts come from a single snapshot
        with self._lock:
            conn = self._require_conn()
            try:
                rows = conn.execute("SELECT tag, COUNT(*) FROM annotations GROUP BY tag").fetchall()
            except sqlite3.Error as e:
                raise TransactionError(f"Collecting tag stats failed: {e}") from e
        return {tag: count for tag, count in rows}

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None
        logger.info(f"Closed local storage at {self.path}")

    def cleanup(self) -> None:
        self.close()
        for suffix in ("", "-journal", "-wal", "-shm"):
            Path(f"{self.path}{suffix}").unlink(missing_ok=True)
        logger.info(f"Removed local storage at {self.path}")

    def __repr__(self) -> str:
        return f"LocalStore(path='{self.path}')"
