"""
RethinkDB annotation store.

Each annotation is one document ``{created_at, message, tags}`` in the
``annotations`` table, with a secondary index on ``created_at``. Inserting a
single document is atomic, so an annotation shows up under all of its tags at
once. Tag queries are an index range on ``created_at`` filtered by tag.

Requires the RethinkDB driver (``pip install annostore[rethinkdb]``).
"""

from __future__ import annotations

from loguru import logger

from annostore.core.exceptions import ConfigurationError
from annostore.models import Annotation

from .base import (
    MILLIS_PER_SECOND,
    AnnotationStore,
    StorageConnectionError,
    StorageError,
    TagStats,
    TransactionError,
)

DEFAULT_PORT = 28015
TABLE = "annotations"
INDEX = "created_at"


def _require_rethinkdb():
    """Lazy import with clear error message."""
    try:
        from rethinkdb import RethinkDB
        from rethinkdb import errors

        return RethinkDB(), errors
    except ImportError:
        raise ImportError(
            "The rethinkdb driver is required for this backend. Install with: pip install annostore[rethinkdb]"
        ) from None


def parse_connection_string(conn: str) -> tuple[str, int, str]:
    """Split ``<host[:port]>/<dbname>`` into host, port and database name.

    Raises:
        ConfigurationError: if the string is not exactly two ``/``-separated
            non-empty parts, or the port is not a number.
    """
    parts = conn.split("/")
    if len(parts) != 2 or not all(parts):
        raise ConfigurationError(
            f"invalid rethinkdb connection string: {conn!r}, expected format: <host:port>/<dbname>"
        )
    addr, db = parts
    host, sep, port_str = addr.partition(":")
    if not sep:
        return host, DEFAULT_PORT, db
    try:
        port = int(port_str)
    except ValueError:
        raise ConfigurationError(f"invalid rethinkdb port {port_str!r} in {conn!r}") from None
    return host or "localhost", port, db


class RethinkDBStore(AnnotationStore):
    """Annotation store backed by a RethinkDB database."""

    backend = "rethinkdb"

    def __init__(self, host: str, port: int, db: str, timeout: int = 20):
        self.host = host
        self.port = port
        self.db = db
        self.timeout = timeout
        self._r, self._errors = _require_rethinkdb()
        self._conn = self._connect()

        try:
            self._ensure_schema()
        except self._errors.ReqlError as e:
            self._conn.close()
            raise StorageConnectionError(f"Cannot prepare rethinkdb database {db!r}: {e}") from e

        self._conn.use(db)
        self._closed = False
        logger.info(f"Opened rethinkdb storage at {host}:{port}/{db}")

    def _connect(self):
        try:
            return self._r.connect(host=self.host, port=self.port, timeout=self.timeout)
        except self._errors.ReqlError as e:
            raise StorageConnectionError(f"Cannot connect to rethinkdb at {self.host}:{self.port}: {e}") from e

    @classmethod
    def from_connection_string(cls, conn: str) -> RethinkDBStore:
        host, port, db = parse_connection_string(conn)
        return cls(host, port, db)

    def _ensure_schema(self) -> None:
        """Create database, table and index unless they already exist."""
        r = self._r
        steps = (
            r.db_create(self.db),
            r.db(self.db).table_create(TABLE),
            r.db(self.db).table(TABLE).index_create(INDEX),
        )
        for step in steps:
            try:
                step.run(self._conn)
            except self._errors.ReqlOpFailedError as e:
                if "already exists" not in str(e):
                    raise
        r.db(self.db).table(TABLE).index_wait(INDEX).run(self._conn)

    def _table(self):
        if self._closed:
            raise StorageError(f"rethinkdb storage {self.db!r} is closed")
        return self._r.table(TABLE)

    def _tags(self):
        """Stream of every tag occurrence across all documents."""
        return self._table().concat_map(lambda doc: doc["tags"])

    def add(self, annotation: Annotation) -> None:
        doc = {
            "created_at": annotation.created_at,
            "message": annotation.message,
            "tags": list(annotation.tags),
        }
        try:
            result = self._table().insert(doc).run(self._conn)
        except self._errors.ReqlError as e:
            logger.error(f"Saving annotation failed: {e}")
            raise TransactionError(f"Saving annotation failed: {e}") from e
        if result.get("errors"):
            raise TransactionError(f"Saving annotation failed: {result.get('first_error')}")

    def range_for_tag(self, tag: str, range_seconds: int, until_seconds: int) -> list[Annotation]:
        start = until_seconds - range_seconds
        query = (
            self._table()
            .order_by(index=INDEX)
            .between(start, until_seconds, index=INDEX, left_bound="closed", right_bound="closed")
            .filter(lambda doc: doc["tags"].contains(tag))
        )
        results = []
        try:
            cursor = query.run(self._conn)
            try:
                for doc in cursor:
                    stored = Annotation.from_dict(doc)
                    entry = Annotation(
                        created_at=stored.created_at * MILLIS_PER_SECOND,
                        message=stored.message,
                        tags=[tag],
                    )
                    # One entry per tag occurrence, matching the local layout
                    results.extend(entry for _ in range(stored.tags.count(tag)))
            finally:
                if hasattr(cursor, "close"):
                    cursor.close()
        except self._errors.ReqlError as e:
            logger.error(f"Getting annotations for tag {tag} failed: {e}")
            raise TransactionError(f"Scanning tag {tag!r} failed: {e}") from e
        return results

    def count_for_tag(self, tag: str) -> int:
        try:
            return self._tags().filter(lambda t: t == tag).count().run(self._conn)
        except self._errors.ReqlError as e:
            raise TransactionError(f"Counting tag {tag!r} failed: {e}") from e

    def all_tags(self) -> set[str]:
        try:
            return set(self._tags().distinct().run(self._conn))
        except self._errors.ReqlError as e:
            raise TransactionError(f"Listing tags failed: {e}") from e

    def tag_stats(self) -> TagStats:
        try:
            grouped = self._tags().group(lambda t: t).count().run(self._conn)
        except self._errors.ReqlError as e:
            raise TransactionError(f"Collecting tag stats failed: {e}") from e
        return {tag: int(count) for tag, count in grouped.items()}

    def close(self) -> None:
        if self._closed:
            return
        self._conn.close()
        self._closed = True
        logger.info(f"Closed rethinkdb storage {self.db!r}")

    def cleanup(self) -> None:
        # A closed store still owns its database; reconnect briefly to drop it
        reconnected = self._closed
        conn = self._connect() if reconnected else self._conn
        try:
            self._r.db_drop(self.db).run(conn)
        except self._errors.ReqlError as e:
            already_gone = isinstance(e, self._errors.ReqlOpFailedError) and "does not exist" in str(e)
            if not already_gone:
                raise StorageError(f"Dropping rethinkdb database {self.db!r} failed: {e}") from e
        finally:
            if reconnected:
                conn.close()
            else:
                self.close()
        logger.info(f"Dropped rethinkdb database {self.db!r}")

    def __repr__(self) -> str:
        return f"RethinkDBStore(host='{self.host}', port={self.port}, db='{self.db}')"
