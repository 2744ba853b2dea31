"""
Abstract base class for annotation stores.

Every backend (embedded SQLite file, RethinkDB) serves the same contract, so
the HTTP layer and the query coordinator never know which one is in use.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from annostore.core.exceptions import AnnostoreError
from annostore.models import Annotation, Posts

TagStats = dict[str, int]

# Range-query results carry milliseconds for dashboard clients
MILLIS_PER_SECOND = 1000


class AnnotationStore(ABC):
    """Abstract base class for annotation stores.

    Implementations own exactly one physical resource, opened in the
    constructor and released by :meth:`close`.
    """

    #: Short backend name, as used in the storage config string.
    backend: str = ""

    @abstractmethod
    def add(self, annotation: Annotation) -> None:
        """Store ``annotation`` under each of its tags, atomically.

        Raises TransactionError if the write fails; nothing is stored then.
        """

    @abstractmethod
    def range_for_tag(self, tag: str, range_seconds: int, until_seconds: int) -> list[Annotation]:
        """Annotations under ``tag`` created in ``[until - range, until]``.

        Results are in chronological order with ``created_at`` in
        milliseconds and ``tags == [tag]``. An unknown tag yields ``[]``.
        """

    @abstractmethod
    def count_for_tag(self, tag: str) -> int:
        """Number of entries stored under ``tag``."""

    @abstractmethod
    def all_tags(self) -> set[str]:
        """Every tag with at least one stored entry."""

    def tag_stats(self) -> TagStats:
        """Per-tag entry counts, recomputed on every call."""
        return {tag: self.count_for_tag(tag) for tag in self.all_tags()}

    @abstractmethod
    def close(self) -> None:
        """Release the underlying resource. Safe to call more than once."""

    @abstractmethod
    def cleanup(self) -> None:
        """Close, then irreversibly destroy all persisted data."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class StorageError(AnnostoreError):
    """Base exception for storage errors."""


class StorageConnectionError(StorageError):
    """Raised when the backing store cannot be opened or reached."""


class TransactionError(StorageError):
    """Raised when a write or a scan fails mid-flight."""


class QueryError(TransactionError):
    """Raised when a multi-tag query aborts part way.

    ``partial`` holds the posts gathered before the failing tag. They are
    not a complete answer.
    """

    def __init__(self, message: str, partial: Posts | None = None, tag: str | None = None):
        super().__init__(message)
        self.partial = partial if partial is not None else Posts()
        self.tag = tag
