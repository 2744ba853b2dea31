"""
Storage backends for annostore.

Provides the ``AnnotationStore`` contract, the embedded SQLite store, the
RethinkDB store, and ``open_store`` to pick one from a config string.
"""

from .base import (
    AnnotationStore,
    QueryError,
    StorageConnectionError,
    StorageError,
    TagStats,
    TransactionError,
)
from .factory import BACKENDS, open_store
from .local import LocalStore

__all__ = [
    "BACKENDS",
    "AnnotationStore",
    "LocalStore",
    "QueryError",
    "StorageConnectionError",
    "StorageError",
    "TagStats",
    "TransactionError",
    "open_store",
]
