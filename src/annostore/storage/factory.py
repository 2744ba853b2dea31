"""
Storage factory: turns a storage config string into an open store.

Config strings look like ``<backend>:<options>``::

    local:/var/lib/annostore/annotations.db
    rethinkdb:localhost:28015/annotations

The string is split once on the first colon; the options are handed to the
backend untouched. The factory keeps no state and caches nothing.
"""

from loguru import logger

from annostore.core.exceptions import ConfigurationError

from .base import AnnotationStore

BACKENDS = ("local", "rethinkdb")


def open_store(config: str) -> AnnotationStore:
    """
    Open the store described by ``config``.

    Raises:
        ConfigurationError: if the string is malformed or names an unknown
            backend.
        StorageConnectionError: if the backend cannot be opened or reached.
    """
    backend, sep, options = (config or "").partition(":")
    if not sep:
        raise ConfigurationError(f"invalid storage config {config!r}, expected format: <backend>:<options>")

    logger.debug(f"Opening {backend} storage")
    if backend == "local":
        if not options:
            raise ConfigurationError(f"invalid storage config {config!r}: local storage needs a file path")
        from .local import LocalStore

        return LocalStore(options)
    if backend == "rethinkdb":
        from .rethinkdb_store import RethinkDBStore

        return RethinkDBStore.from_connection_string(options)

    raise ConfigurationError(f"invalid storage config, type {backend!r} not supported. Available: {list(BACKENDS)}")
