"""Shared test fixtures for annostore."""

import tempfile
import time

import pytest

from annostore.storage.local import LocalStore


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def now() -> int:
    return int(time.time())


@pytest.fixture
def local_store(tmp_path):
    """An empty LocalStore in a fresh file, destroyed after the test."""
    store = LocalStore(tmp_path / "annotations.db")
    yield store
    store.cleanup()
