"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It points the service at the in-memory store so no Redis is needed, and
hands every test a fresh, empty store.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ["STORE_BACKEND"] = "memory"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from clipcode.adapters.store.base import StoreKeys  # noqa: E402
from clipcode.adapters.store.in_memory import InMemoryKVStore  # noqa: E402
from clipcode.core.app_factory import create_app  # noqa: E402
from clipcode.core.dependencies import set_store  # noqa: E402


@pytest.fixture
def store() -> Generator[InMemoryKVStore, None, None]:
    """Fresh in-memory store installed as the process-wide store."""
    memory_store = InMemoryKVStore()
    set_store(memory_store)
    yield memory_store
    set_store(None)


@pytest.fixture
def keys() -> StoreKeys:
    return StoreKeys()


@pytest.fixture
def client(store: InMemoryKVStore) -> TestClient:
    return TestClient(create_app())
