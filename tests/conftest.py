"""Shared test fixtures.

Routes the global app's store dependency to an in-memory store so API
tests run without Supabase.
"""

from collections.abc import Iterator

import pytest

from aggregator.application import get_store
from aggregator.main import app
from tests.fakes import FakeClock, InMemoryStore


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> InMemoryStore:
    return InMemoryStore(clock)


@pytest.fixture(autouse=True)
def override_store_dependency(store: InMemoryStore) -> Iterator[None]:
    """Serve every request of the global app from the in-memory store."""
    app.dependency_overrides[get_store] = lambda: store
    yield
    app.dependency_overrides.pop(get_store, None)
