"""Shared pytest fixtures and configuration."""

import pytest

from feedesk.config import Settings
from feedesk.data_store import DataStore
from feedesk.identity import IdentityService
from feedesk.realtime import ChangeFeed
from feedesk.service import Backend


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: component interaction tests")


# Shared fixtures


@pytest.fixture
def feed() -> ChangeFeed:
    """Create an empty ChangeFeed."""
    return ChangeFeed()


@pytest.fixture
def store(feed: ChangeFeed):
    """Create an in-memory DataStore publishing to the feed."""
    s = DataStore(":memory:", feed=feed)
    yield s
    s.close()


@pytest.fixture
def identity(store: DataStore) -> IdentityService:
    """Create an IdentityService with a cheap bcrypt cost."""
    return IdentityService(store, bcrypt_rounds=4)


@pytest.fixture
def backend(store: DataStore, feed: ChangeFeed, identity: IdentityService) -> Backend:
    """Wire store, feed and identity into a Backend."""
    return Backend(store=store, feed=feed, identity=identity)


@pytest.fixture
def settings() -> Settings:
    """Settings tuned for tests: no payment delay, fast heartbeats."""
    return Settings(
        db_path=":memory:",
        payment_delay=0,
        heartbeat_interval=0.2,
        bcrypt_rounds=4,
    )
