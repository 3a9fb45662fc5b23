"""
Pytest Configuration and Fixtures for LinguaLevel Tests
=======================================================

Purpose
-------
Centralized test fixtures and configuration for the LinguaLevel test suite.
Provides reusable fixtures for the event bus, progress stores, services and
mocks.

Architecture Notes
------------------
- Unit tests use the in-memory progress store (fast, isolated)
- The Redis client is replaced by a pytest-mock AsyncMock
- Environment variables are set before lingualevel is imported so Config
  loads in testing mode
"""

from __future__ import annotations

import os

os.environ.setdefault("LINGUALEVEL_ENV", "testing")
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.setdefault("LOG_TO_FILE", "false")

import pytest

from lingualevel.core.config import Config
from lingualevel.core.event.bus import EventBus
from lingualevel.core.logging.logger import get_logger
from lingualevel.modules.accuracy.service import AccuracyService
from lingualevel.modules.progression.service import LevelingService
from lingualevel.modules.progression.store import InMemoryProgressStore, RedisProgressStore

logger = get_logger(__name__)


# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================


def pytest_configure(config):
    """Configure pytest environment."""
    os.environ["LINGUALEVEL_ENV"] = "testing"


# ============================================================================
# INFRASTRUCTURE FIXTURES
# ============================================================================


@pytest.fixture
def event_bus() -> EventBus:
    """Fresh EventBus per test."""
    return EventBus()


@pytest.fixture
def mock_event_bus(mocker):
    """
    Mock EventBus for unit tests.

    Scope: function
    Uses: Service tests that assert on published events
    """
    mock_bus = mocker.MagicMock()
    mock_bus.publish = mocker.AsyncMock()
    mock_bus.subscribe = mocker.MagicMock()
    return mock_bus


@pytest.fixture
def mock_config(mocker):
    """
    Config stand-in whose get() answers from a dict, falling back to Config.

    Tests override values by mutating `mock_config.values`.
    """
    mock = mocker.MagicMock()
    mock.values = {}
    mock.get = mocker.MagicMock(
        side_effect=lambda key, default=None: mock.values.get(key, Config.get(key, default))
    )
    return mock


@pytest.fixture
def test_logger():
    return get_logger("tests")


@pytest.fixture
def store() -> InMemoryProgressStore:
    return InMemoryProgressStore()


@pytest.fixture
def mock_redis(mocker):
    """
    AsyncMock standing in for a redis.asyncio.Redis client.

    Scope: function
    Uses: RedisProgressStore tests
    """
    client = mocker.AsyncMock()
    client.get = mocker.AsyncMock(return_value=None)
    client.set = mocker.AsyncMock(return_value=True)
    client.delete = mocker.AsyncMock(return_value=1)
    return client


@pytest.fixture
def redis_store(mock_redis) -> RedisProgressStore:
    return RedisProgressStore(mock_redis, key_prefix="test:v1", ttl_seconds=0)


# ============================================================================
# SERVICE FIXTURES
# ============================================================================


@pytest.fixture
def accuracy_service(store, mock_config, mock_event_bus, test_logger) -> AccuracyService:
    return AccuracyService(store, mock_config, mock_event_bus, test_logger)


@pytest.fixture
def leveling_service(
    store, mock_config, mock_event_bus, test_logger, accuracy_service
) -> LevelingService:
    return LevelingService(
        store, mock_config, mock_event_bus, test_logger, accuracy_service=accuracy_service
    )


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================


def assert_domain_event_emitted(domain_model, event_name: str) -> bool:
    """
    Assert that a domain model emitted a specific event.

    Usage:
        learner.add_experience(1400)
        assert assert_domain_event_emitted(learner, "learner.leveled_up")
    """
    events = domain_model.get_pending_events()
    return any(event.event_name == event_name for event in events)


def get_domain_event_payload(domain_model, event_name: str) -> dict | None:
    """
    Get the payload of a specific domain event.

    Usage:
        learner.add_experience(1400)
        payload = get_domain_event_payload(learner, "learner.leveled_up")
        assert payload["new_level"] == 3
    """
    events = domain_model.get_pending_events()
    for event in events:
        if event.event_name == event_name:
            return event.payload
    return None


def published_event_names(mock_bus) -> list:
    """Names passed to mock_bus.publish, in call order."""
    return [call.args[0] for call in mock_bus.publish.await_args_list]
