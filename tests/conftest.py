"""
Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests.
"""

import asyncio
import logging
from datetime import UTC, datetime, timedelta
from itertools import count
from unittest.mock import MagicMock

import pytest

from chatdesk.auth import LocalIdentityProvider, UserIdentity
from chatdesk.config import ChatSettings
from chatdesk.conversations import ConversationStore, IdAllocator
from chatdesk.llm.base import BaseLLMProvider
from chatdesk.llm.models import LLMStreamChunk
from chatdesk.storage import InMemoryKeyValueStore

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "slow: mark test as slow (takes more than 1 second)")
    config.addinivalue_line("markers", "unit: mark test as unit test (default)")


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(autouse=True)
def configure_test_logging(caplog):
    """
    Configure logging for tests.

    Sets up log capture and configures log levels.
    This fixture runs automatically for all tests.
    """
    caplog.set_level(logging.DEBUG)
    yield


@pytest.fixture
def disable_logging():
    """Disable logging for tests that generate excessive logs."""
    logging.disable(logging.CRITICAL)
    yield
    logging.disable(logging.NOTSET)


# ============================================================================
# Environment and Configuration
# ============================================================================


@pytest.fixture(autouse=True)
def mock_openai_api_key(monkeypatch, tmp_path):
    """
    Mock OpenAI API key and point storage at a temp dir.

    This prevents tests from attempting real API calls or writing to $HOME.
    Runs automatically for all tests.
    """
    from chatdesk.config import get_settings

    get_settings.cache_clear()

    test_key = "sk-test-key-1234567890-abcdefghijklmnop"  # 20+ chars
    monkeypatch.setenv("LLM_OPENAI_API_KEY", test_key)
    monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path / "chatdesk-data"))
    monkeypatch.setenv("CHATDESK_ENV_SOURCE", "environment")
    yield test_key

    get_settings.cache_clear()


# ============================================================================
# Chat Fixtures
# ============================================================================


class ScriptedProvider(BaseLLMProvider):
    """
    LLM provider that replays a fixed list of fragments.

    ``fail_after`` raises ``error`` once that many fragments were yielded.
    """

    def __init__(self, fragments=(), fail_after=None, error=None):
        super().__init__(provider_name="scripted")
        self.fragments = list(fragments)
        self.fail_after = fail_after
        self.error = error or RuntimeError("upstream stream failed")
        self.requests = []

    async def stream(self, request):
        self.requests.append(request)
        for index, fragment in enumerate(self.fragments):
            if self.fail_after is not None and index >= self.fail_after:
                raise self.error
            await asyncio.sleep(0)
            yield LLMStreamChunk(content=fragment)
        if self.fail_after is not None and self.fail_after >= len(self.fragments):
            raise self.error


class SteppingClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start=None, step=timedelta(seconds=1)):
        self.current = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
        self.step = step

    def __call__(self):
        now = self.current
        self.current = self.current + self.step
        return now


@pytest.fixture
def alice() -> UserIdentity:
    return UserIdentity(id="user-alice", email="alice@example.com")


@pytest.fixture
def bob() -> UserIdentity:
    return UserIdentity(id="user-bob")


@pytest.fixture
def identity_provider(alice) -> LocalIdentityProvider:
    return LocalIdentityProvider(alice)


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider(["Hello", " there", "!"])


@pytest.fixture
def diagnostics() -> MagicMock:
    return MagicMock()


@pytest.fixture
def sequential_ids() -> IdAllocator:
    counter = count(1)
    return IdAllocator(lambda: str(next(counter)))


@pytest.fixture
def make_store(kv_store, identity_provider, provider, diagnostics, sequential_ids):
    """Factory building a started store; keyword overrides replace collaborators."""

    def _make(**overrides):
        store = ConversationStore(
            overrides.pop("kv_store", kv_store),
            overrides.pop("identity_provider", identity_provider),
            overrides.pop("provider", provider),
            settings=overrides.pop("settings", ChatSettings()),
            key_prefix=overrides.pop("key_prefix", "chats_"),
            diagnostics=overrides.pop("diagnostics", diagnostics),
            id_allocator=overrides.pop("id_allocator", sequential_ids),
            **overrides,
        )
        store.start()
        return store

    return _make


@pytest.fixture
def store(make_store) -> ConversationStore:
    return make_store()


@pytest.fixture
def make_provider():
    """Return the ScriptedProvider class for tests that need custom scripts."""
    return ScriptedProvider


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock()
