"""
Composition root.

Wires settings, storage, the LLM provider, and the identity provider into a
started ConversationStore and a matching SearchEngine.
"""

import logging

from chatdesk.auth import IdentityProvider
from chatdesk.config import Settings, StorageSettings, get_settings
from chatdesk.conversations import ConversationStore
from chatdesk.diagnostics import DiagnosticsSink
from chatdesk.llm import BaseLLMProvider, LLMProviderFactory
from chatdesk.search import SearchEngine
from chatdesk.storage import FileKeyValueStore, InMemoryKeyValueStore, KeyValueStore

logger = logging.getLogger(__name__)


def build_kv_store(settings: StorageSettings) -> KeyValueStore:
    if settings.backend == "memory":
        return InMemoryKeyValueStore()
    return FileKeyValueStore(settings.data_dir)


def build_conversation_store(
    identity_provider: IdentityProvider,
    *,
    settings: Settings | None = None,
    provider: BaseLLMProvider | None = None,
    kv_store: KeyValueStore | None = None,
    diagnostics: DiagnosticsSink | None = None,
) -> ConversationStore:
    """Create a ConversationStore and subscribe it to identity changes."""
    settings = settings or get_settings()
    provider = provider or LLMProviderFactory.create_default_provider(settings.llm)
    kv_store = kv_store or build_kv_store(settings.storage)

    store = ConversationStore(
        kv_store,
        identity_provider,
        provider,
        settings=settings.chat,
        key_prefix=settings.storage.key_prefix,
        diagnostics=diagnostics,
    )
    store.start()
    logger.info(
        "conversation_store_started",
        extra={"provider": provider.provider_name, "storage_backend": settings.storage.backend},
    )
    return store


def build_search_engine(settings: Settings | None = None) -> SearchEngine:
    settings = settings or get_settings()
    return SearchEngine(settings.search)
