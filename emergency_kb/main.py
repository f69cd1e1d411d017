"""Composition root for the emergency knowledge base.

Builds every provider and service once, injects the shared
:class:`Embedder` and knowledge store into ingestion and retrieval, and
returns the :class:`KnowledgeBase` facade.  Nothing else in the package
constructs concrete providers.
"""

from __future__ import annotations

from datetime import timedelta

import structlog

from emergency_kb.config.loader import apply_config, load_config, load_source_manifest
from emergency_kb.config.settings import Settings
from emergency_kb.interfaces.embedding_provider import IEmbeddingProvider
from emergency_kb.interfaces.knowledge_store import IKnowledgeStore
from emergency_kb.providers.knowledge_store import InMemoryKnowledgeStore, SQLiteKnowledgeStore
from emergency_kb.providers.state import SQLiteVersionStateStore
from emergency_kb.services.embedder import Embedder
from emergency_kb.services.ingestion import DocumentParser, IngestionService, TextChunker
from emergency_kb.services.knowledge_base import KnowledgeBase
from emergency_kb.services.retrieval_service import RetrievalService
from emergency_kb.services.version_manager import VersionManager
from emergency_kb.utils.errors import ConfigurationError
from emergency_kb.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider:
    """Select the configured embedding backend, falling back to the other one.

    Raises
    ------
    ConfigurationError
        If neither fastembed nor sentence-transformers is installed.
    """
    from emergency_kb.providers.embedding import (
        FastEmbedEmbeddingProvider,
        SentenceTransformerEmbeddingProvider,
    )

    model = app_settings.embedding_model or None
    fastembed = FastEmbedEmbeddingProvider(model_name=model)
    sentence_transformer = SentenceTransformerEmbeddingProvider(model_name=model)

    candidates: list[IEmbeddingProvider] = [fastembed, sentence_transformer]
    if app_settings.embedding_provider == "sentence_transformer":
        candidates.reverse()

    for provider in candidates:
        if provider.is_available():
            if provider is not candidates[0]:
                _logger.warning(
                    "embedding_provider_fallback",
                    configured=app_settings.embedding_provider,
                    using=provider.get_provider_name(),
                )
            return provider

    raise ConfigurationError(
        "No embedding backend installed: install fastembed or sentence-transformers"
    )


def build_knowledge_store(app_settings: Settings) -> IKnowledgeStore:
    if app_settings.knowledge_store == "memory":
        return InMemoryKnowledgeStore()
    return SQLiteKnowledgeStore(db_path=app_settings.knowledge_db_path)


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def build_knowledge_base(
    custom_settings: Settings | None = None,
    embedding_provider: IEmbeddingProvider | None = None,
    knowledge_store: IKnowledgeStore | None = None,
) -> KnowledgeBase:
    """Construct the knowledge base with injected dependencies.

    Stores are created but not initialized; use :func:`open_knowledge_base`
    unless the caller initializes them itself.

    Parameters
    ----------
    custom_settings:
        Application settings.  Uses module-level ``settings`` if not provided.
        The YAML file at ``config_path`` fills in every value the settings
        did not set explicitly.
    embedding_provider, knowledge_store:
        Overrides for the configured backends.
    """
    base = custom_settings or settings
    s = apply_config(base, load_config(base.config_path, base))

    store = knowledge_store or build_knowledge_store(s)
    embedder = Embedder(
        provider=embedding_provider or build_embedding_provider(s),
        max_text_length=s.embedding_max_text_length,
    )

    chunker = TextChunker(
        chunk_size=s.chunk_size,
        overlap=s.chunk_overlap,
        sentences_per_chunk=s.sentences_per_chunk,
    )
    ingestion = IngestionService(
        parser=DocumentParser(chunker=chunker),
        embedder=embedder,
        store=store,
        embed_concurrency=s.embed_concurrency,
    )
    retrieval = RetrievalService(
        embedder=embedder,
        store=store,
        similarity_threshold=s.similarity_threshold,
        similarity_weight=s.similarity_weight,
        priority_weight_factor=s.priority_weight,
        field_weight=s.field_weight,
    )
    version_manager = VersionManager(
        state_store=SQLiteVersionStateStore(db_path=s.state_db_path),
        knowledge_store=store,
        ingestion=ingestion,
        sources=lambda: load_source_manifest(s.sources_manifest_path),
        schema_version=s.schema_version,
        staleness=timedelta(days=s.staleness_days),
    )

    _logger.info(
        "knowledge_base_built",
        store=store.get_provider_name(),
        embedder=embedder.provider_name,
        schema_version=s.schema_version,
    )
    return KnowledgeBase(
        store=store,
        embedder=embedder,
        ingestion=ingestion,
        retrieval=retrieval,
        version_manager=version_manager,
        embed_concurrency=s.embed_concurrency,
        search_default_limit=s.search_default_limit,
        search_default_priority_threshold=s.search_default_priority_threshold,
    )


async def open_knowledge_base(
    custom_settings: Settings | None = None,
    embedding_provider: IEmbeddingProvider | None = None,
    knowledge_store: IKnowledgeStore | None = None,
) -> KnowledgeBase:
    """Build the knowledge base and create its storage tables."""
    kb = build_knowledge_base(custom_settings, embedding_provider, knowledge_store)
    await kb.initialize_storage()
    return kb
