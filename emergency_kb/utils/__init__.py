"""Utility modules for the emergency knowledge base.

- **errors** -- exception hierarchy rooted at KnowledgeBaseError; each stage
  raises its own subclass and the facade converts them to tagged results.
- **concurrency** -- semaphore-throttled gather and the cooperative
  CancellationToken used by ingestion.
- **logging** -- structlog setup: coloured console output in development,
  JSON in production.
- **vector_math** -- cosine similarity and finiteness checks over numpy.
"""

# -- Concurrency helpers -----------------------------------------------------
from emergency_kb.utils.concurrency import CancellationToken, throttled_gather

# -- Domain exception hierarchy ------------------------------------------------
from emergency_kb.utils.errors import (
    ConfigurationError,
    EmbeddingError,
    IngestionCancelledError,
    KnowledgeBaseError,
    ParseError,
    SourceUnavailableError,
    StorageError,
    ValidationError,
)

# -- Structured logging ----------------------------------------------------------
from emergency_kb.utils.logging import configure_logging, get_logger

# -- Vector math -------------------------------------------------------------------
from emergency_kb.utils.vector_math import cosine_similarity, is_finite_vector

__all__ = [
    "CancellationToken",
    "ConfigurationError",
    "EmbeddingError",
    "IngestionCancelledError",
    "KnowledgeBaseError",
    "ParseError",
    "SourceUnavailableError",
    "StorageError",
    "ValidationError",
    "configure_logging",
    "cosine_similarity",
    "get_logger",
    "is_finite_vector",
    "throttled_gather",
]
