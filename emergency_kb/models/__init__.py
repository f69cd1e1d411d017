"""Knowledge-base domain models -- re-exports all public model classes.

    - knowledge.py -- entries, ingestion metadata, search matches, stats, version state
    - results.py   -- tagged result variants returned by every exposed operation
"""

from __future__ import annotations

from emergency_kb.models.knowledge import (
    Category,
    ChunkingStrategy,
    DocumentFormat,
    DocumentMetadata,
    KnowledgeBaseStats,
    KnowledgeEntry,
    Priority,
    SearchEntry,
    VersionState,
)
from emergency_kb.models.results import (
    AddError,
    AddResult,
    AddSuccess,
    AlreadyInitialized,
    BatchAddError,
    BatchAddResult,
    BatchAddSuccess,
    DocumentAddError,
    DocumentAddResult,
    DocumentAddSuccess,
    IngestFailure,
    IngestResult,
    IngestSummary,
    InitializationError,
    InitializationResult,
    InitializationSuccess,
    NoResults,
    ParseOutcome,
    SearchError,
    SearchResult,
    SearchSuccess,
)

__all__ = [
    # knowledge
    "Category",
    "ChunkingStrategy",
    "DocumentFormat",
    "DocumentMetadata",
    "KnowledgeBaseStats",
    "KnowledgeEntry",
    "Priority",
    "SearchEntry",
    "VersionState",
    # results
    "AddError",
    "AddResult",
    "AddSuccess",
    "AlreadyInitialized",
    "BatchAddError",
    "BatchAddResult",
    "BatchAddSuccess",
    "DocumentAddError",
    "DocumentAddResult",
    "DocumentAddSuccess",
    "IngestFailure",
    "IngestResult",
    "IngestSummary",
    "InitializationError",
    "InitializationResult",
    "InitializationSuccess",
    "NoResults",
    "ParseOutcome",
    "SearchError",
    "SearchResult",
    "SearchSuccess",
]
