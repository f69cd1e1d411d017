"""Host-facing facade over the emergency knowledge base.

:class:`KnowledgeBase` is the single object a host application talks to.  It
wires the version manager, ingestion orchestrator, retrieval engine and
knowledge store together and exposes the operations as coroutines that
return tagged results (see :mod:`emergency_kb.models.results`) instead of
raising.
"""

from __future__ import annotations

from typing import BinaryIO

import structlog

from emergency_kb.interfaces.knowledge_store import IKnowledgeStore
from emergency_kb.models.knowledge import (
    DEFAULT_CATEGORY,
    DEFAULT_LANGUAGE,
    DEFAULT_PRIORITY,
    DocumentMetadata,
    KnowledgeBaseStats,
    KnowledgeEntry,
)
from emergency_kb.models.results import (
    AddError,
    AddSuccess,
    BatchAddError,
    BatchAddSuccess,
    DocumentAddError,
    DocumentAddSuccess,
    NoResults,
    SearchError,
    SearchSuccess,
    describe_cause,
)
from emergency_kb.services.embedder import Embedder
from emergency_kb.services.ingestion.embedding_stage import BLANK_TEXT_REASON, embed_and_validate
from emergency_kb.services.ingestion.ingestion_service import IngestionService
from emergency_kb.services.ingestion.keyword_extractor import extract_keywords
from emergency_kb.services.retrieval_service import (
    DEFAULT_LIMIT,
    DEFAULT_PRIORITY_THRESHOLD,
    RetrievalService,
)
from emergency_kb.services.version_manager import InitializationOutcome, VersionManager
from emergency_kb.utils.concurrency import CancellationToken
from emergency_kb.utils.errors import StorageError

logger = structlog.get_logger(logger_name=__name__)

_FAILURE_INDEX_PREFIX = "Entry "


class KnowledgeBase:
    """Exposed operations of the knowledge base.

    Parameters
    ----------
    store:
        The shared knowledge store.
    embedder:
        The shared embedder; also injected into ingestion and retrieval.
    ingestion:
        Orchestrator used for runtime document adds.
    retrieval:
        Ranked semantic search.
    version_manager:
        Single-flight bootstrap and forced rebuilds.
    embed_concurrency:
        Concurrent embedding calls for :meth:`add_entry_batch`.
    search_default_limit, search_default_priority_threshold:
        Defaults applied when :meth:`search` is called without them.
    """

    def __init__(
        self,
        store: IKnowledgeStore,
        embedder: Embedder,
        ingestion: IngestionService,
        retrieval: RetrievalService,
        version_manager: VersionManager,
        embed_concurrency: int = 1,
        search_default_limit: int = DEFAULT_LIMIT,
        search_default_priority_threshold: int = DEFAULT_PRIORITY_THRESHOLD,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self._ingestion = ingestion
        self._retrieval = retrieval
        self._version_manager = version_manager
        self._embed_concurrency = embed_concurrency
        self._default_limit = search_default_limit
        self._default_priority_threshold = search_default_priority_threshold

    @property
    def embedder(self) -> Embedder:
        return self._embedder

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize_storage(self) -> None:
        """Create store tables; call once before any other operation."""
        await self._store.initialize()
        self._version_manager.initialize_storage()

    async def initialize_if_needed(
        self, cancel_token: CancellationToken | None = None
    ) -> InitializationOutcome:
        return await self._version_manager.check_and_maybe_ingest(cancel_token)

    async def force_reinitialize(
        self, cancel_token: CancellationToken | None = None
    ) -> InitializationOutcome:
        return await self._version_manager.force_reinitialize(cancel_token)

    async def close(self) -> None:
        await self._embedder.release()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def add_document_at_runtime(
        self,
        document: bytes | str | BinaryIO,
        metadata: DocumentMetadata,
    ) -> DocumentAddSuccess | DocumentAddError:
        return await self._ingestion.add_document_at_runtime(document, metadata)

    async def add_entry(
        self,
        title: str,
        text: str,
        category: str = DEFAULT_CATEGORY,
        priority: int = DEFAULT_PRIORITY,
        keywords: str | None = None,
        source: str = "",
        language_code: str = DEFAULT_LANGUAGE,
    ) -> AddSuccess | AddError:
        """Embed and store one entry.

        Keywords are extracted from *text* when not supplied.  A storage
        failure is fatal to this call and comes back as :class:`AddError`.
        """
        if not text.strip():
            return AddError(message=BLANK_TEXT_REASON)

        embedding = await self._embedder.embed(text)
        if not embedding:
            return AddError(message="Failed to generate embedding")

        entry = KnowledgeEntry(
            title=title,
            text=text,
            embedding=embedding,
            category=category,
            priority=priority,
            keywords=keywords if keywords is not None else extract_keywords(text),
            source=source,
            language_code=language_code,
        )
        try:
            entry_id = await self._store.insert(entry)
        except StorageError as exc:
            logger.warning("add_entry_failed", title=title, error=exc.message)
            return AddError(message=exc.message, cause=describe_cause(exc))
        except Exception as exc:
            logger.error("add_entry_failed", title=title, error=str(exc))
            return AddError(message=f"Failed to store entry: {exc}", cause=describe_cause(exc))

        logger.info("entry_added", id=entry_id, title=title, category=category)
        return AddSuccess(id=entry_id)

    async def add_entry_batch(
        self, entries: list[KnowledgeEntry]
    ) -> BatchAddSuccess | BatchAddError:
        """Embed and store many entries with per-entry outcomes.

        Entries without an embedding are embedded first.  Every submitted
        entry ends up either in ``ids`` or in ``failures``
        (``"Entry <index>: <reason>"``, indexed against *entries*).
        """
        if not entries:
            return BatchAddError(message="No entries provided")

        try:
            prepared = await embed_and_validate(entries, self._embedder, self._embed_concurrency)
            # Store indices refer to prepared.valid; map them back to the input.
            rejected = {index for index, _ in prepared.rejected}
            valid_indices = [i for i in range(len(entries)) if i not in rejected]
            stored = await self._store.insert_batch(prepared.valid)
        except Exception as exc:
            logger.error("add_entry_batch_failed", entries=len(entries), error=str(exc))
            return BatchAddError(
                message=f"Batch insert failed: {exc}", cause=describe_cause(exc)
            )

        failures = [f"Entry {index}: {reason}" for index, reason in prepared.rejected]
        failures.extend(_reindex_failure(f, valid_indices) for f in stored.failures)
        failures.sort(key=_failure_index)

        logger.info(
            "entry_batch_added",
            submitted=len(entries),
            added=len(stored.ids),
            failed=len(failures),
        )
        return BatchAddSuccess(ids=stored.ids, failures=failures)

    async def clear_all(self) -> int:
        deleted = await self._store.clear()
        logger.info("knowledge_base_cleared", deleted=deleted)
        return deleted

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def search(
        self,
        query: str,
        limit: int | None = None,
        category: str | None = None,
        priority_threshold: int | None = None,
    ) -> SearchSuccess | NoResults | SearchError:
        return await self._retrieval.search(
            query,
            limit=self._default_limit if limit is None else limit,
            category=category,
            priority_threshold=(
                self._default_priority_threshold
                if priority_threshold is None
                else priority_threshold
            ),
        )

    async def get_statistics(self) -> KnowledgeBaseStats:
        """Recompute counts from the full entry set; empty stats if the store fails."""
        try:
            entries = await self._store.all()
        except Exception as exc:
            logger.error("statistics_failed", error=str(exc))
            return KnowledgeBaseStats()
        return KnowledgeBaseStats.from_entries(entries)

    async def get_by_category(self, category: str) -> list[KnowledgeEntry]:
        return await self._store.get_by_category(category)

    async def get_by_priority(self, priority_max: int) -> list[KnowledgeEntry]:
        return await self._store.get_by_priority(priority_max)

    async def count(self) -> int:
        return await self._store.count()


def _failure_index(failure: str) -> int:
    head = failure[len(_FAILURE_INDEX_PREFIX):].split(":", 1)[0]
    return int(head) if head.isdigit() else -1


def _reindex_failure(failure: str, valid_indices: list[int]) -> str:
    """Rewrite a store failure's index (into the valid subset) as an input index."""
    position = _failure_index(failure)
    if not 0 <= position < len(valid_indices):
        return failure
    reason = failure.split(":", 1)[1].lstrip() if ":" in failure else failure
    return f"Entry {valid_indices[position]}: {reason}"
