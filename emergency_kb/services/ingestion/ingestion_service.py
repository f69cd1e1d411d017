"""Orchestrator for knowledge-base ingestion.

Pipeline stages: **read -> parse -> embed -> validate -> store**.

:class:`IngestionService` coordinates four collaborators (document parser,
embedder, knowledge store, seed factory) without any of them knowing about
each other:

    1. DocumentSource.read      -- open each source in declared priority order
    2. DocumentParser.parse     -- format-specific candidate entries
    3. embed_and_validate       -- fill missing embeddings, drop invalid entries
    4. IKnowledgeStore          -- one batch write with per-entry outcomes

Failure policy:

* an unavailable source is skipped silently;
* a source that opens but cannot be parsed adds one error and is skipped;
* a record, embedding or per-entry storage failure adds to ``errors`` or
  ``skipped_count`` and never aborts the run;
* only a run that cannot store a single entry, or an unexpected exception,
  comes back as :class:`IngestFailure`.

If no source yields any candidate, the built-in seed set is ingested instead
and counted as one synthetic source.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import BinaryIO

import structlog

from emergency_kb.interfaces.knowledge_store import IKnowledgeStore
from emergency_kb.models.knowledge import DocumentMetadata, KnowledgeEntry
from emergency_kb.models.results import (
    DocumentAddError,
    DocumentAddSuccess,
    IngestFailure,
    IngestSummary,
    describe_cause,
)
from emergency_kb.services.embedder import Embedder
from emergency_kb.services.ingestion.document_parser import DocumentParser
from emergency_kb.services.ingestion.document_source import DocumentSource
from emergency_kb.services.ingestion.embedding_stage import embed_and_validate
from emergency_kb.services.ingestion.seed_data import SEED_SOURCE_NAME, default_seed_entries
from emergency_kb.utils.concurrency import CancellationToken
from emergency_kb.utils.errors import (
    IngestionCancelledError,
    ParseError,
    SourceUnavailableError,
    ValidationError,
)

logger = structlog.get_logger(logger_name=__name__)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class IngestionService:
    """Runs bootstrap ingestion and ad-hoc document adds.

    Parameters
    ----------
    parser:
        Turns raw bytes into candidate entries.
    embedder:
        Supplies embeddings for candidates that lack one.
    store:
        Destination for validated entries.
    embed_concurrency:
        Maximum concurrent embedding calls (1 = sequential).
    seed_factory:
        Returns the fallback entries used when no source yields anything.
    """

    def __init__(
        self,
        parser: DocumentParser,
        embedder: Embedder,
        store: IKnowledgeStore,
        embed_concurrency: int = 1,
        seed_factory: Callable[[], list[KnowledgeEntry]] = default_seed_entries,
    ) -> None:
        self._parser = parser
        self._embedder = embedder
        self._store = store
        self._embed_concurrency = embed_concurrency
        self._seed_factory = seed_factory

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(
        self,
        sources: list[DocumentSource],
        cancel_token: CancellationToken | None = None,
    ) -> IngestSummary | IngestFailure:
        """Ingest *sources* in order and report aggregate counts.

        Never raises: unexpected exceptions become an :class:`IngestFailure`.
        """
        start = time.monotonic()
        logger.info("ingestion_started", sources=len(sources))
        try:
            result = await self._run(sources, cancel_token, start)
        except Exception as exc:
            logger.error("ingestion_failed", error=str(exc), elapsed_ms=_elapsed_ms(start))
            return IngestFailure(message=f"Ingestion failed: {exc}", cause=describe_cause(exc))

        if isinstance(result, IngestSummary):
            logger.info(
                "ingestion_complete",
                added=result.added_count,
                sources=result.source_count,
                skipped=result.skipped_count,
                errors=len(result.errors),
                fallback=result.used_fallback,
                cancelled=result.cancelled,
                elapsed_ms=result.elapsed_ms,
            )
        return result

    async def add_document_at_runtime(
        self,
        document: bytes | str | BinaryIO,
        metadata: DocumentMetadata,
    ) -> DocumentAddSuccess | DocumentAddError:
        """Parse, embed and store one document outside the bootstrap flow."""
        try:
            data = await asyncio.to_thread(_read_document, document)
            outcome = await asyncio.to_thread(self._parser.parse, data, metadata)
        except (ParseError, ValidationError) as exc:
            logger.warning("runtime_document_rejected", source=metadata.source, error=exc.message)
            return DocumentAddError(message=exc.message, cause=describe_cause(exc))
        except Exception as exc:
            logger.error("runtime_document_failed", source=metadata.source, error=str(exc))
            return DocumentAddError(
                message=f"Failed to read document {metadata.source}: {exc}",
                cause=describe_cause(exc),
            )

        try:
            prepared = await embed_and_validate(
                outcome.entries, self._embedder, self._embed_concurrency
            )
            if not prepared.valid:
                return DocumentAddError(
                    message=f"No valid entries could be embedded from {metadata.source}"
                )
            stored = await self._store.insert_batch(prepared.valid)
        except Exception as exc:
            logger.error("runtime_document_failed", source=metadata.source, error=str(exc))
            return DocumentAddError(
                message=f"Failed to store document {metadata.source}: {exc}",
                cause=describe_cause(exc),
            )

        if not stored.ids:
            return DocumentAddError(
                message=f"No entries from {metadata.source} could be stored: "
                + "; ".join(stored.failures)
            )

        logger.info(
            "runtime_document_added",
            source=metadata.source,
            added=len(stored.ids),
            skipped=len(prepared.rejected),
        )
        return DocumentAddSuccess(
            entries_added=len(stored.ids),
            source=metadata.source,
            skipped_count=len(prepared.rejected),
            errors=outcome.errors + stored.failures,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _run(
        self,
        sources: list[DocumentSource],
        cancel_token: CancellationToken | None,
        start: float,
    ) -> IngestSummary | IngestFailure:
        errors: list[str] = []
        candidates: list[KnowledgeEntry] = []
        source_count = 0

        def _cancelled() -> IngestSummary:
            logger.warning("ingestion_cancelled", sources_done=source_count)
            return IngestSummary(
                source_count=source_count,
                elapsed_ms=_elapsed_ms(start),
                errors=errors,
                cancelled=True,
            )

        for source in sources:
            if cancel_token is not None and cancel_token.is_cancelled:
                return _cancelled()
            try:
                data = await source.read()
            except SourceUnavailableError as exc:
                logger.info("source_skipped", source=source.name, reason=exc.message)
                continue
            try:
                outcome = await asyncio.to_thread(self._parser.parse, data, source.metadata)
            except (ParseError, ValidationError) as exc:
                errors.append(f"{source.name}: {exc.message}")
                logger.warning("source_parse_failed", source=source.name, error=exc.message)
                continue

            errors.extend(outcome.errors)
            candidates.extend(outcome.entries)
            source_count += 1
            logger.info("source_parsed", source=source.name, entries=len(outcome.entries))

        used_fallback = False
        if not candidates:
            candidates = self._seed_factory()
            source_count += 1
            used_fallback = True
            logger.warning(
                "ingestion_using_seed_data", source=SEED_SOURCE_NAME, entries=len(candidates)
            )

        try:
            prepared = await embed_and_validate(
                candidates, self._embedder, self._embed_concurrency, cancel_token
            )
        except IngestionCancelledError:
            return _cancelled()

        if not prepared.valid:
            return IngestFailure(
                message=(
                    f"No valid entries to store: all {len(candidates)} candidates "
                    "failed embedding or validation"
                )
            )

        if cancel_token is not None and cancel_token.is_cancelled:
            return _cancelled()

        stored = await self._store.insert_batch(prepared.valid)
        errors.extend(stored.failures)
        if not stored.ids:
            return IngestFailure(
                message=f"Knowledge store rejected all {len(prepared.valid)} entries"
            )

        return IngestSummary(
            added_count=len(stored.ids),
            source_count=source_count,
            skipped_count=len(prepared.rejected),
            elapsed_ms=_elapsed_ms(start),
            errors=errors,
            used_fallback=used_fallback,
        )


def _read_document(document: bytes | str | BinaryIO) -> bytes | str:
    if isinstance(document, (bytes, str)):
        return document
    return document.read()
