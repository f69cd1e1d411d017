"""Versioned, single-flight bootstrap of the knowledge base.

:class:`VersionManager` owns the :class:`VersionState` record and decides,
on every bootstrap check, whether ingestion has to run:

    persisted version < current schema version
        -> ingest; wipe first when the persisted version is >= 1 (an upgrade)
    store is empty
        -> ingest (nothing to wipe)
    more than ``staleness`` since the last initialization
        -> ingest on top of existing entries (no wipe, no deduplication)
    otherwise
        -> AlreadyInitialized

The read of the version record, the ingestion run and the write of the new
record all happen under one ``asyncio.Lock``, so concurrent callers never
ingest twice: a caller that waited on the lock re-reads the fresh record and
sees AlreadyInitialized.  The record is only written after a successful run;
an :class:`InitializationError` leaves it untouched.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone

import structlog

from emergency_kb.interfaces.knowledge_store import IKnowledgeStore
from emergency_kb.interfaces.version_state_store import IVersionStateStore
from emergency_kb.models.knowledge import VersionState
from emergency_kb.models.results import (
    AlreadyInitialized,
    IngestFailure,
    InitializationError,
    InitializationSuccess,
    describe_cause,
)
from emergency_kb.services.ingestion.document_source import DocumentSource
from emergency_kb.services.ingestion.ingestion_service import IngestionService
from emergency_kb.utils.concurrency import CancellationToken

logger = structlog.get_logger(logger_name=__name__)

CURRENT_SCHEMA_VERSION = 2
DEFAULT_STALENESS = timedelta(days=30)

InitializationOutcome = InitializationSuccess | AlreadyInitialized | InitializationError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VersionManager:
    """Decides when to (re)ingest and records each successful initialization.

    Parameters
    ----------
    state_store:
        Persistence for the :class:`VersionState` record.
    knowledge_store:
        Store to count and, on upgrade or forced rebuild, clear.
    ingestion:
        Orchestrator that performs the actual ingestion run.
    sources:
        Callable returning the ordered source list at run time, so manifest
        edits are picked up without rebuilding the manager.
    schema_version:
        Current schema version; bump it to force a wipe-and-rebuild.
    staleness:
        Age after which an initialized knowledge base is refreshed.
    clock:
        Returns "now" as an aware datetime.  Injected for tests.
    """

    def __init__(
        self,
        state_store: IVersionStateStore,
        knowledge_store: IKnowledgeStore,
        ingestion: IngestionService,
        sources: Callable[[], list[DocumentSource]],
        schema_version: int = CURRENT_SCHEMA_VERSION,
        staleness: timedelta = DEFAULT_STALENESS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._state_store = state_store
        self._knowledge_store = knowledge_store
        self._ingestion = ingestion
        self._sources = sources
        self._schema_version = schema_version
        self._staleness = staleness
        self._clock = clock
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def check_and_maybe_ingest(
        self, cancel_token: CancellationToken | None = None
    ) -> InitializationOutcome:
        """Run ingestion if the version, emptiness or staleness rules require it.

        Cancelling *cancel_token* stops the run cooperatively; the result is
        then an :class:`InitializationError` and the version record is kept.
        """
        async with self._lock:
            return await self._guarded(lambda: self._check_locked(cancel_token))

    async def force_reinitialize(
        self, cancel_token: CancellationToken | None = None
    ) -> InitializationOutcome:
        """Clear every entry, reset version tracking and ingest from scratch."""
        async with self._lock:
            return await self._guarded(lambda: self._force_locked(cancel_token))

    def initialize_storage(self) -> None:
        self._state_store.initialize()

    def current_state(self) -> VersionState:
        return self._state_store.load()

    # ------------------------------------------------------------------
    # Internals (caller holds self._lock)
    # ------------------------------------------------------------------

    async def _guarded(
        self, operation: Callable[[], Awaitable[InitializationOutcome]]
    ) -> InitializationOutcome:
        try:
            return await operation()
        except Exception as exc:
            logger.error("initialization_failed", error=str(exc))
            return InitializationError(
                message=f"Initialization failed: {exc}",
                cause=describe_cause(exc),
            )

    async def _check_locked(self, cancel_token: CancellationToken | None) -> InitializationOutcome:
        state = self._state_store.load()
        persisted = state.schema_version

        if persisted < self._schema_version:
            if persisted >= 1:
                deleted = await self._knowledge_store.clear()
                logger.info(
                    "schema_upgrade_wipe",
                    from_version=persisted,
                    to_version=self._schema_version,
                    deleted=deleted,
                )
            return await self._ingest("schema_version", cancel_token)

        if await self._knowledge_store.count() == 0:
            return await self._ingest("empty_store", cancel_token)

        if self._is_stale(state):
            return await self._ingest("stale", cancel_token)

        logger.info(
            "knowledge_base_already_initialized",
            schema_version=persisted,
            last_initialized_at=str(state.last_initialized_at),
        )
        return AlreadyInitialized()

    async def _force_locked(self, cancel_token: CancellationToken | None) -> InitializationOutcome:
        deleted = await self._knowledge_store.clear()
        self._state_store.reset()
        logger.info("force_reinitialize", deleted=deleted)
        return await self._check_locked(cancel_token)

    def _is_stale(self, state: VersionState) -> bool:
        if state.last_initialized_at is None:
            return True
        return self._clock() - state.last_initialized_at > self._staleness

    async def _ingest(
        self, reason: str, cancel_token: CancellationToken | None
    ) -> InitializationSuccess | InitializationError:
        logger.info("initialization_ingest", reason=reason)
        result = await self._ingestion.run(self._sources(), cancel_token)

        if isinstance(result, IngestFailure):
            return InitializationError(message=result.message, cause=result.cause)
        if result.cancelled:
            return InitializationError(
                message=f"Initialization cancelled after {result.source_count} sources"
            )

        self._state_store.save(
            VersionState(schema_version=self._schema_version, last_initialized_at=self._clock())
        )
        return InitializationSuccess(
            entries_added=result.added_count,
            sources_processed=result.source_count,
            elapsed_ms=result.elapsed_ms,
            skipped_count=result.skipped_count,
            errors=result.errors,
        )
