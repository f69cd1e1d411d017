"""Dict-backed knowledge store.

Keeps entries in process memory.  Used by the test suite and for throwaway
runs (``KNOWLEDGE_STORE=memory``) where nothing should touch disk.
"""

from __future__ import annotations

from datetime import datetime, timezone

import structlog

from emergency_kb.interfaces.knowledge_store import BatchInsertOutcome, IKnowledgeStore
from emergency_kb.models.knowledge import KnowledgeEntry
from emergency_kb.utils.errors import StorageError
from emergency_kb.utils.vector_math import is_finite_vector

logger = structlog.get_logger(logger_name=__name__)


class InMemoryKnowledgeStore(IKnowledgeStore):
    """In-process :class:`IKnowledgeStore`.  Ids start at 1 and are never reused."""

    def __init__(self) -> None:
        self._entries: dict[int, KnowledgeEntry] = {}
        self._next_id = 1

    async def initialize(self) -> None:
        logger.debug("memory_knowledge_store_initialized")

    async def insert(self, entry: KnowledgeEntry) -> int:
        return self._store(entry)

    async def insert_batch(self, entries: list[KnowledgeEntry]) -> BatchInsertOutcome:
        ids: list[int] = []
        failures: list[str] = []
        for index, entry in enumerate(entries):
            try:
                ids.append(self._store(entry))
            except StorageError as exc:
                failures.append(f"Entry {index}: {exc.message}")
        return BatchInsertOutcome(ids=ids, failures=failures)

    async def query(
        self,
        priority_max: int,
        category: str | None = None,
    ) -> list[KnowledgeEntry]:
        return [
            e
            for e in self._ordered()
            if e.priority <= priority_max and (category is None or e.category == category)
        ]

    async def get_by_category(self, category: str) -> list[KnowledgeEntry]:
        return [e for e in self._ordered() if e.category == category]

    async def get_by_priority(self, priority_max: int) -> list[KnowledgeEntry]:
        matches = [e for e in self._ordered() if e.priority <= priority_max]
        return sorted(matches, key=lambda e: (e.priority, e.id))

    async def count(self) -> int:
        return len(self._entries)

    async def all(self) -> list[KnowledgeEntry]:
        return self._ordered()

    async def clear(self) -> int:
        deleted = len(self._entries)
        self._entries.clear()
        return deleted

    def get_provider_name(self) -> str:
        return "memory_knowledge_store"

    def _ordered(self) -> list[KnowledgeEntry]:
        return [self._entries[k] for k in sorted(self._entries)]

    def _store(self, entry: KnowledgeEntry) -> int:
        if not entry.text.strip():
            raise StorageError("Entry text is blank", provider_name=self.get_provider_name())
        if not is_finite_vector(entry.embedding):
            raise StorageError(
                "Entry embedding is empty or not finite",
                provider_name=self.get_provider_name(),
            )
        entry_id = self._next_id
        self._next_id += 1
        self._entries[entry_id] = entry.model_copy(
            update={"id": entry_id, "last_updated": datetime.now(timezone.utc)}
        )
        return entry_id
