"""Abstract base class for knowledge-entry persistence.

The knowledge store is the only shared mutable resource between ingestion
and retrieval.  Implementations must make each entry write atomic: a reader
running concurrently with a batch insert sees every entry either fully
written or not at all.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from emergency_kb.models.knowledge import KnowledgeEntry


@dataclass(frozen=True)
class BatchInsertOutcome:
    """Per-entry outcome of :meth:`IKnowledgeStore.insert_batch`.

    Attributes
    ----------
    ids:
        Store-assigned ids of the entries that were written, in input order.
    failures:
        One ``"Entry <index>: <reason>"`` string per entry that was not
        written.  ``len(ids) + len(failures)`` equals the batch size.
    """

    ids: list[int] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)


# Concrete implementations (emergency_kb/providers/knowledge_store/):
#   SQLiteKnowledgeStore    -- aiosqlite, durable, default
#   InMemoryKnowledgeStore  -- dict-backed, for tests and ephemeral runs
class IKnowledgeStore(ABC):
    """Contract for durable storage of :class:`KnowledgeEntry` objects."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables or other structures.  Safe to call repeatedly."""

    @abstractmethod
    async def insert(self, entry: KnowledgeEntry) -> int:
        """Persist one entry and return its new id.

        Raises
        ------
        emergency_kb.utils.errors.StorageError
            If the entry is structurally invalid or the write fails.
        """

    @abstractmethod
    async def insert_batch(self, entries: list[KnowledgeEntry]) -> BatchInsertOutcome:
        """Persist many entries; one entry failing never rejects the others.

        Raises
        ------
        emergency_kb.utils.errors.StorageError
            Only when the store as a whole is unreachable.
        """

    @abstractmethod
    async def query(
        self,
        priority_max: int,
        category: str | None = None,
    ) -> list[KnowledgeEntry]:
        """Return entries with ``priority <= priority_max`` and, if given, an exact category."""

    @abstractmethod
    async def get_by_category(self, category: str) -> list[KnowledgeEntry]:
        """Return all entries in *category*, ordered by id."""

    @abstractmethod
    async def get_by_priority(self, priority_max: int) -> list[KnowledgeEntry]:
        """Return entries with ``priority <= priority_max`` ordered by priority, then id."""

    @abstractmethod
    async def count(self) -> int:
        """Return the number of stored entries."""

    @abstractmethod
    async def all(self) -> list[KnowledgeEntry]:
        """Return every stored entry, ordered by id."""

    @abstractmethod
    async def clear(self) -> int:
        """Delete every entry and return how many were removed."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
