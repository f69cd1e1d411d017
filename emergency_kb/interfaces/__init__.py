"""Abstract contracts for the knowledge base's external collaborators.

Business logic in :mod:`emergency_kb.services` talks only to these ABCs;
concrete adapters live in :mod:`emergency_kb.providers` and are wired
together in :mod:`emergency_kb.main`.

    Interface            ->  Concrete implementations
    ---------------------------------------------------------------
    IEmbeddingProvider   ->  FastEmbedEmbeddingProvider,
                             SentenceTransformerEmbeddingProvider
    IKnowledgeStore      ->  SQLiteKnowledgeStore, InMemoryKnowledgeStore
    IVersionStateStore   ->  SQLiteVersionStateStore
"""

from emergency_kb.interfaces.embedding_provider import IEmbeddingProvider
from emergency_kb.interfaces.knowledge_store import BatchInsertOutcome, IKnowledgeStore
from emergency_kb.interfaces.version_state_store import IVersionStateStore

__all__ = [
    "BatchInsertOutcome",
    "IEmbeddingProvider",
    "IKnowledgeStore",
    "IVersionStateStore",
]
