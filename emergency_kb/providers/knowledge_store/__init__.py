"""Knowledge store implementations (SQLite via aiosqlite, and in-memory)."""

from emergency_kb.providers.knowledge_store.memory_knowledge_store import (
    InMemoryKnowledgeStore,
)
from emergency_kb.providers.knowledge_store.sqlite_knowledge_store import (
    SQLiteKnowledgeStore,
)

__all__ = ["InMemoryKnowledgeStore", "SQLiteKnowledgeStore"]
