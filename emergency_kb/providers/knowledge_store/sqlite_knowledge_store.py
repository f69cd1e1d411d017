"""SQLite-backed knowledge store.

Persists knowledge entries to a local SQLite database (``data/knowledge.db``
by default) using ``aiosqlite`` for async I/O.  Embeddings are stored as JSON
arrays next to the entry text, which is plenty for on-device corpora of a few
thousand entries.

Batch inserts run in a single transaction: each ``INSERT`` either lands or
fails on its own, and readers see the batch only after commit.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite
import structlog

from emergency_kb.interfaces.knowledge_store import BatchInsertOutcome, IKnowledgeStore
from emergency_kb.models.knowledge import KnowledgeEntry
from emergency_kb.utils.errors import StorageError
from emergency_kb.utils.vector_math import is_finite_vector

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/knowledge.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS knowledge_entries (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    title          TEXT    NOT NULL,
    text           TEXT    NOT NULL,
    embedding      TEXT    NOT NULL,
    category       TEXT    NOT NULL,
    priority       INTEGER NOT NULL,
    keywords       TEXT    NOT NULL DEFAULT '',
    source         TEXT    NOT NULL DEFAULT '',
    language_code  TEXT    NOT NULL DEFAULT 'en',
    field_suitable INTEGER NOT NULL DEFAULT 1,
    last_updated   TEXT    NOT NULL
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_entries_priority ON knowledge_entries(priority);",
    "CREATE INDEX IF NOT EXISTS idx_entries_category ON knowledge_entries(category);",
]

_INSERT_SQL = """\
INSERT INTO knowledge_entries
    (title, text, embedding, category, priority, keywords,
     source, language_code, field_suitable, last_updated)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_SELECT_COLUMNS = (
    "SELECT id, title, text, embedding, category, priority, keywords, "
    "source, language_code, field_suitable, last_updated FROM knowledge_entries"
)


class SQLiteKnowledgeStore(IKnowledgeStore):
    """aiosqlite-backed :class:`IKnowledgeStore`."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the entries table and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute("PRAGMA journal_mode=WAL")
                await db.execute(_CREATE_TABLE_SQL)
                for idx_sql in _CREATE_INDICES_SQL:
                    await db.execute(idx_sql)
                await db.commit()
        except sqlite3.Error as exc:
            raise StorageError(
                message=f"Failed to initialize knowledge store: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("knowledge_store_initialized", path=str(self._db_path))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert(self, entry: KnowledgeEntry) -> int:
        self._check_writable(entry)
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(_INSERT_SQL, self._to_row(entry))
                await db.commit()
                entry_id = cursor.lastrowid
        except sqlite3.Error as exc:
            raise StorageError(
                message=f"Failed to insert entry '{entry.title}': {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.debug("entry_inserted", entry_id=entry_id, title=entry.title)
        return entry_id

    async def insert_batch(self, entries: list[KnowledgeEntry]) -> BatchInsertOutcome:
        ids: list[int] = []
        failures: list[str] = []
        if not entries:
            return BatchInsertOutcome(ids=ids, failures=failures)

        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                for index, entry in enumerate(entries):
                    try:
                        self._check_writable(entry)
                        cursor = await db.execute(_INSERT_SQL, self._to_row(entry))
                        ids.append(cursor.lastrowid)
                    except (StorageError, sqlite3.Error) as exc:
                        reason = exc.message if isinstance(exc, StorageError) else str(exc)
                        failures.append(f"Entry {index}: {reason}")
                await db.commit()
        except sqlite3.Error as exc:
            raise StorageError(
                message=f"Knowledge store unavailable: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "entry_batch_inserted",
            submitted=len(entries),
            inserted=len(ids),
            failed=len(failures),
        )
        return BatchInsertOutcome(ids=ids, failures=failures)

    async def clear(self) -> int:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute("DELETE FROM knowledge_entries")
                await db.commit()
                deleted = cursor.rowcount
        except sqlite3.Error as exc:
            raise StorageError(
                message=f"Failed to clear knowledge store: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("knowledge_store_cleared", deleted=deleted)
        return deleted

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def query(
        self,
        priority_max: int,
        category: str | None = None,
    ) -> list[KnowledgeEntry]:
        if category is None:
            return await self._select(
                f"{_SELECT_COLUMNS} WHERE priority <= ? ORDER BY id", (priority_max,)
            )
        return await self._select(
            f"{_SELECT_COLUMNS} WHERE priority <= ? AND category = ? ORDER BY id",
            (priority_max, category),
        )

    async def get_by_category(self, category: str) -> list[KnowledgeEntry]:
        return await self._select(
            f"{_SELECT_COLUMNS} WHERE category = ? ORDER BY id", (category,)
        )

    async def get_by_priority(self, priority_max: int) -> list[KnowledgeEntry]:
        return await self._select(
            f"{_SELECT_COLUMNS} WHERE priority <= ? ORDER BY priority, id", (priority_max,)
        )

    async def count(self) -> int:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute("SELECT COUNT(*) FROM knowledge_entries")
                row = await cursor.fetchone()
        except sqlite3.Error as exc:
            raise StorageError(
                message=f"Failed to count entries: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return row[0] if row else 0

    async def all(self) -> list[KnowledgeEntry]:
        return await self._select(f"{_SELECT_COLUMNS} ORDER BY id", ())

    def get_provider_name(self) -> str:
        return "sqlite_knowledge_store"

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _select(self, sql: str, params: tuple) -> list[KnowledgeEntry]:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(sql, params)
                rows = await cursor.fetchall()
        except sqlite3.Error as exc:
            raise StorageError(
                message=f"Failed to read entries: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return [self._from_row(row) for row in rows]

    def _check_writable(self, entry: KnowledgeEntry) -> None:
        if not entry.text.strip():
            raise StorageError(
                message="Entry text is blank", provider_name=self.get_provider_name()
            )
        if not is_finite_vector(entry.embedding):
            raise StorageError(
                message="Entry embedding is empty or not finite",
                provider_name=self.get_provider_name(),
            )

    @staticmethod
    def _to_row(entry: KnowledgeEntry) -> tuple:
        return (
            entry.title,
            entry.text,
            json.dumps(entry.embedding),
            entry.category,
            entry.priority,
            entry.keywords,
            entry.source,
            entry.language_code,
            int(entry.field_suitable),
            datetime.now(timezone.utc).isoformat(),
        )

    @staticmethod
    def _from_row(row: aiosqlite.Row) -> KnowledgeEntry:
        return KnowledgeEntry(
            id=row["id"],
            title=row["title"],
            text=row["text"],
            embedding=json.loads(row["embedding"]),
            category=row["category"],
            priority=row["priority"],
            keywords=row["keywords"],
            source=row["source"],
            language_code=row["language_code"],
            field_suitable=bool(row["field_suitable"]),
            last_updated=datetime.fromisoformat(row["last_updated"]),
        )
