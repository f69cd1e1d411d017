"""SQLite-backed store for the bootstrap :class:`VersionState` record.

Uses sync ``sqlite3``: the record is a tiny JSON blob read once per bootstrap
check, so blocking the event loop for it is negligible.  The record lives in
a one-row key/value table so several knowledge bases can share one state
database by using different keys.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import structlog

from emergency_kb.interfaces.version_state_store import IVersionStateStore
from emergency_kb.models.knowledge import VersionState
from emergency_kb.utils.errors import StorageError
from emergency_kb.utils.logging import get_logger

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS {table} (
    state_key  TEXT PRIMARY KEY,
    state_json TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
"""

_UPSERT_SQL = """\
INSERT INTO {table} (state_key, state_json)
VALUES (?, ?)
ON CONFLICT(state_key)
DO UPDATE SET state_json = excluded.state_json,
              updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now');
"""

_SELECT_SQL = "SELECT state_json FROM {table} WHERE state_key = ?;"

_DELETE_SQL = "DELETE FROM {table} WHERE state_key = ?;"


class SQLiteVersionStateStore(IVersionStateStore):
    """Persists one :class:`VersionState` under ``state_key``.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file.
    table_name:
        Table holding the key/value rows.
    state_key:
        Row key for this knowledge base's record.
    """

    def __init__(
        self,
        db_path: str | Path,
        table_name: str = "version_state",
        state_key: str = "knowledge_base",
    ) -> None:
        self._db_path = Path(db_path)
        self._table = table_name
        self._key = state_key
        self._logger: structlog.BoundLogger = get_logger(__name__)

    def initialize(self) -> None:
        """Create the table.  Safe to call repeatedly."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._execute(_CREATE_TABLE_SQL.format(table=self._table), ())
        self._logger.info(
            "version_state_store_initialized",
            db_path=str(self._db_path),
            table=self._table,
        )

    def load(self) -> VersionState:
        conn = self._connect()
        try:
            cursor = conn.execute(_SELECT_SQL.format(table=self._table), (self._key,))
            row = cursor.fetchone()
        except sqlite3.Error as exc:
            raise StorageError(
                message=f"Failed to read version state: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        finally:
            conn.close()

        if row is None:
            return VersionState()

        try:
            return VersionState.model_validate_json(row[0])
        except ValueError as exc:
            # A corrupt record is treated as "never initialized" so the next
            # bootstrap rebuilds cleanly.
            self._logger.warning(
                "version_state_deserialize_failed",
                state_key=self._key,
                error=str(exc)[:200],
            )
            return VersionState()

    def save(self, state: VersionState) -> None:
        self._execute(
            _UPSERT_SQL.format(table=self._table),
            (self._key, state.model_dump_json()),
        )
        self._logger.debug(
            "version_state_saved",
            schema_version=state.schema_version,
            last_initialized_at=str(state.last_initialized_at),
        )

    def reset(self) -> None:
        self._execute(_DELETE_SQL.format(table=self._table), (self._key,))
        self._logger.info("version_state_reset", state_key=self._key)

    def get_provider_name(self) -> str:
        return f"sqlite_version_state:{self._table}"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path))
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _execute(self, sql: str, params: tuple) -> None:
        conn = self._connect()
        try:
            conn.execute(sql, params)
            conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(
                message=f"Version state write failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        finally:
            conn.close()
