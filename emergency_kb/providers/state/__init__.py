"""Version-state persistence (sqlite3 key/value row)."""

from emergency_kb.providers.state.sqlite_version_state_store import SQLiteVersionStateStore

__all__ = ["SQLiteVersionStateStore"]
