"""
Database connection and initialization.
"""
from __future__ import annotations

import os
import sqlite3
from pathlib import Path

from .schema import all_schema_sql

DB_PATH_ENV = "SNOOKER_DB_PATH"


# Default DB path (project root / data / snooker.db)
def _default_db_path() -> Path:
    return Path(__file__).resolve().parent.parent.parent / "data" / "snooker.db"


_db_path: Path | None = None


def set_db_path(path: str | Path | None) -> None:
    """Set the database path. Call before first get_connection if not using default."""
    global _db_path
    _db_path = Path(path) if path is not None else None


def get_db_path() -> Path:
    """Return the current database path: set_db_path, then SNOOKER_DB_PATH, then default."""
    if _db_path is not None:
        return _db_path
    env_path = os.environ.get(DB_PATH_ENV)
    if env_path:
        return Path(env_path)
    return _default_db_path()


def get_connection(db_path: str | Path | None = None) -> sqlite3.Connection:
    """
    Return a new SQLite connection.
    Use as context manager or ensure close() is called.
    """
    path = Path(db_path) if db_path else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str | Path | None = None) -> None:
    """Create or ensure all tables exist."""
    conn = get_connection(db_path)
    try:
        conn.executescript(all_schema_sql())
        conn.commit()
    finally:
        conn.close()
