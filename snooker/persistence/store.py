"""
MatchStore: the persistence adapter used by the match controller.
Opens a connection per call, delegates to the repositories and turns any
sqlite3 failure into PersistenceError so callers handle one error type.
"""
from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from snooker.models import Match, utc_now_iso

from .db import get_connection, init_db
from .repositories import (
    HISTORY_LIMIT,
    CurrentMatchRepository,
    MatchHistoryRepository,
    SettingsRepository,
)

logger = logging.getLogger(__name__)


class PersistenceError(RuntimeError):
    """Storage unavailable or write failed. In-memory state is unaffected."""


class MatchStore:
    def __init__(self, db_path: str | Path | None = None, history_limit: int = HISTORY_LIMIT) -> None:
        self.db_path = db_path
        self.history_limit = history_limit
        self._current = CurrentMatchRepository()
        self._history = MatchHistoryRepository()
        self._settings = SettingsRepository()
        try:
            init_db(db_path)
        except (sqlite3.Error, OSError) as e:
            raise PersistenceError(f"Could not initialise match storage: {e}") from e

    @contextmanager
    def _connect(self, action: str) -> Iterator[sqlite3.Connection]:
        try:
            conn = get_connection(self.db_path)
        except (sqlite3.Error, OSError) as e:
            logger.error("Storage unavailable while trying to %s: %s", action, e)
            raise PersistenceError(f"Failed to {action}: {e}") from e
        try:
            yield conn
        except sqlite3.Error as e:
            logger.error("Storage error while trying to %s: %s", action, e)
            raise PersistenceError(f"Failed to {action}: {e}") from e
        finally:
            conn.close()

    # ---------- Current match ----------

    def save_current(self, match: Match) -> None:
        match.updated = utc_now_iso()
        with self._connect("save current match") as conn:
            self._current.save(conn, match)

    def load_current(self) -> Match | None:
        with self._connect("load current match") as conn:
            return self._current.load(conn)

    def clear_current(self) -> None:
        with self._connect("clear current match") as conn:
            self._current.clear(conn)

    # ---------- History ----------

    def save_to_history(self, match: Match) -> None:
        with self._connect("save match to history") as conn:
            self._history.save(conn, match, limit=self.history_limit)

    def load_history(self) -> list[Match]:
        with self._connect("load match history") as conn:
            return self._history.list_recent(conn, limit=self.history_limit)

    def get_match(self, match_id: str) -> Match | None:
        with self._connect("load match") as conn:
            return self._history.get(conn, match_id)

    def delete_match(self, match_id: str) -> bool:
        with self._connect("delete match") as conn:
            return self._history.delete(conn, match_id)

    # ---------- Settings ----------

    def load_settings(self) -> dict[str, Any]:
        with self._connect("load settings") as conn:
            return self._settings.load(conn)

    def save_settings(self, settings: dict[str, Any]) -> dict[str, Any]:
        with self._connect("save settings") as conn:
            return self._settings.save(conn, settings)

    def clear_all(self) -> None:
        """Drop the current match, the history and the settings."""
        with self._connect("clear stored data") as conn:
            self._current.clear(conn)
            self._history.clear(conn)
            self._settings.clear(conn)
