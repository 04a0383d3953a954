"""
Repository interfaces for stored matches and settings.
No business logic, only read/write operations over JSON match documents.
"""
from __future__ import annotations

import json
import sqlite3
from typing import Any

from snooker.models import Match, utc_now_iso

from .documents import document_to_match, match_to_document

HISTORY_LIMIT = 50

DEFAULT_SETTINGS: dict[str, Any] = {
    "auto_save": True,
    "confirm_actions": True,
}


def _dump(match: Match) -> str:
    return json.dumps(match_to_document(match))


def _load(document: str) -> Match:
    return document_to_match(json.loads(document))


# ---------- CurrentMatchRepository ----------


class CurrentMatchRepository:
    """The single active-match slot. Every save overwrites it."""

    def save(self, conn: sqlite3.Connection, match: Match) -> None:
        conn.execute(
            "INSERT OR REPLACE INTO current_match (slot, match_id, document, saved_at) VALUES (1, ?, ?, ?)",
            (match.id, _dump(match), utc_now_iso()),
        )
        conn.commit()

    def load(self, conn: sqlite3.Connection) -> Match | None:
        row = conn.execute("SELECT document FROM current_match WHERE slot = 1").fetchone()
        if row is None:
            return None
        return _load(row["document"])

    def clear(self, conn: sqlite3.Connection) -> None:
        conn.execute("DELETE FROM current_match")
        conn.commit()


# ---------- MatchHistoryRepository ----------


class MatchHistoryRepository:
    """
    Past and parked matches, most recent first.
    Re-saving a match replaces it in place; a new match goes to the front and
    anything beyond the limit falls off the end.
    """

    def save(self, conn: sqlite3.Connection, match: Match, limit: int = HISTORY_LIMIT) -> None:
        row = conn.execute("SELECT seq FROM match_history WHERE id = ?", (match.id,)).fetchone()
        if row is not None:
            seq = row["seq"]
        else:
            top = conn.execute("SELECT MAX(seq) AS top FROM match_history").fetchone()
            seq = (top["top"] or 0) + 1
        conn.execute(
            """INSERT OR REPLACE INTO match_history
               (id, seq, player1, player2, status, document, saved_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (match.id, seq, match.players[0], match.players[1], match.status, _dump(match), utc_now_iso()),
        )
        conn.execute(
            """DELETE FROM match_history WHERE id NOT IN
               (SELECT id FROM match_history ORDER BY seq DESC LIMIT ?)""",
            (limit,),
        )
        conn.commit()

    def get(self, conn: sqlite3.Connection, match_id: str) -> Match | None:
        row = conn.execute("SELECT document FROM match_history WHERE id = ?", (match_id,)).fetchone()
        if row is None:
            return None
        return _load(row["document"])

    def list_recent(self, conn: sqlite3.Connection, limit: int = HISTORY_LIMIT) -> list[Match]:
        rows = conn.execute(
            "SELECT document FROM match_history ORDER BY seq DESC LIMIT ?", (limit,)
        ).fetchall()
        return [_load(r["document"]) for r in rows]

    def count(self, conn: sqlite3.Connection) -> int:
        return conn.execute("SELECT COUNT(*) FROM match_history").fetchone()[0]

    def delete(self, conn: sqlite3.Connection, match_id: str) -> bool:
        cur = conn.execute("DELETE FROM match_history WHERE id = ?", (match_id,))
        conn.commit()
        return cur.rowcount > 0

    def clear(self, conn: sqlite3.Connection) -> None:
        conn.execute("DELETE FROM match_history")
        conn.commit()


# ---------- SettingsRepository ----------


class SettingsRepository:
    """Key/value preferences; missing keys fall back to DEFAULT_SETTINGS."""

    def load(self, conn: sqlite3.Connection) -> dict[str, Any]:
        settings = dict(DEFAULT_SETTINGS)
        for row in conn.execute("SELECT key, value FROM settings").fetchall():
            settings[row["key"]] = json.loads(row["value"])
        return settings

    def save(self, conn: sqlite3.Connection, settings: dict[str, Any]) -> dict[str, Any]:
        for key, value in settings.items():
            conn.execute(
                "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
                (key, json.dumps(value)),
            )
        conn.commit()
        return self.load(conn)

    def clear(self, conn: sqlite3.Connection) -> None:
        conn.execute("DELETE FROM settings")
        conn.commit()
