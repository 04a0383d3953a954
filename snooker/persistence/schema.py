"""
SQLite schema for stored matches and settings.
Each table created with IF NOT EXISTS. Match bodies are stored as JSON documents.
"""
from __future__ import annotations


def current_match_schema() -> str:
    """Single slot for the match being played. slot is always 1."""
    return """
    CREATE TABLE IF NOT EXISTS current_match (
        slot INTEGER PRIMARY KEY CHECK (slot = 1),
        match_id TEXT NOT NULL,
        document TEXT NOT NULL,
        saved_at TEXT NOT NULL
    );
    """


def match_history_schema() -> str:
    """Most recent first by seq. A re-saved match keeps its seq (replaced in place)."""
    return """
    CREATE TABLE IF NOT EXISTS match_history (
        id TEXT PRIMARY KEY,
        seq INTEGER NOT NULL,
        player1 TEXT NOT NULL,
        player2 TEXT NOT NULL,
        status TEXT NOT NULL,
        document TEXT NOT NULL,
        saved_at TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS ix_match_history_seq ON match_history(seq);
    """


def settings_schema() -> str:
    """User preferences. value is JSON."""
    return """
    CREATE TABLE IF NOT EXISTS settings (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL
    );
    """


def all_schema_sql() -> str:
    return "\n".join([
        current_match_schema(),
        match_history_schema(),
        settings_schema(),
    ])
