"""
Persistence layer for matches: sqlite slots, match documents, import/export.
No rules, no scoring.
"""
from .db import get_connection, init_db, set_db_path, get_db_path
from .documents import (
    SCHEMA_VERSION,
    MatchImportError,
    generate_match_id,
    match_to_document,
    document_to_match,
    export_match,
    import_match,
    export_filename,
)
from .repositories import (
    HISTORY_LIMIT,
    DEFAULT_SETTINGS,
    CurrentMatchRepository,
    MatchHistoryRepository,
    SettingsRepository,
)
from .store import MatchStore, PersistenceError

__all__ = [
    "get_connection",
    "init_db",
    "set_db_path",
    "get_db_path",
    "SCHEMA_VERSION",
    "MatchImportError",
    "generate_match_id",
    "match_to_document",
    "document_to_match",
    "export_match",
    "import_match",
    "export_filename",
    "HISTORY_LIMIT",
    "DEFAULT_SETTINGS",
    "CurrentMatchRepository",
    "MatchHistoryRepository",
    "SettingsRepository",
    "MatchStore",
    "PersistenceError",
]
