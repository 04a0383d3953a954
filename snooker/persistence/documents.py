"""
Match documents: the stored and exported JSON form of a Match.
One self-describing record per match, keyed by its generated id and tagged
with a schema version. Import validates the minimum shape before decoding.
"""
from __future__ import annotations

import json
import random
import string
import time
from datetime import date
from typing import Any

from snooker.models import Match, MatchValidationError

SCHEMA_VERSION = "1.0"

_ID_ALPHABET = string.digits + string.ascii_lowercase
_ID_SUFFIX_LENGTH = 9


class MatchImportError(MatchValidationError):
    """Imported text is not a usable match document."""


def generate_match_id(now_ms: int | None = None, rng: random.Random | None = None) -> str:
    """match_<epoch ms>_<9 base36 chars>"""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    rng = rng or random.Random()
    suffix = "".join(rng.choice(_ID_ALPHABET) for _ in range(_ID_SUFFIX_LENGTH))
    return f"match_{now_ms}_{suffix}"


def match_to_document(match: Match) -> dict[str, Any]:
    doc = match.to_dict()
    doc["schema_version"] = SCHEMA_VERSION
    return doc


def validate_document(doc: Any) -> None:
    """Minimal shape check: id, two players, a frames list."""
    if not isinstance(doc, dict):
        raise MatchImportError("Invalid match data structure: expected an object")
    if not doc.get("id"):
        raise MatchImportError("Invalid match data structure: missing id")
    players = doc.get("players")
    if not isinstance(players, list) or len(players) != 2:
        raise MatchImportError("Invalid match data structure: players must list two names")
    if not isinstance(doc.get("frames"), list):
        raise MatchImportError("Invalid match data structure: missing frames")


def document_to_match(doc: Any) -> Match:
    validate_document(doc)
    try:
        return Match.from_dict(doc)
    except (KeyError, TypeError, ValueError) as e:
        raise MatchImportError(f"Invalid match data: {e}") from e


def export_match(match: Match) -> str:
    """Standalone copy of one match document for out-of-band transfer."""
    return json.dumps(match_to_document(match), indent=2)


def import_match(text: str) -> Match:
    try:
        doc = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise MatchImportError(f"Match file is not valid JSON: {e}") from e
    return document_to_match(doc)


def export_filename(match: Match, today: date | None = None) -> str:
    today = today or date.today()
    return f"snooker_match_{match.id}_{today.isoformat()}.json"
