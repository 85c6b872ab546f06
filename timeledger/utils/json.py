"""JSON parsing helpers for TEXT columns."""

import json
from typing import Any


def parse_json_list(raw: str | list | None) -> list[Any]:
    """Parse a JSON array column. Lists pass through; anything else yields [].

    For tags and other list-valued DB fields. Returns [] for: None, empty
    string, invalid JSON, non-list JSON.
    """
    if raw is None:
        return []
    if isinstance(raw, list):
        return raw
    if isinstance(raw, str):
        if not raw:
            return []
        try:
            parsed = json.loads(raw)
        except (ValueError, TypeError):
            return []
        if isinstance(parsed, list):
            return parsed
    return []
