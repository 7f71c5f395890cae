"""Field coercion helpers shared by the persisted models."""

import json
from datetime import datetime, timezone
from typing import Any


def decode_mapping(value: Any) -> dict[str, Any]:
    """
    Decode a stored mapping.

    Accepts a mapping or its JSON text. None, invalid JSON and JSON that
    does not decode to an object all yield an empty mapping.
    """
    if isinstance(value, dict):
        return value
    if value is None:
        return {}
    if isinstance(value, (str, bytes, bytearray)):
        try:
            decoded = json.loads(value)
        except ValueError:
            return {}
        return decoded if isinstance(decoded, dict) else {}
    raise ValueError(f"Expected a mapping or JSON text, got {type(value).__name__}")


def encode_json(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive timestamps (SQLite drops the offset)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def decode_record_id(value: Any) -> Any:
    """
    Restore integer ids from their stored text form.

    Id columns hold text so that string and integer ids share one column;
    canonical digit strings ("3", not "03") read back as integers.
    """
    if isinstance(value, str) and value.isdigit() and str(int(value)) == value:
        return int(value)
    return value
