"""
Checksum and timestamp helpers for reconciliation.

Checksums are computed over a canonical serialization (JSON with sorted keys
and compact separators) so identical content always hashes identically,
whichever side produced it.

Timestamps travel as strings. ISO 8601 (with or without ``Z``), date-only
values and numeric epoch seconds are understood. Comparing clocks from two
origins is a heuristic; an unparseable timestamp never counts as newer.
"""

from __future__ import annotations

import hashlib
import json
import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel

logger = logging.getLogger(__name__)

UNIX_EPOCH = "1970-01-01T00:00:00.000Z"


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {str(k): _to_jsonable(v) for k, v in value.items()}
    return value


def canonical_json(value: Any) -> str:
    """Serialize a value (models, lists, dicts) to canonical JSON."""
    return json.dumps(
        _to_jsonable(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def compute_checksum(value: Any) -> str:
    """
    Compute a deterministic checksum of entity content.

    Args:
        value: Entity data (a model, a list of models, or plain JSON data)

    Returns:
        MD5 hex digest of the canonical JSON serialization
    """
    # lone surrogates from decoded JSON escapes are hashed as-is
    payload = canonical_json(value).encode("utf-8", errors="surrogatepass")
    return hashlib.md5(payload).hexdigest()


def current_timestamp() -> str:
    """Current UTC time in ISO 8601 with millisecond precision and ``Z``."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime | None:
    """
    Parse a timestamp string into an aware datetime.

    Args:
        value: ISO 8601 string, date-only string, or epoch seconds

    Returns:
        Timezone-aware datetime, or None if the value can't be parsed
    """
    text = value.strip()
    if not text:
        return None

    try:
        seconds = float(text)
    except ValueError:
        pass
    else:
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def compare_timestamps(first: str, second: str) -> int:
    """
    Compare two timestamp strings.

    Returns:
        -1 if first < second, 1 if first > second, 0 if equal or either
        side can't be parsed
    """
    first_dt = parse_timestamp(first)
    second_dt = parse_timestamp(second)
    if first_dt is None or second_dt is None:
        logger.warning("Cannot compare timestamps %r and %r, treating as equal", first, second)
        return 0
    if first_dt < second_dt:
        return -1
    if first_dt > second_dt:
        return 1
    return 0


def is_local_newer(local_timestamp: str, remote_timestamp: str) -> bool:
    """Check whether the local timestamp is strictly newer than the remote one."""
    return compare_timestamps(local_timestamp, remote_timestamp) > 0


__all__ = [
    "UNIX_EPOCH",
    "canonical_json",
    "compute_checksum",
    "current_timestamp",
    "parse_timestamp",
    "compare_timestamps",
    "is_local_newer",
]
