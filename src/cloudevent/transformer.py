from __future__ import annotations

import base64
import binascii
import json
import re
from datetime import datetime, timedelta, timezone
from typing import Any

from cloudevent import validator as V

_NOT_BASE64_RE = re.compile(r"[^A-Za-z0-9+/]")


def dump_object(obj: Any, name: str | None = None) -> str:
    """Return a short one-line dump of ``obj``, prefixed by ``name``."""
    n = name or "noname"
    if V.is_undefined(obj):
        return f"{n}: undefined"
    if V.is_null(obj):
        return f"{n}: null"
    if not V.is_object_or_collection_or_array(obj):
        return f"{n}: '{obj}'"
    try:
        return f"{n}: {json.dumps(obj, default=str)}"
    except (TypeError, ValueError):
        return f"{n}: {obj!r}"


def timestamp_to_string(timestamp: datetime) -> str:
    """Format a datetime as RFC 3339 in UTC, with milliseconds and a 'Z' suffix.

    Naive datetimes are taken as UTC.
    """
    if not V.is_date_valid(timestamp):
        raise TypeError(f"The argument must be a datetime, instead got a '{type(timestamp).__name__}'")
    value = V._as_utc(timestamp)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def timestamp_from_string(text: str, timezone_offset: int = 0) -> datetime:
    """Parse an RFC 3339 string into an aware datetime.

    ``timezone_offset`` is a number of minutes added to the parsed instant.
    """
    if not V.is_string_not_empty(text):
        raise TypeError(f"The argument must be a not empty string, instead got a '{type(text).__name__}'")
    normalized = text.strip()
    if normalized[-1:] in ("Z", "z"):
        normalized = normalized[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise ValueError(f"Unable to parse the timestamp '{text}'") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    if timezone_offset:
        parsed = parsed + timedelta(minutes=timezone_offset)
    return parsed


def string_to_base64(text: str) -> str:
    if not V.is_string(text):
        raise TypeError(f"The argument must be a string, instead got a '{type(text).__name__}'")
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def string_from_base64(encoded: str, strict: bool = True) -> str:
    """Decode a base64 string to text.

    With ``strict=False`` characters outside the base64 alphabet are dropped,
    padding is added when missing, and bytes that are not valid UTF-8 are
    replaced instead of failing.
    """
    if not V.is_string(encoded):
        raise TypeError(f"The argument must be a string, instead got a '{type(encoded).__name__}'")
    try:
        if strict:
            return base64.b64decode(encoded.encode("ascii"), validate=True).decode("utf-8")
        cleaned = _NOT_BASE64_RE.sub("", encoded)
        padded = cleaned + "=" * (-len(cleaned) % 4)
        return base64.b64decode(padded.encode("ascii")).decode("utf-8", errors="replace")
    except (binascii.Error, UnicodeError) as exc:
        raise ValueError("Unable to decode the given base64 string") from exc
