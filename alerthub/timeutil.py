"""Timestamp parsing shared by ingestion, retention and the dashboard."""

from __future__ import annotations

from datetime import datetime, timezone

_FORMATS = (
    "%Y-%m-%dT%H:%M:%S.%fZ",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%d %H:%M:%S",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %I:%M:%S %p",
)

# Numbers above this are treated as epoch milliseconds.
_MILLIS_THRESHOLD = 10**11


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(raw) -> datetime | None:
    """Parse an ISO string, formatted string or epoch number into an aware datetime.

    Returns None when the value cannot be interpreted.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, datetime):
        return raw if raw.tzinfo else raw.replace(tzinfo=timezone.utc)
    if isinstance(raw, (int, float)):
        try:
            seconds = raw / 1000 if abs(raw) >= _MILLIS_THRESHOLD else raw
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(raw, str):
        return None

    text = raw.strip()
    if not text or text == "0001-01-01T00:00:00Z":
        return None
    if text.lstrip("-").isdigit():
        try:
            return parse_timestamp(int(text))
        except ValueError:
            return None

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    except ValueError:
        pass
    for fmt in _FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def parse_or_now(raw) -> datetime:
    return parse_timestamp(raw) or utcnow()
