"""Utility helpers for the property resolution engine."""

from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Any, Iterable


def timestamp_to_datetime(seconds: Any) -> datetime | None:
    """Convert a unix timestamp in seconds to an aware UTC datetime."""

    if seconds is None or isinstance(seconds, bool):
        return None
    try:
        value = float(seconds)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


def parse_release_date(value: Any) -> datetime | None:
    """Parse an ``originallyAvailableAt`` value into a UTC midnight datetime."""

    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    text = str(value).strip()
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def as_number(value: Any, default: float = 0) -> float:
    """Return ``value`` as a number when present and numeric, else ``default``."""

    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return value
    try:
        parsed = float(str(value).strip())
    except ValueError:
        return default
    return parsed if math.isfinite(parsed) else default


def normalize_tag(value: str) -> str:
    """Return the comparison form of a tag name."""

    return value.strip().lower()


def trimmed(values: Iterable[str]) -> list[str]:
    return [value.strip() for value in values]
