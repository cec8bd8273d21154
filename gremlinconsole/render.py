"""Render query records as indented structured text."""

from __future__ import annotations

import json
import re
from datetime import date, datetime, timezone

from .models import Record

_ISO_DATETIME = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(?::\d{2}(?:\.\d{1,7})?)?(?:Z|[+-]\d{2}:\d{2})?$"
)


def format_record(record: Record) -> str:
    """Indented JSON for a record, with dates normalized to UTC."""

    return json.dumps(normalize_dates(record), indent=2, ensure_ascii=False, default=str)


def format_charge(charge: float) -> str:
    if float(charge).is_integer():
        return str(int(charge))
    return str(charge)


def normalize_dates(value: object) -> object:
    """Recursively convert datetimes (and ISO date-time strings) to UTC ISO-8601."""

    if isinstance(value, datetime):
        return to_utc_iso(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        if _ISO_DATETIME.match(value):
            parsed = _parse_iso(value)
            if parsed is not None:
                return to_utc_iso(parsed)
        return value
    if isinstance(value, dict):
        return {str(key): normalize_dates(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize_dates(item) for item in value]
    return value


def to_utc_iso(value: datetime) -> str:
    # Naive values are taken to already be UTC.
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    text = value.isoformat()
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{text}Z"


def _parse_iso(text: str) -> datetime | None:
    # Seven-digit fractions are valid ISO-8601 but not for fromisoformat.
    head, dot, rest = text.partition(".")
    if dot:
        digits = re.match(r"\d+", rest)
        if digits and len(digits.group()) > 6:
            rest = rest[:6] + rest[len(digits.group()):]
        text = f"{head}.{rest}"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


__all__ = ["format_charge", "format_record", "normalize_dates", "to_utc_iso"]
