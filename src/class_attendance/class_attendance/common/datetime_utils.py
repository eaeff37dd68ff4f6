from __future__ import annotations

import re
from datetime import date, datetime, time

from ..core.exceptions import ValidationError

_HHMM = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except (AttributeError, ValueError):
        raise ValidationError("Invalid date (expected YYYY-MM-DD)")


def parse_hhmm(value: str, field_name: str = "time") -> time:
    """Parse a 24-hour HH:MM string; a single-digit hour is accepted."""

    match = _HHMM.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValidationError(f"Invalid {field_name} (expected HH:MM)")
    return time(hour=int(match.group(1)), minute=int(match.group(2)))


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def format_iso_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")
