from __future__ import annotations

from typing import Any, Optional

from ..core.exceptions import ValidationError


def _whole_number(value: Any) -> Optional[int]:
    """int, integral float or digit string as int; None for anything else."""

    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        token = value.strip()
        return int(token) if token.isdigit() else None
    return None


def parse_identity(value: Any, field_name: str) -> int:
    """Normalize a numeric id arriving as int, integral float or digit string.

    Anything else (bools, fractions, blanks, non-positive numbers) is rejected
    instead of silently turning into zero.
    """

    parsed = _whole_number(value)
    if parsed is None or parsed <= 0:
        raise ValidationError(f"{field_name} is not a valid id")
    return parsed


def parse_optional_identity(value: Any, field_name: str) -> Optional[int]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_identity(value, field_name)


def parse_positive_int(value: Any, field_name: str) -> int:
    """Same normalization as ids, used for minute settings."""

    parsed = _whole_number(value)
    if parsed is None or parsed <= 0:
        raise ValidationError(f"{field_name} must be a positive whole number")
    return parsed


def parse_non_negative_int(value: Any, field_name: str) -> int:
    parsed = _whole_number(value)
    if parsed is None or parsed < 0:
        raise ValidationError(f"{field_name} must be zero or a positive whole number")
    return parsed


def parse_bool(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "1", "yes"}:
        return True
    if isinstance(value, str) and value.strip().lower() in {"false", "0", "no"}:
        return False
    raise ValidationError(f"{field_name} must be true or false")
