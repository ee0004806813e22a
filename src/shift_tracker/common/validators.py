from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: Any, field_name: str) -> str:
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string", field=field_name)
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required", field=field_name)
    return value.strip()


def optional_text(value: Any, field_name: str = "value") -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string", field=field_name)
    value = value.strip()
    return value or None


def require_naive_datetime(value: Any, field_name: str) -> datetime:
    """Stored datetimes are naive local time; offsets are rejected, not converted."""
    if not isinstance(value, datetime):
        raise ValidationError(f"{field_name} must be a datetime", field=field_name)
    if value.tzinfo is not None:
        raise ValidationError(f"{field_name} must not carry a UTC offset", field=field_name)
    return value


def require_positive_id(value: Any, field_name: str) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer", field=field_name)
    if parsed <= 0:
        raise ValidationError(f"{field_name} must be positive", field=field_name)
    return parsed


def require_decimal(value: Any, field_name: str, *, minimum: Decimal, maximum: Decimal) -> Decimal:
    try:
        parsed = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name} must be a number", field=field_name)
    if not parsed.is_finite() or parsed < minimum or parsed > maximum:
        raise ValidationError(f"{field_name} must be between {minimum} and {maximum}", field=field_name)
    return parsed
