from __future__ import annotations

from datetime import timedelta

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} must not be empty")
    return str(value).strip()


def require_positive_id(value: object, field_name: str) -> int:
    try:
        as_int = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
    if as_int <= 0:
        raise ValidationError(f"{field_name} must be positive")
    return as_int


def require_positive_minutes(value: object, field_name: str, *, allow_zero: bool = False) -> timedelta:
    try:
        minutes = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number of minutes")
    if minutes < 0 or (minutes == 0 and not allow_zero):
        raise ValidationError(f"{field_name} must be positive")
    return timedelta(minutes=minutes)
