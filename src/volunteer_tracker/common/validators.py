from __future__ import annotations

from typing import Any, Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_int(value: Any, field_name: str, *, minimum: Optional[int] = None) -> int:
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationError(f"{field_name} is required")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"{field_name} must be a whole number")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
    if minimum is not None and number < minimum:
        raise ValidationError(f"{field_name} must be >= {minimum}")
    return number


def optional_int(value: Any, field_name: str, *, minimum: Optional[int] = None) -> Optional[int]:
    if value is None or value == "":
        return None
    return require_int(value, field_name, minimum=minimum)


def clean_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None
