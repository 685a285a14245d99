from __future__ import annotations

from datetime import datetime

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_timestamp(value, field_name: str = "timestamp") -> int:
    try:
        ts = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be epoch milliseconds") from None
    if ts < 0:
        raise ValidationError(f"{field_name} must be epoch milliseconds")
    return ts


def require_date_key(value: str, field_name: str = "dateKey") -> str:
    value = require_non_empty(value, field_name)
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise ValidationError(f"{field_name} must be YYYY-MM-DD") from None
    if len(value) != 10:
        raise ValidationError(f"{field_name} must be YYYY-MM-DD")
    return value
