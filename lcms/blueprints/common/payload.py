"""Helpers for reading JSON request bodies."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from flask import request

from lcms.services.errors import ValidationError


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def parse_date(value: Any, field: str) -> date | None:
    if value in (None, ''):
        return None
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f'{field} must be a date (YYYY-MM-DD)')


def parse_datetime(value: Any, field: str) -> datetime | None:
    if value in (None, ''):
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f'{field} must be an ISO date/time')


def parse_int(value: Any, field: str, minimum: int | None = None) -> int | None:
    if value in (None, ''):
        return None
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be a whole number')
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be a whole number')
    if minimum is not None and number < minimum:
        raise ValidationError(f'{field} must be at least {minimum}')
    return number


def parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)
