from __future__ import annotations

import re
from datetime import date, time
from typing import Optional

from ..core.constants import HHMM_PATTERN
from ..core.exceptions import ValidationError

_HHMM = re.compile(HHMM_PATTERN)


class _Unset:
    """Marks a keyword argument the caller did not pass (distinct from None)."""

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required", field=field_name)
    return value.strip()


def parse_hhmm(value: Optional[str], field_name: str) -> time:
    """Parse a strict 24h ``HH:MM`` string; no coercion of out-of-range values."""
    if not isinstance(value, str) or not _HHMM.fullmatch(value):
        raise ValidationError(f"{field_name} must use HH:MM (24h) format", field=field_name)
    hours, minutes = value.split(":")
    return time(hour=int(hours), minute=int(minutes))


def require_time_order(start: time, end: time, *, field_name: str = "end_time") -> None:
    if start >= end:
        raise ValidationError("Start time must be before end time", field=field_name)


def require_date_order(start: date, end: Optional[date], *, field_name: str = "end_date") -> None:
    if end is not None and end < start:
        raise ValidationError("End date cannot be before start date", field=field_name)


def require_within(value: date, start: date, end: Optional[date], field_name: str) -> None:
    """``value`` must lie in [start, end]; an open end only bounds from below."""
    if value < start or (end is not None and value > end):
        raise ValidationError(f"{field_name} is outside the pattern date range", field=field_name)


def require_positive_id(value: object, field_name: str) -> int:
    try:
        parsed = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} is invalid", field=field_name) from None
    if parsed <= 0:
        raise ValidationError(f"{field_name} is invalid", field=field_name)
    return parsed


def parse_id_set(values: object, field_name: str) -> frozenset[int]:
    """A set of positive ids; ``None`` or empty means "all"."""
    if values is None:
        return frozenset()
    if isinstance(values, (str, bytes)) or not hasattr(values, "__iter__"):
        raise ValidationError(f"{field_name} must be a list of ids", field=field_name)
    return frozenset(require_positive_id(v, field_name) for v in values)  # type: ignore[attr-defined]
