from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from ..core.enums import EventType
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class ScopeFilters:
    """Caller-supplied scope filters, validated once at the boundary.

    ``None`` on a field means "do not filter on it". ``category`` matches the
    holiday type or academic event type tag of non-schedule events.
    """

    campus_id: Optional[int] = None
    program_id: Optional[int] = None
    event_type: Optional[EventType] = None
    category: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self == ScopeFilters()

    @classmethod
    def from_mapping(cls, args: Mapping[str, object]) -> "ScopeFilters":
        return cls(
            campus_id=_optional_id(args.get("campus_id"), "campus_id"),
            program_id=_optional_id(args.get("program_id"), "program_id"),
            event_type=_optional_event_type(args.get("event_type")),
            category=_optional_text(args.get("category")),
        )


def _optional_id(value: object, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        parsed = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer", field=field_name) from None
    if parsed <= 0:
        raise ValidationError(f"{field_name} must be positive", field=field_name)
    return parsed


def _optional_event_type(value: object) -> Optional[EventType]:
    if value is None or value == "":
        return None
    if isinstance(value, EventType):
        return value
    try:
        return EventType(str(value).upper())
    except ValueError:
        raise ValidationError("event_type is not a known event type", field="event_type") from None


def _optional_text(value: object) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip().upper()
    return text or None
