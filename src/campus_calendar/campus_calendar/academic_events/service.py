from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Iterable, Optional, Sequence

from ..common.locks import KeyedLock
from ..common.scope import ScopeFilters
from ..common.validators import UNSET, parse_id_set, require_date_order, require_non_empty, require_positive_id
from ..core.enums import AcademicEventType, CalendarAction, Role
from ..core.exceptions import NotFoundError, ValidationError
from ..permissions.gate import PermissionGate
from .model import AcademicEvent
from .repository import AcademicEventRepository

logger = logging.getLogger(__name__)


def _parse_type(value: AcademicEventType | str | None) -> AcademicEventType:
    if value is None:
        return AcademicEventType.OTHER
    if isinstance(value, AcademicEventType):
        return value
    try:
        return AcademicEventType(str(value).upper())
    except ValueError:
        raise ValidationError(f"Unknown academic event type: {value}", field="event_type") from None


def _validate(event: AcademicEvent) -> AcademicEvent:
    title = require_non_empty(event.title, "title")
    if event.start_date is None or event.end_date is None:
        raise ValidationError("start_date and end_date are required", field="start_date")
    require_date_order(event.start_date, event.end_date)
    description = event.description.strip() if event.description else None
    return replace(event, title=title, description=description)


class AcademicEventService:
    def __init__(self, events: AcademicEventRepository, *, gate: PermissionGate, locks: KeyedLock | None = None):
        self._events = events
        self._gate = gate
        self._locks = locks or KeyedLock()

    def create_event(
        self,
        *,
        current_role: Role,
        title: str,
        start_date: date,
        end_date: Optional[date] = None,
        event_type: AcademicEventType | str | None = None,
        description: Optional[str] = None,
        campus_ids: Iterable[int] | None = None,
        academic_cycle_id: Optional[int] = None,
    ) -> AcademicEvent:
        self._gate.require(current_role, CalendarAction.CREATE_ACADEMIC_EVENT)

        draft = _validate(
            AcademicEvent(
                event_id=0,
                title=title,
                start_date=start_date,
                end_date=end_date or start_date,
                event_type=_parse_type(event_type),
                description=description,
                campus_ids=parse_id_set(campus_ids, "campus_ids"),
                academic_cycle_id=(
                    require_positive_id(academic_cycle_id, "academic_cycle_id") if academic_cycle_id is not None else None
                ),
            )
        )
        event_id = self._events.create(event=draft)
        logger.info("Created academic event %s (%s)", event_id, draft.event_type.value)
        return replace(draft, event_id=event_id)

    def update_event(
        self,
        *,
        current_role: Role,
        event_id: int,
        title: object = UNSET,
        start_date: object = UNSET,
        end_date: object = UNSET,
        event_type: object = UNSET,
        description: object = UNSET,
        campus_ids: object = UNSET,
    ) -> AcademicEvent:
        self._gate.require(current_role, CalendarAction.UPDATE_ACADEMIC_EVENT)
        event_id = require_positive_id(event_id, "event_id")

        with self._locks.hold(("academic_event", event_id)):
            current = self._events.get_by_id(event_id)
            if not current:
                raise NotFoundError("Academic event not found")

            changes: dict = {}
            if title is not UNSET:
                changes["title"] = title
            if start_date is not UNSET:
                changes["start_date"] = start_date
            if end_date is not UNSET:
                changes["end_date"] = end_date
            if event_type is not UNSET:
                changes["event_type"] = _parse_type(event_type)  # type: ignore[arg-type]
            if description is not UNSET:
                changes["description"] = description
            if campus_ids is not UNSET:
                changes["campus_ids"] = parse_id_set(campus_ids, "campus_ids")

            updated = _validate(replace(current, **changes))
            if not self._events.update(event=updated):
                raise NotFoundError("Academic event not found")

        logger.info("Updated academic event %s", event_id)
        return updated

    def delete_event(self, *, current_role: Role, event_id: int) -> None:
        self._gate.require(current_role, CalendarAction.DELETE_ACADEMIC_EVENT)
        event_id = require_positive_id(event_id, "event_id")

        with self._locks.hold(("academic_event", event_id)):
            if not self._events.delete(event_id=event_id):
                raise NotFoundError("Academic event not found")
        logger.info("Deleted academic event %s", event_id)

    def list_events(
        self,
        *,
        current_role: Role,
        start: date,
        end: date,
        filters: ScopeFilters | None = None,
    ) -> Sequence[AcademicEvent]:
        self._gate.require(current_role, CalendarAction.VIEW_ACADEMIC_EVENTS)
        require_date_order(start, end)
        return self._events.list_in_range(start=start, end=end, filters=filters or ScopeFilters())
