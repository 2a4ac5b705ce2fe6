from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import each_day
from ..common.locks import KeyedLock
from ..common.scope import ScopeFilters
from ..common.validators import UNSET, parse_id_set, require_date_order, require_non_empty, require_positive_id
from ..core.enums import CalendarAction, HolidayType, Role
from ..core.exceptions import NotFoundError, ValidationError
from ..permissions.gate import PermissionGate
from .model import Holiday
from .repository import HolidayRepository

logger = logging.getLogger(__name__)


def _parse_type(value: HolidayType | str | None) -> HolidayType:
    if value is None:
        return HolidayType.OTHER
    if isinstance(value, HolidayType):
        return value
    try:
        return HolidayType(str(value).upper())
    except ValueError:
        raise ValidationError(f"Unknown holiday type: {value}", field="holiday_type") from None


def _validate(holiday: Holiday) -> Holiday:
    name = require_non_empty(holiday.name, "name")
    if holiday.start_date is None or holiday.end_date is None:
        raise ValidationError("start_date and end_date are required", field="start_date")
    require_date_order(holiday.start_date, holiday.end_date)
    description = holiday.description.strip() if holiday.description else None
    return replace(holiday, name=name, description=description)


class HolidayService:
    def __init__(self, holidays: HolidayRepository, *, gate: PermissionGate, locks: KeyedLock | None = None):
        self._holidays = holidays
        self._gate = gate
        self._locks = locks or KeyedLock()

    def create_holiday(
        self,
        *,
        current_role: Role,
        name: str,
        start_date: date,
        end_date: Optional[date] = None,
        holiday_type: HolidayType | str | None = None,
        description: Optional[str] = None,
        campus_ids: Iterable[int] | None = None,
    ) -> Holiday:
        self._gate.require(current_role, CalendarAction.CREATE_HOLIDAY)

        draft = _validate(
            Holiday(
                holiday_id=0,
                name=name,
                start_date=start_date,
                # Single-day holiday when no end is given.
                end_date=end_date or start_date,
                holiday_type=_parse_type(holiday_type),
                description=description,
                campus_ids=parse_id_set(campus_ids, "campus_ids"),
            )
        )
        holiday_id = self._holidays.create(holiday=draft)
        logger.info("Created holiday %s (%s to %s)", holiday_id, draft.start_date, draft.end_date)
        return replace(draft, holiday_id=holiday_id)

    def update_holiday(
        self,
        *,
        current_role: Role,
        holiday_id: int,
        name: object = UNSET,
        start_date: object = UNSET,
        end_date: object = UNSET,
        holiday_type: object = UNSET,
        description: object = UNSET,
        campus_ids: object = UNSET,
    ) -> Holiday:
        self._gate.require(current_role, CalendarAction.UPDATE_HOLIDAY)
        holiday_id = require_positive_id(holiday_id, "holiday_id")

        with self._locks.hold(("holiday", holiday_id)):
            current = self._holidays.get_by_id(holiday_id)
            if not current:
                raise NotFoundError("Holiday not found")

            changes: dict = {}
            if name is not UNSET:
                changes["name"] = name
            if start_date is not UNSET:
                changes["start_date"] = start_date
            if end_date is not UNSET:
                changes["end_date"] = end_date
            if holiday_type is not UNSET:
                changes["holiday_type"] = _parse_type(holiday_type)  # type: ignore[arg-type]
            if description is not UNSET:
                changes["description"] = description
            if campus_ids is not UNSET:
                changes["campus_ids"] = parse_id_set(campus_ids, "campus_ids")

            updated = _validate(replace(current, **changes))
            if not self._holidays.update(holiday=updated):
                raise NotFoundError("Holiday not found")

        logger.info("Updated holiday %s", holiday_id)
        return updated

    def delete_holiday(self, *, current_role: Role, holiday_id: int) -> None:
        self._gate.require(current_role, CalendarAction.DELETE_HOLIDAY)
        holiday_id = require_positive_id(holiday_id, "holiday_id")

        with self._locks.hold(("holiday", holiday_id)):
            if not self._holidays.delete(holiday_id=holiday_id):
                raise NotFoundError("Holiday not found")
        logger.info("Deleted holiday %s", holiday_id)

    def list_holidays(
        self,
        *,
        current_role: Role,
        start: date,
        end: date,
        filters: ScopeFilters | None = None,
    ) -> Sequence[Holiday]:
        self._gate.require(current_role, CalendarAction.VIEW_HOLIDAYS)
        require_date_order(start, end)
        return self._holidays.list_in_range(start=start, end=end, filters=filters or ScopeFilters())

    def is_holiday(self, *, current_role: Role, day: date, campus_id: Optional[int] = None) -> bool:
        holidays = self.list_holidays(
            current_role=current_role, start=day, end=day, filters=ScopeFilters(campus_id=campus_id)
        )
        return any(h.covers(day) and h.applies_to(campus_id) for h in holidays)

    def working_days(
        self,
        *,
        current_role: Role,
        start: date,
        end: date,
        campus_id: Optional[int] = None,
    ) -> int:
        """Monday-Friday dates in [start, end] not covered by a holiday for the campus."""
        holidays = [
            h
            for h in self.list_holidays(
                current_role=current_role, start=start, end=end, filters=ScopeFilters(campus_id=campus_id)
            )
            if h.applies_to(campus_id)
        ]
        return sum(
            1
            for day in each_day(start, end)
            if day.weekday() < 5 and not any(h.covers(day) for h in holidays)
        )
