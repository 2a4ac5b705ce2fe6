from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, time
from typing import Iterable, List, Optional, Sequence

from ..common.locks import KeyedLock
from ..common.scope import ScopeFilters
from ..common.validators import (
    UNSET,
    parse_hhmm,
    require_date_order,
    require_non_empty,
    require_positive_id,
    require_time_order,
    require_within,
)
from ..core.constants import DEFAULT_PATTERN_PAGE_SIZE, MAX_PATTERN_PAGE_SIZE
from ..core.enums import CalendarAction, DayOfWeek, PatternStatus, RecurrenceType, Role
from ..core.exceptions import NotFoundError, ValidationError
from ..permissions.gate import PermissionGate
from .cache import OccurrenceCache
from .factory import RecurrenceRuleFactory
from .model import Occurrence, ScheduleException, SchedulePattern
from .repository import ScheduleExceptionRepository, SchedulePatternRepository
from .resolver import occurrences_in_range

logger = logging.getLogger(__name__)


def _parse_recurrence(value: RecurrenceType | str) -> RecurrenceType:
    if isinstance(value, RecurrenceType):
        return value
    try:
        return RecurrenceType(str(value).upper())
    except ValueError:
        raise ValidationError(f"Unknown recurrence: {value}", field="recurrence") from None


def _parse_days(values: Iterable[DayOfWeek | str] | None) -> frozenset[DayOfWeek]:
    if isinstance(values, str):
        raise ValidationError("days_of_week must be a list", field="days_of_week")
    out = set()
    for value in values or ():
        if isinstance(value, DayOfWeek):
            out.add(value)
            continue
        try:
            out.add(DayOfWeek(str(value).upper()))
        except ValueError:
            raise ValidationError(f"Unknown day of week: {value}", field="days_of_week") from None
    return frozenset(out)


def _as_time(value: time | str | None, field_name: str) -> Optional[time]:
    if value is None or isinstance(value, time):
        return value
    return parse_hhmm(value, field_name)


def _require_time(value: time | str | None, field_name: str) -> time:
    if isinstance(value, time):
        return value
    return parse_hhmm(value, field_name)


def validate_pattern(pattern: SchedulePattern) -> SchedulePattern:
    """Check a fully merged pattern before it is written. Never coerces."""
    name = require_non_empty(pattern.name, "name")
    require_time_order(pattern.start_time, pattern.end_time)
    require_date_order(pattern.start_date, pattern.end_date)

    if pattern.custom_dates and pattern.recurrence != RecurrenceType.CUSTOM:
        raise ValidationError("custom_dates only apply to CUSTOM recurrence", field="custom_dates")
    for day in pattern.custom_dates:
        require_within(day, pattern.start_date, pattern.end_date, "custom_dates")

    description = pattern.description.strip() if pattern.description else None
    return replace(pattern, name=name, description=description)


class SchedulePatternService:
    """Mutation and read entry points for schedule patterns and their exceptions.

    Every mutation checks the permission gate, re-validates its input, is
    serialized per pattern id and invalidates the pattern's cached occurrences.
    """

    def __init__(
        self,
        patterns: SchedulePatternRepository,
        exceptions: ScheduleExceptionRepository,
        *,
        gate: PermissionGate,
        cache: OccurrenceCache | None = None,
        locks: KeyedLock | None = None,
        rule_factory: RecurrenceRuleFactory | None = None,
    ):
        self._patterns = patterns
        self._exceptions = exceptions
        self._gate = gate
        self._cache = cache or OccurrenceCache()
        self._locks = locks or KeyedLock()
        self._factory = rule_factory or RecurrenceRuleFactory()

    def _get_or_raise(self, pattern_id: int) -> SchedulePattern:
        pattern = self._patterns.get_by_id(require_positive_id(pattern_id, "pattern_id"))
        if not pattern:
            raise NotFoundError("Schedule pattern not found")
        return pattern

    def _get_active_or_raise(self, pattern_id: int) -> SchedulePattern:
        pattern = self._get_or_raise(pattern_id)
        if not pattern.is_active:
            raise ValidationError("Schedule pattern is inactive", field="pattern_id")
        return pattern

    # ---- patterns -------------------------------------------------------

    def create_pattern(
        self,
        *,
        current_role: Role,
        name: str,
        start_time: time | str,
        end_time: time | str,
        recurrence: RecurrenceType | str,
        start_date: date,
        end_date: Optional[date] = None,
        days_of_week: Iterable[DayOfWeek | str] | None = None,
        description: Optional[str] = None,
        custom_dates: Sequence[date] = (),
        campus_id: Optional[int] = None,
        program_id: Optional[int] = None,
    ) -> SchedulePattern:
        self._gate.require(current_role, CalendarAction.CREATE_SCHEDULE_PATTERN)

        if start_date is None:
            raise ValidationError("start_date is required", field="start_date")

        draft = validate_pattern(
            SchedulePattern(
                pattern_id=0,
                name=name,
                description=description,
                days_of_week=_parse_days(days_of_week),
                start_time=_require_time(start_time, "start_time"),
                end_time=_require_time(end_time, "end_time"),
                recurrence=_parse_recurrence(recurrence),
                start_date=start_date,
                end_date=end_date,
                custom_dates=tuple(sorted(set(custom_dates))),
                campus_id=require_positive_id(campus_id, "campus_id") if campus_id is not None else None,
                program_id=require_positive_id(program_id, "program_id") if program_id is not None else None,
            )
        )

        pattern_id = self._patterns.create(pattern=draft)
        logger.info("Created schedule pattern %s (%s)", pattern_id, draft.recurrence.value)
        return replace(draft, pattern_id=pattern_id)

    def update_pattern(
        self,
        *,
        current_role: Role,
        pattern_id: int,
        name: object = UNSET,
        description: object = UNSET,
        days_of_week: object = UNSET,
        start_time: object = UNSET,
        end_time: object = UNSET,
        recurrence: object = UNSET,
        start_date: object = UNSET,
        end_date: object = UNSET,
        custom_dates: object = UNSET,
        campus_id: object = UNSET,
        program_id: object = UNSET,
    ) -> SchedulePattern:
        """Partial update: only fields passed explicitly change.

        The merged pattern is validated as a whole, and narrowed bounds may
        not leave existing exceptions outside the pattern.
        """
        self._gate.require(current_role, CalendarAction.UPDATE_SCHEDULE_PATTERN)

        with self._locks.hold(("pattern", require_positive_id(pattern_id, "pattern_id"))):
            current = self._get_active_or_raise(pattern_id)

            changes: dict = {}
            if name is not UNSET:
                changes["name"] = name
            if description is not UNSET:
                changes["description"] = description
            if days_of_week is not UNSET:
                changes["days_of_week"] = _parse_days(days_of_week)  # type: ignore[arg-type]
            if start_time is not UNSET:
                changes["start_time"] = _require_time(start_time, "start_time")  # type: ignore[arg-type]
            if end_time is not UNSET:
                changes["end_time"] = _require_time(end_time, "end_time")  # type: ignore[arg-type]
            if recurrence is not UNSET:
                changes["recurrence"] = _parse_recurrence(recurrence)  # type: ignore[arg-type]
            if start_date is not UNSET:
                if start_date is None:
                    raise ValidationError("start_date is required", field="start_date")
                changes["start_date"] = start_date
            if end_date is not UNSET:
                changes["end_date"] = end_date
            if custom_dates is not UNSET:
                changes["custom_dates"] = tuple(sorted(set(custom_dates or ())))  # type: ignore[call-overload]
            if campus_id is not UNSET:
                changes["campus_id"] = require_positive_id(campus_id, "campus_id") if campus_id is not None else None
            if program_id is not UNSET:
                changes["program_id"] = require_positive_id(program_id, "program_id") if program_id is not None else None

            merged = validate_pattern(replace(current, **changes))

            for exc in self._exceptions.list_for(pattern_id=merged.pattern_id):
                for day in (exc.exception_date, exc.alternative_date):
                    if day is not None and (day < merged.start_date or (merged.end_date and day > merged.end_date)):
                        raise ValidationError(
                            f"Exception on {exc.exception_date} would fall outside the new date range",
                            field="end_date" if merged.end_date and day > merged.end_date else "start_date",
                        )

            if not self._patterns.update(pattern=merged):
                raise NotFoundError("Schedule pattern not found")
            self._cache.invalidate(merged.pattern_id)

        logger.info("Updated schedule pattern %s (%s)", merged.pattern_id, ", ".join(sorted(changes)) or "no changes")
        return merged

    def delete_pattern(self, *, current_role: Role, pattern_id: int) -> None:
        """Soft delete: the pattern becomes INACTIVE and stops producing occurrences."""
        self._gate.require(current_role, CalendarAction.DELETE_SCHEDULE_PATTERN)

        with self._locks.hold(("pattern", require_positive_id(pattern_id, "pattern_id"))):
            self._get_or_raise(pattern_id)
            if not self._patterns.set_status(pattern_id=int(pattern_id), status=PatternStatus.INACTIVE):
                raise NotFoundError("Schedule pattern not found")
            self._cache.invalidate(int(pattern_id))

        logger.info("Deactivated schedule pattern %s", pattern_id)

    def get_pattern(self, *, current_role: Role, pattern_id: int) -> SchedulePattern:
        self._gate.require(current_role, CalendarAction.VIEW_SCHEDULE_PATTERNS)
        return self._get_or_raise(pattern_id)

    def list_patterns(
        self,
        *,
        current_role: Role,
        filters: ScopeFilters | None = None,
        recurrence: RecurrenceType | str | None = None,
        range_start: Optional[date] = None,
        range_end: Optional[date] = None,
        page: int = 1,
        page_size: int = DEFAULT_PATTERN_PAGE_SIZE,
    ) -> Sequence[SchedulePattern]:
        self._gate.require(current_role, CalendarAction.VIEW_SCHEDULE_PATTERNS)

        if range_start is not None and range_end is not None and range_end < range_start:
            raise ValidationError("End date cannot be before start date", field="end_date")
        if int(page) < 1:
            raise ValidationError("page must be at least 1", field="page")
        if not 1 <= int(page_size) <= MAX_PATTERN_PAGE_SIZE:
            raise ValidationError(f"page_size must be between 1 and {MAX_PATTERN_PAGE_SIZE}", field="page_size")

        return self._patterns.list_patterns(
            filters=filters or ScopeFilters(),
            status=PatternStatus.ACTIVE,
            recurrence=_parse_recurrence(recurrence) if recurrence else None,
            range_start=range_start,
            range_end=range_end,
            limit=int(page_size),
            offset=(int(page) - 1) * int(page_size),
        )

    def resolve_occurrences(
        self,
        pattern: SchedulePattern,
        exceptions: Sequence[ScheduleException],
        range_start: date,
        range_end: date,
    ) -> List[Occurrence]:
        """Occurrences landing in the range after exceptions, memoized per (pattern, exceptions, range)."""

        def compute() -> List[Occurrence]:
            return occurrences_in_range(pattern, exceptions, range_start, range_end, factory=self._factory)

        return self._cache.get_or_compute(
            pattern.pattern_id, range_start, range_end, compute, inputs=(pattern, tuple(exceptions))
        )

    def generate_occurrences(
        self,
        *,
        current_role: Role,
        pattern_id: int,
        range_start: date,
        range_end: date,
    ) -> List[Occurrence]:
        self._gate.require(current_role, CalendarAction.VIEW_SCHEDULE_PATTERNS)
        require_date_order(range_start, range_end)

        pattern = self._get_or_raise(pattern_id)
        if not pattern.is_active:
            return []
        exceptions = self._exceptions.list_for(pattern_id=pattern.pattern_id)
        return self.resolve_occurrences(pattern, exceptions, range_start, range_end)

    # ---- exceptions -----------------------------------------------------

    def _validated_exception(
        self,
        pattern: SchedulePattern,
        *,
        exception_id: int,
        exception_date: date,
        reason: Optional[str],
        alternative_date: Optional[date],
        alternative_start_time: time | str | None,
        alternative_end_time: time | str | None,
    ) -> ScheduleException:
        if exception_date is None:
            raise ValidationError("exception_date is required", field="exception_date")
        require_within(exception_date, pattern.start_date, pattern.end_date, "exception_date")
        if alternative_date is not None:
            require_within(alternative_date, pattern.start_date, pattern.end_date, "alternative_date")

        alt_start = _as_time(alternative_start_time, "alternative_start_time")
        alt_end = _as_time(alternative_end_time, "alternative_end_time")
        # A partial override is checked against the pattern's other time.
        if alt_start is not None or alt_end is not None:
            require_time_order(
                alt_start or pattern.start_time,
                alt_end or pattern.end_time,
                field_name="alternative_end_time" if alt_end is not None else "alternative_start_time",
            )

        return ScheduleException(
            exception_id=exception_id,
            pattern_id=pattern.pattern_id,
            exception_date=exception_date,
            reason=reason.strip() if reason and reason.strip() else None,
            alternative_date=alternative_date,
            alternative_start_time=alt_start,
            alternative_end_time=alt_end,
        )

    def create_exception(
        self,
        *,
        current_role: Role,
        pattern_id: int,
        exception_date: date,
        reason: Optional[str] = None,
        alternative_date: Optional[date] = None,
        alternative_start_time: time | str | None = None,
        alternative_end_time: time | str | None = None,
    ) -> ScheduleException:
        """Cancel (no alternative fields) or reschedule one occurrence.

        A second exception for the same date replaces the first.
        """
        self._gate.require(current_role, CalendarAction.CREATE_SCHEDULE_EXCEPTION)

        with self._locks.hold(("pattern", require_positive_id(pattern_id, "pattern_id"))):
            pattern = self._get_active_or_raise(pattern_id)
            draft = self._validated_exception(
                pattern,
                exception_id=0,
                exception_date=exception_date,
                reason=reason,
                alternative_date=alternative_date,
                alternative_start_time=alternative_start_time,
                alternative_end_time=alternative_end_time,
            )
            exception_id = self._exceptions.upsert(exception=draft)
            self._cache.invalidate(pattern.pattern_id)

        logger.info(
            "%s occurrence %s of pattern %s",
            "Cancelled" if draft.is_cancellation else "Rescheduled",
            draft.exception_date,
            pattern.pattern_id,
        )
        return replace(draft, exception_id=exception_id)

    def update_exception(
        self,
        *,
        current_role: Role,
        exception_id: int,
        exception_date: object = UNSET,
        reason: object = UNSET,
        alternative_date: object = UNSET,
        alternative_start_time: object = UNSET,
        alternative_end_time: object = UNSET,
    ) -> ScheduleException:
        self._gate.require(current_role, CalendarAction.UPDATE_SCHEDULE_EXCEPTION)

        current = self._exceptions.get_by_id(require_positive_id(exception_id, "exception_id"))
        if not current:
            raise NotFoundError("Schedule exception not found")

        with self._locks.hold(("pattern", current.pattern_id)):
            pattern = self._get_active_or_raise(current.pattern_id)

            def pick(value: object, existing: object) -> object:
                return existing if value is UNSET else value

            updated = self._validated_exception(
                pattern,
                exception_id=current.exception_id,
                exception_date=pick(exception_date, current.exception_date),  # type: ignore[arg-type]
                reason=pick(reason, current.reason),  # type: ignore[arg-type]
                alternative_date=pick(alternative_date, current.alternative_date),  # type: ignore[arg-type]
                alternative_start_time=pick(alternative_start_time, current.alternative_start_time),  # type: ignore[arg-type]
                alternative_end_time=pick(alternative_end_time, current.alternative_end_time),  # type: ignore[arg-type]
            )

            if updated.exception_date != current.exception_date:
                for other in self._exceptions.list_for(pattern_id=pattern.pattern_id):
                    if other.exception_id != current.exception_id and other.exception_date == updated.exception_date:
                        raise ValidationError(
                            "Another exception already exists for that date", field="exception_date"
                        )

            if not self._exceptions.update(exception=updated):
                raise NotFoundError("Schedule exception not found")
            self._cache.invalidate(pattern.pattern_id)

        logger.info("Updated schedule exception %s of pattern %s", updated.exception_id, pattern.pattern_id)
        return updated

    def delete_exception(self, *, current_role: Role, exception_id: int) -> None:
        """Restore the original occurrence by removing its exception."""
        self._gate.require(current_role, CalendarAction.DELETE_SCHEDULE_EXCEPTION)

        current = self._exceptions.get_by_id(require_positive_id(exception_id, "exception_id"))
        if not current:
            raise NotFoundError("Schedule exception not found")

        with self._locks.hold(("pattern", current.pattern_id)):
            if not self._exceptions.delete(exception_id=current.exception_id):
                raise NotFoundError("Schedule exception not found")
            self._cache.invalidate(current.pattern_id)

        logger.info("Deleted schedule exception %s of pattern %s", current.exception_id, current.pattern_id)

    def list_exceptions(self, *, current_role: Role, pattern_id: int) -> Sequence[ScheduleException]:
        self._gate.require(current_role, CalendarAction.VIEW_SCHEDULE_PATTERNS)
        pattern = self._get_or_raise(pattern_id)
        return self._exceptions.list_for(pattern_id=pattern.pattern_id)
