from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional

from ..academic_events.model import AcademicEvent
from ..common.datetime_utils import end_of_day, start_of_day
from ..common.scope import ScopeFilters
from ..core.constants import ACADEMIC_EVENT_COLOR, HOLIDAY_COLOR, SCHEDULE_COLOR
from ..core.enums import EventType
from ..core.exceptions import ValidationError
from ..holidays.model import Holiday
from ..schedules.cache import OccurrenceCache
from ..schedules.model import Occurrence, SchedulePattern
from ..schedules.resolver import occurrences_in_range
from .model import AggregationResult, CalendarEvent, CalendarSources

logger = logging.getLogger(__name__)


def schedule_event_id(pattern_id: int, source_date: date) -> str:
    return f"schedule-{pattern_id}-{source_date.isoformat()}"


def _from_occurrence(pattern: SchedulePattern, occurrence: Occurrence) -> CalendarEvent:
    return CalendarEvent(
        event_id=schedule_event_id(pattern.pattern_id, occurrence.source_date),
        title=pattern.name,
        start=occurrence.start,
        end=occurrence.end,
        event_type=EventType.SCHEDULE,
        color=SCHEDULE_COLOR,
        description=pattern.description,
        campus_ids=frozenset({pattern.campus_id}) if pattern.campus_id is not None else frozenset(),
        program_id=pattern.program_id,
        original_date=occurrence.original_date,
        reason=occurrence.reason,
    )


def _from_holiday(holiday: Holiday) -> CalendarEvent:
    return CalendarEvent(
        event_id=f"holiday-{holiday.holiday_id}",
        title=holiday.name,
        start=start_of_day(holiday.start_date),
        end=end_of_day(holiday.end_date),
        event_type=EventType.HOLIDAY,
        color=HOLIDAY_COLOR,
        description=holiday.description,
        category=holiday.holiday_type.value,
        campus_ids=holiday.campus_ids,
    )


def _from_academic_event(event: AcademicEvent) -> CalendarEvent:
    return CalendarEvent(
        event_id=f"event-{event.event_id}",
        title=event.title,
        start=start_of_day(event.start_date),
        end=end_of_day(event.end_date),
        event_type=EventType.ACADEMIC_EVENT,
        color=ACADEMIC_EVENT_COLOR,
        description=event.description,
        category=event.event_type.value,
        campus_ids=event.campus_ids,
    )


def _pattern_in_scope(pattern: SchedulePattern, filters: ScopeFilters) -> bool:
    if not pattern.is_active:
        return False
    if filters.campus_id is not None and pattern.campus_id not in (None, filters.campus_id):
        return False
    if filters.program_id is not None and pattern.program_id not in (None, filters.program_id):
        return False
    return True


def matches_filters(event: CalendarEvent, filters: ScopeFilters) -> bool:
    """Exclusion filters; an unset field never excludes."""
    if filters.event_type is not None and event.event_type != filters.event_type:
        return False
    if filters.campus_id is not None and event.campus_ids and filters.campus_id not in event.campus_ids:
        return False
    if filters.program_id is not None and event.event_type == EventType.SCHEDULE:
        if event.program_id is not None and event.program_id != filters.program_id:
            return False
    if filters.category is not None and event.category != filters.category:
        return False
    return True


def _schedule_events(
    range_start: date,
    range_end: date,
    sources: CalendarSources,
    filters: ScopeFilters,
    cache: Optional[OccurrenceCache],
    warnings: List[str],
) -> Iterable[CalendarEvent]:
    if sources.patterns is None:
        warnings.append("Schedule patterns are unavailable; class sessions are not shown.")
        return

    for pattern in sources.patterns:
        if not _pattern_in_scope(pattern, filters):
            continue

        exceptions = sources.exceptions.get(pattern.pattern_id, ())
        if exceptions is None:
            # Without its exceptions a pattern could resurrect cancelled sessions.
            warnings.append(f"Exceptions for schedule pattern {pattern.pattern_id} are unavailable; pattern skipped.")
            continue

        def compute(p: SchedulePattern = pattern, excs=exceptions) -> List[Occurrence]:
            return occurrences_in_range(p, excs, range_start, range_end)

        if cache is not None:
            occurrences = cache.get_or_compute(
                pattern.pattern_id, range_start, range_end, compute, inputs=(pattern, tuple(exceptions))
            )
        else:
            occurrences = compute()

        for occurrence in occurrences:
            yield _from_occurrence(pattern, occurrence)


def aggregate(
    range_start: date,
    range_end: date,
    sources: CalendarSources,
    filters: ScopeFilters | None = None,
    *,
    cache: Optional[OccurrenceCache] = None,
) -> AggregationResult:
    """Merge holidays, academic events and resolved pattern occurrences into one timeline.

    The result is de-duplicated by event id (first seen wins) and sorted by
    (start, type order HOLIDAY < ACADEMIC_EVENT < SCHEDULE, id). A source
    passed as ``None`` contributes nothing and adds a warning instead of failing
    the whole aggregation.
    """
    if range_start is None or range_end is None:
        raise ValidationError("start and end dates are required", field="start")
    if range_end < range_start:
        raise ValidationError("End date cannot be before start date", field="end")

    filters = filters or ScopeFilters()
    warnings: List[str] = []
    window_start, window_end = start_of_day(range_start), end_of_day(range_end)

    candidates: List[CalendarEvent] = []
    candidates.extend(_schedule_events(range_start, range_end, sources, filters, cache, warnings))

    if sources.holidays is None:
        warnings.append("Holidays are unavailable.")
    else:
        candidates.extend(_from_holiday(h) for h in sources.holidays)

    if sources.academic_events is None:
        warnings.append("Academic events are unavailable.")
    else:
        candidates.extend(_from_academic_event(e) for e in sources.academic_events)

    unique: Dict[str, CalendarEvent] = {}
    for event in candidates:
        if event.event_id in unique:
            continue
        if not event.overlaps(window_start, window_end):
            continue
        if not matches_filters(event, filters):
            continue
        unique[event.event_id] = event

    events = tuple(sorted(unique.values(), key=lambda e: e.sort_key))
    for message in warnings:
        logger.warning(message)
    return AggregationResult(range_start=range_start, range_end=range_end, events=events, warnings=tuple(warnings))
