from __future__ import annotations

from datetime import date, datetime, time

import pytest

from src.campus_calendar.campus_calendar.calendar.aggregator import aggregate
from src.campus_calendar.campus_calendar.calendar.model import CalendarSources
from src.campus_calendar.campus_calendar.common.scope import ScopeFilters
from src.campus_calendar.campus_calendar.core.enums import DayOfWeek, Role
from src.campus_calendar.campus_calendar.schedules.cache import OccurrenceCache
from src.campus_calendar.campus_calendar.schedules.model import ScheduleException

JAN_START = date(2024, 1, 1)
JAN_END = date(2024, 1, 31)
MON_WED_DATES = [date(2024, 1, d) for d in (1, 3, 8, 10, 15, 17, 22, 24, 29, 31)]

CANCEL_JAN_8 = ScheduleException(exception_id=1, pattern_id=1, exception_date=date(2024, 1, 8))
MOVE_JAN_8 = ScheduleException(
    exception_id=1,
    pattern_id=1,
    exception_date=date(2024, 1, 8),
    alternative_date=date(2024, 1, 9),
    alternative_start_time=time(14, 0),
    alternative_end_time=time(15, 0),
)


@pytest.fixture
def mon_wed(make_pattern):
    return make_pattern(
        days_of_week=frozenset({DayOfWeek.MONDAY, DayOfWeek.WEDNESDAY}),
        start_date=JAN_START,
        end_date=JAN_END,
    )


def _dates(result):
    return [e.start.date() for e in result.events]


def test_mon_wed_pattern_in_january(mon_wed):
    result = aggregate(JAN_START, JAN_END, CalendarSources(patterns=[mon_wed]))

    assert _dates(result) == MON_WED_DATES
    assert all((e.start.time(), e.end.time()) == (time(9, 0), time(10, 0)) for e in result.events)


def test_cancelled_monday_is_missing(mon_wed):
    result = aggregate(JAN_START, JAN_END, CalendarSources(patterns=[mon_wed], exceptions={1: [CANCEL_JAN_8]}))

    assert len(result.events) == 9
    assert date(2024, 1, 8) not in _dates(result)


def test_moved_monday_lands_on_tuesday_afternoon(mon_wed):
    result = aggregate(JAN_START, JAN_END, CalendarSources(patterns=[mon_wed], exceptions={1: [MOVE_JAN_8]}))

    expected = [d for d in MON_WED_DATES if d != date(2024, 1, 8)] + [date(2024, 1, 9)]
    assert _dates(result) == sorted(expected)
    moved = next(e for e in result.events if e.start.date() == date(2024, 1, 9))
    assert (moved.start, moved.end) == (datetime(2024, 1, 9, 14, 0), datetime(2024, 1, 9, 15, 0))
    assert moved.event_id == "schedule-1-2024-01-08"
    assert moved.original_date == date(2024, 1, 8)
    others = [e for e in result.events if e is not moved]
    assert all((e.start.time(), e.end.time()) == (time(9, 0), time(10, 0)) for e in others)


def test_session_moved_in_from_before_the_range_is_shown(make_pattern):
    pattern = make_pattern(
        days_of_week=frozenset({DayOfWeek.MONDAY, DayOfWeek.WEDNESDAY}),
        start_date=JAN_START,
        end_date=date(2024, 2, 29),
    )
    move = ScheduleException(
        exception_id=1,
        pattern_id=1,
        exception_date=date(2024, 1, 31),
        alternative_date=date(2024, 2, 2),
        alternative_start_time=time(14, 0),
        alternative_end_time=time(15, 0),
    )

    result = aggregate(date(2024, 2, 2), date(2024, 2, 2), CalendarSources(patterns=[pattern], exceptions={1: [move]}))

    assert [e.event_id for e in result.events] == ["schedule-1-2024-01-31"]
    assert result.events[0].start == datetime(2024, 2, 2, 14, 0)


def test_session_moved_out_of_the_range_is_dropped(mon_wed):
    move_out = ScheduleException(exception_id=1, pattern_id=1, exception_date=date(2024, 1, 31), alternative_date=date(2024, 1, 30))

    result = aggregate(date(2024, 1, 31), date(2024, 1, 31), CalendarSources(patterns=[mon_wed], exceptions={1: [move_out]}))

    assert result.events == ()


def test_stale_sources_do_not_poison_the_cache(mon_wed):
    cache = OccurrenceCache()
    cache.invalidate(1)

    # A request that read its rows before the cancellation finishes after it.
    aggregate(JAN_START, JAN_END, CalendarSources(patterns=[mon_wed]), cache=cache)
    fresh = aggregate(JAN_START, JAN_END, CalendarSources(patterns=[mon_wed], exceptions={1: [CANCEL_JAN_8]}), cache=cache)

    assert date(2024, 1, 8) not in _dates(fresh)
    assert len(fresh.events) == 9


def _create_mon_wed(schedule_service, end_date=JAN_END):
    return schedule_service.create_pattern(
        current_role=Role.SYSTEM_ADMIN,
        name="Math 101",
        days_of_week=["MONDAY", "WEDNESDAY"],
        start_time="09:00",
        end_time="10:00",
        recurrence="WEEKLY",
        start_date=JAN_START,
        end_date=end_date,
    )


def test_cancellation_written_mid_request_shows_on_next_read(calendar_service, schedule_service, cache):
    created = _create_mon_wed(schedule_service)
    stale = calendar_service.fetch_sources(
        current_role=Role.STUDENT, start=JAN_START, end=JAN_END, filters=ScopeFilters()
    )

    schedule_service.create_exception(
        current_role=Role.SYSTEM_ADMIN, pattern_id=created.pattern_id, exception_date=date(2024, 1, 8)
    )
    late = aggregate(JAN_START, JAN_END, stale, cache=cache)
    result = calendar_service.events_in_range(current_role=Role.STUDENT, start=JAN_START, end=JAN_END)

    assert date(2024, 1, 8) in _dates(late)
    assert date(2024, 1, 8) not in _dates(result)
    assert len(result.events) == 9


def test_generate_occurrences_scenarios(schedule_service):
    created = _create_mon_wed(schedule_service)

    def jan():
        return schedule_service.generate_occurrences(
            current_role=Role.SYSTEM_ADMIN, pattern_id=created.pattern_id, range_start=JAN_START, range_end=JAN_END
        )

    assert [o.date for o in jan()] == MON_WED_DATES

    schedule_service.create_exception(
        current_role=Role.SYSTEM_ADMIN,
        pattern_id=created.pattern_id,
        exception_date=date(2024, 1, 8),
        alternative_date=date(2024, 1, 9),
        alternative_start_time="14:00",
        alternative_end_time="15:00",
    )

    out = jan()
    assert len(out) == 10
    assert [o.date for o in out if not o.is_rescheduled] == [d for d in MON_WED_DATES if d != date(2024, 1, 8)]
    moved = [o for o in out if o.is_rescheduled]
    assert [(o.date, o.start.time(), o.end.time()) for o in moved] == [(date(2024, 1, 9), time(14, 0), time(15, 0))]


def test_generate_occurrences_includes_session_moved_in(schedule_service):
    created = _create_mon_wed(schedule_service, end_date=date(2024, 2, 29))
    schedule_service.create_exception(
        current_role=Role.SYSTEM_ADMIN,
        pattern_id=created.pattern_id,
        exception_date=date(2024, 1, 31),
        alternative_date=date(2024, 2, 2),
        alternative_start_time="14:00",
        alternative_end_time="15:00",
    )

    out = schedule_service.generate_occurrences(
        current_role=Role.SYSTEM_ADMIN,
        pattern_id=created.pattern_id,
        range_start=date(2024, 2, 2),
        range_end=date(2024, 2, 2),
    )

    assert [(o.date, o.original_date) for o in out] == [(date(2024, 2, 2), date(2024, 1, 31))]
