from __future__ import annotations

from datetime import date, datetime, time

import pytest

from src.campus_calendar.campus_calendar.calendar.model import CalendarEvent, DayGrid, MonthGrid, WeekGrid, YearGrid
from src.campus_calendar.campus_calendar.calendar.projector import (
    month_grid_start,
    parse_view,
    project,
    visible_range,
)
from src.campus_calendar.campus_calendar.core.enums import CalendarView, EventType
from src.campus_calendar.campus_calendar.core.exceptions import ValidationError


def _event(event_id, start, end, event_type=EventType.SCHEDULE):
    return CalendarEvent(event_id=event_id, title=event_id, start=start, end=end, event_type=event_type, color="green")


def _all_day(event_id, first, last, event_type=EventType.ACADEMIC_EVENT):
    return _event(event_id, datetime.combine(first, time.min), datetime.combine(last, time.max), event_type)


def test_month_grid_is_always_42_cells_from_sunday():
    # February 2026 starts on a Sunday and fits in four rows.
    grid = project([], CalendarView.MONTH, date(2026, 2, 10))

    assert isinstance(grid, MonthGrid)
    assert len(grid.weeks) == 6
    assert all(len(week) == 7 for week in grid.weeks)
    assert len(grid.cells) == 42
    assert grid.cells[0].day == date(2026, 2, 1)
    assert grid.cells[-1].day == date(2026, 3, 14)
    assert sum(1 for c in grid.cells if c.in_month) == 28


def test_month_grid_pads_from_previous_month():
    grid = project([], "month", date(2026, 4, 20))

    assert grid.cells[0].day == date(2026, 3, 29)
    assert grid.cells[0].in_month is False
    assert grid.cells[0].day.weekday() == 6


def test_three_day_event_appears_in_exactly_three_cells():
    exams = _all_day("event-1", date(2026, 3, 16), date(2026, 3, 18))

    grid = project([exams], CalendarView.MONTH, date(2026, 3, 1))

    cells = [c.day for c in grid.cells if exams in c.events]
    assert cells == [date(2026, 3, 16), date(2026, 3, 17), date(2026, 3, 18)]


def test_cells_keep_input_order():
    early = _event("schedule-1-2026-03-02", datetime(2026, 3, 2, 9), datetime(2026, 3, 2, 10))
    late = _event("schedule-2-2026-03-02", datetime(2026, 3, 2, 13), datetime(2026, 3, 2, 14))

    grid = project([early, late], CalendarView.MONTH, date(2026, 3, 1))

    cell = next(c for c in grid.cells if c.day == date(2026, 3, 2))
    assert cell.events == (early, late)


def test_week_view_has_seven_columns_of_hour_slots():
    grid = project([], CalendarView.WEEK, date(2026, 3, 11))

    assert isinstance(grid, WeekGrid)
    assert [c.day for c in grid.days][0] == date(2026, 3, 8)
    assert [c.day for c in grid.days][-1] == date(2026, 3, 14)
    assert all(len(c.slots) == 24 for c in grid.days)


def test_hour_slots_are_half_open():
    one_hour = _event("a", datetime(2026, 3, 9, 9), datetime(2026, 3, 9, 10))
    spanning = _event("b", datetime(2026, 3, 9, 9, 30), datetime(2026, 3, 9, 11, 15))
    instant = _event("c", datetime(2026, 3, 9, 14), datetime(2026, 3, 9, 14))

    grid = project([one_hour, spanning, instant], CalendarView.WEEK, date(2026, 3, 9))
    monday = next(c for c in grid.days if c.day == date(2026, 3, 9))

    def hours_of(event):
        return [s.hour for s in monday.slots if event in s.events]

    assert hours_of(one_hour) == [9]
    assert hours_of(spanning) == [9, 10, 11]
    assert hours_of(instant) == [14]


def test_all_day_event_fills_every_slot_of_its_day():
    holiday = _all_day("holiday-1", date(2026, 3, 16), date(2026, 3, 16), EventType.HOLIDAY)

    grid = project([holiday], CalendarView.DAY, date(2026, 3, 16))

    assert isinstance(grid, DayGrid)
    assert len(grid.slots) == 24
    assert all(holiday in s.events for s in grid.slots)
    assert grid.column.events == (holiday,)


def test_day_view_ignores_other_days():
    other = _event("x", datetime(2026, 3, 17, 9), datetime(2026, 3, 17, 10))

    grid = project([other], CalendarView.DAY, date(2026, 3, 16))

    assert grid.column.events == ()
    assert not any(s.events for s in grid.slots)


def test_year_view_previews_three_events_per_month():
    march = [
        _event(f"schedule-1-2026-03-{d:02d}", datetime(2026, 3, d, 9), datetime(2026, 3, d, 10))
        for d in (2, 9, 16, 23, 30)
    ]

    grid = project(march, CalendarView.YEAR, date(2026, 6, 1))

    assert isinstance(grid, YearGrid)
    assert len(grid.months) == 12
    summary = grid.months[2]
    assert (summary.year, summary.month) == (2026, 3)
    assert [e.event_id for e in summary.preview] == [e.event_id for e in march[:3]]
    assert summary.overflow == 2
    assert summary.total == 5
    assert grid.months[1].total == 0
    assert len(summary.days) == 42
    assert [d.day for d in summary.days if d.has_events and d.in_month] == [e.start.date() for e in march]


def test_visible_range_per_view():
    anchor = date(2026, 3, 11)

    assert visible_range(CalendarView.DAY, anchor) == (anchor, anchor)
    assert visible_range(CalendarView.WEEK, anchor) == (date(2026, 3, 8), date(2026, 3, 14))
    assert visible_range(CalendarView.MONTH, anchor) == (date(2026, 3, 1), date(2026, 4, 11))
    start, end = visible_range(CalendarView.YEAR, anchor)
    assert start == month_grid_start(2026, 1) == date(2025, 12, 28)
    assert end > date(2026, 12, 31)


def test_project_does_not_mutate_input():
    events = [_event("a", datetime(2026, 3, 9, 9), datetime(2026, 3, 9, 10))]
    before = list(events)

    project(events, CalendarView.MONTH, date(2026, 3, 1))

    assert events == before


def test_unknown_view_is_rejected():
    with pytest.raises(ValidationError):
        parse_view("fortnight")
    with pytest.raises(ValidationError):
        project([], CalendarView.MONTH, None)
