from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Sequence, Tuple, Union

from ..common.datetime_utils import each_day, end_of_day, start_of_day, start_of_week
from ..core.constants import DAYS_PER_WEEK, HOURS_PER_DAY, MONTH_GRID_DAYS, YEAR_PREVIEW_LIMIT
from ..core.enums import CalendarView
from ..core.exceptions import ValidationError
from .model import (
    CalendarEvent,
    DayCell,
    DayColumn,
    DayGrid,
    HourSlot,
    MiniDay,
    MonthGrid,
    MonthSummary,
    WeekGrid,
    YearGrid,
)

Grid = Union[MonthGrid, WeekGrid, DayGrid, YearGrid]


def parse_view(view: CalendarView | str) -> CalendarView:
    if isinstance(view, CalendarView):
        return view
    try:
        return CalendarView(str(view).lower())
    except ValueError:
        raise ValidationError(f"Unknown calendar view: {view}", field="view") from None


def month_grid_start(year: int, month: int) -> date:
    """Sunday on or before the 1st of the month."""
    return start_of_week(date(year, month, 1))


def visible_range(view: CalendarView | str, anchor: date) -> Tuple[date, date]:
    """Date span a view renders for ``anchor`` (inclusive)."""
    view = parse_view(view)
    if view == CalendarView.DAY:
        return anchor, anchor
    if view == CalendarView.WEEK:
        start = start_of_week(anchor)
        return start, start + timedelta(days=DAYS_PER_WEEK - 1)
    if view == CalendarView.MONTH:
        start = month_grid_start(anchor.year, anchor.month)
        return start, start + timedelta(days=MONTH_GRID_DAYS - 1)
    # Year: the mini grids of January and December can spill into adjacent years.
    return month_grid_start(anchor.year, 1), month_grid_start(anchor.year, 12) + timedelta(days=MONTH_GRID_DAYS - 1)


def _on_day(events: Sequence[CalendarEvent], day: date) -> Tuple[CalendarEvent, ...]:
    day_start, day_end = start_of_day(day), end_of_day(day)
    return tuple(e for e in events if e.overlaps(day_start, day_end))


def _in_slot(event: CalendarEvent, slot_start: datetime, slot_end: datetime) -> bool:
    """Half-open [slot_start, slot_end) overlap test.

    The end hour is exclusive: a 09:00-10:00 session fills only the 9 o'clock
    row, not the 10 o'clock one. A zero-length event sits in the slot of its start.
    """
    if event.start == event.end:
        return slot_start <= event.start < slot_end
    return event.start < slot_end and event.end > slot_start


def _day_column(events: Sequence[CalendarEvent], day: date) -> DayColumn:
    touching = _on_day(events, day)
    slots = []
    for hour in range(HOURS_PER_DAY):
        slot_start = start_of_day(day) + timedelta(hours=hour)
        slot_end = slot_start + timedelta(hours=1)
        slots.append(
            HourSlot(
                hour=hour,
                start=slot_start,
                end=slot_end,
                events=tuple(e for e in touching if _in_slot(e, slot_start, slot_end)),
            )
        )
    return DayColumn(day=day, slots=tuple(slots), events=touching)


def project_month(events: Sequence[CalendarEvent], anchor: date) -> MonthGrid:
    """Always 6 weeks x 7 days starting on the Sunday of the week containing the 1st."""
    start = month_grid_start(anchor.year, anchor.month)
    cells = [
        DayCell(day=day, in_month=day.month == anchor.month, events=_on_day(events, day))
        for day in each_day(start, start + timedelta(days=MONTH_GRID_DAYS - 1))
    ]
    weeks = tuple(tuple(cells[i : i + DAYS_PER_WEEK]) for i in range(0, MONTH_GRID_DAYS, DAYS_PER_WEEK))
    return MonthGrid(anchor=anchor, year=anchor.year, month=anchor.month, weeks=weeks)


def project_week(events: Sequence[CalendarEvent], anchor: date) -> WeekGrid:
    start = start_of_week(anchor)
    days = tuple(_day_column(events, start + timedelta(days=i)) for i in range(DAYS_PER_WEEK))
    return WeekGrid(anchor=anchor, days=days)


def project_day(events: Sequence[CalendarEvent], anchor: date) -> DayGrid:
    return DayGrid(anchor=anchor, column=_day_column(events, anchor))


def _month_summary(events: Sequence[CalendarEvent], year: int, month: int) -> MonthSummary:
    start = month_grid_start(year, month)
    month_start = date(year, month, 1)
    next_month = date(year + (month == 12), month % 12 + 1, 1)
    month_events = [
        e for e in events if e.overlaps(start_of_day(month_start), start_of_day(next_month) - timedelta(microseconds=1))
    ]
    days = tuple(
        MiniDay(day=day, in_month=day.month == month, has_events=bool(_on_day(month_events, day)))
        for day in each_day(start, start + timedelta(days=MONTH_GRID_DAYS - 1))
    )
    return MonthSummary(
        year=year,
        month=month,
        days=days,
        preview=tuple(month_events[:YEAR_PREVIEW_LIMIT]),
        overflow=max(len(month_events) - YEAR_PREVIEW_LIMIT, 0),
    )


def project_year(events: Sequence[CalendarEvent], anchor: date) -> YearGrid:
    months = tuple(_month_summary(events, anchor.year, month) for month in range(1, 13))
    return YearGrid(anchor=anchor, year=anchor.year, months=months)


def project(events: Sequence[CalendarEvent], view: CalendarView | str, anchor: date) -> Grid:
    """Bucket an already-sorted timeline into the grid for ``view``.

    Pure: ``events`` is never modified, and cells keep the input order.
    """
    if anchor is None:
        raise ValidationError("anchor date is required", field="anchor")
    view = parse_view(view)
    events = tuple(events)
    if view == CalendarView.MONTH:
        return project_month(events, anchor)
    if view == CalendarView.WEEK:
        return project_week(events, anchor)
    if view == CalendarView.DAY:
        return project_day(events, anchor)
    return project_year(events, anchor)
