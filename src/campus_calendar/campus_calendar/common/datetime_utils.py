from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta
from typing import Iterator


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def today_local() -> date:
    return now_local().date()


def start_of_week(value: date) -> date:
    """Sunday of the week containing ``value`` (grids start weeks on Sunday)."""
    # date.weekday(): Monday=0 .. Sunday=6
    return value - timedelta(days=(value.weekday() + 1) % 7)


def end_of_week(value: date) -> date:
    return start_of_week(value) + timedelta(days=6)


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(value: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length."""
    index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    return date(year, month, min(value.day, last_day_of_month(year, month)))


def each_day(start: date, end: date) -> Iterator[date]:
    """Every date in [start, end]; nothing when end < start."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def start_of_day(value: date) -> datetime:
    return datetime.combine(value, time.min)


def end_of_day(value: date) -> datetime:
    return datetime.combine(value, time.max)


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")
