from __future__ import annotations

from datetime import date
from typing import Iterator

from ...common.datetime_utils import each_day, start_of_week
from ...core.enums import DayOfWeek
from ..model import SchedulePattern
from .base import RecurrenceRule


class BiweeklyRule(RecurrenceRule):
    """Weekly days, but only in even weeks counted from the week of ``start_date``.

    Weeks start on Sunday, the same as the calendar grids.
    """

    def dates(self, pattern: SchedulePattern, *, window_start: date, window_end: date) -> Iterator[date]:
        if not pattern.days_of_week:
            return
        anchor = start_of_week(pattern.start_date)
        for day in each_day(window_start, window_end):
            week_index = (start_of_week(day) - anchor).days // 7
            if week_index % 2 == 0 and DayOfWeek.from_date(day) in pattern.days_of_week:
                yield day
