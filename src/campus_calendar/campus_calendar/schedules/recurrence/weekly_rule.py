from __future__ import annotations

from datetime import date
from typing import Iterator

from ...common.datetime_utils import each_day
from ...core.enums import DayOfWeek
from ..model import SchedulePattern
from .base import RecurrenceRule


class WeeklyRule(RecurrenceRule):
    """Days whose weekday is in ``days_of_week``."""

    def dates(self, pattern: SchedulePattern, *, window_start: date, window_end: date) -> Iterator[date]:
        if not pattern.days_of_week:
            return
        for day in each_day(window_start, window_end):
            if DayOfWeek.from_date(day) in pattern.days_of_week:
                yield day
