from __future__ import annotations

from datetime import date
from typing import Iterator

from ...common.datetime_utils import each_day
from ..model import SchedulePattern
from .base import RecurrenceRule


class DailyRule(RecurrenceRule):
    """Every day in the window."""

    def dates(self, pattern: SchedulePattern, *, window_start: date, window_end: date) -> Iterator[date]:
        return each_day(window_start, window_end)
