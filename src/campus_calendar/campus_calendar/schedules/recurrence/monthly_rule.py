from __future__ import annotations

from datetime import date
from typing import Iterator

from ...common.datetime_utils import add_months
from ..model import SchedulePattern
from .base import RecurrenceRule


class MonthlyRule(RecurrenceRule):
    """Same day-of-month as ``start_date``; shorter months fall back to their last day."""

    def dates(self, pattern: SchedulePattern, *, window_start: date, window_end: date) -> Iterator[date]:
        offset = (window_start.year - pattern.start_date.year) * 12 + (window_start.month - pattern.start_date.month)
        offset = max(offset, 0)
        while True:
            # Always derive from start_date so a clamped 28th never sticks.
            day = add_months(pattern.start_date, offset)
            if day > window_end:
                return
            if day >= window_start:
                yield day
            offset += 1
