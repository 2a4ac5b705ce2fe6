from __future__ import annotations

from datetime import date
from typing import Iterator

from ..model import SchedulePattern
from .base import RecurrenceRule


class CustomRule(RecurrenceRule):
    """Explicit ``custom_dates`` that fall inside the window, in date order."""

    def dates(self, pattern: SchedulePattern, *, window_start: date, window_end: date) -> Iterator[date]:
        for day in sorted(set(pattern.custom_dates)):
            if window_start <= day <= window_end:
                yield day
