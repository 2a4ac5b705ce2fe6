from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Iterator

from ..model import SchedulePattern


class RecurrenceRule(ABC):
    """Strategy Pattern: encapsulate which dates a recurrence produces.

    ``window_start``/``window_end`` are already clipped to the pattern's own
    bounds by the expander; rules only decide which dates in it qualify.
    """

    @abstractmethod
    def dates(self, pattern: SchedulePattern, *, window_start: date, window_end: date) -> Iterator[date]:
        raise NotImplementedError
