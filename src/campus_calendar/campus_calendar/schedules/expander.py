from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterator, Optional, Tuple

from .factory import RecurrenceRuleFactory
from .model import Occurrence, SchedulePattern

_DEFAULT_FACTORY = RecurrenceRuleFactory()


def effective_window(pattern: SchedulePattern, range_start: date, range_end: date) -> Optional[Tuple[date, date]]:
    """Intersection of the pattern bounds with the queried range, or None when empty.

    An open-ended pattern is always capped to the queried range.
    """
    start = max(pattern.start_date, range_start)
    end = min(pattern.end_date or range_end, range_end)
    if end < start:
        return None
    return start, end


@dataclass(frozen=True)
class OccurrenceSeries:
    """Lazy, finite occurrence sequence.

    Iterating twice regenerates the same occurrences from the inputs.
    """

    pattern: SchedulePattern
    range_start: date
    range_end: date
    factory: RecurrenceRuleFactory = field(default=_DEFAULT_FACTORY, compare=False)

    def __iter__(self) -> Iterator[Occurrence]:
        window = effective_window(self.pattern, self.range_start, self.range_end)
        if window is None:
            return
        rule = self.factory.for_recurrence(self.pattern.recurrence)
        for day in rule.dates(self.pattern, window_start=window[0], window_end=window[1]):
            yield Occurrence(
                pattern_id=self.pattern.pattern_id,
                date=day,
                start=datetime.combine(day, self.pattern.start_time),
                end=datetime.combine(day, self.pattern.end_time),
            )


def expand(
    pattern: SchedulePattern,
    range_start: date,
    range_end: date,
    *,
    factory: RecurrenceRuleFactory | None = None,
) -> OccurrenceSeries:
    return OccurrenceSeries(pattern, range_start, range_end, factory or _DEFAULT_FACTORY)
