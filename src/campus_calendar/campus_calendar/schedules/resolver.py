from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Dict, Iterable, List, Sequence, Tuple

from .expander import expand
from .factory import RecurrenceRuleFactory
from .model import Occurrence, ScheduleException, SchedulePattern

logger = logging.getLogger(__name__)

ExceptionKey = Tuple[int, date]


def find_duplicate_exceptions(exceptions: Iterable[ScheduleException]) -> List[ExceptionKey]:
    """Keys (pattern_id, exception_date) that appear more than once."""
    seen: set[ExceptionKey] = set()
    duplicates: List[ExceptionKey] = []
    for exc in exceptions:
        key = (exc.pattern_id, exc.exception_date)
        if key in seen and key not in duplicates:
            duplicates.append(key)
        seen.add(key)
    return duplicates


def index_exceptions(exceptions: Sequence[ScheduleException]) -> Dict[ExceptionKey, ScheduleException]:
    """Index by (pattern_id, exception_date); the last exception supplied for a key wins."""
    duplicates = find_duplicate_exceptions(exceptions)
    if duplicates:
        logger.warning("Duplicate schedule exceptions, last one wins: %s", duplicates)
    return {(exc.pattern_id, exc.exception_date): exc for exc in exceptions}


def _rescheduled(occurrence: Occurrence, exc: ScheduleException) -> Occurrence:
    new_date = exc.alternative_date or occurrence.date
    start_time = exc.alternative_start_time or occurrence.start.time()
    end_time = exc.alternative_end_time or occurrence.end.time()
    return Occurrence(
        pattern_id=occurrence.pattern_id,
        date=new_date,
        start=datetime.combine(new_date, start_time),
        end=datetime.combine(new_date, end_time),
        original_date=occurrence.date,
        reason=exc.reason,
    )


def apply_exceptions(
    occurrences: Iterable[Occurrence],
    exceptions: Sequence[ScheduleException],
) -> List[Occurrence]:
    """Apply cancellations and reschedules, returning occurrences ordered by start.

    An exception with no alternative fields removes the occurrence on its date.
    Otherwise the occurrence moves to the alternative date/times, with missing
    fields defaulting to the original ones. Occurrences without a matching
    exception pass through unchanged.
    """
    by_key = index_exceptions(exceptions)
    out: List[Occurrence] = []
    for occurrence in occurrences:
        exc = by_key.get((occurrence.pattern_id, occurrence.date))
        if exc is None:
            out.append(occurrence)
        elif not exc.is_cancellation:
            out.append(_rescheduled(occurrence, exc))
    out.sort(key=lambda o: o.start)
    return out


def occurrences_in_range(
    pattern: SchedulePattern,
    exceptions: Sequence[ScheduleException],
    range_start: date,
    range_end: date,
    *,
    factory: RecurrenceRuleFactory | None = None,
) -> List[Occurrence]:
    """Occurrences of ``pattern`` whose final date lies in [range_start, range_end].

    A session rescheduled into the range from a pattern date outside it is
    included, and one rescheduled out of the range is dropped.
    """
    occurrences = list(expand(pattern, range_start, range_end, factory=factory))
    expanded = {o.date for o in occurrences}
    for exc in exceptions:
        moved_in = exc.alternative_date is not None and range_start <= exc.alternative_date <= range_end
        if not moved_in or exc.pattern_id != pattern.pattern_id or exc.exception_date in expanded:
            continue
        # Yields nothing when exception_date is not a pattern date.
        for occurrence in expand(pattern, exc.exception_date, exc.exception_date, factory=factory):
            occurrences.append(occurrence)
            expanded.add(occurrence.date)
    return [o for o in apply_exceptions(occurrences, exceptions) if range_start <= o.date <= range_end]
