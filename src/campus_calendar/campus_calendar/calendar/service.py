from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import date
from typing import Callable, Dict, Optional, Sequence, TypeVar

from ..academic_events.repository import AcademicEventRepository
from ..common.datetime_utils import today_local
from ..common.scope import ScopeFilters
from ..core.constants import DEFAULT_FETCH_TIMEOUT_SECONDS, DEFAULT_FETCH_WORKERS
from ..core.enums import CalendarAction, CalendarView, EventType, PatternStatus, Role
from ..core.exceptions import ValidationError
from ..holidays.repository import HolidayRepository
from ..permissions.gate import PermissionGate
from ..schedules.cache import OccurrenceCache
from ..schedules.model import ScheduleException
from ..schedules.repository import ScheduleExceptionRepository, SchedulePatternRepository
from .aggregator import aggregate
from .model import AggregationResult, CalendarPage, CalendarSources
from .projector import parse_view, project, visible_range

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CalendarService:
    """Read side of the calendar: concurrent source fetch, aggregation, projection.

    The pattern, holiday and academic-event reads run in parallel, then the
    per-pattern exception reads fan out. A read that fails or times out
    becomes an unavailable source (``None``) and a warning on the response.
    """

    def __init__(
        self,
        patterns: SchedulePatternRepository,
        exceptions: ScheduleExceptionRepository,
        holidays: HolidayRepository,
        academic_events: AcademicEventRepository,
        *,
        gate: PermissionGate,
        cache: OccurrenceCache | None = None,
        workers: int = DEFAULT_FETCH_WORKERS,
        timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
        today: Callable[[], date] = today_local,
    ):
        self._patterns = patterns
        self._exceptions = exceptions
        self._holidays = holidays
        self._academic_events = academic_events
        self._gate = gate
        self._cache = cache
        self._timeout = float(timeout)
        self._today = today
        self._pool = ThreadPoolExecutor(max_workers=max(int(workers), 1), thread_name_prefix="calendar-fetch")

    def close(self) -> None:
        self._pool.shutdown(wait=False, cancel_futures=True)

    def _join(self, future: "Future[T]", label: str) -> Optional[T]:
        try:
            return future.result(timeout=self._timeout)
        except FutureTimeoutError:
            future.cancel()
            logger.warning("Calendar source %s timed out after %.1fs", label, self._timeout)
            return None
        except Exception:
            logger.warning("Calendar source %s failed", label, exc_info=True)
            return None

    def fetch_sources(
        self,
        *,
        current_role: Role,
        start: date,
        end: date,
        filters: ScopeFilters,
    ) -> CalendarSources:
        wants = filters.event_type
        show_schedules = wants in (None, EventType.SCHEDULE)
        show_holidays = wants in (None, EventType.HOLIDAY) and self._gate.can_perform(
            current_role, CalendarAction.VIEW_HOLIDAYS
        )
        show_events = wants in (None, EventType.ACADEMIC_EVENT) and self._gate.can_perform(
            current_role, CalendarAction.VIEW_ACADEMIC_EVENTS
        )

        patterns_f = (
            self._pool.submit(
                self._patterns.list_patterns,
                filters=filters,
                status=PatternStatus.ACTIVE,
                range_start=start,
                range_end=end,
            )
            if show_schedules
            else None
        )
        holidays_f = (
            self._pool.submit(self._holidays.list_in_range, start=start, end=end, filters=filters)
            if show_holidays
            else None
        )
        events_f = (
            self._pool.submit(self._academic_events.list_in_range, start=start, end=end, filters=filters)
            if show_events
            else None
        )

        patterns = self._join(patterns_f, "schedule_patterns") if patterns_f else ()
        exceptions: Dict[int, Optional[Sequence[ScheduleException]]] = {}
        if patterns:
            pending = {
                p.pattern_id: self._pool.submit(self._exceptions.list_for, pattern_id=p.pattern_id) for p in patterns
            }
            for pattern_id, future in pending.items():
                exceptions[pattern_id] = self._join(future, f"schedule_exceptions[{pattern_id}]")

        return CalendarSources(
            patterns=patterns,
            exceptions=exceptions,
            holidays=self._join(holidays_f, "holidays") if holidays_f else (),
            academic_events=self._join(events_f, "academic_events") if events_f else (),
        )

    def events_in_range(
        self,
        *,
        current_role: Role,
        start: date,
        end: date,
        filters: ScopeFilters | None = None,
    ) -> AggregationResult:
        self._gate.require(current_role, CalendarAction.VIEW_CALENDAR)
        if start is None or end is None:
            raise ValidationError("start and end dates are required", field="start")
        if end < start:
            raise ValidationError("End date cannot be before start date", field="end")

        filters = filters or ScopeFilters()
        sources = self.fetch_sources(current_role=current_role, start=start, end=end, filters=filters)
        return aggregate(start, end, sources, filters, cache=self._cache)

    def page(
        self,
        *,
        current_role: Role,
        view: CalendarView | str = CalendarView.MONTH,
        anchor: Optional[date] = None,
        filters: ScopeFilters | None = None,
        token: Optional[int] = None,
    ) -> CalendarPage:
        """Aggregate exactly the span ``view`` shows around ``anchor`` and project it."""
        view = parse_view(view)
        anchor = anchor or self._today()
        start, end = visible_range(view, anchor)

        result = self.events_in_range(current_role=current_role, start=start, end=end, filters=filters)
        return CalendarPage(
            view=view,
            anchor=anchor,
            range_start=start,
            range_end=end,
            grid=project(result.events, view, anchor),
            warnings=result.warnings,
            controls=self._gate.visible_controls(current_role),
            token=token,
        )

    def export_events(
        self,
        *,
        current_role: Role,
        start: date,
        end: date,
        filters: ScopeFilters | None = None,
    ) -> AggregationResult:
        """Same timeline as ``events_in_range``, for roles allowed to export it."""
        self._gate.require(current_role, CalendarAction.EXPORT_CALENDAR)
        return self.events_in_range(current_role=current_role, start=start, end=end, filters=filters)
