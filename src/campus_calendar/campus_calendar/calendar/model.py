from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import FrozenSet, Mapping, Optional, Sequence, Tuple

from ..academic_events.model import AcademicEvent
from ..core.enums import CalendarView, EventType
from ..holidays.model import Holiday
from ..schedules.model import ScheduleException, SchedulePattern


@dataclass(frozen=True)
class CalendarEvent:
    event_id: str
    title: str
    start: datetime
    end: datetime
    event_type: EventType
    color: str
    description: Optional[str] = None
    # Holiday type or academic event type; None for schedule occurrences.
    category: Optional[str] = None
    campus_ids: FrozenSet[int] = frozenset()
    program_id: Optional[int] = None
    original_date: Optional[date] = None
    reason: Optional[str] = None

    @property
    def sort_key(self) -> Tuple[datetime, int, str]:
        return (self.start, self.event_type.ordinal, self.event_id)

    @property
    def is_rescheduled(self) -> bool:
        return self.original_date is not None

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Closed-interval overlap, used for day cells."""
        return self.start <= end and self.end >= start


@dataclass(frozen=True)
class CalendarSources:
    """Fetched inputs for one aggregation.

    ``None`` marks a source that could not be read. In ``exceptions`` a
    pattern id mapped to ``None`` means that pattern's exceptions failed.
    """

    patterns: Optional[Sequence[SchedulePattern]] = ()
    exceptions: Mapping[int, Optional[Sequence[ScheduleException]]] = field(default_factory=dict)
    holidays: Optional[Sequence[Holiday]] = ()
    academic_events: Optional[Sequence[AcademicEvent]] = ()


@dataclass(frozen=True)
class AggregationResult:
    range_start: date
    range_end: date
    events: Tuple[CalendarEvent, ...]
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DayCell:
    day: date
    in_month: bool
    events: Tuple[CalendarEvent, ...] = ()


@dataclass(frozen=True)
class HourSlot:
    hour: int
    start: datetime
    end: datetime
    events: Tuple[CalendarEvent, ...] = ()


@dataclass(frozen=True)
class DayColumn:
    day: date
    slots: Tuple[HourSlot, ...]
    # Everything touching the day, including events shown as all-day banners.
    events: Tuple[CalendarEvent, ...] = ()


@dataclass(frozen=True)
class MonthGrid:
    anchor: date
    year: int
    month: int
    weeks: Tuple[Tuple[DayCell, ...], ...]
    view: CalendarView = CalendarView.MONTH

    @property
    def cells(self) -> Tuple[DayCell, ...]:
        return tuple(cell for week in self.weeks for cell in week)


@dataclass(frozen=True)
class WeekGrid:
    anchor: date
    days: Tuple[DayColumn, ...]
    view: CalendarView = CalendarView.WEEK


@dataclass(frozen=True)
class DayGrid:
    anchor: date
    column: DayColumn
    view: CalendarView = CalendarView.DAY

    @property
    def slots(self) -> Tuple[HourSlot, ...]:
        return self.column.slots


@dataclass(frozen=True)
class MiniDay:
    day: date
    in_month: bool
    has_events: bool = False


@dataclass(frozen=True)
class MonthSummary:
    year: int
    month: int
    days: Tuple[MiniDay, ...]
    preview: Tuple[CalendarEvent, ...]
    overflow: int = 0

    @property
    def total(self) -> int:
        return len(self.preview) + self.overflow


@dataclass(frozen=True)
class YearGrid:
    anchor: date
    year: int
    months: Tuple[MonthSummary, ...]
    view: CalendarView = CalendarView.YEAR


@dataclass(frozen=True)
class CalendarPage:
    """Everything one calendar screen needs: the grid plus what the role may do."""

    view: CalendarView
    anchor: date
    range_start: date
    range_end: date
    grid: object
    warnings: Tuple[str, ...] = ()
    controls: Mapping[str, bool] = field(default_factory=dict)
    token: Optional[int] = None
