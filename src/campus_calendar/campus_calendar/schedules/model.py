from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import FrozenSet, Optional, Tuple

from ..core.enums import DayOfWeek, PatternStatus, RecurrenceType


@dataclass(frozen=True)
class SchedulePattern:
    pattern_id: int
    name: str
    days_of_week: FrozenSet[DayOfWeek]
    start_time: time
    end_time: time
    recurrence: RecurrenceType
    start_date: date
    end_date: Optional[date] = None
    description: Optional[str] = None
    custom_dates: Tuple[date, ...] = ()
    campus_id: Optional[int] = None
    program_id: Optional[int] = None
    status: PatternStatus = PatternStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status == PatternStatus.ACTIVE


@dataclass(frozen=True)
class ScheduleException:
    exception_id: int
    pattern_id: int
    exception_date: date
    reason: Optional[str] = None
    alternative_date: Optional[date] = None
    alternative_start_time: Optional[time] = None
    alternative_end_time: Optional[time] = None

    @property
    def is_cancellation(self) -> bool:
        return (
            self.alternative_date is None
            and self.alternative_start_time is None
            and self.alternative_end_time is None
        )


@dataclass(frozen=True)
class Occurrence:
    """One concrete dated slot of a pattern. Derived, never persisted."""

    pattern_id: int
    date: date
    start: datetime
    end: datetime
    original_date: Optional[date] = None
    reason: Optional[str] = None

    @property
    def is_rescheduled(self) -> bool:
        return self.original_date is not None

    @property
    def source_date(self) -> date:
        """The pattern date this occurrence was generated for."""
        return self.original_date or self.date
