from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..common.scope import ScopeFilters
from ..core.enums import PatternStatus, RecurrenceType
from .model import ScheduleException, SchedulePattern


class SchedulePatternRepository(Protocol):
    def list_patterns(
        self,
        *,
        filters: ScopeFilters,
        status: Optional[PatternStatus] = PatternStatus.ACTIVE,
        recurrence: Optional[RecurrenceType] = None,
        range_start: Optional[date] = None,
        range_end: Optional[date] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Sequence[SchedulePattern]:
        """Patterns in scope, ordered by id.

        A pattern matches the campus/program filters when its own scope is
        unset or equal. With a range, only patterns whose bounds overlap it
        (open-ended patterns included).
        """

        raise NotImplementedError

    def get_by_id(self, pattern_id: int) -> Optional[SchedulePattern]:
        raise NotImplementedError

    def create(self, *, pattern: SchedulePattern) -> int:
        """Insert and return the new pattern_id (``pattern.pattern_id`` is ignored)."""

        raise NotImplementedError

    def update(self, *, pattern: SchedulePattern) -> bool:
        raise NotImplementedError

    def set_status(self, *, pattern_id: int, status: PatternStatus) -> bool:
        raise NotImplementedError


class ScheduleExceptionRepository(Protocol):
    def list_for(self, *, pattern_id: int) -> Sequence[ScheduleException]:
        raise NotImplementedError

    def get_by_id(self, exception_id: int) -> Optional[ScheduleException]:
        raise NotImplementedError

    def upsert(self, *, exception: ScheduleException) -> int:
        """Create or replace the exception for (pattern_id, exception_date).

        At most one exception exists per key; the last write wins. Returns exception_id.
        """

        raise NotImplementedError

    def update(self, *, exception: ScheduleException) -> bool:
        raise NotImplementedError

    def delete(self, *, exception_id: int) -> bool:
        raise NotImplementedError
