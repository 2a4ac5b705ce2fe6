from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..common.scope import ScopeFilters
from .model import Holiday


class HolidayRepository(Protocol):
    def list_in_range(self, *, start: date, end: date, filters: ScopeFilters) -> Sequence[Holiday]:
        """Holidays intersecting [start, end] that apply to ``filters.campus_id``."""

        raise NotImplementedError

    def get_by_id(self, holiday_id: int) -> Optional[Holiday]:
        raise NotImplementedError

    def create(self, *, holiday: Holiday) -> int:
        raise NotImplementedError

    def update(self, *, holiday: Holiday) -> bool:
        raise NotImplementedError

    def delete(self, *, holiday_id: int) -> bool:
        raise NotImplementedError
