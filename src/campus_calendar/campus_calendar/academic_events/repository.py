from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..common.scope import ScopeFilters
from .model import AcademicEvent


class AcademicEventRepository(Protocol):
    def list_in_range(self, *, start: date, end: date, filters: ScopeFilters) -> Sequence[AcademicEvent]:
        """Events intersecting [start, end] that apply to ``filters.campus_id``."""

        raise NotImplementedError

    def get_by_id(self, event_id: int) -> Optional[AcademicEvent]:
        raise NotImplementedError

    def create(self, *, event: AcademicEvent) -> int:
        raise NotImplementedError

    def update(self, *, event: AcademicEvent) -> bool:
        raise NotImplementedError

    def delete(self, *, event_id: int) -> bool:
        raise NotImplementedError
