from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import FrozenSet, Optional

from ..core.enums import AcademicEventType


@dataclass(frozen=True)
class AcademicEvent:
    event_id: int
    title: str
    start_date: date
    end_date: date
    event_type: AcademicEventType = AcademicEventType.OTHER
    description: Optional[str] = None
    campus_ids: FrozenSet[int] = frozenset()
    academic_cycle_id: Optional[int] = None

    def applies_to(self, campus_id: Optional[int]) -> bool:
        return campus_id is None or not self.campus_ids or int(campus_id) in self.campus_ids
