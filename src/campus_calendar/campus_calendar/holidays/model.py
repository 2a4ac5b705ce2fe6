from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import FrozenSet, Optional

from ..core.enums import HolidayType


@dataclass(frozen=True)
class Holiday:
    holiday_id: int
    name: str
    start_date: date
    end_date: date
    holiday_type: HolidayType = HolidayType.OTHER
    description: Optional[str] = None
    # Empty means the holiday affects every campus.
    campus_ids: FrozenSet[int] = frozenset()

    @property
    def affects_all(self) -> bool:
        return not self.campus_ids

    def applies_to(self, campus_id: Optional[int]) -> bool:
        return campus_id is None or self.affects_all or int(campus_id) in self.campus_ids

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date
