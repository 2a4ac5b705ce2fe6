from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import RecurrenceType
from ..core.exceptions import ValidationError
from .recurrence.base import RecurrenceRule
from .recurrence.biweekly_rule import BiweeklyRule
from .recurrence.custom_rule import CustomRule
from .recurrence.daily_rule import DailyRule
from .recurrence.monthly_rule import MonthlyRule
from .recurrence.weekly_rule import WeeklyRule

_RULES = {
    RecurrenceType.DAILY: DailyRule(),
    RecurrenceType.WEEKLY: WeeklyRule(),
    RecurrenceType.BIWEEKLY: BiweeklyRule(),
    RecurrenceType.MONTHLY: MonthlyRule(),
    RecurrenceType.CUSTOM: CustomRule(),
}


@dataclass(frozen=True)
class RecurrenceRuleFactory:
    """Factory Pattern: choose the recurrence strategy for a pattern."""

    def for_recurrence(self, recurrence: RecurrenceType) -> RecurrenceRule:
        rule = _RULES.get(recurrence)
        if rule is None:
            raise ValidationError(f"Unsupported recurrence: {recurrence}", field="recurrence")
        return rule
