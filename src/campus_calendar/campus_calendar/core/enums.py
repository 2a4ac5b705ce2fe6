from __future__ import annotations

from datetime import date
from enum import Enum


class Role(str, Enum):
    """Roles read from the session descriptor."""

    SYSTEM_ADMIN = "SYSTEM_ADMIN"
    SYSTEM_MANAGER = "SYSTEM_MANAGER"
    ADMINISTRATOR = "ADMINISTRATOR"
    CAMPUS_ADMIN = "CAMPUS_ADMIN"
    CAMPUS_COORDINATOR = "CAMPUS_COORDINATOR"
    COORDINATOR = "COORDINATOR"
    CAMPUS_TEACHER = "CAMPUS_TEACHER"
    TEACHER = "TEACHER"
    CAMPUS_STUDENT = "CAMPUS_STUDENT"
    STUDENT = "STUDENT"
    CAMPUS_PARENT = "CAMPUS_PARENT"


class DayOfWeek(str, Enum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @classmethod
    def from_date(cls, value: date) -> "DayOfWeek":
        return _WEEKDAY_ORDER[value.weekday()]


_WEEKDAY_ORDER = (
    DayOfWeek.MONDAY,
    DayOfWeek.TUESDAY,
    DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY,
    DayOfWeek.FRIDAY,
    DayOfWeek.SATURDAY,
    DayOfWeek.SUNDAY,
)


class RecurrenceType(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"
    CUSTOM = "CUSTOM"


class PatternStatus(str, Enum):
    """Patterns are never hard-deleted; delete flips them to INACTIVE."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class EventType(str, Enum):
    HOLIDAY = "HOLIDAY"
    ACADEMIC_EVENT = "ACADEMIC_EVENT"
    SCHEDULE = "SCHEDULE"

    @property
    def ordinal(self) -> int:
        # Tie-break order on equal start times.
        return _EVENT_TYPE_ORDER[self]


_EVENT_TYPE_ORDER = {
    EventType.HOLIDAY: 0,
    EventType.ACADEMIC_EVENT: 1,
    EventType.SCHEDULE: 2,
}


class HolidayType(str, Enum):
    NATIONAL = "NATIONAL"
    RELIGIOUS = "RELIGIOUS"
    INSTITUTIONAL = "INSTITUTIONAL"
    ADMINISTRATIVE = "ADMINISTRATIVE"
    WEATHER = "WEATHER"
    OTHER = "OTHER"


class AcademicEventType(str, Enum):
    REGISTRATION = "REGISTRATION"
    ADD_DROP = "ADD_DROP"
    WITHDRAWAL = "WITHDRAWAL"
    EXAMINATION = "EXAMINATION"
    GRADING = "GRADING"
    ORIENTATION = "ORIENTATION"
    GRADUATION = "GRADUATION"
    OTHER = "OTHER"


class CalendarView(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class CalendarAction(str, Enum):
    """Actions checked by the permission gate."""

    VIEW_HOLIDAYS = "VIEW_HOLIDAYS"
    CREATE_HOLIDAY = "CREATE_HOLIDAY"
    UPDATE_HOLIDAY = "UPDATE_HOLIDAY"
    DELETE_HOLIDAY = "DELETE_HOLIDAY"

    VIEW_ACADEMIC_EVENTS = "VIEW_ACADEMIC_EVENTS"
    CREATE_ACADEMIC_EVENT = "CREATE_ACADEMIC_EVENT"
    UPDATE_ACADEMIC_EVENT = "UPDATE_ACADEMIC_EVENT"
    DELETE_ACADEMIC_EVENT = "DELETE_ACADEMIC_EVENT"

    VIEW_SCHEDULE_PATTERNS = "VIEW_SCHEDULE_PATTERNS"
    CREATE_SCHEDULE_PATTERN = "CREATE_SCHEDULE_PATTERN"
    UPDATE_SCHEDULE_PATTERN = "UPDATE_SCHEDULE_PATTERN"
    DELETE_SCHEDULE_PATTERN = "DELETE_SCHEDULE_PATTERN"

    CREATE_SCHEDULE_EXCEPTION = "CREATE_SCHEDULE_EXCEPTION"
    UPDATE_SCHEDULE_EXCEPTION = "UPDATE_SCHEDULE_EXCEPTION"
    DELETE_SCHEDULE_EXCEPTION = "DELETE_SCHEDULE_EXCEPTION"

    VIEW_CALENDAR = "VIEW_CALENDAR"
    EXPORT_CALENDAR = "EXPORT_CALENDAR"
