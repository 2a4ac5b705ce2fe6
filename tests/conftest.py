from __future__ import annotations

from dataclasses import replace
from datetime import date, time

import pytest

from src.campus_calendar.campus_calendar.calendar.service import CalendarService
from src.campus_calendar.campus_calendar.academic_events.service import AcademicEventService
from src.campus_calendar.campus_calendar.core.enums import DayOfWeek, PatternStatus, RecurrenceType
from src.campus_calendar.campus_calendar.holidays.service import HolidayService
from src.campus_calendar.campus_calendar.permissions.gate import PermissionGate
from src.campus_calendar.campus_calendar.schedules.cache import OccurrenceCache
from src.campus_calendar.campus_calendar.schedules.model import SchedulePattern
from src.campus_calendar.campus_calendar.schedules.service import SchedulePatternService


class FakePatternRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, SchedulePattern] = {}
        self.fail = False
        self.list_calls = 0

    def add(self, pattern: SchedulePattern) -> SchedulePattern:
        if not pattern.pattern_id:
            pattern = replace(pattern, pattern_id=self._next_id)
        self._next_id = max(self._next_id, pattern.pattern_id) + 1
        self.rows[pattern.pattern_id] = pattern
        return pattern

    def list_patterns(self, *, filters, status=PatternStatus.ACTIVE, recurrence=None, range_start=None,
                      range_end=None, limit=None, offset=0):
        self.list_calls += 1
        if self.fail:
            raise RuntimeError("patterns table unavailable")
        out = []
        for p in sorted(self.rows.values(), key=lambda p: p.pattern_id):
            if status is not None and p.status != status:
                continue
            if recurrence is not None and p.recurrence != recurrence:
                continue
            if filters.campus_id is not None and p.campus_id not in (None, filters.campus_id):
                continue
            if filters.program_id is not None and p.program_id not in (None, filters.program_id):
                continue
            if range_end is not None and p.start_date > range_end:
                continue
            if range_start is not None and p.end_date is not None and p.end_date < range_start:
                continue
            out.append(p)
        if limit is not None:
            out = out[offset:offset + limit]
        return out

    def get_by_id(self, pattern_id):
        return self.rows.get(int(pattern_id))

    def create(self, *, pattern):
        return self.add(replace(pattern, pattern_id=0)).pattern_id

    def update(self, *, pattern):
        if pattern.pattern_id not in self.rows:
            return False
        self.rows[pattern.pattern_id] = pattern
        return True

    def set_status(self, *, pattern_id, status):
        p = self.rows.get(int(pattern_id))
        if not p:
            return False
        self.rows[p.pattern_id] = replace(p, status=status)
        return True


class FakeExceptionRepo:
    def __init__(self):
        self._next_id = 1
        self.rows = {}
        self.fail_for: set[int] = set()

    def list_for(self, *, pattern_id):
        if int(pattern_id) in self.fail_for:
            raise RuntimeError("exceptions unavailable")
        return sorted(
            (e for e in self.rows.values() if e.pattern_id == int(pattern_id)),
            key=lambda e: (e.exception_date, e.exception_id),
        )

    def get_by_id(self, exception_id):
        return self.rows.get(int(exception_id))

    def upsert(self, *, exception):
        for existing in self.rows.values():
            if existing.pattern_id == exception.pattern_id and existing.exception_date == exception.exception_date:
                self.rows[existing.exception_id] = replace(exception, exception_id=existing.exception_id)
                return existing.exception_id
        eid = self._next_id
        self._next_id += 1
        self.rows[eid] = replace(exception, exception_id=eid)
        return eid

    def update(self, *, exception):
        if exception.exception_id not in self.rows:
            return False
        self.rows[exception.exception_id] = exception
        return True

    def delete(self, *, exception_id):
        return self.rows.pop(int(exception_id), None) is not None


class _RangeRepo:
    """In-memory store for date-ranged, campus-scoped rows (holidays, academic events)."""

    id_field = ""

    def __init__(self):
        self._next_id = 1
        self.rows = {}
        self.fail = False

    def _id(self, row):
        return getattr(row, self.id_field)

    def list_in_range(self, *, start, end, filters):
        if self.fail:
            raise RuntimeError(f"{type(self).__name__} unavailable")
        return sorted(
            (
                r
                for r in self.rows.values()
                if r.start_date <= end and r.end_date >= start and r.applies_to(filters.campus_id)
            ),
            key=lambda r: (r.start_date, self._id(r)),
        )

    def get_by_id(self, row_id):
        return self.rows.get(int(row_id))

    def _create(self, row):
        rid = self._next_id
        self._next_id += 1
        self.rows[rid] = replace(row, **{self.id_field: rid})
        return rid

    def _update(self, row):
        if self._id(row) not in self.rows:
            return False
        self.rows[self._id(row)] = row
        return True

    def _delete(self, row_id):
        return self.rows.pop(int(row_id), None) is not None


class FakeHolidayRepo(_RangeRepo):
    id_field = "holiday_id"

    def create(self, *, holiday):
        return self._create(holiday)

    def update(self, *, holiday):
        return self._update(holiday)

    def delete(self, *, holiday_id):
        return self._delete(holiday_id)


class FakeAcademicEventRepo(_RangeRepo):
    id_field = "event_id"

    def create(self, *, event):
        return self._create(event)

    def update(self, *, event):
        return self._update(event)

    def delete(self, *, event_id):
        return self._delete(event_id)


@pytest.fixture
def make_pattern():
    def _make(**overrides) -> SchedulePattern:
        values = dict(
            pattern_id=1,
            name="Math 101",
            days_of_week=frozenset({DayOfWeek.MONDAY}),
            start_time=time(9, 0),
            end_time=time(10, 0),
            recurrence=RecurrenceType.WEEKLY,
            start_date=date(2026, 1, 5),
            end_date=date(2026, 5, 29),
        )
        values.update(overrides)
        return SchedulePattern(**values)

    return _make


@pytest.fixture
def gate():
    return PermissionGate()


@pytest.fixture
def pattern_repo():
    return FakePatternRepo()


@pytest.fixture
def exception_repo():
    return FakeExceptionRepo()


@pytest.fixture
def holiday_repo():
    return FakeHolidayRepo()


@pytest.fixture
def event_repo():
    return FakeAcademicEventRepo()


@pytest.fixture
def cache():
    return OccurrenceCache()


@pytest.fixture
def schedule_service(pattern_repo, exception_repo, gate, cache):
    return SchedulePatternService(pattern_repo, exception_repo, gate=gate, cache=cache)


@pytest.fixture
def holiday_service(holiday_repo, gate):
    return HolidayService(holiday_repo, gate=gate)


@pytest.fixture
def academic_event_service(event_repo, gate):
    return AcademicEventService(event_repo, gate=gate)


@pytest.fixture
def calendar_service(pattern_repo, exception_repo, holiday_repo, event_repo, gate, cache):
    svc = CalendarService(
        pattern_repo,
        exception_repo,
        holiday_repo,
        event_repo,
        gate=gate,
        cache=cache,
        workers=4,
        timeout=2.0,
        today=lambda: date(2026, 3, 11),
    )
    yield svc
    svc.close()
