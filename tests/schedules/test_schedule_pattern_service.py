from __future__ import annotations

from datetime import date, time

import pytest

from src.campus_calendar.campus_calendar.core.enums import DayOfWeek, PatternStatus, RecurrenceType, Role
from src.campus_calendar.campus_calendar.core.exceptions import AuthorizationError, NotFoundError, ValidationError

ADMIN = Role.SYSTEM_ADMIN


def _create(service, **overrides):
    values = dict(
        current_role=ADMIN,
        name="Math 101",
        days_of_week=["MONDAY"],
        start_time="09:00",
        end_time="10:00",
        recurrence="WEEKLY",
        start_date=date(2026, 1, 5),
        end_date=date(2026, 5, 29),
    )
    values.update(overrides)
    return service.create_pattern(**values)


def _occurrences(service, pattern_id, start=date(2026, 3, 1), end=date(2026, 3, 31)):
    return service.generate_occurrences(current_role=ADMIN, pattern_id=pattern_id, range_start=start, range_end=end)


def test_create_pattern_parses_and_persists(schedule_service, pattern_repo):
    pattern = _create(schedule_service, name="  Math 101  ", description="  room 4 ")

    assert pattern.pattern_id == 1
    assert pattern.name == "Math 101"
    assert pattern.description == "room 4"
    assert pattern.days_of_week == frozenset({DayOfWeek.MONDAY})
    assert pattern.start_time == time(9, 0)
    assert pattern.recurrence == RecurrenceType.WEEKLY
    assert pattern_repo.rows[1].status == PatternStatus.ACTIVE


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"name": "   "}, "name"),
        ({"start_time": "9:00"}, "start_time"),
        ({"end_time": "24:00"}, "end_time"),
        ({"start_time": "10:00", "end_time": "10:00"}, "end_time"),
        ({"start_time": "11:00", "end_time": "10:00"}, "end_time"),
        ({"end_date": date(2026, 1, 1)}, "end_date"),
        ({"start_date": None}, "start_date"),
        ({"recurrence": "YEARLY"}, "recurrence"),
        ({"days_of_week": ["FUNDAY"]}, "days_of_week"),
        ({"days_of_week": "MONDAY"}, "days_of_week"),
        ({"custom_dates": [date(2026, 2, 2)]}, "custom_dates"),
        ({"campus_id": 0}, "campus_id"),
    ],
)
def test_create_pattern_rejects_invalid_input(schedule_service, pattern_repo, overrides, field):
    with pytest.raises(ValidationError) as exc:
        _create(schedule_service, **overrides)

    assert exc.value.field == field
    assert pattern_repo.rows == {}


def test_custom_dates_must_fall_inside_pattern_bounds(schedule_service):
    with pytest.raises(ValidationError) as exc:
        _create(schedule_service, recurrence="CUSTOM", days_of_week=[], custom_dates=[date(2026, 6, 1)])

    assert exc.value.field == "custom_dates"


def test_teacher_cannot_create_patterns(schedule_service, pattern_repo):
    with pytest.raises(AuthorizationError):
        _create(schedule_service, current_role=Role.TEACHER)

    with pytest.raises(AuthorizationError):
        _create(schedule_service, current_role=None)

    assert pattern_repo.rows == {}


def test_update_pattern_merges_only_given_fields(schedule_service):
    created = _create(schedule_service, description="room 4")

    updated = schedule_service.update_pattern(current_role=ADMIN, pattern_id=created.pattern_id, end_time="11:00")

    assert updated.end_time == time(11, 0)
    assert updated.description == "room 4"
    assert updated.days_of_week == created.days_of_week


def test_update_pattern_revalidates_the_merged_pattern(schedule_service):
    created = _create(schedule_service)

    with pytest.raises(ValidationError) as exc:
        schedule_service.update_pattern(current_role=ADMIN, pattern_id=created.pattern_id, start_time="10:30")

    assert exc.value.field == "end_time"


def test_update_pattern_cannot_strand_exceptions(schedule_service):
    created = _create(schedule_service)
    schedule_service.create_exception(current_role=ADMIN, pattern_id=created.pattern_id, exception_date=date(2026, 5, 4))

    with pytest.raises(ValidationError) as exc:
        schedule_service.update_pattern(current_role=ADMIN, pattern_id=created.pattern_id, end_date=date(2026, 4, 30))

    assert exc.value.field == "end_date"


def test_update_unknown_pattern_is_not_found(schedule_service):
    with pytest.raises(NotFoundError):
        schedule_service.update_pattern(current_role=ADMIN, pattern_id=42, name="x")


def test_update_invalidates_cached_occurrences(schedule_service):
    created = _create(schedule_service)
    assert _occurrences(schedule_service, created.pattern_id)[0].start.hour == 9

    schedule_service.update_pattern(
        current_role=ADMIN, pattern_id=created.pattern_id, start_time="13:00", end_time="14:00"
    )

    assert _occurrences(schedule_service, created.pattern_id)[0].start.hour == 13


def test_delete_pattern_is_soft_and_stops_occurrences(schedule_service, pattern_repo):
    created = _create(schedule_service)
    assert len(_occurrences(schedule_service, created.pattern_id)) == 5

    schedule_service.delete_pattern(current_role=ADMIN, pattern_id=created.pattern_id)

    assert pattern_repo.rows[created.pattern_id].status == PatternStatus.INACTIVE
    assert _occurrences(schedule_service, created.pattern_id) == []
    assert schedule_service.list_patterns(current_role=ADMIN) == []
    with pytest.raises(ValidationError):
        schedule_service.update_pattern(current_role=ADMIN, pattern_id=created.pattern_id, name="Back")


def test_list_patterns_validates_paging(schedule_service):
    _create(schedule_service)
    _create(schedule_service, name="Physics")

    assert [p.name for p in schedule_service.list_patterns(current_role=ADMIN, page=2, page_size=1)] == ["Physics"]
    with pytest.raises(ValidationError):
        schedule_service.list_patterns(current_role=ADMIN, page=0)
    with pytest.raises(ValidationError):
        schedule_service.list_patterns(current_role=ADMIN, page_size=1000)


def test_cancel_then_restore_an_occurrence(schedule_service):
    created = _create(schedule_service)

    exc = schedule_service.create_exception(
        current_role=ADMIN, pattern_id=created.pattern_id, exception_date=date(2026, 3, 16), reason=" Staff day "
    )
    assert exc.is_cancellation
    assert exc.reason == "Staff day"
    assert date(2026, 3, 16) not in [o.date for o in _occurrences(schedule_service, created.pattern_id)]

    schedule_service.delete_exception(current_role=ADMIN, exception_id=exc.exception_id)

    assert date(2026, 3, 16) in [o.date for o in _occurrences(schedule_service, created.pattern_id)]


def test_reschedule_through_service(schedule_service):
    created = _create(schedule_service)

    schedule_service.create_exception(
        current_role=ADMIN,
        pattern_id=created.pattern_id,
        exception_date=date(2026, 3, 9),
        alternative_date=date(2026, 3, 10),
        alternative_start_time="14:00",
        alternative_end_time="15:00",
    )

    out = _occurrences(schedule_service, created.pattern_id)
    moved = [o for o in out if o.is_rescheduled]
    assert len(out) == 5
    assert [(o.date, o.original_date) for o in moved] == [(date(2026, 3, 10), date(2026, 3, 9))]


@pytest.mark.parametrize(
    "kwargs, field",
    [
        ({"exception_date": date(2026, 6, 1)}, "exception_date"),
        ({"exception_date": date(2026, 3, 9), "alternative_date": date(2026, 7, 1)}, "alternative_date"),
        ({"exception_date": date(2026, 3, 9), "alternative_start_time": "25:00"}, "alternative_start_time"),
        # Partial override checked against the pattern's 10:00 end.
        ({"exception_date": date(2026, 3, 9), "alternative_start_time": "10:30"}, "alternative_start_time"),
        ({"exception_date": date(2026, 3, 9), "alternative_end_time": "08:00"}, "alternative_end_time"),
        ({"exception_date": None}, "exception_date"),
    ],
)
def test_create_exception_validation(schedule_service, exception_repo, kwargs, field):
    created = _create(schedule_service)

    with pytest.raises(ValidationError) as exc:
        schedule_service.create_exception(current_role=ADMIN, pattern_id=created.pattern_id, **kwargs)

    assert exc.value.field == field
    assert exception_repo.rows == {}


def test_second_exception_on_same_date_replaces_first(schedule_service, exception_repo):
    created = _create(schedule_service)

    first = schedule_service.create_exception(
        current_role=ADMIN, pattern_id=created.pattern_id, exception_date=date(2026, 3, 9)
    )
    second = schedule_service.create_exception(
        current_role=ADMIN, pattern_id=created.pattern_id, exception_date=date(2026, 3, 9), alternative_start_time="08:00"
    )

    assert second.exception_id == first.exception_id
    assert len(exception_repo.rows) == 1
    assert [o.start.hour for o in _occurrences(schedule_service, created.pattern_id) if o.date == date(2026, 3, 9)] == [8]


def test_update_exception_rejects_date_collision(schedule_service):
    created = _create(schedule_service)
    schedule_service.create_exception(current_role=ADMIN, pattern_id=created.pattern_id, exception_date=date(2026, 3, 9))
    other = schedule_service.create_exception(
        current_role=ADMIN, pattern_id=created.pattern_id, exception_date=date(2026, 3, 16)
    )

    with pytest.raises(ValidationError) as exc:
        schedule_service.update_exception(
            current_role=ADMIN, exception_id=other.exception_id, exception_date=date(2026, 3, 9)
        )

    assert exc.value.field == "exception_date"


def test_update_exception_turns_cancellation_into_reschedule(schedule_service):
    created = _create(schedule_service)
    exc = schedule_service.create_exception(
        current_role=ADMIN, pattern_id=created.pattern_id, exception_date=date(2026, 3, 9)
    )

    updated = schedule_service.update_exception(
        current_role=ADMIN, exception_id=exc.exception_id, alternative_date=date(2026, 3, 11)
    )

    assert not updated.is_cancellation
    dates = [o.date for o in _occurrences(schedule_service, created.pattern_id)]
    assert date(2026, 3, 11) in dates
    assert date(2026, 3, 9) not in dates


def test_teacher_cannot_manage_exceptions(schedule_service):
    created = _create(schedule_service)

    with pytest.raises(AuthorizationError):
        schedule_service.create_exception(
            current_role=Role.TEACHER, pattern_id=created.pattern_id, exception_date=date(2026, 3, 9)
        )


def test_delete_unknown_exception_is_not_found(schedule_service):
    with pytest.raises(NotFoundError):
        schedule_service.delete_exception(current_role=ADMIN, exception_id=5)
