from __future__ import annotations

from datetime import date

import pytest

from src.campus_calendar.campus_calendar.core.enums import HolidayType, Role
from src.campus_calendar.campus_calendar.core.exceptions import AuthorizationError, NotFoundError, ValidationError

ADMIN = Role.SYSTEM_ADMIN


def test_create_single_day_holiday(holiday_service, holiday_repo):
    holiday = holiday_service.create_holiday(
        current_role=ADMIN, name=" Founders day ", start_date=date(2026, 3, 16), holiday_type="institutional"
    )

    assert holiday.holiday_id == 1
    assert holiday.name == "Founders day"
    assert holiday.end_date == date(2026, 3, 16)
    assert holiday.holiday_type == HolidayType.INSTITUTIONAL
    assert holiday.affects_all
    assert holiday_repo.rows[1] == holiday


@pytest.mark.parametrize(
    "kwargs, field",
    [
        ({"name": ""}, "name"),
        ({"end_date": date(2026, 3, 1)}, "end_date"),
        ({"holiday_type": "PARTY"}, "holiday_type"),
        ({"campus_ids": [0]}, "campus_ids"),
        ({"campus_ids": "1,2"}, "campus_ids"),
    ],
)
def test_create_holiday_validation(holiday_service, kwargs, field):
    values = dict(current_role=ADMIN, name="Break", start_date=date(2026, 3, 16))
    values.update(kwargs)

    with pytest.raises(ValidationError) as exc:
        holiday_service.create_holiday(**values)

    assert exc.value.field == field


def test_coordinator_can_create_but_not_delete(holiday_service):
    holiday = holiday_service.create_holiday(current_role=Role.COORDINATOR, name="Break", start_date=date(2026, 3, 16))

    with pytest.raises(AuthorizationError):
        holiday_service.delete_holiday(current_role=Role.COORDINATOR, holiday_id=holiday.holiday_id)


def test_student_cannot_create(holiday_service):
    with pytest.raises(AuthorizationError):
        holiday_service.create_holiday(current_role=Role.STUDENT, name="Break", start_date=date(2026, 3, 16))


def test_update_and_delete(holiday_service, holiday_repo):
    holiday = holiday_service.create_holiday(current_role=ADMIN, name="Break", start_date=date(2026, 3, 16))

    updated = holiday_service.update_holiday(
        current_role=ADMIN, holiday_id=holiday.holiday_id, end_date=date(2026, 3, 20), campus_ids=[2]
    )
    assert updated.end_date == date(2026, 3, 20)
    assert updated.campus_ids == frozenset({2})
    assert updated.name == "Break"

    with pytest.raises(ValidationError):
        holiday_service.update_holiday(current_role=ADMIN, holiday_id=holiday.holiday_id, end_date=date(2026, 3, 1))

    holiday_service.delete_holiday(current_role=ADMIN, holiday_id=holiday.holiday_id)
    assert holiday_repo.rows == {}
    with pytest.raises(NotFoundError):
        holiday_service.delete_holiday(current_role=ADMIN, holiday_id=holiday.holiday_id)


def test_is_holiday_respects_campus_scope(holiday_service):
    holiday_service.create_holiday(
        current_role=ADMIN, name="Campus 2 closure", start_date=date(2026, 3, 5), campus_ids=[2]
    )
    holiday_service.create_holiday(current_role=ADMIN, name="Founders day", start_date=date(2026, 3, 16))

    assert holiday_service.is_holiday(current_role=Role.STUDENT, day=date(2026, 3, 16), campus_id=1)
    assert holiday_service.is_holiday(current_role=Role.STUDENT, day=date(2026, 3, 5), campus_id=2)
    assert not holiday_service.is_holiday(current_role=Role.STUDENT, day=date(2026, 3, 5), campus_id=1)
    assert not holiday_service.is_holiday(current_role=Role.STUDENT, day=date(2026, 3, 6))


def test_working_days_skip_weekends_and_holidays(holiday_service):
    # 2026-03-02 .. 2026-03-13 has ten weekdays.
    holiday_service.create_holiday(
        current_role=ADMIN, name="Break", start_date=date(2026, 3, 5), end_date=date(2026, 3, 8)
    )
    holiday_service.create_holiday(
        current_role=ADMIN, name="Campus 2 day", start_date=date(2026, 3, 10), campus_ids=[2]
    )

    assert holiday_service.working_days(current_role=ADMIN, start=date(2026, 3, 2), end=date(2026, 3, 13)) == 7
    assert (
        holiday_service.working_days(current_role=ADMIN, start=date(2026, 3, 2), end=date(2026, 3, 13), campus_id=1)
        == 8
    )


def test_list_holidays_rejects_reversed_range(holiday_service):
    with pytest.raises(ValidationError):
        holiday_service.list_holidays(current_role=ADMIN, start=date(2026, 3, 31), end=date(2026, 3, 1))
