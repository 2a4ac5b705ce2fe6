from __future__ import annotations

from datetime import date

import pytest

from src.campus_calendar.campus_calendar.common.scope import ScopeFilters
from src.campus_calendar.campus_calendar.core.enums import AcademicEventType, Role
from src.campus_calendar.campus_calendar.core.exceptions import AuthorizationError, NotFoundError, ValidationError


def test_coordinator_manages_academic_events(academic_event_service, event_repo):
    event = academic_event_service.create_event(
        current_role=Role.COORDINATOR,
        title="Midterms",
        start_date=date(2026, 3, 16),
        end_date=date(2026, 3, 20),
        event_type="examination",
        academic_cycle_id=3,
    )
    assert event.event_type == AcademicEventType.EXAMINATION
    assert event.academic_cycle_id == 3

    updated = academic_event_service.update_event(
        current_role=Role.COORDINATOR, event_id=event.event_id, title="Midterm exams"
    )
    assert updated.title == "Midterm exams"
    assert updated.end_date == date(2026, 3, 20)

    academic_event_service.delete_event(current_role=Role.COORDINATOR, event_id=event.event_id)
    assert event_repo.rows == {}


def test_single_day_event_when_end_is_omitted(academic_event_service):
    event = academic_event_service.create_event(
        current_role=Role.SYSTEM_ADMIN, title="Orientation", start_date=date(2026, 1, 12)
    )

    assert event.end_date == date(2026, 1, 12)
    assert event.event_type == AcademicEventType.OTHER


@pytest.mark.parametrize(
    "kwargs, field",
    [
        ({"title": " "}, "title"),
        ({"end_date": date(2026, 3, 1)}, "end_date"),
        ({"event_type": "PICNIC"}, "event_type"),
        ({"academic_cycle_id": -1}, "academic_cycle_id"),
    ],
)
def test_create_event_validation(academic_event_service, event_repo, kwargs, field):
    values = dict(current_role=Role.SYSTEM_ADMIN, title="Midterms", start_date=date(2026, 3, 16))
    values.update(kwargs)

    with pytest.raises(ValidationError) as exc:
        academic_event_service.create_event(**values)

    assert exc.value.field == field
    assert event_repo.rows == {}


def test_teacher_is_read_only(academic_event_service):
    with pytest.raises(AuthorizationError):
        academic_event_service.create_event(current_role=Role.TEACHER, title="Quiz", start_date=date(2026, 3, 16))

    assert academic_event_service.list_events(
        current_role=Role.TEACHER, start=date(2026, 3, 1), end=date(2026, 3, 31)
    ) == []


def test_list_events_scopes_by_campus(academic_event_service):
    academic_event_service.create_event(
        current_role=Role.SYSTEM_ADMIN, title="All campuses", start_date=date(2026, 3, 2)
    )
    academic_event_service.create_event(
        current_role=Role.SYSTEM_ADMIN, title="Campus 2 only", start_date=date(2026, 3, 3), campus_ids=[2]
    )

    titles = [
        e.title
        for e in academic_event_service.list_events(
            current_role=Role.STUDENT, start=date(2026, 3, 1), end=date(2026, 3, 31), filters=ScopeFilters(campus_id=1)
        )
    ]

    assert titles == ["All campuses"]


def test_update_unknown_event_is_not_found(academic_event_service):
    with pytest.raises(NotFoundError):
        academic_event_service.update_event(current_role=Role.SYSTEM_ADMIN, event_id=9, title="x")
