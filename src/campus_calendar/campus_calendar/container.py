from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping

from .academic_events.mysql_academic_event_repository import MySQLAcademicEventRepository
from .academic_events.service import AcademicEventService
from .calendar.service import CalendarService
from .common.locks import KeyedLock
from .core.constants import DEFAULT_FETCH_TIMEOUT_SECONDS, DEFAULT_FETCH_WORKERS
from .database.connection import DBConfig, DatabaseConnection
from .holidays.mysql_holiday_repository import MySQLHolidayRepository
from .holidays.service import HolidayService
from .permissions.gate import PermissionGate
from .schedules.cache import OccurrenceCache
from .schedules.factory import RecurrenceRuleFactory
from .schedules.mysql_exception_repository import MySQLScheduleExceptionRepository
from .schedules.mysql_pattern_repository import MySQLSchedulePatternRepository
from .schedules.service import SchedulePatternService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    patterns_repo: MySQLSchedulePatternRepository
    exceptions_repo: MySQLScheduleExceptionRepository
    holidays_repo: MySQLHolidayRepository
    academic_events_repo: MySQLAcademicEventRepository

    permission_gate: PermissionGate
    occurrence_cache: OccurrenceCache

    schedule_pattern_service: SchedulePatternService
    holiday_service: HolidayService
    academic_event_service: AcademicEventService
    calendar_service: CalendarService


def build_container(
    *,
    db_config: dict,
    capability_overrides: Mapping[str, Iterable[str]] | None = None,
    fetch_workers: int = DEFAULT_FETCH_WORKERS,
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    patterns_repo = MySQLSchedulePatternRepository(conn)
    exceptions_repo = MySQLScheduleExceptionRepository(conn)
    holidays_repo = MySQLHolidayRepository(conn)
    academic_events_repo = MySQLAcademicEventRepository(conn)

    # Built once; read-only for the life of the process.
    gate = PermissionGate.from_config(capability_overrides)
    cache = OccurrenceCache()
    locks = KeyedLock()

    schedule_pattern_service = SchedulePatternService(
        patterns_repo,
        exceptions_repo,
        gate=gate,
        cache=cache,
        locks=locks,
        rule_factory=RecurrenceRuleFactory(),
    )
    holiday_service = HolidayService(holidays_repo, gate=gate, locks=locks)
    academic_event_service = AcademicEventService(academic_events_repo, gate=gate, locks=locks)
    calendar_service = CalendarService(
        patterns_repo,
        exceptions_repo,
        holidays_repo,
        academic_events_repo,
        gate=gate,
        cache=cache,
        workers=fetch_workers,
        timeout=fetch_timeout,
    )

    return Container(
        conn=conn,
        patterns_repo=patterns_repo,
        exceptions_repo=exceptions_repo,
        holidays_repo=holidays_repo,
        academic_events_repo=academic_events_repo,
        permission_gate=gate,
        occurrence_cache=cache,
        schedule_pattern_service=schedule_pattern_service,
        holiday_service=holiday_service,
        academic_event_service=academic_event_service,
        calendar_service=calendar_service,
    )
