from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional, Sequence

from ..common.datetime_utils import parse_iso_date
from ..common.scope import ScopeFilters
from ..core.enums import DayOfWeek, PatternStatus, RecurrenceType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import SchedulePattern
from .repository import SchedulePatternRepository

_COLUMNS = """
    pattern_id, name, description, days_of_week, start_time, end_time,
    recurrence, start_date, end_date, custom_dates, campus_id, program_id, status
"""


def _join_days(pattern: SchedulePattern) -> str:
    order = list(DayOfWeek)
    return ",".join(d.value for d in sorted(pattern.days_of_week, key=order.index))


def _join_dates(pattern: SchedulePattern) -> str:
    return ",".join(d.isoformat() for d in sorted(set(pattern.custom_dates)))


def _row_to_pattern(r: Dict[str, Any]) -> SchedulePattern:
    days = r.get("days_of_week") or ""
    custom = r.get("custom_dates") or ""
    return SchedulePattern(
        pattern_id=int(r["pattern_id"]),
        name=r["name"],
        description=r.get("description"),
        days_of_week=frozenset(DayOfWeek(d) for d in days.split(",") if d),
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        recurrence=RecurrenceType(r["recurrence"]),
        start_date=r["start_date"],
        end_date=r.get("end_date"),
        custom_dates=tuple(parse_iso_date(d) for d in custom.split(",") if d),
        campus_id=int(r["campus_id"]) if r.get("campus_id") is not None else None,
        program_id=int(r["program_id"]) if r.get("program_id") is not None else None,
        status=PatternStatus(r["status"]),
    )


class MySQLSchedulePatternRepository(SchedulePatternRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_patterns(
        self,
        *,
        filters: ScopeFilters,
        status: Optional[PatternStatus] = PatternStatus.ACTIVE,
        recurrence: Optional[RecurrenceType] = None,
        range_start: Optional[date] = None,
        range_end: Optional[date] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Sequence[SchedulePattern]:
        clauses = ["1=1"]
        params: list[object] = []
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if recurrence is not None:
            clauses.append("recurrence=%s")
            params.append(recurrence.value)
        if filters.campus_id is not None:
            clauses.append("(campus_id IS NULL OR campus_id=%s)")
            params.append(int(filters.campus_id))
        if filters.program_id is not None:
            clauses.append("(program_id IS NULL OR program_id=%s)")
            params.append(int(filters.program_id))
        if range_end is not None:
            clauses.append("start_date <= %s")
            params.append(range_end)
        if range_start is not None:
            clauses.append("(end_date IS NULL OR end_date >= %s)")
            params.append(range_start)

        where = " AND ".join(clauses)
        page = ""
        if limit is not None:
            page = " LIMIT %s OFFSET %s"
            params.extend([int(limit), int(offset)])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM schedule_patterns WHERE {where} ORDER BY pattern_id ASC{page}",
                tuple(params),
            )
            return [_row_to_pattern(r) for r in fetchall(cur)]

    def get_by_id(self, pattern_id: int) -> Optional[SchedulePattern]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM schedule_patterns WHERE pattern_id=%s", (int(pattern_id),))
            r = fetchone(cur)
            return _row_to_pattern(r) if r else None

    def create(self, *, pattern: SchedulePattern) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO schedule_patterns(
                    name, description, days_of_week, start_time, end_time, recurrence,
                    start_date, end_date, custom_dates, campus_id, program_id, status
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    pattern.name,
                    pattern.description,
                    _join_days(pattern),
                    pattern.start_time,
                    pattern.end_time,
                    pattern.recurrence.value,
                    pattern.start_date,
                    pattern.end_date,
                    _join_dates(pattern),
                    pattern.campus_id,
                    pattern.program_id,
                    pattern.status.value,
                ),
            )
            return int(cur.lastrowid)

    def update(self, *, pattern: SchedulePattern) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE schedule_patterns
                SET name=%s, description=%s, days_of_week=%s, start_time=%s, end_time=%s,
                    recurrence=%s, start_date=%s, end_date=%s, custom_dates=%s,
                    campus_id=%s, program_id=%s
                WHERE pattern_id=%s
                """,
                (
                    pattern.name,
                    pattern.description,
                    _join_days(pattern),
                    pattern.start_time,
                    pattern.end_time,
                    pattern.recurrence.value,
                    pattern.start_date,
                    pattern.end_date,
                    _join_dates(pattern),
                    pattern.campus_id,
                    pattern.program_id,
                    int(pattern.pattern_id),
                ),
            )
            # rowcount is 0 when nothing changed; treat an existing row as success.
            if cur.rowcount > 0:
                return True
            cur.execute("SELECT 1 AS found FROM schedule_patterns WHERE pattern_id=%s", (int(pattern.pattern_id),))
            return fetchone(cur) is not None

    def set_status(self, *, pattern_id: int, status: PatternStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE schedule_patterns
                SET status=%s,
                    deleted_at=CASE WHEN %s='INACTIVE' THEN NOW() ELSE NULL END
                WHERE pattern_id=%s
                """,
                (status.value, status.value, int(pattern_id)),
            )
            return cur.rowcount > 0
