from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import ScheduleException
from .repository import ScheduleExceptionRepository

_COLUMNS = """
    exception_id, pattern_id, exception_date, reason,
    alternative_date, alternative_start_time, alternative_end_time
"""


def _row_to_exception(r: Dict[str, Any]) -> ScheduleException:
    return ScheduleException(
        exception_id=int(r["exception_id"]),
        pattern_id=int(r["pattern_id"]),
        exception_date=r["exception_date"],
        reason=r.get("reason"),
        alternative_date=r.get("alternative_date"),
        alternative_start_time=normalize_mysql_time(r.get("alternative_start_time")),
        alternative_end_time=normalize_mysql_time(r.get("alternative_end_time")),
    )


def _params(exc: ScheduleException) -> tuple:
    return (
        exc.reason,
        exc.alternative_date,
        exc.alternative_start_time,
        exc.alternative_end_time,
    )


class MySQLScheduleExceptionRepository(ScheduleExceptionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for(self, *, pattern_id: int) -> Sequence[ScheduleException]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM schedule_exceptions
                WHERE pattern_id=%s
                ORDER BY exception_date ASC, exception_id ASC
                """,
                (int(pattern_id),),
            )
            return [_row_to_exception(r) for r in fetchall(cur)]

    def get_by_id(self, exception_id: int) -> Optional[ScheduleException]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM schedule_exceptions WHERE exception_id=%s", (int(exception_id),))
            r = fetchone(cur)
            return _row_to_exception(r) if r else None

    def upsert(self, *, exception: ScheduleException) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO schedule_exceptions(
                    pattern_id, exception_date, reason,
                    alternative_date, alternative_start_time, alternative_end_time
                )
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    reason=VALUES(reason),
                    alternative_date=VALUES(alternative_date),
                    alternative_start_time=VALUES(alternative_start_time),
                    alternative_end_time=VALUES(alternative_end_time)
                """,
                (int(exception.pattern_id), exception.exception_date) + _params(exception),
            )

            # If it was an update, lastrowid can be 0; fetch exception_id.
            if cur.lastrowid:
                return int(cur.lastrowid)

            cur.execute(
                "SELECT exception_id FROM schedule_exceptions WHERE pattern_id=%s AND exception_date=%s",
                (int(exception.pattern_id), exception.exception_date),
            )
            r = fetchone(cur)
            return int(r["exception_id"]) if r else 0

    def update(self, *, exception: ScheduleException) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE schedule_exceptions
                SET exception_date=%s, reason=%s,
                    alternative_date=%s, alternative_start_time=%s, alternative_end_time=%s
                WHERE exception_id=%s
                """,
                (exception.exception_date,) + _params(exception) + (int(exception.exception_id),),
            )
            if cur.rowcount > 0:
                return True
            cur.execute("SELECT 1 AS found FROM schedule_exceptions WHERE exception_id=%s", (int(exception.exception_id),))
            return fetchone(cur) is not None

    def delete(self, *, exception_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM schedule_exceptions WHERE exception_id=%s", (int(exception_id),))
            return cur.rowcount > 0
