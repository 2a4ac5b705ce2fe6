from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Any, Dict, Iterable, Optional, Sequence

from ..common.scope import ScopeFilters
from ..core.enums import HolidayType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_placeholders
from .model import Holiday
from .repository import HolidayRepository


def _row_to_holiday(r: Dict[str, Any], campus_ids: Iterable[int]) -> Holiday:
    return Holiday(
        holiday_id=int(r["holiday_id"]),
        name=r["name"],
        start_date=r["start_date"],
        end_date=r["end_date"],
        holiday_type=HolidayType(r["holiday_type"]),
        description=r.get("description"),
        campus_ids=frozenset(int(c) for c in campus_ids),
    )


class MySQLHolidayRepository(HolidayRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _campuses(self, cur, holiday_ids: Sequence[int]) -> Dict[int, list]:
        out: Dict[int, list] = defaultdict(list)
        if not holiday_ids:
            return out
        cur.execute(
            f"SELECT holiday_id, campus_id FROM holiday_campuses WHERE holiday_id IN ({in_placeholders(holiday_ids)})",
            tuple(holiday_ids),
        )
        for r in fetchall(cur):
            out[int(r["holiday_id"])].append(int(r["campus_id"]))
        return out

    def _write_campuses(self, cur, holiday: Holiday, holiday_id: int) -> None:
        cur.execute("DELETE FROM holiday_campuses WHERE holiday_id=%s", (int(holiday_id),))
        for campus_id in sorted(holiday.campus_ids):
            cur.execute(
                "INSERT INTO holiday_campuses(holiday_id, campus_id) VALUES(%s,%s)",
                (int(holiday_id), int(campus_id)),
            )

    def list_in_range(self, *, start: date, end: date, filters: ScopeFilters) -> Sequence[Holiday]:
        clauses = ["h.start_date <= %s", "h.end_date >= %s"]
        params: list[object] = [end, start]
        if filters.campus_id is not None:
            clauses.append(
                "(NOT EXISTS (SELECT 1 FROM holiday_campuses hc WHERE hc.holiday_id=h.holiday_id)"
                " OR EXISTS (SELECT 1 FROM holiday_campuses hc WHERE hc.holiday_id=h.holiday_id AND hc.campus_id=%s))"
            )
            params.append(int(filters.campus_id))

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT h.holiday_id, h.name, h.start_date, h.end_date, h.holiday_type, h.description
                FROM holidays h
                WHERE {where}
                ORDER BY h.start_date ASC, h.holiday_id ASC
                """,
                tuple(params),
            )
            rows = fetchall(cur)
            campuses = self._campuses(cur, [int(r["holiday_id"]) for r in rows])
            return [_row_to_holiday(r, campuses.get(int(r["holiday_id"]), [])) for r in rows]

    def get_by_id(self, holiday_id: int) -> Optional[Holiday]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT holiday_id, name, start_date, end_date, holiday_type, description
                FROM holidays
                WHERE holiday_id=%s
                """,
                (int(holiday_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            campuses = self._campuses(cur, [int(holiday_id)])
            return _row_to_holiday(r, campuses.get(int(holiday_id), []))

    def create(self, *, holiday: Holiday) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO holidays(name, start_date, end_date, holiday_type, description)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (holiday.name, holiday.start_date, holiday.end_date, holiday.holiday_type.value, holiday.description),
            )
            holiday_id = int(cur.lastrowid)
            self._write_campuses(cur, holiday, holiday_id)
            return holiday_id

    def update(self, *, holiday: Holiday) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS found FROM holidays WHERE holiday_id=%s", (int(holiday.holiday_id),))
            if not fetchone(cur):
                return False
            cur.execute(
                """
                UPDATE holidays
                SET name=%s, start_date=%s, end_date=%s, holiday_type=%s, description=%s
                WHERE holiday_id=%s
                """,
                (
                    holiday.name,
                    holiday.start_date,
                    holiday.end_date,
                    holiday.holiday_type.value,
                    holiday.description,
                    int(holiday.holiday_id),
                ),
            )
            self._write_campuses(cur, holiday, holiday.holiday_id)
            return True

    def delete(self, *, holiday_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM holidays WHERE holiday_id=%s", (int(holiday_id),))
            return cur.rowcount > 0
