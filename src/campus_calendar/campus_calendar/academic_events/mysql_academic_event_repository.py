from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Any, Dict, Iterable, Optional, Sequence

from ..common.scope import ScopeFilters
from ..core.enums import AcademicEventType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_placeholders
from .model import AcademicEvent
from .repository import AcademicEventRepository

_COLUMNS = "e.event_id, e.title, e.start_date, e.end_date, e.event_type, e.description, e.academic_cycle_id"


def _row_to_event(r: Dict[str, Any], campus_ids: Iterable[int]) -> AcademicEvent:
    return AcademicEvent(
        event_id=int(r["event_id"]),
        title=r["title"],
        start_date=r["start_date"],
        end_date=r["end_date"],
        event_type=AcademicEventType(r["event_type"]),
        description=r.get("description"),
        campus_ids=frozenset(int(c) for c in campus_ids),
        academic_cycle_id=int(r["academic_cycle_id"]) if r.get("academic_cycle_id") is not None else None,
    )


class MySQLAcademicEventRepository(AcademicEventRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _campuses(self, cur, event_ids: Sequence[int]) -> Dict[int, list]:
        out: Dict[int, list] = defaultdict(list)
        if not event_ids:
            return out
        cur.execute(
            f"SELECT event_id, campus_id FROM academic_event_campuses WHERE event_id IN ({in_placeholders(event_ids)})",
            tuple(event_ids),
        )
        for r in fetchall(cur):
            out[int(r["event_id"])].append(int(r["campus_id"]))
        return out

    def _write_campuses(self, cur, event: AcademicEvent, event_id: int) -> None:
        cur.execute("DELETE FROM academic_event_campuses WHERE event_id=%s", (int(event_id),))
        for campus_id in sorted(event.campus_ids):
            cur.execute(
                "INSERT INTO academic_event_campuses(event_id, campus_id) VALUES(%s,%s)",
                (int(event_id), int(campus_id)),
            )

    def list_in_range(self, *, start: date, end: date, filters: ScopeFilters) -> Sequence[AcademicEvent]:
        clauses = ["e.start_date <= %s", "e.end_date >= %s"]
        params: list[object] = [end, start]
        if filters.campus_id is not None:
            clauses.append(
                "(NOT EXISTS (SELECT 1 FROM academic_event_campuses c WHERE c.event_id=e.event_id)"
                " OR EXISTS (SELECT 1 FROM academic_event_campuses c WHERE c.event_id=e.event_id AND c.campus_id=%s))"
            )
            params.append(int(filters.campus_id))

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM academic_events e WHERE {where} ORDER BY e.start_date ASC, e.event_id ASC",
                tuple(params),
            )
            rows = fetchall(cur)
            campuses = self._campuses(cur, [int(r["event_id"]) for r in rows])
            return [_row_to_event(r, campuses.get(int(r["event_id"]), [])) for r in rows]

    def get_by_id(self, event_id: int) -> Optional[AcademicEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM academic_events e WHERE e.event_id=%s", (int(event_id),))
            r = fetchone(cur)
            if not r:
                return None
            campuses = self._campuses(cur, [int(event_id)])
            return _row_to_event(r, campuses.get(int(event_id), []))

    def create(self, *, event: AcademicEvent) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO academic_events(title, start_date, end_date, event_type, description, academic_cycle_id)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    event.title,
                    event.start_date,
                    event.end_date,
                    event.event_type.value,
                    event.description,
                    event.academic_cycle_id,
                ),
            )
            event_id = int(cur.lastrowid)
            self._write_campuses(cur, event, event_id)
            return event_id

    def update(self, *, event: AcademicEvent) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS found FROM academic_events WHERE event_id=%s", (int(event.event_id),))
            if not fetchone(cur):
                return False
            cur.execute(
                """
                UPDATE academic_events
                SET title=%s, start_date=%s, end_date=%s, event_type=%s, description=%s, academic_cycle_id=%s
                WHERE event_id=%s
                """,
                (
                    event.title,
                    event.start_date,
                    event.end_date,
                    event.event_type.value,
                    event.description,
                    event.academic_cycle_id,
                    int(event.event_id),
                ),
            )
            self._write_campuses(cur, event, event.event_id)
            return True

    def delete(self, *, event_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM academic_events WHERE event_id=%s", (int(event_id),))
            return cur.rowcount > 0
