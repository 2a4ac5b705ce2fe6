"""JSON-ready dicts for calendar responses."""

from __future__ import annotations

from typing import Any, Dict, List

from ..common.datetime_utils import format_hhmm
from .model import (
    AggregationResult,
    CalendarEvent,
    CalendarPage,
    DayCell,
    DayColumn,
    DayGrid,
    MonthGrid,
    MonthSummary,
    WeekGrid,
    YearGrid,
)


def event_dict(event: CalendarEvent) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": event.event_id,
        "title": event.title,
        "start": event.start.isoformat(),
        "end": event.end.isoformat(),
        "type": event.event_type.value,
        "color": event.color,
        "description": event.description,
        "category": event.category,
        "campus_ids": sorted(event.campus_ids),
    }
    if event.is_rescheduled:
        out["rescheduled"] = True
        out["original_date"] = event.original_date.isoformat()  # type: ignore[union-attr]
        out["reason"] = event.reason
    return out


def _cell_dict(cell: DayCell) -> Dict[str, Any]:
    return {
        "date": cell.day.isoformat(),
        "in_month": cell.in_month,
        "events": [event_dict(e) for e in cell.events],
    }


def _column_dict(column: DayColumn) -> Dict[str, Any]:
    return {
        "date": column.day.isoformat(),
        "events": [e.event_id for e in column.events],
        "hours": [
            {
                "hour": slot.hour,
                "label": format_hhmm(slot.start.time()),
                "events": [e.event_id for e in slot.events],
            }
            for slot in column.slots
        ],
    }


def _month_summary_dict(summary: MonthSummary) -> Dict[str, Any]:
    return {
        "year": summary.year,
        "month": summary.month,
        "days": [
            {"date": d.day.isoformat(), "in_month": d.in_month, "has_events": d.has_events} for d in summary.days
        ],
        "preview": [event_dict(e) for e in summary.preview],
        "overflow": summary.overflow,
    }


def _events_by_id(columns) -> Dict[str, Dict[str, Any]]:
    seen: Dict[str, Dict[str, Any]] = {}
    for column in columns:
        for event in column.events:
            seen.setdefault(event.event_id, event_dict(event))
    return seen


def grid_dict(grid: object) -> Dict[str, Any]:
    if isinstance(grid, MonthGrid):
        return {
            "view": grid.view.value,
            "year": grid.year,
            "month": grid.month,
            "weeks": [[_cell_dict(c) for c in week] for week in grid.weeks],
        }
    if isinstance(grid, WeekGrid):
        return {
            "view": grid.view.value,
            "days": [_column_dict(c) for c in grid.days],
            "events": _events_by_id(grid.days),
        }
    if isinstance(grid, DayGrid):
        return {
            "view": grid.view.value,
            "day": _column_dict(grid.column),
            "events": _events_by_id([grid.column]),
        }
    if isinstance(grid, YearGrid):
        return {
            "view": grid.view.value,
            "year": grid.year,
            "months": [_month_summary_dict(m) for m in grid.months],
        }
    raise TypeError(f"Unsupported grid type: {type(grid)!r}")


def page_dict(page: CalendarPage) -> Dict[str, Any]:
    return {
        "success": True,
        "view": page.view.value,
        "anchor": page.anchor.isoformat(),
        "range": {"start": page.range_start.isoformat(), "end": page.range_end.isoformat()},
        "grid": grid_dict(page.grid),
        "warnings": list(page.warnings),
        "controls": dict(page.controls),
        "token": page.token,
    }


def aggregation_dict(result: AggregationResult) -> Dict[str, Any]:
    return {
        "success": True,
        "range": {"start": result.range_start.isoformat(), "end": result.range_end.isoformat()},
        "events": [event_dict(e) for e in result.events],
        "warnings": list(result.warnings),
    }


EXPORT_FIELDS = ["id", "title", "type", "category", "start", "end", "description", "rescheduled_from", "reason"]


def export_rows(result: AggregationResult) -> List[Dict[str, Any]]:
    return [
        {
            "id": e.event_id,
            "title": e.title,
            "type": e.event_type.value,
            "category": e.category or "",
            "start": e.start.strftime("%Y-%m-%d %H:%M"),
            "end": e.end.strftime("%Y-%m-%d %H:%M"),
            "description": e.description or "",
            "rescheduled_from": e.original_date.isoformat() if e.original_date else "",
            "reason": e.reason or "",
        }
        for e in result.events
    ]
