from __future__ import annotations

from typing import Any, Dict

from flask import Flask, jsonify, request

from ..common.datetime_utils import format_hhmm
from ..common.scope import ScopeFilters
from ..common.web import current_role, json_body, json_endpoint, login_required, parse_date_arg, parse_date_list
from ..container import Container
from ..core.enums import DayOfWeek
from .model import Occurrence, ScheduleException, SchedulePattern

_PATTERN_FIELDS = (
    "name",
    "description",
    "days_of_week",
    "start_time",
    "end_time",
    "recurrence",
    "campus_id",
    "program_id",
)
_EXCEPTION_FIELDS = ("reason", "alternative_start_time", "alternative_end_time")


def pattern_dict(p: SchedulePattern) -> Dict[str, Any]:
    order = list(DayOfWeek)
    return {
        "id": p.pattern_id,
        "name": p.name,
        "description": p.description,
        "days_of_week": [d.value for d in sorted(p.days_of_week, key=order.index)],
        "start_time": format_hhmm(p.start_time),
        "end_time": format_hhmm(p.end_time),
        "recurrence": p.recurrence.value,
        "start_date": p.start_date.isoformat(),
        "end_date": p.end_date.isoformat() if p.end_date else None,
        "custom_dates": [d.isoformat() for d in p.custom_dates],
        "campus_id": p.campus_id,
        "program_id": p.program_id,
        "status": p.status.value,
    }


def exception_dict(e: ScheduleException) -> Dict[str, Any]:
    return {
        "id": e.exception_id,
        "pattern_id": e.pattern_id,
        "exception_date": e.exception_date.isoformat(),
        "reason": e.reason,
        "alternative_date": e.alternative_date.isoformat() if e.alternative_date else None,
        "alternative_start_time": format_hhmm(e.alternative_start_time) if e.alternative_start_time else None,
        "alternative_end_time": format_hhmm(e.alternative_end_time) if e.alternative_end_time else None,
        "cancelled": e.is_cancellation,
    }


def occurrence_dict(o: Occurrence) -> Dict[str, Any]:
    return {
        "pattern_id": o.pattern_id,
        "date": o.date.isoformat(),
        "start": o.start.isoformat(),
        "end": o.end.isoformat(),
        "rescheduled": o.is_rescheduled,
        "original_date": o.original_date.isoformat() if o.original_date else None,
        "reason": o.reason,
    }


def register(app: Flask, container: Container) -> None:
    service = container.schedule_pattern_service

    def _pattern_changes(body) -> Dict[str, Any]:
        changes: Dict[str, Any] = {k: body[k] for k in _PATTERN_FIELDS if k in body}
        if "start_date" in body:
            changes["start_date"] = parse_date_arg(body["start_date"], "start_date", required=True)
        if "end_date" in body:
            changes["end_date"] = parse_date_arg(body["end_date"], "end_date")
        if "custom_dates" in body:
            changes["custom_dates"] = parse_date_list(body["custom_dates"], "custom_dates")
        return changes

    @app.route("/api/schedule-patterns", methods=["GET"], endpoint="api_schedule_patterns_list")
    @login_required
    @json_endpoint
    def api_schedule_patterns_list():
        patterns = service.list_patterns(
            current_role=current_role(),
            filters=ScopeFilters.from_mapping(request.args),
            recurrence=request.args.get("recurrence") or None,
            range_start=parse_date_arg(request.args.get("start"), "start"),
            range_end=parse_date_arg(request.args.get("end"), "end"),
            page=request.args.get("page", 1, type=int),
            page_size=request.args.get("page_size", 50, type=int),
        )
        return jsonify({"success": True, "items": [pattern_dict(p) for p in patterns]})

    @app.route("/api/schedule-patterns", methods=["POST"], endpoint="api_schedule_patterns_create")
    @login_required
    @json_endpoint
    def api_schedule_patterns_create():
        body = json_body()
        changes = _pattern_changes(body)
        pattern = service.create_pattern(
            current_role=current_role(),
            name=changes.get("name", ""),
            description=changes.get("description"),
            days_of_week=changes.get("days_of_week"),
            start_time=changes.get("start_time"),
            end_time=changes.get("end_time"),
            recurrence=changes.get("recurrence", ""),
            start_date=changes.get("start_date"),
            end_date=changes.get("end_date"),
            custom_dates=changes.get("custom_dates", []),
            campus_id=changes.get("campus_id"),
            program_id=changes.get("program_id"),
        )
        return jsonify({"success": True, "pattern": pattern_dict(pattern)}), 201

    @app.route("/api/schedule-patterns/<int:pattern_id>", methods=["GET"], endpoint="api_schedule_patterns_get")
    @login_required
    @json_endpoint
    def api_schedule_patterns_get(pattern_id: int):
        pattern = service.get_pattern(current_role=current_role(), pattern_id=pattern_id)
        exceptions = service.list_exceptions(current_role=current_role(), pattern_id=pattern_id)
        return jsonify(
            {"success": True, "pattern": pattern_dict(pattern), "exceptions": [exception_dict(e) for e in exceptions]}
        )

    @app.route("/api/schedule-patterns/<int:pattern_id>", methods=["PATCH"], endpoint="api_schedule_patterns_update")
    @login_required
    @json_endpoint
    def api_schedule_patterns_update(pattern_id: int):
        pattern = service.update_pattern(
            current_role=current_role(), pattern_id=pattern_id, **_pattern_changes(json_body())
        )
        return jsonify({"success": True, "pattern": pattern_dict(pattern)})

    @app.route("/api/schedule-patterns/<int:pattern_id>", methods=["DELETE"], endpoint="api_schedule_patterns_delete")
    @login_required
    @json_endpoint
    def api_schedule_patterns_delete(pattern_id: int):
        service.delete_pattern(current_role=current_role(), pattern_id=pattern_id)
        return jsonify({"success": True})

    @app.route(
        "/api/schedule-patterns/<int:pattern_id>/occurrences",
        methods=["GET"],
        endpoint="api_schedule_patterns_occurrences",
    )
    @login_required
    @json_endpoint
    def api_schedule_patterns_occurrences(pattern_id: int):
        occurrences = service.generate_occurrences(
            current_role=current_role(),
            pattern_id=pattern_id,
            range_start=parse_date_arg(request.args.get("start"), "start", required=True),
            range_end=parse_date_arg(request.args.get("end"), "end", required=True),
        )
        return jsonify({"success": True, "occurrences": [occurrence_dict(o) for o in occurrences]})

    @app.route(
        "/api/schedule-patterns/<int:pattern_id>/exceptions",
        methods=["POST"],
        endpoint="api_schedule_exceptions_create",
    )
    @login_required
    @json_endpoint
    def api_schedule_exceptions_create(pattern_id: int):
        body = json_body()
        exc = service.create_exception(
            current_role=current_role(),
            pattern_id=pattern_id,
            exception_date=parse_date_arg(body.get("exception_date"), "exception_date", required=True),
            reason=body.get("reason"),
            alternative_date=parse_date_arg(body.get("alternative_date"), "alternative_date"),
            alternative_start_time=body.get("alternative_start_time") or None,
            alternative_end_time=body.get("alternative_end_time") or None,
        )
        return jsonify({"success": True, "exception": exception_dict(exc)}), 201

    @app.route("/api/schedule-exceptions/<int:exception_id>", methods=["PATCH"], endpoint="api_schedule_exceptions_update")
    @login_required
    @json_endpoint
    def api_schedule_exceptions_update(exception_id: int):
        body = json_body()
        changes: Dict[str, Any] = {k: (body[k] or None) for k in _EXCEPTION_FIELDS if k in body}
        for key in ("exception_date", "alternative_date"):
            if key in body:
                changes[key] = parse_date_arg(body[key], key, required=key == "exception_date")
        exc = service.update_exception(current_role=current_role(), exception_id=exception_id, **changes)
        return jsonify({"success": True, "exception": exception_dict(exc)})

    @app.route("/api/schedule-exceptions/<int:exception_id>", methods=["DELETE"], endpoint="api_schedule_exceptions_delete")
    @login_required
    @json_endpoint
    def api_schedule_exceptions_delete(exception_id: int):
        service.delete_exception(current_role=current_role(), exception_id=exception_id)
        return jsonify({"success": True})
