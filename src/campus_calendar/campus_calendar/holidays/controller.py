from __future__ import annotations

from typing import Any, Dict

from flask import Flask, jsonify, request

from ..common.scope import ScopeFilters
from ..common.web import current_role, json_body, json_endpoint, login_required, parse_date_arg
from ..container import Container
from .model import Holiday


def holiday_dict(h: Holiday) -> Dict[str, Any]:
    return {
        "id": h.holiday_id,
        "name": h.name,
        "start_date": h.start_date.isoformat(),
        "end_date": h.end_date.isoformat(),
        "type": h.holiday_type.value,
        "description": h.description,
        "affects_all": h.affects_all,
        "campus_ids": sorted(h.campus_ids),
    }


def register(app: Flask, container: Container) -> None:
    service = container.holiday_service

    def _changes(body) -> Dict[str, Any]:
        changes: Dict[str, Any] = {k: body[k] for k in ("name", "description", "campus_ids") if k in body}
        if "type" in body:
            changes["holiday_type"] = body["type"]
        for key in ("start_date", "end_date"):
            if key in body:
                changes[key] = parse_date_arg(body[key], key, required=key == "start_date")
        return changes

    @app.route("/api/holidays", methods=["GET"], endpoint="api_holidays_list")
    @login_required
    @json_endpoint
    def api_holidays_list():
        holidays = service.list_holidays(
            current_role=current_role(),
            start=parse_date_arg(request.args.get("start"), "start", required=True),
            end=parse_date_arg(request.args.get("end"), "end", required=True),
            filters=ScopeFilters.from_mapping(request.args),
        )
        return jsonify({"success": True, "items": [holiday_dict(h) for h in holidays]})

    @app.route("/api/holidays", methods=["POST"], endpoint="api_holidays_create")
    @login_required
    @json_endpoint
    def api_holidays_create():
        changes = _changes(json_body())
        holiday = service.create_holiday(
            current_role=current_role(),
            name=changes.get("name", ""),
            start_date=changes.get("start_date"),
            end_date=changes.get("end_date"),
            holiday_type=changes.get("holiday_type"),
            description=changes.get("description"),
            campus_ids=changes.get("campus_ids"),
        )
        return jsonify({"success": True, "holiday": holiday_dict(holiday)}), 201

    @app.route("/api/holidays/<int:holiday_id>", methods=["PATCH"], endpoint="api_holidays_update")
    @login_required
    @json_endpoint
    def api_holidays_update(holiday_id: int):
        holiday = service.update_holiday(current_role=current_role(), holiday_id=holiday_id, **_changes(json_body()))
        return jsonify({"success": True, "holiday": holiday_dict(holiday)})

    @app.route("/api/holidays/<int:holiday_id>", methods=["DELETE"], endpoint="api_holidays_delete")
    @login_required
    @json_endpoint
    def api_holidays_delete(holiday_id: int):
        service.delete_holiday(current_role=current_role(), holiday_id=holiday_id)
        return jsonify({"success": True})

    @app.route("/api/holidays/check", methods=["GET"], endpoint="api_holidays_check")
    @login_required
    @json_endpoint
    def api_holidays_check():
        day = parse_date_arg(request.args.get("date"), "date", required=True)
        filters = ScopeFilters.from_mapping(request.args)
        result = service.is_holiday(current_role=current_role(), day=day, campus_id=filters.campus_id)
        return jsonify({"success": True, "date": day.isoformat(), "is_holiday": result})

    @app.route("/api/holidays/working-days", methods=["GET"], endpoint="api_holidays_working_days")
    @login_required
    @json_endpoint
    def api_holidays_working_days():
        start = parse_date_arg(request.args.get("start"), "start", required=True)
        end = parse_date_arg(request.args.get("end"), "end", required=True)
        filters = ScopeFilters.from_mapping(request.args)
        count = service.working_days(current_role=current_role(), start=start, end=end, campus_id=filters.campus_id)
        return jsonify({"success": True, "working_days": count})
