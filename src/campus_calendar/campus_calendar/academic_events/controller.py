from __future__ import annotations

from typing import Any, Dict

from flask import Flask, jsonify, request

from ..common.scope import ScopeFilters
from ..common.web import current_role, json_body, json_endpoint, login_required, parse_date_arg
from ..container import Container
from .model import AcademicEvent


def academic_event_dict(e: AcademicEvent) -> Dict[str, Any]:
    return {
        "id": e.event_id,
        "title": e.title,
        "start_date": e.start_date.isoformat(),
        "end_date": e.end_date.isoformat(),
        "type": e.event_type.value,
        "description": e.description,
        "campus_ids": sorted(e.campus_ids),
        "academic_cycle_id": e.academic_cycle_id,
    }


def register(app: Flask, container: Container) -> None:
    service = container.academic_event_service

    def _changes(body) -> Dict[str, Any]:
        changes: Dict[str, Any] = {k: body[k] for k in ("title", "description", "campus_ids") if k in body}
        if "type" in body:
            changes["event_type"] = body["type"]
        for key in ("start_date", "end_date"):
            if key in body:
                changes[key] = parse_date_arg(body[key], key, required=key == "start_date")
        return changes

    @app.route("/api/academic-events", methods=["GET"], endpoint="api_academic_events_list")
    @login_required
    @json_endpoint
    def api_academic_events_list():
        events = service.list_events(
            current_role=current_role(),
            start=parse_date_arg(request.args.get("start"), "start", required=True),
            end=parse_date_arg(request.args.get("end"), "end", required=True),
            filters=ScopeFilters.from_mapping(request.args),
        )
        return jsonify({"success": True, "items": [academic_event_dict(e) for e in events]})

    @app.route("/api/academic-events", methods=["POST"], endpoint="api_academic_events_create")
    @login_required
    @json_endpoint
    def api_academic_events_create():
        body = json_body()
        changes = _changes(body)
        event = service.create_event(
            current_role=current_role(),
            title=changes.get("title", ""),
            start_date=changes.get("start_date"),
            end_date=changes.get("end_date"),
            event_type=changes.get("event_type"),
            description=changes.get("description"),
            campus_ids=changes.get("campus_ids"),
            academic_cycle_id=body.get("academic_cycle_id"),
        )
        return jsonify({"success": True, "event": academic_event_dict(event)}), 201

    @app.route("/api/academic-events/<int:event_id>", methods=["PATCH"], endpoint="api_academic_events_update")
    @login_required
    @json_endpoint
    def api_academic_events_update(event_id: int):
        event = service.update_event(current_role=current_role(), event_id=event_id, **_changes(json_body()))
        return jsonify({"success": True, "event": academic_event_dict(event)})

    @app.route("/api/academic-events/<int:event_id>", methods=["DELETE"], endpoint="api_academic_events_delete")
    @login_required
    @json_endpoint
    def api_academic_events_delete(event_id: int):
        service.delete_event(current_role=current_role(), event_id=event_id)
        return jsonify({"success": True})
