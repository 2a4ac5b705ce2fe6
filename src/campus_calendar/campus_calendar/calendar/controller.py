from __future__ import annotations

import csv
import io

from flask import Flask, jsonify, request

from ..common.scope import ScopeFilters
from ..common.web import current_role, json_endpoint, login_required, parse_date_arg
from ..container import Container
from ..core.enums import CalendarView
from ..core.exceptions import ValidationError
from .presenter import EXPORT_FIELDS, aggregation_dict, export_rows, page_dict


def _token_arg():
    value = request.args.get("token")
    if value in (None, ""):
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError("token must be an integer", field="token") from None


def register(app: Flask, container: Container) -> None:
    service = container.calendar_service

    def _range_args():
        return (
            parse_date_arg(request.args.get("start"), "start", required=True),
            parse_date_arg(request.args.get("end"), "end", required=True),
        )

    @app.route("/api/calendar", methods=["GET"], endpoint="api_calendar")
    @login_required
    @json_endpoint
    def api_calendar():
        page = service.page(
            current_role=current_role(),
            view=request.args.get("view") or CalendarView.MONTH,
            anchor=parse_date_arg(request.args.get("anchor"), "anchor"),
            filters=ScopeFilters.from_mapping(request.args),
            token=_token_arg(),
        )
        return jsonify(page_dict(page))

    @app.route("/api/calendar/events", methods=["GET"], endpoint="api_calendar_events")
    @login_required
    @json_endpoint
    def api_calendar_events():
        start, end = _range_args()
        result = service.events_in_range(
            current_role=current_role(),
            start=start,
            end=end,
            filters=ScopeFilters.from_mapping(request.args),
        )
        return jsonify(aggregation_dict(result))

    @app.route("/api/calendar/export.csv", methods=["GET"], endpoint="api_calendar_export_csv")
    @login_required
    @json_endpoint
    def api_calendar_export_csv():
        start, end = _range_args()
        result = service.export_events(
            current_role=current_role(),
            start=start,
            end=end,
            filters=ScopeFilters.from_mapping(request.args),
        )

        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=EXPORT_FIELDS)
        writer.writeheader()
        for row in export_rows(result):
            writer.writerow(row)

        filename = f"calendar_{start.strftime('%Y%m%d')}_{end.strftime('%Y%m%d')}.csv"
        return app.response_class(
            out.getvalue().encode("utf-8-sig"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/api/calendar/controls", methods=["GET"], endpoint="api_calendar_controls")
    @login_required
    def api_calendar_controls():
        return jsonify({"success": True, "controls": container.permission_gate.visible_controls(current_role())})
