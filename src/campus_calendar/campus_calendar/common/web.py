from __future__ import annotations

import logging
from datetime import date
from functools import wraps
from typing import Any, Mapping, Optional

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import AuthorizationError, DomainError, NotFoundError, ValidationError
from .datetime_utils import parse_iso_date

logger = logging.getLogger(__name__)


def current_role() -> Optional[Role]:
    """Role from the session descriptor; unknown values read as no role."""
    value = session.get("role")
    if not value:
        return None
    try:
        return Role(str(value).upper())
    except ValueError:
        return None


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if current_role() is None:
            return jsonify({"success": False, "message": "Please sign in to continue"}), 401
        return view(*args, **kwargs)

    return wrapper


def error_response(exc: Exception):
    if isinstance(exc, ValidationError):
        return jsonify({"success": False, "message": str(exc), "field": exc.field}), 400
    if isinstance(exc, AuthorizationError):
        return jsonify({"success": False, "message": str(exc)}), 403
    if isinstance(exc, NotFoundError):
        return jsonify({"success": False, "message": str(exc)}), 404
    if isinstance(exc, DomainError):
        return jsonify({"success": False, "message": str(exc)}), 400
    logger.exception("Unhandled error in calendar API", exc_info=exc)
    return jsonify({"success": False, "message": "Internal server error"}), 500


def json_endpoint(view):
    """Turn domain errors raised by ``view`` into JSON error responses."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except Exception as e:
            return error_response(e)

    return wrapper


def parse_date_arg(value: Any, field_name: str, *, required: bool = False) -> Optional[date]:
    if value is None or value == "":
        if required:
            raise ValidationError(f"{field_name} is required", field=field_name)
        return None
    if isinstance(value, date):
        return value
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError(f"{field_name} must use YYYY-MM-DD format", field=field_name) from None


def parse_date_list(values: Any, field_name: str) -> list[date]:
    if values is None:
        return []
    if not isinstance(values, list):
        raise ValidationError(f"{field_name} must be a list of dates", field=field_name)
    return [parse_date_arg(v, field_name, required=True) for v in values]  # type: ignore[misc]


def json_body() -> Mapping[str, Any]:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object", field="body")
    return body
