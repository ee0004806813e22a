from __future__ import annotations

import logging
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from ..core.enums import ErrorCode
from ..core.exceptions import DomainError, ValidationError
from .datetime_utils import parse_iso_date, parse_iso_datetime
from .validators import require_naive_datetime

logger = logging.getLogger(__name__)

HTTP_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.INVALID_STATE_TRANSITION: 409,
    ErrorCode.CONFLICT: 409,
    ErrorCode.ALREADY_USED: 409,
    ErrorCode.SCOPE_MISMATCH: 403,
    ErrorCode.VALIDATION: 422,
    ErrorCode.RULE_INACTIVE: 422,
}


def to_json(value: Any) -> Any:
    """Convert domain objects (dataclasses, enums, Decimal, datetimes) to JSON-able values."""

    if is_dataclass(value) and not isinstance(value, type):
        return {k: to_json(v) for k, v in asdict(value).items()}
    if isinstance(value, dict):
        return {k: to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def required(data: dict, key: str) -> Any:
    value = data.get(key)
    if value is None or value == "":
        raise ValidationError(f"{key} is required", field=key)
    return value


def int_arg(data: dict, key: str, *, required_value: bool = True) -> Optional[int]:
    value = data.get(key)
    if value is None or value == "":
        if required_value:
            raise ValidationError(f"{key} is required", field=key)
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be an integer", field=key)


def datetime_arg(data: dict, key: str, *, required_value: bool = True) -> Optional[datetime]:
    value = data.get(key)
    if not value:
        if required_value:
            raise ValidationError(f"{key} is required", field=key)
        return None
    try:
        parsed = parse_iso_datetime(str(value))
    except ValueError:
        raise ValidationError(f"{key} must be an ISO datetime", field=key)
    return require_naive_datetime(parsed, key)


def date_arg(data: dict, key: str, *, required_value: bool = True) -> Optional[date]:
    value = data.get(key)
    if not value:
        if required_value:
            raise ValidationError(f"{key} is required", field=key)
        return None
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError(f"{key} must be a YYYY-MM-DD date", field=key)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        status = HTTP_STATUS_BY_CODE.get(e.code, 500)
        if status >= 500:
            logger.error("Unmapped domain error %s: %s", e.code, e.message)
        return jsonify({"error": e.code.value, "message": e.message, "details": to_json(e.details)}), status

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"error": e.name.lower().replace(" ", "_"), "message": e.description, "details": {}}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": "internal_error", "message": "Internal server error", "details": {}}), 500
