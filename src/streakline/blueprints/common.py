"""Request helpers shared by the JSON blueprints."""

from __future__ import annotations

from typing import Any, TypeVar

from flask import Flask, jsonify, request
from pydantic import BaseModel, ValidationError

from ..errors import AuthenticationError, CheckinValidationError, StreaklineError
from ..extensions import get_services
from ..logging_config import get_logger

logger = get_logger("http")

USER_HEADER = "X-User-Id"

FormT = TypeVar("FormT", bound=BaseModel)


def require_user_id() -> int:
    """Return the authenticated user id forwarded by the upstream auth gateway."""

    raw = request.headers.get(USER_HEADER, "").strip()
    if not raw.isdigit() or int(raw) <= 0:
        raise AuthenticationError("Authentication required")

    user_id = int(raw)
    if get_services().users.get_by_id(user_id) is None:
        raise AuthenticationError("Authentication required")
    return user_id


def _first_error_message(exc: ValidationError) -> str:
    for error in exc.errors(include_url=False):
        message = str(error.get("msg", "Invalid value"))
        # pydantic prefixes messages raised from validators
        return message.removeprefix("Value error, ")
    return "Invalid request"


def parse_form(form_cls: type[FormT], payload: Any) -> FormT:
    """Validate ``payload`` into ``form_cls`` or raise ``CheckinValidationError``."""

    if payload is None:
        payload = {}
    try:
        return form_cls.model_validate(payload)
    except ValidationError as exc:
        raise CheckinValidationError(_first_error_message(exc)) from exc


def json_body() -> Any:
    return request.get_json(silent=True)


def register_error_handlers(app: Flask) -> None:
    """Map application errors onto JSON responses."""

    @app.errorhandler(StreaklineError)
    def _handle_streakline_error(exc: StreaklineError):
        if exc.status_code >= 500:
            logger.error("Request failed", exc_info=exc, extra={"path": request.path})
        return jsonify(exc.to_dict()), exc.status_code
