"""Analytics and activity-feed routes."""

from __future__ import annotations

from flask import jsonify, request

from ...errors import CheckinValidationError
from ...extensions import get_services
from ...services import activity, analytics
from ..common import parse_form, require_user_id
from ..habits.forms import CheckinRangeQuery
from . import bp


@bp.get("/analytics/summary")
def summary():
    user_id = require_user_id()
    query = parse_form(CheckinRangeQuery, request.args.to_dict())
    data = analytics.summary(
        get_services().session_factory, user_id, query.start_date, query.end_date
    )
    return jsonify(data)


@bp.get("/analytics/heatmap")
def heatmap():
    user_id = require_user_id()
    query = parse_form(CheckinRangeQuery, request.args.to_dict())
    data = analytics.heatmap(
        get_services().session_factory, user_id, query.start_date, query.end_date
    )
    return jsonify(data)


def _limit_arg(default: int) -> int:
    raw_limit = request.args.get("limit", str(default))
    if not raw_limit.isdigit():
        raise CheckinValidationError("limit must be a positive integer")
    return int(raw_limit)


@bp.get("/activities/recent")
def recent_activity():
    user_id = require_user_id()
    items = activity.recent_activity(
        get_services().session_factory, user_id, _limit_arg(activity.DEFAULT_LIMIT)
    )
    return jsonify(items)


@bp.get("/activities")
def list_activity():
    user_id = require_user_id()
    items = activity.all_activity(
        get_services().session_factory, user_id, _limit_arg(activity.LIST_LIMIT)
    )
    return jsonify(items)


@bp.get("/activities/type/<string:kind>")
def activity_by_type(kind: str):
    """Events of one kind; unknown kinds are a 400."""

    user_id = require_user_id()
    items = activity.activity_by_type(
        get_services().session_factory, user_id, kind, _limit_arg(activity.TYPE_LIMIT)
    )
    return jsonify(items)
