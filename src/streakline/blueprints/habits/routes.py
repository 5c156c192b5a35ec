"""Habit and per-habit check-in routes."""

from __future__ import annotations

from datetime import date

from flask import jsonify, request

from ...extensions import get_services
from ...services.dates import format_date, month_bounds
from ..common import json_body, parse_form, require_user_id
from . import bp
from .forms import CheckinForm, CheckinRangeQuery, HabitCreateForm, HabitUpdateForm


@bp.get("/")
def list_habits():
    """List the caller's habits, newest first."""

    user_id = require_user_id()
    views = get_services().habits.list_habits(user_id)
    return jsonify([view.to_dict() for view in views])


@bp.post("/")
def create_habit():
    user_id = require_user_id()
    form = parse_form(HabitCreateForm, json_body())
    view = get_services().habits.create_habit(
        user_id,
        name=form.name,
        target_type=form.target_type,
        start_date=form.start_date,
        target_days=form.target_days,
    )
    return jsonify(view.to_dict()), 201


@bp.get("/<int:habit_id>")
def get_habit(habit_id: int):
    user_id = require_user_id()
    return jsonify(get_services().habits.get_habit(habit_id, user_id).to_dict())


@bp.put("/<int:habit_id>")
def update_habit(habit_id: int):
    user_id = require_user_id()
    form = parse_form(HabitUpdateForm, json_body())
    view = get_services().habits.update_habit(
        habit_id,
        user_id,
        name=form.name,
        target_type=form.target_type,
        target_days=form.target_days,
    )
    return jsonify(view.to_dict())


@bp.delete("/<int:habit_id>")
def delete_habit(habit_id: int):
    user_id = require_user_id()
    get_services().habits.delete_habit(habit_id, user_id)
    return "", 204


@bp.post("/<int:habit_id>/checkins")
def create_checkin(habit_id: int):
    """Create or overwrite the check-in for one date and return refreshed streaks."""

    user_id = require_user_id()
    form = parse_form(CheckinForm, json_body())
    services = get_services()
    # Ownership is checked before the unit of work opens.
    services.habits.get_habit(habit_id, user_id)
    result = services.coordinator.submit_checkin(
        habit_id, form.date, form.status, user_id=user_id
    )
    return jsonify(result.to_dict())


@bp.get("/<int:habit_id>/checkins")
def list_checkins(habit_id: int):
    """Return check-ins in an inclusive date range, ascending."""

    user_id = require_user_id()
    query = parse_form(CheckinRangeQuery, request.args.to_dict())
    services = get_services()
    services.habits.get_habit(habit_id, user_id)

    default_start, default_end = month_bounds(date.today())
    start = query.start_date or default_start
    end = query.end_date or default_end
    rows = services.checkins.get_by_date_range(habit_id, start, end)
    return jsonify(
        [{"date": format_date(row.occurred_on), "status": row.status} for row in rows]
    )
