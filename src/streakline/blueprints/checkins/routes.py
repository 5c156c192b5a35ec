"""Batch check-in route."""

from __future__ import annotations

from flask import jsonify

from ...extensions import get_services
from ..common import json_body, parse_form, require_user_id
from . import bp
from .forms import BatchCheckinForm


@bp.post("/batch")
def batch_update_checkins():
    """Record one date's statuses for several habits; unowned habits are skipped."""

    user_id = require_user_id()
    form = parse_form(BatchCheckinForm, json_body())
    result = get_services().coordinator.submit_batch(form.date, form.entries(), user_id)
    return jsonify(result.to_dict())
