"""User registration and credential check routes."""

from __future__ import annotations

from flask import jsonify
from pydantic import BaseModel, Field

from ...errors import AuthenticationError
from ...extensions import get_services
from ...services import auth
from ..common import json_body, parse_form
from . import bp


class CredentialsForm(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1, max_length=256)


def _user_payload(user) -> dict:
    return {"id": user.id, "username": user.username}


@bp.post("/")
def register():
    form = parse_form(CredentialsForm, json_body())
    user = auth.register_user(
        username=form.username, password=form.password, repository=get_services().users
    )
    return jsonify(_user_payload(user)), 201


@bp.post("/login")
def login():
    """Verify credentials; the returned id is what the gateway forwards as ``X-User-Id``."""

    form = parse_form(CredentialsForm, json_body())
    user = auth.authenticate(
        username=form.username, password=form.password, repository=get_services().users
    )
    if user is None:
        raise AuthenticationError("Invalid username or password")
    return jsonify(_user_payload(user))
