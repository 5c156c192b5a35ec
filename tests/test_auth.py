"""Tests for user registration and credential checks."""

from __future__ import annotations

import pytest

from streakline.errors import CheckinValidationError, DuplicateUserError
from streakline.infra.repositories import SQLModelUserRepository
from streakline.services import auth


@pytest.fixture
def user_repo(session_factory) -> SQLModelUserRepository:
    return SQLModelUserRepository(session_factory)


def test_register_hashes_password(user_repo):
    user = auth.register_user(username=" ada ", password="correct horse", repository=user_repo)

    assert user.id is not None
    assert user.username == "ada"
    assert user.password_hash.startswith("$argon2")
    assert "correct horse" not in user.password_hash


def test_register_rejects_duplicates(user_repo):
    auth.register_user(username="ada", password="correct horse", repository=user_repo)
    with pytest.raises(DuplicateUserError):
        auth.register_user(username="ada", password="another one", repository=user_repo)


@pytest.mark.parametrize("username, password", [("", "long enough"), ("ada", "short")])
def test_register_validation(user_repo, username, password):
    with pytest.raises(CheckinValidationError):
        auth.register_user(username=username, password=password, repository=user_repo)


def test_authenticate_success_records_login(user_repo):
    auth.register_user(username="ada", password="correct horse", repository=user_repo)

    user = auth.authenticate(username="ada", password="correct horse", repository=user_repo)

    assert user is not None
    assert user.last_login is not None
    assert auth.get_user(user.id, repository=user_repo).last_login is not None


@pytest.mark.parametrize("username, password", [("ada", "wrong horse"), ("nobody", "correct horse")])
def test_authenticate_failure(user_repo, username, password):
    auth.register_user(username="ada", password="correct horse", repository=user_repo)
    assert auth.authenticate(username=username, password=password, repository=user_repo) is None


def test_authenticate_with_corrupt_hash(user_factory, user_repo):
    user_factory("legacy")  # stored with a placeholder, not an argon2 hash
    assert auth.authenticate(username="legacy", password="whatever", repository=user_repo) is None
