"""User registration and credential checks."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError, VerifyMismatchError

from ..errors import CheckinValidationError, DuplicateUserError
from ..infra.repositories.user import SQLModelUserRepository
from ..logging_config import get_logger
from ..models.user import User

logger = get_logger("auth")

_hasher = PasswordHasher()
MIN_PASSWORD_LENGTH = 8


def register_user(*, username: str, password: str, repository: SQLModelUserRepository) -> User:
    """Create a new user with a hashed password."""

    username = (username or "").strip()
    if not username:
        raise CheckinValidationError("Username is required")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise CheckinValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    if repository.get_by_username(username) is not None:
        raise DuplicateUserError(f"Username {username!r} is already taken")

    user = repository.create(User(username=username, password_hash=_hasher.hash(password)))
    logger.info("User registered", extra={"user_id": user.id})
    return user


def authenticate(*, username: str, password: str, repository: SQLModelUserRepository) -> Optional[User]:
    """Return the user when the credentials match, otherwise ``None``."""

    user = repository.get_by_username((username or "").strip())
    if user is None:
        return None
    try:
        _hasher.verify(user.password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHash):
        return None

    user.last_login = datetime.now(timezone.utc)
    if _hasher.check_needs_rehash(user.password_hash):
        user.password_hash = _hasher.hash(password)
    return repository.update(user)


def get_user(user_id: int, *, repository: SQLModelUserRepository) -> Optional[User]:
    return repository.get_by_id(user_id)


__all__ = ["authenticate", "get_user", "register_user"]
