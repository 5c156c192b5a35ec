"""Exception types raised by the check-in core and its collaborators."""

from __future__ import annotations


class StreaklineError(Exception):
    """Base class for application errors."""

    error_code = "streakline_error"
    status_code = 500

    def to_dict(self) -> dict[str, str]:
        return {"error": self.error_code, "message": str(self)}


class CheckinValidationError(StreaklineError, ValueError):
    """Input rejected before any storage access (bad status, date or schedule)."""

    error_code = "invalid_request"
    status_code = 400


class HabitNotFoundError(StreaklineError, LookupError):
    """Habit does not exist or is not owned by the caller."""

    error_code = "habit_not_found"
    status_code = 404

    def __init__(self, habit_id: int) -> None:
        super().__init__(f"Habit {habit_id} not found")
        self.habit_id = habit_id


class CheckinTransactionError(StreaklineError, RuntimeError):
    """A unit of work failed and was rolled back; nothing was persisted."""

    error_code = "checkin_failed"
    status_code = 500

    def to_dict(self) -> dict[str, str]:
        # Storage details stay in the logs.
        return {"error": self.error_code, "message": "The check-in could not be saved."}


class AuthenticationError(StreaklineError):
    """Request carries no usable user identity."""

    error_code = "unauthorized"
    status_code = 401


class DuplicateUserError(StreaklineError, ValueError):
    error_code = "username_taken"
    status_code = 409


__all__ = [
    "AuthenticationError",
    "CheckinTransactionError",
    "CheckinValidationError",
    "DuplicateUserError",
    "HabitNotFoundError",
    "StreaklineError",
]
