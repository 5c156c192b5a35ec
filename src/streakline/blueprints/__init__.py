"""Blueprint exports."""

from . import analytics, checkins, habits, users

__all__ = [
    "analytics",
    "checkins",
    "habits",
    "users",
]
