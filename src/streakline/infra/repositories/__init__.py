"""Concrete repository implementations using SQLModel."""

from .checkin import CheckinLedger, SQLModelCheckinRepository
from .habit import SQLModelHabitRepository
from .user import SQLModelUserRepository

__all__ = [
    "CheckinLedger",
    "SQLModelCheckinRepository",
    "SQLModelHabitRepository",
    "SQLModelUserRepository",
]
