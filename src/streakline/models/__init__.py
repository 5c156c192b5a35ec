"""SQLModel table exports."""

from .checkin import Checkin, CheckinStatus
from .habit import Habit, HabitTargetDay, TargetType, Weekday
from .user import User

__all__ = [
    "Checkin",
    "CheckinStatus",
    "Habit",
    "HabitTargetDay",
    "TargetType",
    "User",
    "Weekday",
]
