"""Habit tracking data structures."""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class TargetType(str, Enum):
    """Schedule kinds a habit can follow."""

    DAILY = "daily"
    WEEKDAYS = "weekdays"
    CUSTOM = "custom"


class Weekday(str, Enum):
    """Weekday symbols, ordered to match ``date.weekday()``."""

    MON = "mon"
    TUE = "tue"
    WED = "wed"
    THU = "thu"
    FRI = "fri"
    SAT = "sat"
    SUN = "sun"

    @classmethod
    def of(cls, day: date) -> "Weekday":
        return _WEEKDAY_ORDER[day.weekday()]


_WEEKDAY_ORDER = tuple(Weekday)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Habit(SQLModel, table=True):
    """A user-defined habit with a target schedule and derived streak counters."""

    __tablename__: ClassVar[str] = "habits"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=100, index=True)
    target_type: str = Field(default=TargetType.DAILY.value, nullable=False, max_length=16)
    start_date: date = Field(nullable=False)
    # Written only by the streak engine inside a check-in unit of work.
    current_streak: int = Field(default=0, nullable=False, ge=0)
    longest_streak: int = Field(default=0, nullable=False, ge=0)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)


class HabitTargetDay(SQLModel, table=True):
    """One weekday that counts as on-schedule for a custom habit."""

    __tablename__: ClassVar[str] = "habit_target_days"

    habit_id: int = Field(foreign_key="habits.id", primary_key=True)
    day: str = Field(primary_key=True, max_length=3)
