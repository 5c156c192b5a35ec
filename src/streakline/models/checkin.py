"""Check-in ledger rows."""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import ClassVar, Optional

from sqlalchemy import Column, Date, UniqueConstraint
from sqlmodel import Field, SQLModel


class CheckinStatus(str, Enum):
    COMPLETED = "completed"
    MISSED = "missed"


class Checkin(SQLModel, table=True):
    """The single status recorded for a habit on one calendar day."""

    __tablename__: ClassVar[str] = "checkins"
    __table_args__ = (UniqueConstraint("habit_id", "date", name="uq_checkins_habit_date"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    habit_id: int = Field(foreign_key="habits.id", nullable=False, index=True)
    occurred_on: date = Field(sa_column=Column("date", Date, nullable=False, index=True))
    status: str = Field(nullable=False, max_length=16)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    @property
    def is_completed(self) -> bool:
        return self.status == CheckinStatus.COMPLETED.value
