"""SQLModel implementation of the check-in ledger."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ...logging_config import get_logger
from ...models.checkin import Checkin, CheckinStatus
from ...models.habit import Habit
from ...services.dates import normalize_date
from ..database import SessionFactory

logger = get_logger("ledger")


class CheckinLedger:
    """Ledger operations bound to a caller-owned session (one unit of work)."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, habit_id: int, on: date) -> Optional[Checkin]:
        statement = (
            select(Checkin)
            .where(Checkin.habit_id == habit_id)
            .where(Checkin.occurred_on == on)
        )
        return self.session.exec(statement).first()

    def upsert(self, habit_id: int, on: date | datetime | str, status: CheckinStatus | str) -> Checkin:
        """Record ``status`` for (habit, date), overwriting any existing status in place."""

        day = normalize_date(on)
        value = CheckinStatus(status).value

        existing = self.get(habit_id, day)
        if existing is None:
            try:
                with self.session.begin_nested():
                    created = Checkin(habit_id=habit_id, occurred_on=day, status=value)
                    self.session.add(created)
                logger.debug(
                    "Inserted check-in",
                    extra={"habit_id": habit_id, "date": day.isoformat(), "status": value},
                )
                return created
            except IntegrityError:
                # A concurrent writer inserted the same (habit, date); fall through to update it.
                existing = self.get(habit_id, day)
                if existing is None:
                    raise

        existing.status = value
        existing.updated_at = datetime.now(timezone.utc)
        self.session.add(existing)
        self.session.flush()
        logger.debug(
            "Updated check-in",
            extra={"habit_id": habit_id, "date": day.isoformat(), "status": value},
        )
        return existing

    def history(self, habit_id: int) -> list[Checkin]:
        """Return the full history for a habit, newest date first."""

        statement = (
            select(Checkin)
            .where(Checkin.habit_id == habit_id)
            .order_by(Checkin.occurred_on.desc())  # type: ignore[union-attr]
        )
        return list(self.session.exec(statement).all())

    def get_by_date_range(self, habit_id: int, start: date, end: date) -> list[Checkin]:
        """Return check-ins within [start, end], ascending by date."""

        statement = (
            select(Checkin)
            .where(Checkin.habit_id == habit_id)
            .where(Checkin.occurred_on >= start)
            .where(Checkin.occurred_on <= end)
            .order_by(Checkin.occurred_on)  # type: ignore[arg-type]
        )
        return list(self.session.exec(statement).all())

    def for_habits_in_range(self, habit_ids: list[int], start: date, end: date) -> list[Checkin]:
        if not habit_ids:
            return []
        statement = (
            select(Checkin)
            .where(Checkin.habit_id.in_(habit_ids))  # type: ignore[attr-defined]
            .where(Checkin.occurred_on >= start)
            .where(Checkin.occurred_on <= end)
            .order_by(Checkin.occurred_on)  # type: ignore[arg-type]
        )
        return list(self.session.exec(statement).all())

    def recent_completed_for_user(self, user_id: int, limit: int = 5) -> list[tuple[Checkin, str]]:
        """Return (check-in, habit name) pairs for a user's latest completions."""

        statement = (
            select(Checkin, Habit.name)
            .join(Habit, Habit.id == Checkin.habit_id)
            .where(Habit.user_id == user_id)
            .where(Checkin.status == CheckinStatus.COMPLETED.value)
            .order_by(Checkin.occurred_on.desc(), Checkin.id.desc())  # type: ignore[union-attr]
            .limit(limit)
        )
        return [(checkin, name) for checkin, name in self.session.exec(statement).all()]

    def delete_for_habit(self, habit_id: int) -> int:
        rows = self.session.exec(select(Checkin).where(Checkin.habit_id == habit_id)).all()
        for row in rows:
            self.session.delete(row)
        return len(rows)


class SQLModelCheckinRepository:
    """Read-side repository opening its own short-lived sessions."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get_by_date_range(self, habit_id: int, start: date, end: date) -> list[Checkin]:
        with self.session_factory() as session:
            rows = CheckinLedger(session).get_by_date_range(habit_id, start, end)
            session.expunge_all()
            return rows

    def history(self, habit_id: int) -> list[Checkin]:
        with self.session_factory() as session:
            rows = CheckinLedger(session).history(habit_id)
            session.expunge_all()
            return rows
