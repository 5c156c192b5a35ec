"""SQLModel implementation of Habit repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlmodel import Session, col, select

from ...models.habit import Habit, HabitTargetDay
from ..database import SessionFactory
from .checkin import CheckinLedger


def load_target_days(session: Session, habit_id: int) -> list[str]:
    """Return the stored target-day symbols for a habit."""

    statement = select(HabitTargetDay.day).where(HabitTargetDay.habit_id == habit_id)
    return list(session.exec(statement).all())


def replace_target_days(session: Session, habit_id: int, days: Iterable[str]) -> None:
    """Replace a habit's target-day set."""

    for row in session.exec(select(HabitTargetDay).where(HabitTargetDay.habit_id == habit_id)).all():
        session.delete(row)
    session.flush()
    for day in sorted(set(days)):
        session.add(HabitTargetDay(habit_id=habit_id, day=day))
    session.flush()


def lock_habit(session: Session, habit_id: int, *, user_id: int | None = None) -> Optional[Habit]:
    """Load a habit with a row lock held until the session's transaction ends.

    When ``user_id`` is given the habit must belong to that user.
    """

    statement = select(Habit).where(Habit.id == habit_id)
    if user_id is not None:
        statement = statement.where(Habit.user_id == user_id)
    return session.exec(statement.with_for_update()).first()


class SQLModelHabitRepository:
    """SQLModel-based habit repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, habit_id: int, *, user_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, *, user_id: int) -> list[Habit]:
        """List a user's habits, newest first."""
        with self.session_factory() as session:
            statement = (
                select(Habit)
                .where(Habit.user_id == user_id)
                .order_by(col(Habit.created_at).desc(), col(Habit.id).desc())
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def get_target_days(self, habit_id: int) -> list[str]:
        with self.session_factory() as session:
            return load_target_days(session, habit_id)

    def create(self, habit: Habit, *, user_id: int, target_days: Iterable[str] = ()) -> Habit:
        """Create a new habit together with its target days."""
        with self.session_factory(write=True) as session:
            habit.user_id = user_id
            session.add(habit)
            session.flush()
            days = list(target_days)
            if days:
                replace_target_days(session, habit.id, days)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    def update(self, habit_id: int, *, user_id: int, name: str | None = None) -> Optional[Habit]:
        """Update descriptive fields; schedule changes go through the check-in coordinator."""
        with self.session_factory(write=True) as session:
            habit = lock_habit(session, habit_id, user_id=user_id)
            if habit is None:
                return None
            if name is not None:
                habit.name = name
            habit.updated_at = datetime.now(timezone.utc)
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    def delete(self, habit_id: int, *, user_id: int) -> bool:
        """Delete a habit and cascade to its target days and check-ins."""
        with self.session_factory(write=True) as session:
            habit = lock_habit(session, habit_id, user_id=user_id)
            if habit is None:
                return False
            CheckinLedger(session).delete_for_habit(habit_id)
            replace_target_days(session, habit_id, ())
            session.delete(habit)
            session.commit()
            return True
