"""Read-only analytics over a user's habits and check-ins."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Optional

from sqlmodel import col, select

from ..infra.database import SessionFactory
from ..infra.repositories.checkin import CheckinLedger
from ..models.habit import Habit
from .dates import format_date, month_bounds

SUMMARY_LOOKBACK_DAYS = 30
TOP_STREAKS = 5


def summary(
    session_factory: SessionFactory,
    user_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
    *,
    today: Optional[date] = None,
) -> dict[str, Any]:
    """Summary statistics for one user; defaults to the last 30 days."""

    today = today or date.today()
    end = end or today
    start = start or today - timedelta(days=SUMMARY_LOOKBACK_DAYS)

    with session_factory() as session:
        habits = list(
            session.exec(
                select(Habit)
                .where(Habit.user_id == user_id)
                .order_by(col(Habit.current_streak).desc(), col(Habit.id))
            ).all()
        )
        checkins = CheckinLedger(session).for_habits_in_range(
            [habit.id for habit in habits], start, end
        )

    completed = sum(1 for checkin in checkins if checkin.is_completed)
    completion_rate = round(completed / len(checkins) * 100, 2) if checkins else 0

    habit_types: dict[str, int] = {}
    for habit in habits:
        habit_types[habit.target_type] = habit_types.get(habit.target_type, 0) + 1

    return {
        "total_habits": len(habits),
        "completion_rate": completion_rate,
        "habit_types": habit_types,
        "top_streaks": [
            {
                "id": habit.id,
                "name": habit.name,
                "current_streak": habit.current_streak,
                "longest_streak": habit.longest_streak,
            }
            for habit in habits[:TOP_STREAKS]
        ],
        "longest_streak": max((habit.longest_streak for habit in habits), default=0),
        "start_date": format_date(start),
        "end_date": format_date(end),
    }


def heatmap(
    session_factory: SessionFactory,
    user_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
    *,
    today: Optional[date] = None,
) -> dict[str, Any]:
    """Per-habit map of date -> status; defaults to the current month."""

    default_start, default_end = month_bounds(today or date.today())
    start = start or default_start
    end = end or default_end

    with session_factory() as session:
        habits = list(
            session.exec(select(Habit).where(Habit.user_id == user_id).order_by(col(Habit.id))).all()
        )
        checkins = CheckinLedger(session).for_habits_in_range(
            [habit.id for habit in habits], start, end
        )

    result: dict[str, Any] = {
        str(habit.id): {"name": habit.name, "target_type": habit.target_type, "checkins": {}}
        for habit in habits
    }
    for checkin in checkins:
        result[str(checkin.habit_id)]["checkins"][format_date(checkin.occurred_on)] = checkin.status
    return result


__all__ = ["heatmap", "summary"]
