"""Activity feed synthesized from habit and check-in rows.

Three event kinds are derived: ``habit_created`` (from each habit's
creation time), ``streak_milestone`` (habits whose current streak reached
``MILESTONE_STREAK``) and ``habit_completed`` (completed check-ins). Events
are merged newest first. Nothing is stored; the feed is rebuilt per request.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any, Optional

from sqlmodel import col, select

from ..errors import CheckinValidationError
from ..infra.database import SessionFactory
from ..infra.repositories.checkin import CheckinLedger
from ..models.habit import Habit
from .dates import format_date

DEFAULT_LIMIT = 5
LIST_LIMIT = 20
TYPE_LIMIT = 10
TYPE_SCAN_LIMIT = 50
MAX_LIMIT = 100
MILESTONE_STREAK = 7

HABIT_COMPLETED = "habit_completed"
STREAK_MILESTONE = "streak_milestone"
HABIT_CREATED = "habit_created"

# Accepted by the type filter; only the first three are produced today.
ACTIVITY_TYPES = (
    HABIT_COMPLETED,
    STREAK_MILESTONE,
    HABIT_CREATED,
    "habit_updated",
    "habit_deleted",
    "reminder",
)


def _clamp(limit: int) -> int:
    return max(1, min(int(limit), MAX_LIMIT))


def _as_utc(value: datetime | date) -> datetime:
    """Return an aware UTC datetime; calendar dates map to their midnight."""

    if not isinstance(value, datetime):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    # SQLite hands back naive values for UTC columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _event(
    event_id: str,
    kind: str,
    title: str,
    description: str,
    when: datetime,
    habit_id: int,
    habit_name: str,
    **extra: Any,
) -> dict[str, Any]:
    return {
        "id": event_id,
        "type": kind,
        "title": title,
        "description": description,
        "timestamp": when.isoformat(),
        "related_id": habit_id,
        "related_name": habit_name,
        **extra,
    }


def _created_event(habit: Habit) -> tuple[datetime, dict[str, Any]]:
    when = _as_utc(habit.created_at)
    return when, _event(
        f"habit-{habit.id}-created",
        HABIT_CREATED,
        "New habit created",
        f"Started tracking '{habit.name}'",
        when,
        habit.id,
        habit.name,
    )


def _milestone_event(habit: Habit) -> tuple[datetime, dict[str, Any]]:
    # updated_at is refreshed by every recompute that produced this streak
    when = _as_utc(habit.updated_at)
    return when, _event(
        f"habit-{habit.id}-streak-{habit.current_streak}",
        STREAK_MILESTONE,
        "New streak milestone",
        f"{habit.current_streak}-day streak achieved for '{habit.name}'",
        when,
        habit.id,
        habit.name,
        streak_count=habit.current_streak,
    )


def _completed_event(habit_id: int, habit_name: str, on: date) -> tuple[datetime, dict[str, Any]]:
    when = _as_utc(on)
    return when, _event(
        f"habit-{habit_id}-completed-{format_date(on)}",
        HABIT_COMPLETED,
        "Habit completed",
        f"'{habit_name}' marked as completed",
        when,
        habit_id,
        habit_name,
    )


def build_feed(session_factory: SessionFactory, user_id: int, limit: int) -> list[dict[str, Any]]:
    """Merge every event kind for one user, newest first, capped at ``limit``."""

    limit = _clamp(limit)
    with session_factory() as session:
        habits = list(
            session.exec(
                select(Habit)
                .where(Habit.user_id == user_id)
                .order_by(col(Habit.created_at).desc(), col(Habit.id).desc())
            ).all()
        )
        completions = CheckinLedger(session).recent_completed_for_user(user_id, limit)

        events = [_created_event(habit) for habit in habits[:limit]]
        milestones = [habit for habit in habits if habit.current_streak >= MILESTONE_STREAK]
        events.extend(_milestone_event(habit) for habit in milestones[:limit])
        events.extend(
            _completed_event(checkin.habit_id, habit_name, checkin.occurred_on)
            for checkin, habit_name in completions
        )

    events.sort(key=lambda pair: pair[0], reverse=True)
    return [payload for _, payload in events[:limit]]


def recent_activity(
    session_factory: SessionFactory, user_id: int, limit: int = DEFAULT_LIMIT
) -> list[dict[str, Any]]:
    """Return the user's latest events."""

    return build_feed(session_factory, user_id, limit)


def all_activity(
    session_factory: SessionFactory, user_id: int, limit: int = LIST_LIMIT
) -> list[dict[str, Any]]:
    return build_feed(session_factory, user_id, limit)


def activity_by_type(
    session_factory: SessionFactory,
    user_id: int,
    kind: str,
    limit: Optional[int] = None,
) -> list[dict[str, Any]]:
    """Return up to ``limit`` events of one kind taken from the latest events.

    Raises:
        CheckinValidationError: ``kind`` is not a known activity type.
    """

    if kind not in ACTIVITY_TYPES:
        raise CheckinValidationError("Invalid activity type")
    limit = _clamp(TYPE_LIMIT if limit is None else limit)
    events = build_feed(session_factory, user_id, TYPE_SCAN_LIMIT)
    return [event for event in events if event["type"] == kind][:limit]


__all__ = [
    "ACTIVITY_TYPES",
    "activity_by_type",
    "all_activity",
    "build_feed",
    "recent_activity",
]
