"""Streak engine: derive current and longest streaks from a habit's check-in ledger."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Iterable, Sequence

from sqlmodel import Session

from ..infra.repositories.checkin import CheckinLedger
from ..infra.repositories.habit import load_target_days
from ..logging_config import get_logger
from ..models.checkin import Checkin
from ..models.habit import Habit
from .schedule import ScheduleResolver

logger = get_logger("streaks")

TargetDayPredicate = Callable[[date], bool]


@dataclass(frozen=True)
class StreakResult:
    current_streak: int
    longest_streak: int

    def to_dict(self) -> dict[str, int]:
        return {"current_streak": self.current_streak, "longest_streak": self.longest_streak}


def current_streak(history: Iterable[Checkin], is_target_day: TargetDayPredicate) -> int:
    """Count completed target-day check-ins from the newest record backward.

    ``history`` must be ordered newest first. A missed target day ends the
    walk; records on non-target days neither extend nor break the streak.
    Calendar days without any record are not consulted.
    """

    streak = 0
    for checkin in history:
        if not is_target_day(checkin.occurred_on):
            continue
        if not checkin.is_completed:
            break
        streak += 1
    return streak


def longest_completed_run(history: Iterable[Checkin]) -> int:
    """Return the longest run of completed check-ins on consecutive calendar days.

    The schedule is not consulted here: a weekend gap splits a run even for
    a weekdays habit.
    """

    days = sorted({c.occurred_on for c in history if c.is_completed})
    longest = 0
    run = 0
    last_day: date | None = None
    for day in days:
        if last_day is not None and day == last_day + timedelta(days=1):
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        last_day = day
    return longest


def compute_streaks(
    history: Sequence[Checkin],
    is_target_day: TargetDayPredicate,
    *,
    previous_longest: int = 0,
) -> StreakResult:
    """Return (current, longest) for a full history ordered newest first.

    The longest streak never drops below ``previous_longest``.
    """

    current = current_streak(history, is_target_day)
    longest = max(previous_longest, current, longest_completed_run(history))
    return StreakResult(current_streak=current, longest_streak=longest)


def recompute(session: Session, habit: Habit) -> StreakResult:
    """Recompute and store the streak fields for ``habit`` from its full history.

    Must run inside the caller's unit of work; the habit row is expected to
    be locked already. Changes are flushed, not committed.
    """

    resolver = ScheduleResolver.for_schedule(
        habit.target_type, load_target_days(session, habit.id)
    )
    history = CheckinLedger(session).history(habit.id)
    result = compute_streaks(history, resolver, previous_longest=habit.longest_streak or 0)

    habit.current_streak = result.current_streak
    habit.longest_streak = result.longest_streak
    habit.updated_at = datetime.now(timezone.utc)
    session.add(habit)
    session.flush()

    logger.info(
        "Recomputed streaks",
        extra={
            "habit_id": habit.id,
            "checkins": len(history),
            "current_streak": result.current_streak,
            "longest_streak": result.longest_streak,
        },
    )
    return result


__all__ = [
    "StreakResult",
    "compute_streaks",
    "current_streak",
    "longest_completed_run",
    "recompute",
]
