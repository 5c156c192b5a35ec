"""Check-in transaction coordinator.

Every write to the check-in ledger and every write to a habit's derived
streak fields happens here, inside one unit of work: a per-habit process
lock, a database transaction, a row lock on each affected habit, the ledger
upsert(s), the streak recompute(s) and a single commit. Any failure rolls
the whole unit back, so the ledger and the stored streaks never diverge.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, Iterator, Optional, Sequence

from sqlmodel import Session, select

from ..errors import CheckinTransactionError, CheckinValidationError, HabitNotFoundError, StreaklineError
from ..infra.database import SessionFactory
from ..infra.repositories.checkin import CheckinLedger
from ..infra.repositories.habit import lock_habit, replace_target_days
from ..logging_config import get_logger
from ..models.checkin import CheckinStatus
from ..models.habit import Habit, TargetType
from .dates import normalize_date
from .streaks import StreakResult, recompute

logger = get_logger("checkins")


def validate_status(status: Any) -> str:
    """Return the canonical status value or raise ``CheckinValidationError``."""

    try:
        return CheckinStatus(status).value
    except ValueError:
        raise CheckinValidationError(
            'Status must be either "completed" or "missed"'
        ) from None


@dataclass(frozen=True)
class BatchEntry:
    habit_id: int
    status: str

    @classmethod
    def parse(cls, raw: "BatchEntry | Mapping[str, Any]") -> "BatchEntry":
        if isinstance(raw, BatchEntry):
            habit_id, status = raw.habit_id, raw.status
        elif isinstance(raw, Mapping):
            habit_id, status = raw.get("habit_id"), raw.get("status")
        else:
            raise CheckinValidationError("Each update must include habit_id and status")
        if isinstance(habit_id, bool) or not isinstance(habit_id, int) or habit_id <= 0:
            raise CheckinValidationError("Each update must include habit_id and status")
        return cls(habit_id=habit_id, status=validate_status(status))


@dataclass
class BatchResult:
    updated_habit_ids: list[int] = field(default_factory=list)
    streak_by_habit_id: dict[int, int] = field(default_factory=dict)
    longest_by_habit_id: dict[int, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "updated_habit_ids": list(self.updated_habit_ids),
            "streaks": {str(key): value for key, value in self.streak_by_habit_id.items()},
        }


class _LockEntry:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.holders = 0


class HabitLockRegistry:
    """Process-local exclusive locks keyed by habit id.

    Locks for several habits are always taken in ascending id order, so two
    batches touching overlapping habits cannot deadlock. Entries are dropped
    once nobody holds or waits on them.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[int, _LockEntry] = {}

    def _checkout(self, habit_ids: Sequence[int]) -> list[_LockEntry]:
        with self._guard:
            entries = []
            for habit_id in habit_ids:
                entry = self._entries.setdefault(habit_id, _LockEntry())
                entry.holders += 1
                entries.append(entry)
            return entries

    def _release(self, habit_ids: Sequence[int]) -> None:
        with self._guard:
            for habit_id in habit_ids:
                entry = self._entries.get(habit_id)
                if entry is None:
                    continue
                entry.holders -= 1
                if entry.holders <= 0:
                    del self._entries[habit_id]

    @contextmanager
    def hold(self, habit_ids: Iterable[int]) -> Iterator[None]:
        ordered = sorted(set(habit_ids))
        entries = self._checkout(ordered)
        acquired: list[_LockEntry] = []
        try:
            for entry in entries:
                entry.lock.acquire()
                acquired.append(entry)
            yield
        finally:
            for entry in reversed(acquired):
                entry.lock.release()
            self._release(ordered)

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)


_DEFAULT_LOCKS = HabitLockRegistry()


class CheckinCoordinator:
    """Owns the unit of work around ledger writes and streak recomputes."""

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        locks: Optional[HabitLockRegistry] = None,
    ) -> None:
        self.session_factory = session_factory
        self.locks = locks if locks is not None else _DEFAULT_LOCKS

    @contextmanager
    def _unit_of_work(self, operation: str, **context: Any) -> Iterator[Session]:
        try:
            with self.session_factory(write=True) as session:
                yield session
        except StreaklineError:
            raise
        except Exception as exc:
            logger.warning(
                "Rolled back check-in unit of work",
                exc_info=True,
                extra={"operation": operation, **context},
            )
            raise CheckinTransactionError(f"{operation} failed; no changes were saved") from exc

    def submit_checkin(
        self,
        habit_id: int,
        on: date | datetime | str,
        status: CheckinStatus | str,
        *,
        user_id: int | None = None,
    ) -> StreakResult:
        """Record one check-in and return the habit's refreshed streaks.

        Raises:
            CheckinValidationError: bad status or date; nothing is touched.
            HabitNotFoundError: habit missing (or not owned by ``user_id``).
            CheckinTransactionError: storage failure; the unit was rolled back.
        """

        day = normalize_date(on)
        value = validate_status(status)

        with self.locks.hold([habit_id]):
            with self._unit_of_work("submit_checkin", habit_id=habit_id) as session:
                habit = lock_habit(session, habit_id, user_id=user_id)
                if habit is None:
                    raise HabitNotFoundError(habit_id)
                CheckinLedger(session).upsert(habit.id, day, value)
                result = recompute(session, habit)

        logger.info(
            "Check-in recorded",
            extra={"habit_id": habit_id, "date": day.isoformat(), "status": value},
        )
        return result

    def submit_batch(
        self,
        on: date | datetime | str,
        updates: Iterable[BatchEntry | Mapping[str, Any]],
        user_id: int,
    ) -> BatchResult:
        """Record one date's check-ins for several habits in a single unit of work.

        Entries for habits the user does not own (or that do not exist) are
        skipped. Successful entries commit together or not at all.
        """

        day = normalize_date(on)
        entries = [BatchEntry.parse(raw) for raw in updates]
        if not entries:
            raise CheckinValidationError("Date and updates array are required")

        result = BatchResult()
        with self.locks.hold(entry.habit_id for entry in entries):
            with self._unit_of_work("submit_batch", user_id=user_id, entries=len(entries)) as session:
                ledger = CheckinLedger(session)
                for entry in entries:
                    habit = lock_habit(session, entry.habit_id, user_id=user_id)
                    if habit is None:
                        logger.info(
                            "Skipped batch entry for habit not owned by user",
                            extra={"habit_id": entry.habit_id, "user_id": user_id},
                        )
                        continue
                    ledger.upsert(habit.id, day, entry.status)
                    streaks = recompute(session, habit)
                    if entry.habit_id not in result.streak_by_habit_id:
                        result.updated_habit_ids.append(entry.habit_id)
                    result.streak_by_habit_id[entry.habit_id] = streaks.current_streak
                    result.longest_by_habit_id[entry.habit_id] = streaks.longest_streak

        logger.info(
            "Batch check-in recorded",
            extra={
                "user_id": user_id,
                "date": day.isoformat(),
                "requested": len(entries),
                "updated": len(result.updated_habit_ids),
            },
        )
        return result

    def recompute_habit(self, habit_id: int, *, user_id: int | None = None) -> StreakResult:
        """Recompute stored streaks without writing a check-in (e.g. after a schedule change)."""

        with self.locks.hold([habit_id]):
            with self._unit_of_work("recompute_habit", habit_id=habit_id) as session:
                habit = lock_habit(session, habit_id, user_id=user_id)
                if habit is None:
                    raise HabitNotFoundError(habit_id)
                return recompute(session, habit)

    def apply_schedule_change(
        self,
        habit_id: int,
        user_id: int,
        target_type: TargetType | str,
        target_days: Optional[Iterable[str]] = None,
        *,
        name: Optional[str] = None,
    ) -> Habit:
        """Store a new schedule and the streaks it implies in one unit of work.

        ``target_days`` replaces the custom day set when given; switching to a
        non-custom schedule clears it. Returns the updated, detached habit.
        """

        kind = TargetType(target_type)
        with self.locks.hold([habit_id]):
            with self._unit_of_work("apply_schedule_change", habit_id=habit_id) as session:
                habit = lock_habit(session, habit_id, user_id=user_id)
                if habit is None:
                    raise HabitNotFoundError(habit_id)
                if name is not None:
                    habit.name = name
                habit.target_type = kind.value
                if kind is not TargetType.CUSTOM:
                    replace_target_days(session, habit.id, ())
                elif target_days is not None:
                    replace_target_days(session, habit.id, target_days)
                recompute(session, habit)

        logger.info(
            "Habit schedule changed",
            extra={"habit_id": habit_id, "target_type": kind.value},
        )
        return habit

    def recompute_all(self, *, user_id: int | None = None) -> dict[int, StreakResult]:
        """Recompute every habit (optionally one user's), each in its own unit of work."""

        with self.session_factory() as session:
            statement = select(Habit.id)
            if user_id is not None:
                statement = statement.where(Habit.user_id == user_id)
            habit_ids = list(session.exec(statement.order_by(Habit.id)).all())

        results: dict[int, StreakResult] = {}
        for habit_id in habit_ids:
            try:
                results[habit_id] = self.recompute_habit(habit_id)
            except HabitNotFoundError:
                # Deleted since the id list was read.
                continue
        return results


__all__ = [
    "BatchEntry",
    "BatchResult",
    "CheckinCoordinator",
    "HabitLockRegistry",
    "validate_status",
]
