"""Habit management around the check-in core.

Creating and editing habits is plain CRUD, except that a schedule change
can change which check-ins count, so the new schedule and the recomputed
streaks are written in one coordinator unit of work.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Optional

from ..errors import CheckinValidationError, HabitNotFoundError
from ..infra.repositories.habit import SQLModelHabitRepository
from ..logging_config import get_logger
from ..models.habit import Habit, TargetType, Weekday
from .checkins import CheckinCoordinator
from .dates import format_date, normalize_date

logger = get_logger("habits")

_WEEKDAY_ORDER = [day.value for day in Weekday]


def _validate_target_type(target_type: Any) -> TargetType:
    try:
        return TargetType(target_type)
    except ValueError:
        raise CheckinValidationError("Invalid target type") from None


def _validate_target_days(target_days: Iterable[Any] | None) -> list[str]:
    if target_days is None or isinstance(target_days, str):
        raise CheckinValidationError("Target days are required for custom target type")
    days: list[str] = []
    for raw in target_days:
        try:
            day = Weekday(str(raw).strip().lower()).value
        except ValueError:
            raise CheckinValidationError(f"Unknown target day: {raw!r}") from None
        if day not in days:
            days.append(day)
    if not days:
        raise CheckinValidationError("Target days are required for custom target type")
    return days


@dataclass(frozen=True)
class HabitView:
    """Serializable habit snapshot including its schedule."""

    habit: Habit
    target_days: list[str]

    def to_dict(self) -> dict[str, Any]:
        payload = {
            "id": self.habit.id,
            "name": self.habit.name,
            "target_type": self.habit.target_type,
            "start_date": format_date(self.habit.start_date),
            "current_streak": self.habit.current_streak,
            "longest_streak": self.habit.longest_streak,
            "created_at": self.habit.created_at.isoformat(),
            "updated_at": self.habit.updated_at.isoformat(),
        }
        if self.habit.target_type == TargetType.CUSTOM.value:
            payload["target_days"] = sorted(self.target_days, key=_WEEKDAY_ORDER.index)
        return payload


class HabitService:
    def __init__(self, repository: SQLModelHabitRepository, coordinator: CheckinCoordinator):
        self.repository = repository
        self.coordinator = coordinator

    def _view(self, habit: Habit) -> HabitView:
        days = self.repository.get_target_days(habit.id) if habit.target_type == "custom" else []
        return HabitView(habit=habit, target_days=days)

    def list_habits(self, user_id: int) -> list[HabitView]:
        return [self._view(habit) for habit in self.repository.list_all(user_id=user_id)]

    def get_habit(self, habit_id: int, user_id: int) -> HabitView:
        habit = self.repository.get_by_id(habit_id, user_id=user_id)
        if habit is None:
            raise HabitNotFoundError(habit_id)
        return self._view(habit)

    def create_habit(
        self,
        user_id: int,
        *,
        name: str,
        target_type: TargetType | str,
        start_date: date | str,
        target_days: Optional[Iterable[str]] = None,
    ) -> HabitView:
        if not name or not name.strip():
            raise CheckinValidationError("Name, target type, and start date are required")
        kind = _validate_target_type(target_type)
        days = _validate_target_days(target_days) if kind is TargetType.CUSTOM else []
        habit = Habit(
            name=name.strip(),
            target_type=kind.value,
            start_date=normalize_date(start_date, field="start_date"),
        )
        created = self.repository.create(habit, user_id=user_id, target_days=days)
        logger.info(
            "Habit created",
            extra={"habit_id": created.id, "user_id": user_id, "target_type": kind.value},
        )
        return HabitView(habit=created, target_days=days)

    def update_habit(
        self,
        habit_id: int,
        user_id: int,
        *,
        name: Optional[str] = None,
        target_type: Optional[TargetType | str] = None,
        target_days: Optional[Iterable[str]] = None,
    ) -> HabitView:
        current = self.repository.get_by_id(habit_id, user_id=user_id)
        if current is None:
            raise HabitNotFoundError(habit_id)
        if name is not None and not name.strip():
            raise CheckinValidationError("Name cannot be empty")
        new_name = name.strip() if name is not None else None

        kind = _validate_target_type(target_type) if target_type is not None else TargetType(current.target_type)
        days: Optional[list[str]] = None
        if kind is TargetType.CUSTOM:
            if target_days is not None:
                days = _validate_target_days(target_days)
            elif current.target_type != TargetType.CUSTOM.value:
                raise CheckinValidationError("Target days are required for custom target type")

        previous_days = sorted(self.repository.get_target_days(habit_id))
        schedule_changed = kind.value != current.target_type or (
            days is not None and sorted(days) != previous_days
        )
        if schedule_changed:
            # Schedule and streaks are stored together or not at all.
            updated = self.coordinator.apply_schedule_change(
                habit_id, user_id, kind, days, name=new_name
            )
        else:
            updated = self.repository.update(habit_id, user_id=user_id, name=new_name)
        if updated is None:
            raise HabitNotFoundError(habit_id)
        return self._view(updated)

    def delete_habit(self, habit_id: int, user_id: int) -> None:
        if not self.repository.delete(habit_id, user_id=user_id):
            raise HabitNotFoundError(habit_id)
        logger.info("Habit deleted", extra={"habit_id": habit_id, "user_id": user_id})


__all__ = ["HabitService", "HabitView"]
