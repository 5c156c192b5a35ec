"""Schedule resolution: is a given calendar date a target day for a habit?"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable

from ..models.habit import TargetType, Weekday

WEEKDAYS = frozenset({Weekday.MON, Weekday.TUE, Weekday.WED, Weekday.THU, Weekday.FRI})
ALL_DAYS = frozenset(Weekday)


def resolve_target_days(
    target_type: TargetType | str, target_days: Iterable[Weekday | str] = ()
) -> frozenset[Weekday]:
    """Return the weekdays that count as on-schedule for the given schedule.

    ``target_days`` is only consulted for custom schedules. Unknown symbols
    in it are ignored; an empty custom set means no day is ever a target.
    """

    kind = TargetType(target_type)
    if kind is TargetType.DAILY:
        return ALL_DAYS
    if kind is TargetType.WEEKDAYS:
        return WEEKDAYS
    resolved = set()
    for day in target_days:
        try:
            resolved.add(Weekday(day))
        except ValueError:
            continue
    return frozenset(resolved)


def is_target_day(
    target_type: TargetType | str, target_days: Iterable[Weekday | str], on: date
) -> bool:
    """Answer whether ``on`` is a target day for the schedule."""

    return Weekday.of(on) in resolve_target_days(target_type, target_days)


@dataclass(frozen=True)
class ScheduleResolver:
    """A habit's schedule, resolved once and queried per date."""

    target_type: TargetType
    days: frozenset[Weekday]

    @classmethod
    def for_schedule(
        cls, target_type: TargetType | str, target_days: Iterable[Weekday | str] = ()
    ) -> "ScheduleResolver":
        kind = TargetType(target_type)
        return cls(target_type=kind, days=resolve_target_days(kind, target_days))

    def __call__(self, on: date) -> bool:
        return Weekday.of(on) in self.days


__all__ = [
    "ALL_DAYS",
    "ScheduleResolver",
    "WEEKDAYS",
    "is_target_day",
    "resolve_target_days",
]
