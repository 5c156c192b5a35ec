"""Habit and check-in request models."""

from __future__ import annotations

import datetime as dt
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ...models.habit import TargetType
from ...services.checkins import validate_status
from ...services.dates import normalize_date


def _optional_date(value: Any, field: str) -> Optional[dt.date]:
    if value is None or value == "":
        return None
    return normalize_date(value, field=field)


class HabitCreateForm(BaseModel):
    """Payload for creating a habit."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(default="", max_length=100)
    target_type: Optional[TargetType] = None
    start_date: Optional[dt.date] = None
    target_days: Optional[list[str]] = None

    @field_validator("target_type", mode="before")
    @classmethod
    def check_target_type(cls, value: Any) -> Any:
        if value in (None, ""):
            return None
        if value not in [kind.value for kind in TargetType]:
            raise ValueError("Invalid target type")
        return value

    @field_validator("start_date", mode="before")
    @classmethod
    def normalize_start_date(cls, value: Any) -> Optional[dt.date]:
        return _optional_date(value, "start_date")

    @model_validator(mode="after")
    def require_fields(self) -> "HabitCreateForm":
        if not self.name or self.target_type is None or self.start_date is None:
            raise ValueError("Name, target type, and start date are required")
        if self.target_type is TargetType.CUSTOM and not self.target_days:
            raise ValueError("Target days are required for custom target type")
        return self


class HabitUpdateForm(BaseModel):
    """Partial update; omitted fields keep their current value."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, max_length=100)
    target_type: Optional[TargetType] = None
    target_days: Optional[list[str]] = None

    @field_validator("target_type", mode="before")
    @classmethod
    def check_target_type(cls, value: Any) -> Any:
        if value is not None and value not in [kind.value for kind in TargetType]:
            raise ValueError("Invalid target type")
        return value


class CheckinForm(BaseModel):
    """Single check-in submission."""

    date: Optional[dt.date] = None
    status: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def normalize_checkin_date(cls, value: Any) -> Optional[dt.date]:
        return _optional_date(value, "date")

    @field_validator("status", mode="before")
    @classmethod
    def check_status(cls, value: Any) -> Any:
        if value in (None, ""):
            return None
        return validate_status(value)

    @model_validator(mode="after")
    def require_fields(self) -> "CheckinForm":
        if self.date is None or self.status is None:
            raise ValueError("Date and status are required")
        return self


class CheckinRangeQuery(BaseModel):
    """Query string for listing check-ins; missing bounds default to the current month."""

    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def normalize_bounds(cls, value: Any, info) -> Optional[dt.date]:
        return _optional_date(value, info.field_name)

    @model_validator(mode="after")
    def check_order(self) -> "CheckinRangeQuery":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


__all__ = ["CheckinForm", "CheckinRangeQuery", "HabitCreateForm", "HabitUpdateForm"]
