"""Batch check-in request model."""

from __future__ import annotations

import datetime as dt
from typing import Any, Optional

from pydantic import BaseModel, field_validator, model_validator

from ...services.checkins import BatchEntry, validate_status
from ...services.dates import normalize_date


class BatchUpdateForm(BaseModel):
    habit_id: Optional[int] = None
    status: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def check_status(cls, value: Any) -> Any:
        if value in (None, ""):
            return None
        return validate_status(value)

    @model_validator(mode="after")
    def require_fields(self) -> "BatchUpdateForm":
        if not self.habit_id or self.habit_id <= 0 or self.status is None:
            raise ValueError("Each update must include habit_id and status")
        return self


class BatchCheckinForm(BaseModel):
    """One date plus a status per habit."""

    date: Optional[dt.date] = None
    updates: Optional[list[BatchUpdateForm]] = None

    @field_validator("date", mode="before")
    @classmethod
    def normalize_batch_date(cls, value: Any) -> Optional[dt.date]:
        if value in (None, ""):
            return None
        return normalize_date(value)

    @model_validator(mode="after")
    def require_fields(self) -> "BatchCheckinForm":
        if self.date is None or not self.updates:
            raise ValueError("Date and updates array are required")
        return self

    def entries(self) -> list[BatchEntry]:
        return [BatchEntry(habit_id=item.habit_id, status=item.status) for item in self.updates or []]


__all__ = ["BatchCheckinForm", "BatchUpdateForm"]
