"""Service layer: schedule resolution, streak engine, check-in coordinator and readers.

Submodules are imported explicitly by callers; the repository layer depends
on ``services.dates`` so nothing is imported eagerly here.
"""

__all__ = [
    "activity",
    "analytics",
    "auth",
    "checkins",
    "dates",
    "habits",
    "schedule",
    "streaks",
]
