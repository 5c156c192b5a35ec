"""Tests for the Flask CLI commands."""

from __future__ import annotations

from datetime import date

from sqlmodel import select

from streakline.models import Habit


def test_init_db_is_idempotent(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["streakline-init-db"])
    assert result.exit_code == 0
    assert "Database initialized." in result.output


def test_recompute_repairs_stored_streaks(app, api_user):
    services = app.extensions["streakline"]
    user, _ = api_user()
    view = services.habits.create_habit(user.id, name="Read", target_type="daily", start_date="2024-01-01")
    services.coordinator.submit_checkin(view.habit.id, date(2024, 1, 1), "completed")
    services.coordinator.submit_checkin(view.habit.id, date(2024, 1, 2), "completed")

    # Simulate drift in the derived fields.
    with services.session_factory(write=True) as session:
        habit = session.exec(select(Habit).where(Habit.id == view.habit.id)).one()
        habit.current_streak = 0
        session.add(habit)

    result = app.test_cli_runner().invoke(args=["streakline-recompute", "--user-id", str(user.id)])

    assert result.exit_code == 0
    assert f"habit {view.habit.id}: current=2 longest=2" in result.output
    assert "Recomputed 1 habit(s)." in result.output
    assert services.habits.get_habit(view.habit.id, user.id).habit.current_streak == 2
