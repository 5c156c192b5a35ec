"""Pytest configuration and shared fixtures for Streakline tests.

This module provides database fixtures, test data factories, and helper utilities
for testing the streak engine, the check-in ledger and the HTTP layer against an
isolated SQLite file per test.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

import pytest
from sqlmodel import select

from streakline import create_app
from streakline.config import TestConfig
from streakline.infra.database import create_db_engine, create_session_factory, init_database
from streakline.models import Checkin, Habit, HabitTargetDay, User
from streakline.services.checkins import CheckinCoordinator, HabitLockRegistry

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def app_config(tmp_path, monkeypatch) -> TestConfig:
    """Configuration pointing the data dir (database + logs) at a temp directory."""

    monkeypatch.setenv("STREAKLINE_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("STREAKLINE_DATABASE_URL", raising=False)
    monkeypatch.setenv("STREAKLINE_SQLITE_BUSY_TIMEOUT", "10")
    return TestConfig()


@pytest.fixture(scope="function")
def db_engine(app_config):
    """Create an isolated SQLite database file for each test.

    Uses the same engine hooks as the application (pragmas, writer BEGIN IMMEDIATE).

    Yields:
        Engine: SQLModel engine connected to test database
    """
    engine = create_db_engine(app_config)
    init_database(engine)

    yield engine

    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory yielding committed-on-exit sessions, as repositories expect."""

    return create_session_factory(db_engine)


@pytest.fixture
def coordinator(session_factory) -> CheckinCoordinator:
    return CheckinCoordinator(session_factory, locks=HabitLockRegistry())


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def user_factory(session_factory):
    """Factory for creating users without going through password hashing."""

    def _create_user(username: str = "tester") -> User:
        with session_factory(write=True) as session:
            user = User(username=username, password_hash="dummy-hash")
            session.add(user)
            session.flush()
            session.refresh(user)
            session.expunge(user)
        return user

    return _create_user


@pytest.fixture
def user(user_factory) -> User:
    """Create a default user for scoping data."""

    return user_factory("tester")


@pytest.fixture
def habit_factory(session_factory, user):
    """Factory for creating test habits.

    Returns:
        Callable: Function that creates and persists Habit instances
    """

    def _create_habit(
        name: str = "Test Habit",
        target_type: str = "daily",
        target_days: Iterable[str] = (),
        start_date: date = date(2024, 1, 1),
        owner: User | None = None,
    ) -> Habit:
        """Create a test habit with sensible defaults.

        Args:
            name: Habit name
            target_type: 'daily', 'weekdays' or 'custom'
            target_days: Weekday symbols for custom habits (may be empty on purpose)
            start_date: First tracked day
            owner: Owning user (defaults to the ``user`` fixture)

        Returns:
            Habit: Persisted habit instance
        """
        owner = owner or user
        with session_factory(write=True) as session:
            habit = Habit(
                user_id=owner.id,
                name=name,
                target_type=target_type,
                start_date=start_date,
            )
            session.add(habit)
            session.flush()
            for day in target_days:
                session.add(HabitTargetDay(habit_id=habit.id, day=day))
            session.flush()
            session.refresh(habit)
            session.expunge(habit)
        return habit

    return _create_habit


# =============================================================================
# Helper Utilities
# =============================================================================


@pytest.fixture
def load_habit(session_factory):
    """Re-read a habit row from the database."""

    def _load(habit_id: int) -> Habit | None:
        with session_factory() as session:
            habit = session.get(Habit, habit_id)
            if habit is not None:
                session.expunge(habit)
            return habit

    return _load


@pytest.fixture
def load_checkins(session_factory):
    """Return all check-in rows for a habit, ascending by date."""

    def _load(habit_id: int) -> list[Checkin]:
        with session_factory() as session:
            rows = list(
                session.exec(
                    select(Checkin).where(Checkin.habit_id == habit_id).order_by(Checkin.occurred_on)
                ).all()
            )
            session.expunge_all()
            return rows

    return _load


@pytest.fixture
def app(app_config):
    application = create_app(config=app_config)
    yield application
    application.extensions["streakline"].engine.dispose()


@pytest.fixture
def client(app):
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture
def api_user(app):
    """Register a user through the app's own repository and return auth headers."""

    def _create(username: str = "api-user") -> tuple[User, dict[str, str]]:
        repo = app.extensions["streakline"].users
        created = repo.create(User(username=username, password_hash="dummy-hash"))
        return created, {"X-User-Id": str(created.id)}

    return _create
