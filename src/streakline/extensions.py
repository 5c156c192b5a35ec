"""Database and service wiring for the Flask app."""

from __future__ import annotations

from dataclasses import dataclass

from flask import Flask, current_app
from sqlalchemy.engine import Engine

from .config import BaseConfig
from .infra.database import SessionFactory, bootstrap_database
from .infra.repositories import SQLModelCheckinRepository, SQLModelHabitRepository, SQLModelUserRepository
from .services.checkins import CheckinCoordinator, HabitLockRegistry
from .services.habits import HabitService

EXTENSION_KEY = "streakline"


@dataclass
class Services:
    """Per-app engine, session factory and the objects built on them."""

    engine: Engine
    session_factory: SessionFactory
    coordinator: CheckinCoordinator
    habits: HabitService
    checkins: SQLModelCheckinRepository
    users: SQLModelUserRepository


def build_services(config: BaseConfig) -> Services:
    engine, session_factory = bootstrap_database(config)
    coordinator = CheckinCoordinator(session_factory, locks=HabitLockRegistry())
    return Services(
        engine=engine,
        session_factory=session_factory,
        coordinator=coordinator,
        habits=HabitService(SQLModelHabitRepository(session_factory), coordinator),
        checkins=SQLModelCheckinRepository(session_factory),
        users=SQLModelUserRepository(session_factory),
    )


def init_db(app: Flask) -> None:
    """Initialize the engine and services using configuration from the app."""

    config: BaseConfig = app.config["STREAKLINE_CONFIG"]
    # Sessions are scoped to each unit of work; nothing is held per request.
    app.extensions[EXTENSION_KEY] = build_services(config)


def get_services() -> Services:
    """Return the services registered on the current app."""

    services = current_app.extensions.get(EXTENSION_KEY)
    if services is None:  # pragma: no cover - exercised only on misconfigured apps
        raise RuntimeError("Database engine not initialized")
    return services
