"""Tests for the SQLite engine hooks and reader/writer session split."""

from __future__ import annotations

import threading
from datetime import date

from sqlalchemy import event
from sqlmodel import select

from streakline.infra.repositories.checkin import CheckinLedger
from streakline.infra.repositories.habit import lock_habit
from streakline.models import Habit

WAIT = 5


def run_in_thread(target):
    """Start ``target`` in a thread and return (thread, errors)."""
    errors = []

    def runner():
        try:
            target()
        except Exception as exc:  # pragma: no cover - surfaced by the caller's assertion
            errors.append(exc)

    thread = threading.Thread(target=runner, daemon=True)
    thread.start()
    return thread, errors


class TestEngineHooks:
    def test_journal_mode_is_wal(self, db_engine):
        with db_engine.connect() as connection:
            assert connection.exec_driver_sql("PRAGMA journal_mode").scalar() == "wal"

    def test_foreign_keys_enabled(self, db_engine):
        with db_engine.connect() as connection:
            assert connection.exec_driver_sql("PRAGMA foreign_keys").scalar() == 1

    def test_only_writers_begin_immediate(self, db_engine, session_factory):
        statements = []

        def record(conn, cursor, statement, parameters, context, executemany):
            if statement.startswith("BEGIN"):
                statements.append(statement)

        event.listen(db_engine, "before_cursor_execute", record)
        try:
            with session_factory() as session:
                session.exec(select(Habit)).all()
            with session_factory(write=True) as session:
                session.exec(select(Habit)).all()
        finally:
            event.remove(db_engine, "before_cursor_execute", record)

        assert statements == ["BEGIN", "BEGIN IMMEDIATE"]


class TestReadersAndWriters:
    def test_read_finishes_while_other_habit_unit_of_work_is_open(
        self, session_factory, habit_factory, load_habit
    ):
        """A read on one habit completes while another habit's write transaction is still open."""
        first = habit_factory(name="Read")
        second = habit_factory(name="Run")
        writing = threading.Event()
        release = threading.Event()

        def hold_unit_of_work():
            with session_factory(write=True) as session:
                habit = lock_habit(session, first.id)
                CheckinLedger(session).upsert(habit.id, date(2024, 1, 1), "completed")
                session.flush()
                writing.set()
                release.wait(WAIT)

        writer, writer_errors = run_in_thread(hold_unit_of_work)
        try:
            assert writing.wait(WAIT)
            seen = []
            reader, reader_errors = run_in_thread(lambda: seen.append(load_habit(second.id)))
            reader.join(WAIT)

            assert not reader.is_alive()
            assert reader_errors == []
            assert seen[0].name == "Run"
        finally:
            release.set()
            writer.join(WAIT)
        assert writer_errors == []

    def test_open_reader_does_not_block_checkin(self, session_factory, coordinator, habit_factory, load_habit):
        """A long-lived reader session on one habit does not hold up a check-in on another."""
        first = habit_factory(name="Read")
        second = habit_factory(name="Run")

        with session_factory() as session:
            assert session.get(Habit, first.id).name == "Read"

            results = []
            writer, errors = run_in_thread(
                lambda: results.append(coordinator.submit_checkin(second.id, date(2024, 1, 1), "completed"))
            )
            writer.join(WAIT)

            assert not writer.is_alive()
            assert errors == []
            assert results[0].current_streak == 1

        assert load_habit(second.id).current_streak == 1
