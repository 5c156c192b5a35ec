"""Flask CLI commands for Streakline."""

from __future__ import annotations

import click


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("streakline-init-db")
    def streakline_init_db() -> None:
        """Create database tables."""

        from .extensions import get_services
        from .infra.database import init_database

        init_database(get_services().engine)
        click.echo("Database initialized.")

    @app.cli.command("streakline-recompute")
    @click.option("--user-id", type=int, default=None, help="Only recompute this user's habits")
    def streakline_recompute(user_id: int | None) -> None:
        """Recompute stored streaks from the check-in ledger."""

        from .extensions import get_services

        results = get_services().coordinator.recompute_all(user_id=user_id)
        for habit_id, streaks in results.items():
            click.echo(
                f"habit {habit_id}: current={streaks.current_streak} longest={streaks.longest_streak}"
            )
        click.echo(f"Recomputed {len(results)} habit(s).")
