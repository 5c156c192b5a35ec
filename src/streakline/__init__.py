"""Streakline application factory."""

from __future__ import annotations

from importlib import import_module
from typing import Iterable

from flask import Flask

from .config import BaseConfig, DevConfig, TestConfig

_CONFIG_MAP = {
    "development": DevConfig,
    "testing": TestConfig,
    "default": BaseConfig,
}


def _resolve_config(name: str | None) -> type[BaseConfig]:
    """Return the config class for the provided environment name."""

    if not name:
        return BaseConfig
    return _CONFIG_MAP.get(name.lower(), BaseConfig)


def _blueprint_paths() -> Iterable[str]:
    """Yield blueprint import paths registered on every app."""

    yield "streakline.blueprints.users"
    yield "streakline.blueprints.habits"
    yield "streakline.blueprints.checkins"
    yield "streakline.blueprints.analytics"


def create_app(config_name: str | None = None, *, config: BaseConfig | None = None) -> Flask:
    """Create and configure the Flask application instance."""

    app = Flask(__name__, instance_relative_config=True)
    # Collection routes answer with and without a trailing slash.
    app.url_map.strict_slashes = False
    config_obj = config or _resolve_config(config_name)()
    app.config.from_object(config_obj)
    app.config["STREAKLINE_CONFIG"] = config_obj

    # Imported lazily so model classes can be used without building an app.
    from .blueprints.common import register_error_handlers
    from .cli import init_app as init_cli
    from .extensions import init_db
    from .logging_config import setup_logging

    setup_logging(config_obj)
    init_db(app)
    _register_blueprints(app)
    register_error_handlers(app)
    init_cli(app)

    return app


def _register_blueprints(app: Flask) -> None:
    """Import and register all blueprints declared in `_blueprint_paths`."""

    for dotted_path in _blueprint_paths():
        module = import_module(dotted_path)
        blueprint = getattr(module, "bp")
        app.register_blueprint(blueprint)


__all__ = ["BaseConfig", "DevConfig", "TestConfig", "create_app"]
