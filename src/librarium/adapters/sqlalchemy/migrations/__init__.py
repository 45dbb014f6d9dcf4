"""Alembic entry point for the library schema.

Options come from the ``[tool.alembic]`` table of the project's ``pyproject.toml``
when running from a checkout; an installed package falls back to the revisions
shipped next to this module.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Final

from alembic import command
from alembic.config import Config

from librarium.config import get_database_config

PROJECT_ROOT: Final[Path] = Path(__file__).resolve().parents[5]
PYPROJECT_PATH: Final[Path] = PROJECT_ROOT / "pyproject.toml"
MIGRATIONS_PATH: Final[Path] = Path(__file__).resolve().parent

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


def alembic_options() -> dict[str, str]:
    if not PYPROJECT_PATH.is_file():
        return {}
    with PYPROJECT_PATH.open("rb") as pyproject_file:
        document = tomllib.load(pyproject_file)
    section = document.get("tool", {}).get("alembic", {})
    return {str(key): str(value) for key, value in section.items()}


def script_location(options: dict[str, str]) -> Path:
    configured = options.get("script_location")
    if configured is None:
        return MIGRATIONS_PATH
    path = Path(configured)
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    return path if path.is_dir() else MIGRATIONS_PATH


def upgrade_head(*, engine: Engine | None = None, database_uri: str | None = None) -> None:
    """Migrate ``engine`` (or the database at ``database_uri``) to the latest revision."""

    options = alembic_options()
    config = Config()
    config.set_main_option("script_location", str(script_location(options)))
    for key, value in options.items():
        if key != "script_location":
            config.set_main_option(key, value)

    if engine is None:
        config.set_main_option("sqlalchemy.url", database_uri or get_database_config().uri)
        command.upgrade(config, "head")
        return
    with engine.begin() as connection:
        config.attributes["connection"] = connection
        command.upgrade(config, "head")
