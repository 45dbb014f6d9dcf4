"""Root logger setup for the CLI."""

from __future__ import annotations

import logging
from typing import Final

from .env import optional_env_var
from .errors import ConfigurationError

LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configured_log_level() -> int:
    """Level named by ``LIBRARIUM_LOG_LEVEL`` (``INFO`` when unset)."""

    name = optional_env_var("LIBRARIUM_LOG_LEVEL", "INFO").upper()
    level = logging.getLevelNamesMapping().get(name)
    if level is None:
        raise ConfigurationError(f"Unknown log level in LIBRARIUM_LOG_LEVEL: {name}")
    return level


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger once; ``force=True`` replaces existing handlers."""

    logging.basicConfig(
        level=configured_log_level() if level is None else level,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        force=force,
    )
