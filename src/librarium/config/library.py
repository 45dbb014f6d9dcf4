"""Library ownership defaults."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .env import optional_env_var

DEFAULT_USER_ID: Final[str] = "default-user"


@dataclass(frozen=True, slots=True)
class LibraryConfig:
    default_user_id: str = DEFAULT_USER_ID


def get_library_config() -> LibraryConfig:
    return LibraryConfig(
        default_user_id=optional_env_var("LIBRARIUM_DEFAULT_USER_ID", DEFAULT_USER_ID),
    )
