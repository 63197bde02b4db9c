"""Shared logging helpers."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .env import get_env_var
from .errors import ConfigurationError

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    level: int = logging.INFO


def get_logging_config() -> LoggingConfig:
    raw = get_env_var("SALESROLLUP_LOG_LEVEL")
    if raw is None:
        return LoggingConfig()
    level = logging.getLevelNamesMapping().get(raw.upper())
    if level is None:
        raise ConfigurationError(f"Unknown log level in SALESROLLUP_LOG_LEVEL: {raw}")
    return LoggingConfig(level=level)


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger once with sensible defaults.

    Parameters mirror ``logging.basicConfig`` with a simplified contract: the level
    falls back to ``SALESROLLUP_LOG_LEVEL`` (INFO when unset) and the format is terse
    enough for CLI output. Pass ``force=True`` to reconfigure during tests.
    """

    effective_level = level if level is not None else get_logging_config().level
    logging.basicConfig(
        level=effective_level,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        force=force,
    )
