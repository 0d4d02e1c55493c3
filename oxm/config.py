"""
OXM - Configuration

Settings are read from the environment. A ``.env`` file is loaded first when
present; variables already set in the real environment take precedence.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from dotenv import find_dotenv, load_dotenv

from . import constants
from . import exceptions


@dataclass(frozen=True)
class Settings:
    log_level: str = constants.DEFAULT_LOG_LEVEL
    log_file: Optional[Path] = None
    parallel_dispatch: bool = False


def _parse_bool(key: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in constants.TRUE_VALUES:
        return True
    if value in constants.FALSE_VALUES:
        return False
    raise exceptions.ConfigurationError(key, f"expected a boolean, got '{raw}'")


def parse_log_level(key: str, raw: str) -> str:
    """Normalize a level name, rejecting anything loguru does not know."""
    level = raw.strip().upper()
    if level not in constants.VALID_LOG_LEVELS:
        raise exceptions.ConfigurationError(
            key, f"unknown log level '{raw}' (expected one of {', '.join(constants.VALID_LOG_LEVELS)})"
        )
    return level


def load_settings(env_file: Optional[Union[str, Path]] = None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        env_file: Optional path to a dotenv file. Defaults to searching for
            ``.env`` from the current working directory.

    Raises:
        ConfigurationError: if a variable holds an invalid value.
    """
    if env_file is not None:
        load_dotenv(dotenv_path=env_file, override=False)
    else:
        load_dotenv(find_dotenv(usecwd=True), override=False)

    log_level = parse_log_level(
        constants.ENV_LOG_LEVEL,
        os.getenv(constants.ENV_LOG_LEVEL, constants.DEFAULT_LOG_LEVEL),
    )

    raw_log_file = os.getenv(constants.ENV_LOG_FILE)
    log_file = Path(raw_log_file).expanduser() if raw_log_file else None

    parallel_dispatch = _parse_bool(
        constants.ENV_PARALLEL_DISPATCH,
        os.getenv(constants.ENV_PARALLEL_DISPATCH, ""),
    )

    return Settings(
        log_level=log_level,
        log_file=log_file,
        parallel_dispatch=parallel_dispatch,
    )
