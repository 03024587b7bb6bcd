"""
Runtime configuration for the Fridge Tracker inventory core.

Settings come from the environment:
- FRIDGE_TRACKER_ENV: "production" (default) keeps the database under
  ~/Documents/FridgeTracker, "development" under the project's data/ folder
- FRIDGE_TRACKER_DATABASE_URL: full SQLAlchemy URL, overrides the file location
- FRIDGE_TRACKER_COOKED_EXPIRY_DAYS: shelf life of cooked dishes in days
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .constants import (
    DATABASE_FILENAME,
    DEFAULT_COOKED_EXPIRY_DAYS,
    ENV_VAR_COOKED_EXPIRY_DAYS,
    ENV_VAR_DATABASE_URL,
    ENV_VAR_ENVIRONMENT,
)

logger = logging.getLogger(__name__)


def _read_non_negative_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        value = -1
    if value < 0:
        logger.warning(f"Ignoring invalid {name}={raw!r}; using default of {default}")
        return default
    return value


class Config:
    """Settings resolved once per process (see get_config())."""

    def __init__(self, environment: str = "production"):
        self.environment = environment

        if environment == "development":
            data_dir = Path(__file__).resolve().parent.parent.parent / "data"
        else:
            data_dir = Path.home() / "Documents" / "FridgeTracker"

        self._data_dir = data_dir
        self._database_path = data_dir / DATABASE_FILENAME
        self._database_url_override = os.environ.get(ENV_VAR_DATABASE_URL)
        self._cooked_expiry_days = _read_non_negative_int(
            ENV_VAR_COOKED_EXPIRY_DAYS, DEFAULT_COOKED_EXPIRY_DAYS
        )

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def database_path(self) -> Path:
        """SQLite file used when no URL override is set."""
        return self._database_path

    @property
    def database_url(self) -> str:
        """SQLAlchemy URL: the environment override, else the SQLite file."""
        if self._database_url_override:
            return self._database_url_override
        return f"sqlite:///{self._database_path.as_posix()}"

    @property
    def cooked_expiry_days(self) -> int:
        """Days a cooked dish lot stays in stock before it expires."""
        return self._cooked_expiry_days

    def database_exists(self) -> bool:
        return self._database_path.exists()

    def ensure_directories(self) -> None:
        """Create the folder holding the SQLite file."""
        self._data_dir.mkdir(parents=True, exist_ok=True)

    def __repr__(self) -> str:
        return f"Config(environment='{self.environment}', database_url='{self.database_url}')"


_config_instance: Optional[Config] = None


def get_config(environment: Optional[str] = None) -> Config:
    """
    Return the process-wide Config, creating it on first call.

    Args:
        environment: Used only when the singleton is created; defaults to
                     FRIDGE_TRACKER_ENV, then "production". A different value
                     later is ignored with a warning so the database never
                     switches mid-process.
    """
    global _config_instance

    if _config_instance is None:
        _config_instance = Config(
            environment or os.environ.get(ENV_VAR_ENVIRONMENT, "production")
        )
    elif environment is not None and environment != _config_instance.environment:
        logger.warning(
            f"get_config(environment='{environment}') ignored; configuration "
            f"already loaded for '{_config_instance.environment}'"
        )

    return _config_instance


def reset_config() -> None:
    """Forget the loaded configuration (tests, environment changes)."""
    global _config_instance
    _config_instance = None
