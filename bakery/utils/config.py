"""
Configuration management for the Bakery Cost Engine.

This module handles:
- Database path configuration
- Environment-specific configuration (development vs. production)
- Tunables read from environment variables (BAKERY_*)
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .constants import (
    APP_DATA_DIRNAME,
    APP_NAME,
    APP_VERSION,
    DATABASE_FILENAME,
    DATABASE_VERSION,
)

logger = logging.getLogger(__name__)

DEFAULT_DB_TIMEOUT = 30

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


class Config:
    """
    Application configuration manager.

    Handles database location and the small set of runtime switches the
    services read.
    """

    def __init__(self, environment: str = "production"):
        """
        Initialize configuration.

        Args:
            environment: Environment mode - 'production' or 'development'
        """
        self.environment = environment

        if environment == "development":
            self._base_dir = self._get_project_data_dir()
        else:
            self._base_dir = self._get_user_documents_dir()

        self._database_path = self._base_dir / DATABASE_FILENAME

        self._db_timeout = self._read_int("BAKERY_DB_TIMEOUT", DEFAULT_DB_TIMEOUT)
        self._strict_unit_conversion = self._read_bool("BAKERY_STRICT_UNITS", False)

    def _get_project_data_dir(self) -> Path:
        """Project-local data/ directory used in development."""
        return Path(__file__).parent.parent.parent / "data"

    def _get_user_documents_dir(self) -> Path:
        """Per-user data directory used in production."""
        return Path.home() / "Documents" / APP_DATA_DIRNAME

    @staticmethod
    def _read_int(name: str, default: int) -> int:
        raw = os.environ.get(name)
        if raw is None:
            return default
        try:
            value = int(raw)
        except ValueError:
            logger.warning(f"Invalid {name} value '{raw}', using default {default}")
            return default
        if value <= 0:
            logger.warning(f"Invalid {name} value '{raw}', using default {default}")
            return default
        return value

    @staticmethod
    def _read_bool(name: str, default: bool) -> bool:
        raw = os.environ.get(name)
        if raw is None:
            return default
        normalized = raw.strip().lower()
        if normalized in _TRUE_VALUES:
            return True
        if normalized in _FALSE_VALUES:
            return False
        logger.warning(f"Invalid {name} value '{raw}', using default {default}")
        return default

    def ensure_directories(self) -> None:
        """Create the data directory if it doesn't exist."""
        self._base_dir.mkdir(parents=True, exist_ok=True)

    @property
    def app_name(self) -> str:
        return APP_NAME

    @property
    def app_version(self) -> str:
        return APP_VERSION

    @property
    def database_version(self) -> str:
        return DATABASE_VERSION

    @property
    def database_path(self) -> Path:
        """Full path to the database file."""
        return self._database_path

    @property
    def database_url(self) -> str:
        """
        SQLAlchemy database URL.

        Returns:
            Database URL string for SQLAlchemy
        """
        db_path_str = str(self._database_path).replace("\\", "/")
        return f"sqlite:///{db_path_str}"

    @property
    def db_timeout(self) -> int:
        """SQLite busy timeout in seconds."""
        return self._db_timeout

    @property
    def strict_unit_conversion(self) -> bool:
        """Whether unsupported unit pairs are rejected instead of passed through."""
        return self._strict_unit_conversion

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def database_exists(self) -> bool:
        """Check if the database file exists."""
        return self._database_path.exists()

    def __repr__(self) -> str:
        return f"Config(environment='{self.environment}', database_path='{self._database_path}')"


_config_instance: Optional[Config] = None


def get_config(environment: Optional[str] = None) -> Config:
    """
    Get the global configuration instance.

    Once created, the singleton's environment is fixed; asking for a
    different one logs a warning and returns the existing instance.

    Args:
        environment: Optional environment for initial creation. If None, uses
                    BAKERY_ENV or defaults to production.

    Returns:
        Config instance
    """
    global _config_instance

    if _config_instance is None:
        if environment is None:
            environment = os.environ.get("BAKERY_ENV", "production")
        _config_instance = Config(environment)
    elif environment is not None and environment != _config_instance.environment:
        logger.warning(
            f"get_config() called with environment='{environment}' but singleton "
            f"already exists with environment='{_config_instance.environment}'. "
            f"Returning existing singleton."
        )

    return _config_instance


def reset_config():
    """Reset the global configuration instance (used by tests)."""
    global _config_instance
    _config_instance = None


def get_database_url() -> str:
    return get_config().database_url
