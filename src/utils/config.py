"""
Configuration management for the Delivery Scan Tracker application.

This module handles:
- Data directory configuration (database and scan ledger)
- Environment-specific configuration (development vs. production)
- Remote call timeout
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .constants import (
    APP_NAME,
    APP_VERSION,
    DATABASE_FILENAME,
    DATABASE_VERSION,
    DEFAULT_REMOTE_TIMEOUT_SECONDS,
    LEDGER_FILENAME,
)

logger = logging.getLogger(__name__)

ENV_VAR_ENVIRONMENT = "DELIVERY_TRACKER_ENV"
ENV_VAR_DATA_DIR = "DELIVERY_TRACKER_DATA_DIR"
ENV_VAR_REMOTE_TIMEOUT = "DELIVERY_TRACKER_REMOTE_TIMEOUT"


class Config:
    """
    Application configuration manager.

    Handles all configuration settings including database and ledger paths,
    environment settings, and the remote call timeout.
    """

    def __init__(self, environment: str = "production", data_dir: Optional[Path] = None):
        """
        Initialize configuration.

        Args:
            environment: Environment mode - 'production' or 'development'
            data_dir: Optional explicit data directory. Overrides the
                environment default and DELIVERY_TRACKER_DATA_DIR.
        """
        self.environment = environment
        self._app_name = APP_NAME
        self._app_version = APP_VERSION
        self._database_version = DATABASE_VERSION

        # Determine base directory
        if data_dir is not None:
            self._base_dir = Path(data_dir)
        elif os.environ.get(ENV_VAR_DATA_DIR):
            self._base_dir = Path(os.environ[ENV_VAR_DATA_DIR])
        elif environment == "development":
            # Use project data/ directory for development
            self._base_dir = self._get_project_data_dir()
        else:
            # Use user's Documents folder for production
            self._base_dir = self._get_user_documents_dir()

        self._database_path = self._base_dir / DATABASE_FILENAME
        self._ledger_path = self._base_dir / LEDGER_FILENAME
        self._remote_timeout = self._read_remote_timeout()

        # Ensure directories exist
        self._ensure_directories()

    def _get_project_data_dir(self) -> Path:
        """
        Get the project's data directory for development.

        Returns:
            Path to project data/ directory
        """
        project_root = Path(__file__).parent.parent.parent
        return project_root / "data"

    def _get_user_documents_dir(self) -> Path:
        """
        Get the user's Documents directory for production.

        Returns:
            Path to user's Documents folder with app subdirectory
        """
        if os.name == "nt":  # Windows
            documents = Path(os.path.expanduser("~")) / "Documents"
        else:  # Linux/Mac
            documents = Path.home() / "Documents"

        return documents / "DeliveryTracker"

    def _read_remote_timeout(self) -> float:
        """Read the remote timeout from the environment, falling back to the default."""
        raw = os.environ.get(ENV_VAR_REMOTE_TIMEOUT)
        if not raw:
            return DEFAULT_REMOTE_TIMEOUT_SECONDS

        try:
            value = float(raw)
        except ValueError:
            logger.warning(
                f"Ignoring invalid {ENV_VAR_REMOTE_TIMEOUT}='{raw}', "
                f"using {DEFAULT_REMOTE_TIMEOUT_SECONDS}s"
            )
            return DEFAULT_REMOTE_TIMEOUT_SECONDS

        if value <= 0:
            logger.warning(
                f"Ignoring non-positive {ENV_VAR_REMOTE_TIMEOUT}={value}, "
                f"using {DEFAULT_REMOTE_TIMEOUT_SECONDS}s"
            )
            return DEFAULT_REMOTE_TIMEOUT_SECONDS
        return value

    def _ensure_directories(self):
        """Create necessary directories if they don't exist."""
        self._base_dir.mkdir(parents=True, exist_ok=True)

    @property
    def app_name(self) -> str:
        """Application name."""
        return self._app_name

    @property
    def app_version(self) -> str:
        """Application version."""
        return self._app_version

    @property
    def database_version(self) -> str:
        """Database schema version."""
        return self._database_version

    @property
    def data_dir(self) -> Path:
        """Directory holding the database and the scan ledger."""
        return self._base_dir

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
        # Use forward slashes for SQLite URL
        db_path_str = str(self._database_path).replace("\\", "/")
        return f"sqlite:///{db_path_str}"

    @property
    def ledger_path(self) -> Path:
        """Full path to the local scan ledger JSON file."""
        return self._ledger_path

    @property
    def remote_timeout(self) -> float:
        """Seconds before a remote store call is treated as failed."""
        return self._remote_timeout

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    def database_exists(self) -> bool:
        """
        Check if database file exists.

        Returns:
            True if database file exists, False otherwise
        """
        return self._database_path.exists()

    def __repr__(self) -> str:
        """String representation of config."""
        return (
            f"Config(environment='{self.environment}', "
            f"database_path='{self._database_path}', "
            f"ledger_path='{self._ledger_path}')"
        )


# Global configuration instance
_config_instance: Optional[Config] = None


def get_config(environment: Optional[str] = None) -> Config:
    """
    Get the global configuration instance.

    Once created, the singleton's environment cannot be changed by passing
    a different environment argument - this prevents switching databases
    or ledgers mid-session.

    Args:
        environment: Optional environment for initial creation. If None, uses
                    DELIVERY_TRACKER_ENV or defaults to production. Ignored if
                    singleton already exists.

    Returns:
        Config instance
    """
    global _config_instance

    if _config_instance is None:
        if environment is None:
            environment = os.environ.get(ENV_VAR_ENVIRONMENT, "production")
        _config_instance = Config(environment)
    elif environment is not None and environment != _config_instance.environment:
        logger.warning(
            f"get_config() called with environment='{environment}' but singleton "
            f"already exists with environment='{_config_instance.environment}'. "
            f"Returning existing singleton."
        )

    return _config_instance


def reset_config():
    """
    Reset the global configuration instance.

    Useful for testing.
    """
    global _config_instance
    _config_instance = None


# Convenience functions for common use cases
def get_database_url() -> str:
    """
    Get the database URL.

    Returns:
        SQLAlchemy database URL string
    """
    return get_config().database_url


def get_ledger_path() -> Path:
    """
    Get the scan ledger file path.

    Returns:
        Path to the scan ledger JSON file
    """
    return get_config().ledger_path
