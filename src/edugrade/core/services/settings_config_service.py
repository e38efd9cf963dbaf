"""
Settings Configuration Service for EduGrade

This module provides centralized configuration management using properties files.
It handles loading, parsing, and providing access to application settings.

Configuration files:
- env.properties: Production configuration (default)
- env-test.properties: Test configuration (used when EDUGRADE_TEST_MODE=1)
"""

import os
import configparser
import logging
from pathlib import Path
from typing import Any, Dict, Optional

# Section -> key -> default value
DEFAULT_SETTINGS: Dict[str, Dict[str, str]] = {
    "database": {
        "path": "edugrade.db",
        "echo": "false",
    },
    "logging": {
        "level": "INFO",
        "directory": "logs",
    },
    "grading": {
        "default_points": "1",
    },
    "statistics": {
        "recent_topics_limit": "5",
        "most_incorrect_topics_limit": "5",
        "timezone_offset_minutes": "0",
        "recent_mistakes_threshold": "3",
        "review_attempts_limit": "5",
    },
    "server": {
        "host": "127.0.0.1",
        "port": "8000",
    },
}


def get_config_file_path() -> str:
    """
    Determine the appropriate configuration file based on environment.

    Priority:
    1. EDUGRADE_CONFIG_FILE environment variable (explicit override)
    2. env-test.properties (when EDUGRADE_TEST_MODE=1)
    3. env.properties (production default)
    """
    explicit_config = os.environ.get("EDUGRADE_CONFIG_FILE")
    if explicit_config and os.path.exists(explicit_config):
        return explicit_config

    search_paths = [
        Path.cwd(),
        Path(__file__).parent.parent.parent.parent.parent,  # repository root
    ]

    for base_path in search_paths:
        if os.environ.get("EDUGRADE_TEST_MODE") == "1":
            test_config = base_path / "env-test.properties"
            if test_config.exists():
                return str(test_config)

        prod_config = base_path / "env.properties"
        if prod_config.exists():
            return str(prod_config)

    return "env.properties"


class SettingsConfigService:
    """Service for managing application settings from properties files."""

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize the settings configuration service.

        Args:
            config_file: Optional path to config file. If None, auto-detects based on environment.
        """
        self.config_file = config_file or get_config_file_path()
        self.config = configparser.ConfigParser()
        self.logger = logging.getLogger(__name__)
        self._load_config()

    def _load_config(self):
        """Load configuration from properties file, on top of the defaults."""
        self.config.read_dict(DEFAULT_SETTINGS)

        if not os.path.exists(self.config_file):
            self.logger.warning(f"Config file {self.config_file} not found, using defaults")
            return

        try:
            self.config.read(self.config_file, encoding="utf-8")
            self.logger.info(f"Configuration loaded from {self.config_file}")
        except configparser.Error as e:
            self.logger.error(f"Failed to load configuration: {e}")

    def get(self, section: str, key: str, fallback: Optional[str] = None) -> str:
        """Get a configuration value."""
        try:
            return self.config.get(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError):
            if fallback is not None:
                return fallback
            self.logger.warning(f"Configuration not found: {section}.{key}")
            return ""

    def getint(self, section: str, key: str, fallback: Optional[int] = None) -> int:
        """Get an integer configuration value."""
        try:
            return self.config.getint(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            if fallback is not None:
                return fallback
            self.logger.warning(f"Integer configuration not found: {section}.{key}")
            return 0

    def getboolean(
        self, section: str, key: str, fallback: Optional[bool] = None
    ) -> bool:
        """Get a boolean configuration value."""
        try:
            return self.config.getboolean(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            if fallback is not None:
                return fallback
            self.logger.warning(f"Boolean configuration not found: {section}.{key}")
            return False

    def get_database_path(self) -> str:
        """Database file path; EDUGRADE_DB_PATH overrides the properties file."""
        return os.getenv("EDUGRADE_DB_PATH") or self.get("database", "path", "edugrade.db")

    def get_statistics_defaults(self) -> Dict[str, Any]:
        """Get learning statistics configuration defaults."""
        return {
            "recent_topics_limit": self.getint("statistics", "recent_topics_limit", 5),
            "most_incorrect_topics_limit": self.getint(
                "statistics", "most_incorrect_topics_limit", 5
            ),
            "timezone_offset_minutes": self.getint(
                "statistics", "timezone_offset_minutes", 0
            ),
            "recent_mistakes_threshold": self.getint(
                "statistics", "recent_mistakes_threshold", 3
            ),
            "review_attempts_limit": self.getint("statistics", "review_attempts_limit", 5),
        }


# Global instance
_settings_service = None


def get_settings_service(config_file: Optional[str] = None) -> SettingsConfigService:
    """
    Get the global settings service instance.

    Args:
        config_file: Optional path to config file. If None, auto-detects:
                    - env-test.properties when EDUGRADE_TEST_MODE=1
                    - env.properties otherwise

    Returns:
        SettingsConfigService instance
    """
    global _settings_service
    if _settings_service is None:
        _settings_service = SettingsConfigService(config_file)
    return _settings_service


def reset_settings_service():
    """Reset the global settings service instance. Useful for testing."""
    global _settings_service
    _settings_service = None
