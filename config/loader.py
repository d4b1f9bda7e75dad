"""Configuration loader for the Jira work item export.

This module provides a simple interface for loading the runtime settings
(Pydantic settings model) and the declarative export configuration file.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from src.models.migration_error import MigrationError

from .schemas.export_config import ExportConfig
from .schemas.settings import Settings

logger = logging.getLogger(__name__)


def is_test_environment() -> bool:
    """Detect if code is running in a test environment.

    This checks for environment variables that would indicate pytest is running.

    Returns:
        bool: True if running in a test environment, False otherwise

    """
    if "PYTEST_CURRENT_TEST" in os.environ:
        return True

    # Custom test mode flag (set by test fixtures)
    return os.environ.get("J2W_TEST_MODE", "").lower() in ("true", "1", "yes")


class ConfigLoader:
    """Loads and provides access to runtime settings using Pydantic settings."""

    def __init__(self, config_file_path: Path | None = None) -> None:
        """Initialize the configuration loader.

        Args:
            config_file_path (Path): Path to a YAML settings override file (optional)

        """
        self._load_test_environment_configuration()

        self.yaml_config: dict[str, Any] = {}
        if config_file_path and config_file_path.exists():
            self.yaml_config = self._load_yaml_config(config_file_path)

        self.settings = Settings()

        self._apply_yaml_overrides()

    def _load_test_environment_configuration(self) -> None:
        """Load environment variables from .env.test if in test environment.

        In test mode, .env.test overrides the direnv configuration.
        """
        if is_test_environment():
            logger.debug("Running in test environment")

            if Path(".env.test").exists():
                from dotenv import load_dotenv

                load_dotenv(".env.test", override=True)
                logger.debug("Loaded test environment from .env.test")

    def _load_yaml_config(self, config_file_path: Path) -> dict[str, Any]:
        """Load configuration from YAML file.

        Args:
            config_file_path (Path): Path to the YAML configuration file

        Returns:
            dict: Configuration settings

        """
        try:
            with config_file_path.open("r", encoding="utf-8") as config_file:
                config: dict[str, Any] = yaml.safe_load(config_file)
                return config or {}
        except FileNotFoundError:
            logger.exception("Config file not found: %s", config_file_path)
            raise

    def _apply_yaml_overrides(self) -> None:
        """Override Pydantic settings with YAML configuration values.

        The ``jira`` section maps onto ``jira_*`` settings, the ``export``
        section onto top-level settings.
        """
        if not self.yaml_config:
            return

        for section, prefix in (("jira", "jira_"), ("export", "")):
            values = self.yaml_config.get(section) or {}
            for key, value in values.items():
                attr = f"{prefix}{key}"
                if attr not in Settings.model_fields:
                    logger.warning("Ignoring unknown setting '%s.%s'", section, key)
                    continue
                setattr(self.settings, attr, value)
                logger.debug("Applied %s from YAML", attr)

    def get_jira_config(self) -> dict[str, Any]:
        return self.settings.get_jira_config()

    def get_export_config(self) -> dict[str, Any]:
        return self.settings.get_export_config()


# Global configuration instance
_config_loader: ConfigLoader | None = None


def get_config_loader(config_file_path: Path | None = None) -> ConfigLoader:
    """Get the global configuration loader instance.

    Args:
        config_file_path (Path): Path to the YAML configuration file (optional)

    Returns:
        ConfigLoader: Configuration loader instance

    """
    global _config_loader
    if _config_loader is None:
        _config_loader = ConfigLoader(config_file_path)
    return _config_loader



def load_export_config(config_file_path: Path | str) -> ExportConfig:
    """Load and validate the export configuration file.

    JSON files are read with the json module, anything else as YAML.

    Raises:
        MigrationError: If the file is missing, unreadable or invalid

    """
    path = Path(config_file_path)
    try:
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f) if path.suffix.lower() == ".json" else yaml.safe_load(f)
    except FileNotFoundError as e:
        msg = f"Export configuration not found: {path}"
        raise MigrationError(msg) from e
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        msg = f"Failed to read export configuration {path}: {e}"
        raise MigrationError(msg) from e

    if not isinstance(raw, dict):
        msg = f"Export configuration {path} must contain a mapping"
        raise MigrationError(msg)

    try:
        export_config = ExportConfig.model_validate(raw)
    except ValidationError as e:
        msg = f"Invalid export configuration {path}: {e}"
        raise MigrationError(msg) from e

    logger.debug(
        "Loaded export configuration %s (%d field rules, %d types)",
        path,
        len(export_config.field_map.fields),
        len(export_config.type_map.types),
    )
    return export_config
