"""Configuration package for the Jira work item export.

This package provides a type-safe configuration system using Pydantic v2
and pydantic-settings for the runtime settings, plus the schema of the
declarative export configuration file.
"""

from .loader import ConfigLoader, get_config_loader, load_export_config
from .schemas.export_config import ExportConfig
from .schemas.settings import Settings

__all__ = [
    "ConfigLoader",
    "ExportConfig",
    "Settings",
    "get_config_loader",
    "load_export_config",
]
