"""Configuration schemas package.

This package contains Pydantic models for configuration validation.
"""

from .export_config import ExportConfig, FieldMapItem
from .settings import Settings

__all__ = ["ExportConfig", "FieldMapItem", "Settings"]
