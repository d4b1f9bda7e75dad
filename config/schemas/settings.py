"""Main settings schema for the Jira work item export.

This module defines the core Pydantic settings model with validation
and environment variable handling.
"""

from pathlib import Path
from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings with validation and environment variable support."""

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="forbid",
        env_prefix="J2W_",
    )

    # ========================================================================
    # JIRA CONFIGURATION (J2W_JIRA_*)
    # ========================================================================

    jira_url: str = Field(
        default="https://your-company.atlassian.net", description="Jira instance URL",
    )
    jira_username: str = Field(
        default="your-email@company.com", description="Jira username/email",
    )
    jira_api_token: str = Field(
        default="your_jira_api_token_here", description="Jira API token",
    )
    jira_download_timeout: int = Field(
        default=60, ge=1, le=3600, description="Attachment download timeout in seconds",
    )

    # ========================================================================
    # EXPORT SETTINGS (J2W_*)
    # ========================================================================

    ssl_verify: bool = Field(
        default=True, description="Enable SSL certificate verification",
    )
    log_level: str = Field(default="INFO", description="Logging level")
    export_config: Path | None = Field(
        default=None, description="Default export configuration file",
    )

    # ========================================================================
    # TESTING CONFIGURATION (J2W_TEST_*)
    # ========================================================================

    test_mode: bool = Field(default=False, description="Test mode flag")

    # ========================================================================
    # VALIDATORS
    # ========================================================================

    @field_validator("jira_url")
    @classmethod
    def validate_jira_url(cls, v: str) -> str:
        """Validate Jira URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("Jira URL must start with http:// or https://")

        parsed = urlparse(v)
        if not parsed.netloc:
            raise ValueError("Jira URL must have a valid hostname")

        return v.rstrip("/")

    @field_validator("jira_api_token")
    @classmethod
    def validate_jira_api_token(cls, v: str) -> str:
        """Validate Jira API token format."""
        if len(v) < 10:
            raise ValueError("Jira API token must be at least 10 characters long")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "NOTICE", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f'Log level must be one of: {", ".join(valid_levels)}')
        return v.upper()

    # ========================================================================
    # UTILITY METHODS
    # ========================================================================

    def get_jira_config(self) -> dict:
        """Get Jira configuration as dictionary."""
        return {
            "url": self.jira_url,
            "username": self.jira_username,
            "api_token": self.jira_api_token,
            "download_timeout": self.jira_download_timeout,
            "verify_ssl": self.ssl_verify,
        }

    def get_export_config(self) -> dict:
        """Get export runtime configuration as dictionary."""
        return {
            "log_level": self.log_level,
            "export_config": str(self.export_config) if self.export_config else None,
        }
