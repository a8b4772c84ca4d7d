"""
onboarding/core/config.py

Purpose: Application configuration

- Loads environment variables (and .env)
- Centralizes storage paths and logging settings
- Validates configuration on startup
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from typing import Literal

from onboarding.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """
    Settings for the onboarding state layer, loaded from environment variables.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # Storage
    ONBOARDING_DATA_DIR: str = Field(
        default="data/onboarding",
        description="Directory holding the onboarding JSON files"
    )
    USER_STATES_FILENAME: str = Field(
        default="userStates.json",
        description="File name of the per-user onboarding state document"
    )
    ONBOARDING_CONFIGS_FILENAME: str = Field(
        default="onboardingConfigs.json",
        description="File name of the per-guild onboarding config document"
    )
    JSON_INDENT: int = Field(
        default=2,
        description="Indentation used when writing JSON documents"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    @field_validator("USER_STATES_FILENAME", "ONBOARDING_CONFIGS_FILENAME")
    @classmethod
    def validate_filename(cls, v: str) -> str:
        """File names must not carry directory components."""
        if not v or "/" in v or "\\" in v:
            raise ValueError("must be a bare file name")
        return v

    @field_validator("JSON_INDENT")
    @classmethod
    def validate_indent(cls, v: int) -> int:
        if v < 0:
            raise ValueError("JSON_INDENT must be >= 0")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = Settings()


def validate_settings():
    """
    Validates critical settings on startup.
    Raises ConfigurationError if any required setting is missing or invalid.
    """
    errors = []

    if not settings.ONBOARDING_DATA_DIR:
        errors.append("ONBOARDING_DATA_DIR is required")

    if settings.USER_STATES_FILENAME == settings.ONBOARDING_CONFIGS_FILENAME:
        errors.append("USER_STATES_FILENAME and ONBOARDING_CONFIGS_FILENAME must differ")

    if settings.LOG_LEVEL.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        errors.append(f"LOG_LEVEL '{settings.LOG_LEVEL}' is not a valid level")

    if errors:
        raise ConfigurationError(
            f"Configuration validation failed: {', '.join(errors)}",
            details=errors
        )

    return True
