"""
Application configuration management using Pydantic Settings.
"""
from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AssignPolicy(str, Enum):
    """How strictly a drop target is checked before a block is assigned."""
    # Only rejects a cell that is another block's origin
    ORIGIN_ONLY = "origin_only"
    # Also rejects covered cells and spans that would not fit at the new origin
    COVERAGE = "coverage"


class Settings(BaseSettings):
    """
    Layout engine settings loaded from environment variables.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    APP_NAME: str = "LessonGrid"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = Field(default="development", pattern="^(development|staging|production)$")

    # Grid bounds offered by the authoring UI
    GRID_MIN_SIZE: int = Field(default=1, ge=1)
    GRID_MAX_ROWS: int = Field(default=5, ge=1)
    GRID_MAX_COLUMNS: int = Field(default=5, ge=1)

    # Placement
    ASSIGN_POLICY: AssignPolicy = AssignPolicy.COVERAGE

    # Connection overlays
    CONNECTION_COLOR: str = Field(default="#9333ea", pattern="^#[0-9a-fA-F]{6}$")

    # Legacy column layout
    MAX_COLUMN_COUNT: int = Field(default=4, ge=1)
    MIN_COLUMN_WIDTH: int = Field(default=10, ge=1, le=100)
    MAX_COLUMN_WIDTH: int = Field(default=90, ge=1, le=100)

    @field_validator("MAX_COLUMN_WIDTH")
    @classmethod
    def check_column_width_range(cls, v: int, info) -> int:
        minimum = info.data.get("MIN_COLUMN_WIDTH", 10)
        if v < minimum:
            raise ValueError("MAX_COLUMN_WIDTH must not be below MIN_COLUMN_WIDTH")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT == "development"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings
    """
    return Settings()


# Create a settings instance for easy import
settings = get_settings()
