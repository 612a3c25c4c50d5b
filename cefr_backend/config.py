"""Application configuration module."""

from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Database settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./cefr_placement.db"
    SQL_ECHO: bool = False

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
    LOG_JSON: bool = False
    LOG_FILE: Optional[str] = None

    # API settings
    API_PREFIX: str = "/api/cefr-tests"
    PROJECT_NAME: str = "CEFR Placement API"
    ALLOW_ORIGINS: List[str] = ["*"]

    # Placement scoring settings
    LONG_WRONG_STREAK: int = 6
    RECOMMENDATION_WINDOW: int = 5
    RECOMMENDATION_PROMOTE_AVERAGE: float = 85.0
    RECOMMENDATION_DEMOTE_AVERAGE: float = 60.0

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level"""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()

    @field_validator("LONG_WRONG_STREAK", "RECOMMENDATION_WINDOW")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Value must be at least 1, got {v}")
        return v


# Create global settings instance
settings = Settings()
