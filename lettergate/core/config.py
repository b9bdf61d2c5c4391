"""Application configuration with validation."""

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator


class Settings(BaseSettings):
    """
    Application settings with validation.

    Values come from environment variables (case-insensitive) or a local
    ``.env`` file, e.g. ``DATABASE_URL=sqlite:///./lettergate.db``.
    """

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./lettergate.db",
        description="Database connection URL (SQLite or PostgreSQL)"
    )

    # Permission synchronizer
    # Upper bound on how stale a session's allow-set can be.
    sync_poll_interval: float = Field(
        default=2.0,
        description="Seconds between permission refreshes for an active session"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: str = Field(
        default="text",
        description="Log output format: 'json' for structured, 'text' for human-readable"
    )

    @field_validator('sync_poll_interval')
    @classmethod
    def validate_poll_interval(cls, v: float) -> float:
        """Poll interval must be a positive number of seconds."""
        if v <= 0:
            raise ValueError("sync_poll_interval must be greater than 0")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard Python logging levels."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v_upper

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in ('json', 'text'):
            raise ValueError("Invalid log format. Must be 'json' or 'text'")
        return v_lower

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
settings = Settings()
