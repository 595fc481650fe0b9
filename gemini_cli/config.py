"""
Centralized configuration management for the Gemini command-line client.

This module provides configuration management using environment variables
with sensible defaults and validation.
"""

from typing import Optional, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LIVE_URL = "https://api.gemini.com"
SANDBOX_URL = "https://api.sandbox.gemini.com"


class GeminiConfig(BaseSettings):
    """Gemini API configuration."""

    api_key: str = Field(default="", alias="GEMINI_API_KEY")
    api_secret: str = Field(default="", alias="GEMINI_API_SECRET")
    sandbox_api_key: str = Field(default="", alias="GEMINI_API_SANDBOX_KEY")
    sandbox_api_secret: str = Field(default="", alias="GEMINI_API_SANDBOX_SECRET")
    live_url: str = Field(default=LIVE_URL, alias="GEMINI_LIVE_URL")
    sandbox_url: str = Field(default=SANDBOX_URL, alias="GEMINI_SANDBOX_URL")
    timeout: float = Field(default=30.0, alias="GEMINI_TIMEOUT")  # seconds

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore"
    )

    @field_validator('live_url', 'sandbox_url')
    @classmethod
    def strip_trailing_slash(cls, v):
        """Normalize base URLs."""
        return v.rstrip("/")

    @field_validator('timeout')
    @classmethod
    def validate_timeout(cls, v):
        """Validate request timeout."""
        if v <= 0:
            raise ValueError("Timeout must be positive")
        return v

    def credentials(self, live: bool) -> Tuple[str, str]:
        """Get the (key, secret) pair for the selected environment."""
        if live:
            return self.api_key, self.api_secret
        return self.sandbox_api_key, self.sandbox_api_secret

    def base_url(self, live: bool) -> str:
        """Get the REST base URL for the selected environment."""
        return self.live_url if live else self.sandbox_url


class ExecutionConfig(BaseSettings):
    """Order execution configuration."""

    max_retries: int = Field(default=50, alias="EXECUTION_MAX_RETRIES")
    default_fee_bps: int = Field(default=25, alias="EXECUTION_DEFAULT_FEE_BPS")

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore"
    )

    @field_validator('max_retries')
    @classmethod
    def validate_max_retries(cls, v):
        """Validate the sweep iteration ceiling."""
        if v < 1:
            raise ValueError("max_retries must be at least 1")
        return v

    @field_validator('default_fee_bps')
    @classmethod
    def validate_fee_bps(cls, v):
        """Validate basis points are within 0-9999."""
        if not (0 <= v < 10000):
            raise ValueError("Fee basis points must be between 0 and 9999")
        return v


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="WARNING", alias="LOG_LEVEL")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        alias="LOG_FORMAT"
    )
    file_path: str = Field(default="data/logs/gemini_cli.log", alias="LOG_FILE_PATH")
    max_file_size: int = Field(default=10485760, alias="LOG_MAX_FILE_SIZE")  # 10MB
    backup_count: int = Field(default=5, alias="LOG_BACKUP_COUNT")
    enable_console: bool = Field(default=True, alias="LOG_ENABLE_CONSOLE")
    enable_file: bool = Field(default=False, alias="LOG_ENABLE_FILE")
    json_file: bool = Field(default=True, alias="LOG_JSON_FILE")

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore"
    )

    @field_validator('level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v.upper()


class Config(BaseSettings):
    """Main configuration class."""

    service_name: str = Field(default="gemini_cli", alias="SERVICE_NAME")

    @property
    def gemini(self) -> GeminiConfig:
        """Get Gemini API configuration."""
        return GeminiConfig(**{})

    @property
    def execution(self) -> ExecutionConfig:
        """Get execution configuration."""
        return ExecutionConfig(**{})

    @property
    def logging(self) -> LoggingConfig:
        """Get logging configuration."""
        return LoggingConfig(**{})

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global configuration instance
config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global config
    if config is None:
        config = Config()
    return config


def reload_config() -> Config:
    """Reload configuration from environment."""
    global config
    config = Config()
    return config
