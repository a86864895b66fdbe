"""
Configuration management for the ChessWire content analysis pipeline.

Uses Pydantic Settings for type-safe configuration with environment variable support.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Logging level."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class PipelineSettings(BaseSettings):
    """Content analysis pipeline limits."""

    model_config = SettingsConfigDict(env_prefix="PIPELINE_")

    max_content_bytes: int = Field(
        default=100_000,
        ge=1,
        description="Maximum UTF-8 size of a single content item",
    )
    max_batch_size: int = Field(
        default=10, ge=1, le=100, description="Maximum items per batch request"
    )
    max_concurrency: int = Field(
        default=10, ge=1, le=100, description="Items analyzed in parallel per batch"
    )
    item_timeout_seconds: float = Field(
        default=30.0, gt=0, description="Per-item processing timeout in a batch"
    )


class EvaluationSettings(BaseSettings):
    """Position evaluation configuration."""

    model_config = SettingsConfigDict(env_prefix="EVAL_")

    engine_path: Optional[Path] = Field(
        default=None,
        description="Path to a UCI engine binary; material heuristic when unset",
    )
    engine_depth: int = Field(
        default=12, ge=1, le=40, description="Fixed search depth for the engine"
    )
    engine_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Engine startup and per-position timeout"
    )

    @property
    def use_engine(self) -> bool:
        """Check if an external engine is configured."""
        return self.engine_path is not None


class VoiceSettings(BaseSettings):
    """Voice rendering service configuration."""

    model_config = SettingsConfigDict(env_prefix="VOICE_")

    enabled: bool = Field(default=False, description="Hand narration off for rendering")
    api_url: str = Field(
        default="http://localhost:8300/v1", description="Voice service base URL"
    )
    api_key: str = Field(default="", description="Voice service API key")
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    max_workers: int = Field(
        default=4, ge=1, le=32, description="Background threads for narration hand-off"
    )


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: LogLevel = Field(default=LogLevel.INFO, description="Log level")
    dir: Optional[Path] = Field(default=None, description="Log directory")
    json_format: bool = Field(default=False, description="Use JSON log format")

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: str | LogLevel) -> str | LogLevel:
        """Accept lower-case level names."""
        return v.upper() if isinstance(v, str) else v

    @field_validator("dir", mode="before")
    @classmethod
    def ensure_path(cls, v: Optional[str | Path]) -> Optional[Path]:
        """Ensure log directory is a Path object."""
        if v in (None, ""):
            return None
        return Path(v) if isinstance(v, str) else v


class Settings(BaseSettings):
    """
    Main application settings.

    Aggregates all configuration sections and provides a unified interface.
    Configuration is loaded from environment variables and .env files.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Environment = Field(
        default=Environment.DEVELOPMENT, description="Application environment"
    )

    # Component settings
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    evaluation: EvaluationSettings = Field(default_factory=EvaluationSettings)
    voice: VoiceSettings = Field(default_factory=VoiceSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION

    def validate_required(self) -> list[str]:
        """
        Validate that configuration needed by enabled integrations is present.

        Returns:
            List of missing required configuration keys.
        """
        missing = []

        if self.voice.enabled:
            if not self.voice.api_url:
                missing.append("VOICE_API_URL")
            if not self.voice.api_key:
                missing.append("VOICE_API_KEY")
        if self.evaluation.engine_path is not None and not self.evaluation.engine_path.exists():
            missing.append("EVAL_ENGINE_PATH")

        return missing


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Singleton Settings instance loaded from environment.
    """
    return Settings()


def reload_settings() -> Settings:
    """
    Reload settings, clearing the cache.

    Returns:
        Fresh Settings instance.
    """
    get_settings.cache_clear()
    return get_settings()
