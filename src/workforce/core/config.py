"""Application configuration loaded from environment and config files."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class ClassificationConfig(BaseSettings):
    """Classification rule set configuration."""

    model_config = {"env_prefix": "WORKFORCE_CLASSIFICATION_"}

    rules_path: str | None = None


class ValidationLogConfig(BaseSettings):
    """In-memory validation log configuration."""

    model_config = {"env_prefix": "WORKFORCE_VALIDATION_LOG_"}

    max_entries: int = 1000
    level: str = "warning"


class Settings(BaseSettings):
    """Root application settings."""

    model_config = {"env_prefix": "WORKFORCE_"}

    debug: bool = False
    log_level: str = "INFO"

    classification: ClassificationConfig = Field(default_factory=ClassificationConfig)
    validation_log: ValidationLogConfig = Field(default_factory=ValidationLogConfig)
