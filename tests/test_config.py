"""Tests for environment-driven settings."""

from __future__ import annotations

import pytest

from workforce.core.config import ClassificationConfig, Settings, ValidationLogConfig


def test_defaults() -> None:
    settings = Settings()
    assert settings.debug is False
    assert settings.log_level == "INFO"
    assert settings.classification.rules_path is None
    assert settings.validation_log.max_entries == 1000
    assert settings.validation_log.level == "warning"


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WORKFORCE_DEBUG", "true")
    monkeypatch.setenv("WORKFORCE_VALIDATION_LOG_LEVEL", "error")
    monkeypatch.setenv("WORKFORCE_CLASSIFICATION_RULES_PATH", "/etc/rules.yml")
    assert Settings().debug is True
    assert ValidationLogConfig().level == "error"
    assert ClassificationConfig().rules_path == "/etc/rules.yml"
