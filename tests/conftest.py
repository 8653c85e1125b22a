"""Shared test fixtures and helpers."""

from __future__ import annotations

import pytest

from workforce.classification.rules import ClassificationEngine
from workforce.core.config import ValidationLogConfig
from workforce.governance.validation_log import RecordingValidationLogger


def make_position(
    department: str,
    level: str,
    *,
    id: str | None = None,
    subtitle: str | None = None,
    title: str | None = None,
    process_type: str | None = None,
    classification: str | None = None,
    source: str = "page1",
) -> dict:
    """Build a position record the way a view would serialize it."""
    record = {
        "id": id or f"{department}-{level}-{subtitle or title or ''}".lower().replace(" ", "-"),
        "department": department,
        "level": level,
        "source": source,
    }
    if subtitle is not None:
        record["subtitle"] = subtitle
    if title is not None:
        record["title"] = title
    if process_type is not None:
        record["processType"] = process_type
    if classification is not None:
        record["classification"] = classification
    return record


@pytest.fixture()
def recording_log() -> RecordingValidationLogger:
    return RecordingValidationLogger(ValidationLogConfig(level="debug", max_entries=500))


@pytest.fixture()
def engine(recording_log: RecordingValidationLogger) -> ClassificationEngine:
    return ClassificationEngine(log=recording_log)
