"""Governance module: the validation logging collaborator."""

from workforce.governance.validation_log import (
    RecordingValidationLogger,
    StandardValidationLogger,
    ValidationLogger,
)

__all__ = ["RecordingValidationLogger", "StandardValidationLogger", "ValidationLogger"]
