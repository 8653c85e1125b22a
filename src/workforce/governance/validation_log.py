"""Logging collaborator for the classification engine and validators.

The core only calls the narrow :class:`ValidationLogger` protocol. Results
never depend on what a sink does with the calls, and a sink that raises is
ignored (see :func:`safe_log`).
"""

from __future__ import annotations

import logging
from collections import Counter, deque
from datetime import datetime, timezone
from typing import Any, Callable, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from workforce.core.config import ValidationLogConfig

logger = logging.getLogger(__name__)

LogLevel = Literal["error", "warning", "info", "debug"]
LogCategory = Literal["classification", "validation", "aggregation", "system"]

# Lower value = more severe.
_LEVEL_PRIORITY: dict[str, int] = {"error": 0, "warning": 1, "info": 2, "debug": 3}


@runtime_checkable
class ValidationLogger(Protocol):
    """Protocol for the observability sink used by the core."""

    def log_info(self, message: str, details: dict[str, Any] | None = None) -> None: ...

    def log_warning(self, message: str, details: dict[str, Any] | None = None) -> None: ...

    def log_system_error(self, error: BaseException, context: str) -> None: ...


def safe_log(call: Callable[..., None], *args: Any) -> None:
    """Invoke a sink method, ignoring any failure inside the sink."""
    try:
        call(*args)
    except Exception:
        logger.debug("Validation log sink failed", exc_info=True)


class StandardValidationLogger:
    """Forwards validation events to a stdlib logger."""

    def __init__(self, name: str = "workforce.validation") -> None:
        self._logger = logging.getLogger(name)

    def log_info(self, message: str, details: dict[str, Any] | None = None) -> None:
        self._logger.info("%s %s", message, details or "")

    def log_warning(self, message: str, details: dict[str, Any] | None = None) -> None:
        self._logger.warning("%s %s", message, details or "")

    def log_system_error(self, error: BaseException, context: str) -> None:
        self._logger.error(
            "System error in %s: %s",
            context,
            error,
            exc_info=(type(error), error, error.__traceback__),
        )


class LogEntry(BaseModel):
    """A single recorded validation event."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    level: LogLevel
    category: LogCategory
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class RecordingValidationLogger(StandardValidationLogger):
    """Keeps recent validation events in memory and forwards them to stdlib logging.

    Entries less severe than the configured level are forwarded but not
    recorded. At most ``max_entries`` entries are kept; the oldest are dropped
    first.

    Args:
        config: ValidationLogConfig instance. Defaults to
            ``ValidationLogConfig()`` which reads from environment variables.
    """

    def __init__(self, config: ValidationLogConfig | None = None, name: str = "workforce.validation") -> None:
        super().__init__(name)
        self._config = config or ValidationLogConfig()
        self._threshold = _LEVEL_PRIORITY.get(self._config.level, _LEVEL_PRIORITY["warning"])
        self._entries: deque[LogEntry] = deque(maxlen=max(self._config.max_entries, 1))

    def _record(
        self,
        level: LogLevel,
        category: LogCategory,
        message: str,
        details: dict[str, Any] | None,
    ) -> None:
        if _LEVEL_PRIORITY[level] > self._threshold:
            return
        self._entries.append(
            LogEntry(level=level, category=category, message=message, details=details or {})
        )

    def log_info(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().log_info(message, details)
        self._record("info", "validation", message, details)

    def log_warning(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().log_warning(message, details)
        self._record("warning", "validation", message, details)

    def log_system_error(self, error: BaseException, context: str) -> None:
        super().log_system_error(error, context)
        self._record(
            "error",
            "system",
            f"System error in {context}: {error}",
            {"context": context, "error_type": type(error).__name__},
        )

    def get_logs(
        self,
        level: LogLevel | None = None,
        category: LogCategory | None = None,
    ) -> list[LogEntry]:
        """Return recorded entries at *level* or more severe, optionally by category."""
        entries = list(self._entries)
        if level is not None:
            limit = _LEVEL_PRIORITY[level]
            entries = [e for e in entries if _LEVEL_PRIORITY[e.level] <= limit]
        if category is not None:
            entries = [e for e in entries if e.category == category]
        return entries

    def error_summary(self) -> dict[str, Any]:
        """Counts of recorded errors and warnings, with the most recent errors."""
        errors = [e for e in self._entries if e.level == "error"]
        warnings = [e for e in self._entries if e.level == "warning"]
        return {
            "total_errors": len(errors),
            "total_warnings": len(warnings),
            "errors_by_category": dict(Counter(e.category for e in errors)),
            "recent_errors": [e.message for e in errors[-10:]],
        }

    def clear(self) -> None:
        self._entries.clear()
