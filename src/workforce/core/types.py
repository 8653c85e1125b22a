"""Core type definitions shared across all workforce modules."""

from __future__ import annotations

from enum import StrEnum


class Classification(StrEnum):
    """Workforce-accounting category assigned to a position."""

    DIRECT = "direct"
    INDIRECT = "indirect"
    OH = "OH"


class Level(StrEnum):
    """Organizational job levels.

    ``VSM`` and ``A.VSM`` are used by some views in place of ``PM`` and
    ``LM``. They are kept as distinct members with the same rule outcomes.
    """

    PM = "PM"
    LM = "LM"
    GL = "GL"
    TL = "TL"
    TM = "TM"
    DEPT = "DEPT"
    VSM = "VSM"
    A_VSM = "A.VSM"


# Levels that are always overhead unless an exception says otherwise.
LEADERSHIP_LEVELS: frozenset[str] = frozenset(
    {Level.PM, Level.LM, Level.VSM, Level.A_VSM}
)


class Confidence(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"
