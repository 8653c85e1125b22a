"""Data models for consistency and aggregation reports."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import Field

from workforce.classification.models import Position, WireModel
from workforce.core.types import Classification, Severity


def _zero_counts() -> dict[str, int]:
    return {c.value: 0 for c in Classification}


class Inconsistency(WireModel):
    """A position whose classification disagrees with its group's expectation."""

    position_id: str
    department: str
    level: str
    title: str | None = None
    subtitle: str | None = None
    expected_classification: Classification
    actual_classification: Classification | str
    pages: list[str] = Field(default_factory=list)
    reason: str
    severity: Severity = Severity.ERROR


class ValidationSummary(WireModel):
    total_positions: int = 0
    valid_positions: int = 0
    inconsistent_positions: int = 0
    classification_counts: dict[str, int] = Field(default_factory=_zero_counts)
    pages_covered: list[str] = Field(default_factory=list)


class ValidationReport(WireModel):
    """Result of a cross-source consistency check."""

    is_valid: bool
    inconsistencies: list[Inconsistency] = Field(default_factory=list)
    summary: ValidationSummary = Field(default_factory=ValidationSummary)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class BreakdownEntry(WireModel):
    total_positions: int = 0
    classifications: dict[str, int] = Field(default_factory=_zero_counts)
    inconsistencies: int = 0


class DetailedValidationReport(ValidationReport):
    """Consistency report with per-department and per-level breakdowns."""

    department_analysis: dict[str, BreakdownEntry] = Field(default_factory=dict)
    level_analysis: dict[str, BreakdownEntry] = Field(default_factory=dict)


class PositionValidationResult(WireModel):
    position: Position
    is_valid: bool
    expected_classification: Classification
    actual_classification: Classification | str | None = None
    issues: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class AggregationMismatch(WireModel):
    """A divergence between a detailed-view bucket and an aggregation page."""

    department: str
    level: str
    detailed_count: int
    aggregated_count: int
    classification: Classification
    reason: str


class AggregationValidationResult(WireModel):
    """Result of reconciling aggregation pages against the detailed view.

    ``oh_page_total`` is always 0: OH positions are reported on the indirect
    page.
    """

    is_valid: bool
    direct_page_total: int = 0
    indirect_page_total: int = 0
    oh_page_total: int = 0
    detailed_view_total: int = 0
    mismatches: list[AggregationMismatch] = Field(default_factory=list)


# --- Application-wide report ---


class DistributionBucket(WireModel):
    count: int = 0
    percentage: float = 0.0
    positions: list[str] = Field(default_factory=list)


class AnalysisEntry(WireModel):
    total_positions: int = 0
    direct_count: int = 0
    indirect_count: int = 0
    oh_count: int = 0
    inconsistencies: int = 0
    issues: list[str] = Field(default_factory=list)


IssueType = Literal[
    "classification_inconsistency",
    "aggregation_mismatch",
    "missing_positions",
    "duplicate_positions",
    "invalid_data",
]
IssueSeverity = Literal["critical", "high", "medium", "low"]


class CriticalIssue(WireModel):
    type: IssueType
    severity: IssueSeverity
    description: str
    affected_positions: list[str] = Field(default_factory=list)
    recommendation: str
    pages: list[str] = Field(default_factory=list)


class ReportSummary(WireModel):
    total_positions: int = 0
    valid_positions: int = 0
    inconsistent_positions: int = 0
    aggregation_mismatches: int = 0
    critical_issue_count: int = 0
    warning_count: int = 0


class DataConsistencyReport(WireModel):
    """Application-wide consistency report across every registered view."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    consistency_validation: ValidationReport
    aggregation_validation: AggregationValidationResult | None = None
    classification_distribution: dict[str, DistributionBucket] = Field(default_factory=dict)
    department_analysis: dict[str, AnalysisEntry] = Field(default_factory=dict)
    level_analysis: dict[str, AnalysisEntry] = Field(default_factory=dict)
    critical_issues: list[CriticalIssue] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    overall_health: Literal["healthy", "warning", "critical"] = "healthy"
    summary: ReportSummary = Field(default_factory=ReportSummary)

    @property
    def is_valid(self) -> bool:
        if not self.consistency_validation.is_valid:
            return False
        if self.aggregation_validation is not None and not self.aggregation_validation.is_valid:
            return False
        return True
