"""Application-wide data consistency report.

Runs the consistency check over every detailed page, the aggregation check
when an aggregation page is supplied, and rolls the results up into a
:class:`DataConsistencyReport` with distributions, breakdowns, critical
issues and recommendations.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from workforce.classification.models import Position
from workforce.classification.normalize import normalize_department
from workforce.classification.rules import ClassificationEngine, as_position
from workforce.core.types import Classification, Severity
from workforce.governance.validation_log import (
    StandardValidationLogger,
    ValidationLogger,
    safe_log,
)
from workforce.review.aggregation import AggregationValidator
from workforce.review.consistency import ConsistencyValidator
from workforce.review.models import (
    AggregationValidationResult,
    AnalysisEntry,
    CriticalIssue,
    DataConsistencyReport,
    DistributionBucket,
    ReportSummary,
    ValidationReport,
)

AGGREGATION_PAGES = ["aggregation-direct", "aggregation-indirect"]
MAX_RECOMMENDATIONS = 5


class ConsistencyReporter:
    """Builds DataConsistencyReport objects for a set of named pages.

    Each call uses a fresh ConsistencyValidator, so reports for different
    page sets never share a registry.
    """

    def __init__(
        self,
        engine: ClassificationEngine | None = None,
        log: ValidationLogger | None = None,
    ) -> None:
        self._log: ValidationLogger = log or StandardValidationLogger()
        self._engine = engine or ClassificationEngine(log=self._log)
        self._aggregation = AggregationValidator(self._engine, self._log)

    def validate_application(
        self,
        pages: Mapping[str, Iterable[Position | Mapping[str, Any]]],
        direct_page: Iterable[Position | Mapping[str, Any]] | None = None,
        indirect_page: Iterable[Position | Mapping[str, Any]] | None = None,
    ) -> DataConsistencyReport:
        """Validate every detailed page and, optionally, the aggregation pages.

        The aggregation check runs when either page is given; a missing page
        counts as empty.
        """
        safe_log(
            self._log.log_info,
            "Starting comprehensive data consistency validation",
            {"pages": list(pages)},
        )
        pages = {name: list(positions or []) for name, positions in pages.items()}
        validator = ConsistencyValidator(self._engine, self._log)
        detailed: list[Any] = []
        for name, items in pages.items():
            validator.register_positions(name, items)
            detailed.extend(items)

        consistency = validator.validate_consistency()
        aggregation = None
        if direct_page is not None or indirect_page is not None:
            if direct_page is None or indirect_page is None:
                missing = "direct" if direct_page is None else "indirect"
                safe_log(
                    self._log.log_warning,
                    f"Only one aggregation page supplied; {missing} page treated as empty",
                    {"missing_page": missing},
                )
            aggregation = self._aggregation.validate_aggregation(direct_page, indirect_page, detailed)

        parsed, invalid = _parse_pages(pages)
        issues = self._critical_issues(consistency, aggregation, parsed, invalid)
        report = DataConsistencyReport(
            consistency_validation=consistency,
            aggregation_validation=aggregation,
            classification_distribution=self._distribution(parsed),
            department_analysis=self._analysis(parsed, consistency, by="department"),
            level_analysis=self._analysis(parsed, consistency, by="level"),
            critical_issues=issues,
            recommendations=_recommendations(consistency, aggregation, issues),
            overall_health=_overall_health(consistency, aggregation, issues),
            summary=ReportSummary(
                total_positions=len(detailed),
                valid_positions=consistency.summary.valid_positions,
                inconsistent_positions=consistency.summary.inconsistent_positions,
                aggregation_mismatches=len(aggregation.mismatches) if aggregation else 0,
                critical_issue_count=sum(1 for i in issues if i.severity == "critical"),
                warning_count=sum(1 for i in issues if i.severity in ("medium", "low")),
            ),
        )
        safe_log(
            self._log.log_info,
            "Data consistency validation completed",
            {"overall_health": report.overall_health, "issues": len(issues)},
        )
        return report

    def quick_check(
        self, pages: Mapping[str, Iterable[Position | Mapping[str, Any]]]
    ) -> dict[str, Any]:
        """Compact health summary for a set of detailed pages."""
        report = self.validate_application(pages)
        return {
            "is_healthy": report.overall_health == "healthy",
            "critical_issue_count": report.summary.critical_issue_count,
            "warning_count": report.summary.warning_count,
            "quick_summary": quick_summary(report),
            "recommendations": report.recommendations[:3],
        }

    # --- Roll-ups ---

    def _distribution(
        self, parsed: list[tuple[str, Position]]
    ) -> dict[str, DistributionBucket]:
        buckets = {c.value: DistributionBucket() for c in Classification}
        for _, position in parsed:
            bucket = buckets[self._engine.classify_position(position).value]
            bucket.count += 1
            bucket.positions.append(position_label(position))
        total = len(parsed) or 1
        for bucket in buckets.values():
            bucket.percentage = round(bucket.count / total * 100, 2)
        return buckets

    def _analysis(
        self,
        parsed: list[tuple[str, Position]],
        consistency: ValidationReport,
        *,
        by: str,
    ) -> dict[str, AnalysisEntry]:
        def key_of(department: str | None, level: str | None) -> str:
            if by == "department":
                return normalize_department(department) or ""
            return level or ""

        entries: dict[str, AnalysisEntry] = {}
        for _, position in parsed:
            entry = entries.setdefault(key_of(position.department, position.level), AnalysisEntry())
            entry.total_positions += 1
            classification = self._engine.classify_position(position)
            if classification == Classification.DIRECT:
                entry.direct_count += 1
            elif classification == Classification.INDIRECT:
                entry.indirect_count += 1
            else:
                entry.oh_count += 1

        for inconsistency in consistency.inconsistencies:
            entry = entries.get(key_of(inconsistency.department, inconsistency.level))
            if entry is not None:
                entry.inconsistencies += 1
                entry.issues.append(inconsistency.reason)
        return entries

    def _critical_issues(
        self,
        consistency: ValidationReport,
        aggregation: AggregationValidationResult | None,
        parsed: list[tuple[str, Position]],
        invalid: list[tuple[str, str]],
    ) -> list[CriticalIssue]:
        issues: list[CriticalIssue] = []

        for inconsistency in consistency.inconsistencies:
            issues.append(
                CriticalIssue(
                    type="classification_inconsistency",
                    severity="critical" if inconsistency.severity == Severity.ERROR else "medium",
                    description=inconsistency.reason,
                    affected_positions=[inconsistency.position_id],
                    recommendation=(
                        f"Ensure {inconsistency.department} {inconsistency.level} is consistently "
                        f"classified as {inconsistency.expected_classification} across all pages"
                    ),
                    pages=inconsistency.pages,
                )
            )

        if aggregation is not None and not aggregation.is_valid:
            for mismatch in aggregation.mismatches:
                issues.append(
                    CriticalIssue(
                        type="aggregation_mismatch",
                        severity="high",
                        description=mismatch.reason,
                        affected_positions=[f"{mismatch.department} {mismatch.level}"],
                        recommendation=(
                            f"Review aggregation logic for {mismatch.department} "
                            f"{mismatch.level} positions"
                        ),
                        pages=list(AGGREGATION_PAGES),
                    )
                )

        missing_fields = [
            (source, p.id) for source, p in parsed if not p.department or not p.level
        ]
        for source, position_id in invalid + missing_fields:
            issues.append(
                CriticalIssue(
                    type="invalid_data",
                    severity="high",
                    description=f"Position {position_id} from {source} is malformed or missing department/level",
                    affected_positions=[position_id],
                    recommendation="Fix the source data so every position has a department and level",
                    pages=[source],
                )
            )

        if parsed and not any(_is_ce_mixing(p) for _, p in parsed):
            issues.append(
                CriticalIssue(
                    type="missing_positions",
                    severity="medium",
                    description=(
                        "No CE TM Mixing positions found - this is typically expected "
                        "in production data"
                    ),
                    recommendation=(
                        "Verify if CE TM Mixing positions should be present in the "
                        "current configuration"
                    ),
                )
            )

        issues.extend(_duplicate_issues(parsed))
        return issues


def position_label(position: Position) -> str:
    label = f"{position.department} {position.level}"
    if position.subtitle:
        label += f" ({position.subtitle})"
    return label


def quick_summary(report: DataConsistencyReport) -> str:
    summary = report.summary
    if report.overall_health == "healthy":
        return (
            f"All {summary.total_positions} positions are consistently classified "
            "with no critical issues"
        )
    if report.overall_health == "warning":
        return (
            f"{summary.inconsistent_positions} of {summary.total_positions} positions have issues "
            f"({summary.critical_issue_count} critical)"
        )
    return (
        f"Critical data consistency issues found: {summary.critical_issue_count} critical issues "
        f"affecting {summary.inconsistent_positions} positions"
    )


def _parse_pages(
    pages: Mapping[str, Iterable[Any]],
) -> tuple[list[tuple[str, Position]], list[tuple[str, str]]]:
    parsed: list[tuple[str, Position]] = []
    invalid: list[tuple[str, str]] = []
    for source, positions in pages.items():
        for index, raw in enumerate(positions or []):
            try:
                parsed.append((source, as_position(raw)))
            except Exception:
                invalid.append((source, f"#{index}"))
    return parsed, invalid


def _is_ce_mixing(position: Position) -> bool:
    return (
        normalize_department(position.department) == "CE"
        and position.level == "TM"
        and any("Mixing" in (text or "") for text in (position.subtitle, position.title))
    )


def _duplicate_issues(parsed: list[tuple[str, Position]]) -> list[CriticalIssue]:
    """Positions repeated within a single source (repeats across sources are expected)."""
    groups: dict[tuple[str, str, str, str], list[Position]] = {}
    for source, position in parsed:
        key = (
            source,
            normalize_department(position.department) or "",
            position.level or "",
            position.subtitle or "",
        )
        groups.setdefault(key, []).append(position)

    issues: list[CriticalIssue] = []
    for (source, department, level, subtitle), members in groups.items():
        if len(members) < 2:
            continue
        issues.append(
            CriticalIssue(
                type="duplicate_positions",
                severity="medium",
                description=f"Duplicate positions found: {department}-{level}-{subtitle}",
                affected_positions=[p.id for p in members],
                recommendation="Review data source to eliminate duplicate position entries",
                pages=[source],
            )
        )
    return issues


def _recommendations(
    consistency: ValidationReport,
    aggregation: AggregationValidationResult | None,
    issues: list[CriticalIssue],
) -> list[str]:
    recommendations: list[str] = []
    if not consistency.is_valid:
        recommendations.append(
            "Review and update classification logic to ensure consistency across all pages"
        )
        departments = list(dict.fromkeys(i.department for i in consistency.inconsistencies))
        if departments:
            recommendations.append(f"Focus on departments with issues: {', '.join(departments)}")

    if aggregation is not None and not aggregation.is_valid:
        recommendations.append("Update aggregation page logic to match detailed view classifications")
        if any(m.department == "CE" for m in aggregation.mismatches):
            recommendations.append("Verify CE TM Mixing positions appear in direct aggregation page")

    if any(i.severity in ("critical", "high") for i in issues):
        recommendations.append(
            "Address critical and high-severity issues first to improve data integrity"
        )

    if not recommendations:
        recommendations.append("Data consistency is good - continue monitoring for any changes")
    return recommendations[:MAX_RECOMMENDATIONS]


def _overall_health(
    consistency: ValidationReport,
    aggregation: AggregationValidationResult | None,
    issues: list[CriticalIssue],
) -> str:
    if any(i.severity == "critical" for i in issues):
        return "critical"
    if (
        not consistency.is_valid
        or (aggregation is not None and not aggregation.is_valid)
        or any(i.severity == "high" for i in issues)
    ):
        return "warning"
    return "healthy"
