"""Format and export data consistency reports."""

from __future__ import annotations

import json
from pathlib import Path

from workforce.review.models import DataConsistencyReport


def _pass_fail(ok: bool) -> str:
    return "PASS" if ok else "FAIL"


def format_report(report: DataConsistencyReport) -> str:
    """Produce a human-readable text summary of a DataConsistencyReport."""
    s = report.summary
    consistency = report.consistency_validation
    aggregation = report.aggregation_validation
    lines: list[str] = []

    lines.append("=" * 64)
    lines.append("  Workforce Classification Consistency Report")
    lines.append("=" * 64)
    lines.append(f"  Timestamp : {report.timestamp.isoformat()}")
    lines.append(f"  Pages     : {', '.join(consistency.summary.pages_covered) or '-'}")
    lines.append(f"  Positions : {s.total_positions}")
    lines.append(f"  Health    : {report.overall_health.upper()}")
    lines.append(f"  Overall   : {_pass_fail(report.is_valid)}")
    lines.append("-" * 64)
    lines.append("  Check                      Result     Details")
    lines.append("-" * 64)
    lines.append(
        f"  {'Cross-page consistency':<26} {_pass_fail(consistency.is_valid):<10} "
        f"{s.inconsistent_positions} inconsistent"
    )
    if aggregation is not None:
        lines.append(
            f"  {'Aggregation pages':<26} {_pass_fail(aggregation.is_valid):<10} "
            f"{aggregation.direct_page_total} direct / {aggregation.indirect_page_total} indirect "
            f"of {aggregation.detailed_view_total}"
        )
    lines.append("-" * 64)
    lines.append("  Classification   Count    Share")
    for name, bucket in report.classification_distribution.items():
        lines.append(f"  {name:<16} {bucket.count:<8} {bucket.percentage:.1f}%")

    if report.critical_issues:
        lines.append("-" * 64)
        lines.append("  Issues")
        for issue in report.critical_issues:
            lines.append(f"  [{issue.severity.upper()}] {issue.description}")

    if report.recommendations:
        lines.append("-" * 64)
        lines.append("  Recommendations")
        for rec in report.recommendations:
            lines.append(f"  - {rec}")

    lines.append("=" * 64)
    return "\n".join(lines)


def report_to_json(report: DataConsistencyReport) -> str:
    data = report.model_dump(mode="json", by_alias=True)
    data["isValid"] = report.is_valid
    return json.dumps(data, indent=2, default=str)


def export_report(report: DataConsistencyReport, path: str | Path) -> None:
    """Save a DataConsistencyReport to a JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report_to_json(report), encoding="utf-8")
