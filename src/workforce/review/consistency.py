"""Cross-source classification consistency checks.

Each view (page) registers the positions it displays. The validator groups
positions from every view by structural identity (normalized department,
level, subtitle and title) and reports any member whose explicit or computed
classification differs from the classification the engine expects for the
group.
"""

from __future__ import annotations

import threading
from typing import Any, Iterable, Mapping

from workforce.classification.models import CrossPagePosition, Position
from workforce.classification.normalize import is_known_department, normalize_department
from workforce.classification.rules import ClassificationEngine, as_position
from workforce.core.types import Classification, Severity
from workforce.governance.validation_log import (
    StandardValidationLogger,
    ValidationLogger,
    safe_log,
)
from workforce.review.models import (
    BreakdownEntry,
    DetailedValidationReport,
    Inconsistency,
    PositionValidationResult,
    ValidationReport,
    ValidationSummary,
)

PositionKey = tuple[str, str, str, str]


class ConsistencyValidator:
    """Registry of positions per source plus the consistency check over them.

    The registry is the only shared mutable state. Registration and
    validation are serialized by a lock; a validation pass works on a
    snapshot taken under that lock.

    Args:
        engine: ClassificationEngine used to compute expected classifications.
        log: Observability sink. Defaults to a stdlib-backed logger.
    """

    def __init__(
        self,
        engine: ClassificationEngine | None = None,
        log: ValidationLogger | None = None,
    ) -> None:
        self._log: ValidationLogger = log or StandardValidationLogger()
        self._engine = engine or ClassificationEngine(log=self._log)
        self._positions: dict[str, list[Any]] = {}
        self._lock = threading.Lock()

    # --- Registry ---

    def register_positions(
        self, source: str, positions: Iterable[Position | Mapping[str, Any]]
    ) -> None:
        """Replace the positions registered for *source*."""
        entries = list(positions or [])
        with self._lock:
            self._positions[source] = entries

    def clear_positions(self) -> None:
        with self._lock:
            self._positions.clear()

    @property
    def registered_sources(self) -> list[str]:
        with self._lock:
            return list(self._positions)

    def _snapshot(self) -> dict[str, list[Any]]:
        with self._lock:
            return {source: list(entries) for source, entries in self._positions.items()}

    # --- Validation ---

    @staticmethod
    def position_key(position: Position) -> PositionKey:
        """Structural identity of a position across sources."""
        return (
            normalize_department(position.department) or "",
            position.level or "",
            position.subtitle or "",
            position.title or "",
        )

    def validate_consistency(self) -> ValidationReport:
        """Check that every logical position is classified the same in every source."""
        try:
            safe_log(self._log.log_info, "Starting validation consistency check")
            snapshot = self._snapshot()

            groups: dict[PositionKey, list[CrossPagePosition]] = {}
            total_positions = 0
            for source, entries in snapshot.items():
                for raw in entries:
                    try:
                        position = _as_cross_page(raw, source)
                        key = self.position_key(position)
                    except Exception as exc:
                        safe_log(
                            self._log.log_system_error, exc, f"Processing position from {source}"
                        )
                        continue
                    groups.setdefault(key, []).append(position)
                    total_positions += 1

            inconsistencies: list[Inconsistency] = []
            counts = {c.value: 0 for c in Classification}
            for key, group in groups.items():
                try:
                    expected = self._engine.classify_position(group[0])
                    inconsistencies.extend(self._check_group(group, expected))
                    counts[expected.value] += 1
                except Exception as exc:
                    safe_log(
                        self._log.log_system_error, exc, f"Validating position group: {key}"
                    )

            report = ValidationReport(
                is_valid=not inconsistencies,
                inconsistencies=inconsistencies,
                summary=ValidationSummary(
                    total_positions=total_positions,
                    valid_positions=total_positions - len(inconsistencies),
                    inconsistent_positions=len(inconsistencies),
                    classification_counts=counts,
                    pages_covered=list(snapshot),
                ),
            )
            self._log_report(report)
            return report

        except Exception as exc:
            safe_log(self._log.log_system_error, exc, "ConsistencyValidator.validate_consistency")
            return _system_error_report()

    def _check_group(
        self, group: list[CrossPagePosition], expected: Classification
    ) -> list[Inconsistency]:
        if len(group) < 2:
            return []

        pages = list(dict.fromkeys(p.source for p in group))
        found: list[Inconsistency] = []
        for position in group:
            actual = position.classification or self._engine.classify_position(position)
            if actual == expected:
                continue
            found.append(
                Inconsistency(
                    position_id=position.id,
                    department=position.department or "",
                    level=position.level or "",
                    title=position.title,
                    subtitle=position.subtitle,
                    expected_classification=expected,
                    actual_classification=actual,
                    pages=pages,
                    reason=(
                        "Position appears with different classifications across pages: "
                        + ", ".join(pages)
                    ),
                    severity=Severity.ERROR,
                )
            )
        return found

    def _log_report(self, report: ValidationReport) -> None:
        details = {
            "total_positions": report.summary.total_positions,
            "inconsistent_positions": report.summary.inconsistent_positions,
            "pages_covered": report.summary.pages_covered,
        }
        if report.is_valid:
            safe_log(self._log.log_info, "Validation report: PASSED", details)
            return
        safe_log(
            self._log.log_warning,
            f"Validation report: FAILED - {len(report.inconsistencies)} inconsistencies found",
            details,
        )
        for inconsistency in report.inconsistencies:
            safe_log(
                self._log.log_warning,
                f"Validation inconsistency: {inconsistency.reason}",
                inconsistency.model_dump(mode="json"),
            )

    def validate_position(
        self, position: Position | Mapping[str, Any]
    ) -> PositionValidationResult:
        """Check a single position on its own.

        Missing department or level invalidates it. An unknown department or a
        mismatching explicit classification only produces warnings.
        """
        try:
            position = as_position(position)
        except Exception as exc:
            safe_log(self._log.log_system_error, exc, "ConsistencyValidator.validate_position")
            raw_id = position.get("id") if isinstance(position, Mapping) else None
            return PositionValidationResult(
                position=Position(id=str(raw_id or "unknown")),
                is_valid=False,
                expected_classification=Classification.INDIRECT,
                issues=["System error during position validation"],
            )

        issues: list[str] = []
        warnings: list[str] = []
        if not position.department:
            issues.append("Department is required")
        if not position.level:
            issues.append("Level is required")

        expected = self._engine.classify_position(position)
        if position.classification and position.classification != expected:
            warning = (
                f"Classification mismatch: expected {expected}, got {position.classification}"
            )
            warnings.append(warning)
            safe_log(
                self._log.log_warning,
                warning,
                {"position_id": position.id, "department": position.department, "level": position.level},
            )

        if position.department and not is_known_department(position.department):
            warning = f"Unknown department: {position.department}"
            warnings.append(warning)
            safe_log(
                self._log.log_warning,
                warning,
                {"position_id": position.id, "department": position.department, "level": position.level},
            )

        return PositionValidationResult(
            position=position,
            is_valid=not issues,
            expected_classification=expected,
            actual_classification=position.classification,
            issues=issues,
            warnings=warnings,
        )

    def generate_detailed_report(self) -> DetailedValidationReport:
        """Consistency report plus per-department and per-level breakdowns.

        Breakdowns count every registered position (not groups), keyed by
        normalized department and by level.
        """
        base = self.validate_consistency()
        departments: dict[str, BreakdownEntry] = {}
        levels: dict[str, BreakdownEntry] = {}

        for source, entries in self._snapshot().items():
            for raw in entries:
                try:
                    position = _as_cross_page(raw, source)
                except Exception:
                    continue
                expected = self._engine.classify_position(position).value
                dept = departments.setdefault(
                    normalize_department(position.department) or "", BreakdownEntry()
                )
                dept.total_positions += 1
                dept.classifications[expected] += 1
                lvl = levels.setdefault(position.level or "", BreakdownEntry())
                lvl.total_positions += 1
                lvl.classifications[expected] += 1

        for inconsistency in base.inconsistencies:
            dept_key = normalize_department(inconsistency.department) or ""
            if dept_key in departments:
                departments[dept_key].inconsistencies += 1
            if inconsistency.level in levels:
                levels[inconsistency.level].inconsistencies += 1

        return DetailedValidationReport(
            **base.model_dump(),
            department_analysis=departments,
            level_analysis=levels,
        )


def _as_cross_page(raw: Any, source: str) -> CrossPagePosition:
    position = as_position(raw)
    return CrossPagePosition.model_validate({**position.model_dump(), "source": source})


def _system_error_report() -> ValidationReport:
    return ValidationReport(
        is_valid=False,
        inconsistencies=[
            Inconsistency(
                position_id="system-error",
                department="SYSTEM",
                level="ERROR",
                expected_classification=Classification.INDIRECT,
                actual_classification=Classification.INDIRECT,
                reason="System error during validation",
                severity=Severity.ERROR,
            )
        ],
        summary=ValidationSummary(inconsistent_positions=1),
    )
