"""Reconcile aggregation pages against the detailed position view.

The direct aggregation page must hold exactly the detailed positions that
classify as ``direct``; the indirect page holds ``indirect`` and ``OH``
positions.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from workforce.classification.models import Position
from workforce.classification.rules import ClassificationEngine
from workforce.core.types import Classification
from workforce.governance.validation_log import (
    StandardValidationLogger,
    ValidationLogger,
    safe_log,
)
from workforce.review.models import AggregationMismatch, AggregationValidationResult

PositionInput = Position | Mapping[str, Any]

_INDIRECT_PAGE_CLASSES = frozenset({Classification.INDIRECT, Classification.OH})


class AggregationValidator:
    """Checks aggregation page totals and membership against the detailed view.

    Args:
        engine: ClassificationEngine used to recompute classifications.
        log: Observability sink. Defaults to a stdlib-backed logger.
    """

    def __init__(
        self,
        engine: ClassificationEngine | None = None,
        log: ValidationLogger | None = None,
    ) -> None:
        self._log: ValidationLogger = log or StandardValidationLogger()
        self._engine = engine or ClassificationEngine(log=self._log)

    def validate_aggregation(
        self,
        direct_page: Iterable[PositionInput] | None,
        indirect_page: Iterable[PositionInput] | None,
        detailed: Iterable[PositionInput] | None,
    ) -> AggregationValidationResult:
        """Compare both aggregation pages with the detailed view.

        Missing inputs count as empty pages and are still compared.
        """
        direct_items = _as_list(direct_page)
        indirect_items = _as_list(indirect_page)
        detailed_items = _as_list(detailed)

        try:
            safe_log(self._log.log_info, "Starting aggregation validation")
            mismatches: list[AggregationMismatch] = []

            counts = {c: 0 for c in Classification}
            for item in detailed_items:
                counts[self._classify(item)] += 1

            mismatches.extend(
                self._check_page(
                    direct_items,
                    page=Classification.DIRECT,
                    accepted=frozenset({Classification.DIRECT}),
                    expected_count=counts[Classification.DIRECT],
                )
            )
            mismatches.extend(
                self._check_page(
                    indirect_items,
                    page=Classification.INDIRECT,
                    accepted=_INDIRECT_PAGE_CLASSES,
                    expected_count=counts[Classification.INDIRECT] + counts[Classification.OH],
                )
            )

            detailed_total = len(detailed_items)
            aggregated_total = len(direct_items) + len(indirect_items)
            if detailed_total != aggregated_total:
                mismatch = AggregationMismatch(
                    department="ALL",
                    level="ALL",
                    detailed_count=detailed_total,
                    aggregated_count=aggregated_total,
                    classification=Classification.DIRECT,
                    reason=(
                        f"Total aggregation mismatch: detailed views have {detailed_total} "
                        f"positions, aggregation pages have {aggregated_total}"
                    ),
                )
                mismatches.append(mismatch)

            result = AggregationValidationResult(
                is_valid=not mismatches,
                direct_page_total=len(direct_items),
                indirect_page_total=len(indirect_items),
                oh_page_total=0,
                detailed_view_total=detailed_total,
                mismatches=mismatches,
            )
            self._log_result(result)
            return result

        except Exception as exc:
            safe_log(self._log.log_system_error, exc, "AggregationValidator.validate_aggregation")
            return AggregationValidationResult(
                is_valid=False,
                direct_page_total=len(direct_items),
                indirect_page_total=len(indirect_items),
                oh_page_total=0,
                detailed_view_total=len(detailed_items),
                mismatches=[
                    AggregationMismatch(
                        department="SYSTEM",
                        level="ERROR",
                        detailed_count=0,
                        aggregated_count=0,
                        classification=Classification.DIRECT,
                        reason="System error during aggregation validation",
                    )
                ],
            )

    def _classify(self, item: Any) -> Classification:
        # Unparseable items still count; the engine falls back for them.
        return self._engine.classify_position(item)

    def _check_page(
        self,
        items: list[Any],
        *,
        page: Classification,
        accepted: frozenset[Classification],
        expected_count: int,
    ) -> list[AggregationMismatch]:
        found: list[AggregationMismatch] = []
        actual_count = len(items)
        if actual_count != expected_count:
            found.append(
                AggregationMismatch(
                    department="ALL",
                    level="ALL",
                    detailed_count=expected_count,
                    aggregated_count=actual_count,
                    classification=page,
                    reason=(
                        f"{page} aggregation page has {actual_count} positions, "
                        f"expected {expected_count}"
                    ),
                )
            )

        for item in items:
            classification = self._classify(item)
            if classification in accepted:
                continue
            department, level = _label(item)
            found.append(
                AggregationMismatch(
                    department=department,
                    level=level,
                    detailed_count=1,
                    aggregated_count=0,
                    classification=page,
                    reason=(
                        f"Position {department} {level} is classified as {classification} "
                        f"but appears in {page} aggregation page"
                    ),
                )
            )
        return found

    def _log_result(self, result: AggregationValidationResult) -> None:
        details = {
            "direct_page_total": result.direct_page_total,
            "indirect_page_total": result.indirect_page_total,
            "detailed_view_total": result.detailed_view_total,
            "mismatches": len(result.mismatches),
        }
        if result.is_valid:
            safe_log(self._log.log_info, "Aggregation validation: PASSED", details)
            return
        safe_log(
            self._log.log_warning,
            f"Aggregation validation: FAILED - {len(result.mismatches)} mismatches found",
            details,
        )
        for mismatch in result.mismatches:
            safe_log(
                self._log.log_warning,
                f"Aggregation validation failure: {mismatch.reason}",
                mismatch.model_dump(mode="json"),
            )


def _as_list(items: Iterable[Any] | None) -> list[Any]:
    if items is None:
        return []
    try:
        return list(items)
    except TypeError:
        return []


def _label(item: Any) -> tuple[str, str]:
    if isinstance(item, Position):
        return item.department or "", item.level or ""
    if isinstance(item, Mapping):
        return str(item.get("department") or ""), str(item.get("level") or "")
    return "", ""
