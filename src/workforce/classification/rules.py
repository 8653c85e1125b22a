"""Classification rules engine.

Determines the workforce-accounting category (direct, indirect or OH) of a
position. Tiers are evaluated in order and the first one that decides wins:

1. exception rules (highest priority first, declaration order on ties)
2. unconditional level rules
3. process-type rules
4. department rules with ordered field conditions
5. keyword fallback

The engine never raises from a classification call. A failing rule counts
as a non-match; a failing tier hands over to the next one; the last resort
is ``indirect``.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterable, Mapping

from workforce.classification.defaults import (
    ADMIN_DEPARTMENTS,
    SEPARATED_PROCESS_DEPARTMENTS,
    SEPARATED_PROCESS_TYPES,
    default_rule_set,
)
from workforce.classification.models import (
    BatchClassification,
    BatchItem,
    BatchSummary,
    ClassificationCheck,
    ClassificationTrace,
    DepartmentRule,
    ExceptionRule,
    Position,
    RecoveryResult,
    RuleSet,
)
from workforce.classification.normalize import normalize_department
from workforce.core.types import LEADERSHIP_LEVELS, Classification, Confidence, Level
from workforce.governance.validation_log import (
    StandardValidationLogger,
    ValidationLogger,
    safe_log,
)

logger = logging.getLogger(__name__)

_RAW_FIELDS = {
    "department": ("department",),
    "level": ("level",),
    "process_type": ("processType", "process_type"),
    "subtitle": ("subtitle",),
    "title": ("title",),
}


def as_position(value: Position | Mapping[str, Any]) -> Position:
    """Coerce a mapping (e.g. parsed JSON) into a Position."""
    if isinstance(value, Position):
        return value
    return Position.model_validate(value)


def _raw_fields(value: Any) -> dict[str, str | None]:
    """Best-effort extraction of classification inputs from an unparsed record."""
    fields: dict[str, str | None] = {}
    for name, keys in _RAW_FIELDS.items():
        found = None
        for key in keys:
            candidate = value.get(key) if isinstance(value, Mapping) else getattr(value, key, None)
            if isinstance(candidate, str):
                found = candidate
                break
        fields[name] = found
    return fields


def _mentions(text: str, *fields: str | None) -> bool:
    return any(f and text in f.lower() for f in fields)


def fallback_classification(
    department: str | None = None,
    level: str | None = None,
    process_type: str | None = None,
    subtitle: str | None = None,
    title: str | None = None,
) -> Classification:
    """Keyword-heuristic classification used when no explicit rule applies.

    Total: always returns a Classification, ``indirect`` as the last resort.
    """
    try:
        if level in LEADERSHIP_LEVELS:
            return Classification.OH

        dept = normalize_department(department) if isinstance(department, str) else None
        if dept:
            if dept in ADMIN_DEPARTMENTS:
                return Classification.OH
            if "Production" in dept:
                return Classification.DIRECT if level == Level.TM else Classification.INDIRECT
            if "Quality" in dept:
                return Classification.OH if level == Level.GL else Classification.INDIRECT
            if dept == "CE":
                if _mentions("mixing", subtitle, title):
                    return Classification.DIRECT
                return Classification.OH
            if "Market" in dept:
                return Classification.INDIRECT
            if "Material" in dept:
                return Classification.OH if dept == "Sub Material" else Classification.INDIRECT
            if dept in SEPARATED_PROCESS_DEPARTMENTS:
                return Classification.INDIRECT

        if process_type in SEPARATED_PROCESS_TYPES:
            return Classification.INDIRECT

        if level == Level.DEPT:
            return Classification.OH
        return Classification.INDIRECT
    except Exception:
        logger.exception("Fallback classification failed for %r / %r", department, level)
        return Classification.INDIRECT


class ClassificationEngine:
    """Prioritized, multi-tier classification of positions.

    The rule set is an immutable value. ``update_rules`` and ``replace_rules``
    swap the engine's reference to a new RuleSet; each classification call
    reads that reference once, so it never sees a half-updated rule set.

    Args:
        rule_set: Rules to evaluate. Defaults to ``default_rule_set()``.
        log: Observability sink. Defaults to a stdlib-backed logger.
    """

    def __init__(
        self,
        rule_set: RuleSet | None = None,
        log: ValidationLogger | None = None,
    ) -> None:
        self._rules = rule_set if rule_set is not None else default_rule_set()
        self._log: ValidationLogger = log or StandardValidationLogger()
        self._update_lock = threading.Lock()

    # --- Rule set management ---

    @property
    def rules(self) -> RuleSet:
        """The rule set currently in effect."""
        return self._rules

    def get_classification_rules(self) -> RuleSet:
        return self._rules

    def update_rules(
        self,
        *,
        department_rules: Mapping[str, DepartmentRule] | None = None,
        level_rules: Mapping[str, Classification] | None = None,
        process_rules: Mapping[str, Classification] | None = None,
        exception_rules: Iterable[ExceptionRule] | None = None,
    ) -> RuleSet:
        """Merge the given rules into a new RuleSet and make it current.

        Returns the new RuleSet.
        """
        with self._update_lock:
            self._rules = self._rules.merge(
                department_rules=department_rules,
                level_rules=level_rules,
                process_rules=process_rules,
                exception_rules=tuple(exception_rules) if exception_rules is not None else None,
            )
            return self._rules

    def replace_rules(self, rule_set: RuleSet) -> None:
        """Make *rule_set* current, discarding the previous rules entirely."""
        with self._update_lock:
            self._rules = rule_set

    # --- Classification ---

    def classify(
        self,
        department: str | None,
        level: str | None,
        process_type: str | None = None,
        subtitle: str | None = None,
        title: str | None = None,
    ) -> Classification:
        """Classify a position given as separate fields."""
        try:
            position = Position(
                id=f"{department}-{level}",
                department=department,
                level=level,
                process_type=process_type,
                subtitle=subtitle,
                title=title,
            )
        except Exception as exc:
            safe_log(self._log.log_system_error, exc, f"Classifying {department!r} {level!r}")
            return fallback_classification(
                *(v if isinstance(v, str) else None for v in (department, level, process_type, subtitle, title))
            )
        return self.classify_position(position)

    def classify_position(self, position: Position | Mapping[str, Any]) -> Classification:
        """Classify a position object."""
        return self.explain(position).classification

    def explain(self, position: Position | Mapping[str, Any]) -> ClassificationTrace:
        """Classify a position and report which tier decided it and why."""
        rules = self._rules
        try:
            if position is None:
                return self._fallback_trace({}, "Position is missing")
            position = as_position(position)
            if not position.department or not position.level:
                return self._fallback_trace(
                    _raw_fields(position), "Position is missing department or level"
                )

            normalized = position.model_copy(
                update={"department": normalize_department(position.department)}
            )
            tiers: tuple[tuple[str, Callable[[RuleSet, Position], ClassificationTrace | None]], ...] = (
                ("exception", self._exception_tier),
                ("level", self._level_tier),
                ("process", self._process_tier),
                ("department", self._department_tier),
            )
            for name, tier in tiers:
                try:
                    trace = tier(rules, normalized)
                except Exception as exc:
                    safe_log(
                        self._log.log_warning,
                        f"Error evaluating {name} rules",
                        {"position_id": normalized.id, "error": str(exc)},
                    )
                    continue
                if trace is not None:
                    return trace

            return self._fallback_trace(
                _raw_fields(normalized),
                f"No classification rule for department {normalized.department!r}, "
                f"level {normalized.level!r}",
            )
        except Exception as exc:
            safe_log(self._log.log_system_error, exc, "ClassificationEngine.classify_position")
            return self._fallback_trace(_raw_fields(position), f"Classification error: {exc}")

    def _exception_tier(self, rules: RuleSet, position: Position) -> ClassificationTrace | None:
        for rule in rules.exception_rules:
            try:
                matched = rule.condition(position)
            except Exception as exc:
                safe_log(
                    self._log.log_warning,
                    "Exception rule evaluation failed",
                    {"rule": rule.reason, "error": str(exc)},
                )
                continue
            if matched:
                return ClassificationTrace(
                    classification=rule.classification, tier="exception", reason=rule.reason
                )
        return None

    def _level_tier(self, rules: RuleSet, position: Position) -> ClassificationTrace | None:
        classification = rules.level_rules.get(position.level)
        if classification is None:
            return None
        return ClassificationTrace(
            classification=classification,
            tier="level",
            reason=f"Level {position.level} is always {classification}",
        )

    def _process_tier(self, rules: RuleSet, position: Position) -> ClassificationTrace | None:
        if not position.process_type:
            return None
        classification = rules.process_rules.get(position.process_type)
        if classification is None:
            return None
        return ClassificationTrace(
            classification=classification,
            tier="process",
            reason=f"Process {position.process_type} is {classification}",
        )

    def _department_tier(self, rules: RuleSet, position: Position) -> ClassificationTrace | None:
        rule = rules.department_rules.get(position.department)
        if rule is None:
            return None
        for condition in rule.conditions:
            try:
                matched = condition.matches(position)
            except Exception as exc:
                safe_log(
                    self._log.log_warning,
                    "Error evaluating department condition",
                    {"department": position.department, "error": str(exc)},
                )
                continue
            if matched:
                return ClassificationTrace(
                    classification=condition.classification,
                    tier="department",
                    reason=(
                        f"{position.department}: {condition.field} {condition.operator} "
                        f"{condition.value!r}"
                    ),
                )
        return ClassificationTrace(
            classification=rule.default,
            tier="department",
            reason=f"{position.department} default",
        )

    @staticmethod
    def _fallback_trace(fields: dict[str, str | None], reason: str) -> ClassificationTrace:
        return ClassificationTrace(
            classification=fallback_classification(**fields),
            tier="fallback",
            reason=reason,
        )

    # --- Recovery, batch and validation ---

    def classify_position_with_recovery(
        self, position: Position | Mapping[str, Any]
    ) -> RecoveryResult:
        """Classify and report confidence, warnings and fallback usage.

        ``used_fallback`` is set when the rule set has neither a department
        rule for the position's department nor a level rule for its level.
        """
        warnings: list[str] = []
        confidence = Confidence.HIGH
        try:
            position = as_position(position)
            if not position.department:
                warnings.append("Missing department information")
                confidence = Confidence.LOW
            if not position.level:
                warnings.append("Missing level information")
                confidence = Confidence.LOW

            rules = self._rules
            classification = self.classify_position(position)
            dept = normalize_department(position.department)
            used_fallback = (
                dept not in rules.department_rules and position.level not in rules.level_rules
            )
            if used_fallback:
                if dept:
                    warnings.append(f"No specific rules found for department: {dept}")
                else:
                    warnings.append("No specific rules found for position")
                confidence = Confidence.MEDIUM if confidence == Confidence.HIGH else Confidence.LOW

            return RecoveryResult(
                classification=classification,
                confidence=confidence,
                warnings=warnings,
                used_fallback=used_fallback,
            )
        except Exception as exc:
            warnings.append(f"Classification error: {exc}")
            return RecoveryResult(
                classification=fallback_classification(**_raw_fields(position)),
                confidence=Confidence.LOW,
                warnings=warnings,
                used_fallback=True,
            )

    def batch_classify_positions(
        self, positions: Iterable[Position | Mapping[str, Any]]
    ) -> BatchClassification:
        """Classify every position; one bad item never stops the rest."""
        results: list[BatchItem] = []
        summary = BatchSummary()

        for index, raw in enumerate(positions or []):
            summary.total += 1
            try:
                position = as_position(raw)
                result = self.classify_position_with_recovery(position)
            except Exception as exc:
                raw_id = _raw_id(raw, index)
                message = f"Failed to classify position {raw_id}: {exc}"
                summary.errors.append(message)
                summary.with_fallback += 1
                results.append(
                    BatchItem(
                        position=Position(id=raw_id),
                        classification=fallback_classification(**_raw_fields(raw)),
                        confidence=Confidence.LOW,
                        warnings=[message],
                        used_fallback=True,
                    )
                )
                continue

            results.append(BatchItem(position=position, **result.model_dump()))
            if result.warnings:
                summary.with_warnings += 1
            else:
                summary.successful += 1
            if result.used_fallback:
                summary.with_fallback += 1

        return BatchClassification(results=results, summary=summary)

    def validate_classification(
        self, position: Position | Mapping[str, Any]
    ) -> ClassificationCheck:
        """Check required fields and compare an explicit tag to the computed one.

        A mismatching explicit classification is a warning, not an error.
        """
        try:
            position = as_position(position)
        except Exception as exc:
            return ClassificationCheck(is_valid=False, errors=[f"Position could not be parsed: {exc}"])

        errors: list[str] = []
        warnings: list[str] = []
        if not position.department:
            errors.append("Position department is required")
        if not position.level:
            errors.append("Position level is required")

        expected = self.classify_position(position)
        if position.classification and position.classification != expected:
            warnings.append(
                f"Position classification mismatch: expected {expected}, "
                f"got {position.classification}"
            )

        return ClassificationCheck(is_valid=not errors, errors=errors, warnings=warnings)


def _raw_id(value: Any, index: int) -> str:
    raw = value.get("id") if isinstance(value, Mapping) else getattr(value, "id", None)
    return str(raw) if raw not in (None, "") else f"#{index}"
