"""Built-in classification rules.

``default_rule_set()`` is the rule set the engine starts with when none is
injected. ``config/classification_rules.yml`` carries the same rules in YAML
form.
"""

from __future__ import annotations

from typing import Callable

from workforce.classification.models import (
    DepartmentRule,
    ExceptionRule,
    FieldCondition,
    Position,
    RuleSet,
)
from workforce.core.types import Classification, Level

DIRECT = Classification.DIRECT
INDIRECT = Classification.INDIRECT
OH = Classification.OH

# Used by the keyword fallback when a department has no explicit rule.
ADMIN_DEPARTMENTS: frozenset[str] = frozenset(
    {"Admin", "TPM", "CQM", "Lean", "Security", "RMCC", "Small Tooling"}
)
SEPARATED_PROCESS_DEPARTMENTS: frozenset[str] = frozenset({"No-sew", "HF Welding", "Separated"})
SEPARATED_PROCESS_TYPES: frozenset[str] = frozenset({"No-sew", "HF Welding"})


def position_matcher(
    *,
    department: str | None = None,
    level: str | None = None,
    level_not: str | None = None,
    process_type: str | None = None,
    text_contains: str | None = None,
    ignore_case: bool = False,
) -> Callable[[Position], bool]:
    """Build an exception predicate from equality and substring checks.

    All given criteria must hold. ``text_contains`` matches when either the
    subtitle or the title contains the text.
    """

    def _contains(haystack: str | None) -> bool:
        if not haystack or text_contains is None:
            return False
        if ignore_case:
            return text_contains.lower() in haystack.lower()
        return text_contains in haystack

    def condition(position: Position) -> bool:
        if department is not None and position.department != department:
            return False
        if level is not None and position.level != level:
            return False
        if level_not is not None and position.level == level_not:
            return False
        if process_type is not None and position.process_type != process_type:
            return False
        if text_contains is not None and not (
            _contains(position.subtitle) or _contains(position.title)
        ):
            return False
        return True

    return condition


def _department_rules() -> dict[str, DepartmentRule]:
    return {
        "Line": DepartmentRule(
            default=INDIRECT,
            conditions=(
                FieldCondition("level", "equals", "PM", OH),
                FieldCondition("level", "equals", "LM", OH),
            ),
        ),
        "Quality": DepartmentRule(
            default=INDIRECT,
            conditions=(FieldCondition("level", "equals", "GL", OH),),
        ),
        "CE": DepartmentRule(default=OH),
        "Admin": DepartmentRule(default=OH),
        "Small Tooling": DepartmentRule(default=OH),
        "Raw Material": DepartmentRule(default=INDIRECT),
        "Sub Material": DepartmentRule(default=OH),
        "ACC Market": DepartmentRule(default=INDIRECT),
        "P&L Market": DepartmentRule(default=INDIRECT),
        "Bottom Market": DepartmentRule(default=INDIRECT),
        "FG WH": DepartmentRule(default=INDIRECT),
        "Plant Production": DepartmentRule(
            default=INDIRECT,
            conditions=(FieldCondition("level", "equals", "TM", DIRECT),),
        ),
        "TPM": DepartmentRule(default=OH),
        "CQM": DepartmentRule(default=OH),
        "Lean": DepartmentRule(default=OH),
        "Security": DepartmentRule(default=OH),
        "RMCC": DepartmentRule(default=OH),
        "No-sew": DepartmentRule(default=INDIRECT),
        "HF Welding": DepartmentRule(default=INDIRECT),
        # Blank placeholder positions.
        "Separated": DepartmentRule(default=INDIRECT),
    }


def _exception_rules() -> list[ExceptionRule]:
    return [
        ExceptionRule(
            condition=position_matcher(department="CE", level="TM", text_contains="Mixing"),
            classification=DIRECT,
            reason="CE TM Mixing is classified as direct production work",
            priority=10,
        ),
        ExceptionRule(
            condition=position_matcher(department="FG WH", level="TM", text_contains="Shipping"),
            classification=OH,
            reason="FG WH TM Shipping is classified as overhead",
            priority=10,
        ),
        ExceptionRule(
            condition=position_matcher(process_type="No-sew"),
            classification=INDIRECT,
            reason="No-sew process positions are indirect production work",
            priority=8,
        ),
        ExceptionRule(
            condition=position_matcher(process_type="HF Welding"),
            classification=INDIRECT,
            reason="HF Welding process positions are indirect production work",
            priority=8,
        ),
        ExceptionRule(
            condition=position_matcher(department="No-sew"),
            classification=INDIRECT,
            reason="No-sew department positions are indirect production",
            priority=7,
        ),
        ExceptionRule(
            condition=position_matcher(department="HF Welding"),
            classification=INDIRECT,
            reason="HF Welding department positions are indirect production",
            priority=7,
        ),
        ExceptionRule(
            condition=position_matcher(text_contains="no-sew", ignore_case=True),
            classification=INDIRECT,
            reason="Positions with no-sew in title/subtitle are indirect",
            priority=7,
        ),
        ExceptionRule(
            condition=position_matcher(text_contains="hf welding", ignore_case=True),
            classification=INDIRECT,
            reason="Positions with HF welding in title/subtitle are indirect",
            priority=7,
        ),
        ExceptionRule(
            condition=position_matcher(department="Separated", level_not=Level.DEPT),
            classification=INDIRECT,
            reason="Separated department positions are typically blank/indirect",
            priority=6,
        ),
    ]


def default_rule_set() -> RuleSet:
    """Return the built-in rule set."""
    return RuleSet(
        department_rules=_department_rules(),
        level_rules={
            Level.PM: OH,
            Level.LM: OH,
            Level.VSM: OH,
            Level.A_VSM: OH,
        },
        process_rules={
            "No-sew": INDIRECT,
            "HF Welding": INDIRECT,
        },
        exception_rules=_exception_rules(),
    )
