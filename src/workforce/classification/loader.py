"""Load classification rule sets from YAML config.

The file uses the same fixed rule shapes as :mod:`workforce.classification.models`.
Exception predicates are declared with a ``match`` block understood by
:func:`~workforce.classification.defaults.position_matcher`::

    exception_rules:
      - reason: CE TM Mixing is classified as direct production work
        classification: direct
        priority: 10
        match: {department: CE, level: TM, text_contains: Mixing}
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from workforce.classification.defaults import default_rule_set, position_matcher
from workforce.classification.models import (
    CONDITION_FIELDS,
    CONDITION_OPERATORS,
    DepartmentRule,
    ExceptionRule,
    FieldCondition,
    RuleSet,
)
from workforce.core.config import Settings
from workforce.core.types import Classification

_MATCH_KEYS = frozenset(
    {"department", "level", "level_not", "process_type", "text_contains", "ignore_case"}
)


class RuleConfigError(ValueError):
    """Raised when a rule file does not describe a valid rule set."""


def _classification(value: Any, where: str) -> Classification:
    try:
        return Classification(value)
    except ValueError:
        raise RuleConfigError(f"{where}: unknown classification {value!r}") from None


def _condition(data: dict[str, Any], where: str) -> FieldCondition:
    field = data.get("field")
    operator = data.get("operator")
    if field not in CONDITION_FIELDS:
        raise RuleConfigError(f"{where}: unknown condition field {field!r}")
    if operator not in CONDITION_OPERATORS:
        raise RuleConfigError(f"{where}: unknown condition operator {operator!r}")
    return FieldCondition(
        field=field,
        operator=operator,
        value=str(data.get("value", "")),
        classification=_classification(data.get("classification"), where),
    )


def _exception(data: dict[str, Any], where: str) -> ExceptionRule:
    match = data.get("match") or {}
    if not isinstance(match, dict) or not match:
        raise RuleConfigError(f"{where}: exception rule needs a non-empty 'match' block")
    unknown = set(match) - _MATCH_KEYS
    if unknown:
        raise RuleConfigError(f"{where}: unknown match keys {sorted(unknown)}")
    return ExceptionRule(
        condition=position_matcher(**match),
        classification=_classification(data.get("classification"), where),
        reason=data.get("reason", ""),
        priority=int(data.get("priority", 0)),
    )


def rule_set_from_dict(data: dict[str, Any]) -> RuleSet:
    """Build a RuleSet from parsed config data."""
    department_rules: dict[str, DepartmentRule] = {}
    for name, rule in (data.get("department_rules") or {}).items():
        where = f"department_rules.{name}"
        conditions = tuple(
            _condition(c, f"{where}.conditions[{i}]")
            for i, c in enumerate(rule.get("conditions") or [])
        )
        department_rules[name] = DepartmentRule(
            default=_classification(rule.get("default"), where),
            conditions=conditions,
        )

    level_rules = {
        level: _classification(value, f"level_rules.{level}")
        for level, value in (data.get("level_rules") or {}).items()
    }
    process_rules = {
        process: _classification(value, f"process_rules.{process}")
        for process, value in (data.get("process_rules") or {}).items()
    }
    exception_rules = [
        _exception(rule, f"exception_rules[{i}]")
        for i, rule in enumerate(data.get("exception_rules") or [])
    ]

    return RuleSet(
        department_rules=department_rules,
        level_rules=level_rules,
        process_rules=process_rules,
        exception_rules=tuple(exception_rules),
    )


def load_rule_set(path: str | Path) -> RuleSet:
    """Load and parse a YAML rule file."""
    with open(path) as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise RuleConfigError(f"{path}: expected a mapping at the top level")
    return rule_set_from_dict(data)


def load_configured_rule_set(settings: Settings | None = None) -> RuleSet:
    """Return the rule set named by settings, or the built-in rules."""
    settings = settings or Settings()
    if settings.classification.rules_path:
        return load_rule_set(settings.classification.rules_path)
    return default_rule_set()
