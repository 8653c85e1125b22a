"""Data models for positions, classification rules and engine results."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from workforce.core.types import Classification, Confidence

ConditionField = Literal["level", "processType", "subtitle", "title"]
ConditionOperator = Literal["equals", "contains", "startsWith", "endsWith"]

CONDITION_FIELDS: frozenset[str] = frozenset({"level", "processType", "subtitle", "title"})
CONDITION_OPERATORS: frozenset[str] = frozenset({"equals", "contains", "startsWith", "endsWith"})


class WireModel(BaseModel):
    """Base model serialized with camelCase keys (``by_alias=True``)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


class Position(WireModel):
    """A single organizational role instance as reported by one view.

    Every field is optional at the model level; missing department or level
    is handled by the engine and the validators rather than rejected here.
    ``classification`` is the tag the source attached and is only ever
    compared against, never used as an input. An empty tag counts as no
    tag; a tag outside the known categories is kept verbatim so it can be
    reported.
    """

    id: str = ""
    department: str | None = None
    level: str | None = None
    title: str | None = None
    subtitle: str | None = None
    process_type: str | None = None
    classification: Classification | str | None = None
    source: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("classification", mode="before")
    @classmethod
    def _lenient_tag(cls, v: Any) -> Classification | str | None:
        if v is None or isinstance(v, Classification):
            return v
        tag = str(v).strip()
        if not tag:
            return None
        try:
            return Classification(tag)
        except ValueError:
            return tag


class CrossPagePosition(Position):
    """A position stored in the consistency registry; ``source`` is required."""

    source: str


def field_value(position: Position, name: str) -> str:
    """Return the string value of a condition field, ``""`` when unset."""
    if name == "level":
        return position.level or ""
    if name == "processType":
        return position.process_type or ""
    if name == "subtitle":
        return position.subtitle or ""
    if name == "title":
        return position.title or ""
    return ""


@dataclass(frozen=True)
class FieldCondition:
    """Department-level override: when *field* satisfies *operator* against
    *value*, the position gets *classification* instead of the default."""

    field: ConditionField
    operator: ConditionOperator
    value: str
    classification: Classification

    def matches(self, position: Position) -> bool:
        actual = field_value(position, self.field)
        if not actual:
            return False
        if self.operator == "equals":
            return actual == self.value
        if self.operator == "contains":
            return self.value in actual
        if self.operator == "startsWith":
            return actual.startswith(self.value)
        if self.operator == "endsWith":
            return actual.endswith(self.value)
        return False


@dataclass(frozen=True)
class DepartmentRule:
    default: Classification
    conditions: tuple[FieldCondition, ...] = ()


@dataclass(frozen=True)
class ExceptionRule:
    """A prioritized predicate that overrides the level/process/department tiers.

    Higher ``priority`` wins; equal priorities resolve by declaration order.
    """

    condition: Callable[[Position], bool]
    classification: Classification
    reason: str
    priority: int = 0


@dataclass(frozen=True)
class RuleSet:
    """Immutable classification configuration.

    Exception rules are ordered once here (priority descending, stable on
    declaration order), so evaluation can take the first match.
    """

    department_rules: Mapping[str, DepartmentRule] = field(default_factory=dict)
    level_rules: Mapping[str, Classification] = field(default_factory=dict)
    process_rules: Mapping[str, Classification] = field(default_factory=dict)
    exception_rules: tuple[ExceptionRule, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "department_rules", MappingProxyType(dict(self.department_rules)))
        object.__setattr__(self, "level_rules", MappingProxyType(dict(self.level_rules)))
        object.__setattr__(self, "process_rules", MappingProxyType(dict(self.process_rules)))
        ordered = sorted(self.exception_rules, key=lambda rule: -rule.priority)
        object.__setattr__(self, "exception_rules", tuple(ordered))

    def merge(
        self,
        *,
        department_rules: Mapping[str, DepartmentRule] | None = None,
        level_rules: Mapping[str, Classification] | None = None,
        process_rules: Mapping[str, Classification] | None = None,
        exception_rules: list[ExceptionRule] | tuple[ExceptionRule, ...] | None = None,
    ) -> RuleSet:
        """Return a new RuleSet with the given rules layered on top.

        Mappings are merged key by key; ``exception_rules`` replaces the
        existing list when given.
        """
        return RuleSet(
            department_rules={**self.department_rules, **(department_rules or {})},
            level_rules={**self.level_rules, **(level_rules or {})},
            process_rules={**self.process_rules, **(process_rules or {})},
            exception_rules=(
                tuple(exception_rules) if exception_rules is not None else self.exception_rules
            ),
        )


# --- Engine results ---


class RecoveryResult(WireModel):
    classification: Classification
    confidence: Confidence = Confidence.HIGH
    warnings: list[str] = Field(default_factory=list)
    used_fallback: bool = False


class BatchItem(RecoveryResult):
    position: Position


class BatchSummary(WireModel):
    total: int = 0
    successful: int = 0
    with_warnings: int = 0
    with_fallback: int = 0
    errors: list[str] = Field(default_factory=list)


class BatchClassification(WireModel):
    results: list[BatchItem] = Field(default_factory=list)
    summary: BatchSummary = Field(default_factory=BatchSummary)


class ClassificationCheck(WireModel):
    """Result of checking one position's required fields and explicit tag."""

    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class ClassificationTrace(WireModel):
    """Which tier decided a classification, and why."""

    classification: Classification
    tier: Literal["exception", "level", "process", "department", "fallback"]
    reason: str
