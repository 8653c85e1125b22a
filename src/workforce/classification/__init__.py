"""Workforce classification module.

Assigns direct, indirect or OH to positions using a prioritized rule set.
"""

from workforce.classification.defaults import default_rule_set
from workforce.classification.loader import RuleConfigError, load_rule_set
from workforce.classification.models import CrossPagePosition, Position, RuleSet
from workforce.classification.normalize import normalize_department
from workforce.classification.rules import ClassificationEngine

__all__ = [
    "ClassificationEngine",
    "CrossPagePosition",
    "Position",
    "RuleConfigError",
    "RuleSet",
    "default_rule_set",
    "load_rule_set",
    "normalize_department",
]
