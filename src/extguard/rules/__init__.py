"""Detection rules, the rule engine and the finding adjuster."""

from extguard.rules.adjuster import AdjustmentContext, adjust_findings
from extguard.rules.base import DetectionRule
from extguard.rules.builtin import default_rules
from extguard.rules.engine import RuleEngine

__all__ = [
    "AdjustmentContext",
    "DetectionRule",
    "RuleEngine",
    "adjust_findings",
    "default_rules",
]
