"""Trust scoring and risk classification."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from extguard.scanner.models import Finding, RiskLevel, Severity

MAX_SCORE = 100

SEVERITY_PENALTIES = {
    Severity.CRITICAL: 35,
    Severity.HIGH: 18,
    Severity.MEDIUM: 8,
    Severity.LOW: 3,
    Severity.INFO: 1,
}

# A single rule firing all over a bundle must not zero the score on its own
MAX_PENALIZED_PER_RULE = 5

# (minimum score, level), checked top-down
RISK_THRESHOLDS = (
    (90, RiskLevel.SAFE),
    (70, RiskLevel.LOW),
    (45, RiskLevel.MEDIUM),
    (20, RiskLevel.HIGH),
)


def calculate_trust_score(findings: Iterable[Finding]) -> int:
    """Start at 100 and subtract a per-severity penalty, clamped to 0..100."""
    seen: Counter[str] = Counter()
    score = MAX_SCORE
    for finding in findings:
        seen[finding.rule_id] += 1
        if seen[finding.rule_id] > MAX_PENALIZED_PER_RULE:
            continue
        score -= SEVERITY_PENALTIES[finding.severity]
    return max(0, min(MAX_SCORE, score))


def classify_risk(findings: Iterable[Finding], score: int) -> RiskLevel:
    """Classify an extension's risk.

    Downgraded findings are not real signals. Any remaining critical finding
    forces ``critical``, any high one forces ``high``; otherwise the level
    comes from the score.
    """
    real = {f.severity for f in findings if not f.downgraded}
    if Severity.CRITICAL in real:
        return RiskLevel.CRITICAL
    if Severity.HIGH in real:
        return RiskLevel.HIGH
    return risk_from_score(score)


def risk_from_score(score: int) -> RiskLevel:
    for minimum, level in RISK_THRESHOLDS:
        if score >= minimum:
            return level
    return RiskLevel.CRITICAL
