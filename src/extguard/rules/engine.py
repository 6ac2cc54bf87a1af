"""Rule engine — runs the applicable detection rules over one extension."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Mapping, Sequence

from extguard.rules.base import DetectionRule
from extguard.scanner.models import Evidence, ExtensionManifest, Finding, Severity

logger = logging.getLogger(__name__)


class RuleEngine:
    """Filters a rule set and turns rule evidence into findings.

    Rules are filtered once at construction: enabled only, then the explicit
    allow-list ``only``, then ``skip``, then the ``min_severity`` floor. A
    rule that raises during ``detect`` is logged and skipped.
    """

    def __init__(
        self,
        rules: Iterable[DetectionRule],
        *,
        only: Sequence[str] | None = None,
        skip: Sequence[str] | None = None,
        min_severity: Severity | None = None,
    ) -> None:
        applicable = [r for r in rules if r.enabled]
        if only:
            applicable = [r for r in applicable if r.rule_id in only]
        if skip:
            applicable = [r for r in applicable if r.rule_id not in skip]
        if min_severity is not None:
            applicable = [r for r in applicable if r.severity.is_at_least(min_severity)]
        self._rules = tuple(applicable)

    def applicable_rules(self) -> tuple[DetectionRule, ...]:
        return self._rules

    def run(
        self, files: Mapping[str, str], manifest: ExtensionManifest
    ) -> list[Finding]:
        findings: list[Finding] = []
        for rule in self._rules:
            try:
                evidences = rule.detect(files, manifest)
            except Exception:
                logger.warning(
                    "Rule %s failed on %s, skipping",
                    rule.rule_id,
                    manifest.extension_id,
                    exc_info=True,
                )
                continue
            findings.extend(make_finding(rule, e) for e in evidences)
        return findings


def make_finding(rule: DetectionRule, evidence: Evidence) -> Finding:
    return Finding(
        id=uuid.uuid4().hex,
        rule_id=rule.rule_id,
        severity=rule.severity,
        category=rule.category,
        title=rule.name,
        description=rule.description,
        evidence=evidence,
        mitre_attack_id=rule.mitre_attack_id,
    )
