"""Tests for the rule engine."""

from __future__ import annotations

import logging

from extguard.rules.builtin import default_rules
from extguard.rules.engine import RuleEngine
from extguard.scanner.models import Evidence, FindingCategory, Severity


class StubRule:
    name = "Stub"
    description = "Stub rule"
    category = FindingCategory.SUSPICIOUS_NETWORK
    mitre_attack_id = "T0000"

    def __init__(self, rule_id, severity=Severity.HIGH, enabled=True, hits=1):
        self.rule_id = rule_id
        self.severity = severity
        self.enabled = enabled
        self.hits = hits

    def detect(self, files, manifest):
        return [
            Evidence(file_path="a.js", line=i + 1, matched_pattern="stub")
            for i in range(self.hits)
        ]


class ExplodingRule(StubRule):
    def detect(self, files, manifest):
        raise RuntimeError("boom")


def _ids(engine: RuleEngine) -> list[str]:
    return [r.rule_id for r in engine.applicable_rules()]


class TestFiltering:
    def test_all_enabled_by_default(self):
        assert len(RuleEngine(default_rules()).applicable_rules()) == 7

    def test_disabled_rules_are_dropped(self):
        engine = RuleEngine([StubRule("A"), StubRule("B", enabled=False)])
        assert _ids(engine) == ["A"]

    def test_only(self):
        engine = RuleEngine(default_rules(), only=["EG-CRIT-002", "EG-MED-001"])
        assert _ids(engine) == ["EG-CRIT-002", "EG-MED-001"]

    def test_skip(self):
        engine = RuleEngine(default_rules(), skip=["EG-MED-001"])
        assert "EG-MED-001" not in _ids(engine)
        assert len(_ids(engine)) == 6

    def test_min_severity(self):
        engine = RuleEngine(default_rules(), min_severity=Severity.CRITICAL)
        assert _ids(engine) == ["EG-CRIT-001", "EG-CRIT-002", "EG-CRIT-003"]

    def test_filters_compose(self):
        engine = RuleEngine(
            default_rules(),
            only=["EG-CRIT-001", "EG-HIGH-001", "EG-MED-001"],
            skip=["EG-CRIT-001"],
            min_severity=Severity.HIGH,
        )
        assert _ids(engine) == ["EG-HIGH-001"]


class TestRun:
    def test_findings_carry_rule_metadata(self, manifest):
        engine = RuleEngine([StubRule("X", severity=Severity.MEDIUM, hits=2)])
        findings = engine.run({}, manifest)
        assert len(findings) == 2
        for f in findings:
            assert f.rule_id == "X"
            assert f.severity is Severity.MEDIUM
            assert f.category is FindingCategory.SUSPICIOUS_NETWORK
            assert f.title == "Stub"
            assert f.mitre_attack_id == "T0000"
        assert findings[0].id != findings[1].id

    def test_failing_rule_is_skipped(self, manifest, caplog):
        engine = RuleEngine([ExplodingRule("BAD"), StubRule("GOOD")])
        with caplog.at_level(logging.WARNING, logger="extguard.rules.engine"):
            findings = engine.run({}, manifest)
        assert [f.rule_id for f in findings] == ["GOOD"]
        assert "BAD" in caplog.text

    def test_run_is_repeatable(self, manifest, exfil_source):
        engine = RuleEngine(default_rules())
        files = {"src/extension.js": exfil_source}
        first = [(f.rule_id, f.evidence) for f in engine.run(files, manifest)]
        second = [(f.rule_id, f.evidence) for f in engine.run(files, manifest)]
        assert first == second
        assert first
