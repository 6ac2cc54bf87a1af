"""Tests for the four-layer finding adjuster."""

from __future__ import annotations

import pytest

from extguard.rules.adjuster import (
    DOUBLE_DOWNGRADE,
    DOWNGRADE,
    AdjustmentContext,
    adjust_findings,
    is_expected_behavior,
)
from extguard.scanner.models import (
    Evidence,
    ExtensionCategory,
    Finding,
    FindingCategory,
    Severity,
)


def _finding(
    rule_id="EG-CRIT-001",
    severity=Severity.CRITICAL,
    pattern="os.hostname + http-to-ip",
) -> Finding:
    return Finding(
        id="f1",
        rule_id=rule_id,
        severity=severity,
        category=FindingCategory.DATA_EXFILTRATION,
        title="Finding",
        description="Something happened",
        evidence=Evidence(file_path="a.js", line=1, matched_pattern=pattern),
    )


def _ctx(extension_id: str, strict: bool = False) -> AdjustmentContext:
    return AdjustmentContext(
        publisher=extension_id.split(".", 1)[0],
        extension_id=extension_id,
        strict=strict,
    )


class TestLadders:
    def test_single_step(self):
        assert DOWNGRADE[Severity.CRITICAL] is Severity.MEDIUM
        assert DOWNGRADE[Severity.HIGH] is Severity.LOW
        assert DOWNGRADE[Severity.MEDIUM] is Severity.INFO
        assert DOWNGRADE[Severity.LOW] is Severity.INFO
        assert DOWNGRADE[Severity.INFO] is Severity.INFO

    def test_double_step(self):
        assert DOUBLE_DOWNGRADE[Severity.CRITICAL] is Severity.LOW
        assert DOUBLE_DOWNGRADE[Severity.HIGH] is Severity.INFO
        assert DOUBLE_DOWNGRADE[Severity.INFO] is Severity.INFO


class TestExpectedBehavior:
    def test_any_pattern_for_ai_exfiltration(self):
        assert is_expected_behavior(_finding(), ExtensionCategory.AI_ASSISTANT)

    def test_pattern_substring(self):
        scm = ExtensionCategory.SCM
        git = _finding("EG-CRIT-003", pattern="git-credentials")
        ssh = _finding("EG-CRIT-003", pattern="ssh-keys")
        assert is_expected_behavior(git, scm)
        assert not is_expected_behavior(ssh, scm)

    def test_general_expects_nothing(self):
        assert not is_expected_behavior(_finding(), ExtensionCategory.GENERAL)


class TestAdjustFindings:
    def test_untouched_without_reasons(self, empty_roster):
        finding = _finding()
        [result] = adjust_findings(
            [finding], ExtensionCategory.GENERAL, _ctx("acme.sample"), empty_roster
        )
        assert result is finding
        assert not result.downgraded

    def test_ai_assistant_from_trusted_publisher(self, roster):
        finding = _finding()
        [result] = adjust_findings(
            [finding], ExtensionCategory.AI_ASSISTANT, _ctx("github.copilot"), roster
        )
        assert result.severity is Severity.INFO
        assert result.downgraded
        assert result.original_severity is Severity.CRITICAL
        assert result.description == (
            "Something happened [Downgraded: expected behavior for "
            "ai-assistant extension + trusted publisher]"
        )
        # the input is left as it was
        assert finding.severity is Severity.CRITICAL
        assert not finding.downgraded

    def test_strict_mode_keeps_only_category_layer(self, roster):
        [result] = adjust_findings(
            [_finding()],
            ExtensionCategory.AI_ASSISTANT,
            _ctx("github.copilot", strict=True),
            roster,
        )
        assert result.severity is Severity.MEDIUM
        assert result.description.endswith(
            "[Downgraded: expected behavior for ai-assistant extension]"
        )

    def test_strict_mode_without_category_match(self, roster):
        finding = _finding()
        [result] = adjust_findings(
            [finding],
            ExtensionCategory.GENERAL,
            _ctx("mega.popular-ext", strict=True),
            roster,
        )
        assert result is finding

    def test_trusted_extension_id(self, roster):
        [result] = adjust_findings(
            [_finding()],
            ExtensionCategory.GENERAL,
            _ctx("trusted.single-extension"),
            roster,
        )
        assert result.severity is Severity.MEDIUM
        assert "trusted publisher" in result.description

    def test_publisher_falls_back_to_extension_id(self, roster):
        context = AdjustmentContext(publisher="", extension_id="github.other")
        [result] = adjust_findings([_finding()], ExtensionCategory.GENERAL, context, roster)
        assert result.severity is Severity.MEDIUM

    def test_verified_publisher(self, roster):
        finding = _finding("EG-HIGH-002", Severity.HIGH, "http-to-ip")
        [result] = adjust_findings(
            [finding], ExtensionCategory.GENERAL, _ctx("verified-pub.tool"), roster
        )
        assert result.severity is Severity.LOW
        assert result.description.endswith("[Downgraded: verified publisher]")

    def test_verified_does_not_stack_on_trusted(self, roster):
        # github is both trusted and verified
        [result] = adjust_findings(
            [_finding()], ExtensionCategory.GENERAL, _ctx("github.tool"), roster
        )
        assert result.severity is Severity.MEDIUM
        assert "verified" not in result.description

    def test_mega_popular_double_step(self, roster):
        [result] = adjust_findings(
            [_finding()], ExtensionCategory.GENERAL, _ctx("mega.popular-ext"), roster
        )
        assert result.severity is Severity.LOW
        assert "mega popular extension" in result.description

    def test_popular_single_step(self, roster):
        [result] = adjust_findings(
            [_finding()], ExtensionCategory.GENERAL, _ctx("some.popular-ext"), roster
        )
        assert result.severity is Severity.MEDIUM
        assert "popular extension" in result.description

    def test_below_popular_threshold(self, roster):
        finding = _finding()
        [result] = adjust_findings(
            [finding], ExtensionCategory.GENERAL, _ctx("tiny.ext"), roster
        )
        assert result is finding

    def test_reputation_layers_skip_info(self, roster):
        finding = _finding(severity=Severity.INFO)
        [result] = adjust_findings(
            [finding], ExtensionCategory.GENERAL, _ctx("github.tool"), roster
        )
        assert result is finding

    def test_theme_obfuscation(self, empty_roster):
        finding = _finding("EG-HIGH-001", Severity.HIGH, "high-entropy")
        [result] = adjust_findings(
            [finding], ExtensionCategory.THEME, _ctx("acme.theme"), empty_roster
        )
        assert result.severity is Severity.LOW
        assert result.original_severity is Severity.HIGH

    @pytest.mark.parametrize("category", list(ExtensionCategory))
    @pytest.mark.parametrize("severity", list(Severity))
    def test_severity_never_increases(self, roster, category, severity):
        findings = [
            _finding(rule_id, severity, pattern)
            for rule_id, pattern in (
                ("EG-CRIT-001", "os.hostname + http-to-ip"),
                ("EG-CRIT-002", "child_process-exec"),
                ("EG-CRIT-003", "env-file"),
                ("EG-HIGH-001", "high-entropy"),
                ("EG-HIGH-002", "dynamic-url"),
            )
        ]
        for extension_id in ("github.x", "mega.popular-ext", "acme.x"):
            adjusted = adjust_findings(findings, category, _ctx(extension_id), roster)
            for before, after in zip(findings, adjusted):
                assert after.severity.rank >= before.severity.rank
                assert after.rule_id == before.rule_id
                assert after.evidence == before.evidence
