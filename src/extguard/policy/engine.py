"""Policy engine — judges scan results against an organisation policy."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable

from extguard.policy.models import (
    AuditReport,
    PolicyAction,
    PolicyConfig,
    PolicyViolation,
)
from extguard.scanner.models import FullScanReport, ScanResult

logger = logging.getLogger(__name__)

OBFUSCATION_RULE_ID = "EG-HIGH-001"

SECONDS_PER_DAY = 86_400


class PolicyEngine:
    """Evaluates scan results against a PolicyConfig.

    Per extension the block-list wins outright (one violation, nothing else
    checked), then the allow-list exempts it from every rule. Otherwise all
    configured rules are evaluated independently and may all fire.
    """

    def __init__(
        self, config: PolicyConfig, now: Callable[[], float] = time.time
    ) -> None:
        self._config = config
        self._now = now
        self._blocklist = frozenset(config.policy.blocklist)
        self._allowlist = frozenset(config.policy.allowlist)
        self._violations: list[PolicyViolation] = []

    @property
    def violations(self) -> list[PolicyViolation]:
        """Violations from the last ``evaluate`` call."""
        return list(self._violations)

    def evaluate(self, results: Iterable[ScanResult]) -> list[PolicyViolation]:
        violations: list[PolicyViolation] = []
        for result in results:
            violations.extend(self.evaluate_result(result))
        self._violations = violations
        return list(violations)

    def evaluate_result(self, result: ScanResult) -> list[PolicyViolation]:
        ext_id = result.extension_id
        if ext_id in self._blocklist:
            return [
                PolicyViolation(
                    extension_id=ext_id,
                    rule="blocklist",
                    message="Extension is blocklisted",
                    action=PolicyAction.BLOCK,
                )
            ]
        if ext_id in self._allowlist:
            return []

        found = []
        for check in (
            self._check_min_trust_score,
            self._check_block_obfuscated,
            self._check_verified_publisher,
            self._check_max_days_since_update,
        ):
            violation = check(result)
            if violation is not None:
                found.append(violation)
        return found

    def has_blocking_violations(self) -> bool:
        return any(v.action is PolicyAction.BLOCK for v in self._violations)

    def _check_min_trust_score(self, result: ScanResult) -> PolicyViolation | None:
        rule = self._config.policy.rules.min_trust_score
        if rule is None or result.trust_score >= rule.threshold:
            return None
        return PolicyViolation(
            extension_id=result.extension_id,
            rule="minTrustScore",
            message=f"Trust score {result.trust_score} below threshold {rule.threshold}",
            action=rule.action,
        )

    def _check_block_obfuscated(self, result: ScanResult) -> PolicyViolation | None:
        rule = self._config.policy.rules.block_obfuscated
        if rule is None or not rule.enabled:
            return None
        if not any(f.rule_id == OBFUSCATION_RULE_ID for f in result.findings):
            return None
        return PolicyViolation(
            extension_id=result.extension_id,
            rule="blockObfuscated",
            message="Extension contains obfuscated code",
            action=rule.action,
        )

    def _check_verified_publisher(self, result: ScanResult) -> PolicyViolation | None:
        rule = self._config.policy.rules.require_verified_publisher
        if rule is None or not rule.enabled:
            return None
        if result.metadata.publisher_verified or result.extension_id in rule.exceptions:
            return None
        return PolicyViolation(
            extension_id=result.extension_id,
            rule="requireVerifiedPublisher",
            message="Extension publisher is not verified",
            action=rule.action,
        )

    def _check_max_days_since_update(
        self, result: ScanResult
    ) -> PolicyViolation | None:
        rule = self._config.policy.rules.max_days_since_update
        last_updated = result.metadata.last_updated
        if rule is None or last_updated is None:
            return None
        days = int((self._now() - last_updated) // SECONDS_PER_DAY)
        if days <= rule.days:
            return None
        return PolicyViolation(
            extension_id=result.extension_id,
            rule="maxDaysSinceUpdate",
            message=f"Extension not updated in {days} days (max: {rule.days})",
            action=rule.action,
        )


def build_audit_report(
    report: FullScanReport,
    config_path: str,
    violations: list[PolicyViolation],
) -> AuditReport:
    passed = not any(v.action is PolicyAction.BLOCK for v in violations)
    logger.debug(
        "Audit against %s: %d violation(s), passed=%s",
        config_path,
        len(violations),
        passed,
    )
    return AuditReport(
        report=report,
        policy_path=config_path,
        violations=list(violations),
        passed=passed,
    )
