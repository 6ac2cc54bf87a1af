"""Policy data models — immutable dataclasses describing an organisation policy."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from extguard.scanner.models import Severity

if TYPE_CHECKING:
    from extguard.scanner.models import FullScanReport


class PolicyAction(enum.Enum):
    """What a violated policy rule means for the extension."""

    BLOCK = "block"
    WARN = "warn"
    INFO = "info"


@dataclass(frozen=True)
class MinTrustScoreRule:
    threshold: int
    action: PolicyAction


@dataclass(frozen=True)
class RequireVerifiedPublisherRule:
    enabled: bool
    action: PolicyAction
    exceptions: tuple[str, ...] = ()


@dataclass(frozen=True)
class MaxDaysSinceUpdateRule:
    days: float
    action: PolicyAction


@dataclass(frozen=True)
class BlockObfuscatedRule:
    enabled: bool
    action: PolicyAction


@dataclass(frozen=True)
class PolicyRules:
    """The configurable checks; an absent rule is never evaluated."""

    min_trust_score: MinTrustScoreRule | None = None
    require_verified_publisher: RequireVerifiedPublisherRule | None = None
    max_days_since_update: MaxDaysSinceUpdateRule | None = None
    block_obfuscated: BlockObfuscatedRule | None = None


@dataclass(frozen=True)
class PolicySection:
    allowlist: tuple[str, ...] = ()
    blocklist: tuple[str, ...] = ()
    rules: PolicyRules = field(default_factory=PolicyRules)


@dataclass(frozen=True)
class ScanningConfig:
    """Scan defaults a policy imposes; ``None`` leaves the caller's value."""

    min_severity: Severity | None = None
    skip_rules: tuple[str, ...] = ()
    timeout: float | None = None
    concurrency: int | None = None


@dataclass(frozen=True)
class PolicyConfig:
    """A complete policy file."""

    version: str
    scanning: ScanningConfig = field(default_factory=ScanningConfig)
    policy: PolicySection = field(default_factory=PolicySection)


@dataclass(frozen=True)
class PolicyViolation:
    extension_id: str
    rule: str
    message: str
    action: PolicyAction


@dataclass
class AuditReport:
    """A scan report together with the policy verdict on it."""

    report: FullScanReport
    policy_path: str
    violations: list[PolicyViolation]
    passed: bool
