"""Finding adjuster — context-aware severity downgrades.

Raw rule findings are judged against what is normal for the extension's
category and against the reputation of its publisher. Each layer is a pure
function returning the new severity and a reason (``None`` when it does not
apply); layers run in a fixed order and compose. Severities only ever move
down.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass

from extguard.rosters import PopularityTier, Roster, default_roster
from extguard.scanner.models import ExtensionCategory, Finding, Severity

logger = logging.getLogger(__name__)

DOWNGRADE = {
    Severity.CRITICAL: Severity.MEDIUM,
    Severity.HIGH: Severity.LOW,
    Severity.MEDIUM: Severity.INFO,
    Severity.LOW: Severity.INFO,
    Severity.INFO: Severity.INFO,
}

DOUBLE_DOWNGRADE = {
    Severity.CRITICAL: Severity.LOW,
    Severity.HIGH: Severity.INFO,
    Severity.MEDIUM: Severity.INFO,
    Severity.LOW: Severity.INFO,
    Severity.INFO: Severity.INFO,
}

_EXEC = ("child_process-exec", "child_process-execSync", "child_process-spawn-shell")
_OBFUSCATION = ("high-entropy", "large-base64")

# (rule id, matched-pattern substrings); None accepts any pattern.
ExpectedBehavior = tuple[str, tuple[str, ...] | None]

EXPECTED_BEHAVIORS: Mapping[ExtensionCategory, tuple[ExpectedBehavior, ...]] = {
    ExtensionCategory.AI_ASSISTANT: (
        (
            "EG-CRIT-002",
            _EXEC + ("eval", "Function-constructor", "dynamic-require"),
        ),
        ("EG-HIGH-002", ("dynamic-url", "unusual-port")),
        ("EG-CRIT-003", ("env-file",)),
        ("EG-CRIT-001", None),
    ),
    ExtensionCategory.THEME: (("EG-HIGH-001", _OBFUSCATION),),
    ExtensionCategory.LANGUAGE: (
        ("EG-HIGH-001", _OBFUSCATION),
        ("EG-HIGH-006", ("generic-secret",)),
    ),
    ExtensionCategory.SCM: (
        ("EG-CRIT-003", ("git-credentials",)),
        ("EG-CRIT-002", _EXEC),
    ),
    ExtensionCategory.DEBUGGER: (("EG-CRIT-002", _EXEC + ("dynamic-require",)),),
    ExtensionCategory.LINTER: (("EG-CRIT-002", _EXEC),),
    ExtensionCategory.LANGUAGE_SUPPORT: (
        ("EG-CRIT-002", _EXEC + ("dynamic-require",)),
        ("EG-CRIT-001", None),
        ("EG-HIGH-001", _OBFUSCATION),
        ("EG-HIGH-002", ("dynamic-url", "unusual-port")),
    ),
    ExtensionCategory.DEVELOPER_TOOLS: (
        ("EG-CRIT-002", _EXEC),
        (
            "EG-HIGH-002",
            ("http-to-ip", "dynamic-url", "unusual-port", "websocket-to-ip"),
        ),
        ("EG-CRIT-001", None),
    ),
    ExtensionCategory.REMOTE_DEVELOPMENT: (
        ("EG-CRIT-002", _EXEC),
        ("EG-CRIT-003", ("ssh-keys",)),
        (
            "EG-HIGH-002",
            ("dynamic-url", "unusual-port", "websocket-to-ip", "http-to-ip"),
        ),
        ("EG-CRIT-001", None),
    ),
    ExtensionCategory.TESTING: (
        ("EG-CRIT-002", _EXEC + ("dynamic-require",)),
        ("EG-CRIT-001", None),
    ),
    ExtensionCategory.NOTEBOOK: (
        ("EG-CRIT-002", _EXEC),
        ("EG-CRIT-003", ("env-file",)),
        ("EG-HIGH-002", ("dynamic-url", "unusual-port")),
        ("EG-CRIT-001", None),
    ),
}


@dataclass(frozen=True)
class AdjustmentContext:
    """Who published the extension, and whether reputation may be trusted.

    ``strict`` disables every reputation layer; only category-expected
    behavior is downgraded.
    """

    publisher: str = ""
    extension_id: str = ""
    strict: bool = False

    @property
    def effective_publisher(self) -> str:
        if self.publisher:
            return self.publisher
        return self.extension_id.split(".", 1)[0] if self.extension_id else ""


def is_expected_behavior(finding: Finding, category: ExtensionCategory) -> bool:
    pattern = finding.evidence.matched_pattern
    for rule_id, substrings in EXPECTED_BEHAVIORS.get(category, ()):
        if finding.rule_id != rule_id:
            continue
        if substrings is None or any(s in pattern for s in substrings):
            return True
    return False


@dataclass(frozen=True)
class _LayerInput:
    finding: Finding
    severity: Severity
    category: ExtensionCategory
    context: AdjustmentContext
    roster: Roster
    trusted: bool


LayerResult = tuple[Severity, str | None]


def _category_layer(i: _LayerInput) -> LayerResult:
    if is_expected_behavior(i.finding, i.category):
        return (
            DOWNGRADE[i.severity],
            f"expected behavior for {i.category.value} extension",
        )
    return i.severity, None


def _trusted_layer(i: _LayerInput) -> LayerResult:
    if i.context.strict or i.severity is Severity.INFO or not i.trusted:
        return i.severity, None
    return DOWNGRADE[i.severity], "trusted publisher"


def _verified_layer(i: _LayerInput) -> LayerResult:
    if i.context.strict or i.severity is Severity.INFO or i.trusted:
        return i.severity, None
    if not i.roster.is_verified_publisher(i.context.effective_publisher):
        return i.severity, None
    return DOWNGRADE[i.severity], "verified publisher"


def _popularity_layer(i: _LayerInput) -> LayerResult:
    if i.context.strict or i.severity is Severity.INFO:
        return i.severity, None
    tier = i.roster.popularity_tier(i.context.extension_id)
    if tier is PopularityTier.MEGA:
        return DOUBLE_DOWNGRADE[i.severity], "mega popular extension"
    if tier is PopularityTier.POPULAR:
        return DOWNGRADE[i.severity], "popular extension"
    return i.severity, None


Layer = Callable[[_LayerInput], LayerResult]

LAYERS: tuple[Layer, ...] = (
    _category_layer,
    _trusted_layer,
    _verified_layer,
    _popularity_layer,
)


def adjust_findings(
    findings: Iterable[Finding],
    category: ExtensionCategory,
    context: AdjustmentContext | None = None,
    roster: Roster | None = None,
) -> list[Finding]:
    """Return adjusted copies of ``findings``; the inputs are left untouched.

    Every applied layer contributes a reason; they are appended to the
    description as one ``[Downgraded: a + b]`` suffix.
    """
    context = context or AdjustmentContext()
    roster = roster if roster is not None else default_roster()
    trusted = roster.is_trusted_publisher(
        context.effective_publisher
    ) or roster.is_trusted_extension(context.extension_id)

    adjusted = []
    for finding in findings:
        severity = finding.severity
        reasons = []
        for layer in LAYERS:
            severity, reason = layer(
                _LayerInput(finding, severity, category, context, roster, trusted)
            )
            if reason:
                reasons.append(reason)

        if not reasons:
            adjusted.append(finding)
            continue

        logger.debug(
            "%s: %s %s -> %s (%s)",
            context.extension_id,
            finding.rule_id,
            finding.severity.value,
            severity.value,
            ", ".join(reasons),
        )
        adjusted.append(
            dataclasses.replace(
                finding,
                severity=severity,
                description=(
                    f"{finding.description} [Downgraded: {' + '.join(reasons)}]"
                ),
                downgraded=True,
                original_severity=finding.original_severity or finding.severity,
            )
        )
    return adjusted
