"""Scanner data models — severities, findings, manifests, and scan results."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from extguard.integrity.verifier import IntegrityResult


class Severity(enum.Enum):
    """Finding severity level, most severe first."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"

    @property
    def rank(self) -> int:
        """0 for critical up to 4 for info."""
        return _SEVERITY_RANK[self]

    def is_at_least(self, minimum: Severity) -> bool:
        return self.rank <= minimum.rank


_SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.HIGH: 1,
    Severity.MEDIUM: 2,
    Severity.LOW: 3,
    Severity.INFO: 4,
}


class RiskLevel(enum.Enum):
    """Per-extension risk classification."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    SAFE = "safe"

    @property
    def rank(self) -> int:
        """0 for critical up to 4 for safe."""
        return _RISK_RANK[self]

    def worse_of(self, other: RiskLevel) -> RiskLevel:
        return self if self.rank <= other.rank else other


_RISK_RANK = {level: i for i, level in enumerate(RiskLevel)}


class FindingCategory(enum.Enum):
    DATA_EXFILTRATION = "data-exfiltration"
    REMOTE_CODE_EXECUTION = "remote-code-execution"
    CREDENTIAL_THEFT = "credential-theft"
    KEYLOGGER = "keylogger"
    CODE_OBFUSCATION = "code-obfuscation"
    SUSPICIOUS_NETWORK = "suspicious-network"
    EXCESSIVE_PERMISSION = "excessive-permission"
    KNOWN_MALICIOUS = "known-malicious"
    HARDCODED_SECRET = "hardcoded-secret"
    VULNERABLE_DEPENDENCY = "vulnerable-dependency"
    PERSISTENCE = "persistence"
    SUPPLY_CHAIN = "supply-chain"
    CRYPTO_MINING = "crypto-mining"


class ExtensionCategory(enum.Enum):
    """Inferred purpose of an extension, used to judge what is normal for it."""

    THEME = "theme"
    LANGUAGE = "language"
    AI_ASSISTANT = "ai-assistant"
    SCM = "scm"
    DEBUGGER = "debugger"
    LINTER = "linter"
    LANGUAGE_SUPPORT = "language-support"
    DEVELOPER_TOOLS = "developer-tools"
    REMOTE_DEVELOPMENT = "remote-development"
    TESTING = "testing"
    NOTEBOOK = "notebook"
    GENERAL = "general"


@dataclass(frozen=True)
class Evidence:
    """A located pattern hit produced by a detection rule."""

    file_path: str
    line: int | None = None
    column: int | None = None
    line_content: str = ""
    matched_pattern: str = ""
    snippet: str = ""


@dataclass(frozen=True)
class Finding:
    """A judged security observation.

    ``downgraded`` is set by the finding adjuster whenever any adjustment
    layer applied; ``original_severity`` keeps the severity the rule emitted.
    """

    id: str
    rule_id: str
    severity: Severity
    category: FindingCategory
    title: str
    description: str
    evidence: Evidence
    mitre_attack_id: str = ""
    remediation: str = ""
    downgraded: bool = False
    original_severity: Severity | None = None


def _str_tuple(value: Any) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(v) for v in value if isinstance(v, (str, int, float)))


def _str_dict(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(k): str(v) for k, v in value.items()}


@dataclass(frozen=True)
class ExtensionManifest:
    """Parsed ``package.json`` of an installed extension."""

    name: str
    publisher: str
    version: str
    display_name: str = ""
    description: str = ""
    categories: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    activation_events: tuple[str, ...] = ()
    contributes: dict[str, Any] = field(default_factory=dict)
    dependencies: dict[str, str] = field(default_factory=dict)
    extension_dependencies: tuple[str, ...] = ()
    main: str = ""
    repository: str = ""
    license: str = ""
    engines_vscode: str = "*"
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def extension_id(self) -> str:
        return f"{self.publisher}.{self.name}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExtensionManifest:
        """Build a manifest from decoded JSON, ignoring mistyped fields."""
        repository = data.get("repository", "")
        if isinstance(repository, dict):
            repository = repository.get("url", "")
        engines = data.get("engines")
        engines_vscode = "*"
        if isinstance(engines, dict) and isinstance(engines.get("vscode"), str):
            engines_vscode = engines["vscode"]
        contributes = data.get("contributes")
        metadata = data.get("__metadata")

        return cls(
            name=_as_str(data.get("name")),
            publisher=_as_str(data.get("publisher")),
            version=_as_str(data.get("version")),
            display_name=_as_str(data.get("displayName")),
            description=_as_str(data.get("description")),
            categories=_str_tuple(data.get("categories")),
            keywords=_str_tuple(data.get("keywords")),
            activation_events=_str_tuple(data.get("activationEvents")),
            contributes=contributes if isinstance(contributes, dict) else {},
            dependencies=_str_dict(data.get("dependencies")),
            extension_dependencies=_str_tuple(data.get("extensionDependencies")),
            main=_as_str(data.get("main")),
            repository=_as_str(repository),
            license=_as_str(data.get("license")),
            engines_vscode=engines_vscode,
            metadata=metadata if isinstance(metadata, dict) else {},
        )


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


@dataclass(frozen=True)
class ExtensionInfo:
    """Installed-extension metadata gathered during enumeration."""

    id: str
    display_name: str
    version: str
    publisher: str
    install_path: str
    publisher_verified: bool = False
    description: str = ""
    categories: tuple[str, ...] = ()
    activation_events: tuple[str, ...] = ()
    extension_dependencies: tuple[str, ...] = ()
    engines_vscode: str = "*"
    repository: str = ""
    license: str = ""
    file_count: int = 0
    total_size: int = 0
    last_updated: float | None = None


@dataclass(frozen=True)
class ScanResult:
    """Outcome of scanning one extension."""

    extension_id: str
    display_name: str
    version: str
    trust_score: int
    risk_level: RiskLevel
    findings: tuple[Finding, ...]
    metadata: ExtensionInfo
    category: ExtensionCategory = ExtensionCategory.GENERAL
    analyzed_files: int = 0
    duration: float = 0.0
    integrity: IntegrityResult | None = None
    raw_findings: tuple[Finding, ...] = ()
    error: str = ""


@dataclass(frozen=True)
class DetectedIDE:
    """An editor installation whose extension directory exists."""

    name: str
    path: str
    extension_count: int = 0


@dataclass(frozen=True)
class SkippedExtension:
    extension_id: str
    reason: str


@dataclass
class ScanSummary:
    """Aggregate counts over all results of one scan."""

    by_risk_level: dict[RiskLevel, int]
    by_severity: dict[Severity, int]
    by_category: dict[FindingCategory, int]
    top_findings: list[Finding]
    overall_health_score: int


@dataclass
class FullScanReport:
    """Everything produced by one scan invocation."""

    scan_id: str
    version: str
    timestamp: str
    os: str
    ides: list[DetectedIDE]
    total_extensions: int
    unique_extensions: int
    results: list[ScanResult]
    summary: ScanSummary
    duration: float = 0.0
    skipped_extensions: list[SkippedExtension] = field(default_factory=list)
    timed_out: bool = False
