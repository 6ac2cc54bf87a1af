"""EG-CRIT-002 — dynamic code execution and process spawning."""

from __future__ import annotations

import re
from collections.abc import Mapping

from extguard.rules.patterns import Pattern, iter_source_files, match_patterns
from extguard.scanner.models import (
    Evidence,
    ExtensionManifest,
    FindingCategory,
    Severity,
)

_CHILD_PROCESS = r"(?:require\s*\(\s*['\"]child_process['\"]\s*\)|child_process)"

DANGEROUS_PATTERNS: tuple[Pattern, ...] = (
    Pattern("eval", re.compile(r"\beval\s*\(")),
    Pattern("Function-constructor", re.compile(r"new\s+Function\s*\(")),
    Pattern("child_process-exec", re.compile(_CHILD_PROCESS + r"\.exec\s*\(")),
    Pattern(
        "child_process-execSync", re.compile(_CHILD_PROCESS + r"\.execSync\s*\(")
    ),
    Pattern(
        "child_process-spawn-shell",
        re.compile(r"\.spawn\s*\([^)]*\{[^}]*shell\s*:\s*true"),
    ),
    Pattern(
        "vm-runInContext",
        re.compile(r"vm\.run(?:InContext|InNewContext|InThisContext)\s*\("),
    ),
    Pattern("vm-Script", re.compile(r"new\s+vm\.Script\s*\(")),
    # require() of anything but a plain string literal
    Pattern(
        "dynamic-require",
        re.compile(r"require\s*\(\s*(?:[^'\"`\s)]|`[^`]*\$\{)"),
    ),
)


class RemoteExecutionRule:
    rule_id = "EG-CRIT-002"
    name = "Remote Code Execution"
    description = (
        "Detects dangerous code execution patterns like eval, exec, or "
        "dynamic require"
    )
    severity = Severity.CRITICAL
    category = FindingCategory.REMOTE_CODE_EXECUTION
    mitre_attack_id = "T1059"
    enabled = True

    def detect(
        self, files: Mapping[str, str], manifest: ExtensionManifest
    ) -> list[Evidence]:
        evidences: list[Evidence] = []
        for path, content in iter_source_files(files):
            evidences.extend(match_patterns(path, content, DANGEROUS_PATTERNS))
        return evidences
