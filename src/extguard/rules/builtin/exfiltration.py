"""EG-CRIT-001 — system information sent to a literal IP address."""

from __future__ import annotations

import re
from collections.abc import Mapping

from extguard.rules.patterns import (
    Pattern,
    iter_source_files,
    line_at,
    line_number,
    truncate,
)
from extguard.scanner.models import (
    Evidence,
    ExtensionManifest,
    FindingCategory,
    Severity,
)

SYSTEM_INFO_PATTERNS: tuple[Pattern, ...] = (
    Pattern("os.hostname", re.compile(r"os\.hostname\s*\(\)")),
    Pattern("os.userInfo", re.compile(r"os\.userInfo\s*\(\)")),
    Pattern("os.platform", re.compile(r"os\.platform\s*\(\)")),
    Pattern("os.arch", re.compile(r"os\.arch\s*\(\)")),
    Pattern("os.networkInterfaces", re.compile(r"os\.networkInterfaces\s*\(\)")),
    Pattern("os.cpus", re.compile(r"os\.cpus\s*\(\)")),
    Pattern("os.homedir", re.compile(r"os\.homedir\s*\(\)")),
    Pattern("process.env", re.compile(r"process\.env(?:\[|\.)")),
)

# Chained calls are often split across lines (``https\n  .request(``)
HTTP_TO_IP = re.compile(
    r"(?:https?\s*\.\s*request|fetch|axios\.(?:get|post|put|request))"
    r"\s*\(\s*['\"`]https?://\d{1,3}(?:\.\d{1,3}){3}"
)


class DataExfiltrationRule:
    rule_id = "EG-CRIT-001"
    name = "Data Exfiltration Pattern"
    description = (
        "Detects code that collects system info and sends it to external "
        "servers via IP address"
    )
    severity = Severity.CRITICAL
    category = FindingCategory.DATA_EXFILTRATION
    mitre_attack_id = "T1041"
    enabled = True

    def detect(
        self, files: Mapping[str, str], manifest: ExtensionManifest
    ) -> list[Evidence]:
        evidences: list[Evidence] = []
        for path, content in iter_source_files(files):
            info = _first_system_info(content)
            if info is None:
                continue
            request = HTTP_TO_IP.search(content)
            if request is None:
                continue

            info_name, info_line = info
            request_line = line_number(content, request.start())
            evidences.append(
                Evidence(
                    file_path=path,
                    line=request_line,
                    line_content=truncate(line_at(content, request.start())),
                    matched_pattern=f"{info_name} + http-to-ip",
                    snippet=(
                        f"System info ({info_name}) collected at line "
                        f"{info_line}, sent to IP at line {request_line}"
                    ),
                )
            )
        return evidences


def _first_system_info(content: str) -> tuple[str, int] | None:
    for pattern in SYSTEM_INFO_PATTERNS:
        match = pattern.regex.search(content)
        if match:
            return pattern.name, line_number(content, match.start())
    return None
