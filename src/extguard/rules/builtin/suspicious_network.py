"""EG-HIGH-002 — requests to IP literals, dynamic URLs and odd ports."""

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

STANDARD_PORTS = (80, 443, 3000, 5000, 8080, 8443)

_IP = r"\d{1,3}(?:\.\d{1,3}){3}"
_STANDARD = "|".join(str(p) for p in STANDARD_PORTS)

NETWORK_PATTERNS: tuple[Pattern, ...] = (
    Pattern(
        "http-to-ip",
        re.compile(
            r"(?:fetch|axios(?:\.(?:get|post|put|delete|request))?"
            r"|https?\s*\.\s*(?:get|post|request)|XMLHttpRequest)"
            r"\s*\([^)]*['\"`]https?://" + _IP
        ),
    ),
    Pattern(
        "dynamic-url",
        re.compile(
            r"(?:fetch|axios|https?\.request)\s*\(\s*"
            r"(?:`[^`]*\$\{|['\"][^'\"]*['\"]\s*\+\s*\w)"
        ),
    ),
    Pattern(
        "websocket-to-ip",
        re.compile(r"new\s+WebSocket\s*\(\s*['\"`]wss?://" + _IP),
    ),
    # A port is standard only if the whole number matches, so :4433 is odd
    Pattern(
        "unusual-port",
        re.compile(
            r"['\"`]https?://[^'\"`:]+:(?!(?:" + _STANDARD + r")(?![0-9]))[0-9]{2,5}"
        ),
    ),
)


class SuspiciousNetworkRule:
    rule_id = "EG-HIGH-002"
    name = "Suspicious Network Activity"
    description = (
        "Detects network requests to IP addresses, dynamic URLs, or unusual ports"
    )
    severity = Severity.HIGH
    category = FindingCategory.SUSPICIOUS_NETWORK
    mitre_attack_id = "T1071"
    enabled = True

    def detect(
        self, files: Mapping[str, str], manifest: ExtensionManifest
    ) -> list[Evidence]:
        evidences: list[Evidence] = []
        for path, content in iter_source_files(files):
            evidences.extend(match_patterns(path, content, NETWORK_PATTERNS))
        return evidences
