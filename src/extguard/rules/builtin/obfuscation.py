"""EG-HIGH-001 — encoded payloads and high-entropy source files."""

from __future__ import annotations

import re
from collections.abc import Mapping

from extguard.rules.patterns import (
    iter_source_files,
    line_at,
    line_number,
    shannon_entropy,
)
from extguard.scanner.models import (
    Evidence,
    ExtensionManifest,
    FindingCategory,
    Severity,
)

MIN_BASE64_LENGTH = 100
MIN_ENTROPY_FILE_SIZE = 5000
ENTROPY_THRESHOLD = 6.2

# Bundler output under these directories is legitimately high-entropy
BUNDLED_FILE_PATTERN = re.compile(r"(?:^|/)(?:dist|out|build|bundle)/")
BUNDLED_FILE_SIZE_THRESHOLD = 100 * 1024

BASE64_PATTERN = re.compile(
    r"['\"`]([A-Za-z0-9+/]{%d,}={0,2})['\"`]" % MIN_BASE64_LENGTH
)
HEX_PATTERN = re.compile(r"(?:\\x[0-9a-fA-F]{2}){10,}")
CHAR_CODE_PATTERN = re.compile(r"String\.fromCharCode\s*\(\s*\d+(?:\s*,\s*\d+){4,}\s*\)")
UNICODE_ESCAPE_PATTERN = re.compile(r"(?:\\u[0-9a-fA-F]{4}){10,}")


def is_bundled(path: str, content: str) -> bool:
    return (
        BUNDLED_FILE_PATTERN.search(path) is not None
        and len(content) > BUNDLED_FILE_SIZE_THRESHOLD
    )


def _short_line(content: str, index: int) -> str:
    return line_at(content, index)[:80] + "..."


class ObfuscationRule:
    rule_id = "EG-HIGH-001"
    name = "Code Obfuscation Detected"
    description = (
        "Detects heavily obfuscated code patterns that may hide malicious behavior"
    )
    severity = Severity.HIGH
    category = FindingCategory.CODE_OBFUSCATION
    mitre_attack_id = "T1027"
    enabled = True

    def detect(
        self, files: Mapping[str, str], manifest: ExtensionManifest
    ) -> list[Evidence]:
        evidences: list[Evidence] = []
        for path, content in iter_source_files(files):
            evidences.extend(self._scan_file(path, content))
        return evidences

    def _scan_file(self, path: str, content: str) -> list[Evidence]:
        evidences = []

        for m in BASE64_PATTERN.finditer(content):
            evidences.append(
                Evidence(
                    file_path=path,
                    line=line_number(content, m.start()),
                    line_content=_short_line(content, m.start()),
                    matched_pattern="large-base64",
                    snippet=f"Base64 string of {len(m.group(1))} characters",
                )
            )

        for m in HEX_PATTERN.finditer(content):
            evidences.append(
                Evidence(
                    file_path=path,
                    line=line_number(content, m.start()),
                    line_content=_short_line(content, m.start()),
                    matched_pattern="hex-encoded",
                    snippet=m.group(0)[:50] + "...",
                )
            )

        for m in CHAR_CODE_PATTERN.finditer(content):
            evidences.append(
                Evidence(
                    file_path=path,
                    line=line_number(content, m.start()),
                    line_content=line_at(content, m.start()),
                    matched_pattern="charcode-obfuscation",
                    snippet=m.group(0)[:80],
                )
            )

        for m in UNICODE_ESCAPE_PATTERN.finditer(content):
            evidences.append(
                Evidence(
                    file_path=path,
                    line=line_number(content, m.start()),
                    line_content=_short_line(content, m.start()),
                    matched_pattern="unicode-escape",
                    snippet=m.group(0)[:50] + "...",
                )
            )

        if len(content) > MIN_ENTROPY_FILE_SIZE and not is_bundled(path, content):
            entropy = shannon_entropy(content)
            if entropy > ENTROPY_THRESHOLD:
                evidences.append(
                    Evidence(
                        file_path=path,
                        line=1,
                        matched_pattern="high-entropy",
                        snippet=(
                            f"File entropy: {entropy:.2f} "
                            f"(threshold: {ENTROPY_THRESHOLD})"
                        ),
                    )
                )

        return evidences
