"""EG-HIGH-006 — hardcoded API keys, tokens and passwords.

Test, example and documentation files are never examined. Matches inside
comments are ignored, as are placeholder values. The catch-all
``generic-secret`` pattern additionally rejects short, low-entropy and
well-known non-secret values.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from extguard.rules.patterns import (
    CODE_EXTENSIONS,
    Pattern,
    comment_spans,
    is_in_comment,
    iter_source_files,
    line_at,
    line_number,
    shannon_entropy,
    truncate,
)
from extguard.scanner.models import (
    Evidence,
    ExtensionManifest,
    FindingCategory,
    Severity,
)

MIN_SECRET_LENGTH = 8
MIN_SECRET_ENTROPY = 3.0

SECRET_PATTERNS: tuple[Pattern, ...] = (
    Pattern("aws-access-key", re.compile(r"AKIA[0-9A-Z]{16}")),
    Pattern(
        "aws-secret-key",
        re.compile(
            r"(?:aws[_-]?secret(?:[_-]?access)?[_-]?key|secret[_-]?access[_-]?key)"
            r"\s*[:=]\s*['\"`]([A-Za-z0-9/+=]{40})['\"`]",
            re.IGNORECASE,
        ),
        group=1,
    ),
    Pattern("github-token", re.compile(r"gh[pors]_[A-Za-z0-9]{36,}")),
    Pattern("slack-token", re.compile(r"xox[bpar]-[0-9]+-[0-9]+-[A-Za-z0-9]+")),
    Pattern(
        "private-key",
        re.compile(
            r"-----BEGIN\s+(?:RSA\s+|EC\s+|DSA\s+|OPENSSH\s+)?PRIVATE\s+KEY-----"
        ),
    ),
    Pattern(
        "bearer-token",
        re.compile(r"Bearer\s+([A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+)"),
        group=1,
    ),
    Pattern(
        "api-key",
        re.compile(
            r"(?:api[_-]?key|apikey)\s*[:=]\s*['\"`]([A-Za-z0-9_-]{16,})['\"`]",
            re.IGNORECASE,
        ),
        group=1,
    ),
    Pattern(
        "generic-secret",
        re.compile(
            r"(?:password|passwd|pwd|secret|token)\s*[:=]\s*['\"`]([^'\"`]{8,})['\"`]",
            re.IGNORECASE,
        ),
        group=1,
    ),
)

PLACEHOLDER_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"^your[_-]?",
        r"^<[^>]+>$",
        r"^replace[_-]?me$",
        r"^xxx+$",
        r"^x{3,}[_-]x{3,}",
        r"^todo$",
        r"^fixme$",
        r"^example$",
        r"^placeholder$",
        r"^changeme$",
        r"^\*+$",
        r"^\.+$",
        r"^test$",
        r"^demo$",
    )
)

# Values that look like assignments to a secret but never are one
FALSE_POSITIVE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"^(?:true|false|null|undefined|none)$",
        r"^(?:string|number|boolean|object|function|symbol|bigint|any|unknown)(?:\[\])?$",
        r"^(?:bearer|basic|digest|token|oauth|apikey|password|secret)\b",
        r"^(?:https?|wss?|file)://",
        r"\$\{",
        r"\{\{",
        r"\{\d*\}",
        r"%[sdif]",
    )
)

EXCLUDED_FILE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p)
    for p in (
        r"\.test\.[jt]sx?$",
        r"\.spec\.[jt]sx?$",
        r"__tests__/",
        r"(?:^|/)test/",
        r"(?:^|/)tests/",
        r"(?:^|/)examples?/",
        r"(?:^|/)demo/",
        r"\.md$",
        r"\.txt$",
        r"\.rst$",
    )
)


def is_placeholder(value: str) -> bool:
    return any(p.search(value) for p in PLACEHOLDER_PATTERNS)


def is_false_positive(value: str) -> bool:
    return any(p.search(value) for p in FALSE_POSITIVE_PATTERNS)


def _is_secret(pattern: Pattern, value: str) -> bool:
    if is_placeholder(value):
        return False
    if pattern.name != "generic-secret":
        return True
    return (
        len(value) >= MIN_SECRET_LENGTH
        and shannon_entropy(value) >= MIN_SECRET_ENTROPY
        and not is_false_positive(value)
    )


class HardcodedSecretRule:
    rule_id = "EG-HIGH-006"
    name = "Hardcoded Secrets"
    description = (
        "Detects hardcoded API keys, tokens, passwords, and other secrets in code"
    )
    severity = Severity.HIGH
    category = FindingCategory.HARDCODED_SECRET
    mitre_attack_id = "T1552.001"
    enabled = True

    def detect(
        self, files: Mapping[str, str], manifest: ExtensionManifest
    ) -> list[Evidence]:
        evidences: list[Evidence] = []
        for path, content in iter_source_files(
            files, CODE_EXTENSIONS, EXCLUDED_FILE_PATTERNS
        ):
            spans: list[tuple[int, int]] | None = None
            for pattern in SECRET_PATTERNS:
                for match in pattern.regex.finditer(content):
                    if spans is None:
                        spans = comment_spans(content)
                    if is_in_comment(content, match.start(), spans):
                        continue
                    value = match.group(pattern.group)
                    if not value or not _is_secret(pattern, value):
                        continue
                    shown = value[:20] + ("..." if len(value) > 20 else "")
                    evidences.append(
                        Evidence(
                            file_path=path,
                            line=line_number(content, match.start()),
                            line_content=truncate(line_at(content, match.start())),
                            matched_pattern=pattern.name,
                            snippet=f"Detected {pattern.name}: {shown}",
                        )
                    )
        return evidences
