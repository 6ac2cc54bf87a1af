"""EG-CRIT-003 — reads of credential files such as SSH keys or .env files.

A sensitive path literal on its own is not enough: a file-access call must
appear within ``CONTEXT_WINDOW`` characters on either side of it.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from extguard.rules.patterns import (
    Pattern,
    has_pattern_in_context,
    iter_source_files,
    match_patterns,
)
from extguard.scanner.models import (
    Evidence,
    ExtensionManifest,
    FindingCategory,
    Severity,
)

CONTEXT_WINDOW = 200

_Q = "['\"`]"
_NQ = "[^'\"`]*"


def _path(name: str, body: str) -> Pattern:
    return Pattern(name, re.compile(_Q + _NQ + body + _Q, re.IGNORECASE))


SENSITIVE_PATHS: tuple[Pattern, ...] = (
    _path(
        "ssh-keys",
        r"\.ssh[/\\](?:id_rsa|id_ed25519|id_ecdsa|known_hosts|config|authorized_keys)"
        + _NQ,
    ),
    _path("gnupg", r"\.gnupg[/\\]" + _NQ),
    _path("aws-credentials", r"\.aws[/\\]credentials" + _NQ),
    _path("azure-config", r"\.azure[/\\]" + _NQ),
    _path("kube-config", r"\.kube[/\\]config" + _NQ),
    _path("git-credentials", r"\.git-credentials" + _NQ),
    _path("env-file", r"\.env(?:\.\w+)?"),
    _path("npmrc", r"\.npmrc" + _NQ),
    _path("docker-config", r"\.docker[/\\]config\.json" + _NQ),
    _path("netrc", r"\.netrc" + _NQ),
)

FILE_READ_CONTEXT = re.compile(
    r"\b(?:readFile|readFileSync|createReadStream|access|accessSync|exists"
    r"|existsSync|stat|statSync|open|openSync)\b"
)


def _near_file_read(pattern: Pattern, value: str, match: re.Match[str]) -> bool:
    return has_pattern_in_context(
        match.string, match.start(), match.end(), FILE_READ_CONTEXT, CONTEXT_WINDOW
    )


class CredentialAccessRule:
    rule_id = "EG-CRIT-003"
    name = "Credential File Access"
    description = (
        "Detects attempts to read sensitive credential files like SSH keys, "
        "AWS credentials, or .env files"
    )
    severity = Severity.CRITICAL
    category = FindingCategory.CREDENTIAL_THEFT
    mitre_attack_id = "T1552.004"
    enabled = True

    def detect(
        self, files: Mapping[str, str], manifest: ExtensionManifest
    ) -> list[Evidence]:
        evidences: list[Evidence] = []
        for path, content in iter_source_files(files):
            evidences.extend(
                match_patterns(path, content, SENSITIVE_PATHS, _near_file_read)
            )
        return evidences
