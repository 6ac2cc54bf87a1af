"""Detection rule protocol."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

from extguard.scanner.models import (
    Evidence,
    ExtensionManifest,
    FindingCategory,
    Severity,
)


class DetectionRule(Protocol):
    """A pattern-based detector with fixed metadata.

    ``detect`` receives the extension's collected files (relative path →
    text) and its manifest, and must be a pure function of them.
    """

    rule_id: str
    name: str
    description: str
    severity: Severity
    category: FindingCategory
    mitre_attack_id: str
    enabled: bool

    def detect(
        self, files: Mapping[str, str], manifest: ExtensionManifest
    ) -> list[Evidence]:
        """Return one Evidence per located hit."""
