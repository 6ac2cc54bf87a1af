"""EG-MED-001 — extensions that activate on everything or at startup."""

from __future__ import annotations

from collections.abc import Mapping

from extguard.scanner.models import (
    Evidence,
    ExtensionManifest,
    FindingCategory,
    Severity,
)

MANIFEST_FILE = "package.json"


class ExcessiveActivationRule:
    rule_id = "EG-MED-001"
    name = "Excessive Activation Events"
    description = (
        'Extension uses "*" activation event which means it activates on every '
        "action, potentially for surveillance"
    )
    severity = Severity.MEDIUM
    category = FindingCategory.EXCESSIVE_PERMISSION
    mitre_attack_id = ""
    enabled = True

    def detect(
        self, files: Mapping[str, str], manifest: ExtensionManifest
    ) -> list[Evidence]:
        events = manifest.activation_events
        evidences = []
        if "*" in events:
            evidences.append(
                Evidence(
                    file_path=MANIFEST_FILE,
                    line=1,
                    line_content="Extension activates on every editor action",
                    matched_pattern="activation-star",
                    snippet='activationEvents: ["*"]',
                )
            )
        if "onStartupFinished" in events:
            evidences.append(
                Evidence(
                    file_path=MANIFEST_FILE,
                    line=1,
                    line_content="Extension activates immediately on editor startup",
                    matched_pattern="activation-startup",
                    snippet='activationEvents: ["onStartupFinished"]',
                )
            )
        return evidences
