"""Integrity verifier — compares installed extensions to known-good hashes.

Three hashes are computed per extension version:

* manifest: SHA-256 of ``package.json``
* content: SHA-256 of every ``.js``/``.ts`` file, sorted by path, joined by
  newlines
* structure: SHA-256 of the sorted list of collected file paths

Any mismatch against the recorded hashes means the installed copy was
tampered with after publication.
"""

from __future__ import annotations

import enum
import hashlib
import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone

from extguard.scanner.models import Evidence, Finding, FindingCategory, Severity

logger = logging.getLogger(__name__)

MANIFEST_FILE = "package.json"
SCRIPT_SUFFIXES = (".js", ".ts")

INTEGRITY_RULE_ID = "EG-CRIT-100"


class IntegrityStatus(enum.Enum):
    VERIFIED = "verified"
    MODIFIED = "modified"
    UNKNOWN = "unknown"
    ERROR = "error"


class HashSource(enum.Enum):
    MARKETPLACE = "marketplace"
    MANUAL = "manual"
    COMMUNITY = "community"


@dataclass(frozen=True)
class ComputedHashes:
    extension_id: str
    version: str
    manifest_hash: str
    content_hash: str
    structure_hash: str
    combined_hash: str


@dataclass(frozen=True)
class ExtensionHash:
    """A known-good hash record for one extension version."""

    extension_id: str
    version: str
    manifest_hash: str
    content_hash: str
    structure_hash: str
    combined_hash: str
    recorded_at: str = ""
    source: HashSource = HashSource.MANUAL


@dataclass(frozen=True)
class Modifications:
    manifest: bool
    content: bool
    structure: bool

    def altered(self) -> list[str]:
        """Names of the altered components, in fixed order."""
        return [
            name
            for name, changed in (
                ("manifest", self.manifest),
                ("content", self.content),
                ("structure", self.structure),
            )
            if changed
        ]


@dataclass(frozen=True)
class IntegrityResult:
    extension_id: str
    version: str
    status: IntegrityStatus
    modifications: Modifications | None = None
    computed: ComputedHashes | None = None
    expected: ExtensionHash | None = None
    error: str = ""


def sha256(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def compute_extension_hashes(
    extension_id: str, version: str, files: Mapping[str, str]
) -> ComputedHashes:
    manifest_hash = sha256(files.get(MANIFEST_FILE, ""))
    scripts = sorted(
        (path, content)
        for path, content in files.items()
        if path.endswith(SCRIPT_SUFFIXES)
    )
    content_hash = sha256("\n".join(content for _, content in scripts))
    structure_hash = sha256("\n".join(sorted(files)))

    return ComputedHashes(
        extension_id=extension_id,
        version=version,
        manifest_hash=manifest_hash,
        content_hash=content_hash,
        structure_hash=structure_hash,
        combined_hash=sha256(f"{manifest_hash}:{content_hash}:{structure_hash}"),
    )


def hash_key(extension_id: str, version: str) -> str:
    return f"{extension_id}@{version}"


def verify_integrity(
    extension_id: str,
    version: str,
    files: Mapping[str, str],
    known: Mapping[str, ExtensionHash],
) -> IntegrityResult:
    """Check ``files`` against the record for ``extension_id@version``.

    Never raises: hashing or lookup failures come back as
    ``IntegrityStatus.ERROR``.
    """
    try:
        computed = compute_extension_hashes(extension_id, version, files)
        expected = known.get(hash_key(extension_id, version))
    except Exception as e:
        logger.warning("Integrity check failed for %s@%s: %s", extension_id, version, e)
        return IntegrityResult(
            extension_id=extension_id,
            version=version,
            status=IntegrityStatus.ERROR,
            error=str(e),
        )

    if expected is None:
        return IntegrityResult(
            extension_id=extension_id,
            version=version,
            status=IntegrityStatus.UNKNOWN,
            computed=computed,
        )

    modifications = Modifications(
        manifest=computed.manifest_hash != expected.manifest_hash,
        content=computed.content_hash != expected.content_hash,
        structure=computed.structure_hash != expected.structure_hash,
    )
    if modifications.altered():
        return IntegrityResult(
            extension_id=extension_id,
            version=version,
            status=IntegrityStatus.MODIFIED,
            modifications=modifications,
            computed=computed,
            expected=expected,
        )

    return IntegrityResult(
        extension_id=extension_id,
        version=version,
        status=IntegrityStatus.VERIFIED,
        computed=computed,
        expected=expected,
    )


def create_hash_record(
    extension_id: str,
    version: str,
    files: Mapping[str, str],
    source: HashSource = HashSource.MANUAL,
) -> ExtensionHash:
    computed = compute_extension_hashes(extension_id, version, files)
    return ExtensionHash(
        extension_id=extension_id,
        version=version,
        manifest_hash=computed.manifest_hash,
        content_hash=computed.content_hash,
        structure_hash=computed.structure_hash,
        combined_hash=computed.combined_hash,
        recorded_at=datetime.now(timezone.utc).isoformat(),
        source=source,
    )


def integrity_finding(result: IntegrityResult) -> Finding:
    """Build the synthetic critical finding reported for a modified extension."""
    altered = result.modifications.altered() if result.modifications else []
    components = ", ".join(altered) or "unknown"
    return Finding(
        id=uuid.uuid4().hex,
        rule_id=INTEGRITY_RULE_ID,
        severity=Severity.CRITICAL,
        category=FindingCategory.SUPPLY_CHAIN,
        title="Extension Integrity Violation",
        description=(
            f"Installed files of {result.extension_id}@{result.version} do not "
            f"match the known-good record (modified: {components})"
        ),
        evidence=Evidence(
            file_path=MANIFEST_FILE,
            matched_pattern=f"integrity-{'-'.join(altered) or 'modified'}",
            snippet=f"Modified components: {components}",
        ),
        mitre_attack_id="T1195.002",
        remediation=(
            "Uninstall the extension and reinstall it from the official "
            "marketplace"
        ),
    )
