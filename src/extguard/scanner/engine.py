"""Scan engine — discovers installed extensions and judges each one.

A scan runs discover → enumerate → dispatch → aggregate. Dispatch fans the
extension list out over a fixed number of worker threads that pull the next
index from a lock-guarded cursor and write into a pre-sized slot list, so
result order always matches enumeration order.
"""

from __future__ import annotations

import dataclasses
import logging
import platform
import threading
import time
import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from extguard import __version__
from extguard.integrity.database import load_hash_database
from extguard.integrity.verifier import (
    ExtensionHash,
    IntegrityResult,
    IntegrityStatus,
    integrity_finding,
    verify_integrity,
)
from extguard.policy.models import PolicyConfig
from extguard.rosters import Roster, default_roster, is_self_extension
from extguard.rules.adjuster import AdjustmentContext, adjust_findings
from extguard.rules.base import DetectionRule
from extguard.rules.builtin import default_rules
from extguard.rules.engine import RuleEngine
from extguard.scanner.categorizer import categorize_extension
from extguard.scanner.collector import collect_files
from extguard.scanner.ide import detect_ide_paths, expand_path
from extguard.scanner.models import (
    DetectedIDE,
    ExtensionCategory,
    ExtensionInfo,
    Finding,
    FullScanReport,
    RiskLevel,
    ScanResult,
    Severity,
    SkippedExtension,
)
from extguard.scanner.reader import (
    MANIFEST_FILE,
    parse_manifest,
    read_extensions_from_directory,
)
from extguard.scanner.report import summarize
from extguard.scanner.scoring import calculate_trust_score, classify_risk

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 4
DEFAULT_TIMEOUT = 30.0

CUSTOM_IDE_NAME = "Custom"


@dataclass(frozen=True)
class ScanOptions:
    """Knobs for one scan.

    ``ide_paths`` overrides auto-detection. ``strict`` disables the
    reputation-based downgrades. ``keep_raw_findings`` retains the
    pre-adjustment findings on each result for audit.
    """

    ide_paths: tuple[str, ...] = ()
    auto_detect: bool = True
    min_severity: Severity | None = None
    rules: tuple[str, ...] = ()
    skip_rules: tuple[str, ...] = ()
    concurrency: int = DEFAULT_CONCURRENCY
    timeout: float = DEFAULT_TIMEOUT
    strict: bool = False
    integrity: bool = False
    include_self: bool = False
    keep_raw_findings: bool = False

    @classmethod
    def from_policy(
        cls, config: PolicyConfig, base: ScanOptions | None = None
    ) -> ScanOptions:
        """Apply a policy's scanning defaults on top of ``base``."""
        base = base or cls()
        scanning = config.scanning
        changes: dict = {}
        if scanning.min_severity is not None:
            changes["min_severity"] = scanning.min_severity
        if scanning.skip_rules:
            changes["skip_rules"] = tuple(
                dict.fromkeys((*base.skip_rules, *scanning.skip_rules))
            )
        if scanning.timeout is not None:
            changes["timeout"] = scanning.timeout
        if scanning.concurrency is not None:
            changes["concurrency"] = scanning.concurrency
        return dataclasses.replace(base, **changes)


class ScanEngine:
    """Runs the per-extension pipeline across every installed extension."""

    def __init__(
        self,
        options: ScanOptions | None = None,
        *,
        rules: Sequence[DetectionRule] | None = None,
        roster: Roster | None = None,
        hash_database: Mapping[str, ExtensionHash] | None = None,
    ) -> None:
        self._options = options or ScanOptions()
        self._roster = roster if roster is not None else default_roster()
        self._rule_engine = RuleEngine(
            rules if rules is not None else default_rules(),
            only=self._options.rules or None,
            skip=self._options.skip_rules or None,
            min_severity=self._options.min_severity,
        )
        if hash_database is None and self._options.integrity:
            hash_database = load_hash_database()
        self._hashes: Mapping[str, ExtensionHash] = hash_database or {}

    @property
    def options(self) -> ScanOptions:
        return self._options

    def scan(self) -> FullScanReport:
        start = time.monotonic()

        ides = self._discover()
        ides, extensions, total, skipped = self._enumerate(ides)
        logger.debug(
            "Scanning %d extension(s) from %d location(s)", len(extensions), len(ides)
        )
        results, timed_out = self._dispatch(extensions)

        return FullScanReport(
            scan_id=uuid.uuid4().hex,
            version=__version__,
            timestamp=datetime.now(timezone.utc).isoformat(),
            os=f"{platform.system()} {platform.release()}",
            ides=ides,
            total_extensions=total,
            unique_extensions=len(extensions),
            results=results,
            summary=summarize(results),
            duration=time.monotonic() - start,
            skipped_extensions=skipped,
            timed_out=timed_out,
        )

    def scan_extension(self, info: ExtensionInfo) -> ScanResult:
        """Collect an extension's files and analyze them. Never raises."""
        files = collect_files(info.install_path)
        return self.analyze(info, files)

    def analyze(self, info: ExtensionInfo, files: Mapping[str, str]) -> ScanResult:
        """Run the judgment pipeline over already-collected files.

        manifest → rules → category → adjustment → score → integrity. Any
        unexpected failure yields a degraded result with ``error`` set and
        medium risk.
        """
        start = time.monotonic()
        raw: list[Finding] = []
        findings: list[Finding] = []
        category = ExtensionCategory.GENERAL
        try:
            manifest = parse_manifest(
                files.get(MANIFEST_FILE), Path(info.install_path).name
            )
            raw = self._rule_engine.run(files, manifest)
            findings = raw
            category = categorize_extension(manifest)
            context = AdjustmentContext(
                publisher=manifest.publisher or info.publisher,
                extension_id=info.id,
                strict=self._options.strict,
            )
            findings = adjust_findings(raw, category, context, self._roster)
            score = calculate_trust_score(findings)
            risk = classify_risk(findings, score)

            integrity: IntegrityResult | None = None
            if self._options.integrity:
                integrity = verify_integrity(info.id, info.version, files, self._hashes)
                if integrity.status is IntegrityStatus.MODIFIED:
                    logger.warning(
                        "%s@%s differs from its known-good hashes (%s)",
                        info.id,
                        info.version,
                        ", ".join(integrity.modifications.altered()),
                    )
                    findings = [integrity_finding(integrity), *findings]
                    risk = RiskLevel.CRITICAL
        except Exception as e:
            logger.exception("Pipeline failed for %s", info.id)
            score = calculate_trust_score(findings)
            # Never better than medium, never hiding a critical finding
            risk = classify_risk(findings, score).worse_of(RiskLevel.MEDIUM)
            return self._result(
                info,
                findings,
                raw,
                category,
                len(files),
                start,
                score=score,
                risk=risk,
                error=f"{type(e).__name__}: {e}",
            )

        return self._result(
            info,
            findings,
            raw,
            category,
            len(files),
            start,
            score=score,
            risk=risk,
            integrity=integrity,
        )

    def _result(
        self,
        info: ExtensionInfo,
        findings: list[Finding],
        raw: list[Finding],
        category: ExtensionCategory,
        analyzed: int,
        start: float,
        *,
        score: int,
        risk: RiskLevel,
        integrity: IntegrityResult | None = None,
        error: str = "",
    ) -> ScanResult:
        return ScanResult(
            extension_id=info.id,
            display_name=info.display_name,
            version=info.version,
            trust_score=score,
            risk_level=risk,
            findings=tuple(findings),
            metadata=info,
            category=category,
            analyzed_files=analyzed,
            duration=time.monotonic() - start,
            integrity=integrity,
            raw_findings=tuple(raw) if self._options.keep_raw_findings else (),
            error=error,
        )

    def _discover(self) -> list[DetectedIDE]:
        if self._options.ide_paths:
            return [
                DetectedIDE(name=CUSTOM_IDE_NAME, path=str(expand_path(p)))
                for p in self._options.ide_paths
            ]
        if self._options.auto_detect:
            return detect_ide_paths()
        return []

    def _enumerate(
        self, ides: list[DetectedIDE]
    ) -> tuple[list[DetectedIDE], list[ExtensionInfo], int, list[SkippedExtension]]:
        """Read every location; the first location wins per extension id."""
        counted: list[DetectedIDE] = []
        unique: list[ExtensionInfo] = []
        skipped: list[SkippedExtension] = []
        seen: set[str] = set()
        total = 0

        for ide in ides:
            found = read_extensions_from_directory(ide.path, self._roster)
            counted.append(dataclasses.replace(ide, extension_count=len(found)))
            total += len(found)
            for info in found:
                if info.id in seen:
                    continue
                seen.add(info.id)
                if not self._options.include_self and is_self_extension(info.id):
                    logger.debug("Skipping self extension %s", info.id)
                    skipped.append(SkippedExtension(info.id, "self-extension"))
                    continue
                unique.append(info)

        return counted, unique, total, skipped

    def _dispatch(self, tasks: list[ExtensionInfo]) -> tuple[list[ScanResult], bool]:
        """Scan ``tasks`` on a bounded worker pool.

        No task is started after the deadline. Workers still busy when it
        passes are abandoned (they are daemon threads) and only finished
        results are returned.
        """
        if not tasks:
            return [], False

        slots: list[ScanResult | None] = [None] * len(tasks)
        lock = threading.Lock()
        cursor = 0
        deadline = time.monotonic() + self._options.timeout
        expired = threading.Event()

        def worker() -> None:
            nonlocal cursor
            while True:
                with lock:
                    if cursor >= len(tasks):
                        return
                    if time.monotonic() >= deadline:
                        expired.set()
                        return
                    index = cursor
                    cursor += 1
                slots[index] = self._scan_task(tasks[index])

        count = max(1, min(self._options.concurrency, len(tasks)))
        workers = [
            threading.Thread(target=worker, name=f"extguard-scan-{n}", daemon=True)
            for n in range(count)
        ]
        for t in workers:
            t.start()
        for t in workers:
            t.join(max(0.0, deadline - time.monotonic()))

        if any(t.is_alive() for t in workers):
            expired.set()

        results = [r for r in list(slots) if r is not None]
        if expired.is_set():
            logger.warning(
                "Scan timed out after %.1fs; returning %d of %d result(s)",
                self._options.timeout,
                len(results),
                len(tasks),
            )
        return results, expired.is_set()

    def _scan_task(self, info: ExtensionInfo) -> ScanResult:
        try:
            return self.scan_extension(info)
        except Exception as e:
            logger.exception("Worker failed on %s", info.id)
            return self._result(
                info,
                [],
                [],
                ExtensionCategory.GENERAL,
                0,
                time.monotonic(),
                score=calculate_trust_score([]),
                risk=RiskLevel.MEDIUM,
                error=f"{type(e).__name__}: {e}",
            )
