"""Scan summaries and JSON-ready report rendering."""

from __future__ import annotations

import dataclasses
import enum
from collections import Counter
from collections.abc import Iterable
from typing import Any

from extguard.scanner.models import (
    Finding,
    FindingCategory,
    FullScanReport,
    RiskLevel,
    ScanResult,
    ScanSummary,
    Severity,
)

TOP_FINDINGS = 10


def summarize(results: Iterable[ScanResult]) -> ScanSummary:
    """Aggregate counts over ``results``; independent of their order."""
    results = list(results)
    by_risk = Counter(r.risk_level for r in results)
    findings = [f for r in results for f in r.findings]
    by_severity = Counter(f.severity for f in findings)
    by_category = Counter(f.category for f in findings)

    # Stable sort, so ties keep result order
    top = sorted(findings, key=lambda f: f.severity.rank)[:TOP_FINDINGS]

    healthy = by_risk[RiskLevel.SAFE] + by_risk[RiskLevel.LOW]
    health = round(healthy / len(results) * 100) if results else 100

    return ScanSummary(
        by_risk_level={level: by_risk[level] for level in RiskLevel},
        by_severity={sev: by_severity[sev] for sev in Severity},
        by_category={cat: by_category[cat] for cat in FindingCategory if by_category[cat]},
        top_findings=top,
        overall_health_score=health,
    )


def _jsonable(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: _jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)
        }
    if isinstance(value, dict):
        return {_jsonable(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def finding_to_dict(finding: Finding, include_evidence: bool = True) -> dict[str, Any]:
    data = _jsonable(finding)
    if not include_evidence:
        data.pop("evidence", None)
    return data


def report_to_dict(
    report: FullScanReport,
    *,
    include_safe: bool = True,
    min_severity: Severity = Severity.INFO,
    include_evidence: bool = True,
) -> dict[str, Any]:
    """Render a report as plain JSON types.

    ``include_safe=False`` drops safe and low risk results; findings below
    ``min_severity`` are omitted. Raw findings are only emitted when the
    scan retained them.
    """
    data = _jsonable(report)
    results = []
    for result in report.results:
        if not include_safe and result.risk_level in (RiskLevel.SAFE, RiskLevel.LOW):
            continue
        entry = _jsonable(result)
        entry["findings"] = [
            finding_to_dict(f, include_evidence)
            for f in result.findings
            if f.severity.is_at_least(min_severity)
        ]
        if not result.raw_findings:
            entry.pop("raw_findings")
        results.append(entry)
    data["results"] = results
    return data
