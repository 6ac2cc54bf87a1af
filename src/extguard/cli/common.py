"""Helpers shared by the CLI commands: options, policy lookup, rendering."""

from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from extguard.config import ExtGuardConfig
from extguard.policy.loader import (
    PolicyConfigError,
    find_policy_file,
    load_policy_config,
)
from extguard.policy.models import PolicyConfig
from extguard.scanner.engine import ScanOptions
from extguard.scanner.models import FullScanReport, RiskLevel, Severity

console = Console(stderr=True)

SEVERITY_COLORS = {
    Severity.CRITICAL: "red",
    Severity.HIGH: "bright_red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "blue",
    Severity.INFO: "dim",
}

RISK_COLORS = {
    RiskLevel.CRITICAL: "bold red",
    RiskLevel.HIGH: "red",
    RiskLevel.MEDIUM: "yellow",
    RiskLevel.LOW: "blue",
    RiskLevel.SAFE: "green",
}

SEVERITY_CHOICE = click.Choice([s.value for s in Severity])

# Findings below this severity are left out of the findings table
TABLE_MIN_SEVERITY = Severity.LOW


def load_config() -> ExtGuardConfig:
    try:
        return ExtGuardConfig.load()
    except ValueError as e:
        raise click.ClickException(str(e)) from e


def resolve_policy(
    ctx: click.Context, required: bool = False
) -> tuple[PolicyConfig | None, Path | None]:
    """Load the ``--policy`` file, or a default policy file from the cwd."""
    explicit = ctx.obj.get("policy_path")
    path = Path(explicit) if explicit else find_policy_file()
    try:
        config = load_policy_config(path) if path else None
    except PolicyConfigError as e:
        raise click.ClickException(str(e)) from e
    if config is None and required:
        raise click.ClickException(
            "No policy configured; pass --policy or create .extguard.yaml"
        )
    return config, path


def build_options(
    config: ExtGuardConfig, policy: PolicyConfig | None, **overrides: Any
) -> ScanOptions:
    """Config defaults, then the policy's scanning section, then CLI flags."""
    options = ScanOptions(concurrency=config.concurrency, timeout=config.timeout)
    if policy is not None:
        options = ScanOptions.from_policy(policy, options)
    given = {k: v for k, v in overrides.items() if v not in (None, (), False)}
    # --skip-rule adds to the policy's skipRules rather than replacing them
    if "skip_rules" in given:
        given["skip_rules"] = tuple(
            dict.fromkeys((*options.skip_rules, *given["skip_rules"]))
        )
    return dataclasses.replace(options, **given)


def render_report(report: FullScanReport) -> None:
    table = Table(title="Extensions", show_lines=False)
    table.add_column("Extension", style="cyan")
    table.add_column("Version")
    table.add_column("Category")
    table.add_column("Score", justify="right")
    table.add_column("Risk", style="bold")
    table.add_column("Findings", justify="right")

    for result in sorted(report.results, key=lambda r: (r.trust_score, r.extension_id)):
        color = RISK_COLORS[result.risk_level]
        risk = f"[{color}]{result.risk_level.value}[/{color}]"
        if result.error:
            risk += " [dim](degraded)[/dim]"
        table.add_row(
            result.extension_id,
            result.version,
            result.category.value,
            str(result.trust_score),
            risk,
            str(len(result.findings)),
        )
    console.print(table)

    findings = [
        (result.extension_id, f)
        for result in report.results
        for f in result.findings
        if f.severity.is_at_least(TABLE_MIN_SEVERITY)
    ]
    if findings:
        findings.sort(key=lambda pair: (pair[1].severity.rank, pair[0]))
        ftable = Table(title="Findings", show_lines=False)
        ftable.add_column("Severity", style="bold", width=10)
        ftable.add_column("Extension", style="cyan")
        ftable.add_column("Rule")
        ftable.add_column("Location")
        ftable.add_column("Pattern", max_width=40)
        for ext_id, f in findings:
            color = SEVERITY_COLORS[f.severity]
            location = f.evidence.file_path
            if f.evidence.line:
                location += f":{f.evidence.line}"
            ftable.add_row(
                f"[{color}]{f.severity.value}[/{color}]",
                ext_id,
                f.rule_id,
                location,
                f.evidence.matched_pattern,
            )
        console.print(ftable)

    summary = report.summary
    console.print(
        f"\nScanned {report.unique_extensions} extension(s) "
        f"({report.total_extensions} installed, "
        f"{len(report.skipped_extensions)} skipped) in {report.duration:.2f}s"
    )
    console.print(f"Health score: {summary.overall_health_score}/100")
    if report.timed_out:
        console.print("[yellow]Scan timed out; results are partial.[/yellow]")


def critical_count(report: FullScanReport) -> int:
    return sum(1 for r in report.results if r.risk_level is RiskLevel.CRITICAL)
