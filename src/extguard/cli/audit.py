"""CLI command: extguard audit — enforce an organisation policy."""

from __future__ import annotations

import dataclasses
import json
import sys

import click
from rich.table import Table

from extguard.cli.common import (
    build_options,
    console,
    load_config,
    render_report,
    resolve_policy,
)
from extguard.policy.engine import PolicyEngine, build_audit_report
from extguard.policy.models import PolicyAction
from extguard.scanner.engine import ScanEngine
from extguard.scanner.report import report_to_dict

_ACTION_COLORS = {
    PolicyAction.BLOCK: "red",
    PolicyAction.WARN: "yellow",
    PolicyAction.INFO: "blue",
}


@click.command()
@click.option(
    "--path",
    "paths",
    multiple=True,
    help="Extension directory to audit (repeatable). Auto-detected if omitted.",
)
@click.option("--json", "as_json", is_flag=True, help="Print the audit as JSON.")
@click.pass_context
def audit(ctx: click.Context, paths: tuple[str, ...], as_json: bool) -> None:
    """Scan extensions and check them against the configured policy."""
    config = load_config()
    policy, policy_path = resolve_policy(ctx, required=True)
    options = build_options(config, policy, ide_paths=paths)

    report = ScanEngine(options).scan()
    engine = PolicyEngine(policy)
    violations = engine.evaluate(report.results)
    result = build_audit_report(report, str(policy_path), violations)

    if as_json:
        click.echo(
            json.dumps(
                {
                    "policy": result.policy_path,
                    "passed": result.passed,
                    "violations": [
                        {**dataclasses.asdict(v), "action": v.action.value}
                        for v in result.violations
                    ],
                    "report": report_to_dict(report),
                },
                indent=2,
            )
        )
    else:
        render_report(report)
        _render_violations(result.violations)

    if engine.has_blocking_violations():
        console.print("\n[red]Policy check failed[/red]")
        sys.exit(1)
    if not as_json:
        console.print("\n[green]Policy check passed[/green]")


def _render_violations(violations) -> None:
    if not violations:
        console.print("[green]No policy violations.[/green]")
        return

    table = Table(title="Policy violations", show_lines=False)
    table.add_column("Action", style="bold", width=8)
    table.add_column("Extension", style="cyan")
    table.add_column("Rule")
    table.add_column("Message")
    for v in violations:
        color = _ACTION_COLORS[v.action]
        table.add_row(
            f"[{color}]{v.action.value}[/{color}]", v.extension_id, v.rule, v.message
        )
    console.print(table)
