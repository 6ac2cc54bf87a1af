"""CLI command: extguard scan — analyze installed extensions."""

from __future__ import annotations

import json
import sys

import click

from extguard.cli.common import (
    SEVERITY_CHOICE,
    build_options,
    console,
    critical_count,
    load_config,
    render_report,
    resolve_policy,
)
from extguard.integrity.database import HashDatabaseError, load_hash_database
from extguard.scanner.engine import ScanEngine
from extguard.scanner.models import Severity
from extguard.scanner.report import report_to_dict


@click.command()
@click.option(
    "--path",
    "paths",
    multiple=True,
    help="Extension directory to scan (repeatable). Auto-detected if omitted.",
)
@click.option("--severity", type=SEVERITY_CHOICE, help="Minimum rule severity.")
@click.option("--rule", "rules", multiple=True, help="Only run these rule ids.")
@click.option("--skip-rule", "skip_rules", multiple=True, help="Rule ids to skip.")
@click.option("--concurrency", type=click.IntRange(min=1), help="Worker threads.")
@click.option(
    "--timeout", type=click.FloatRange(min=0, min_open=True), help="Seconds."
)
@click.option("--strict", is_flag=True, help="Ignore publisher reputation.")
@click.option("--integrity", is_flag=True, help="Verify known-good hashes.")
@click.option(
    "--hash-db",
    type=click.Path(dir_okay=False),
    help="Hash database file (implies --integrity).",
)
@click.option("--include-self", is_flag=True, help="Also scan ExtGuard itself.")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON.")
@click.pass_context
def scan(
    ctx: click.Context,
    paths: tuple[str, ...],
    severity: str | None,
    rules: tuple[str, ...],
    skip_rules: tuple[str, ...],
    concurrency: int | None,
    timeout: float | None,
    strict: bool,
    integrity: bool,
    hash_db: str | None,
    include_self: bool,
    as_json: bool,
) -> None:
    """Scan installed extensions for malicious behavior."""
    config = load_config()
    policy, _ = resolve_policy(ctx)
    integrity = integrity or hash_db is not None

    options = build_options(
        config,
        policy,
        ide_paths=paths,
        min_severity=Severity(severity) if severity else None,
        rules=rules,
        skip_rules=skip_rules,
        concurrency=concurrency,
        timeout=timeout,
        strict=strict,
        integrity=integrity,
        include_self=include_self,
    )

    hashes = None
    if integrity:
        try:
            hashes = load_hash_database(hash_db or config.hash_database)
        except HashDatabaseError as e:
            raise click.ClickException(str(e)) from e

    if not as_json:
        where = ", ".join(paths) if paths else "auto-detected editors"
        console.print(f"[bold]ExtGuard[/bold] scanning [cyan]{where}[/cyan]\n")

    report = ScanEngine(options, hash_database=hashes).scan()

    if as_json:
        click.echo(json.dumps(report_to_dict(report), indent=2))
    else:
        render_report(report)

    critical = critical_count(report)
    if critical > 0:
        console.print(f"\n[red]{critical} extension(s) at critical risk[/red]")
        sys.exit(1)
