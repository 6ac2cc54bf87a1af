"""CLI entry point — Click group with global options."""

from __future__ import annotations

import logging

import click

from extguard import __version__


@click.group()
@click.version_option(version=__version__, prog_name="extguard")
@click.option(
    "--policy",
    "-p",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a YAML or JSON policy file.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.pass_context
def main(ctx: click.Context, policy: str | None, verbose: bool) -> None:
    """ExtGuard — security scanner for installed editor extensions."""
    ctx.ensure_object(dict)
    ctx.obj["policy_path"] = policy

    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _register_commands() -> None:
    from extguard.cli.audit import audit  # noqa: F811
    from extguard.cli.baseline import baseline  # noqa: F811
    from extguard.cli.scan import scan  # noqa: F811

    main.add_command(scan)
    main.add_command(audit)
    main.add_command(baseline)


_register_commands()
