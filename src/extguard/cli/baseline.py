"""CLI command: extguard baseline — record known-good extension hashes."""

from __future__ import annotations

import click

from extguard.cli.common import console, load_config
from extguard.integrity.database import (
    HashDatabaseError,
    load_user_hashes,
    save_hash_database,
)
from extguard.integrity.verifier import create_hash_record, hash_key
from extguard.scanner.collector import collect_files
from extguard.scanner.ide import detect_ide_paths, expand_path
from extguard.scanner.reader import read_extensions_from_directory


@click.command()
@click.option(
    "--path",
    "paths",
    multiple=True,
    help="Extension directory (repeatable). Auto-detected if omitted.",
)
@click.option("--hash-db", type=click.Path(dir_okay=False), help="Output database.")
def baseline(paths: tuple[str, ...], hash_db: str | None) -> None:
    """Record hashes of the currently installed extensions as known-good."""
    config = load_config()
    db_path = hash_db or config.hash_database

    directories = (
        [expand_path(p) for p in paths]
        if paths
        else [ide.path for ide in detect_ide_paths()]
    )
    if not directories:
        raise click.ClickException("No extension directories found; pass --path")

    try:
        hashes = load_user_hashes(db_path)
    except HashDatabaseError as e:
        raise click.ClickException(str(e)) from e

    recorded = 0
    seen: set[str] = set()
    for directory in directories:
        for info in read_extensions_from_directory(directory):
            if info.id in seen:
                continue
            seen.add(info.id)
            record = create_hash_record(
                info.id, info.version, collect_files(info.install_path)
            )
            hashes[hash_key(record.extension_id, record.version)] = record
            recorded += 1

    save_hash_database(hashes, db_path)
    console.print(
        f"Recorded [bold]{recorded}[/bold] extension(s) into [cyan]{db_path}[/cyan]"
    )
