"""Extension reader — turns installed extension directories into metadata."""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path

from extguard.rosters import Roster, default_roster
from extguard.scanner.models import ExtensionInfo, ExtensionManifest

logger = logging.getLogger(__name__)

MANIFEST_FILE = "package.json"

UNKNOWN_PUBLISHER = "unknown"
UNKNOWN_VERSION = "0.0.0"

# Install directories are named publisher.name-version
_DIR_NAME = re.compile(
    r"^(?P<publisher>[^.]+)\.(?P<name>.+?)(?:-(?P<version>\d+\.\d+\.\d+[^/]*))?$"
)


def fallback_manifest(dir_name: str) -> ExtensionManifest:
    """Best-effort manifest derived from an install directory name."""
    match = _DIR_NAME.match(dir_name)
    if not match:
        return ExtensionManifest(
            name=dir_name or "unknown",
            publisher=UNKNOWN_PUBLISHER,
            version=UNKNOWN_VERSION,
        )
    return ExtensionManifest(
        name=match["name"],
        publisher=match["publisher"],
        version=match["version"] or UNKNOWN_VERSION,
    )


def parse_manifest(text: str | None, fallback_dir_name: str) -> ExtensionManifest:
    """Parse ``package.json`` text, degrading to directory-derived defaults.

    Missing identity fields (name, publisher, version) are filled in from
    ``fallback_dir_name``; text that is not a JSON object yields the fallback
    manifest entirely.
    """
    fallback = fallback_manifest(fallback_dir_name)
    if text is None:
        return fallback
    try:
        data = json.loads(text)
    except ValueError as e:
        logger.warning("Unparsable manifest in %s: %s", fallback_dir_name, e)
        return fallback
    if not isinstance(data, dict):
        logger.warning("Manifest in %s is not a JSON object", fallback_dir_name)
        return fallback

    manifest = ExtensionManifest.from_dict(data)
    if manifest.name and manifest.publisher and manifest.version:
        return manifest

    logger.warning("Manifest in %s lacks name/publisher/version", fallback_dir_name)
    return ExtensionManifest.from_dict(
        {
            **data,
            "name": manifest.name or fallback.name,
            "publisher": manifest.publisher or fallback.publisher,
            "version": manifest.version or fallback.version,
        }
    )


def _directory_stats(path: Path) -> tuple[int, int]:
    count = 0
    size = 0
    for dirpath, dirs, names in os.walk(path):
        dirs[:] = [d for d in dirs if d != "node_modules"]
        for name in names:
            count += 1
            try:
                size += (Path(dirpath) / name).stat().st_size
            except OSError:
                continue
    return count, size


def _installed_at(manifest: ExtensionManifest) -> float | None:
    stamp = manifest.metadata.get("installedTimestamp")
    if isinstance(stamp, (int, float)) and not isinstance(stamp, bool):
        return stamp / 1000.0
    return None


def extension_info(
    manifest: ExtensionManifest,
    install_path: Path | str,
    roster: Roster | None = None,
    *,
    file_count: int = 0,
    total_size: int = 0,
) -> ExtensionInfo:
    roster = roster if roster is not None else default_roster()
    return ExtensionInfo(
        id=manifest.extension_id,
        display_name=manifest.display_name or manifest.name,
        version=manifest.version,
        publisher=manifest.publisher,
        install_path=str(install_path),
        publisher_verified=roster.is_verified_publisher(manifest.publisher),
        description=manifest.description,
        categories=manifest.categories,
        activation_events=manifest.activation_events,
        extension_dependencies=manifest.extension_dependencies,
        engines_vscode=manifest.engines_vscode,
        repository=manifest.repository,
        license=manifest.license,
        file_count=file_count,
        total_size=total_size,
        last_updated=_installed_at(manifest),
    )


def read_extension(
    path: Path | str, roster: Roster | None = None
) -> ExtensionInfo | None:
    """Read one installed extension; ``None`` if ``path`` has no manifest."""
    path = Path(path)
    manifest_path = path / MANIFEST_FILE
    if not manifest_path.is_file():
        return None
    try:
        text = manifest_path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.warning("Cannot read %s: %s", manifest_path, e)
        text = None

    manifest = parse_manifest(text, path.name)
    count, size = _directory_stats(path)
    return extension_info(
        manifest, path, roster, file_count=count, total_size=size
    )


def read_extensions_from_directory(
    directory: Path | str, roster: Roster | None = None
) -> list[ExtensionInfo]:
    """Read every extension directly under ``directory``, sorted by name."""
    directory = Path(directory)
    try:
        children = sorted(p for p in directory.iterdir() if p.is_dir())
    except OSError as e:
        logger.debug("Cannot list %s: %s", directory, e)
        return []

    extensions = []
    for child in children:
        info = read_extension(child, roster)
        if info is not None:
            extensions.append(info)
    return extensions
