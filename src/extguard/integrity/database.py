"""Known-good hash database.

On disk the database is JSON::

    {"version": "1.0", "updatedAt": "...", "hashes": [{"extensionId": ...}]}

A packaged baseline ships with extguard; records from the user's file take
precedence over it.
"""

from __future__ import annotations

import importlib.resources
import json
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from extguard.integrity.verifier import ExtensionHash, HashSource, hash_key

logger = logging.getLogger(__name__)

DATABASE_VERSION = "1.0"

_FIELDS = {
    "extensionId": "extension_id",
    "version": "version",
    "manifestHash": "manifest_hash",
    "contentHash": "content_hash",
    "structureHash": "structure_hash",
    "combinedHash": "combined_hash",
    "recordedAt": "recorded_at",
}


class HashDatabaseError(ValueError):
    """A hash database file exists but cannot be read."""

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        self.path = str(path) if path else None
        prefix = f"{self.path}: " if self.path else ""
        super().__init__(f"{prefix}{message}")


def record_from_dict(data: dict[str, Any]) -> ExtensionHash:
    missing = [key for key in _FIELDS if key != "recordedAt" and key not in data]
    if missing:
        raise ValueError(f"hash record is missing {', '.join(missing)}")
    kwargs = {attr: str(data.get(key, "")) for key, attr in _FIELDS.items()}
    return ExtensionHash(
        **kwargs, source=HashSource(data.get("source", HashSource.MANUAL.value))
    )


def record_to_dict(record: ExtensionHash) -> dict[str, Any]:
    data: dict[str, Any] = {key: getattr(record, attr) for key, attr in _FIELDS.items()}
    data["source"] = record.source.value
    return data


def _parse(text: str, path: Path | str | None) -> dict[str, ExtensionHash]:
    try:
        doc = json.loads(text)
        records = doc.get("hashes", []) if isinstance(doc, dict) else None
        if not isinstance(records, list):
            raise ValueError("'hashes' must be a list")
        parsed = [record_from_dict(r) for r in records]
    except (ValueError, TypeError, AttributeError) as e:
        raise HashDatabaseError(str(e), path) from e
    return {hash_key(r.extension_id, r.version): r for r in parsed}


def bundled_hashes() -> dict[str, ExtensionHash]:
    text = (
        importlib.resources.files("extguard.integrity")
        .joinpath("baseline.json")
        .read_text(encoding="utf-8")
    )
    return _parse(text, "baseline.json")


def load_hash_database(path: Path | str | None = None) -> dict[str, ExtensionHash]:
    """Load the packaged baseline merged with the records at ``path``.

    A missing file is an empty database; an unreadable or malformed one
    raises ``HashDatabaseError``.
    """
    hashes = bundled_hashes()
    if path is not None:
        hashes.update(load_user_hashes(path))
    return hashes


def load_user_hashes(path: Path | str) -> dict[str, ExtensionHash]:
    """Only the records stored at ``path``, without the packaged baseline."""
    db_path = Path(path)
    if not db_path.exists():
        logger.debug("No hash database at %s", db_path)
        return {}

    try:
        text = db_path.read_text(encoding="utf-8")
    except OSError as e:
        raise HashDatabaseError(str(e), db_path) from e

    user = _parse(text, db_path)
    logger.debug("Loaded %d hash records from %s", len(user), db_path)
    return user


def save_hash_database(
    hashes: Mapping[str, ExtensionHash], path: Path | str
) -> None:
    db_path = Path(path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    doc = {
        "version": DATABASE_VERSION,
        "updatedAt": datetime.now(timezone.utc).isoformat(),
        "hashes": [record_to_dict(r) for r in hashes.values()],
    }
    db_path.write_text(json.dumps(doc, indent=2) + "\n", encoding="utf-8")


def add_hash(record: ExtensionHash, path: Path | str) -> None:
    """Insert or replace one record in the database at ``path``."""
    hashes = load_user_hashes(path)
    hashes[hash_key(record.extension_id, record.version)] = record
    save_hash_database(hashes, path)
