"""File collector — reads an extension's source files into memory."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

logger = logging.getLogger(__name__)

COLLECTED_EXTENSIONS = frozenset({".js", ".ts", ".jsx", ".tsx", ".mjs", ".cjs", ".json"})

# Directories to always skip
IGNORED_DIRECTORIES = frozenset({"node_modules", ".git", ".svn", ".hg", "__pycache__"})

IGNORED_PATTERNS = (
    re.compile(r"\.min\.js$"),
    re.compile(r"\.map$"),
    re.compile(r"\.d\.ts$"),
)

# Max file size to collect (1 MB)
MAX_FILE_SIZE = 1_048_576


def should_collect(relative_path: str) -> bool:
    """Whether a ``/``-separated path relative to the extension root is kept."""
    parts = relative_path.split("/")
    if any(part in IGNORED_DIRECTORIES for part in parts[:-1]):
        return False
    if Path(parts[-1]).suffix.lower() not in COLLECTED_EXTENSIONS:
        return False
    return not any(p.search(relative_path) for p in IGNORED_PATTERNS)


def collect_files(extension_path: str | Path) -> dict[str, str]:
    """Map relative path (``/``-separated) to text for every collectable file.

    Files over ``MAX_FILE_SIZE`` and anything unreadable are skipped. Never
    raises; an unreadable root yields an empty mapping.
    """
    root = Path(extension_path)
    files: dict[str, str] = {}

    def _on_error(e: OSError) -> None:
        logger.debug("Cannot list %s: %s", e.filename, e)

    for dirpath, dirs, names in os.walk(root, onerror=_on_error):
        # Prune ignored directories in-place
        dirs[:] = sorted(d for d in dirs if d not in IGNORED_DIRECTORIES)

        for name in sorted(names):
            path = Path(dirpath) / name
            relative = path.relative_to(root).as_posix()
            if not should_collect(relative):
                continue
            try:
                if not path.is_file() or path.stat().st_size > MAX_FILE_SIZE:
                    continue
                files[relative] = path.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                logger.debug("Skipping %s: %s", path, e)

    return files
