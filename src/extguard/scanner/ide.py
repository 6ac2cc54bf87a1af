"""Editor detection — finds extension directories of installed editors."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from extguard.scanner.models import DetectedIDE

logger = logging.getLogger(__name__)

IDE_PATHS: dict[str, tuple[str, ...]] = {
    "VS Code": ("~/.vscode/extensions",),
    "VS Code Insiders": ("~/.vscode-insiders/extensions",),
    "VS Code Server": ("~/.vscode-server/extensions",),
    "Cursor": ("~/.cursor/extensions",),
    "Windsurf": ("~/.windsurf/extensions",),
    "Trae": ("~/.trae/extensions",),
    "VSCodium": ("~/.vscode-oss/extensions",),
}


def expand_path(path: str) -> Path:
    """Expand ``~``, ``%USERPROFILE%`` and environment variables."""
    if "%USERPROFILE%" in path:
        path = path.replace("%USERPROFILE%", str(Path.home()))
    return Path(os.path.expandvars(os.path.expanduser(path)))


def count_extensions(path: Path) -> int:
    try:
        return sum(1 for p in path.iterdir() if p.is_dir())
    except OSError:
        return 0


def detect_ide_paths() -> list[DetectedIDE]:
    """Return one entry per editor whose extension directory exists."""
    detected = []
    for name, candidates in IDE_PATHS.items():
        for candidate in candidates:
            path = expand_path(candidate)
            if path.is_dir():
                logger.debug("Detected %s at %s", name, path)
                detected.append(
                    DetectedIDE(
                        name=name,
                        path=str(path),
                        extension_count=count_extensions(path),
                    )
                )
                break
    return detected
