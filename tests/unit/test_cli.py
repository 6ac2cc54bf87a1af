"""Tests for CLI commands using Click's CliRunner."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from extguard.cli import main
from extguard.cli.common import build_options
from extguard.config import ExtGuardConfig
from extguard.integrity import database
from extguard.integrity.verifier import create_hash_record, hash_key
from extguard.policy.loader import load_policy_config

BENIGN_SOURCE = "module.exports = { activate() {} };\n"


@pytest.fixture(autouse=True)
def isolated(monkeypatch, tmp_path):
    """Keep the CLI away from the real home directory and cwd policy files."""
    for name in ("EXTGUARD_CONCURRENCY", "EXTGUARD_TIMEOUT", "EXTGUARD_HASH_DB"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg-data"))
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def fixture_extensions(fixtures_dir) -> str:
    return str(fixtures_dir / "extensions")


def test_main_help():
    runner = CliRunner()
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "ExtGuard" in result.output
    assert "scan" in result.output
    assert "audit" in result.output
    assert "baseline" in result.output


def test_main_version():
    runner = CliRunner()
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_scan_help():
    runner = CliRunner()
    result = runner.invoke(main, ["scan", "--help"])
    assert result.exit_code == 0
    assert "--integrity" in result.output
    assert "--strict" in result.output


def test_scan_malicious_fixture_fails(fixture_extensions):
    runner = CliRunner()
    result = runner.invoke(main, ["scan", "--path", fixture_extensions])
    assert result.exit_code == 1
    assert "critical risk" in result.output


def test_scan_json(make_extension):
    path = make_extension(files={"src/extension.js": BENIGN_SOURCE})
    runner = CliRunner()
    result = runner.invoke(main, ["scan", "--path", str(path.parent), "--json"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    [entry] = data["results"]
    assert entry["extension_id"] == "acme.sample"
    assert entry["risk_level"] == "safe"
    assert data["ides"][0]["name"] == "Custom"


def test_scan_rejects_bad_severity(make_extension):
    path = make_extension()
    runner = CliRunner()
    result = runner.invoke(main, ["scan", "--path", str(path.parent), "--severity", "huge"])
    assert result.exit_code == 2


def test_scan_invalid_policy(tmp_path, make_extension):
    path = make_extension()
    policy = tmp_path / "bad.yaml"
    policy.write_text("version: 1\n")
    runner = CliRunner()
    result = runner.invoke(main, ["--policy", str(policy), "scan", "--path", str(path.parent)])
    assert result.exit_code == 1
    assert "version" in result.output


def test_audit_requires_policy(make_extension):
    path = make_extension()
    runner = CliRunner()
    result = runner.invoke(main, ["audit", "--path", str(path.parent)])
    assert result.exit_code == 1
    assert "No policy configured" in result.output


def test_audit_blocklisted_fixture(policy_path, fixture_extensions):
    runner = CliRunner()
    result = runner.invoke(
        main, ["--policy", str(policy_path), "audit", "--path", fixture_extensions]
    )
    assert result.exit_code == 1
    assert "Policy check failed" in result.output


def test_audit_json_passes(fixtures_dir, make_extension):
    path = make_extension(files={"src/extension.js": BENIGN_SOURCE})
    runner = CliRunner()
    result = runner.invoke(
        main,
        [
            "--policy",
            str(fixtures_dir / "policy.json"),
            "audit",
            "--path",
            str(path.parent),
            "--json",
        ],
    )
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["passed"] is True
    assert data["violations"] == []
    assert data["report"]["results"][0]["extension_id"] == "acme.sample"


def test_baseline_then_integrity_scan(tmp_path, make_extension):
    path = make_extension(files={"src/extension.js": BENIGN_SOURCE})
    db = tmp_path / "hashes.json"
    runner = CliRunner()

    result = runner.invoke(
        main, ["baseline", "--path", str(path.parent), "--hash-db", str(db)]
    )
    assert result.exit_code == 0, result.output
    records = json.loads(db.read_text())["hashes"]
    assert [r["extensionId"] for r in records] == ["acme.sample"]

    result = runner.invoke(
        main, ["scan", "--path", str(path.parent), "--hash-db", str(db), "--json"]
    )
    assert result.exit_code == 0, result.output
    [entry] = json.loads(result.output)["results"]
    assert entry["integrity"]["status"] == "verified"

    (path / "src" / "extension.js").write_text("eval(atob(payload));")
    result = runner.invoke(
        main, ["scan", "--path", str(path.parent), "--hash-db", str(db), "--json"]
    )
    assert result.exit_code == 1
    assert '"rule_id": "EG-CRIT-100"' in result.output


def test_build_options_merges_skip_rules(policy_path):
    policy = load_policy_config(policy_path)
    options = build_options(
        ExtGuardConfig(), policy, skip_rules=("EG-HIGH-006", "EG-MED-001")
    )
    assert options.skip_rules == ("EG-MED-001", "EG-HIGH-006")
    assert options.concurrency == 2


def test_scan_skip_rule_adds_to_policy(policy_path, make_extension, exfil_source):
    path = make_extension(
        activationEvents=["*"], files={"src/extension.js": exfil_source}
    )
    runner = CliRunner()
    result = runner.invoke(
        main,
        [
            "--policy",
            str(policy_path),
            "scan",
            "--path",
            str(path.parent),
            "--skip-rule",
            "EG-CRIT-001",
            "--json",
        ],
    )
    assert result.exit_code == 0, result.output
    [entry] = json.loads(result.output)["results"]
    rule_ids = {f["rule_id"] for f in entry["findings"]}
    assert "EG-CRIT-001" not in rule_ids
    assert "EG-MED-001" not in rule_ids


def test_baseline_writes_only_local_records(tmp_path, monkeypatch, make_extension):
    bundled = create_hash_record("vendor.tool", "2.0.0", {"a.js": "x"})
    monkeypatch.setattr(
        database, "bundled_hashes", lambda: {hash_key("vendor.tool", "2.0.0"): bundled}
    )
    path = make_extension(files={"src/extension.js": BENIGN_SOURCE})
    db = tmp_path / "hashes.json"
    runner = CliRunner()
    result = runner.invoke(
        main, ["baseline", "--path", str(path.parent), "--hash-db", str(db)]
    )
    assert result.exit_code == 0, result.output
    records = json.loads(db.read_text())["hashes"]
    assert [r["extensionId"] for r in records] == ["acme.sample"]
