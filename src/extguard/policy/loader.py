"""Load and validate PolicyConfig objects from YAML (or JSON) files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from extguard.policy.models import (
    BlockObfuscatedRule,
    MaxDaysSinceUpdateRule,
    MinTrustScoreRule,
    PolicyAction,
    PolicyConfig,
    PolicyRules,
    PolicySection,
    RequireVerifiedPublisherRule,
    ScanningConfig,
)
from extguard.scanner.models import Severity

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAMES = (".extguard.yaml", ".extguard.yml", ".extguard.json")

_ACTIONS = ", ".join(a.value for a in PolicyAction)
_SEVERITIES = ", ".join(s.value for s in Severity)


class PolicyConfigError(ValueError):
    """A policy file exists but is invalid.

    ``field`` is the dotted path of the offending entry, e.g.
    ``policy.rules.minTrustScore.threshold``.
    """

    def __init__(
        self, message: str, field: str = "", path: Path | str | None = None
    ) -> None:
        self.field = field
        self.path = str(path) if path else None
        self.message = message
        prefix = f"{self.path}: " if self.path else ""
        super().__init__(f"{prefix}{message}")


def find_policy_file(directory: Path | str | None = None) -> Path | None:
    """Return the first default policy file in ``directory`` (cwd if None)."""
    base = Path(directory) if directory is not None else Path.cwd()
    for name in DEFAULT_CONFIG_NAMES:
        candidate = base / name
        if candidate.is_file():
            return candidate
    return None


def load_policy_config(path: Path | str | None = None) -> PolicyConfig | None:
    """Load a policy file; ``None`` when it does not exist.

    Without ``path`` the default file names are searched in the working
    directory. Invalid content raises ``PolicyConfigError``.
    """
    resolved = Path(path) if path is not None else find_policy_file()
    if resolved is None or not resolved.exists():
        logger.debug("No policy file at %s", resolved or Path.cwd())
        return None

    try:
        text = resolved.read_text(encoding="utf-8")
    except OSError as e:
        raise PolicyConfigError(f"cannot read policy file: {e}", path=resolved) from e

    try:
        return load_policy_config_from_string(text)
    except PolicyConfigError as e:
        raise PolicyConfigError(e.message, field=e.field, path=resolved) from e


def load_policy_config_from_string(text: str) -> PolicyConfig:
    """Parse YAML (or JSON) text into a validated PolicyConfig."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise PolicyConfigError(f"invalid YAML: {e}") from e
    return _build_config(data)


def _build_config(data: Any) -> PolicyConfig:
    if not isinstance(data, dict):
        raise PolicyConfigError("Policy config must be an object")

    version = data.get("version")
    if not isinstance(version, str):
        raise PolicyConfigError(
            'Policy config must have a "version" field of type string',
            field="version",
        )

    return PolicyConfig(
        version=version,
        scanning=_parse_scanning(data.get("scanning")),
        policy=_parse_policy(data.get("policy")),
    )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _string_list(value: Any, field: str, message: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise PolicyConfigError(message, field=field)
    return tuple(value)


def _section(value: Any, field: str) -> dict | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise PolicyConfigError(f"{field} must be an object", field=field)
    return value


def _action(rule: dict, name: str, field: str) -> PolicyAction:
    try:
        return PolicyAction(rule.get("action"))
    except ValueError:
        raise PolicyConfigError(
            f"{name}.action must be one of: {_ACTIONS}", field=f"{field}.action"
        ) from None


def _parse_scanning(value: Any) -> ScanningConfig:
    data = _section(value, "scanning")
    if data is None:
        return ScanningConfig()

    min_severity = None
    if data.get("minSeverity") is not None:
        try:
            min_severity = Severity(data["minSeverity"])
        except ValueError:
            raise PolicyConfigError(
                f"scanning.minSeverity must be one of: {_SEVERITIES}",
                field="scanning.minSeverity",
            ) from None

    skip_rules = _string_list(
        data.get("skipRules"),
        "scanning.skipRules",
        "scanning.skipRules must be an array of strings",
    )

    timeout = data.get("timeout")
    if timeout is not None and (not _is_number(timeout) or timeout <= 0):
        raise PolicyConfigError(
            "scanning.timeout must be a positive number", field="scanning.timeout"
        )

    concurrency = data.get("concurrency")
    if concurrency is not None and (
        not isinstance(concurrency, int)
        or isinstance(concurrency, bool)
        or concurrency <= 0
    ):
        raise PolicyConfigError(
            "scanning.concurrency must be a positive integer",
            field="scanning.concurrency",
        )

    return ScanningConfig(
        min_severity=min_severity,
        skip_rules=skip_rules,
        timeout=float(timeout) if timeout is not None else None,
        concurrency=concurrency,
    )


def _parse_policy(value: Any) -> PolicySection:
    data = _section(value, "policy")
    if data is None:
        return PolicySection()

    return PolicySection(
        allowlist=_string_list(
            data.get("allowlist"),
            "policy.allowlist",
            "policy.allowlist must be an array of extension ID strings",
        ),
        blocklist=_string_list(
            data.get("blocklist"),
            "policy.blocklist",
            "policy.blocklist must be an array of extension ID strings",
        ),
        rules=_parse_rules(data.get("rules")),
    )


def _parse_rules(value: Any) -> PolicyRules:
    data = _section(value, "policy.rules")
    if data is None:
        return PolicyRules()

    return PolicyRules(
        min_trust_score=_parse_min_trust_score(data.get("minTrustScore")),
        require_verified_publisher=_parse_require_verified(
            data.get("requireVerifiedPublisher")
        ),
        max_days_since_update=_parse_max_days(data.get("maxDaysSinceUpdate")),
        block_obfuscated=_parse_block_obfuscated(data.get("blockObfuscated")),
    )


def _parse_min_trust_score(value: Any) -> MinTrustScoreRule | None:
    field = "policy.rules.minTrustScore"
    rule = _section(value, field)
    if rule is None:
        return None
    threshold = rule.get("threshold")
    if not _is_number(threshold) or not 0 <= threshold <= 100:
        raise PolicyConfigError(
            "minTrustScore.threshold must be a number between 0 and 100",
            field=f"{field}.threshold",
        )
    return MinTrustScoreRule(
        threshold=threshold, action=_action(rule, "minTrustScore", field)
    )


def _parse_require_verified(value: Any) -> RequireVerifiedPublisherRule | None:
    field = "policy.rules.requireVerifiedPublisher"
    rule = _section(value, field)
    if rule is None:
        return None
    if not isinstance(rule.get("enabled"), bool):
        raise PolicyConfigError(
            "requireVerifiedPublisher.enabled must be a boolean",
            field=f"{field}.enabled",
        )
    action = _action(rule, "requireVerifiedPublisher", field)
    exceptions = _string_list(
        rule.get("exceptions"),
        f"{field}.exceptions",
        "requireVerifiedPublisher.exceptions must be an array of strings",
    )
    return RequireVerifiedPublisherRule(
        enabled=rule["enabled"], action=action, exceptions=exceptions
    )


def _parse_max_days(value: Any) -> MaxDaysSinceUpdateRule | None:
    field = "policy.rules.maxDaysSinceUpdate"
    rule = _section(value, field)
    if rule is None:
        return None
    days = rule.get("days")
    if not _is_number(days) or days <= 0:
        raise PolicyConfigError(
            "maxDaysSinceUpdate.days must be a positive number",
            field=f"{field}.days",
        )
    return MaxDaysSinceUpdateRule(
        days=days, action=_action(rule, "maxDaysSinceUpdate", field)
    )


def _parse_block_obfuscated(value: Any) -> BlockObfuscatedRule | None:
    field = "policy.rules.blockObfuscated"
    rule = _section(value, field)
    if rule is None:
        return None
    if not isinstance(rule.get("enabled"), bool):
        raise PolicyConfigError(
            "blockObfuscated.enabled must be a boolean", field=f"{field}.enabled"
        )
    return BlockObfuscatedRule(
        enabled=rule["enabled"], action=_action(rule, "blockObfuscated", field)
    )
