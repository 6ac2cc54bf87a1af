"""Organisation policies: loading, validation and evaluation."""

from extguard.policy.engine import PolicyEngine, build_audit_report
from extguard.policy.loader import (
    PolicyConfigError,
    find_policy_file,
    load_policy_config,
    load_policy_config_from_string,
)
from extguard.policy.models import (
    AuditReport,
    PolicyAction,
    PolicyConfig,
    PolicyViolation,
)

__all__ = [
    "AuditReport",
    "PolicyAction",
    "PolicyConfig",
    "PolicyConfigError",
    "PolicyEngine",
    "PolicyViolation",
    "build_audit_report",
    "find_policy_file",
    "load_policy_config",
    "load_policy_config_from_string",
]
