"""Built-in detection rules."""

from __future__ import annotations

from extguard.rules.base import DetectionRule
from extguard.rules.builtin.activation import ExcessiveActivationRule
from extguard.rules.builtin.credential_access import CredentialAccessRule
from extguard.rules.builtin.exfiltration import DataExfiltrationRule
from extguard.rules.builtin.obfuscation import ObfuscationRule
from extguard.rules.builtin.remote_execution import RemoteExecutionRule
from extguard.rules.builtin.secrets import HardcodedSecretRule
from extguard.rules.builtin.suspicious_network import SuspiciousNetworkRule

__all__ = [
    "CredentialAccessRule",
    "DataExfiltrationRule",
    "ExcessiveActivationRule",
    "HardcodedSecretRule",
    "ObfuscationRule",
    "RemoteExecutionRule",
    "SuspiciousNetworkRule",
    "default_rules",
]


def default_rules() -> tuple[DetectionRule, ...]:
    """Return a fresh set of built-in rules, most severe first."""
    return (
        DataExfiltrationRule(),
        RemoteExecutionRule(),
        CredentialAccessRule(),
        ObfuscationRule(),
        SuspiciousNetworkRule(),
        HardcodedSecretRule(),
        ExcessiveActivationRule(),
    )
