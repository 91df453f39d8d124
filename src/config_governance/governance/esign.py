"""E-sign provider policy validator."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Final

from config_governance.validation import IssueCollector, ValidationResult

ESIGN_PROVIDERS: Final[tuple[str, ...]] = ("docusign", "rightsignature")

# Which providers each active policy requires enabled.
ACTIVE_POLICY_ENABLEMENT: Final[Mapping[str, frozenset[str]]] = {
    "docusign_only": frozenset({"docusign"}),
    "rightsignature_only": frozenset({"rightsignature"}),
    "dual_provider": frozenset({"docusign", "rightsignature"}),
}


class EsignErrorCode(StrEnum):
    ESIGN_POLICY_INVALID_ROOT = "ESIGN_POLICY_INVALID_ROOT"
    ESIGN_POLICY_ACTIVE_POLICY_INVALID = "ESIGN_POLICY_ACTIVE_POLICY_INVALID"
    ESIGN_POLICY_PROVIDERS_MISSING = "ESIGN_POLICY_PROVIDERS_MISSING"
    ESIGN_POLICY_PROVIDER_MISSING = "ESIGN_POLICY_PROVIDER_MISSING"
    ESIGN_POLICY_PROVIDER_ENABLED_INVALID = "ESIGN_POLICY_PROVIDER_ENABLED_INVALID"
    ESIGN_POLICY_DOCUSIGN_ENABLED_REQUIRED = "ESIGN_POLICY_DOCUSIGN_ENABLED_REQUIRED"
    ESIGN_POLICY_DOCUSIGN_DISABLED_REQUIRED = "ESIGN_POLICY_DOCUSIGN_DISABLED_REQUIRED"
    ESIGN_POLICY_RIGHTSIGNATURE_ENABLED_REQUIRED = "ESIGN_POLICY_RIGHTSIGNATURE_ENABLED_REQUIRED"
    ESIGN_POLICY_RIGHTSIGNATURE_DISABLED_REQUIRED = "ESIGN_POLICY_RIGHTSIGNATURE_DISABLED_REQUIRED"


def validate_esign_provider_policy(policy: object) -> ValidationResult:
    issues = IssueCollector()
    if not isinstance(policy, Mapping):
        issues.add(EsignErrorCode.ESIGN_POLICY_INVALID_ROOT, "esign_provider_policy must be an object")
        return ValidationResult(errors=issues.items())

    active_policy = policy.get("active_policy")
    required_enabled = (
        ACTIVE_POLICY_ENABLEMENT.get(active_policy) if isinstance(active_policy, str) else None
    )
    if required_enabled is None:
        issues.add(
            EsignErrorCode.ESIGN_POLICY_ACTIVE_POLICY_INVALID,
            f"active_policy must be one of {', '.join(ACTIVE_POLICY_ENABLEMENT)}",
            active_policy=active_policy if isinstance(active_policy, str) else None,
        )

    providers = policy.get("providers")
    if not isinstance(providers, Mapping):
        issues.add(EsignErrorCode.ESIGN_POLICY_PROVIDERS_MISSING, "providers must be an object")
        return ValidationResult(errors=issues.items())

    for provider_id in ESIGN_PROVIDERS:
        provider = providers.get(provider_id)
        if not isinstance(provider, Mapping):
            issues.add(
                EsignErrorCode.ESIGN_POLICY_PROVIDER_MISSING,
                f"provider {provider_id} must be declared",
                provider=provider_id,
            )
            continue
        enabled = provider.get("enabled")
        if not isinstance(enabled, bool):
            issues.add(
                EsignErrorCode.ESIGN_POLICY_PROVIDER_ENABLED_INVALID,
                f"provider {provider_id}.enabled must be a boolean",
                provider=provider_id,
            )
            continue
        if required_enabled is None:
            continue

        must_enable = provider_id in required_enabled
        if must_enable and not enabled:
            issues.add(
                EsignErrorCode(f"ESIGN_POLICY_{provider_id.upper()}_ENABLED_REQUIRED"),
                f"active_policy {active_policy} requires {provider_id} to be enabled",
                provider=provider_id,
            )
        elif enabled and not must_enable:
            issues.add(
                EsignErrorCode(f"ESIGN_POLICY_{provider_id.upper()}_DISABLED_REQUIRED"),
                f"active_policy {active_policy} requires {provider_id} to be disabled",
                provider=provider_id,
            )

    return ValidationResult(errors=issues.items())


__all__ = [
    "ACTIVE_POLICY_ENABLEMENT",
    "ESIGN_PROVIDERS",
    "EsignErrorCode",
    "validate_esign_provider_policy",
]
