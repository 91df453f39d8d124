"""Compatibility (support window / deprecation) policy validator."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum

from config_governance.documents import non_empty_list, strict_int
from config_governance.validation import IssueCollector, ValidationResult


class CompatibilityErrorCode(StrEnum):
    COMPAT_POLICY_INVALID_ROOT = "COMPAT_POLICY_INVALID_ROOT"
    COMPAT_POLICY_SUPPORT_WINDOW_INVALID = "COMPAT_POLICY_SUPPORT_WINDOW_INVALID"
    COMPAT_POLICY_DEPRECATION_NOTICE_INVALID = "COMPAT_POLICY_DEPRECATION_NOTICE_INVALID"
    COMPAT_POLICY_BREAKING_CHANGE_REQUIREMENTS_MISSING = (
        "COMPAT_POLICY_BREAKING_CHANGE_REQUIREMENTS_MISSING"
    )


def validate_compatibility_policy(policy: object) -> ValidationResult:
    issues = IssueCollector()
    if not isinstance(policy, Mapping):
        issues.add(
            CompatibilityErrorCode.COMPAT_POLICY_INVALID_ROOT,
            "compatibility_policy must be an object",
        )
        return ValidationResult(errors=issues.items())

    window = policy.get("support_window")
    window = window if isinstance(window, Mapping) else {}

    releases = strict_int(window.get("backward_compatible_releases"))
    if releases is None or releases < 1:
        issues.add(
            CompatibilityErrorCode.COMPAT_POLICY_SUPPORT_WINDOW_INVALID,
            "support_window.backward_compatible_releases must be an integer >= 1",
        )

    notice_days = strict_int(window.get("deprecation_notice_days"))
    if notice_days is None or notice_days < 1:
        issues.add(
            CompatibilityErrorCode.COMPAT_POLICY_DEPRECATION_NOTICE_INVALID,
            "support_window.deprecation_notice_days must be an integer >= 1",
        )

    if not non_empty_list(policy.get("breaking_change_requirements")):
        issues.add(
            CompatibilityErrorCode.COMPAT_POLICY_BREAKING_CHANGE_REQUIREMENTS_MISSING,
            "breaking_change_requirements must be non-empty",
        )

    return ValidationResult(errors=issues.items())


__all__ = ["CompatibilityErrorCode", "validate_compatibility_policy"]
