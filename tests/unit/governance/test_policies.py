"""
config-governance — unit tests for the policy validator family

File: tests/unit/governance/test_policies.py
Last updated: 2026-10-19

Purpose
- Validate module lifecycle, intake template, connector, e-sign, mobile alert, and
  compatibility policy checks.

What this test file should cover
- Checked-in policy documents validate cleanly.
- Each validator reports its documented codes and accumulates rather than short-circuits.
- Quiet-hour severity bypass evaluation.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import pytest

from config_governance.documents import load_document
from config_governance.governance import (
    quiet_hours_bypass,
    severity_rank_map,
    validate_compatibility_policy,
    validate_connector_admission_policy,
    validate_connector_auth_mode_policy,
    validate_esign_provider_policy,
    validate_mobile_alert_policy,
    validate_module_lifecycle_policy,
    validate_module_request_intake_template,
)
from config_governance.governance.compatibility import CompatibilityErrorCode
from config_governance.governance.connectors import (
    ConnectorAdmissionErrorCode,
    ConnectorAuthErrorCode,
)
from config_governance.governance.esign import EsignErrorCode
from config_governance.governance.mobile_alert import MobileAlertErrorCode
from config_governance.governance.module_lifecycle import (
    IntakeTemplateErrorCode,
    ModuleLifecycleErrorCode,
)

CHECKED_IN = [
    ("module_lifecycle_policy.json", validate_module_lifecycle_policy),
    ("module_request_intake_template.json", validate_module_request_intake_template),
    ("connector_auth_mode_policy.json", validate_connector_auth_mode_policy),
    ("connector_admission_policy.json", validate_connector_admission_policy),
    ("esign_provider_policy.json", validate_esign_provider_policy),
    ("mobile_alert_policy.json", validate_mobile_alert_policy),
    ("compatibility_policy.json", validate_compatibility_policy),
]


def _load(config_dir: Path, filename: str) -> dict[str, Any]:
    return copy.deepcopy(load_document(config_dir / filename))


@pytest.mark.parametrize(("filename", "validator"), CHECKED_IN)
def test_checked_in_policies_are_valid(sample_config_dir: Path, filename: str, validator: Any) -> None:
    result = validator(load_document(sample_config_dir / filename))

    assert result.ok, result.errors


@pytest.mark.parametrize(("filename", "validator"), CHECKED_IN)
def test_non_object_roots_are_rejected(filename: str, validator: Any) -> None:
    result = validator(["not", "an", "object"])

    assert not result.ok
    assert len(result.errors) == 1
    assert str(result.errors[0].code).endswith("INVALID_ROOT")


# --- module lifecycle ---------------------------------------------------------


def test_module_lifecycle_missing_class_and_weak_sets(sample_config_dir: Path) -> None:
    policy = _load(sample_config_dir, "module_lifecycle_policy.json")
    del policy["module_classes"]["connector"]
    policy["module_classes"]["workflow"]["promotion_requirements"] = []
    policy["intake_template_required_fields"] = ["a", "b"]
    policy["release_gate"]["kpis"] = ["error_rate"]
    policy["policy_precedence"] = []

    result = validate_module_lifecycle_policy(policy)

    assert [issue.code for issue in result.errors] == [
        ModuleLifecycleErrorCode.MODULE_CLASS_PROMOTION_MISSING,
        ModuleLifecycleErrorCode.MODULE_CLASS_MISSING,
        ModuleLifecycleErrorCode.MODULE_POLICY_PRECEDENCE_MISSING,
        ModuleLifecycleErrorCode.MODULE_POLICY_INTAKE_FIELDS_WEAK,
        ModuleLifecycleErrorCode.MODULE_POLICY_KPI_SET_WEAK,
    ]
    assert result.errors[1].extra == {"class_id": "connector"}


def test_module_lifecycle_without_classes() -> None:
    result = validate_module_lifecycle_policy({})

    assert ModuleLifecycleErrorCode.MODULE_POLICY_NO_CLASSES in result.codes()


# --- intake template ----------------------------------------------------------


def test_intake_template_field_definitions(sample_config_dir: Path) -> None:
    template = _load(sample_config_dir, "module_request_intake_template.json")
    del template["fields"]["owner"]
    template["fields"]["module_class"]["description"] = "  "

    result = validate_module_request_intake_template(template)

    assert [issue.code for issue in result.errors] == [
        IntakeTemplateErrorCode.INTAKE_TEMPLATE_FIELD_INVALID,
        IntakeTemplateErrorCode.INTAKE_TEMPLATE_FIELD_UNDEFINED,
    ]
    assert result.errors[0].extra == {"field": "module_class", "attribute": "description"}


def test_intake_template_requires_unique_fields() -> None:
    result = validate_module_request_intake_template(
        {"required_fields": ["a", "a", "b", "c", " d "], "fields": []}
    )

    assert [issue.code for issue in result.errors] == [
        IntakeTemplateErrorCode.INTAKE_TEMPLATE_REQUIRED_FIELDS_WEAK,
        IntakeTemplateErrorCode.INTAKE_TEMPLATE_FIELDS_MISSING,
    ]


# --- connectors ---------------------------------------------------------------


def test_connector_auth_modes(sample_config_dir: Path) -> None:
    policy = _load(sample_config_dir, "connector_auth_mode_policy.json")
    policy["providers"]["microsoft_graph"]["required_scopes"] = []
    policy["providers"]["monday"]["credential_env_var"] = "monday-token"
    policy["providers"]["legacy"] = {"auth_mode": "basic"}
    policy["providers"]["broken"] = "oauth"

    result = validate_connector_auth_mode_policy(policy)

    assert [issue.code for issue in result.errors] == [
        ConnectorAuthErrorCode.CONNECTOR_AUTH_POLICY_SCOPES_MISSING,
        ConnectorAuthErrorCode.CONNECTOR_AUTH_POLICY_CREDENTIAL_ENV_INVALID,
        ConnectorAuthErrorCode.CONNECTOR_AUTH_POLICY_MODE_INVALID,
        ConnectorAuthErrorCode.CONNECTOR_AUTH_POLICY_PROVIDER_INVALID,
    ]


def test_connector_auth_requires_modes_and_providers() -> None:
    result = validate_connector_auth_mode_policy({"allowed_auth_modes": [" "], "providers": {}})

    assert [issue.code for issue in result.errors] == [
        ConnectorAuthErrorCode.CONNECTOR_AUTH_POLICY_ALLOWED_MODES_MISSING,
        ConnectorAuthErrorCode.CONNECTOR_AUTH_POLICY_PROVIDERS_MISSING,
    ]


def test_connector_admission_requires_reliability_controls(sample_config_dir: Path) -> None:
    policy = _load(sample_config_dir, "connector_admission_policy.json")
    monday = policy["providers"]["monday"]
    monday["idempotency_strategy"] = ""
    monday["callback_authenticity"]["secret_env_var"] = "not an env name"
    del policy["providers"]["rightsignature"]["retry_backoff_policy"]

    result = validate_connector_admission_policy(policy)

    assert [issue.code for issue in result.errors] == [
        ConnectorAdmissionErrorCode.CONNECTOR_ADMISSION_IDEMPOTENCY_STRATEGY_MISSING,
        ConnectorAdmissionErrorCode.CONNECTOR_ADMISSION_CALLBACK_AUTH_FIELD_INVALID,
        ConnectorAdmissionErrorCode.CONNECTOR_ADMISSION_RETRY_POLICY_MISSING,
    ]
    assert result.errors[1].extra == {"provider": "monday", "field": "secret_env_var"}


@pytest.mark.parametrize(
    ("retry", "expected"),
    [
        (
            {"max_attempts": 0, "base_delay_ms": 100, "max_delay_ms": 50, "retryable_status_codes": [503]},
            [
                ConnectorAdmissionErrorCode.CONNECTOR_ADMISSION_RETRY_POLICY_INVALID,
                ConnectorAdmissionErrorCode.CONNECTOR_ADMISSION_RETRY_POLICY_INVALID,
            ],
        ),
        (
            {"max_attempts": 3, "base_delay_ms": 0, "max_delay_ms": 0, "retryable_status_codes": []},
            [ConnectorAdmissionErrorCode.CONNECTOR_ADMISSION_RETRYABLE_STATUS_CODES_MISSING],
        ),
        (
            {"max_attempts": 3, "base_delay_ms": 0, "max_delay_ms": 0, "retryable_status_codes": [429, 999]},
            [ConnectorAdmissionErrorCode.CONNECTOR_ADMISSION_RETRYABLE_STATUS_CODES_MISSING],
        ),
    ],
)
def test_connector_admission_retry_policy(
    sample_config_dir: Path,
    retry: dict[str, Any],
    expected: list[str],
) -> None:
    policy = _load(sample_config_dir, "connector_admission_policy.json")
    policy["providers"]["monday"]["retry_backoff_policy"] = retry

    result = validate_connector_admission_policy(policy)

    assert [issue.code for issue in result.errors] == expected


# --- e-sign -------------------------------------------------------------------


@pytest.mark.parametrize(
    ("active_policy", "docusign", "rightsignature", "expected"),
    [
        ("rightsignature_only", False, True, []),
        ("docusign_only", True, False, []),
        ("dual_provider", True, True, []),
        (
            "rightsignature_only",
            True,
            False,
            [
                EsignErrorCode.ESIGN_POLICY_DOCUSIGN_DISABLED_REQUIRED,
                EsignErrorCode.ESIGN_POLICY_RIGHTSIGNATURE_ENABLED_REQUIRED,
            ],
        ),
        ("dual_provider", False, True, [EsignErrorCode.ESIGN_POLICY_DOCUSIGN_ENABLED_REQUIRED]),
        ("docusign_only", True, True, [EsignErrorCode.ESIGN_POLICY_RIGHTSIGNATURE_DISABLED_REQUIRED]),
    ],
)
def test_esign_enablement_matches_active_policy(
    active_policy: str,
    docusign: bool,
    rightsignature: bool,
    expected: list[str],
) -> None:
    result = validate_esign_provider_policy(
        {
            "active_policy": active_policy,
            "providers": {
                "docusign": {"enabled": docusign},
                "rightsignature": {"enabled": rightsignature},
            },
        }
    )

    assert [issue.code for issue in result.errors] == expected


def test_esign_unknown_policy_and_malformed_providers() -> None:
    result = validate_esign_provider_policy(
        {"active_policy": "both", "providers": {"docusign": {"enabled": "yes"}}}
    )

    assert [issue.code for issue in result.errors] == [
        EsignErrorCode.ESIGN_POLICY_ACTIVE_POLICY_INVALID,
        EsignErrorCode.ESIGN_POLICY_PROVIDER_ENABLED_INVALID,
        EsignErrorCode.ESIGN_POLICY_PROVIDER_MISSING,
    ]


# --- mobile alerts ------------------------------------------------------------


def test_mobile_alert_routing_errors(sample_config_dir: Path) -> None:
    policy = _load(sample_config_dir, "mobile_alert_policy.json")
    policy["routing"]["approval_required"]["high"] = {
        "primary_channel": "pager",
        "fallback_chain": ["push", "telegram", "push", "carrier_pigeon"],
    }
    policy["routing"]["approval_required"]["urgent"] = {"primary_channel": "push"}
    policy["routing"]["ghost_class"] = {}
    del policy["routing"]["connector_failure"]

    result = validate_mobile_alert_policy(policy)

    assert [issue.code for issue in result.errors] == [
        MobileAlertErrorCode.MOBILE_ALERT_POLICY_ROUTING_CLASS_MISSING,
        MobileAlertErrorCode.MOBILE_ALERT_POLICY_PRIMARY_CHANNEL_UNKNOWN,
        MobileAlertErrorCode.MOBILE_ALERT_POLICY_FALLBACK_CHAIN_CYCLE,
        MobileAlertErrorCode.MOBILE_ALERT_POLICY_FALLBACK_CHANNEL_UNKNOWN,
        MobileAlertErrorCode.MOBILE_ALERT_POLICY_ROUTING_SEVERITY_UNKNOWN,
        MobileAlertErrorCode.MOBILE_ALERT_POLICY_ROUTING_CLASS_UNKNOWN,
    ]


def test_mobile_alert_fallback_may_not_repeat_primary(sample_config_dir: Path) -> None:
    policy = _load(sample_config_dir, "mobile_alert_policy.json")
    policy["routing"]["connector_failure"]["high"]["fallback_chain"] = ["telegram"]

    result = validate_mobile_alert_policy(policy)

    assert [issue.code for issue in result.errors] == [
        MobileAlertErrorCode.MOBILE_ALERT_POLICY_FALLBACK_CHAIN_CYCLE
    ]
    assert result.errors[0].extra["channel"] == "telegram"


def test_mobile_alert_ladder_and_quiet_hours(sample_config_dir: Path) -> None:
    policy = _load(sample_config_dir, "mobile_alert_policy.json")
    policy["severity_ladder"] = ["low", "medium", "high", "critical", "high"]
    policy["quiet_hours"] = {
        "enabled": "yes",
        "start": "24:00",
        "end": "07:00",
        "overrides": [{"alert_class": "approval_required", "min_severity": "extreme"}],
    }

    result = validate_mobile_alert_policy(policy)

    assert [issue.code for issue in result.errors] == [
        MobileAlertErrorCode.MOBILE_ALERT_POLICY_SEVERITY_LADDER_INVALID,
        MobileAlertErrorCode.MOBILE_ALERT_POLICY_QUIET_HOURS_INVALID,
        MobileAlertErrorCode.MOBILE_ALERT_POLICY_QUIET_HOURS_INVALID,
        MobileAlertErrorCode.MOBILE_ALERT_POLICY_QUIET_HOURS_OVERRIDE_INVALID,
    ]


def test_mobile_alert_quiet_hours_are_optional(sample_config_dir: Path) -> None:
    policy = _load(sample_config_dir, "mobile_alert_policy.json")
    del policy["quiet_hours"]

    assert validate_mobile_alert_policy(policy).ok


def test_severity_rank_map_ignores_blanks_and_repeats() -> None:
    assert severity_rank_map(["low", " ", "high", "low", "critical"]) == {
        "low": 0,
        "high": 1,
        "critical": 2,
    }


@pytest.mark.parametrize(
    ("alert_class", "severity", "expected"),
    [
        ("connector_failure", "critical", True),
        ("connector_failure", "high", False),
        ("approval_required", "high", True),
        ("approval_required", "critical", True),
        ("approval_required", "medium", False),
        ("approval_required", "unknown", False),
        ("other_class", "critical", False),
    ],
)
def test_quiet_hours_bypass(
    sample_config_dir: Path,
    alert_class: str,
    severity: str,
    expected: bool,
) -> None:
    policy = load_document(sample_config_dir / "mobile_alert_policy.json")

    assert quiet_hours_bypass(policy, alert_class, severity) is expected


# --- compatibility ------------------------------------------------------------


def test_compatibility_policy_checks_every_field() -> None:
    result = validate_compatibility_policy(
        {"support_window": {"backward_compatible_releases": 0, "deprecation_notice_days": "90"}}
    )

    assert [issue.code for issue in result.errors] == [
        CompatibilityErrorCode.COMPAT_POLICY_SUPPORT_WINDOW_INVALID,
        CompatibilityErrorCode.COMPAT_POLICY_DEPRECATION_NOTICE_INVALID,
        CompatibilityErrorCode.COMPAT_POLICY_BREAKING_CHANGE_REQUIREMENTS_MISSING,
    ]
