"""
config-governance — connector policy validators.

File: src/config_governance/governance/connectors.py
Last updated: 2026-10-19

Purpose
- Validate how external connectors authenticate (auth mode policy) and the
  reliability controls they must declare before admission (admission policy).

Functional requirements
- Delegated and app-only auth modes must declare the scopes they request.
- API-key auth must name the environment variable holding the credential;
  secrets never appear in policy documents.
- Admitted providers declare an idempotency strategy, callback authenticity
  checks and a bounded retry/backoff policy.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Any, Final

from config_governance.documents import (
    as_list,
    as_trimmed_str,
    is_env_name,
    non_empty_list,
    strict_int,
)
from config_governance.validation import IssueCollector, ValidationResult

SCOPED_AUTH_MODES: Final[frozenset[str]] = frozenset({"delegated", "app_only"})
API_KEY_AUTH_MODE: Final[str] = "api_key"
CALLBACK_AUTH_FIELDS: Final[tuple[str, ...]] = ("method", "header", "secret_env_var")


class ConnectorAuthErrorCode(StrEnum):
    CONNECTOR_AUTH_POLICY_INVALID_ROOT = "CONNECTOR_AUTH_POLICY_INVALID_ROOT"
    CONNECTOR_AUTH_POLICY_ALLOWED_MODES_MISSING = "CONNECTOR_AUTH_POLICY_ALLOWED_MODES_MISSING"
    CONNECTOR_AUTH_POLICY_PROVIDERS_MISSING = "CONNECTOR_AUTH_POLICY_PROVIDERS_MISSING"
    CONNECTOR_AUTH_POLICY_PROVIDER_INVALID = "CONNECTOR_AUTH_POLICY_PROVIDER_INVALID"
    CONNECTOR_AUTH_POLICY_MODE_INVALID = "CONNECTOR_AUTH_POLICY_MODE_INVALID"
    CONNECTOR_AUTH_POLICY_SCOPES_MISSING = "CONNECTOR_AUTH_POLICY_SCOPES_MISSING"
    CONNECTOR_AUTH_POLICY_CREDENTIAL_ENV_INVALID = "CONNECTOR_AUTH_POLICY_CREDENTIAL_ENV_INVALID"


class ConnectorAdmissionErrorCode(StrEnum):
    CONNECTOR_ADMISSION_INVALID_ROOT = "CONNECTOR_ADMISSION_INVALID_ROOT"
    CONNECTOR_ADMISSION_PROVIDERS_MISSING = "CONNECTOR_ADMISSION_PROVIDERS_MISSING"
    CONNECTOR_ADMISSION_PROVIDER_INVALID = "CONNECTOR_ADMISSION_PROVIDER_INVALID"
    CONNECTOR_ADMISSION_IDEMPOTENCY_STRATEGY_MISSING = (
        "CONNECTOR_ADMISSION_IDEMPOTENCY_STRATEGY_MISSING"
    )
    CONNECTOR_ADMISSION_CALLBACK_AUTH_MISSING = "CONNECTOR_ADMISSION_CALLBACK_AUTH_MISSING"
    CONNECTOR_ADMISSION_CALLBACK_AUTH_FIELD_INVALID = (
        "CONNECTOR_ADMISSION_CALLBACK_AUTH_FIELD_INVALID"
    )
    CONNECTOR_ADMISSION_RETRY_POLICY_MISSING = "CONNECTOR_ADMISSION_RETRY_POLICY_MISSING"
    CONNECTOR_ADMISSION_RETRY_POLICY_INVALID = "CONNECTOR_ADMISSION_RETRY_POLICY_INVALID"
    CONNECTOR_ADMISSION_RETRYABLE_STATUS_CODES_MISSING = (
        "CONNECTOR_ADMISSION_RETRYABLE_STATUS_CODES_MISSING"
    )


def validate_connector_auth_mode_policy(policy: object) -> ValidationResult:
    issues = IssueCollector()
    if not isinstance(policy, Mapping):
        issues.add(
            ConnectorAuthErrorCode.CONNECTOR_AUTH_POLICY_INVALID_ROOT,
            "connector_auth_mode_policy must be an object",
        )
        return ValidationResult(errors=issues.items())

    allowed_modes = {as_trimmed_str(mode) for mode in as_list(policy.get("allowed_auth_modes"))}
    allowed_modes.discard("")
    if not allowed_modes:
        issues.add(
            ConnectorAuthErrorCode.CONNECTOR_AUTH_POLICY_ALLOWED_MODES_MISSING,
            "allowed_auth_modes must be non-empty",
        )

    providers = policy.get("providers")
    if not isinstance(providers, Mapping) or not providers:
        issues.add(
            ConnectorAuthErrorCode.CONNECTOR_AUTH_POLICY_PROVIDERS_MISSING,
            "providers must be a non-empty object",
        )
        return ValidationResult(errors=issues.items())

    for provider_id, provider in providers.items():
        if not isinstance(provider, Mapping):
            issues.add(
                ConnectorAuthErrorCode.CONNECTOR_AUTH_POLICY_PROVIDER_INVALID,
                f"provider {provider_id} must be an object",
                provider=provider_id,
            )
            continue

        auth_mode = as_trimmed_str(provider.get("auth_mode"))
        if not auth_mode or auth_mode not in allowed_modes:
            issues.add(
                ConnectorAuthErrorCode.CONNECTOR_AUTH_POLICY_MODE_INVALID,
                f"provider {provider_id} auth_mode {auth_mode or '<missing>'} is not allowed",
                provider=provider_id,
            )
            continue

        if auth_mode in SCOPED_AUTH_MODES and not non_empty_list(provider.get("required_scopes")):
            issues.add(
                ConnectorAuthErrorCode.CONNECTOR_AUTH_POLICY_SCOPES_MISSING,
                f"provider {provider_id} uses {auth_mode} auth and must declare required_scopes",
                provider=provider_id,
            )
        if auth_mode == API_KEY_AUTH_MODE and not is_env_name(provider.get("credential_env_var")):
            issues.add(
                ConnectorAuthErrorCode.CONNECTOR_AUTH_POLICY_CREDENTIAL_ENV_INVALID,
                f"provider {provider_id} uses api_key auth and must name a credential_env_var",
                provider=provider_id,
            )

    return ValidationResult(errors=issues.items())


def validate_connector_admission_policy(policy: object) -> ValidationResult:
    issues = IssueCollector()
    if not isinstance(policy, Mapping):
        issues.add(
            ConnectorAdmissionErrorCode.CONNECTOR_ADMISSION_INVALID_ROOT,
            "connector_admission_policy must be an object",
        )
        return ValidationResult(errors=issues.items())

    providers = policy.get("providers")
    if not isinstance(providers, Mapping) or not providers:
        issues.add(
            ConnectorAdmissionErrorCode.CONNECTOR_ADMISSION_PROVIDERS_MISSING,
            "providers must be a non-empty object",
        )
        return ValidationResult(errors=issues.items())

    for provider_id, provider in providers.items():
        if not isinstance(provider, Mapping):
            issues.add(
                ConnectorAdmissionErrorCode.CONNECTOR_ADMISSION_PROVIDER_INVALID,
                f"provider {provider_id} must be an object",
                provider=provider_id,
            )
            continue
        if not as_trimmed_str(provider.get("idempotency_strategy")):
            issues.add(
                ConnectorAdmissionErrorCode.CONNECTOR_ADMISSION_IDEMPOTENCY_STRATEGY_MISSING,
                f"provider {provider_id} must declare idempotency_strategy",
                provider=provider_id,
            )
        _check_callback_authenticity(provider_id, provider.get("callback_authenticity"), issues)
        _check_retry_policy(provider_id, provider.get("retry_backoff_policy"), issues)

    return ValidationResult(errors=issues.items())


def _check_callback_authenticity(provider_id: str, callback: Any, issues: IssueCollector) -> None:
    if not isinstance(callback, Mapping):
        issues.add(
            ConnectorAdmissionErrorCode.CONNECTOR_ADMISSION_CALLBACK_AUTH_MISSING,
            f"provider {provider_id} must declare callback_authenticity",
            provider=provider_id,
        )
        return

    for field_name in CALLBACK_AUTH_FIELDS:
        value = callback.get(field_name)
        valid = is_env_name(value) if field_name == "secret_env_var" else bool(as_trimmed_str(value))
        if not valid:
            issues.add(
                ConnectorAdmissionErrorCode.CONNECTOR_ADMISSION_CALLBACK_AUTH_FIELD_INVALID,
                f"provider {provider_id} callback_authenticity.{field_name} is invalid",
                provider=provider_id,
                field=field_name,
            )


def _check_retry_policy(provider_id: str, retry: Any, issues: IssueCollector) -> None:
    if not isinstance(retry, Mapping):
        issues.add(
            ConnectorAdmissionErrorCode.CONNECTOR_ADMISSION_RETRY_POLICY_MISSING,
            f"provider {provider_id} must declare retry_backoff_policy",
            provider=provider_id,
        )
        return

    max_attempts = strict_int(retry.get("max_attempts"))
    base_delay_ms = strict_int(retry.get("base_delay_ms"))
    max_delay_ms = strict_int(retry.get("max_delay_ms"))
    problems: list[str] = []
    if max_attempts is None or max_attempts < 1:
        problems.append("max_attempts must be an integer >= 1")
    if base_delay_ms is None or base_delay_ms < 0:
        problems.append("base_delay_ms must be an integer >= 0")
    if max_delay_ms is None or (base_delay_ms is not None and max_delay_ms < base_delay_ms):
        problems.append("max_delay_ms must be an integer >= base_delay_ms")
    for problem in problems:
        issues.add(
            ConnectorAdmissionErrorCode.CONNECTOR_ADMISSION_RETRY_POLICY_INVALID,
            f"provider {provider_id} retry_backoff_policy: {problem}",
            provider=provider_id,
        )

    status_codes = as_list(retry.get("retryable_status_codes"))
    if not status_codes or not all(_is_http_status(code) for code in status_codes):
        issues.add(
            ConnectorAdmissionErrorCode.CONNECTOR_ADMISSION_RETRYABLE_STATUS_CODES_MISSING,
            f"provider {provider_id} must list retryable_status_codes as HTTP status codes",
            provider=provider_id,
        )


def _is_http_status(value: object) -> bool:
    code = strict_int(value)
    return code is not None and 100 <= code <= 599


__all__ = [
    "ConnectorAdmissionErrorCode",
    "ConnectorAuthErrorCode",
    "validate_connector_admission_policy",
    "validate_connector_auth_mode_policy",
]
