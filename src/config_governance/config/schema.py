"""
config-governance — tool configuration schema and validation.

File: src/config_governance/config/schema.py
Last updated: 2026-10-19

Purpose
- Define authoritative ``governance.toml`` defaults and strict validation rules.

What should be included in this file
- Schema versioning and migration guidance.
- Validation rules for required fields, types, enums, and numeric constraints.
- Deterministic deep-merge helpers.

Functional requirements
- Validate config payloads and return structured errors (field path + message).
- Reject unknown keys so typos never silently fall back to defaults.

Non-functional requirements
- Keep rules deterministic and easy to audit.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, Literal, TypedDict

from config_governance.constants import (
    COMPATIBILITY_POLICY_FILENAME,
    CONFIG_SCHEMA_VERSION,
    CONFIG_VERSION_FIELD,
    CONNECTOR_ADMISSION_POLICY_FILENAME,
    CONNECTOR_AUTH_MODE_POLICY_FILENAME,
    DEFAULT_CONFIG_DIR,
    ESIGN_PROVIDER_POLICY_FILENAME,
    MIGRATION_MANIFEST_FILENAME,
    MIGRATION_STATE_FILENAME,
    MOBILE_ALERT_POLICY_FILENAME,
    MODULE_LIFECYCLE_POLICY_FILENAME,
    MODULE_REQUEST_INTAKE_TEMPLATE_FILENAME,
    ROADMAP_MASTER_FILENAME,
)

ConfigSchemaVersion: Final[int] = CONFIG_SCHEMA_VERSION
LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR")
LOG_FORMATS: Final[tuple[str, ...]] = ("json", "text")

# Config paths that should be normalized relative to config file location.
PATH_FIELDS: Final[tuple[tuple[str, ...], ...]] = (
    ("paths", "config_dir"),
    ("paths", "manifest"),
    ("paths", "migration_state"),
    ("paths", "roadmap"),
    ("paths", "module_lifecycle_policy"),
    ("paths", "intake_template"),
    ("paths", "connector_auth_policy"),
    ("paths", "connector_admission_policy"),
    ("paths", "esign_policy"),
    ("paths", "mobile_alert_policy"),
    ("paths", "compatibility_policy"),
    ("observability", "log_file"),
)


class MetaConfig(TypedDict):
    schema_version: int


class PathsConfig(TypedDict):
    config_dir: str
    manifest: str
    migration_state: str
    roadmap: str
    module_lifecycle_policy: str
    intake_template: str
    connector_auth_policy: str
    connector_admission_policy: str
    esign_policy: str
    mobile_alert_policy: str
    compatibility_policy: str


class MigrationsConfig(TypedDict):
    version_field: str
    target_version: int


class ObservabilityConfig(TypedDict):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"]
    log_format: Literal["json", "text"]
    log_file: str


class GovernanceConfig(TypedDict):
    meta: MetaConfig
    paths: PathsConfig
    migrations: MigrationsConfig
    observability: ObservabilityConfig


def _in_config_dir(filename: str) -> str:
    return (DEFAULT_CONFIG_DIR / filename).as_posix()


DEFAULT_CONFIG: Final[GovernanceConfig] = {
    "meta": {
        "schema_version": ConfigSchemaVersion,
    },
    "paths": {
        "config_dir": DEFAULT_CONFIG_DIR.as_posix(),
        "manifest": _in_config_dir(MIGRATION_MANIFEST_FILENAME),
        "migration_state": _in_config_dir(MIGRATION_STATE_FILENAME),
        "roadmap": _in_config_dir(ROADMAP_MASTER_FILENAME),
        "module_lifecycle_policy": _in_config_dir(MODULE_LIFECYCLE_POLICY_FILENAME),
        "intake_template": _in_config_dir(MODULE_REQUEST_INTAKE_TEMPLATE_FILENAME),
        "connector_auth_policy": _in_config_dir(CONNECTOR_AUTH_MODE_POLICY_FILENAME),
        "connector_admission_policy": _in_config_dir(CONNECTOR_ADMISSION_POLICY_FILENAME),
        "esign_policy": _in_config_dir(ESIGN_PROVIDER_POLICY_FILENAME),
        "mobile_alert_policy": _in_config_dir(MOBILE_ALERT_POLICY_FILENAME),
        "compatibility_policy": _in_config_dir(COMPATIBILITY_POLICY_FILENAME),
    },
    "migrations": {
        "version_field": CONFIG_VERSION_FIELD,
        "target_version": 1,
    },
    "observability": {
        "log_level": "INFO",
        "log_format": "json",
        "log_file": "",
    },
}


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    """Validation result with normalized config when no issues were found."""

    config: dict[str, Any] | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.issues


class ConfigValidationError(ValueError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid config:\n{rendered}")


class _IssueCollector:
    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[ConfigValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self._items.append(ConfigValidationIssue(path=path, message=message))

    def items(self) -> tuple[ConfigValidationIssue, ...]:
        return tuple(self._items)

    @property
    def has_issues(self) -> bool:
        return bool(self._items)


def default_config() -> GovernanceConfig:
    """Return a deep copy of deterministic built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def migration_guidance(found_version: int) -> str:
    """Return deterministic migration guidance for schema version mismatch."""

    if found_version < ConfigSchemaVersion:
        return (
            f"schema version {found_version} is older than supported {ConfigSchemaVersion}; "
            "upgrade governance.toml to the current schema"
        )
    if found_version > ConfigSchemaVersion:
        return (
            f"schema version {found_version} is newer than supported {ConfigSchemaVersion}; "
            "upgrade the config-governance package"
        )
    return "schema version is current"


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deterministically deep-merge ``overlay`` onto ``base``."""

    merged = _deep_copy_mapping(base)
    _merge_into(merged, overlay)
    return merged


def validate_config(config: Mapping[str, object] | object) -> ConfigValidationResult:
    """Validate config and return structured issues with deterministic paths."""

    issues = _IssueCollector()
    root = _as_object(config, "<root>", issues)
    if root is None:
        return ConfigValidationResult(config=None, issues=issues.items())

    normalized = _validate_root(root, issues)
    if issues.has_issues:
        return ConfigValidationResult(config=None, issues=issues.items())
    return ConfigValidationResult(config=normalized, issues=())


def assert_valid_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Validate config and raise ``ConfigValidationError`` on failure."""

    result = validate_config(config)
    if result.config is None:
        raise ConfigValidationError(result.issues)
    return result.config


def _validate_root(payload: Mapping[str, object], issues: _IssueCollector) -> dict[str, Any]:
    sections: dict[str, Callable[[Mapping[str, object], str, _IssueCollector], dict[str, Any]]] = {
        "meta": _validate_meta,
        "paths": _validate_paths,
        "migrations": _validate_migrations,
        "observability": _validate_observability,
    }
    _reject_unknown_keys(payload, set(sections), "", issues)
    _require_keys(payload, set(sections), "", issues)

    out: dict[str, Any] = {}
    for key in sorted(sections):
        raw = payload.get(key)
        if raw is None:
            continue
        section_obj = _as_object(raw, key, issues)
        if section_obj is None:
            continue
        out[key] = sections[key](section_obj, key, issues)
    return out


def _validate_meta(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    _reject_unknown_keys(payload, {"schema_version"}, path, issues)
    _require_keys(payload, {"schema_version"}, path, issues)

    out: dict[str, Any] = {}
    if "schema_version" in payload:
        parsed = _as_int(
            payload["schema_version"], _join(path, "schema_version"), issues, minimum=1
        )
        if parsed is not None:
            out["schema_version"] = parsed
            if parsed != ConfigSchemaVersion:
                issues.add(_join(path, "schema_version"), migration_guidance(parsed))
    return out


def _validate_paths(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {field[1] for field in PATH_FIELDS if field[0] == "paths"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    for key in sorted(allowed):
        if key in payload:
            parsed = _as_path_text(payload[key], _join(path, key), issues)
            if parsed is not None:
                out[key] = parsed
    return out


def _validate_migrations(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"version_field", "target_version"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "version_field" in payload:
        parsed_field = _as_str(payload["version_field"], _join(path, "version_field"), issues)
        if parsed_field is not None:
            out["version_field"] = parsed_field
    if "target_version" in payload:
        parsed_target = _as_int(
            payload["target_version"], _join(path, "target_version"), issues, minimum=1
        )
        if parsed_target is not None:
            out["target_version"] = parsed_target
    return out


def _validate_observability(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"log_level", "log_format", "log_file"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "log_level" in payload:
        parsed_log_level = _as_enum(
            payload["log_level"],
            _join(path, "log_level"),
            issues,
            allowed_values=LOG_LEVELS,
        )
        if parsed_log_level is not None:
            out["log_level"] = parsed_log_level

    if "log_format" in payload:
        parsed_log_format = _as_enum(
            payload["log_format"],
            _join(path, "log_format"),
            issues,
            allowed_values=LOG_FORMATS,
        )
        if parsed_log_format is not None:
            out["log_format"] = parsed_log_format

    if "log_file" in payload:
        raw_log_file = payload["log_file"]
        # Empty string means stderr only.
        if raw_log_file == "":
            out["log_file"] = ""
        else:
            parsed_log_file = _as_path_text(raw_log_file, _join(path, "log_file"), issues)
            if parsed_log_file is not None:
                out["log_file"] = parsed_log_file
    return out


def _as_object(value: object, path: str, issues: _IssueCollector) -> dict[str, object] | None:
    if not isinstance(value, Mapping):
        issues.add(path, f"expected object, got {type(value).__name__}")
        return None
    out: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            issues.add(path, f"object key must be string, got {type(key).__name__}")
            continue
        out[key] = item
    return out


def _as_str(value: object, path: str, issues: _IssueCollector) -> str | None:
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    parsed = value.strip()
    if not parsed:
        issues.add(path, "must not be empty")
        return None
    return parsed


def _as_path_text(value: object, path: str, issues: _IssueCollector) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    if "\x00" in parsed:
        issues.add(path, "must not contain NUL bytes")
        return None
    return parsed


def _as_int(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    minimum: int | None = None,
) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        issues.add(path, f"expected integer, got {type(value).__name__}")
        return None
    if minimum is not None and value < minimum:
        issues.add(path, f"must be >= {minimum}")
        return None
    return value


def _as_enum(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    allowed_values: tuple[str, ...],
) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    if parsed not in allowed_values:
        expected = ", ".join(sorted(allowed_values))
        issues.add(path, f"invalid value {parsed!r}; expected one of: {expected}")
        return None
    return parsed


def _reject_unknown_keys(
    payload: Mapping[str, object],
    allowed: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(payload):
        if key not in allowed:
            issues.add(_join(path, key), "unknown field")


def _require_keys(
    payload: Mapping[str, object],
    required: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(required):
        if key not in payload:
            issues.add(_join(path, key), "missing required field")


def _join(path: str, key: str) -> str:
    if not path:
        return key
    return f"{path}.{key}"


def _merge_into(target: dict[str, Any], overlay: Mapping[str, object]) -> None:
    for key in sorted(overlay):
        value = overlay[key]
        if isinstance(value, Mapping):
            existing = target.get(key)
            if isinstance(existing, dict):
                _merge_into(existing, value)
            else:
                nested: dict[str, Any] = {}
                _merge_into(nested, value)
                target[key] = nested
        else:
            target[key] = copy.deepcopy(value)


def _deep_copy_mapping(value: Mapping[str, object]) -> dict[str, Any]:
    return {key: copy.deepcopy(value[key]) for key in sorted(value)}


__all__ = [
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "GovernanceConfig",
    "LOG_FORMATS",
    "LOG_LEVELS",
    "PATH_FIELDS",
    "assert_valid_config",
    "default_config",
    "merge_config",
    "migration_guidance",
    "validate_config",
]
