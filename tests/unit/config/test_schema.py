"""
config-governance — unit tests for config schema

File: tests/unit/config/test_schema.py
Last updated: 2026-10-19

Purpose
- Validate defaults, strict key checking, typed coercion errors, and deep merge behavior.
"""

from __future__ import annotations

import pytest

from config_governance.config.schema import (
    DEFAULT_CONFIG,
    ConfigValidationError,
    assert_valid_config,
    default_config,
    merge_config,
    migration_guidance,
    validate_config,
)


def _paths(result_issues: tuple[object, ...]) -> list[str]:
    return [issue.path for issue in result_issues]  # type: ignore[attr-defined]


def test_defaults_are_valid() -> None:
    result = validate_config(default_config())

    assert result.is_valid
    assert result.config == DEFAULT_CONFIG


def test_default_config_returns_independent_copies() -> None:
    first = default_config()
    first["paths"]["config_dir"] = "elsewhere"

    assert default_config()["paths"]["config_dir"] == "config"


def test_non_object_root_is_rejected() -> None:
    result = validate_config(["meta"])

    assert not result.is_valid
    assert _paths(result.issues) == ["<root>"]


def test_unknown_and_missing_sections_are_reported() -> None:
    payload = default_config()
    del payload["migrations"]  # type: ignore[misc]
    payload["extras"] = {}  # type: ignore[typeddict-unknown-key]

    result = validate_config(payload)

    assert not result.is_valid
    messages = {issue.path: issue.message for issue in result.issues}
    assert "extras" in messages
    assert "migrations" in messages


@pytest.mark.parametrize(
    ("section", "key", "value", "path"),
    [
        ("migrations", "target_version", 0, "migrations.target_version"),
        ("migrations", "target_version", True, "migrations.target_version"),
        ("migrations", "version_field", "  ", "migrations.version_field"),
        ("observability", "log_level", "TRACE", "observability.log_level"),
        ("observability", "log_format", "xml", "observability.log_format"),
        ("paths", "manifest", 3, "paths.manifest"),
        ("paths", "roadmap", "bad\x00path", "paths.roadmap"),
    ],
)
def test_field_level_errors_carry_dotted_paths(
    section: str,
    key: str,
    value: object,
    path: str,
) -> None:
    payload = merge_config(default_config(), {section: {key: value}})

    with pytest.raises(ConfigValidationError) as excinfo:
        assert_valid_config(payload)

    assert _paths(excinfo.value.issues) == [path]
    assert path in str(excinfo.value)


def test_empty_log_file_means_stderr_only() -> None:
    payload = merge_config(default_config(), {"observability": {"log_file": ""}})

    assert assert_valid_config(payload)["observability"]["log_file"] == ""


def test_schema_version_mismatch_carries_guidance() -> None:
    payload = merge_config(default_config(), {"meta": {"schema_version": 2}})

    result = validate_config(payload)

    assert [issue.message for issue in result.issues] == [migration_guidance(2)]
    assert "newer" in migration_guidance(2)
    assert "older" in migration_guidance(0)
    assert migration_guidance(1) == "schema version is current"


def test_merge_config_is_deep_and_non_mutating() -> None:
    base = {"a": {"b": 1, "c": 2}, "d": [1]}
    overlay = {"a": {"c": 3}, "e": True}

    merged = merge_config(base, overlay)

    assert merged == {"a": {"b": 1, "c": 3}, "d": [1], "e": True}
    assert base == {"a": {"b": 1, "c": 2}, "d": [1]}
