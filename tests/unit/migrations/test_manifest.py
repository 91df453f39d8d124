"""
config-governance — unit tests for migration manifest validation

File: tests/unit/migrations/test_manifest.py
Last updated: 2026-10-19

Purpose
- Validate structural checks, canonical ordering and error accumulation for manifests.

What this test file should cover
- Root/version/list failures.
- Duplicate ids and orders, missing ids, invalid orders, order gaps.
- Unknown dependencies and dependencies that do not precede their dependent.
- Leading-integer order coercion and depends_on normalization.
"""

from __future__ import annotations

from typing import Any

import pytest

from config_governance.migrations.manifest import (
    ManifestErrorCode,
    MigrationDescriptor,
    validate_migration_manifest,
)


def _manifest(*entries: dict[str, Any], version: object = 1) -> dict[str, Any]:
    return {"_config_version": version, "migrations": list(entries)}


def _codes(manifest: object) -> list[str]:
    return [str(issue.code) for issue in validate_migration_manifest(manifest).errors]


def test_valid_manifest_is_sorted_by_order() -> None:
    result = validate_migration_manifest(
        _manifest(
            {"id": "002_b", "order": 2, "depends_on": ["001_a"]},
            {"id": "001_a", "order": 1},
        )
    )

    assert result.ok
    assert result.migrations == (
        MigrationDescriptor(id="001_a", order=1),
        MigrationDescriptor(id="002_b", order=2, depends_on=("001_a",)),
    )


@pytest.mark.parametrize("manifest", [None, [], "manifest", 3])
def test_non_object_root_is_rejected(manifest: object) -> None:
    assert _codes(manifest) == [ManifestErrorCode.MANIFEST_NOT_OBJECT]


@pytest.mark.parametrize("version", [0, -1, "1", 1.5, True, None])
def test_config_version_must_be_positive_integer(version: object) -> None:
    codes = _codes(_manifest({"id": "001_a", "order": 1}, version=version))

    assert codes == [ManifestErrorCode.MANIFEST_CONFIG_VERSION_INVALID]


def test_integral_float_version_is_accepted() -> None:
    assert validate_migration_manifest(_manifest({"id": "001_a", "order": 1}, version=1.0)).ok


@pytest.mark.parametrize("migrations", [None, [], {}, "001_a"])
def test_missing_migration_list_stops_validation(migrations: object) -> None:
    result = validate_migration_manifest({"_config_version": 1, "migrations": migrations})

    assert [issue.code for issue in result.errors] == [ManifestErrorCode.MANIFEST_MIGRATIONS_MISSING]
    assert result.migrations == ()


def test_errors_accumulate_across_entries() -> None:
    codes = _codes(
        _manifest(
            "not-an-object",
            {"order": 1},
            {"id": "001_a", "order": 1},
            {"id": "001_a", "order": 2},
            {"id": "002_b", "order": 0},
            {"id": "003_c", "order": 1},
            version=0,
        )
    )

    assert codes == [
        ManifestErrorCode.MANIFEST_CONFIG_VERSION_INVALID,
        ManifestErrorCode.MIGRATION_ENTRY_INVALID,
        ManifestErrorCode.MIGRATION_ID_MISSING,
        ManifestErrorCode.MIGRATION_ID_DUPLICATE,
        ManifestErrorCode.MIGRATION_ORDER_INVALID,
        ManifestErrorCode.MIGRATION_ORDER_DUPLICATE,
    ]


def test_invalid_manifest_returns_no_migrations() -> None:
    result = validate_migration_manifest(
        _manifest({"id": "001_a", "order": 1}, {"id": "002_b", "order": 3})
    )

    assert not result.ok
    assert result.migrations == ()


def test_order_gap_reports_first_gap_only() -> None:
    result = validate_migration_manifest(
        _manifest(
            {"id": "001_a", "order": 1},
            {"id": "003_c", "order": 3},
            {"id": "005_e", "order": 5},
        )
    )

    gaps = [issue for issue in result.errors if issue.code == ManifestErrorCode.MIGRATION_ORDER_GAP]
    assert len(gaps) == 1
    assert gaps[0].message == "migration order gap detected at position 2 (expected 2, got 3)"
    assert gaps[0].extra == {"position": 2, "expected": 2, "actual": 3}


def test_orders_must_start_at_one() -> None:
    assert _codes(_manifest({"id": "002_b", "order": 2})) == [ManifestErrorCode.MIGRATION_ORDER_GAP]


def test_order_uses_leading_integer_coercion() -> None:
    result = validate_migration_manifest(
        _manifest({"id": "001_a", "order": "1st"}, {"id": "002_b", "order": 2.9})
    )

    assert result.ok
    assert [migration.order for migration in result.migrations] == [1, 2]


def test_oversized_order_string_is_invalid_not_raised() -> None:
    assert _codes(_manifest({"id": "001_a", "order": "9" * 5000})) == [
        ManifestErrorCode.MIGRATION_ORDER_INVALID
    ]


def test_unknown_dependency_is_reported() -> None:
    result = validate_migration_manifest(
        _manifest({"id": "001_a", "order": 1, "depends_on": ["000_missing"]})
    )

    assert [issue.code for issue in result.errors] == [ManifestErrorCode.MIGRATION_DEPENDENCY_UNKNOWN]
    assert result.errors[0].extra == {"migration_id": "001_a", "dependency_id": "000_missing"}


@pytest.mark.parametrize("dependency", ["002_b", "001_a"])
def test_dependency_must_have_strictly_lower_order(dependency: str) -> None:
    codes = _codes(
        _manifest(
            {"id": "001_a", "order": 1, "depends_on": [dependency]},
            {"id": "002_b", "order": 2},
        )
    )

    assert codes == [ManifestErrorCode.MIGRATION_DEPENDENCY_ORDER_INVALID]


def test_depends_on_is_trimmed_and_deduplicated() -> None:
    result = validate_migration_manifest(
        _manifest(
            {"id": " 001_a ", "order": 1},
            {"id": "002_b", "order": 2, "depends_on": [" 001_a", "001_a", "", 7]},
        )
    )

    assert result.ok
    assert result.migrations[0].id == "001_a"
    assert result.migrations[1].depends_on == ("001_a",)


def test_to_dict_is_json_friendly() -> None:
    result = validate_migration_manifest(_manifest({"id": "001_a", "order": 1}))

    assert result.to_dict() == {
        "ok": True,
        "errors": [],
        "migrations": [{"id": "001_a", "order": 1, "depends_on": []}],
    }
