"""
config-governance — migration manifest validation.

File: src/config_governance/migrations/manifest.py
Last updated: 2026-10-19

Purpose
- Validate the declared, versioned list of schema migrations and project it
  into immutable ``MigrationDescriptor`` values in canonical order.

Functional requirements
- Accumulate every structural violation in one pass; only a non-object root
  or a missing migration list stops validation early.
- Canonical order is ``(order, id)``; orders must be dense ``1..N``.
- Every dependency must exist and carry a strictly lower order.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum

from config_governance.documents import (
    as_list,
    as_trimmed_str,
    coerce_int,
    normalize_id_list,
    strict_int,
)
from config_governance.validation import IssueCollector, JSONValue, ValidationIssue


class ManifestErrorCode(StrEnum):
    MANIFEST_NOT_OBJECT = "manifest_not_object"
    MANIFEST_CONFIG_VERSION_INVALID = "manifest_config_version_invalid"
    MANIFEST_MIGRATIONS_MISSING = "manifest_migrations_missing"
    MIGRATION_ENTRY_INVALID = "migration_entry_invalid"
    MIGRATION_ID_MISSING = "migration_id_missing"
    MIGRATION_ID_DUPLICATE = "migration_id_duplicate"
    MIGRATION_ORDER_INVALID = "migration_order_invalid"
    MIGRATION_ORDER_DUPLICATE = "migration_order_duplicate"
    MIGRATION_ORDER_GAP = "migration_order_gap"
    MIGRATION_DEPENDENCY_UNKNOWN = "migration_dependency_unknown"
    MIGRATION_DEPENDENCY_ORDER_INVALID = "migration_dependency_order_invalid"


@dataclass(frozen=True, slots=True)
class MigrationDescriptor:
    """One validated manifest entry."""

    id: str
    order: int
    depends_on: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, JSONValue]:
        return {"id": self.id, "order": self.order, "depends_on": list(self.depends_on)}


@dataclass(frozen=True, slots=True)
class ManifestValidationResult:
    """Validation outcome; ``migrations`` is empty unless ``ok``."""

    errors: tuple[ValidationIssue, ...]
    migrations: tuple[MigrationDescriptor, ...]

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "ok": self.ok,
            "errors": [issue.to_dict() for issue in self.errors],
            "migrations": [migration.to_dict() for migration in self.migrations],
        }


def validate_migration_manifest(manifest: object) -> ManifestValidationResult:
    """Validate ``manifest`` and return migrations sorted by ``(order, id)``."""

    issues = IssueCollector()
    if not isinstance(manifest, Mapping):
        issues.add(ManifestErrorCode.MANIFEST_NOT_OBJECT, "migration_manifest must be an object")
        return _result(issues, ())

    version = strict_int(manifest.get("_config_version"))
    if version is None or version < 1:
        issues.add(
            ManifestErrorCode.MANIFEST_CONFIG_VERSION_INVALID,
            "_config_version must be an integer >= 1",
        )

    raw_migrations = as_list(manifest.get("migrations"))
    if not raw_migrations:
        issues.add(
            ManifestErrorCode.MANIFEST_MIGRATIONS_MISSING,
            "migrations must be a non-empty array",
        )
        return _result(issues, ())

    normalized = _normalize_entries(raw_migrations, issues)
    ordered = tuple(sorted(normalized, key=lambda entry: (entry.order, entry.id)))

    _check_dense_orders(ordered, issues)
    _check_dependencies(ordered, issues)

    return _result(issues, ordered)


def _normalize_entries(
    raw_migrations: list[object],
    issues: IssueCollector,
) -> list[MigrationDescriptor]:
    normalized: list[MigrationDescriptor] = []
    seen_ids: set[str] = set()
    seen_orders: set[int] = set()

    for index, entry in enumerate(raw_migrations):
        if not isinstance(entry, Mapping):
            issues.add(
                ManifestErrorCode.MIGRATION_ENTRY_INVALID,
                f"migrations[{index}] must be an object",
                index=index,
            )
            continue

        migration_id = as_trimmed_str(entry.get("id"))
        if not migration_id:
            issues.add(
                ManifestErrorCode.MIGRATION_ID_MISSING,
                f"migrations[{index}] is missing id",
                index=index,
            )
            continue
        if migration_id in seen_ids:
            issues.add(
                ManifestErrorCode.MIGRATION_ID_DUPLICATE,
                f"duplicate migration id: {migration_id}",
                migration_id=migration_id,
            )
            continue
        seen_ids.add(migration_id)

        order = coerce_int(entry.get("order"))
        if order is None or order < 1:
            issues.add(
                ManifestErrorCode.MIGRATION_ORDER_INVALID,
                f"migration {migration_id} has invalid order (must be integer >= 1)",
                migration_id=migration_id,
            )
            continue
        if order in seen_orders:
            issues.add(
                ManifestErrorCode.MIGRATION_ORDER_DUPLICATE,
                f"duplicate migration order: {order}",
                migration_id=migration_id,
                order=order,
            )
            continue
        seen_orders.add(order)

        normalized.append(
            MigrationDescriptor(
                id=migration_id,
                order=order,
                depends_on=normalize_id_list(entry.get("depends_on")),
            )
        )

    return normalized


def _check_dense_orders(
    ordered: tuple[MigrationDescriptor, ...],
    issues: IssueCollector,
) -> None:
    # Only the first gap is reported.
    for position, entry in enumerate(ordered, start=1):
        if entry.order != position:
            issues.add(
                ManifestErrorCode.MIGRATION_ORDER_GAP,
                (
                    f"migration order gap detected at position {position} "
                    f"(expected {position}, got {entry.order})"
                ),
                position=position,
                expected=position,
                actual=entry.order,
            )
            return


def _check_dependencies(
    ordered: tuple[MigrationDescriptor, ...],
    issues: IssueCollector,
) -> None:
    by_id = {entry.id: entry for entry in ordered}
    for entry in ordered:
        for dependency_id in entry.depends_on:
            dependency = by_id.get(dependency_id)
            if dependency is None:
                issues.add(
                    ManifestErrorCode.MIGRATION_DEPENDENCY_UNKNOWN,
                    f"migration {entry.id} depends on unknown migration {dependency_id}",
                    migration_id=entry.id,
                    dependency_id=dependency_id,
                )
                continue
            if dependency.order >= entry.order:
                issues.add(
                    ManifestErrorCode.MIGRATION_DEPENDENCY_ORDER_INVALID,
                    f"migration {entry.id} depends on {dependency_id} with non-lower order",
                    migration_id=entry.id,
                    dependency_id=dependency_id,
                )


def _result(
    issues: IssueCollector,
    ordered: tuple[MigrationDescriptor, ...],
) -> ManifestValidationResult:
    if issues.has_issues:
        return ManifestValidationResult(errors=issues.items(), migrations=())
    return ManifestValidationResult(errors=(), migrations=ordered)


__all__ = [
    "ManifestErrorCode",
    "ManifestValidationResult",
    "MigrationDescriptor",
    "validate_migration_manifest",
]
