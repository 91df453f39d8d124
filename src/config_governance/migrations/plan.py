"""
config-governance — migration execution plan builder.

File: src/config_governance/migrations/plan.py
Last updated: 2026-10-19

Purpose
- Turn a validated manifest into a deterministic, dependency-respecting plan
  and cross-check it against the migrations implemented at runtime.

Functional requirements
- Plan order depends only on manifest content, never on input array order.
- A manifest id with no registered handler rejects the whole plan.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import structlog

from config_governance.migrations.manifest import (
    MigrationDescriptor,
    validate_migration_manifest,
)
from config_governance.validation import IssueCollector, JSONValue, ValidationIssue

if TYPE_CHECKING:
    from config_governance.migrations.apply import FileResult


class PlanErrorCode(StrEnum):
    MIGRATION_REGISTRY_MISSING = "migration_registry_missing"


@dataclass(frozen=True, slots=True)
class MigrationOptions:
    dry_run: bool = False


@runtime_checkable
class MigrationHandler(Protocol):
    """A migration implemented at runtime, keyed by ``migration_id`` in a registry."""

    migration_id: str
    description: str

    def run(self, config_dir: Path, options: MigrationOptions) -> list[FileResult]: ...


@dataclass(frozen=True, slots=True)
class ExecutionPlan:
    """Plan outcome; ``plan`` is empty unless ``ok``."""

    errors: tuple[ValidationIssue, ...]
    plan: tuple[MigrationDescriptor, ...]

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "ok": self.ok,
            "errors": [issue.to_dict() for issue in self.errors],
            "plan": [migration.to_dict() for migration in self.plan],
        }


def build_migration_execution_plan(
    manifest: object,
    registry: Mapping[str, MigrationHandler],
    *,
    logger: Any | None = None,
) -> ExecutionPlan:
    """Validate ``manifest`` and gate it on every id having a handler in ``registry``."""

    log = logger if logger is not None else structlog.get_logger(__name__)

    validation = validate_migration_manifest(manifest)
    if not validation.ok:
        log.warning(
            "migration_plan_rejected",
            reason="manifest_invalid",
            codes=[str(issue.code) for issue in validation.errors],
        )
        return ExecutionPlan(errors=validation.errors, plan=())

    issues = IssueCollector()
    for migration in validation.migrations:
        if migration.id not in registry:
            issues.add(
                PlanErrorCode.MIGRATION_REGISTRY_MISSING,
                f"migration {migration.id} is declared in manifest but missing from runtime registry",
                migration_id=migration.id,
            )

    if issues.has_issues:
        log.warning(
            "migration_plan_rejected",
            reason="registry_missing",
            missing=[issue.extra["migration_id"] for issue in issues.items()],
        )
        return ExecutionPlan(errors=issues.items(), plan=())

    log.info(
        "migration_plan_built",
        plan_size=len(validation.migrations),
        migration_ids=[migration.id for migration in validation.migrations],
    )
    return ExecutionPlan(errors=(), plan=validation.migrations)


__all__ = [
    "ExecutionPlan",
    "MigrationHandler",
    "MigrationOptions",
    "PlanErrorCode",
    "build_migration_execution_plan",
]
