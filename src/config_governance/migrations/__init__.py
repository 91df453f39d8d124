"""
config-governance — schema migrations

File: src/config_governance/migrations/__init__.py
Last updated: 2026-10-19

Purpose
- Manifest validation, execution planning, the apply protocol and the runner
  that threads migration state through a run.
"""

from __future__ import annotations

from config_governance.migrations.apply import FileAction, FileResult, apply_config_version
from config_governance.migrations.baseline import BaselineSchemaVersions, default_registry
from config_governance.migrations.manifest import (
    ManifestErrorCode,
    ManifestValidationResult,
    MigrationDescriptor,
    validate_migration_manifest,
)
from config_governance.migrations.plan import (
    ExecutionPlan,
    MigrationHandler,
    MigrationOptions,
    PlanErrorCode,
    build_migration_execution_plan,
)
from config_governance.migrations.runner import (
    MigrationPlanError,
    MigrationRunOutcome,
    MigrationStateError,
    build_dry_run_report,
    run_pending_migrations,
    summarize_file_results,
)

__all__ = [
    "BaselineSchemaVersions",
    "ExecutionPlan",
    "FileAction",
    "FileResult",
    "ManifestErrorCode",
    "ManifestValidationResult",
    "MigrationDescriptor",
    "MigrationHandler",
    "MigrationOptions",
    "MigrationPlanError",
    "MigrationRunOutcome",
    "MigrationStateError",
    "PlanErrorCode",
    "apply_config_version",
    "build_dry_run_report",
    "build_migration_execution_plan",
    "default_registry",
    "run_pending_migrations",
    "summarize_file_results",
]
