"""
config-governance — migration runner and dry-run report.

File: src/config_governance/migrations/runner.py
Last updated: 2026-10-19

Purpose
- Drive registered migrations in plan order, either as a dry run that reports
  what would change or as a real apply that threads the migration state
  document through checkpoint, success and failure transitions.

Functional requirements
- Both entry points refuse to work from an invalid plan (``MigrationPlanError``).
- Dry runs never modify files.
- A real run stops at the first migration reporting a file error; the
  returned state records the partial failure and the caller persists it.
- A real run refuses to start while a partial failure or in-progress
  checkpoint is recorded (``MigrationStateError``).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

import structlog

from config_governance.migrations.apply import FileAction, FileResult
from config_governance.migrations.manifest import MigrationDescriptor
from config_governance.migrations.plan import (
    ExecutionPlan,
    MigrationHandler,
    MigrationOptions,
    build_migration_execution_plan,
)
from config_governance.migrations.state import (
    MigrationState,
    applied_migration_ids,
    has_active_partial_failure,
    has_in_progress_checkpoint,
    normalize_migration_state,
    utc_timestamp,
    with_migration_applied,
    with_migration_checkpoint,
    with_migration_failure,
)
from config_governance.utils.fs import PathLike
from config_governance.validation import JSONValue, ValidationIssue, render_issues


class MigrationPlanError(ValueError):
    """Raised when a run or report is requested from an invalid plan."""

    def __init__(self, issues: tuple[ValidationIssue, ...]) -> None:
        self.issues = issues
        super().__init__(f"migration manifest is invalid:\n{render_issues(issues)}")


class MigrationStateError(RuntimeError):
    """Raised when the recorded migration state forbids starting a run."""


class MigrationStatus(StrEnum):
    ALREADY_APPLIED = "already_applied"
    DRY_RUN_COMPLETE = "dry_run_complete"
    APPLIED = "applied"
    FAILED = "failed"
    NOT_RUN = "not_run"
    ERROR = "error"


_SUMMARY_KEYS: tuple[str, ...] = ("would_version", "versioned", "no_op", "skipped", "error")


def summarize_file_results(results: Iterable[FileResult], *, dry_run: bool) -> dict[str, int]:
    """
    Count per-file actions.

    In a dry run, ``versioned`` results count as ``would_version`` because no
    file was written.
    """

    summary = dict.fromkeys(_SUMMARY_KEYS, 0)
    for result in results:
        if result.action is FileAction.VERSIONED:
            summary["would_version" if dry_run else "versioned"] += 1
        elif result.action is FileAction.NO_OP:
            summary["no_op"] += 1
        elif result.action is FileAction.SKIPPED:
            summary["skipped"] += 1
        elif result.action is FileAction.ERROR:
            summary["error"] += 1
    return summary


@dataclass(frozen=True, slots=True)
class MigrationRunRecord:
    migration: MigrationDescriptor
    status: MigrationStatus
    results: tuple[FileResult, ...] = ()
    dry_run: bool = False

    @property
    def summary(self) -> dict[str, int]:
        return summarize_file_results(self.results, dry_run=self.dry_run)

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "id": self.migration.id,
            "order": self.migration.order,
            "depends_on": list(self.migration.depends_on),
            "status": self.status.value,
            "summary": dict(self.summary),
            "result": [result.to_dict() for result in self.results],
        }


@dataclass(frozen=True, slots=True)
class MigrationRunOutcome:
    """State to persist plus one record per planned migration."""

    state: MigrationState
    migrations: tuple[MigrationRunRecord, ...]

    @property
    def ok(self) -> bool:
        return all(
            record.status in (MigrationStatus.APPLIED, MigrationStatus.ALREADY_APPLIED)
            for record in self.migrations
        )

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "ok": self.ok,
            "migrations": [record.to_dict() for record in self.migrations],
            "state": self.state,
        }


def build_dry_run_report(
    config_dir: PathLike,
    manifest: object,
    state: object,
    registry: Mapping[str, MigrationHandler],
    *,
    logger: Any | None = None,
) -> dict[str, JSONValue]:
    """Run every pending migration with ``dry_run=True`` and report the outcome."""

    log = logger if logger is not None else structlog.get_logger(__name__)
    plan = _require_plan(manifest, registry, log)
    applied = applied_migration_ids(state)
    base = Path(config_dir)

    totals = {"pending": 0, "already_applied": 0, "would_change_files": 0, "errors": 0}
    records: list[MigrationRunRecord] = []
    options = MigrationOptions(dry_run=True)

    for migration in plan.plan:
        if migration.id in applied:
            records.append(
                MigrationRunRecord(migration, MigrationStatus.ALREADY_APPLIED, dry_run=True)
            )
            totals["already_applied"] += 1
            continue

        results = tuple(registry[migration.id].run(base, options))
        summary = summarize_file_results(results, dry_run=True)
        status = MigrationStatus.ERROR if summary["error"] else MigrationStatus.DRY_RUN_COMPLETE
        records.append(MigrationRunRecord(migration, status, results, dry_run=True))
        totals["pending"] += 1
        totals["would_change_files"] += summary["would_version"]
        totals["errors"] += summary["error"]

    log.info("migration_dry_run_complete", plan_size=len(plan.plan), **totals)
    return {
        "generated_at": utc_timestamp(),
        "config_dir": str(base),
        "plan_size": len(plan.plan),
        "totals": dict(totals),
        "migrations": [record.to_dict() for record in records],
    }


def run_pending_migrations(
    config_dir: PathLike,
    manifest: object,
    state: object,
    registry: Mapping[str, MigrationHandler],
    *,
    backup_path: str | None = None,
    logger: Any | None = None,
) -> MigrationRunOutcome:
    """Apply pending migrations in plan order and return the successor state."""

    log = logger if logger is not None else structlog.get_logger(__name__)
    if has_active_partial_failure(state):
        raise MigrationStateError(
            "migration state records an active partial failure; roll back before re-running"
        )
    if has_in_progress_checkpoint(state):
        raise MigrationStateError(
            "migration state records an in-progress checkpoint; a previous run was interrupted"
        )

    plan = _require_plan(manifest, registry, log)
    current = normalize_migration_state(state)
    applied = applied_migration_ids(current)
    base = Path(config_dir)
    options = MigrationOptions(dry_run=False)
    records: list[MigrationRunRecord] = []
    halted = False

    for migration in plan.plan:
        if halted:
            records.append(MigrationRunRecord(migration, MigrationStatus.NOT_RUN))
            continue
        if migration.id in applied:
            records.append(MigrationRunRecord(migration, MigrationStatus.ALREADY_APPLIED))
            continue

        handler = registry[migration.id]
        current = with_migration_checkpoint(current, migration, backup_path)
        results = tuple(handler.run(base, options))
        failures = [result for result in results if result.action is FileAction.ERROR]

        if failures:
            message = "; ".join(f"{result.file}: {result.error}" for result in failures)
            current = with_migration_failure(current, migration, message, backup_path)
            records.append(MigrationRunRecord(migration, MigrationStatus.FAILED, results))
            log.error(
                "migration_failed",
                migration_id=migration.id,
                order=migration.order,
                failed_files=[result.file for result in failures],
            )
            halted = True
            continue

        completed_at = utc_timestamp()
        applied_record = {
            "id": migration.id,
            "order": migration.order,
            "depends_on": list(migration.depends_on),
            "applied_at": completed_at,
            "affected_configs": [result.file for result in results],
            "result": [result.to_dict() for result in results],
        }
        current = with_migration_applied(current, migration, applied_record, completed_at)
        records.append(MigrationRunRecord(migration, MigrationStatus.APPLIED, results))
        log.info(
            "migration_applied",
            migration_id=migration.id,
            order=migration.order,
            **summarize_file_results(results, dry_run=False),
        )

    return MigrationRunOutcome(state=current, migrations=tuple(records))


def _require_plan(
    manifest: object,
    registry: Mapping[str, MigrationHandler],
    logger: Any,
) -> ExecutionPlan:
    plan = build_migration_execution_plan(manifest, registry, logger=logger)
    if not plan.ok:
        raise MigrationPlanError(plan.errors)
    return plan


__all__ = [
    "MigrationPlanError",
    "MigrationRunOutcome",
    "MigrationRunRecord",
    "MigrationStateError",
    "MigrationStatus",
    "build_dry_run_report",
    "run_pending_migrations",
    "summarize_file_results",
]
