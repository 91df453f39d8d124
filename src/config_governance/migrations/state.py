"""
config-governance — migration state document transitions.

File: src/config_governance/migrations/state.py
Last updated: 2026-10-19

Purpose
- Normalize the persisted migration state document and derive successor
  states for checkpoint, success and failure.

Functional requirements
- Every transition is pure: input documents are never mutated.
- A failure records rollback metadata and marks the partial failure active
  until a later successful apply clears it.
- Timestamps are ISO-8601 UTC with a ``Z`` suffix.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, Final

from config_governance.constants import MIGRATION_STATE_SCHEMA_VERSION
from config_governance.documents import as_list, as_trimmed_str, strict_int
from config_governance.migrations.manifest import MigrationDescriptor

MigrationState = dict[str, Any]

CHECKPOINT_IN_PROGRESS: Final[str] = "in_progress"
CHECKPOINT_APPLIED: Final[str] = "applied"
CHECKPOINT_FAILED: Final[str] = "failed"
UNKNOWN_MIGRATION_ERROR: Final[str] = "unknown_migration_error"


def utc_timestamp(moment: datetime | None = None) -> str:
    value = moment if moment is not None else datetime.now(UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def empty_migration_state() -> MigrationState:
    return {
        "_config_version": MIGRATION_STATE_SCHEMA_VERSION,
        "applied": [],
        "last_run": None,
    }


def normalize_migration_state(raw_state: object) -> MigrationState:
    """Project a loosely-typed state document onto the canonical shape."""

    state: Mapping[str, Any] = raw_state if isinstance(raw_state, Mapping) else {}
    version = strict_int(state.get("_config_version"))
    last_checkpoint = state.get("last_checkpoint")
    partial_failure = state.get("partial_failure")
    return {
        "_config_version": version if version is not None and version > 0 else 1,
        "applied": as_list(state.get("applied")),
        "last_run": as_trimmed_str(state.get("last_run")) or None,
        "last_checkpoint": dict(last_checkpoint) if isinstance(last_checkpoint, Mapping) else None,
        "partial_failure": dict(partial_failure) if isinstance(partial_failure, Mapping) else None,
    }


def applied_migration_ids(state: object) -> frozenset[str]:
    """Ids recorded as applied; entries may be bare ids or ``{"id": ...}`` records."""

    ids: set[str] = set()
    for entry in normalize_migration_state(state)["applied"]:
        raw_id = entry.get("id") if isinstance(entry, Mapping) else entry
        migration_id = as_trimmed_str(raw_id)
        if migration_id:
            ids.add(migration_id)
    return frozenset(ids)


def has_active_partial_failure(state: object) -> bool:
    partial_failure = normalize_migration_state(state)["partial_failure"]
    return partial_failure is not None and partial_failure.get("active") is True


def has_in_progress_checkpoint(state: object) -> bool:
    checkpoint = normalize_migration_state(state)["last_checkpoint"]
    return checkpoint is not None and checkpoint.get("status") == CHECKPOINT_IN_PROGRESS


def with_migration_checkpoint(
    state: object,
    migration: MigrationDescriptor,
    backup_path: str | None = None,
    started_at: str | None = None,
) -> MigrationState:
    """Record that ``migration`` has started; clears any previous partial failure."""

    normalized = normalize_migration_state(state)
    normalized["partial_failure"] = None
    normalized["last_checkpoint"] = {
        **_migration_fields(migration),
        "status": CHECKPOINT_IN_PROGRESS,
        "started_at": started_at or utc_timestamp(),
        "backup_path": backup_path or None,
    }
    return normalized


def with_migration_applied(
    state: object,
    migration: MigrationDescriptor,
    record: Mapping[str, Any] | str,
    completed_at: str | None = None,
) -> MigrationState:
    """Append ``record`` to the applied history and close the checkpoint."""

    normalized = normalize_migration_state(state)
    completed = completed_at or utc_timestamp()
    previous = normalized["last_checkpoint"] or {}
    applied_record = dict(record) if isinstance(record, Mapping) else record
    normalized["applied"] = [*normalized["applied"], applied_record]
    normalized["last_run"] = completed
    normalized["partial_failure"] = None
    normalized["last_checkpoint"] = {
        **_migration_fields(migration),
        "status": CHECKPOINT_APPLIED,
        "started_at": previous.get("started_at") or completed,
        "completed_at": completed,
        "backup_path": previous.get("backup_path") or None,
    }
    return normalized


def with_migration_failure(
    state: object,
    migration: MigrationDescriptor,
    error_message: str | None,
    backup_path: str | None = None,
    failed_at: str | None = None,
) -> MigrationState:
    """Mark ``migration`` failed and open an active partial failure needing rollback."""

    normalized = normalize_migration_state(state)
    failed = failed_at or utc_timestamp()
    previous = normalized["last_checkpoint"] or {}
    safe_error = as_trimmed_str(error_message) or UNKNOWN_MIGRATION_ERROR
    rollback_path = backup_path or previous.get("backup_path") or None
    normalized["last_checkpoint"] = {
        **_migration_fields(migration),
        "status": CHECKPOINT_FAILED,
        "started_at": previous.get("started_at") or failed,
        "failed_at": failed,
        "backup_path": rollback_path,
        "error": safe_error,
    }
    normalized["partial_failure"] = {
        "active": True,
        "migration_id": migration.id,
        "order": migration.order,
        "failed_at": failed,
        "error": safe_error,
        "rollback_checkpoint_path": rollback_path,
        "rollback_required": True,
    }
    return normalized


def _migration_fields(migration: MigrationDescriptor) -> dict[str, Any]:
    return {
        "migration_id": migration.id,
        "order": migration.order,
        "depends_on": list(migration.depends_on),
    }


__all__ = [
    "CHECKPOINT_APPLIED",
    "CHECKPOINT_FAILED",
    "CHECKPOINT_IN_PROGRESS",
    "MigrationState",
    "applied_migration_ids",
    "empty_migration_state",
    "has_active_partial_failure",
    "has_in_progress_checkpoint",
    "normalize_migration_state",
    "utc_timestamp",
    "with_migration_applied",
    "with_migration_checkpoint",
    "with_migration_failure",
]
