"""
config-governance — migration apply protocol.

File: src/config_governance/migrations/apply.py
Last updated: 2026-10-19

Purpose
- Stamp a schema version field onto governed JSON documents, one file at a
  time, with per-file outcome reporting.

Functional requirements
- Idempotent: a document that already carries the version field is left alone.
- Writes go through ``atomic_write`` so a crash never leaves a truncated file.
- A failure on one file is reported for that file only; the rest proceed.
- Dry-run performs the identical classification and skips only the write.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

import structlog

from config_governance.constants import CONFIG_VERSION_FIELD
from config_governance.utils.fs import PathLike, atomic_write, render_json_document
from config_governance.validation import JSONValue


class FileAction(StrEnum):
    SKIPPED = "skipped"
    NO_OP = "no_op"
    VERSIONED = "versioned"
    ERROR = "error"


REASON_NOT_FOUND = "not_found"
REASON_ALREADY_VERSIONED = "already_versioned"


@dataclass(frozen=True, slots=True)
class FileResult:
    """Outcome of applying one migration to one file."""

    file: str
    action: FileAction
    reason: str | None = None
    version: int | None = None
    error: str | None = None

    @classmethod
    def skipped(cls, file: str) -> FileResult:
        return cls(file=file, action=FileAction.SKIPPED, reason=REASON_NOT_FOUND)

    @classmethod
    def no_op(cls, file: str) -> FileResult:
        return cls(file=file, action=FileAction.NO_OP, reason=REASON_ALREADY_VERSIONED)

    @classmethod
    def versioned(cls, file: str, version: int) -> FileResult:
        return cls(file=file, action=FileAction.VERSIONED, version=version)

    @classmethod
    def failed(cls, file: str, error: str) -> FileResult:
        return cls(file=file, action=FileAction.ERROR, error=error)

    def to_dict(self) -> dict[str, JSONValue]:
        payload: dict[str, JSONValue] = {"file": self.file, "action": self.action.value}
        if self.reason is not None:
            payload["reason"] = self.reason
        if self.version is not None:
            payload["version"] = self.version
        if self.error is not None:
            payload["error"] = self.error
        return payload


def apply_config_version(
    config_dir: PathLike,
    filenames: Iterable[str],
    *,
    target_version: int = 1,
    version_field: str = CONFIG_VERSION_FIELD,
    dry_run: bool = False,
    logger: Any | None = None,
) -> list[FileResult]:
    """
    Ensure each named document under ``config_dir`` carries ``version_field``.

    Results are returned in ``filenames`` order, one per file.
    """

    log = logger if logger is not None else structlog.get_logger(__name__)
    base = Path(config_dir)
    results: list[FileResult] = []

    for filename in filenames:
        result = _apply_one(
            base / filename,
            filename,
            target_version=target_version,
            version_field=version_field,
            dry_run=dry_run,
        )
        _log_result(log, result, dry_run=dry_run)
        results.append(result)

    return results


def _apply_one(
    path: Path,
    filename: str,
    *,
    target_version: int,
    version_field: str,
    dry_run: bool,
) -> FileResult:
    if not path.exists():
        return FileResult.skipped(filename)

    try:
        document = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(document, Mapping):
            raise ValueError(f"{filename} must contain a JSON object")
        if version_field in document:
            return FileResult.no_op(filename)

        updated = dict(document)
        updated[version_field] = target_version
        if not dry_run:
            atomic_write(path, render_json_document(updated))
    except (OSError, ValueError, RecursionError) as exc:
        return FileResult.failed(filename, str(exc))

    return FileResult.versioned(filename, target_version)


def _log_result(logger: Any, result: FileResult, *, dry_run: bool) -> None:
    if result.action is FileAction.ERROR:
        logger.warning(
            "migration_file_error",
            file=result.file,
            error=result.error,
            dry_run=dry_run,
        )
        return
    logger.debug(
        "migration_file_result",
        file=result.file,
        action=result.action.value,
        reason=result.reason,
        version=result.version,
        dry_run=dry_run,
    )


__all__ = [
    "FileAction",
    "FileResult",
    "REASON_ALREADY_VERSIONED",
    "REASON_NOT_FOUND",
    "apply_config_version",
]
