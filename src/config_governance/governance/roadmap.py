"""
config-governance — roadmap graph validator.

File: src/config_governance/governance/roadmap.py
Last updated: 2026-10-19

Purpose
- Validate a roadmap master document: tasks grouped into waves, tasks
  depending on tasks, waves depending on waves, and optional tracks of line
  items.

Functional requirements
- Every structural violation is reported; orphan tasks and dependency cycles
  are reported side by side.
- Dependencies on unknown waves are warnings, not errors.
- Cycles are reported as closed paths, e.g. ``A -> B -> C -> A``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from config_governance.constants import ROADMAP_MODES
from config_governance.documents import as_list, as_trimmed_str
from config_governance.planning.dependency_graph import DependencyGraph
from config_governance.validation import IssueCollector, JSONValue, ValidationIssue


class RoadmapErrorCode(StrEnum):
    ROADMAP_INVALID_ROOT = "ROADMAP_INVALID_ROOT"
    ROADMAP_NO_WAVES = "ROADMAP_NO_WAVES"
    ROADMAP_NO_TASKS = "ROADMAP_NO_TASKS"
    WAVE_MISSING_ID = "WAVE_MISSING_ID"
    WAVE_DUPLICATE_ID = "WAVE_DUPLICATE_ID"
    TASK_MISSING_ID = "TASK_MISSING_ID"
    TASK_DUPLICATE_ID = "TASK_DUPLICATE_ID"
    TASK_ORPHAN_NO_WAVE = "TASK_ORPHAN_NO_WAVE"
    TASK_DEPENDENCY_MISSING = "TASK_DEPENDENCY_MISSING"
    TASK_SELF_DEPENDENCY = "TASK_SELF_DEPENDENCY"
    TASK_CIRCULAR_DEPENDENCY = "TASK_CIRCULAR_DEPENDENCY"
    WAVE_CIRCULAR_DEPENDENCY = "WAVE_CIRCULAR_DEPENDENCY"
    TASK_INVALID_MODE = "TASK_INVALID_MODE"
    TRACK_INVALID_MODE = "TRACK_INVALID_MODE"
    TRACK_LINE_ITEM_INVALID = "TRACK_LINE_ITEM_INVALID"


class RoadmapWarningCode(StrEnum):
    WAVE_DEPENDENCY_EXTERNAL = "WAVE_DEPENDENCY_EXTERNAL"


@dataclass(frozen=True, slots=True)
class RoadmapValidationResult:
    errors: tuple[ValidationIssue, ...]
    warnings: tuple[ValidationIssue, ...] = ()
    stats: Mapping[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def codes(self) -> frozenset[str]:
        return frozenset(str(issue.code) for issue in self.errors)

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "ok": self.ok,
            "errors": [issue.to_dict() for issue in self.errors],
            "warnings": [issue.to_dict() for issue in self.warnings],
            "stats": dict(self.stats),
        }


def validate_roadmap_master(roadmap: object) -> RoadmapValidationResult:
    """Validate the wave/task/track structure of ``roadmap``."""

    if not isinstance(roadmap, Mapping):
        errors = IssueCollector()
        errors.add(RoadmapErrorCode.ROADMAP_INVALID_ROOT, "roadmap_master must be an object")
        return RoadmapValidationResult(
            errors=errors.items(),
            stats={"waves": 0, "tasks": 0, "task_edges": 0, "wave_edges": 0},
        )

    errors = IssueCollector()
    warnings = IssueCollector()
    waves = as_list(roadmap.get("waves"))
    tasks = as_list(roadmap.get("tasks"))

    if not waves:
        errors.add(RoadmapErrorCode.ROADMAP_NO_WAVES, "roadmap_master.waves must be non-empty")
    if not tasks:
        errors.add(RoadmapErrorCode.ROADMAP_NO_TASKS, "roadmap_master.tasks must be non-empty")

    wave_entries = _index_waves(waves, errors)
    task_entries = _index_tasks(tasks, set(wave_entries), errors)

    task_graph = _build_task_graph(task_entries, errors)
    for cycle in task_graph.detect_cycles():
        errors.add(
            RoadmapErrorCode.TASK_CIRCULAR_DEPENDENCY,
            f"circular task dependency detected: {' -> '.join(cycle)}",
            cycle=list(cycle),
        )

    wave_graph = _build_wave_graph(wave_entries, warnings)
    for cycle in wave_graph.detect_cycles():
        errors.add(
            RoadmapErrorCode.WAVE_CIRCULAR_DEPENDENCY,
            f"circular wave dependency detected: {' -> '.join(cycle)}",
            cycle=list(cycle),
        )

    _check_task_modes(tasks, errors)
    _check_tracks(as_list(roadmap.get("tracks")), errors)

    return RoadmapValidationResult(
        errors=errors.items(),
        warnings=warnings.items(),
        stats={
            "waves": len(waves),
            "tasks": len(tasks),
            "task_edges": task_graph.edge_count,
            "wave_edges": wave_graph.edge_count,
        },
    )


def _index_waves(waves: list[Any], errors: IssueCollector) -> dict[str, Mapping[str, Any]]:
    # First occurrence of a duplicated id wins.
    entries: dict[str, Mapping[str, Any]] = {}
    for wave in waves:
        wave_id = as_trimmed_str(wave.get("wave_id")) if isinstance(wave, Mapping) else ""
        if not wave_id:
            errors.add(RoadmapErrorCode.WAVE_MISSING_ID, "wave missing wave_id")
            continue
        if wave_id in entries:
            errors.add(
                RoadmapErrorCode.WAVE_DUPLICATE_ID,
                f"duplicate wave_id: {wave_id}",
                wave_id=wave_id,
            )
            continue
        entries[wave_id] = wave
    return entries


def _index_tasks(
    tasks: list[Any],
    wave_ids: set[str],
    errors: IssueCollector,
) -> dict[str, Mapping[str, Any]]:
    entries: dict[str, Mapping[str, Any]] = {}
    for task in tasks:
        task_id = as_trimmed_str(task.get("task_id")) if isinstance(task, Mapping) else ""
        if not task_id:
            errors.add(RoadmapErrorCode.TASK_MISSING_ID, "task missing task_id")
            continue
        if task_id in entries:
            errors.add(
                RoadmapErrorCode.TASK_DUPLICATE_ID,
                f"duplicate task_id: {task_id}",
                task_id=task_id,
            )
            continue
        entries[task_id] = task

        wave_id = as_trimmed_str(task.get("wave_id"))
        if not wave_id or wave_id not in wave_ids:
            errors.add(
                RoadmapErrorCode.TASK_ORPHAN_NO_WAVE,
                f"task {task_id} is not attached to a known wave",
                task_id=task_id,
                wave_id=wave_id or None,
            )
    return entries


def _build_task_graph(
    task_entries: Mapping[str, Mapping[str, Any]],
    errors: IssueCollector,
) -> DependencyGraph:
    adjacency: dict[str, list[str]] = {}
    for task_id, task in task_entries.items():
        dependencies: list[str] = []
        for raw_dependency in as_list(task.get("depends_on")):
            dependency_id = as_trimmed_str(raw_dependency)
            if not dependency_id:
                continue
            if dependency_id not in task_entries:
                errors.add(
                    RoadmapErrorCode.TASK_DEPENDENCY_MISSING,
                    f"task {task_id} depends on unknown task {dependency_id}",
                    task_id=task_id,
                    dependency_id=dependency_id,
                )
                continue
            if dependency_id == task_id:
                errors.add(
                    RoadmapErrorCode.TASK_SELF_DEPENDENCY,
                    f"task {task_id} cannot depend on itself",
                    task_id=task_id,
                )
                continue
            dependencies.append(dependency_id)
        adjacency[task_id] = dependencies
    return DependencyGraph.from_mapping(adjacency)


def _build_wave_graph(
    wave_entries: Mapping[str, Mapping[str, Any]],
    warnings: IssueCollector,
) -> DependencyGraph:
    adjacency: dict[str, list[str]] = {}
    for wave_id, wave in wave_entries.items():
        dependencies: list[str] = []
        for raw_dependency in as_list(wave.get("depends_on")):
            dependency_id = as_trimmed_str(raw_dependency)
            if not dependency_id:
                continue
            if dependency_id not in wave_entries:
                warnings.add(
                    RoadmapWarningCode.WAVE_DEPENDENCY_EXTERNAL,
                    f"wave {wave_id} has non-wave dependency {dependency_id}",
                    wave_id=wave_id,
                    dependency_id=dependency_id,
                )
                continue
            dependencies.append(dependency_id)
        adjacency[wave_id] = dependencies
    return DependencyGraph.from_mapping(adjacency)


def _check_task_modes(tasks: list[Any], errors: IssueCollector) -> None:
    # Every entry is checked, including duplicates and entries without an id.
    for task in tasks:
        entry = task if isinstance(task, Mapping) else {}
        task_id = as_trimmed_str(entry.get("task_id")) or "unknown"
        mode = entry.get("mode")
        if mode not in ROADMAP_MODES:
            errors.add(
                RoadmapErrorCode.TASK_INVALID_MODE,
                f"task {task_id} has invalid mode: {mode}",
                task_id=task_id,
            )


def _check_tracks(tracks: list[Any], errors: IssueCollector) -> None:
    for track in tracks:
        if not isinstance(track, Mapping):
            continue
        line_items = as_list(track.get("line_items"))
        if not line_items:
            continue
        track_id = as_trimmed_str(track.get("track_id")) or "unknown"
        mode = track.get("mode")
        if mode not in ROADMAP_MODES:
            errors.add(
                RoadmapErrorCode.TRACK_INVALID_MODE,
                f"track {track_id} has invalid mode {mode}",
                track_id=track_id,
            )
        for index, line_item in enumerate(line_items):
            item_id = as_trimmed_str(line_item.get("item_id")) if isinstance(line_item, Mapping) else ""
            if not item_id:
                errors.add(
                    RoadmapErrorCode.TRACK_LINE_ITEM_INVALID,
                    "track line item missing item_id",
                    track_id=track_id,
                    index=index,
                )


__all__ = [
    "RoadmapErrorCode",
    "RoadmapValidationResult",
    "RoadmapWarningCode",
    "validate_roadmap_master",
]
