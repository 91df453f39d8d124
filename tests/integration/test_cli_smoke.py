"""
config-governance — CLI smoke contracts

File: tests/integration/test_cli_smoke.py
Last updated: 2026-10-19

Purpose
- Enforce CLI behavior for validate/plan/dry-run/apply/config against a copy of the
  checked-in governed documents.
- Verify exit codes, command output signals, and persistent migration state side effects.
"""

from __future__ import annotations

import json
import os
import shutil
import subprocess
import sys
from pathlib import Path

import pytest

from config_governance.main import ExitCode, cli_entrypoint

PROJECT_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = PROJECT_ROOT / "src"

pytestmark = pytest.mark.integration


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Copy of ``governance.toml`` plus ``config/`` that tests may mutate."""
    shutil.copytree(PROJECT_ROOT / "config", tmp_path / "config")
    shutil.copy2(PROJECT_ROOT / "governance.toml", tmp_path / "governance.toml")
    return tmp_path


def _run(workspace: Path, *args: str) -> int:
    command, *rest = args
    return cli_entrypoint([command, "--config", str(workspace / "governance.toml"), "--no-color", *rest])


def _read_json(path: Path) -> dict[str, object]:
    return json.loads(path.read_text(encoding="utf-8"))


def test_validate_passes_on_checked_in_documents(
    workspace: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    exit_code = _run(workspace, "validate")

    out = capsys.readouterr().out
    assert exit_code == ExitCode.SUCCESS
    assert "OK  roadmap valid (waves=3, tasks=5, task_edges=5, wave_edges=2)" in out
    assert "OK  mobile alert policy valid" in out
    assert "FAIL" not in out


def test_validate_reports_orphan_and_cycle(
    workspace: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    roadmap_path = workspace / "config" / "roadmap_master.json"
    roadmap = _read_json(roadmap_path)
    tasks = roadmap["tasks"]
    assert isinstance(tasks, list)
    tasks[0]["wave_id"] = "W-MISSING"
    tasks[0]["depends_on"] = [tasks[2]["task_id"]]
    roadmap_path.write_text(json.dumps(roadmap), encoding="utf-8")

    exit_code = _run(workspace, "validate", "--json")

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == ExitCode.VALIDATION_FAILED
    assert payload["ok"] is False
    codes = {error["code"] for error in payload["results"]["roadmap"]["errors"]}
    assert {"TASK_ORPHAN_NO_WAVE", "TASK_CIRCULAR_DEPENDENCY"} <= codes


def test_validate_renders_external_wave_dependency_as_warning(
    workspace: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    roadmap_path = workspace / "config" / "roadmap_master.json"
    roadmap = _read_json(roadmap_path)
    waves = roadmap["waves"]
    assert isinstance(waves, list)
    waves[0]["depends_on"] = ["EXTERNAL-platform"]
    roadmap_path.write_text(json.dumps(roadmap), encoding="utf-8")

    exit_code = _run(workspace, "validate")

    out = capsys.readouterr().out
    assert exit_code == ExitCode.SUCCESS
    assert "roadmap non-fatal findings:" in out
    assert "Warning: WAVE_DEPENDENCY_EXTERNAL: wave W1 has non-wave dependency EXTERNAL-platform" in out


def test_plan_lists_baseline_migration(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = _run(workspace, "plan", "--json")

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == ExitCode.SUCCESS
    assert payload["plan"] == [{"id": "001_baseline_schema_versions", "order": 1, "depends_on": []}]


def test_plan_rejects_unregistered_migration(
    workspace: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    manifest_path = workspace / "config" / "migration_manifest.json"
    manifest = _read_json(manifest_path)
    migrations = manifest["migrations"]
    assert isinstance(migrations, list)
    migrations.append({"id": "002_future", "order": 2, "depends_on": ["001_baseline_schema_versions"]})
    manifest_path.write_text(json.dumps(manifest), encoding="utf-8")

    exit_code = _run(workspace, "plan")

    out = capsys.readouterr().out
    assert exit_code == ExitCode.VALIDATION_FAILED
    assert "migration_registry_missing" in out
    assert "002_future" in out


def test_dry_run_writes_report_and_leaves_documents_untouched(
    workspace: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    hard_bans = workspace / "config" / "hard_bans.json"
    hard_bans.write_text("{}", encoding="utf-8")
    report_path = workspace / "reports" / "dry-run.json"

    exit_code = _run(workspace, "dry-run", "--output", str(report_path))

    out = capsys.readouterr().out
    assert exit_code == ExitCode.SUCCESS
    assert "would_change_files: 1" in out
    assert hard_bans.read_text(encoding="utf-8") == "{}"
    report = _read_json(report_path)
    assert report["totals"] == {
        "pending": 1,
        "already_applied": 0,
        "would_change_files": 1,
        "errors": 0,
    }


def test_dry_run_exits_nonzero_on_file_errors(
    workspace: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    (workspace / "config" / "hard_bans.json").write_text("[]", encoding="utf-8")

    exit_code = _run(workspace, "dry-run", "--json")

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == ExitCode.VALIDATION_FAILED
    assert payload["totals"]["errors"] == 1


def test_dry_run_reports_invalid_manifest_reason(
    workspace: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    manifest_path = workspace / "config" / "migration_manifest.json"
    manifest = _read_json(manifest_path)
    migrations = manifest["migrations"]
    assert isinstance(migrations, list)
    migrations[0]["order"] = 2
    manifest_path.write_text(json.dumps(manifest), encoding="utf-8")

    exit_code = _run(workspace, "dry-run")

    err = capsys.readouterr().err
    assert exit_code == ExitCode.VALIDATION_FAILED
    assert "error: migration manifest is invalid:" in err
    assert "migration_order_gap" in err
    assert "super(" not in err


def test_apply_is_idempotent_and_persists_state(
    workspace: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    hard_bans = workspace / "config" / "hard_bans.json"
    hard_bans.write_text("{}", encoding="utf-8")
    state_path = workspace / "config" / "migration_state.json"

    first_exit = _run(workspace, "apply", "--backup-path", "backups/run-1")
    first_out = capsys.readouterr().out
    state_after_first = _read_json(state_path)
    second_exit = _run(workspace, "apply", "--json")
    second = json.loads(capsys.readouterr().out)

    assert first_exit == ExitCode.SUCCESS
    assert "001_baseline_schema_versions [applied]" in first_out
    assert _read_json(hard_bans) == {"_config_version": 1}
    applied = state_after_first["applied"]
    assert isinstance(applied, list)
    assert [record["id"] for record in applied] == ["001_baseline_schema_versions"]
    checkpoint = state_after_first["last_checkpoint"]
    assert isinstance(checkpoint, dict)
    assert checkpoint["status"] == "applied"
    assert checkpoint["backup_path"] == "backups/run-1"

    assert second_exit == ExitCode.SUCCESS
    assert [entry["status"] for entry in second["migrations"]] == ["already_applied"]
    assert _read_json(state_path)["applied"] == applied


def test_apply_failure_blocks_next_run(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (workspace / "config" / "hard_bans.json").write_text("{broken", encoding="utf-8")
    state_path = workspace / "config" / "migration_state.json"

    first_exit = _run(workspace, "apply")
    capsys.readouterr()
    state = _read_json(state_path)
    second_exit = _run(workspace, "apply")
    captured = capsys.readouterr()

    assert first_exit == ExitCode.VALIDATION_FAILED
    partial_failure = state["partial_failure"]
    assert isinstance(partial_failure, dict)
    assert partial_failure["active"] is True
    assert partial_failure["rollback_required"] is True
    assert second_exit == ExitCode.VALIDATION_FAILED
    assert "partial failure" in captured.err


def test_config_command_prints_effective_config(
    workspace: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    exit_code = _run(workspace, "config", "--json", "--log-level", "DEBUG")

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == ExitCode.SUCCESS
    assert payload["config"]["observability"]["log_level"] == "DEBUG"
    assert payload["config"]["paths"]["config_dir"] == (workspace / "config").resolve().as_posix()


def test_config_dir_flag_overrides_document_directory(
    workspace: Path,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    other = tmp_path / "other"
    other.mkdir()

    exit_code = _run(workspace, "config", "--json", "--config-dir", str(other))

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == ExitCode.SUCCESS
    assert payload["config"]["paths"]["config_dir"] == other.resolve().as_posix()


def test_missing_config_file_is_a_config_error(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    exit_code = cli_entrypoint(["validate", "--config", str(tmp_path / "absent.toml")])

    assert exit_code == ExitCode.CONFIG_ERROR
    assert "config file not found" in capsys.readouterr().err


def test_missing_policy_document_is_a_config_error(
    workspace: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    (workspace / "config" / "compatibility_policy.json").unlink()

    exit_code = _run(workspace, "validate")

    assert exit_code == ExitCode.CONFIG_ERROR
    assert "compatibility_policy.json" in capsys.readouterr().err


def test_module_entrypoint_runs_in_subprocess(workspace: Path) -> None:
    env = os.environ.copy()
    existing_pythonpath = env.get("PYTHONPATH")
    src_pythonpath = str(SRC_PATH)
    env["PYTHONPATH"] = (
        src_pythonpath if not existing_pythonpath else f"{src_pythonpath}{os.pathsep}{existing_pythonpath}"
    )
    env["NO_COLOR"] = "1"

    completed = subprocess.run(
        [sys.executable, "-m", "config_governance", "validate", "--json", "--log-level", "ERROR"],
        cwd=workspace,
        env=env,
        capture_output=True,
        text=True,
        check=False,
    )

    assert completed.returncode == 0, completed.stderr
    assert json.loads(completed.stdout)["ok"] is True
