"""Command-line interface router for config-governance."""

from __future__ import annotations

import argparse
import json
import sys
import uuid
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final

from config_governance.config import (
    ConfigLoadError,
    ConfigValidationError,
    dump_effective_config,
    load_config,
)
from config_governance.documents import load_document, load_optional_document
from config_governance.governance import (
    validate_compatibility_policy,
    validate_connector_admission_policy,
    validate_connector_auth_mode_policy,
    validate_esign_provider_policy,
    validate_mobile_alert_policy,
    validate_module_lifecycle_policy,
    validate_module_request_intake_template,
    validate_roadmap_master,
)
from config_governance.migrations import (
    MigrationPlanError,
    MigrationStateError,
    build_dry_run_report,
    build_migration_execution_plan,
    default_registry,
    run_pending_migrations,
)
from config_governance.migrations.state import empty_migration_state
from config_governance.observability import correlation_scope, setup_logging
from config_governance.ui.render import CLIRenderer, create_renderer
from config_governance.utils.fs import atomic_write, atomic_write_json, render_json_document

EXIT_VALIDATION_FAILED: Final[int] = 1
EXIT_CONFIG_ERROR: Final[int] = 2


class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    def __init__(self, message: str, exit_code: int = EXIT_VALIDATION_FAILED) -> None:
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class _PolicyCheck:
    kind: str
    path_key: str
    validator: Callable[[object], Any]


POLICY_CHECKS: Final[tuple[_PolicyCheck, ...]] = (
    _PolicyCheck("roadmap", "roadmap", validate_roadmap_master),
    _PolicyCheck("module lifecycle policy", "module_lifecycle_policy", validate_module_lifecycle_policy),
    _PolicyCheck(
        "module request intake template",
        "intake_template",
        validate_module_request_intake_template,
    ),
    _PolicyCheck(
        "connector auth mode policy",
        "connector_auth_policy",
        validate_connector_auth_mode_policy,
    ),
    _PolicyCheck(
        "connector admission policy",
        "connector_admission_policy",
        validate_connector_admission_policy,
    ),
    _PolicyCheck("e-sign provider policy", "esign_policy", validate_esign_provider_policy),
    _PolicyCheck("mobile alert policy", "mobile_alert_policy", validate_mobile_alert_policy),
    _PolicyCheck("compatibility policy", "compatibility_policy", validate_compatibility_policy),
)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router for all supported CLI workflows."""

    parser = argparse.ArgumentParser(
        prog="config-governance",
        description=(
            "config-governance — validate and migrate versioned configuration documents.\n\n"
            "Common workflows:\n"
            "  config-governance validate       Validate roadmap and policy documents\n"
            "  config-governance plan           Show the migration execution plan\n"
            "  config-governance dry-run        Report what pending migrations would change\n"
            "  config-governance apply          Apply pending migrations\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to governance TOML config (default: ./governance.toml if present).",
    )
    common.add_argument(
        "--config-dir",
        dest="config_dir",
        default=None,
        help="Override the directory holding governed config documents.",
    )
    common.add_argument(
        "--log-level",
        dest="log_level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default=None,
        help="Override observability.log_level.",
    )
    common.add_argument(
        "--log-format",
        dest="log_format",
        choices=("json", "text"),
        default=None,
        help="Override observability.log_format.",
    )
    common.add_argument("--json", action="store_true", help="Emit deterministic JSON output")
    common.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=False,
        help="Show detailed output.",
    )
    common.add_argument(
        "--no-color",
        action="store_true",
        default=False,
        help="Disable colored output (also respects NO_COLOR env var).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # validate ------------------------------------------------------------
    validate_parser = subparsers.add_parser(
        "validate",
        parents=[common],
        help="Validate the roadmap master and every governance policy document",
    )
    validate_parser.set_defaults(handler=_cmd_validate)

    # plan ----------------------------------------------------------------
    plan_parser = subparsers.add_parser(
        "plan",
        parents=[common],
        help="Validate the migration manifest and print the execution plan",
    )
    plan_parser.set_defaults(handler=_cmd_plan)

    # dry-run -------------------------------------------------------------
    dry_run_parser = subparsers.add_parser(
        "dry-run",
        parents=[common],
        help="Run pending migrations without writing and report what would change",
        description=(
            "Build a migration dry-run report. Config files are never modified.\n\n"
            "Examples:\n"
            "  config-governance dry-run\n"
            "  config-governance dry-run --output reports/migration-dry-run.json\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    dry_run_parser.add_argument("--output", default=None, help="Also write the JSON report here")
    dry_run_parser.set_defaults(handler=_cmd_dry_run)

    # apply ---------------------------------------------------------------
    apply_parser = subparsers.add_parser(
        "apply",
        parents=[common],
        help="Apply pending migrations and persist the migration state",
    )
    apply_parser.add_argument(
        "--backup-path",
        default=None,
        help="Rollback checkpoint location recorded in the migration state.",
    )
    apply_parser.set_defaults(handler=_cmd_apply)

    # config --------------------------------------------------------------
    config_parser = subparsers.add_parser(
        "config",
        parents=[common],
        help="Print the effective configuration",
    )
    config_parser.set_defaults(handler=_cmd_config)

    return parser


# ---------------------------------------------------------------------------
# Entrypoints
# ---------------------------------------------------------------------------


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        config = _load_effective_config(namespace)
        setup_logging(config["observability"])
        with correlation_scope(run_id=uuid.uuid4().hex, command=namespace.command):
            result = handler(namespace, config)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    return int(result)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_validate(args: argparse.Namespace, config: Mapping[str, Any]) -> int:
    paths = config["paths"]
    results: list[tuple[_PolicyCheck, Any]] = []
    for check in POLICY_CHECKS:
        document = load_document(paths[check.path_key])
        results.append((check, check.validator(document)))

    all_ok = all(result.ok for _, result in results)
    if _flag(args, "json"):
        _emit_json(
            {
                "command": "validate",
                "ok": all_ok,
                "results": {check.kind: result.to_dict() for check, result in results},
            }
        )
        return 0 if all_ok else EXIT_VALIDATION_FAILED

    renderer = _get_renderer(args)
    for check, result in results:
        if result.ok:
            label = f"{check.kind} valid"
            stats = getattr(result, "stats", None)
            if stats:
                label += " (" + ", ".join(f"{key}={value}" for key, value in stats.items()) + ")"
            renderer.ok(label)
            continue
        renderer.fail(f"{check.kind} validation failed:")
        renderer.issues(result.errors)

    for check, result in results:
        warnings = getattr(result, "warnings", ())
        if warnings:
            renderer.section(f"{check.kind} non-fatal findings:")
            for issue in warnings:
                renderer.warning(f"{issue.code}: {issue.message}")

    return 0 if all_ok else EXIT_VALIDATION_FAILED


def _cmd_plan(args: argparse.Namespace, config: Mapping[str, Any]) -> int:
    manifest = load_document(config["paths"]["manifest"])
    plan = build_migration_execution_plan(manifest, _registry(config))

    if _flag(args, "json"):
        _emit_json({"command": "plan", **plan.to_dict()})
        return 0 if plan.ok else EXIT_VALIDATION_FAILED

    renderer = _get_renderer(args)
    if not plan.ok:
        renderer.fail("migration manifest is invalid:")
        renderer.issues(plan.errors)
        return EXIT_VALIDATION_FAILED

    renderer.table(
        ("order", "id", "depends_on"),
        [
            (str(migration.order), migration.id, ", ".join(migration.depends_on) or "-")
            for migration in plan.plan
        ],
        title="Migration execution plan:",
    )
    return 0


def _cmd_dry_run(args: argparse.Namespace, config: Mapping[str, Any]) -> int:
    paths = config["paths"]
    manifest = load_document(paths["manifest"])
    state = load_optional_document(paths["migration_state"], empty_migration_state())

    try:
        report = build_dry_run_report(paths["config_dir"], manifest, state, _registry(config))
    except MigrationPlanError as exc:
        raise CLIError(str(exc)) from exc

    output = getattr(args, "output", None)
    if isinstance(output, str) and output:
        output_path = Path(output).expanduser()
        output_path.parent.mkdir(parents=True, exist_ok=True)
        atomic_write(output_path, render_json_document(report))

    totals = report["totals"]
    has_errors = isinstance(totals, Mapping) and bool(totals.get("errors"))
    exit_code = EXIT_VALIDATION_FAILED if has_errors else 0

    if _flag(args, "json"):
        print(render_json_document(report), end="")
        return exit_code

    renderer = _get_renderer(args)
    renderer.heading("Migration dry run (no files modified)")
    renderer.kv("Config dir", report["config_dir"])
    renderer.kv("Plan size", report["plan_size"])
    if isinstance(totals, Mapping):
        for key in ("pending", "already_applied", "would_change_files", "errors"):
            renderer.kv(key, totals.get(key, 0))
    rows: list[tuple[str, ...]] = []
    migrations = report["migrations"]
    for entry in migrations if isinstance(migrations, list) else []:
        if not isinstance(entry, Mapping):
            continue
        summary = entry.get("summary")
        summary = summary if isinstance(summary, Mapping) else {}
        rows.append(
            (
                str(entry.get("order")),
                str(entry.get("id")),
                str(entry.get("status")),
                str(summary.get("would_version", 0)),
                str(summary.get("error", 0)),
            )
        )
    renderer.table(("order", "id", "status", "would_version", "errors"), rows, title="Migrations:")
    return exit_code


def _cmd_apply(args: argparse.Namespace, config: Mapping[str, Any]) -> int:
    paths = config["paths"]
    manifest = load_document(paths["manifest"])
    state_path = Path(paths["migration_state"])
    state = load_optional_document(state_path, empty_migration_state())

    try:
        outcome = run_pending_migrations(
            paths["config_dir"],
            manifest,
            state,
            _registry(config),
            backup_path=getattr(args, "backup_path", None),
        )
    except (MigrationPlanError, MigrationStateError) as exc:
        raise CLIError(str(exc)) from exc

    atomic_write_json(state_path, outcome.state)
    exit_code = 0 if outcome.ok else EXIT_VALIDATION_FAILED

    if _flag(args, "json"):
        _emit_json({"command": "apply", **outcome.to_dict()})
        return exit_code

    renderer = _get_renderer(args)
    for record in outcome.migrations:
        label = f"{record.migration.id} [{record.status.value}]"
        if record.status.value in ("applied", "already_applied"):
            renderer.ok(label)
        else:
            renderer.fail(label)
        if renderer.verbose:
            renderer.items([f"{result.file}: {result.action.value}" for result in record.results])
    renderer.kv("Migration state", state_path.as_posix())
    return exit_code


def _cmd_config(args: argparse.Namespace, config: Mapping[str, Any]) -> int:
    if _flag(args, "json"):
        _emit_json({"command": "config", "config": dict(config)})
        return 0

    _get_renderer(args).text(dump_effective_config(config))
    return 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _emit_json(payload: Mapping[str, object]) -> None:
    """Emit a JSON payload to stdout with deterministic formatting."""

    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


def _get_renderer(args: argparse.Namespace) -> CLIRenderer:
    """Create a CLI renderer from the parsed namespace."""

    return create_renderer(no_color=_flag(args, "no_color"), verbose=_flag(args, "verbose"))


def _load_effective_config(args: argparse.Namespace) -> dict[str, Any]:
    # CLI paths are relative to the working directory, not the config file.
    config_dir = getattr(args, "config_dir", None)
    overrides = {
        "paths.config_dir": Path(config_dir).expanduser().resolve().as_posix() if config_dir else None,
        "observability.log_level": getattr(args, "log_level", None),
        "observability.log_format": getattr(args, "log_format", None),
    }
    try:
        return load_config(getattr(args, "config_path", None), cli_overrides=overrides)
    except (ConfigLoadError, ConfigValidationError) as exc:
        raise CLIError(str(exc), exit_code=EXIT_CONFIG_ERROR) from exc


def _registry(config: Mapping[str, Any]) -> Mapping[str, Any]:
    migrations = config["migrations"]
    return default_registry(
        version_field=migrations["version_field"],
        target_version=migrations["target_version"],
    )


def _flag(args: argparse.Namespace, name: str) -> bool:
    return bool(getattr(args, name, False))


__all__ = ["CLIError", "POLICY_CHECKS", "build_parser", "run_cli"]
