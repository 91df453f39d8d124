"""
config-governance — tool config loader.

File: src/config_governance/config/loader.py
Last updated: 2026-10-19

Purpose
- Resolve the effective ``governance.toml`` settings: built-in defaults, then
  the file, then ``GOVERNANCE_*`` environment variables, then CLI flags.

Functional requirements
- Only settings listed in ``OVERRIDABLE_SETTINGS`` can be overridden from the
  environment or the command line; ``[meta]`` is file-only.
- Document paths and the log file resolve against the directory holding the
  config file, never the working directory.
- Invalid layers surface as ``ConfigLoadError`` (unreadable input) or
  ``ConfigValidationError`` (schema violations).
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final

from config_governance.config.schema import (
    PATH_FIELDS,
    assert_valid_config,
    default_config,
    merge_config,
)

DEFAULT_CONFIG_FILE: Final[str] = "governance.toml"
ENV_PREFIX: Final[str] = "GOVERNANCE_"


class ConfigLoadError(ValueError):
    """Raised when config cannot be loaded or overrides cannot be coerced."""


def _parse_text(raw: str, source: str) -> str:
    return raw.strip()


def _parse_version(raw: str, source: str) -> int:
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise ConfigLoadError(f"{source} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True, slots=True)
class Setting:
    """One overridable ``[section] key`` of ``governance.toml``."""

    section: str
    key: str
    parse: Callable[[str, str], object] = _parse_text

    @property
    def dotted(self) -> str:
        return f"{self.section}.{self.key}"

    @property
    def env_name(self) -> str:
        return f"{ENV_PREFIX}{self.section.upper()}_{self.key.upper()}"


OVERRIDABLE_SETTINGS: Final[tuple[Setting, ...]] = (
    *(Setting("paths", key) for key in default_config()["paths"]),
    Setting("migrations", "version_field"),
    Setting("migrations", "target_version", _parse_version),
    Setting("observability", "log_level"),
    Setting("observability", "log_format"),
    Setting("observability", "log_file"),
)

_SETTINGS_BY_KEY: Final[dict[str, Setting]] = {setting.dotted: setting for setting in OVERRIDABLE_SETTINGS}


def load_config(
    config_path: str | Path | None = None,
    *,
    cli_overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Load effective config with precedence CLI > env > file > defaults.

    ``config_path=None`` means ``./governance.toml`` if it exists; an explicit
    path must exist. ``cli_overrides`` maps dotted keys (``"paths.config_dir"``)
    to already-typed values; ``None`` values are ignored.
    """

    resolved_path = _resolve_config_path(config_path)
    file_layer = _read_config_file(resolved_path, required=config_path is not None)

    # File errors are reported on their own, before overrides can mask them.
    config = assert_valid_config(merge_config(default_config(), file_layer))
    config = merge_config(config, env_layer(os.environ if environ is None else environ))
    config = merge_config(config, cli_layer(cli_overrides or {}))

    return assert_valid_config(normalize_paths(config, base_dir=resolved_path.parent))


def env_layer(environ: Mapping[str, str]) -> dict[str, dict[str, object]]:
    """Collect ``GOVERNANCE_<SECTION>_<KEY>`` variables into a config overlay."""

    layer: dict[str, dict[str, object]] = {}
    for setting in OVERRIDABLE_SETTINGS:
        raw = environ.get(setting.env_name)
        if raw is None:
            continue
        layer.setdefault(setting.section, {})[setting.key] = setting.parse(raw, setting.env_name)
    return layer


def cli_layer(overrides: Mapping[str, object]) -> dict[str, dict[str, object]]:
    """Turn dotted CLI override keys into a config overlay."""

    layer: dict[str, dict[str, object]] = {}
    for key, value in overrides.items():
        if value is None:
            continue
        setting = _SETTINGS_BY_KEY.get(key)
        if setting is None:
            raise ConfigLoadError(f"{key!r} cannot be overridden from the command line")
        layer.setdefault(setting.section, {})[setting.key] = value
    return layer


def normalize_paths(config: Mapping[str, object], *, base_dir: Path) -> dict[str, Any]:
    """Resolve every non-empty path setting against ``base_dir``."""

    normalized = merge_config({}, config)
    for section, key in PATH_FIELDS:
        values = normalized.get(section)
        if not isinstance(values, dict):
            continue
        raw = values.get(key)
        if isinstance(raw, str) and raw:
            values[key] = _resolve_against(raw, base_dir)
    return normalized


def dump_effective_config(config: Mapping[str, object]) -> str:
    """Return deterministic JSON dump of the effective config."""

    return json.dumps(config, sort_keys=True, indent=2, ensure_ascii=False)


def _resolve_config_path(config_path: str | Path | None) -> Path:
    if config_path is None:
        return (Path.cwd() / DEFAULT_CONFIG_FILE).resolve()
    return Path(config_path).expanduser().resolve()


def _read_config_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigLoadError(f"config file not found: {path}")
        return {}

    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc


def _resolve_against(raw: str, base_dir: Path) -> str:
    candidate = Path(os.path.expandvars(raw)).expanduser()
    if not candidate.is_absolute():
        candidate = base_dir / candidate
    return Path(os.path.normpath(candidate)).as_posix()


__all__ = [
    "ConfigLoadError",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "OVERRIDABLE_SETTINGS",
    "Setting",
    "cli_layer",
    "dump_effective_config",
    "env_layer",
    "load_config",
    "normalize_paths",
]
