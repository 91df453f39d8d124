"""
config-governance — document loading and normalization.

File: src/config_governance/documents.py
Last updated: 2026-10-19

Purpose
- Decode governed documents (JSON, or YAML for hand-edited policies) into
  loosely-typed Python values.
- Provide the normalization primitives validators use to project loose input
  into the strict internal model: trimmed ids, deduplicated id lists and
  leading-integer coercion.

Functional requirements
- Loading failures raise ``DocumentLoadError`` with the offending path.
- Normalization never raises; malformed values normalize to empty/``None``.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Final

import yaml

_YAML_SUFFIXES: Final[frozenset[str]] = frozenset({".yaml", ".yml"})
_LEADING_INT_PATTERN: Final[re.Pattern[str]] = re.compile(r"^\s*([+-]?\d+)")
_ENV_NAME_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[A-Z_][A-Z0-9_]*$")


class DocumentLoadError(ValueError):
    """Raised when a governed document cannot be read or decoded."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"cannot read document at {path}: {reason}")


def load_document(path: str | Path) -> Any:
    """Read and decode a JSON or YAML document."""

    resolved = Path(path)
    try:
        text = resolved.read_text(encoding="utf-8")
    except OSError as exc:
        raise DocumentLoadError(resolved, str(exc)) from exc
    except UnicodeDecodeError as exc:
        raise DocumentLoadError(resolved, f"not valid UTF-8: {exc}") from exc

    if resolved.suffix.lower() in _YAML_SUFFIXES:
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise DocumentLoadError(resolved, f"invalid YAML: {exc}") from exc

    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise DocumentLoadError(resolved, f"invalid JSON: {exc}") from exc


def load_optional_document(path: str | Path, default: Any) -> Any:
    """Like :func:`load_document`, returning ``default`` when the file is absent."""

    resolved = Path(path)
    if not resolved.exists():
        return default
    return load_document(resolved)


def as_list(value: object) -> list[Any]:
    """Return ``value`` as a list when it is a JSON array, else an empty list."""

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return list(value)
    return []


def as_trimmed_str(value: object) -> str:
    """Trimmed string for ``str`` input, empty string otherwise."""

    if isinstance(value, str):
        return value.strip()
    return ""


def normalize_id_list(raw: object) -> tuple[str, ...]:
    """Trim, drop blanks, and deduplicate ids preserving first occurrence."""

    seen: set[str] = set()
    out: list[str] = []
    for item in as_list(raw):
        item_id = as_trimmed_str(item)
        if not item_id or item_id in seen:
            continue
        seen.add(item_id)
        out.append(item_id)
    return tuple(out)


def coerce_int(value: object) -> int | None:
    """
    Coerce ``value`` to an integer using leading-integer semantics.

    ``int`` values pass through, finite floats truncate toward zero, and
    strings yield their leading ``[+-]digits`` prefix. Booleans and anything
    else yield ``None``.
    """

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return int(value)
    if isinstance(value, str):
        match = _LEADING_INT_PATTERN.match(value)
        if match is None:
            return None
        try:
            return int(match.group(1))
        except ValueError:
            # Beyond the interpreter's integer string conversion limit.
            return None
    return None


def strict_int(value: object) -> int | None:
    """Integer value for ints and integral floats; ``None`` otherwise."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return None


def non_empty_list(value: object) -> bool:
    return bool(as_list(value))


def is_env_name(value: object) -> bool:
    """Return ``True`` for strings shaped like an environment variable name."""

    return isinstance(value, str) and _ENV_NAME_PATTERN.fullmatch(value.strip()) is not None


__all__ = [
    "DocumentLoadError",
    "as_list",
    "as_trimmed_str",
    "coerce_int",
    "is_env_name",
    "load_document",
    "load_optional_document",
    "non_empty_list",
    "normalize_id_list",
    "strict_int",
]
