"""
config-governance — structured validation records.

File: src/config_governance/validation.py
Last updated: 2026-10-19

Purpose
- Define the record every validator emits for a structural violation.
- Provide the accumulating collector shared by all validator families.

Functional requirements
- Validators never raise for expected failures; they collect every issue and
  return them together.
- Every issue carries a stable machine-matchable ``code`` and a human message.

Non-functional requirements
- Serialized output is deterministic and JSON-friendly.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """Single structured validation failure (or warning)."""

    code: str
    message: str
    extra: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, JSONValue]:
        payload: dict[str, JSONValue] = {"code": str(self.code), "message": self.message}
        for key in sorted(self.extra):
            payload[key] = _json_value(self.extra[key])
        return payload


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of a policy validator."""

    errors: tuple[ValidationIssue, ...]
    warnings: tuple[ValidationIssue, ...] = ()

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
        }


class IssueCollector:
    """Accumulates issues in discovery order."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[ValidationIssue] = []

    def add(self, code: str, message: str, **extra: Any) -> None:
        self._items.append(ValidationIssue(code=code, message=message, extra=extra))

    def items(self) -> tuple[ValidationIssue, ...]:
        return tuple(self._items)

    @property
    def has_issues(self) -> bool:
        return bool(self._items)

    def __len__(self) -> int:
        return len(self._items)


def render_issues(issues: tuple[ValidationIssue, ...]) -> str:
    """Render issues as ``code: message`` lines."""

    return "\n".join(f"- {issue.code}: {issue.message}" for issue in issues)


def _json_value(value: object) -> JSONValue:
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, Mapping):
        return {str(key): _json_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_value(item) for item in value]
    return str(value)


__all__ = [
    "IssueCollector",
    "JSONScalar",
    "JSONValue",
    "ValidationIssue",
    "ValidationResult",
    "render_issues",
]
