"""
config-governance — mobile alert routing policy.

File: src/config_governance/governance/mobile_alert.py
Last updated: 2026-10-19

Purpose
- Validate the routing table that maps each alert class and severity to a
  primary delivery channel plus an ordered fallback chain.
- Evaluate quiet-hour overrides against the severity ladder.

Functional requirements
- The severity ladder is ordered lowest first; its index defines rank.
- A fallback chain may not revisit a channel already used for the route,
  primary channel included.
- Quiet-hour windows use 24h ``HH:MM``; a window may wrap past midnight.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from enum import StrEnum
from typing import Any, Final

from config_governance.documents import as_list, as_trimmed_str
from config_governance.validation import IssueCollector, ValidationResult

_CLOCK_PATTERN: Final[re.Pattern[str]] = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class MobileAlertErrorCode(StrEnum):
    MOBILE_ALERT_POLICY_INVALID_ROOT = "MOBILE_ALERT_POLICY_INVALID_ROOT"
    MOBILE_ALERT_POLICY_SEVERITY_LADDER_INVALID = "MOBILE_ALERT_POLICY_SEVERITY_LADDER_INVALID"
    MOBILE_ALERT_POLICY_CHANNELS_MISSING = "MOBILE_ALERT_POLICY_CHANNELS_MISSING"
    MOBILE_ALERT_POLICY_ALERT_CLASSES_MISSING = "MOBILE_ALERT_POLICY_ALERT_CLASSES_MISSING"
    MOBILE_ALERT_POLICY_ROUTING_MISSING = "MOBILE_ALERT_POLICY_ROUTING_MISSING"
    MOBILE_ALERT_POLICY_ROUTING_CLASS_MISSING = "MOBILE_ALERT_POLICY_ROUTING_CLASS_MISSING"
    MOBILE_ALERT_POLICY_ROUTING_CLASS_UNKNOWN = "MOBILE_ALERT_POLICY_ROUTING_CLASS_UNKNOWN"
    MOBILE_ALERT_POLICY_ROUTING_SEVERITY_UNKNOWN = "MOBILE_ALERT_POLICY_ROUTING_SEVERITY_UNKNOWN"
    MOBILE_ALERT_POLICY_ROUTE_INVALID = "MOBILE_ALERT_POLICY_ROUTE_INVALID"
    MOBILE_ALERT_POLICY_PRIMARY_CHANNEL_UNKNOWN = "MOBILE_ALERT_POLICY_PRIMARY_CHANNEL_UNKNOWN"
    MOBILE_ALERT_POLICY_FALLBACK_CHANNEL_UNKNOWN = "MOBILE_ALERT_POLICY_FALLBACK_CHANNEL_UNKNOWN"
    MOBILE_ALERT_POLICY_FALLBACK_CHAIN_CYCLE = "MOBILE_ALERT_POLICY_FALLBACK_CHAIN_CYCLE"
    MOBILE_ALERT_POLICY_QUIET_HOURS_INVALID = "MOBILE_ALERT_POLICY_QUIET_HOURS_INVALID"
    MOBILE_ALERT_POLICY_QUIET_HOURS_OVERRIDE_INVALID = (
        "MOBILE_ALERT_POLICY_QUIET_HOURS_OVERRIDE_INVALID"
    )


def severity_rank_map(ladder: object) -> dict[str, int]:
    """Map each severity to its rank (0 = lowest); blanks and repeats are ignored."""

    ranks: dict[str, int] = {}
    for raw in as_list(ladder):
        severity = as_trimmed_str(raw)
        if severity and severity not in ranks:
            ranks[severity] = len(ranks)
    return ranks


def quiet_hours_bypass(policy: Mapping[str, Any], alert_class: str, severity: str) -> bool:
    """
    Return ``True`` when an alert should be delivered despite quiet hours.

    An override for ``alert_class`` applies to every severity ranked at or
    above its ``min_severity``. Unknown severities never bypass.
    """

    ranks = severity_rank_map(policy.get("severity_ladder"))
    rank = ranks.get(severity)
    if rank is None:
        return False
    quiet_hours = policy.get("quiet_hours")
    if not isinstance(quiet_hours, Mapping):
        return False
    for override in as_list(quiet_hours.get("overrides")):
        if not isinstance(override, Mapping):
            continue
        if as_trimmed_str(override.get("alert_class")) != alert_class:
            continue
        min_rank = ranks.get(as_trimmed_str(override.get("min_severity")))
        if min_rank is not None and rank >= min_rank:
            return True
    return False


def validate_mobile_alert_policy(policy: object) -> ValidationResult:
    issues = IssueCollector()
    if not isinstance(policy, Mapping):
        issues.add(
            MobileAlertErrorCode.MOBILE_ALERT_POLICY_INVALID_ROOT,
            "mobile_alert_policy must be an object",
        )
        return ValidationResult(errors=issues.items())

    raw_ladder = as_list(policy.get("severity_ladder"))
    ranks = severity_rank_map(raw_ladder)
    if not ranks or len(ranks) != len(raw_ladder):
        issues.add(
            MobileAlertErrorCode.MOBILE_ALERT_POLICY_SEVERITY_LADDER_INVALID,
            "severity_ladder must be a non-empty list of unique severities",
        )

    channels = _id_set(policy.get("channels"))
    if not channels:
        issues.add(
            MobileAlertErrorCode.MOBILE_ALERT_POLICY_CHANNELS_MISSING,
            "channels must be non-empty",
        )
    alert_classes = _id_set(policy.get("alert_classes"))
    if not alert_classes:
        issues.add(
            MobileAlertErrorCode.MOBILE_ALERT_POLICY_ALERT_CLASSES_MISSING,
            "alert_classes must be non-empty",
        )

    routing = policy.get("routing")
    if not isinstance(routing, Mapping):
        issues.add(
            MobileAlertErrorCode.MOBILE_ALERT_POLICY_ROUTING_MISSING,
            "routing must be an object keyed by alert class",
        )
    else:
        _check_routing(routing, alert_classes, ranks, channels, issues)

    quiet_hours = policy.get("quiet_hours")
    if quiet_hours is not None:
        _check_quiet_hours(quiet_hours, alert_classes, ranks, issues)

    return ValidationResult(errors=issues.items())


def _id_set(raw: object) -> set[str]:
    ids = {as_trimmed_str(item) for item in as_list(raw)}
    ids.discard("")
    return ids


def _check_routing(
    routing: Mapping[str, Any],
    alert_classes: set[str],
    ranks: Mapping[str, int],
    channels: set[str],
    issues: IssueCollector,
) -> None:
    for alert_class in sorted(alert_classes):
        if not isinstance(routing.get(alert_class), Mapping):
            issues.add(
                MobileAlertErrorCode.MOBILE_ALERT_POLICY_ROUTING_CLASS_MISSING,
                f"alert class {alert_class} has no routing entry",
                alert_class=alert_class,
            )

    for alert_class, by_severity in routing.items():
        if alert_class not in alert_classes:
            issues.add(
                MobileAlertErrorCode.MOBILE_ALERT_POLICY_ROUTING_CLASS_UNKNOWN,
                f"routing references unknown alert class {alert_class}",
                alert_class=alert_class,
            )
            continue
        if not isinstance(by_severity, Mapping):
            continue
        for severity, route in by_severity.items():
            if severity not in ranks:
                issues.add(
                    MobileAlertErrorCode.MOBILE_ALERT_POLICY_ROUTING_SEVERITY_UNKNOWN,
                    f"routing {alert_class} references unknown severity {severity}",
                    alert_class=alert_class,
                    severity=severity,
                )
                continue
            _check_route(alert_class, severity, route, channels, issues)


def _check_route(
    alert_class: str,
    severity: str,
    route: object,
    channels: set[str],
    issues: IssueCollector,
) -> None:
    location = f"routing.{alert_class}.{severity}"
    if not isinstance(route, Mapping):
        issues.add(
            MobileAlertErrorCode.MOBILE_ALERT_POLICY_ROUTE_INVALID,
            f"{location} must be an object",
            alert_class=alert_class,
            severity=severity,
        )
        return

    primary = as_trimmed_str(route.get("primary_channel"))
    if primary not in channels:
        issues.add(
            MobileAlertErrorCode.MOBILE_ALERT_POLICY_PRIMARY_CHANNEL_UNKNOWN,
            f"{location}.primary_channel {primary or '<missing>'} is not a known channel",
            alert_class=alert_class,
            severity=severity,
        )

    used: set[str] = {primary} if primary else set()
    for raw_channel in as_list(route.get("fallback_chain")):
        channel = as_trimmed_str(raw_channel)
        if channel not in channels:
            issues.add(
                MobileAlertErrorCode.MOBILE_ALERT_POLICY_FALLBACK_CHANNEL_UNKNOWN,
                f"{location}.fallback_chain references unknown channel {channel or '<blank>'}",
                alert_class=alert_class,
                severity=severity,
                channel=channel,
            )
            continue
        if channel in used:
            issues.add(
                MobileAlertErrorCode.MOBILE_ALERT_POLICY_FALLBACK_CHAIN_CYCLE,
                f"{location}.fallback_chain revisits channel {channel}",
                alert_class=alert_class,
                severity=severity,
                channel=channel,
            )
            continue
        used.add(channel)


def _check_quiet_hours(
    quiet_hours: object,
    alert_classes: set[str],
    ranks: Mapping[str, int],
    issues: IssueCollector,
) -> None:
    if not isinstance(quiet_hours, Mapping):
        issues.add(
            MobileAlertErrorCode.MOBILE_ALERT_POLICY_QUIET_HOURS_INVALID,
            "quiet_hours must be an object",
        )
        return

    if not isinstance(quiet_hours.get("enabled"), bool):
        issues.add(
            MobileAlertErrorCode.MOBILE_ALERT_POLICY_QUIET_HOURS_INVALID,
            "quiet_hours.enabled must be a boolean",
            field="enabled",
        )
    for bound in ("start", "end"):
        value = quiet_hours.get(bound)
        if not isinstance(value, str) or _CLOCK_PATTERN.match(value) is None:
            issues.add(
                MobileAlertErrorCode.MOBILE_ALERT_POLICY_QUIET_HOURS_INVALID,
                f"quiet_hours.{bound} must be HH:MM",
                field=bound,
            )

    for index, override in enumerate(as_list(quiet_hours.get("overrides"))):
        alert_class = as_trimmed_str(override.get("alert_class")) if isinstance(override, Mapping) else ""
        min_severity = as_trimmed_str(override.get("min_severity")) if isinstance(override, Mapping) else ""
        if alert_class not in alert_classes or min_severity not in ranks:
            issues.add(
                MobileAlertErrorCode.MOBILE_ALERT_POLICY_QUIET_HOURS_OVERRIDE_INVALID,
                f"quiet_hours.overrides[{index}] must reference a known alert_class and min_severity",
                index=index,
            )


__all__ = [
    "MobileAlertErrorCode",
    "quiet_hours_bypass",
    "severity_rank_map",
    "validate_mobile_alert_policy",
]
