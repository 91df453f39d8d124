"""
config-governance — governance document validators

File: src/config_governance/governance/__init__.py
Last updated: 2026-10-19

Purpose
- Roadmap graph validation and the policy schema validator family.

Functional requirements
- Validators never raise for malformed input; each returns every issue found.
"""

from __future__ import annotations

from config_governance.governance.compatibility import validate_compatibility_policy
from config_governance.governance.connectors import (
    validate_connector_admission_policy,
    validate_connector_auth_mode_policy,
)
from config_governance.governance.esign import validate_esign_provider_policy
from config_governance.governance.mobile_alert import (
    quiet_hours_bypass,
    severity_rank_map,
    validate_mobile_alert_policy,
)
from config_governance.governance.module_lifecycle import (
    validate_module_lifecycle_policy,
    validate_module_request_intake_template,
)
from config_governance.governance.roadmap import RoadmapValidationResult, validate_roadmap_master

__all__ = [
    "RoadmapValidationResult",
    "quiet_hours_bypass",
    "severity_rank_map",
    "validate_compatibility_policy",
    "validate_connector_admission_policy",
    "validate_connector_auth_mode_policy",
    "validate_esign_provider_policy",
    "validate_mobile_alert_policy",
    "validate_module_lifecycle_policy",
    "validate_module_request_intake_template",
    "validate_roadmap_master",
]
