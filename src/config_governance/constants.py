"""Stable constants shared across governance components."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Final

# Schema versions for persisted contracts.
CONFIG_SCHEMA_VERSION: Final[int] = 1
MIGRATION_STATE_SCHEMA_VERSION: Final[int] = 1

# Field carrying the schema version inside every governed config document.
CONFIG_VERSION_FIELD: Final[str] = "_config_version"

# Default document locations (relative to the tool config file unless overridden).
DEFAULT_CONFIG_DIR: Final[PurePosixPath] = PurePosixPath("config")
MIGRATION_MANIFEST_FILENAME: Final[str] = "migration_manifest.json"
MIGRATION_STATE_FILENAME: Final[str] = "migration_state.json"
ROADMAP_MASTER_FILENAME: Final[str] = "roadmap_master.json"
MODULE_LIFECYCLE_POLICY_FILENAME: Final[str] = "module_lifecycle_policy.json"
MODULE_REQUEST_INTAKE_TEMPLATE_FILENAME: Final[str] = "module_request_intake_template.json"
CONNECTOR_AUTH_MODE_POLICY_FILENAME: Final[str] = "connector_auth_mode_policy.json"
CONNECTOR_ADMISSION_POLICY_FILENAME: Final[str] = "connector_admission_policy.json"
ESIGN_PROVIDER_POLICY_FILENAME: Final[str] = "esign_provider_policy.json"
MOBILE_ALERT_POLICY_FILENAME: Final[str] = "mobile_alert_policy.json"
COMPATIBILITY_POLICY_FILENAME: Final[str] = "compatibility_policy.json"

# Roadmap execution modes shared by tasks and tracks.
ROADMAP_MODES: Final[tuple[str, ...]] = ("configure_only", "build_cycle")

__all__ = [
    "COMPATIBILITY_POLICY_FILENAME",
    "CONFIG_SCHEMA_VERSION",
    "CONFIG_VERSION_FIELD",
    "CONNECTOR_ADMISSION_POLICY_FILENAME",
    "CONNECTOR_AUTH_MODE_POLICY_FILENAME",
    "DEFAULT_CONFIG_DIR",
    "ESIGN_PROVIDER_POLICY_FILENAME",
    "MIGRATION_MANIFEST_FILENAME",
    "MIGRATION_STATE_FILENAME",
    "MIGRATION_STATE_SCHEMA_VERSION",
    "MOBILE_ALERT_POLICY_FILENAME",
    "MODULE_LIFECYCLE_POLICY_FILENAME",
    "MODULE_REQUEST_INTAKE_TEMPLATE_FILENAME",
    "ROADMAP_MASTER_FILENAME",
    "ROADMAP_MODES",
]
