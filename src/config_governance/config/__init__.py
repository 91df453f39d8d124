"""
config-governance config package public API.

File: src/config_governance/config/__init__.py
Last updated: 2026-10-19

Purpose
- Export config loading/validation entrypoints and public error types.

Functional requirements
- Support loading from ``governance.toml`` + ``GOVERNANCE_`` env overrides.
- Fail fast with clear structured validation/load errors.
"""

from config_governance.config.loader import (
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    OVERRIDABLE_SETTINGS,
    ConfigLoadError,
    Setting,
    dump_effective_config,
    load_config,
    normalize_paths,
)
from config_governance.config.schema import (
    PATH_FIELDS,
    ConfigSchemaVersion,
    ConfigValidationError,
    ConfigValidationIssue,
    ConfigValidationResult,
    GovernanceConfig,
    assert_valid_config,
    default_config,
    merge_config,
    validate_config,
)

__all__ = [
    "ConfigLoadError",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "GovernanceConfig",
    "OVERRIDABLE_SETTINGS",
    "PATH_FIELDS",
    "Setting",
    "assert_valid_config",
    "default_config",
    "dump_effective_config",
    "load_config",
    "merge_config",
    "normalize_paths",
    "validate_config",
]
