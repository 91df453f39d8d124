"""Built-in migrations and the default handler registry."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any, Final

from config_governance.constants import CONFIG_VERSION_FIELD
from config_governance.migrations.apply import FileResult, apply_config_version
from config_governance.migrations.plan import MigrationHandler, MigrationOptions

BASELINE_MIGRATION_ID: Final[str] = "001_baseline_schema_versions"

BASELINE_AFFECTED_CONFIGS: Final[tuple[str, ...]] = (
    "hard_bans.json",
    "brief_config.json",
    "urgency_rules.json",
    "planning_preferences.json",
    "para_rules.json",
    "output_contracts.json",
    "llm_provider.json",
    "scheduler_config.json",
    "graph.profiles.json",
    "config_interactions.json",
    "style_guide.json",
    "draft_style.json",
    "builder_lane_config.json",
    "autonomy_ladder.json",
    "operator_profile.json",
    "onboarding_ramp.json",
    "notification_budget.json",
    "intake_template.json",
    "event_schema.json",
    "autonomy_per_task.json",
    "ted_agent.json",
    "migration_state.json",
    "capability_maturity.json",
    "feature_maturity.json",
    "ted_technology_radar.json",
    "competitive_landscape.json",
    "research_debt_scores.json",
    "decision_index.json",
)


class BaselineSchemaVersions:
    """Ensure every known config document carries ``_config_version: 1``."""

    migration_id = BASELINE_MIGRATION_ID
    description = "Ensure all config files have _config_version: 1"
    affected_configs = BASELINE_AFFECTED_CONFIGS

    def __init__(
        self,
        *,
        version_field: str = CONFIG_VERSION_FIELD,
        target_version: int = 1,
        logger: Any | None = None,
    ) -> None:
        self._version_field = version_field
        self._target_version = target_version
        self._logger = logger

    def run(self, config_dir: Path, options: MigrationOptions) -> list[FileResult]:
        return apply_config_version(
            config_dir,
            self.affected_configs,
            target_version=self._target_version,
            version_field=self._version_field,
            dry_run=options.dry_run,
            logger=self._logger,
        )


def default_registry(
    *,
    version_field: str = CONFIG_VERSION_FIELD,
    target_version: int = 1,
) -> Mapping[str, MigrationHandler]:
    """Return the read-only registry of migrations shipped with the package."""

    handlers: list[MigrationHandler] = [
        BaselineSchemaVersions(version_field=version_field, target_version=target_version),
    ]
    return MappingProxyType({handler.migration_id: handler for handler in handlers})


__all__ = [
    "BASELINE_AFFECTED_CONFIGS",
    "BASELINE_MIGRATION_ID",
    "BaselineSchemaVersions",
    "default_registry",
]
