"""
Scenario registry.

The manager is constructed explicitly and passed to whatever needs it; there
is no module-level instance. Each manager starts with the built-in profiles
and can be extended with validated custom profiles.
"""

import logging
from collections.abc import Mapping
from copy import deepcopy
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from order_datagen.config.models import (
    DistributionConfig,
    EntityVolume,
    ScenarioProfile,
)
from order_datagen.scenarios.builtins import BUILT_IN_SCENARIOS
from order_datagen.shared.exceptions import ConfigError, ScenarioValidationError

logger = logging.getLogger(__name__)


class ScenarioValidationResult(BaseModel):
    """Outcome of validating a scenario profile."""

    valid: bool
    errors: list[str] = Field(default_factory=list)


def deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """
    Merge ``overrides`` into a copy of ``base``.

    Nested mappings are merged key by key; any other override value replaces
    the base value.
    """
    merged: dict[str, Any] = deepcopy(dict(base))
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = deepcopy(value)
    return merged


def _format_errors(error: ValidationError) -> list[str]:
    return [
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in error.errors()
    ]


class ScenarioManager:
    """Registry of named scenario profiles."""

    def __init__(self):
        self._scenarios: dict[str, ScenarioProfile] = {}
        for name, data in BUILT_IN_SCENARIOS.items():
            self._scenarios[name] = ScenarioProfile.model_validate(data)

    def load_scenario(self, name: str) -> ScenarioProfile:
        """
        Look up a scenario by name.

        Raises:
            ConfigError: If no scenario is registered under ``name``
        """
        scenario = self._scenarios.get(name)
        if scenario is None:
            raise ConfigError(
                f'Scenario "{name}" not found. '
                f"Available: {', '.join(self.list_scenarios())}",
                field="scenario",
            )
        return scenario.model_copy(deep=True)

    def list_scenarios(self) -> list[str]:
        return list(self._scenarios)

    def list_scenarios_with_descriptions(self) -> list[dict[str, str]]:
        return [
            {"name": s.name, "description": s.description}
            for s in self._scenarios.values()
        ]

    def has_scenario(self, name: str) -> bool:
        return name in self._scenarios

    def validate_scenario(
        self, profile: ScenarioProfile | Mapping[str, Any]
    ) -> ScenarioValidationResult:
        """
        Validate a profile against the scenario schema.

        Args:
            profile: A profile model or a raw mapping

        Returns:
            ScenarioValidationResult with ``path: message`` errors
        """
        data = (
            profile.model_dump(mode="json", exclude_none=True)
            if isinstance(profile, ScenarioProfile)
            else profile
        )
        try:
            ScenarioProfile.model_validate(data)
        except ValidationError as e:
            return ScenarioValidationResult(valid=False, errors=_format_errors(e))
        return ScenarioValidationResult(valid=True)

    def register_scenario(
        self, profile: ScenarioProfile | Mapping[str, Any]
    ) -> ScenarioProfile:
        """
        Validate and register a profile, replacing any profile of the same name.

        Raises:
            ScenarioValidationError: If the profile is invalid
        """
        data = (
            profile.model_dump(mode="json", exclude_none=True)
            if isinstance(profile, ScenarioProfile)
            else profile
        )
        name = data.get("name") if isinstance(data, Mapping) else None
        try:
            validated = ScenarioProfile.model_validate(data)
        except ValidationError as e:
            raise ScenarioValidationError(
                "Invalid scenario",
                scenario_name=name,
                validation_errors=_format_errors(e),
            ) from e

        if validated.name in self._scenarios:
            logger.info(f"Replacing registered scenario '{validated.name}'")
        self._scenarios[validated.name] = validated
        return validated.model_copy(deep=True)

    def create_custom_scenario(
        self,
        base_name: str,
        custom_name: str,
        overrides: Mapping[str, Any],
    ) -> ScenarioProfile:
        """
        Derive a new scenario from a registered one.

        Args:
            base_name: Name of the scenario to start from
            custom_name: Name of the new scenario
            overrides: Partial profile; nested mappings are merged key by key

        Returns:
            The registered custom profile

        Raises:
            ConfigError: If the base scenario does not exist
            ScenarioValidationError: If the merged profile is invalid
        """
        base = self.load_scenario(base_name)
        merged = deep_merge(base.model_dump(mode="json", exclude_none=True), overrides)
        merged["name"] = custom_name

        anomaly_config = merged.get("anomaly_config")
        if isinstance(anomaly_config, dict) and "rate" not in anomaly_config:
            anomaly_config["rate"] = merged.get("anomaly_rate", 0.05)

        logger.debug(f"Creating scenario '{custom_name}' from '{base_name}'")
        return self.register_scenario(merged)

    def load_from_file(self, file_path: str | Path) -> ScenarioProfile:
        """
        Register a scenario profile stored as JSON.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ConfigError: If the file is not valid JSON
            ScenarioValidationError: If the profile is invalid
        """
        try:
            profile = ScenarioProfile.from_file(file_path)
        except ValidationError as e:
            raise ScenarioValidationError(
                f"Invalid scenario file {file_path}",
                validation_errors=_format_errors(e),
            ) from e
        return self.register_scenario(profile)

    def get_default_entity_rates(self) -> EntityVolume:
        return EntityVolume()

    def get_default_distributions(self) -> DistributionConfig:
        return DistributionConfig()
