"""
Unit tests for the scenario registry.
"""

import json

import pytest

from order_datagen.scenarios.manager import ScenarioManager, deep_merge
from order_datagen.shared.exceptions import ConfigError, ScenarioValidationError

BUILT_IN = [
    "normal-ops",
    "peak-season",
    "anomaly-heavy",
    "warehouse-outage",
    "growth-phase",
    "payment-crisis",
]


class TestBuiltIns:
    def test_all_builtins_registered(self, scenario_manager):
        assert scenario_manager.list_scenarios() == BUILT_IN

    @pytest.mark.parametrize("name", BUILT_IN)
    def test_builtins_load(self, scenario_manager, name):
        profile = scenario_manager.load_scenario(name)
        assert profile.name == name
        assert profile.description

    def test_peak_season_rates(self, scenario_manager):
        profile = scenario_manager.load_scenario("peak-season")
        assert profile.entity_rates.orders_per_day == 150
        assert profile.entity_rates.maintenance_visits_per_week == 25
        assert profile.anomaly_rate == 0.15

    def test_warehouse_outage_bursts(self, scenario_manager):
        profile = scenario_manager.load_scenario("warehouse-outage")
        assert profile.anomaly_config.clustering.value == "burst"

    def test_unknown_scenario(self, scenario_manager):
        with pytest.raises(ConfigError, match="nonexistent"):
            scenario_manager.load_scenario("nonexistent")

    def test_loaded_profile_is_a_copy(self, scenario_manager):
        profile = scenario_manager.load_scenario("normal-ops")
        profile.entity_rates.users = 999
        assert scenario_manager.load_scenario("normal-ops").entity_rates.users == 20

    def test_managers_are_independent(self, scenario_manager):
        scenario_manager.create_custom_scenario("normal-ops", "mine", {})
        assert not ScenarioManager().has_scenario("mine")

    def test_descriptions(self, scenario_manager):
        listing = scenario_manager.list_scenarios_with_descriptions()
        assert {"name", "description"} <= set(listing[0])


class TestCustomScenarios:
    def test_overrides_merge_nested_values(self, scenario_manager):
        profile = scenario_manager.create_custom_scenario(
            "normal-ops", "busy", {"entity_rates": {"orders_per_day": 500}}
        )
        assert profile.entity_rates.orders_per_day == 500
        assert profile.entity_rates.companies == 100
        assert scenario_manager.has_scenario("busy")

    def test_anomaly_config_rate_defaults_to_profile_rate(self, scenario_manager):
        profile = scenario_manager.create_custom_scenario(
            "normal-ops", "bursty", {"anomaly_config": {"clustering": "burst"}}
        )
        assert profile.anomaly_config.rate == profile.anomaly_rate

    def test_invalid_override_rejected(self, scenario_manager):
        with pytest.raises(ScenarioValidationError) as exc:
            scenario_manager.create_custom_scenario(
                "normal-ops", "broken", {"entity_rates": {"users": 0}}
            )
        assert exc.value.validation_errors
        assert not scenario_manager.has_scenario("broken")

    def test_unknown_base(self, scenario_manager):
        with pytest.raises(ConfigError):
            scenario_manager.create_custom_scenario("missing", "x", {})

    def test_validate_reports_paths(self, scenario_manager):
        result = scenario_manager.validate_scenario({"name": "x", "anomaly_rate": 2})
        assert not result.valid
        assert any(error.startswith("anomaly_rate") for error in result.errors)

    def test_validate_accepts_valid_profile(self, scenario_manager, scenario):
        assert scenario_manager.validate_scenario(scenario).valid

    def test_load_from_file(self, scenario_manager, tmp_path):
        path = tmp_path / "custom.json"
        path.write_text(json.dumps({"name": "from-file", "anomaly_rate": 0.2}))
        profile = scenario_manager.load_from_file(path)
        assert profile.anomaly_rate == 0.2
        assert scenario_manager.has_scenario("from-file")

    def test_load_invalid_file(self, scenario_manager, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"name": ""}))
        with pytest.raises(ScenarioValidationError):
            scenario_manager.load_from_file(path)


def test_deep_merge_does_not_mutate_inputs():
    base = {"a": {"b": 1, "c": 2}}
    merged = deep_merge(base, {"a": {"b": 5}})
    assert merged == {"a": {"b": 5, "c": 2}}
    assert base == {"a": {"b": 1, "c": 2}}
