"""
Unit tests for configuration models and environment settings.
"""

import json
from datetime import datetime

import pytest
from pydantic import ValidationError

_hyp = pytest.importorskip("hypothesis")
from hypothesis import given
from hypothesis import strategies as st

from order_datagen.config.models import (
    DistributionConfig,
    GeneratorConfig,
    SafetyConfig,
    ScenarioProfile,
    TimeSeriesConfig,
    ValueRange,
)
from order_datagen.config.settings import (
    ENV_DUCKDB_PATH,
    ENV_ENABLED,
    ENV_ENVIRONMENT,
    get_duckdb_path,
    get_environment,
    is_generation_enabled,
    load_config,
)
from order_datagen.shared.exceptions import ConfigError


class TestGeneratorConfig:
    def test_parses_date_strings(self):
        config = GeneratorConfig(start_date="2024-01-01", end_date="2024-01-31T00:00:00Z")
        assert config.start_date == datetime(2024, 1, 1)
        assert config.end_date == datetime(2024, 1, 31)
        assert config.end_date.tzinfo is None

    def test_defaults(self):
        config = GeneratorConfig(start_date="2024-01-01", end_date="2024-01-02")
        assert config.scenario == "normal-ops"
        assert config.volume_multiplier == 1.0
        assert config.batch_size == 1000
        assert config.seed is None
        assert config.dry_run is False
        assert config.days == 1

    def test_start_must_precede_end(self):
        with pytest.raises(ConfigError, match="start_date must be before end_date"):
            GeneratorConfig(start_date="2024-02-01", end_date="2024-01-01")

    def test_equal_dates_rejected(self):
        with pytest.raises(ConfigError):
            GeneratorConfig(start_date="2024-01-01", end_date="2024-01-01")

    def test_invalid_date_string(self):
        with pytest.raises(ValidationError):
            GeneratorConfig(start_date="yesterday", end_date="2024-01-01")

    @pytest.mark.parametrize(
        "field,value",
        [
            ("volume_multiplier", 0.05),
            ("volume_multiplier", 101),
            ("batch_size", 99),
            ("batch_size", 10_001),
            ("seed", 0),
            ("seed", 2**32),
        ],
    )
    def test_bounds(self, field, value):
        with pytest.raises(ValidationError):
            GeneratorConfig(start_date="2024-01-01", end_date="2024-01-02", **{field: value})

    @given(
        multiplier=st.floats(min_value=0.1, max_value=100.0),
        batch_size=st.integers(min_value=100, max_value=10_000),
        seed=st.integers(min_value=1, max_value=2**32 - 1),
    )
    def test_valid_ranges_accepted(self, multiplier, batch_size, seed):
        config = GeneratorConfig(
            start_date="2024-01-01",
            end_date="2024-01-02",
            volume_multiplier=multiplier,
            batch_size=batch_size,
            seed=seed,
        )
        assert config.batch_size == batch_size

    def test_from_mapping_wraps_validation_errors(self):
        with pytest.raises(ConfigError, match="batch_size"):
            GeneratorConfig.from_mapping(
                {"start_date": "2024-01-01", "end_date": "2024-01-02", "batch_size": 5}
            )

    def test_file_round_trip(self, tmp_path, config):
        path = tmp_path / "nested" / "generator_config.json"
        config.to_file(path)
        assert GeneratorConfig.from_file(path) == config
        assert load_config(path.parent) == config

    def test_invalid_json_file(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="Invalid JSON"):
            GeneratorConfig.from_file(path)

    def test_non_object_json_file(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text(json.dumps([1, 2]))
        with pytest.raises(ConfigError):
            GeneratorConfig.from_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            GeneratorConfig.from_file(tmp_path / "absent.json")


class TestDistributionConfig:
    def test_defaults_sum_to_one(self):
        dist = DistributionConfig()
        assert sum(dist.order_status.values()) == pytest.approx(1.0)
        assert sum(dist.payment_status.values()) == pytest.approx(1.0)

    def test_rejects_weights_not_summing_to_one(self):
        with pytest.raises(ValidationError, match="sum to 1"):
            DistributionConfig(payment_status={"Paid": 0.5, "Pending": 0.2, "Overdue": 0.1})

    def test_tolerance(self):
        dist = DistributionConfig(region_distribution={"A": 0.6004, "B": 0.4})
        assert dist.region_distribution

    def test_rejects_weight_out_of_range(self):
        with pytest.raises(ValidationError):
            DistributionConfig(region_distribution={"A": 1.5, "B": -0.5})


class TestOtherModels:
    def test_value_range_bounds(self):
        with pytest.raises(ValidationError):
            ValueRange(min=10, max=5)

    def test_business_hours_order(self):
        with pytest.raises(ValidationError):
            TimeSeriesConfig(business_hours_start=20, business_hours_end=8)

    def test_safety_defaults(self):
        safety = SafetyConfig()
        assert safety.target_schema == "mock_data"
        assert safety.protected_schema == "public"
        assert "production" not in safety.allowed_environments

    def test_scenario_profile_file_round_trip(self, tmp_path, scenario):
        path = tmp_path / "scenario.json"
        scenario.to_file(path)
        assert ScenarioProfile.from_file(path) == scenario


class TestSettings:
    def test_environment_is_normalised(self, monkeypatch):
        monkeypatch.setenv(ENV_ENVIRONMENT, " Staging ")
        assert get_environment() == "staging"

    def test_environment_default(self, monkeypatch):
        monkeypatch.delenv(ENV_ENVIRONMENT)
        assert get_environment() == "development"

    @pytest.mark.parametrize("value,expected", [("true", True), ("TRUE", True), ("1", False)])
    def test_enable_flag(self, monkeypatch, value, expected):
        monkeypatch.setenv(ENV_ENABLED, value)
        assert is_generation_enabled() is expected

    def test_duckdb_path_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv(ENV_DUCKDB_PATH, str(tmp_path / "x.duckdb"))
        assert get_duckdb_path() == tmp_path / "x.duckdb"
