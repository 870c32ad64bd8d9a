"""
Pytest configuration and fixtures for order data generator tests.

Provides a small reproducible configuration, scenario fixtures and an
environment that passes the safety checks.
"""

from datetime import datetime

import pytest

from order_datagen.config.models import GeneratorConfig
from order_datagen.config.settings import ENV_DUCKDB_PATH, ENV_ENABLED, ENV_ENVIRONMENT
from order_datagen.scenarios.manager import ScenarioManager


@pytest.fixture(autouse=True)
def safe_environment(monkeypatch, tmp_path):
    """Run every test in an allowed, explicitly enabled environment."""
    monkeypatch.setenv(ENV_ENVIRONMENT, "test")
    monkeypatch.setenv(ENV_ENABLED, "true")
    monkeypatch.setenv(ENV_DUCKDB_PATH, str(tmp_path / "order_datagen.duckdb"))


@pytest.fixture
def config() -> GeneratorConfig:
    """One week of normal operations at a tenth of the normal volume."""
    return GeneratorConfig(
        start_date=datetime(2024, 1, 1),
        end_date=datetime(2024, 1, 8),
        seed=42,
        scenario="normal-ops",
        volume_multiplier=0.1,
        batch_size=100,
        dry_run=True,
    )


@pytest.fixture
def scenario_manager() -> ScenarioManager:
    return ScenarioManager()


@pytest.fixture
def scenario(scenario_manager):
    return scenario_manager.load_scenario("normal-ops")


@pytest.fixture
def anomaly_heavy(scenario_manager):
    return scenario_manager.load_scenario("anomaly-heavy")


@pytest.fixture
def users(config, scenario):
    from order_datagen.generators.entities import UserGenerator

    return UserGenerator(config, scenario).generate(5)


@pytest.fixture
def companies(config, scenario):
    from order_datagen.generators.entities import CompanyGenerator

    return CompanyGenerator(config, scenario).generate(10)


@pytest.fixture
def branches(config, scenario, companies):
    from order_datagen.generators.entities import CompanyGenerator

    return CompanyGenerator(config, scenario).generate_branches(companies, 0.5)


@pytest.fixture
def products(config, scenario):
    from order_datagen.generators.entities import ProductGenerator

    return ProductGenerator(config, scenario).generate(30)


@pytest.fixture
def orders(config, scenario, companies, branches, products):
    from order_datagen.generators.distributions import Sampler
    from order_datagen.generators.entities import OrderGenerator
    from order_datagen.generators.time_series import TimeSeriesEngine

    engine = TimeSeriesEngine(
        config.start_date, config.end_date, Sampler.for_entity(42, "timeSeries")
    )
    return OrderGenerator(
        config, scenario, companies, branches, products, engine
    ).generate_for_date_range(20)
