"""
Environment-derived settings for the order data generator.

Everything that depends on the process environment is read here so that the
safety guard, logging and storage layers share one interpretation of it.
"""

import os
from pathlib import Path

from .models import GeneratorConfig

ENV_ENVIRONMENT = "ORDER_DATAGEN_ENV"
ENV_ENABLED = "ORDER_DATAGEN_ENABLED"
ENV_LOG_LEVEL = "ORDER_DATAGEN_LOG_LEVEL"
ENV_DUCKDB_PATH = "ORDER_DATAGEN_DUCKDB_PATH"

DEFAULT_ENVIRONMENT = "development"


def get_environment() -> str:
    """Return the current execution environment name (lower-cased)."""
    return os.environ.get(ENV_ENVIRONMENT, DEFAULT_ENVIRONMENT).strip().lower()


def is_generation_enabled() -> bool:
    """True when the explicit enable flag is set to "true"."""
    return os.environ.get(ENV_ENABLED, "").strip().lower() == "true"


def get_log_level() -> str:
    return os.environ.get(ENV_LOG_LEVEL, "INFO")


def get_duckdb_path() -> Path:
    """Location of the DuckDB file used by the DuckDB store."""
    raw = os.environ.get(ENV_DUCKDB_PATH)
    if raw:
        return Path(raw)
    return Path("data") / "order_datagen.duckdb"


def load_config(config_path: str | Path) -> GeneratorConfig:
    """
    Load a generator configuration from a JSON file or a directory holding one.

    Args:
        config_path: Path to a JSON file, or a directory containing
            ``generator_config.json``

    Returns:
        GeneratorConfig: Loaded and validated configuration

    Raises:
        FileNotFoundError: If no configuration file is found
        ConfigError: If the configuration is invalid
    """
    path = Path(config_path)
    if path.is_dir():
        path = path / "generator_config.json"
    return GeneratorConfig.from_file(path)
