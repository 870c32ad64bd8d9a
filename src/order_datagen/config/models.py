"""
Configuration models for the order data generator.

These models define the structure and validation for generator run
configurations, scenario profiles, safety settings and time-series tuning.
Configurations are loaded from JSON files or plain mappings.
"""

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from order_datagen.shared.exceptions import ConfigError
from order_datagen.shared.models import (
    AnomalyClustering,
    AnomalyType,
    OrderStatus,
    PaymentStatus,
    Region,
)

logger = logging.getLogger(__name__)

DISTRIBUTION_TOLERANCE = 1e-3


def _check_sums_to_one(name: str, weights: dict[Any, float]) -> dict[Any, float]:
    total = sum(weights.values())
    if abs(total - 1.0) >= DISTRIBUTION_TOLERANCE:
        raise ValueError(f"{name} distribution must sum to 1 (got {total:.4f})")
    return weights


class EntityVolume(BaseModel):
    """Per-entity target rates for one scenario."""

    users: int = Field(20, ge=1, le=10_000, description="Number of users")
    companies: int = Field(100, ge=1, le=100_000, description="Number of companies")
    branch_ratio: float = Field(
        0.3, ge=0.0, le=1.0, description="Fraction of companies that get branches"
    )
    products: int = Field(200, ge=1, le=50_000, description="Catalogue size")
    orders_per_day: int = Field(
        50, ge=1, le=10_000, description="Average number of orders per day"
    )
    maintenance_visits_per_week: int = Field(
        10, ge=0, le=1000, description="Average maintenance visits per week"
    )


def _default_order_status() -> dict[OrderStatus, float]:
    return {
        OrderStatus.PENDING: 0.1,
        OrderStatus.PROCESSING: 0.0,
        OrderStatus.SHIPPED: 0.15,
        OrderStatus.DELIVERED: 0.7,
        OrderStatus.CANCELLED: 0.05,
        OrderStatus.DELIVERY_FAILED: 0.0,
    }


def _default_payment_status() -> dict[PaymentStatus, float]:
    return {
        PaymentStatus.PAID: 0.8,
        PaymentStatus.PENDING: 0.15,
        PaymentStatus.OVERDUE: 0.05,
    }


def _default_regions() -> dict[Region, float]:
    return {Region.A: 0.6, Region.B: 0.4}


class DistributionConfig(BaseModel):
    """Categorical distributions that shape generated entities.

    Every categorical mapping must sum to 1 within 1e-3.
    """

    order_status: dict[OrderStatus, float] = Field(default_factory=_default_order_status)
    payment_status: dict[PaymentStatus, float] = Field(
        default_factory=_default_payment_status
    )
    product_popularity: Literal["zipf", "normal", "uniform"] = Field(
        "zipf", description="How product demand is skewed across the catalogue"
    )
    region_distribution: dict[Region, float] = Field(default_factory=_default_regions)
    delivery_delays: float = Field(
        0.1, ge=0.0, le=1.0, description="Probability that a shipment is delayed"
    )

    @field_validator("order_status", "payment_status", "region_distribution")
    @classmethod
    def validate_weights(cls, v: dict[Any, float], info) -> dict[Any, float]:
        """Weights must lie in [0, 1] and sum to 1."""
        for key, weight in v.items():
            if weight < 0 or weight > 1:
                raise ValueError(f"weight for {key} must be between 0 and 1")
        label = info.field_name.replace("_", " ").replace(" distribution", "")
        return _check_sums_to_one(label.capitalize(), v)


class AnomalyConfig(BaseModel):
    rate: float = Field(0.05, ge=0.0, le=1.0, description="Anomaly probability")
    types: list[AnomalyType] | None = Field(
        None, description="Anomaly types to draw from"
    )
    clustering: AnomalyClustering | None = None


class ValueRange(BaseModel):
    min: float = Field(100, ge=0)
    max: float = Field(50_000, ge=0)

    @model_validator(mode="after")
    def validate_bounds(self) -> "ValueRange":
        if self.min > self.max:
            raise ValueError("min must not exceed max")
        return self


class CompanySizeDistribution(BaseModel):
    small: float = Field(0.6, ge=0.0, le=1.0)
    medium: float = Field(0.3, ge=0.0, le=1.0)
    large: float = Field(0.1, ge=0.0, le=1.0)


class ProfileOverrides(BaseModel):
    """Optional scenario-level overrides of generator behaviour."""

    payment_methods: list[Literal["transfer", "check"]] | None = None
    order_value_range: ValueRange | None = None
    product_categories: list[str] | None = None
    company_size_distribution: CompanySizeDistribution | None = None


class ScenarioProfile(BaseModel):
    """Named bundle of entity volumes, distributions and anomaly settings."""

    name: str = Field(..., min_length=1, max_length=50)
    description: str = Field("", max_length=500)
    entity_rates: EntityVolume = Field(default_factory=EntityVolume)
    distributions: DistributionConfig = Field(default_factory=DistributionConfig)
    anomaly_rate: float = Field(0.05, ge=0.0, le=1.0)
    anomaly_config: AnomalyConfig | None = None
    profile_overrides: ProfileOverrides | None = None

    @classmethod
    def from_file(cls, file_path: str | Path) -> "ScenarioProfile":
        """
        Load a scenario profile from a JSON file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ConfigError: If the file is not valid JSON
            pydantic.ValidationError: If the profile doesn't match the schema
        """
        return cls.model_validate(_read_json(file_path))

    def to_file(self, file_path: str | Path) -> None:
        _write_json(file_path, self.model_dump(mode="json", exclude_none=True))


class SafetyConfig(BaseModel):
    """Settings consumed by the safety guard."""

    target_schema: str = Field("mock_data", min_length=1)
    require_explicit_enable: bool = True
    max_records_per_entity: int = Field(1_000_000, ge=1000, le=10_000_000)
    allowed_environments: list[str] = Field(
        default_factory=lambda: ["development", "test", "staging"]
    )
    block_production_writes: bool = True
    protected_schema: str = Field(
        "public", description="Namespace that must never receive generated data"
    )


class TimeSeriesConfig(BaseModel):
    """Tuning for how events are spread over days and hours."""

    pattern: Literal["uniform", "business_hours", "seasonal"] = "business_hours"
    business_hours_start: int = Field(8, ge=0, le=23)
    business_hours_end: int = Field(20, ge=1, le=24)
    weekend_multiplier: float = Field(0.3, ge=0.0)
    peak_months: list[int] = Field(default_factory=lambda: [11, 12, 1])
    peak_multiplier: float = Field(1.5, ge=0.0)

    @model_validator(mode="after")
    def validate_business_hours(self) -> "TimeSeriesConfig":
        if self.business_hours_start >= self.business_hours_end:
            raise ValueError("business_hours_start must be before business_hours_end")
        return self


def parse_datetime(value: Any) -> Any:
    """Parse ISO datetimes or YYYY-MM-DD dates into naive UTC datetimes."""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as e:
            raise ValueError(
                f"Invalid date '{value}', expected ISO datetime or YYYY-MM-DD"
            ) from e
    if isinstance(value, datetime) and value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value


class GeneratorConfig(BaseModel):
    """Configuration of a single generation run."""

    start_date: datetime = Field(..., description="Inclusive start of the date range")
    end_date: datetime = Field(..., description="Exclusive end of the date range")
    seed: int | None = Field(
        None,
        gt=0,
        le=2**32 - 1,
        description="Random seed for reproducible data generation",
    )
    scenario: str = Field("normal-ops", min_length=1)
    volume_multiplier: float = Field(1.0, ge=0.1, le=100.0)
    batch_size: int = Field(1000, ge=100, le=10_000)
    dry_run: bool = False

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> Any:
        return parse_datetime(v)

    @model_validator(mode="after")
    def validate_date_range(self) -> "GeneratorConfig":
        """start_date must be strictly before end_date."""
        if self.start_date >= self.end_date:
            raise ConfigError(
                "start_date must be before end_date",
                field="start_date",
                value=f"{self.start_date.isoformat()} >= {self.end_date.isoformat()}",
            )
        return self

    @property
    def days(self) -> int:
        """Whole days covered by the range."""
        return (self.end_date - self.start_date).days

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "GeneratorConfig":
        """
        Build a configuration from a plain mapping.

        Raises:
            ConfigError: If any field is missing or invalid
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            problems = [
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
            raise ConfigError(
                f"Invalid generator configuration: {'; '.join(problems)}"
            ) from e

    @classmethod
    def from_file(cls, file_path: str | Path) -> "GeneratorConfig":
        """
        Load configuration from a JSON file.

        Args:
            file_path: Path to the configuration JSON file

        Returns:
            GeneratorConfig instance

        Raises:
            FileNotFoundError: If the file doesn't exist
            ConfigError: If the JSON is invalid or doesn't match the schema
        """
        return cls.from_mapping(_read_json(file_path))

    def to_file(self, file_path: str | Path) -> None:
        """
        Save configuration to a JSON file.

        Args:
            file_path: Path where to save the configuration file
        """
        _write_json(file_path, self.model_dump(mode="json"))


def _read_json(file_path: str | Path) -> dict[str, Any]:
    path = Path(file_path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    try:
        with path.open("r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in configuration file: {e}", field=str(path))

    if not isinstance(data, dict):
        raise ConfigError("Configuration file must contain a JSON object", field=str(path))
    return data


def _write_json(file_path: str | Path, payload: dict[str, Any]) -> None:
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("w") as f:
        json.dump(payload, f, indent=2)
    logger.debug(f"Wrote configuration to {path}")
