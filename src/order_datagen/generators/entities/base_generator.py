"""
Base generator infrastructure for entity generation.

Provides the pieces every entity generator shares: a per-entity seeded
Sampler and Faker instance, date helpers bound to the configured window,
anomaly injection and progress logging.
"""

import logging
import math
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Generic, TypeVar

from faker import Faker

from order_datagen.config.models import GeneratorConfig, ScenarioProfile
from order_datagen.generators.distributions import Sampler, derive_seed, resolve_seed
from order_datagen.generators.reference_data import PHONE_PREFIXES
from order_datagen.shared.models import AnomalyType

logger = logging.getLogger(__name__)

T = TypeVar("T")
ItemT = TypeVar("ItemT")

DEFAULT_ANOMALY_TYPES = [AnomalyType.PAYMENT_DELAY, AnomalyType.DELIVERY_DELAY]

PROGRESS_LOG_INTERVAL = 1000


class BaseGenerator(ABC, Generic[T]):
    """
    Base class providing shared infrastructure for entity generation.

    Each subclass sets ``entity_name``; the sampler and Faker streams are
    derived from the root seed and that name, so generators are independent
    of one another and of the order they are constructed in.
    """

    entity_name: str = "entities"

    def __init__(
        self,
        config: GeneratorConfig,
        scenario: ScenarioProfile,
        seed: int | None = None,
    ):
        """
        Initialize base generator infrastructure.

        Args:
            config: Generation window, seed and volume settings
            scenario: Scenario profile governing rates and distributions
            seed: Root seed; defaults to ``config.seed`` and is drawn from
                the OS when both are missing
        """
        self.config = config
        self.scenario = scenario
        self.root_seed = resolve_seed(seed if seed is not None else config.seed)

        self.sampler = Sampler.for_entity(self.root_seed, self.entity_name)
        self.faker = Faker()
        self.faker.seed_instance(derive_seed(self.root_seed, f"{self.entity_name}:faker"))

        self.start_date: datetime = config.start_date
        self.end_date: datetime = config.end_date

    @abstractmethod
    def generate(self, count: int) -> list[T]:
        """Generate ``count`` records (fewer when upstream data limits it)."""

    # ------------------------------------------------------------------
    # Anomalies
    # ------------------------------------------------------------------

    def anomaly_types(self) -> list[AnomalyType]:
        config = self.scenario.anomaly_config
        if config is not None and config.types:
            return list(config.types)
        return list(DEFAULT_ANOMALY_TYPES)

    def inject_anomalies(
        self, items: list[ItemT], handler: Callable[[ItemT, AnomalyType], ItemT]
    ) -> list[ItemT]:
        """
        Run one Bernoulli(anomaly_rate) trial per item.

        On success a random anomaly type is drawn and ``handler`` returns the
        replacement item.
        """
        rate = self.scenario.anomaly_rate
        types = self.anomaly_types()
        result = []
        for item in items:
            if self.sampler.random() < rate:
                item = handler(item, self.sampler.pick_one(types))
            result.append(item)
        return result

    # ------------------------------------------------------------------
    # Dates
    # ------------------------------------------------------------------

    def random_date_in_range(self) -> datetime:
        span = self.end_date - self.start_date
        return self.start_date + span * self.sampler.random()

    def random_business_hour_date(self) -> datetime:
        """Random day in the window at a time between 08:00 and 20:00."""
        value = self.random_date_in_range()
        hour = 8 + math.floor(self.sampler.random() * 12)
        minute = math.floor(self.sampler.random() * 60)
        return value.replace(hour=hour, minute=minute, second=0, microsecond=0)

    def add_days(self, value: datetime, days: float) -> datetime:
        return value + timedelta(days=days)

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def generate_id(self) -> str:
        return self.sampler.uuid()

    @staticmethod
    def round(value: float, precision: int = 2) -> float:
        """Round half-up to ``precision`` decimal places."""
        multiplier = 10**precision
        return math.floor(value * multiplier + 0.5) / multiplier

    def egyptian_phone(self) -> str:
        prefix = self.sampler.pick_one(PHONE_PREFIXES)
        number = math.floor(self.sampler.random() * 100_000_000)
        return f"+20{prefix}{number:08d}"

    def log_progress(self, generated: int, total: int) -> None:
        if total <= 0:
            return
        if generated % PROGRESS_LOG_INTERVAL == 0 or generated == total:
            percent = round(generated / total * 100)
            logger.debug(
                f"[{self.entity_name}] Generated {generated:,}/{total:,} ({percent}%)"
            )
