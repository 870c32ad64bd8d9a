"""
Temporal placement of generated events.

The engine spreads a number of events over the configured date range with
weekend and seasonal weighting, synthesizes business-hour timestamps, and
injects anomalies either spread at random or clustered in bursts.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Generic, TypeVar

import numpy as np

from order_datagen.config.models import AnomalyConfig, TimeSeriesConfig
from order_datagen.generators.distributions import Sampler
from order_datagen.shared.exceptions import ConfigError
from order_datagen.shared.models import AnomalyClustering, AnomalyType

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_ANOMALY_TYPES = [AnomalyType.DELIVERY_DELAY, AnomalyType.PAYMENT_DELAY]


@dataclass
class TimedEvent(Generic[T]):
    """An event payload paired with the timestamp it was placed at."""

    data: T
    timestamp: datetime


def _midnight(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


class TimeSeriesEngine:
    """Distributes events across ``[start_date, end_date)``."""

    def __init__(
        self,
        start_date: datetime,
        end_date: datetime,
        sampler: Sampler,
        time_config: TimeSeriesConfig | None = None,
    ):
        self.start_date = start_date
        self.end_date = end_date
        self.time_config = time_config or TimeSeriesConfig()
        self._sampler = sampler
        self._np_rng = np.random.default_rng(sampler.seed % 2**63 + 777)

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days

    # ------------------------------------------------------------------
    # Daily weighting
    # ------------------------------------------------------------------

    def _day_weights(self, start: datetime, days: int) -> np.ndarray:
        weights = np.ones(days, dtype=float)
        for offset in range(days):
            day = start + timedelta(days=offset)
            if day.weekday() >= 5:
                weights[offset] *= self.time_config.weekend_multiplier
            if day.month in self.time_config.peak_months:
                weights[offset] *= self.time_config.peak_multiplier
        # 70% to 130% jitter
        weights *= 0.7 + self._np_rng.random(days) * 0.6
        return weights

    def calculate_daily_counts(
        self, start: datetime, days: int, total_count: int
    ) -> list[int]:
        """
        Split ``total_count`` events across ``days`` days.

        Day weights combine the weekend multiplier, the peak-month multiplier
        and a uniform jitter. Counts are rounded half-up and the rounding
        drift is applied to the day with the highest weight, so the counts
        always sum to ``total_count`` exactly.

        Args:
            start: First day of the range
            days: Number of days
            total_count: Events to distribute (>= 0)

        Returns:
            One non-negative count per day
        """
        if days <= 0:
            return []
        if total_count < 0:
            raise ValueError("total_count must be non-negative")

        weights = self._day_weights(start, days)
        weight_sum = weights.sum()
        if weight_sum <= 0:
            # Every day weighted to zero; fall back to a flat split
            weights = np.ones(days, dtype=float)
            weight_sum = float(days)

        counts = np.floor(weights / weight_sum * total_count + 0.5).astype(int)
        drift = total_count - int(counts.sum())

        order = np.argsort(-weights, kind="stable")
        counts[order[0]] += drift

        # A large negative drift can push the peak day below zero; carry the
        # deficit into the next heaviest days.
        deficit = -min(0, int(counts[order[0]]))
        counts[order[0]] = max(0, int(counts[order[0]]))
        for idx in order[1:]:
            if deficit == 0:
                break
            take = min(deficit, int(counts[idx]))
            counts[idx] -= take
            deficit -= take

        return [int(c) for c in counts]

    # ------------------------------------------------------------------
    # Timestamps
    # ------------------------------------------------------------------

    def generate_timestamp_for_day(self, date: datetime) -> datetime:
        """Random business-hour timestamp on the given day."""
        start = self.time_config.business_hours_start
        end = self.time_config.business_hours_end
        hour = start + math.floor(self._sampler.random() * (end - start))
        minute = math.floor(self._sampler.random() * 60)
        second = math.floor(self._sampler.random() * 60)
        return _midnight(date).replace(hour=hour, minute=minute, second=second)

    def generate_time_series(
        self, generate_fn: Callable[[datetime], T], total_count: int
    ) -> list[TimedEvent[T]]:
        """
        Create ``total_count`` events across the configured range.

        Args:
            generate_fn: Called with each event's timestamp to build its payload
            total_count: Number of events

        Returns:
            Events sorted ascending by timestamp

        Raises:
            ConfigError: If the range covers no whole day
        """
        days = self.days
        if days <= 0:
            raise ConfigError(
                "End date must be at least one day after start date",
                field="end_date",
                value=self.end_date.isoformat(),
            )

        start = _midnight(self.start_date)
        daily_counts = self.calculate_daily_counts(start, days, total_count)

        events: list[TimedEvent[T]] = []
        for offset, count in enumerate(daily_counts):
            day = start + timedelta(days=offset)
            for _ in range(count):
                timestamp = self.generate_timestamp_for_day(day)
                events.append(TimedEvent(generate_fn(timestamp), timestamp))

        events.sort(key=lambda e: e.timestamp)
        logger.debug(f"Placed {len(events)} events over {days} days")
        return events

    def distribute_events_over_time(
        self, events: Sequence[T], start: datetime, end: datetime
    ) -> list[TimedEvent[T]]:
        """Assign timestamps to existing payloads, sorted by timestamp."""
        days = (end - start).days
        day0 = _midnight(start)
        daily_counts = self.calculate_daily_counts(day0, days, len(events))

        timed: list[TimedEvent[T]] = []
        index = 0
        for offset, count in enumerate(daily_counts):
            day = day0 + timedelta(days=offset)
            for _ in range(count):
                if index >= len(events):
                    break
                timed.append(
                    TimedEvent(events[index], self.generate_timestamp_for_day(day))
                )
                index += 1

        timed.sort(key=lambda e: e.timestamp)
        return timed

    # ------------------------------------------------------------------
    # Anomalies
    # ------------------------------------------------------------------

    def inject_temporal_anomalies(
        self,
        events: list[TimedEvent[T]],
        anomaly_config: AnomalyConfig,
        handler: Callable[[T, AnomalyType], T],
    ) -> list[TimedEvent[T]]:
        """
        Apply anomaly handlers to events.

        ``spread`` runs an independent Bernoulli trial per event. ``burst``
        mutates contiguous windows of events; windows may overlap, so
        handlers must tolerate being applied to an already-anomalous event.
        """
        types = anomaly_config.types or DEFAULT_ANOMALY_TYPES
        clustering = anomaly_config.clustering or AnomalyClustering.SPREAD

        if clustering == AnomalyClustering.BURST:
            return self._inject_burst(events, anomaly_config.rate, types, handler)
        return self._inject_spread(events, anomaly_config.rate, types, handler)

    def _inject_spread(self, events, rate, types, handler):
        result = []
        for event in events:
            if self._sampler.random() < rate:
                anomaly = self._sampler.pick_one(types)
                event = replace(event, data=handler(event.data, anomaly))
            result.append(event)
        return result

    def _inject_burst(self, events, rate, types, handler):
        result = list(events)
        total = len(events)
        total_anomalies = math.floor(total * rate)
        if total == 0 or total_anomalies == 0:
            return result

        burst_count = max(1, math.floor(total_anomalies / 10))
        per_burst = math.ceil(total_anomalies / burst_count)

        for _ in range(burst_count):
            start_idx = max(0, math.floor(self._sampler.random() * (total - per_burst)))
            for idx in range(start_idx, min(start_idx + per_burst, total)):
                anomaly = self._sampler.pick_one(types)
                result[idx] = replace(result[idx], data=handler(result[idx].data, anomaly))

        logger.debug(
            f"Injected {burst_count} anomaly bursts of up to {per_burst} events"
        )
        return result

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def accelerate_time(real_duration_ms: float, simulated_duration_ms: float) -> float:
        """Ratio of simulated to real duration."""
        if real_duration_ms <= 0:
            raise ValueError("real_duration_ms must be positive")
        return simulated_duration_ms / real_duration_ms

    def generate_inter_arrival_times(
        self, count: int, average_rate_per_hour: float
    ) -> list[float]:
        """Exponential inter-arrival gaps in milliseconds."""
        lam = average_rate_per_hour / 3_600_000
        return [self._sampler.exponential(lam) for _ in range(count)]

    @staticmethod
    def get_day_of_week_weights() -> list[float]:
        """Relative activity per weekday, Sunday=0 .. Saturday=6."""
        return [0.3, 1.0, 1.0, 1.0, 1.0, 0.9, 0.4]

    @staticmethod
    def get_hour_of_day_weights() -> list[float]:
        weights = []
        for hour in range(24):
            if hour < 6:
                weights.append(0.05)
            elif hour < 9:
                weights.append(0.5)
            elif hour < 12:
                weights.append(1.0)
            elif hour < 14:
                weights.append(0.7)
            elif hour < 17:
                weights.append(1.0)
            elif hour < 20:
                weights.append(0.6)
            else:
                weights.append(0.1)
        return weights
