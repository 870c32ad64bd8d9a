"""
Delivery-schedule aware date helpers.

Weekdays are numbered Sunday=0 .. Saturday=6 throughout this module, matching
the ``delivery_days`` stored on companies and branches.
"""

import math
from collections import defaultdict
from datetime import date, datetime, timedelta

from order_datagen.generators.distributions import Sampler
from order_datagen.shared.models import Region

# Region A delivers Sun/Tue/Thu, region B Mon/Wed/Sat
DEFAULT_DELIVERY_SCHEDULE: dict[Region, list[int]] = {
    Region.A: [0, 2, 4],
    Region.B: [1, 3, 6],
}

DEFAULT_BUSINESS_HOURS = (8, 20)


def day_of_week(value: date) -> int:
    """Weekday number with Sunday=0."""
    return (value.weekday() + 1) % 7


class DateDistributor:
    """Places timestamps on delivery days and within business hours."""

    def __init__(
        self,
        sampler: Sampler,
        delivery_schedule: dict[Region, list[int]] | None = None,
        business_hours: tuple[int, int] = DEFAULT_BUSINESS_HOURS,
    ):
        self._sampler = sampler
        self.delivery_schedule = delivery_schedule or {
            region: list(days) for region, days in DEFAULT_DELIVERY_SCHEDULE.items()
        }
        self.business_hours = business_hours

    def delivery_days_for(self, region: Region | str) -> list[int]:
        return list(self.delivery_schedule[Region(region)])

    def is_delivery_day(self, value: date, region: Region | str) -> bool:
        return day_of_week(value) in self.delivery_schedule[Region(region)]

    def next_delivery_day(self, from_date: datetime, region: Region | str) -> datetime:
        """
        First delivery day strictly after ``from_date``, same time of day.

        Falls back to two days later if the region has no delivery days.
        """
        for offset in range(1, 8):
            candidate = from_date + timedelta(days=offset)
            if self.is_delivery_day(candidate, region):
                return candidate
        return from_date + timedelta(days=2)

    def get_next_delivery_date(self, from_date: datetime, region: Region | str) -> datetime:
        """Next delivery day after ``from_date`` at a random business-hour time."""
        return self._time_within_business_hours(self.next_delivery_day(from_date, region))

    def generate_delivery_dates(
        self, start: datetime, end: datetime, count: int, region: Region | str
    ) -> list[datetime]:
        """Spread ``count`` timestamps over the delivery days in ``[start, end]``."""
        delivery_days = []
        current = start
        while current <= end:
            if self.is_delivery_day(current, region):
                delivery_days.append(current)
            current += timedelta(days=1)

        if not delivery_days:
            return [self.get_next_delivery_date(start, region)]

        per_day = math.ceil(count / len(delivery_days))
        dates: list[datetime] = []
        for day in delivery_days:
            for _ in range(min(per_day, count - len(dates))):
                dates.append(self._time_within_business_hours(day))
            if len(dates) >= count:
                break
        return sorted(dates)

    def distribute_evenly(self, start: datetime, end: datetime, count: int) -> list[datetime]:
        if count <= 0:
            return []
        interval = (end - start) / count
        return [self._apply_business_hours(start + interval * i) for i in range(count)]

    def distribute_with_jitter(
        self,
        start: datetime,
        end: datetime,
        count: int,
        jitter_percent: float = 0.2,
    ) -> list[datetime]:
        """Evenly spaced timestamps shifted by up to ``jitter_percent`` of the gap."""
        if count <= 0:
            return []
        interval = (end - start) / count
        max_jitter = interval * jitter_percent
        dates = []
        for i in range(count):
            jitter = max_jitter * ((self._sampler.random() - 0.5) * 2)
            dates.append(self._apply_business_hours(start + interval * i + jitter))
        return sorted(dates)

    def generate_poisson_timestamps(
        self, start: datetime, end: datetime, average_per_hour: float
    ) -> list[datetime]:
        """Timestamps with exponential inter-arrival gaps, clamped to business hours."""
        total_hours = (end - start).total_seconds() / 3600
        expected = math.floor(total_hours * average_per_hour)
        per_minute = average_per_hour / 60

        dates: list[datetime] = []
        current = start
        for _ in range(expected * 2):
            if current >= end:
                break
            current = current + timedelta(minutes=self._sampler.exponential(per_minute))
            if current <= end:
                dates.append(self._apply_business_hours(current))
        return dates[:expected]

    @staticmethod
    def group_by_day(dates: list[datetime]) -> dict[str, list[datetime]]:
        groups: dict[str, list[datetime]] = defaultdict(list)
        for value in dates:
            groups[value.date().isoformat()].append(value)
        return dict(groups)

    def _apply_business_hours(self, value: datetime) -> datetime:
        start, end = self.business_hours
        if value.hour < start:
            return value.replace(hour=start, minute=math.floor(self._sampler.random() * 60))
        if value.hour >= end:
            next_day = value + timedelta(days=1)
            return next_day.replace(
                hour=start, minute=math.floor(self._sampler.random() * 60)
            )
        return value

    def _time_within_business_hours(self, day: datetime) -> datetime:
        start, end = self.business_hours
        hour = start + math.floor(self._sampler.random() * (end - start))
        minute = math.floor(self._sampler.random() * 60)
        second = math.floor(self._sampler.random() * 60)
        return day.replace(hour=hour, minute=minute, second=second, microsecond=0)
