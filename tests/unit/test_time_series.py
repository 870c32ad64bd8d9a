"""
Unit tests for temporal event placement and delivery-day helpers.
"""

from datetime import datetime

import pytest

_hyp = pytest.importorskip("hypothesis")
from hypothesis import given, settings
from hypothesis import strategies as st

from order_datagen.config.models import AnomalyConfig, TimeSeriesConfig
from order_datagen.generators.date_distributor import DateDistributor, day_of_week
from order_datagen.generators.distributions import Sampler
from order_datagen.generators.time_series import TimedEvent, TimeSeriesEngine
from order_datagen.shared.exceptions import ConfigError
from order_datagen.shared.models import AnomalyType, Region

START = datetime(2024, 1, 1)
END = datetime(2024, 1, 15)


def make_engine(seed: int = 42, **kwargs) -> TimeSeriesEngine:
    return TimeSeriesEngine(START, END, Sampler(seed), **kwargs)


class TestDailyCounts:
    @settings(max_examples=50)
    @given(
        days=st.integers(min_value=1, max_value=120),
        total=st.integers(min_value=0, max_value=5000),
        seed=st.integers(min_value=1, max_value=2**32 - 1),
    )
    def test_counts_sum_exactly(self, days, total, seed):
        counts = make_engine(seed).calculate_daily_counts(START, days, total)
        assert len(counts) == days
        assert sum(counts) == total
        assert all(c >= 0 for c in counts)

    def test_zero_days(self):
        assert make_engine().calculate_daily_counts(START, 0, 10) == []

    def test_negative_total_rejected(self):
        with pytest.raises(ValueError):
            make_engine().calculate_daily_counts(START, 3, -1)

    def test_weekends_are_quieter(self):
        engine = make_engine(time_config=TimeSeriesConfig(weekend_multiplier=0.0))
        # 2024-01-06 and 2024-01-07 are Saturday and Sunday
        counts = engine.calculate_daily_counts(START, 7, 700)
        assert counts[5] == 0 and counts[6] == 0
        assert sum(counts) == 700

    def test_all_days_zero_weight_falls_back_to_flat(self):
        config = TimeSeriesConfig(weekend_multiplier=0.0)
        engine = TimeSeriesEngine(START, END, Sampler(1), time_config=config)
        # 2024-01-06 .. 2024-01-07 is a weekend only
        counts = engine.calculate_daily_counts(datetime(2024, 1, 6), 2, 10)
        assert sum(counts) == 10


class TestTimeSeries:
    def test_events_sorted_and_in_business_hours(self):
        events = make_engine().generate_time_series(lambda ts: ts, 200)
        assert len(events) == 200
        timestamps = [e.timestamp for e in events]
        assert timestamps == sorted(timestamps)
        assert all(8 <= ts.hour < 20 for ts in timestamps)
        assert all(START <= ts < END for ts in timestamps)
        assert all(e.data == e.timestamp for e in events)

    def test_same_seed_same_series(self):
        first = make_engine(7).generate_time_series(lambda ts: ts, 50)
        second = make_engine(7).generate_time_series(lambda ts: ts, 50)
        assert [e.timestamp for e in first] == [e.timestamp for e in second]

    def test_sub_day_range_rejected(self):
        engine = TimeSeriesEngine(START, datetime(2024, 1, 1, 12), Sampler(1))
        with pytest.raises(ConfigError):
            engine.generate_time_series(lambda ts: ts, 5)

    def test_distribute_existing_events(self):
        timed = make_engine().distribute_events_over_time(list(range(30)), START, END)
        assert sorted(e.data for e in timed) == list(range(30))


class TestAnomalyInjection:
    def _events(self, count):
        return [TimedEvent({"anomalies": []}, START) for _ in range(count)]

    @staticmethod
    def _handler(data, anomaly):
        return {"anomalies": [*data["anomalies"], anomaly]}

    def test_spread_rate_zero_changes_nothing(self):
        events = self._events(50)
        result = make_engine().inject_temporal_anomalies(
            events, AnomalyConfig(rate=0.0), self._handler
        )
        assert all(e.data["anomalies"] == [] for e in result)

    def test_spread_rate_one_touches_everything(self):
        result = make_engine().inject_temporal_anomalies(
            self._events(20), AnomalyConfig(rate=1.0), self._handler
        )
        assert all(len(e.data["anomalies"]) == 1 for e in result)

    def test_burst_hits_contiguous_window(self):
        config = AnomalyConfig(rate=0.1, clustering="burst", types=[AnomalyType.DELIVERY_DELAY])
        result = make_engine().inject_temporal_anomalies(self._events(100), config, self._handler)
        touched = [i for i, e in enumerate(result) if e.data["anomalies"]]
        assert len(touched) == 10
        assert touched == list(range(touched[0], touched[0] + 10))

    def test_burst_with_nothing_to_inject(self):
        config = AnomalyConfig(rate=0.01, clustering="burst")
        result = make_engine().inject_temporal_anomalies(self._events(10), config, self._handler)
        assert all(e.data["anomalies"] == [] for e in result)


class TestHelpers:
    def test_accelerate_time(self):
        assert TimeSeriesEngine.accelerate_time(1000, 60_000) == 60

    def test_accelerate_time_rejects_zero(self):
        with pytest.raises(ValueError):
            TimeSeriesEngine.accelerate_time(0, 10)

    def test_inter_arrival_times_positive(self):
        gaps = make_engine().generate_inter_arrival_times(100, 60)
        assert len(gaps) == 100
        assert all(g >= 0 for g in gaps)

    def test_weight_tables(self):
        assert len(TimeSeriesEngine.get_day_of_week_weights()) == 7
        assert len(TimeSeriesEngine.get_hour_of_day_weights()) == 24


class TestDateDistributor:
    def test_day_of_week_sunday_is_zero(self):
        assert day_of_week(datetime(2024, 1, 7)) == 0
        assert day_of_week(datetime(2024, 1, 6)) == 6

    @pytest.mark.parametrize("region", [Region.A, Region.B])
    def test_next_delivery_day_is_a_delivery_day(self, region):
        distributor = DateDistributor(Sampler(1))
        current = START
        for _ in range(14):
            nxt = distributor.next_delivery_day(current, region)
            assert nxt > current
            assert distributor.is_delivery_day(nxt, region)
            current = nxt

    def test_region_without_delivery_days(self):
        distributor = DateDistributor(Sampler(1), delivery_schedule={Region.A: [], Region.B: []})
        assert (distributor.next_delivery_day(START, "A") - START).days == 2

    def test_delivery_dates_within_business_hours(self):
        distributor = DateDistributor(Sampler(3))
        dates = distributor.generate_delivery_dates(START, END, 20, Region.A)
        assert len(dates) == 20
        assert dates == sorted(dates)
        assert all(distributor.is_delivery_day(d, Region.A) for d in dates)
        assert all(8 <= d.hour < 20 for d in dates)

    def test_distribute_evenly(self):
        distributor = DateDistributor(Sampler(3))
        assert distributor.distribute_evenly(START, END, 0) == []
        assert len(distributor.distribute_evenly(START, END, 10)) == 10

    def test_jitter_and_grouping(self):
        distributor = DateDistributor(Sampler(3))
        dates = distributor.distribute_with_jitter(START, END, 28)
        groups = DateDistributor.group_by_day(dates)
        assert sum(len(v) for v in groups.values()) == 28

    def test_poisson_timestamps_clamped(self):
        distributor = DateDistributor(Sampler(5))
        dates = distributor.generate_poisson_timestamps(START, datetime(2024, 1, 2), 2)
        assert len(dates) <= 48
        assert all(d.hour >= 8 for d in dates)
