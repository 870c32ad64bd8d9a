"""
Unit tests for the seeded sampling primitives.
"""

import math

import pytest

_hyp = pytest.importorskip("hypothesis")
from hypothesis import given
from hypothesis import strategies as st

from order_datagen.generators.distributions import (
    Sampler,
    derive_seed,
    resolve_seed,
    zipf_weights,
)


class TestSeeding:
    def test_same_seed_same_stream(self):
        a = Sampler(123)
        b = Sampler(123)
        assert [a.random() for _ in range(20)] == [b.random() for _ in range(20)]

    def test_entity_streams_are_independent(self):
        orders = Sampler.for_entity(42, "orders")
        users = Sampler.for_entity(42, "users")
        assert orders.seed != users.seed
        assert orders.random() != users.random()

    def test_derive_seed_is_stable(self):
        assert derive_seed(42, "orders") == derive_seed(42, "orders")
        assert derive_seed(42, "orders") != derive_seed(43, "orders")

    def test_resolve_seed_keeps_explicit_seed(self):
        assert resolve_seed(7) == 7

    def test_resolve_seed_draws_when_missing(self):
        seed = resolve_seed(None)
        assert 1 <= seed <= 2**32 - 1

    def test_uuid_is_deterministic_v4(self):
        first = Sampler(1).uuid()
        assert first == Sampler(1).uuid()
        assert first[14] == "4"


class TestUniform:
    @given(seed=st.integers(min_value=1, max_value=2**32 - 1))
    def test_random_in_unit_interval(self, seed):
        value = Sampler(seed).random()
        assert 0 <= value < 1

    @given(
        seed=st.integers(min_value=1, max_value=2**32 - 1),
        low=st.integers(min_value=-1000, max_value=1000),
        span=st.integers(min_value=1, max_value=1000),
    )
    def test_uniform_int_excludes_max(self, seed, low, span):
        value = Sampler(seed).uniform_int(low, low + span)
        assert low <= value < low + span

    @pytest.mark.parametrize("skew", ["low", "mid", "high"])
    def test_in_range_stays_in_bounds(self, skew):
        sampler = Sampler(5)
        values = [sampler.in_range(10, 20, skew) for _ in range(200)]
        assert all(10 <= v <= 20 for v in values)

    def test_in_range_skew_moves_mean(self):
        low = Sampler(5)
        high = Sampler(5)
        low_mean = sum(low.in_range(0, 1, "low") for _ in range(2000)) / 2000
        high_mean = sum(high.in_range(0, 1, "high") for _ in range(2000)) / 2000
        assert low_mean < 0.5 < high_mean


class TestSelection:
    def test_weighted_choice_respects_zero_weights(self):
        sampler = Sampler(9)
        picks = {sampler.weighted_choice({"a": 0.0, "b": 1.0}) for _ in range(100)}
        assert picks == {"b"}

    def test_weighted_choice_rejects_empty(self):
        with pytest.raises(ValueError):
            Sampler(1).weighted_choice({})

    @given(count=st.integers(min_value=1, max_value=500))
    def test_zipf_weights_sum_to_one(self, count):
        weights = zipf_weights(count)
        assert math.isclose(sum(weights), 1.0, rel_tol=1e-9)
        assert weights == sorted(weights, reverse=True)

    def test_zipf_favours_head(self):
        sampler = Sampler(11)
        items = list(range(50))
        picks = [sampler.zipf(items) for _ in range(2000)]
        assert picks.count(0) > picks.count(49)

    def test_zipf_rejects_empty(self):
        with pytest.raises(ValueError):
            Sampler(1).zipf([])

    @pytest.mark.parametrize("mode", ["zipf", "normal", "uniform"])
    def test_select_by_popularity_returns_member(self, mode):
        sampler = Sampler(3)
        items = ["a", "b", "c", "d"]
        assert all(sampler.select_by_popularity(items, mode) in items for _ in range(50))

    def test_pick_random_without_replacement(self):
        picked = Sampler(2).pick_random(list(range(10)), 4)
        assert len(picked) == 4
        assert len(set(picked)) == 4

    def test_pick_random_count_exceeds_items(self):
        assert Sampler(2).pick_random([1, 2], 5) == [1, 2]

    def test_shuffle_is_permutation(self):
        items = list(range(20))
        assert sorted(Sampler(4).shuffle(items)) == items

    def test_pick_one_rejects_empty(self):
        with pytest.raises(ValueError):
            Sampler(1).pick_one([])


class TestContinuous:
    def test_normal_mean(self):
        sampler = Sampler(21)
        values = sampler.samples(lambda: sampler.normal(10, 2), 5000)
        assert abs(sum(values) / len(values) - 10) < 0.2

    @given(seed=st.integers(min_value=1, max_value=2**32 - 1))
    def test_truncated_normal_in_bounds(self, seed):
        value = Sampler(seed).truncated_normal(0, 5, -1, 1)
        assert -1 <= value <= 1

    def test_truncated_normal_rejects_inverted_bounds(self):
        with pytest.raises(ValueError):
            Sampler(1).truncated_normal(0, 1, 2, 1)

    def test_poisson_mean(self):
        sampler = Sampler(8)
        values = sampler.samples(lambda: sampler.poisson(4), 5000)
        assert all(v >= 0 for v in values)
        assert abs(sum(values) / len(values) - 4) < 0.2

    def test_exponential_rejects_non_positive_rate(self):
        with pytest.raises(ValueError):
            Sampler(1).exponential(0)

    def test_gamma_and_beta_ranges(self):
        sampler = Sampler(13)
        assert all(sampler.gamma(0.5) > 0 for _ in range(100))
        assert all(0 < sampler.beta(2, 5) < 1 for _ in range(100))

    def test_gamma_rejects_non_positive_shape(self):
        with pytest.raises(ValueError):
            Sampler(1).gamma(0)

    def test_triangular_bounds_and_degenerate_span(self):
        sampler = Sampler(17)
        assert all(1 <= sampler.triangular(1, 2, 5) <= 5 for _ in range(200))
        assert sampler.triangular(3, 3, 3) == 3

    def test_log_normal_positive(self):
        sampler = Sampler(19)
        assert all(sampler.log_normal(0, 1) > 0 for _ in range(100))
