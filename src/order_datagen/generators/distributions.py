"""
Seeded statistical sampling primitives.

All sampling goes through :class:`Sampler`, which wraps a single
``random.Random`` so that output is fully determined by the seed and the
order of calls. Entity generators each receive their own sampler whose seed
is derived from the run's root seed and the entity name.
"""

import hashlib
import math
import random
import uuid
from collections.abc import Callable, Mapping, Sequence
from typing import Literal, TypeVar

T = TypeVar("T")
K = TypeVar("K")

DEFAULT_ZIPF_ALPHA = 1.07


def derive_seed(root_seed: int, name: str) -> int:
    """Derive a stable 64-bit sub-seed from a root seed and a component name."""
    digest = hashlib.sha256(f"{root_seed}:{name}".encode()).digest()
    return int.from_bytes(digest[:8], "big")


def resolve_seed(seed: int | None) -> int:
    """Return ``seed``, or draw a fresh one from the OS when it is missing."""
    if seed is not None:
        return seed
    return random.SystemRandom().randint(1, 2**32 - 1)


def zipf_weights(count: int, alpha: float = DEFAULT_ZIPF_ALPHA) -> list[float]:
    """Normalised Zipf weights for ranks 1..count (sum to 1)."""
    raw = [1.0 / math.pow(k, alpha) for k in range(1, count + 1)]
    harmonic = sum(raw)
    return [w / harmonic for w in raw]


class Sampler:
    """Deterministic sampling helper built on one ``random.Random``."""

    def __init__(self, seed: int):
        self.seed = seed
        self._rng = random.Random(seed)

    @classmethod
    def for_entity(cls, root_seed: int, name: str) -> "Sampler":
        """Create a sampler whose stream is independent per entity name."""
        return cls(derive_seed(root_seed, name))

    @property
    def rng(self) -> random.Random:
        return self._rng

    # ------------------------------------------------------------------
    # Uniform draws
    # ------------------------------------------------------------------

    def random(self) -> float:
        """Uniform float in [0, 1)."""
        return self._rng.random()

    def chance(self, probability: float) -> bool:
        """Bernoulli trial."""
        return self._rng.random() < probability

    def uniform(self, min_value: float, max_value: float) -> float:
        return min_value + self._rng.random() * (max_value - min_value)

    def uniform_int(self, min_value: int, max_value: int) -> int:
        """Integer in [min_value, max_value), the floor of a uniform draw."""
        return math.floor(self.uniform(min_value, max_value))

    def in_range(
        self,
        min_value: float,
        max_value: float,
        skew: Literal["low", "mid", "high"] = "mid",
    ) -> float:
        """
        Draw a value in a range, optionally biased toward one end.

        Args:
            min_value: Lower bound
            max_value: Upper bound
            skew: "low" biases toward min_value, "high" toward max_value,
                "mid" is uniform

        Returns:
            Sampled value
        """
        u = self._rng.random()
        if skew == "low":
            u = u * u
        elif skew == "high":
            u = 1 - (1 - u) ** 2
        return min_value + u * (max_value - min_value)

    def uuid(self) -> str:
        """RNG-derived version 4 UUID string."""
        return str(uuid.UUID(int=self._rng.getrandbits(128), version=4))

    # ------------------------------------------------------------------
    # Categorical and rank-based selection
    # ------------------------------------------------------------------

    def weighted_choice(self, distribution: Mapping[K, float]) -> K:
        """
        Pick a key from a weight mapping.

        Weights are accumulated in declaration order and the first key whose
        cumulative weight reaches the uniform draw wins. Falls back to the
        first key when floating-point error leaves the draw unmatched.
        """
        if not distribution:
            raise ValueError("Cannot select from an empty distribution")
        u = self._rng.random()
        cumulative = 0.0
        for key, weight in distribution.items():
            cumulative += weight
            if u <= cumulative:
                return key
        return next(iter(distribution))

    def zipf(self, items: Sequence[T], alpha: float = DEFAULT_ZIPF_ALPHA) -> T:
        """Select an item by Zipf rank; items[0] is rank 1."""
        if not items:
            raise ValueError("Cannot apply Zipf distribution to empty sequence")
        u = self._rng.random()
        cumulative = 0.0
        for item, weight in zip(items, zipf_weights(len(items), alpha)):
            cumulative += weight
            if u <= cumulative:
                return item
        return items[0]

    def zipf_weights(self, count: int, alpha: float = DEFAULT_ZIPF_ALPHA) -> list[float]:
        return zipf_weights(count, alpha)

    def select_by_popularity(
        self,
        items: Sequence[T],
        mode: Literal["zipf", "normal", "uniform"] = "zipf",
        alpha: float = DEFAULT_ZIPF_ALPHA,
    ) -> T:
        """
        Select an item according to a popularity mode.

        ``zipf`` favours the head of the sequence, ``normal`` concentrates
        demand around the middle of the sequence and ``uniform`` ignores
        position.
        """
        if not items:
            raise ValueError("Cannot select from an empty sequence")
        if mode == "zipf":
            return self.zipf(items, alpha)
        if mode == "normal":
            n = len(items)
            index = round(self.truncated_normal((n - 1) / 2, max(n / 6, 0.5), 0, n - 1))
            return items[int(index)]
        return self.pick_one(items)

    def pick_one(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("Cannot pick from an empty sequence")
        return items[math.floor(self._rng.random() * len(items))]

    def shuffle(self, items: Sequence[T]) -> list[T]:
        """Fisher-Yates shuffle returning a new list."""
        shuffled = list(items)
        for i in range(len(shuffled) - 1, 0, -1):
            j = math.floor(self._rng.random() * (i + 1))
            shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
        return shuffled

    def pick_random(self, items: Sequence[T], count: int) -> list[T]:
        """Pick up to ``count`` distinct items without replacement."""
        if count >= len(items):
            return list(items)
        return self.shuffle(items)[:count]

    # ------------------------------------------------------------------
    # Continuous and count distributions
    # ------------------------------------------------------------------

    def normal(self, mean: float, std_dev: float) -> float:
        """Gaussian sample via the Box-Muller transform."""
        u1 = 1.0 - self._rng.random()  # (0, 1] keeps log finite
        u2 = self._rng.random()
        z0 = math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
        return z0 * std_dev + mean

    def truncated_normal(
        self, mean: float, std_dev: float, min_value: float, max_value: float
    ) -> float:
        """Normal sample rejected until it falls inside [min_value, max_value]."""
        if min_value > max_value:
            raise ValueError("min_value must not exceed max_value")
        while True:
            value = self.normal(mean, std_dev)
            if min_value <= value <= max_value:
                return value

    def poisson(self, lam: float) -> int:
        """Poisson count using Knuth's multiplication method."""
        threshold = math.exp(-lam)
        k = 0
        p = 1.0
        while True:
            k += 1
            p *= self._rng.random()
            if p <= threshold:
                return k - 1

    def exponential(self, lam: float) -> float:
        """Inverse-CDF exponential sample with rate ``lam``."""
        if lam <= 0:
            raise ValueError("Exponential rate must be positive")
        return -math.log(1 - self._rng.random()) / lam

    def gamma(self, shape: float, scale: float = 1.0) -> float:
        """Gamma sample (Marsaglia-Tsang, boosted for shape < 1)."""
        if shape <= 0:
            raise ValueError("Gamma shape must be positive")
        if shape < 1:
            boost = math.pow(1.0 - self._rng.random(), 1.0 / shape)
            return self.gamma(shape + 1, scale) * boost

        d = shape - 1.0 / 3.0
        c = 1.0 / math.sqrt(9.0 * d)
        while True:
            x = self.normal(0.0, 1.0)
            v = 1.0 + c * x
            if v <= 0:
                continue
            v = v * v * v
            u = 1.0 - self._rng.random()
            if u < 1 - 0.0331 * x**4:
                return d * v * scale
            if math.log(u) < 0.5 * x * x + d * (1 - v + math.log(v)):
                return d * v * scale

    def beta(self, alpha: float, beta: float) -> float:
        """Beta sample as the ratio of two gamma samples."""
        g1 = self.gamma(alpha)
        g2 = self.gamma(beta)
        return g1 / (g1 + g2)

    def triangular(self, min_value: float, mode: float, max_value: float) -> float:
        u = self._rng.random()
        span = max_value - min_value
        if span == 0:
            return min_value
        f = (mode - min_value) / span
        if u < f:
            return min_value + math.sqrt(u * span * (mode - min_value))
        return max_value - math.sqrt((1 - u) * span * (max_value - mode))

    def log_normal(self, mean_log: float, std_dev_log: float) -> float:
        return math.exp(self.normal(mean_log, std_dev_log))

    def samples(self, draw: Callable[[], T], count: int) -> list[T]:
        """Collect ``count`` draws from a zero-argument sampling function."""
        return [draw() for _ in range(count)]
