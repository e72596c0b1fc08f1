"""
Random distribution utilities used across the order simulation.

Pure functions: every draw takes an injected ``random.Random`` so callers
control seeding and tests can script outcomes.
"""

import random
from collections.abc import Mapping
from typing import TypeVar

from pos_datagen.shared.exceptions import InvalidInputError

K = TypeVar("K")

# Random split cut points are drawn from this interior range
SPLIT_CUT_MIN = 20
SPLIT_CUT_MAX = 80
SPLIT_FLOOR_PERCENT = 5
EVEN_SPLIT_PROBABILITY = 0.70
_MAX_CUT_ATTEMPTS = 20


def weighted_choice(rng: random.Random, weights: Mapping[K, int], fallback: K | None = None) -> K:
    """
    Draw one key with probability proportional to its integer weight.

    Uses a cumulative scan over ``randrange(total)``. ``fallback`` is returned
    if the scan finds nothing, which cannot happen for positive weights but
    keeps the function total.
    """
    total = sum(weights.values())
    if total <= 0:
        if fallback is not None:
            return fallback
        raise InvalidInputError("weights must sum to a positive value")

    roll = rng.randrange(total)
    cumulative = 0
    for key, weight in weights.items():
        cumulative += weight
        if roll < cumulative:
            return key

    if fallback is not None:
        return fallback
    return next(reversed(list(weights)))


def sample_range(rng: random.Random, bounds: tuple[int, int]) -> int:
    """Uniform integer in the inclusive range ``bounds``."""
    low, high = bounds
    return rng.randint(low, high)


def proportional_counts(total: int, weights: Mapping[K, int]) -> dict[K, int]:
    """
    Allocate ``total`` across keys proportionally to weight.

    Each key but the last gets ``round(weight / total_weight * total)``
    (half-up), clipped to what remains; the last key takes the remainder, so
    the counts always sum to ``total``.
    """
    if total < 0:
        raise InvalidInputError("total must be non-negative", field="total", value=total)

    keys = list(weights)
    total_weight = sum(weights.values())
    counts: dict[K, int] = {}
    remaining = total

    for index, key in enumerate(keys):
        if index == len(keys) - 1:
            counts[key] = remaining
            break
        share = (weights[key] * total * 2 + total_weight) // (2 * total_weight)
        share = min(share, remaining)
        counts[key] = share
        remaining -= share

    return counts


def even_split(count: int) -> list[int]:
    """Equal whole-number percentages, remainder on the first share."""
    base = 100 // count
    shares = [base] * count
    shares[0] += 100 - base * count
    return shares


def generate_split_percentages(
    count: int,
    rng: random.Random,
    even_probability: float = EVEN_SPLIT_PROBABILITY,
) -> list[int]:
    """
    Generate ``count`` positive whole percentages summing to 100.

    70% of the time the split is even. Otherwise ``count - 1`` distinct cut
    points are drawn from [20, 80] and the shares are the gaps between them;
    cut sets leaving any share under 5% are redrawn, falling back to an even
    split when no valid set turns up.
    """
    if count < 1:
        raise InvalidInputError("split count must be at least 1", field="count", value=count)
    if count == 1:
        return [100]

    if rng.random() < even_probability or count - 1 > SPLIT_CUT_MAX - SPLIT_CUT_MIN + 1:
        return even_split(count)

    population = range(SPLIT_CUT_MIN, SPLIT_CUT_MAX + 1)
    for _ in range(_MAX_CUT_ATTEMPTS):
        cuts = sorted(rng.sample(population, count - 1))
        bounds = [0, *cuts, 100]
        shares = [b - a for a, b in zip(bounds, bounds[1:])]
        if min(shares) >= SPLIT_FLOOR_PERCENT:
            return shares

    return even_split(count)
