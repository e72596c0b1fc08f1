"""Property-based tests for order allocation, split percentages and money spreading."""

import random

import pytest

from pos_datagen.generators.distributions import generate_split_percentages
from pos_datagen.generators.meal_periods import MealPeriodScheduler
from pos_datagen.shared.money import allocate_proportionally

hypothesis = pytest.importorskip("hypothesis")
from hypothesis import given  # noqa: E402
from hypothesis import strategies as st  # noqa: E402


class TestAllocationProperties:
    """Totals are always preserved."""

    @given(st.integers(min_value=0, max_value=5000))
    def test_distribution_sums_to_total(self, total):
        """Every order is allocated to exactly one period."""
        scheduler = MealPeriodScheduler(random.Random(0))
        counts = scheduler.distribute_orders_by_period(total)

        assert sum(counts.values()) == total
        assert all(c >= 0 for c in counts.values())

    @given(
        st.integers(min_value=1, max_value=4),
        st.integers(min_value=0, max_value=2**32 - 1),
        st.floats(min_value=0.0, max_value=1.0),
    )
    def test_percentages_sum_to_100(self, count, seed, even_probability):
        """Shares are positive whole numbers summing to 100."""
        shares = generate_split_percentages(count, random.Random(seed), even_probability)

        assert len(shares) == count
        assert sum(shares) == 100
        assert all(s > 0 for s in shares)

    @given(
        st.lists(st.integers(min_value=1, max_value=20000), min_size=1, max_size=8),
        st.data(),
    )
    def test_proportional_shares_cover_discount(self, amounts, data):
        """A discount no larger than the lines is spread without going negative."""
        discount = data.draw(st.integers(min_value=0, max_value=sum(amounts)))

        shares = allocate_proportionally(discount, amounts)

        assert sum(shares) == discount
        assert all(0 <= share <= amount for share, amount in zip(shares, amounts))
