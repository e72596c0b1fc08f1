"""
Meal-period scheduling for a simulated restaurant day.

A day is split into five service periods. Each period has its own hour
window, share of the day's orders, basket size, party size, preferred menu
categories and dining-option mix.
"""

import logging
import random
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pos_datagen.config.models import OrderPatternsConfig, OrderRange
from pos_datagen.shared.models import DiningOption

from .distributions import proportional_counts, sample_range, weighted_choice

logger = logging.getLogger(__name__)


class MealPeriod(str, Enum):
    """Service periods, in the fixed order used for allocation."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    HAPPY_HOUR = "happy_hour"
    DINNER = "dinner"
    LATE_NIGHT = "late_night"


class DayType(str, Enum):
    WEEKDAY = "weekday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


@dataclass(frozen=True)
class MealPeriodProfile:
    """Immutable configuration of one meal period. Ranges are inclusive."""

    hours: tuple[int, int]
    weight: int
    items: tuple[int, int]
    party_size: tuple[int, int]
    preferred_categories: tuple[str, ...]
    dining_weights: dict[DiningOption, int]


MEAL_PERIOD_PROFILES: dict[MealPeriod, MealPeriodProfile] = {
    MealPeriod.BREAKFAST: MealPeriodProfile(
        hours=(7, 10),
        weight=15,
        items=(2, 4),
        party_size=(1, 2),
        preferred_categories=("Drinks", "Sides"),
        dining_weights={DiningOption.HERE: 40, DiningOption.TO_GO: 50, DiningOption.DELIVERY: 10},
    ),
    MealPeriod.LUNCH: MealPeriodProfile(
        hours=(11, 14),
        weight=30,
        items=(2, 5),
        party_size=(1, 4),
        preferred_categories=("Appetizers", "Entrees", "Sides", "Drinks"),
        dining_weights={DiningOption.HERE: 35, DiningOption.TO_GO: 45, DiningOption.DELIVERY: 20},
    ),
    MealPeriod.HAPPY_HOUR: MealPeriodProfile(
        hours=(15, 17),
        weight=10,
        items=(2, 4),
        party_size=(2, 4),
        preferred_categories=("Appetizers", "Alcoholic Beverages", "Drinks"),
        dining_weights={DiningOption.HERE: 80, DiningOption.TO_GO: 15, DiningOption.DELIVERY: 5},
    ),
    MealPeriod.DINNER: MealPeriodProfile(
        hours=(17, 21),
        weight=35,
        items=(3, 6),
        party_size=(2, 6),
        preferred_categories=(
            "Appetizers",
            "Entrees",
            "Sides",
            "Desserts",
            "Alcoholic Beverages",
            "Drinks",
        ),
        dining_weights={DiningOption.HERE: 70, DiningOption.TO_GO: 15, DiningOption.DELIVERY: 15},
    ),
    MealPeriod.LATE_NIGHT: MealPeriodProfile(
        hours=(21, 23),
        weight=10,
        items=(2, 4),
        party_size=(1, 3),
        preferred_categories=("Appetizers", "Entrees", "Alcoholic Beverages", "Desserts"),
        dining_weights={DiningOption.HERE: 50, DiningOption.TO_GO: 30, DiningOption.DELIVERY: 20},
    ),
}


def day_type_for(day: date) -> DayType:
    weekday = day.weekday()
    if weekday == 4:
        return DayType.FRIDAY
    if weekday == 5:
        return DayType.SATURDAY
    if weekday == 6:
        return DayType.SUNDAY
    return DayType.WEEKDAY


def resolve_timezone(name: str | None) -> ZoneInfo | None:
    """Return the zone for ``name``, or None when tz data is unavailable."""
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Timezone '{name}' unavailable, using naive local times")
        return None


class MealPeriodScheduler:
    """Maps dates to order volumes and samples per-order period attributes."""

    def __init__(
        self,
        rng: random.Random,
        order_patterns: OrderPatternsConfig | None = None,
        timezone: str | None = None,
        profiles: dict[MealPeriod, MealPeriodProfile] | None = None,
    ):
        self._rng = rng
        self.order_patterns = order_patterns or OrderPatternsConfig()
        self.profiles = profiles or MEAL_PERIOD_PROFILES
        self._tz = resolve_timezone(timezone)

    @property
    def tzinfo(self) -> ZoneInfo | None:
        return self._tz

    def profile(self, period: MealPeriod) -> MealPeriodProfile:
        return self.profiles[period]

    def order_range_for_date(self, day: date) -> OrderRange:
        return getattr(self.order_patterns, day_type_for(day).value)

    def order_count_for_date(self, day: date) -> int:
        """Uniform draw from the day-type's configured inclusive range."""
        pattern = self.order_range_for_date(day)
        return self._rng.randint(pattern.min, pattern.max)

    def distribute_orders_by_period(self, total_count: int) -> dict[MealPeriod, int]:
        """Split ``total_count`` across periods by weight; the last period absorbs rounding."""
        weights = {period: profile.weight for period, profile in self.profiles.items()}
        return proportional_counts(total_count, weights)

    def weighted_random_period(self) -> MealPeriod:
        weights = {period: profile.weight for period, profile in self.profiles.items()}
        return weighted_choice(self._rng, weights, fallback=MealPeriod.DINNER)

    def generate_order_time(self, day: date, period: MealPeriod) -> datetime:
        """Random minute within the period's hour window, in the merchant timezone."""
        hour = sample_range(self._rng, self.profiles[period].hours)
        minute = self._rng.randrange(60)
        return datetime(day.year, day.month, day.day, hour, minute, tzinfo=self._tz)

    def select_dining_option(self, period: MealPeriod) -> DiningOption:
        return weighted_choice(
            self._rng, self.profiles[period].dining_weights, fallback=DiningOption.HERE
        )

    def party_size_for(self, period: MealPeriod) -> int:
        return sample_range(self._rng, self.profiles[period].party_size)

    def item_count_for(self, period: MealPeriod, party_size: int) -> int:
        """Base basket for the period plus half the party, at least one item."""
        base = sample_range(self._rng, self.profiles[period].items)
        return max(1, base + party_size // 2)
