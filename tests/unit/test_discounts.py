"""Unit tests for the discount waterfall, combos, coupons and loyalty tiers."""

import random
from datetime import datetime

import pytest

from pos_datagen.generators.base_types import (
    CustomerProfile,
    DiscountCandidate,
    DiscountContext,
)
from pos_datagen.generators.discounts import DiscountResolver, match_combo
from pos_datagen.generators.gates import DiscountGates
from pos_datagen.generators.loyalty import LoyaltyTier, loyalty_rule_for, loyalty_tier_for
from pos_datagen.generators.meal_periods import MealPeriod
from pos_datagen.shared.cache import DefinitionCache
from pos_datagen.shared.models import CouponDefinition, Customer, DiscountType

LUNCH_TIME = datetime(2026, 3, 11, 12, 15)


def only(step: str) -> DiscountGates:
    """Gates that allow exactly one waterfall step."""
    values = {name: 0.0 for name in DiscountGates.__dataclass_fields__}
    values[step] = 1.0
    return DiscountGates(**values)


def make_context(order_id, lines, *, total=None, period=MealPeriod.LUNCH, at=LUNCH_TIME, customer=None):
    return DiscountContext(
        order_id=order_id,
        lines=lines,
        order_total=total if total is not None else sum(line.line_total for line in lines),
        period=period,
        order_time=at,
        customer=customer,
    )


def profile(visits: int, vip: bool = False) -> CustomerProfile:
    return CustomerProfile(
        customer=Customer(id="CUST_001", first_name="Avery"), visit_count=visits, vip=vip
    )


class TestLoyaltyTiers:
    """Visit-count tier thresholds."""

    @pytest.mark.parametrize(
        "visits,tier,percentage",
        [
            (0, LoyaltyTier.NONE, None),
            (4, LoyaltyTier.NONE, None),
            (5, LoyaltyTier.BRONZE, 5.0),
            (9, LoyaltyTier.BRONZE, 5.0),
            (10, LoyaltyTier.SILVER, 10.0),
            (24, LoyaltyTier.SILVER, 10.0),
            (25, LoyaltyTier.GOLD, 15.0),
            (49, LoyaltyTier.GOLD, 15.0),
            (50, LoyaltyTier.PLATINUM, 20.0),
            (60, LoyaltyTier.PLATINUM, 20.0),
        ],
    )
    def test_tier_boundaries(self, visits, tier, percentage):
        """Thresholds are 5, 10, 25 and 50 visits."""
        assert loyalty_tier_for(visits) is tier
        rule = loyalty_rule_for(visits)
        assert (rule.percentage if rule else None) == percentage

    def test_customer_types(self):
        """Profiles report new/returning, loyalty and vip membership."""
        assert profile(0).customer_types == {"new"}
        assert profile(3).customer_types == {"returning"}
        assert profile(12, vip=True).customer_types == {"returning", "loyalty", "vip"}


class TestTimeBasedDiscount:
    """Happy hour discounts."""

    def test_happy_hour_fifteen_percent(self, platform, make_lines, rng, happy_hour_time):
        """A $20.00 happy-hour order gets $3.00 off."""
        order_id, lines = make_lines(["ITEM_BURGER"])
        resolver = DiscountResolver(platform, platform, rng, gates=DiscountGates.always())

        applied = resolver.apply_best(
            make_context(order_id, lines, total=2000, period=MealPeriod.HAPPY_HOUR, at=happy_hour_time)
        )

        assert applied.type is DiscountType.TIME_BASED
        assert applied.name == "Happy Hour"
        assert applied.amount == 300
        call = platform.calls_for("apply_discount", order_id)[0]
        assert call.payload["amount"] == -300

    def test_skipped_outside_happy_hour_period(self, platform, make_lines, rng):
        """The time-based step only runs for happy-hour orders."""
        order_id, lines = make_lines(["ITEM_BURGER"])
        resolver = DiscountResolver(platform, platform, rng, gates=only("time_based"))

        assert resolver.apply_best(make_context(order_id, lines)) is None
        assert platform.calls_for("apply_discount", order_id) == []


class TestComboDiscount:
    """Combo detection and valuation."""

    def test_classic_meal_deal(self, platform, make_lines, rng):
        """Burger, fries and soda ($22.97) earn 15% off: 345 cents, rounded half-up."""
        order_id, lines = make_lines(["ITEM_BURGER", "ITEM_FRIES", "ITEM_SODA"])
        resolver = DiscountResolver(platform, platform, rng, gates=only("combo"))

        applied = resolver.apply_best(make_context(order_id, lines))

        assert sum(line.line_total for line in lines) == 2297
        assert applied.type is DiscountType.COMBO
        assert applied.name == "Classic Meal Deal"
        assert applied.amount == 345

    def test_unit_counts_toward_one_component(self, platform, make_lines):
        """One appetizer cannot satisfy a three-appetizer requirement."""
        _, lines = make_lines(["ITEM_WINGS", "ITEM_BURGER", "ITEM_FRIES"])
        trio = next(c for c in platform.combo_definitions if c.id == "app_trio")
        assert match_combo(trio, lines) is None

    def test_quantity_satisfies_component(self, platform, make_lines):
        """Three of the same appetizer make a trio."""
        _, lines = make_lines([("ITEM_WINGS", 3)])
        trio = next(c for c in platform.combo_definitions if c.id == "app_trio")
        assert match_combo(trio, lines) == {lines[0].line_item_id: 3}

    def test_combo_needs_three_lines(self, platform, make_lines, rng):
        """Orders with fewer than three lines never reach combo detection."""
        order_id, lines = make_lines([("ITEM_WINGS", 3)])
        resolver = DiscountResolver(platform, platform, rng, gates=only("combo"))
        assert resolver.apply_best(make_context(order_id, lines)) is None

    def test_time_restricted_combo(self, platform, make_lines, rng):
        """Date night only matches in the evening."""
        _, lines = make_lines(["ITEM_RIBEYE", "ITEM_SALMON", "ITEM_CHEESECAKE"])
        resolver = DiscountResolver(platform, platform, rng)

        lunch = [c.name for c in resolver.detect_combos(lines, LUNCH_TIME)]
        evening = [c.name for c in resolver.detect_combos(lines, datetime(2026, 3, 11, 19, 0))]

        assert "Date Night" not in lunch
        assert "Date Night" in evening


class TestLoyaltyDiscount:
    """Loyalty step of the waterfall."""

    def test_gold_customer(self, platform, make_lines, rng):
        """A 30-visit customer gets the gold 15% reward."""
        order_id, lines = make_lines(["ITEM_RIBEYE"])
        resolver = DiscountResolver(platform, platform, rng, gates=only("loyalty"))

        applied = resolver.apply_best(make_context(order_id, lines, customer=profile(30)))

        assert applied.type is DiscountType.LOYALTY
        assert applied.tier == "gold"
        assert applied.amount == 435  # 15% of 2899

    def test_new_customer_not_rewarded(self, platform, make_lines, rng):
        """Fewer than five visits earns nothing."""
        order_id, lines = make_lines(["ITEM_RIBEYE"])
        resolver = DiscountResolver(platform, platform, rng, gates=only("loyalty"))
        assert resolver.apply_best(make_context(order_id, lines, customer=profile(2))) is None

    def test_missing_definition_is_synthesized(self, make_lines, platform, rng):
        """Tiers without a catalog definition use the built-in percentage."""
        platform.discount_definitions = [
            d for d in platform.discount_definitions if d.type != "loyalty"
        ]
        order_id, lines = make_lines(["ITEM_BURGER"])
        resolver = DiscountResolver(platform, platform, rng)

        candidate = resolver.loyalty_candidate(make_context(order_id, lines, customer=profile(12)))

        assert candidate.name == "Silver Loyalty Reward"
        assert candidate.amount == 150  # 10% of 1499


class TestCoupons:
    """Promo code validation."""

    def test_valid_code(self, platform, make_lines, rng):
        """SAVE10 takes 10% off orders of $15 or more."""
        order_id, lines = make_lines(["ITEM_BURGER", "ITEM_FRIES"])
        resolver = DiscountResolver(platform, platform, rng)

        candidate = resolver.promo_code_candidate(make_context(order_id, lines), "save10")

        assert candidate.code == "SAVE10"
        assert candidate.amount == 200  # 10% of 1998

    @pytest.mark.parametrize(
        "code,reason",
        [
            ("SPRING2020", "inactive"),
            ("SAVE20", "below_minimum"),
            ("HAPPYHOUR", "hour_restricted"),
        ],
    )
    def test_rejections(self, platform, make_lines, rng, code, reason):
        """Each restriction reports why the code was refused."""
        order_id, lines = make_lines(["ITEM_BURGER", "ITEM_SODA"])
        resolver = DiscountResolver(platform, platform, rng)

        validation = resolver.validate_coupon(resolver.find_coupon(code), make_context(order_id, lines))

        assert not validation.valid
        assert validation.reason == reason

    def test_customer_type_restriction(self, platform, make_lines, rng):
        """TENNER is only for known customers."""
        order_id, lines = make_lines([("ITEM_RIBEYE", 2)])
        resolver = DiscountResolver(platform, platform, rng)
        coupon = resolver.find_coupon("TENNER")

        guest = resolver.validate_coupon(coupon, make_context(order_id, lines))
        regular = resolver.validate_coupon(coupon, make_context(order_id, lines, customer=profile(3)))

        assert guest.reason == "customer_type"
        assert regular.valid

    def test_usage_limit(self, platform, make_lines, rng):
        """Exhausted coupons are refused."""
        order_id, lines = make_lines(["ITEM_BURGER"])
        resolver = DiscountResolver(platform, platform, rng)
        coupon = CouponDefinition(
            code="once", name="Once", discount_type="fixed", discount_value=100,
            usage_limit=1, times_used=1,
        )

        assert resolver.validate_coupon(coupon, make_context(order_id, lines)).reason == "usage_limit_reached"

    def test_unknown_code(self, platform, make_lines, rng):
        """Unrecognised codes produce no candidate."""
        order_id, lines = make_lines(["ITEM_BURGER"])
        resolver = DiscountResolver(platform, platform, rng)
        assert resolver.promo_code_candidate(make_context(order_id, lines), "NOPE") is None


class TestThresholdAndLineItem:
    """Threshold and line-item steps."""

    def test_threshold_picks_most_valuable(self, platform, make_lines, rng):
        """At $120 the 10% threshold beats $5 off $50."""
        order_id, lines = make_lines(["ITEM_BURGER"])
        resolver = DiscountResolver(platform, platform, rng)

        candidate = resolver.threshold_candidate(make_context(order_id, lines, total=12000))

        assert candidate.name == "10% Off $100"
        assert candidate.amount == 1200

    def test_line_scoped_candidate_hits_line_endpoint(self, platform, make_lines, rng):
        """Line-scoped discounts go to the line item, not the order."""
        order_id, lines = make_lines(["ITEM_CHEESECAKE", "ITEM_BURGER"])
        resolver = DiscountResolver(platform, platform, rng)
        candidate = DiscountCandidate(
            type=DiscountType.LINE_ITEM,
            name="Dessert Special",
            amount=300,
            priority=5,
            line_amounts={lines[0].line_item_id: 300},
        )

        assert resolver.apply_candidate(order_id, candidate) == 300
        calls = platform.calls_for("apply_line_item_discount", order_id)
        assert len(calls) == 1
        assert calls[0].payload["line_item_id"] == lines[0].line_item_id
        assert platform.calls_for("apply_discount", order_id) == []


class TestWaterfall:
    """Whole-waterfall behavior."""

    def test_at_most_one_discount(self, platform, make_lines, happy_hour_time):
        """Even with every gate open, one discount is applied per order."""
        for seed in range(25):
            order_id, lines = make_lines(["ITEM_BURGER", "ITEM_FRIES", "ITEM_SODA", "ITEM_CHEESECAKE"])
            resolver = DiscountResolver(
                platform, platform, random.Random(seed), gates=DiscountGates.always()
            )
            resolver.apply_best(
                make_context(order_id, lines, period=MealPeriod.HAPPY_HOUR, at=happy_hour_time,
                             customer=profile(30))
            )
            calls = platform.calls_for("apply_discount", order_id) + platform.calls_for(
                "apply_line_item_discount", order_id
            )
            assert len({c.operation for c in calls}) <= 1
            assert len(platform.calls_for("apply_discount", order_id)) <= 1

    def test_no_gates_no_discount(self, platform, make_lines, rng, happy_hour_time):
        """Closed gates mean no discount calls at all."""
        order_id, lines = make_lines(["ITEM_BURGER", "ITEM_FRIES", "ITEM_SODA"])
        resolver = DiscountResolver(platform, platform, rng, gates=DiscountGates.never())

        assert resolver.apply_best(
            make_context(order_id, lines, period=MealPeriod.HAPPY_HOUR, at=happy_hour_time)
        ) is None
        assert platform.calls_for("apply_discount", order_id) == []

    def test_payload_never_bare_percentage(self, platform, make_lines, happy_hour_time):
        """Every discount sent to the platform carries a negative absolute amount."""
        for seed in range(25):
            order_id, lines = make_lines(["ITEM_BURGER", "ITEM_FRIES", "ITEM_SODA"])
            resolver = DiscountResolver(
                platform, platform, random.Random(seed), gates=DiscountGates.always()
            )
            resolver.apply_best(
                make_context(order_id, lines, period=MealPeriod.HAPPY_HOUR, at=happy_hour_time)
            )

        sent = platform.calls_for("apply_discount") + platform.calls_for("apply_line_item_discount")
        assert sent
        for call in sent:
            assert "percentage" not in call.payload
            assert call.payload["amount"] < 0

    def test_failed_application_falls_through(self, platform, make_lines, rng, happy_hour_time):
        """A platform failure on one step lets the next eligible step apply."""
        platform.discount_definitions = [
            d for d in platform.discount_definitions
            if d.id in ("DISC_HAPPY_HOUR", "DISC_HAPPY_HOUR_APPS")
        ]
        platform.fail_operations = {"apply_discount"}
        order_id, lines = make_lines(["ITEM_WINGS"])
        gates = DiscountGates(
            time_based=1.0, loyalty=0.0, combo=0.0, promo_code=0.0,
            line_item=1.0, threshold=0.0, legacy=0.0,
        )
        resolver = DiscountResolver(platform, platform, rng, gates=gates)

        applied = resolver.apply_best(
            make_context(order_id, lines, period=MealPeriod.HAPPY_HOUR, at=happy_hour_time)
        )

        assert len(platform.calls_for("apply_discount", order_id)) == 1
        assert applied.type is DiscountType.LINE_ITEM
        assert applied.amount == 650  # half of 1299, rounded half-up

    def test_best_candidate_prefers_amount_then_priority(self, platform, make_lines, rng):
        """Ties on amount go to the earlier waterfall step."""
        order_id, lines = make_lines(["ITEM_BURGER", "ITEM_FRIES", "ITEM_SODA"])
        resolver = DiscountResolver(platform, platform, rng)

        best = resolver.best_candidate(make_context(order_id, lines))

        # Combo and BIRTHDAY15 are both worth 345; combo runs first
        assert best.type is DiscountType.COMBO
        assert best.amount == 345


class TestDefinitionCaching:
    """Definitions are read through the TTL cache."""

    def test_definitions_loaded_once(self, platform, rng):
        """Repeated reads hit the cache."""
        resolver = DiscountResolver(platform, platform, rng, cache=DefinitionCache())
        resolver.discount_definitions()
        resolver.discount_definitions()
        assert len(platform.calls_for("get_discount_definitions")) == 1

    def test_invalidate_reloads(self, platform, rng):
        """Invalidation forces the next read to hit the catalog."""
        resolver = DiscountResolver(platform, platform, rng)
        resolver.combo_definitions()
        resolver.invalidate_definitions()
        resolver.combo_definitions()
        assert len(platform.calls_for("get_combo_definitions")) == 2
