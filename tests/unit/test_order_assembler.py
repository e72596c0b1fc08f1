"""Unit tests for end-to-end assembly of one simulated order."""

import random
from dataclasses import replace
from datetime import datetime
from unittest.mock import MagicMock

import pytest

from pos_datagen.generators.base_types import AppliedDiscount, OrderLine
from pos_datagen.generators.discounts import DiscountResolver
from pos_datagen.generators.gates import DEFAULT_ORDER_GATES, DiscountGates, OrderGates
from pos_datagen.generators.meal_periods import (
    MEAL_PERIOD_PROFILES,
    MealPeriod,
    MealPeriodScheduler,
)
from pos_datagen.generators.order_assembler import (
    OrderAssembler,
    calculate_items_tax,
    calculate_tax,
    calculate_tip,
    has_tax_associations,
    resolve_order_type,
)
from pos_datagen.generators.payments import PaymentRouter
from pos_datagen.services.memory import InMemoryPlatform
from pos_datagen.shared.models import DiningOption, DiscountType, Item
from pos_datagen.shared.money import percent_of

DINNER_TIME = datetime(2026, 3, 11, 19, 30)


def fixed_discount(share):
    """Resolver stand-in that takes ``share`` (0-1) off every order."""
    resolver = MagicMock(spec=DiscountResolver)
    resolver.apply_best.side_effect = lambda ctx: AppliedDiscount(
        type=DiscountType.TIME_BASED, name="Manager Comp", amount=round(ctx.order_total * share)
    )
    return resolver


def untaxed(data):
    """Copy of a catalog snapshot whose items carry no tax rates."""
    items = [item.model_copy(update={"tax_rates": []}) for item in data.items]
    return replace(data, items=items, items_by_category=type(data).group_by_category(items))


def large_party_profiles():
    """Dinner for a fixed party of six, always dine-in."""
    profiles = dict(MEAL_PERIOD_PROFILES)
    profiles[MealPeriod.DINNER] = replace(
        MEAL_PERIOD_PROFILES[MealPeriod.DINNER],
        party_size=(6, 6),
        dining_weights={DiningOption.HERE: 100, DiningOption.TO_GO: 0, DiningOption.DELIVERY: 0},
    )
    return profiles


def build_assembler(platform, rng, *, gates=DEFAULT_ORDER_GATES, discount_gates=None,
                    discounts=None, profiles=None, audit=None):
    if discounts is None:
        discounts = DiscountResolver(
            platform, platform, rng, gates=discount_gates or DiscountGates.never()
        )
    return OrderAssembler(
        platform,
        discounts,
        PaymentRouter(platform, rng, gift_card_gateway=platform, cash_drawer=platform, gates=gates),
        MealPeriodScheduler(rng, timezone="UTC", profiles=profiles),
        rng,
        audit=audit,
        merchant_id="TESTMERCHANT",
        gates=gates,
    )


class TestTipAndTax:
    """Tip and tax arithmetic."""

    def test_takeout_tip_can_be_skipped(self, rng):
        """Takeout orders skip the tip when the gate fires."""
        gates = OrderGates(takeout_tip_skipped=1.0)
        assert calculate_tip(5000, DiningOption.TO_GO, 1, rng, gates) == 0

    def test_large_party_tip_floor(self):
        """Parties of six tip at least 18%."""
        rng = random.Random(4)
        for _ in range(50):
            tip = calculate_tip(10000, DiningOption.HERE, 6, rng)
            assert 1800 <= tip <= 2500

    def test_dine_in_tip_range(self):
        """Dine-in tips fall between 15% and 25%."""
        rng = random.Random(8)
        for _ in range(50):
            assert 1500 <= calculate_tip(10000, DiningOption.HERE, 2, rng) <= 2500

    def test_items_tax_sums_rates_per_line(self, make_lines):
        """Each line is taxed at the sum of its item's rates, half-up."""
        _, lines = make_lines(["ITEM_BURGER", "ITEM_DRAFT_BEER"])
        # 8.25% of 1499 = 123.67; 18.25% of 699 = 127.57
        assert calculate_items_tax(lines) == 124 + 128

    def test_items_tax_includes_modifiers(self, platform, make_lines):
        """Paid modifiers are taxed with their line."""
        _, lines = make_lines([("ITEM_BURGER", 2)])
        bacon = next(m for g in platform.modifier_groups for m in g.modifiers if m.id == "MOD_BACON")
        lines[0].modifiers.append(bacon)
        # 8.25% of (2 * 1499 + 2 * 200)
        assert calculate_items_tax(lines) == 280

    def test_items_tax_after_discount(self, make_lines):
        """A discount is spread over the lines by value before taxing."""
        _, lines = make_lines(["ITEM_BURGER", "ITEM_DRAFT_BEER"])
        # 1099 off 2198: burger takes 750, beer 349
        # 8.25% of 749 = 61.79; 18.25% of 350 = 63.88
        assert calculate_items_tax(lines, 1099) == 62 + 64

    def test_comped_lines_pay_no_tax(self, make_lines):
        _, lines = make_lines(["ITEM_BURGER", "ITEM_DRAFT_BEER"])
        assert calculate_items_tax(lines, 2198) == 0
        assert calculate_items_tax(lines, 5000) == 0

    def test_flat_rate_fallback(self):
        """Orders without tax associations use the merchant rate."""
        untaxed = Item(id="X", name="Mystery", price=1000)
        lines = [OrderLine(line_item_id="LI1", item=untaxed)]
        assert not has_tax_associations(lines)
        assert calculate_tax(1000, 8.25) == 83


class TestOrderTypes:
    """Dining option to order type mapping."""

    @pytest.mark.parametrize(
        "dining,label",
        [
            (DiningOption.HERE, "Dine In"),
            (DiningOption.TO_GO, "Takeout"),
            (DiningOption.DELIVERY, "Delivery"),
        ],
    )
    def test_resolve_order_type(self, platform, dining, label):
        """Each dining option finds its order type by label."""
        assert resolve_order_type(dining, platform.order_types).label == label

    def test_missing_order_type(self):
        """No matching label means no order type."""
        assert resolve_order_type(DiningOption.DELIVERY, []) is None


class TestAssemble:
    """Full order assembly over the in-memory platform."""

    def test_paid_order(self, platform, sim_data):
        """A normal order ends up paid with its metadata envelope."""
        assembler = build_assembler(platform, random.Random(1))

        order = assembler.assemble(MealPeriod.LUNCH, sim_data, datetime(2026, 3, 11, 12, 0))

        assert order is not None
        assert order.lines
        assert order.payments
        assert platform.orders[order.id].state.value == "paid"
        assert set(order.metadata) >= {
            "period", "dining", "party_size", "tip", "tax", "service_charge",
            "order_time", "discount_applied", "payment_path",
        }
        assert order.metadata["period"] == "lunch"

    def test_no_payment_for_empty_order(self, sim_data):
        """When no line item sticks, the order is abandoned before payment."""
        platform = InMemoryPlatform(fail_operations={"add_line_item"})
        assembler = build_assembler(platform, random.Random(1))

        order = assembler.assemble(MealPeriod.LUNCH, sim_data, datetime(2026, 3, 11, 12, 0))

        assert order is None
        assert platform.payment_calls() == []
        states = [c.payload["state"] for c in platform.calls_for("update_state")]
        assert states == ["open"]

    def test_create_failure_abandons(self, sim_data):
        """A failed create_order produces no order and no further calls."""
        platform = InMemoryPlatform(fail_operations={"create_order"})
        assembler = build_assembler(platform, random.Random(1))

        assert assembler.assemble(MealPeriod.LUNCH, sim_data, datetime(2026, 3, 11, 12, 0)) is None
        assert platform.calls_for("add_line_item") == []

    def test_payment_failure_leaves_order_open(self, sim_data, quiet_gates):
        """A rejected payment abandons the order without marking it paid."""
        platform = InMemoryPlatform(fail_operations={"process_payment"})
        assembler = build_assembler(platform, random.Random(1), gates=quiet_gates)

        assert assembler.assemble(MealPeriod.LUNCH, sim_data, datetime(2026, 3, 11, 12, 0)) is None
        assert platform.calls_for("update_state") == []

    def test_large_party_gets_auto_gratuity(self, platform, sim_data, quiet_gates):
        """Parties of six get an 18% service charge and no separate tip."""
        assembler = build_assembler(
            platform, random.Random(3), gates=quiet_gates, profiles=large_party_profiles()
        )

        order = assembler.assemble(MealPeriod.DINNER, sim_data, DINNER_TIME)

        assert order.party_size == 6
        assert order.tip_amount == 0
        assert order.service_charge_amount == percent_of(order.subtotal, 18)
        charge = platform.calls_for("apply_service_charge", order.id)[0]
        assert charge.payload["percentage"] == 18.0
        paid = sum(p.amount for p in order.payments)
        assert paid == order.subtotal + order.service_charge_amount

    def test_refused_service_charge_falls_back_to_tip(self, sim_data, quiet_gates):
        """If the service charge cannot be applied, the party tips instead."""
        platform = InMemoryPlatform(fail_operations={"apply_service_charge"})
        assembler = build_assembler(
            platform, random.Random(3), gates=quiet_gates, profiles=large_party_profiles()
        )

        order = assembler.assemble(MealPeriod.DINNER, sim_data, DINNER_TIME)

        assert order.service_charge_amount == 0
        assert order.tip_amount > 0

    def test_gratuity_and_tip_are_exclusive(self, sim_data):
        """No order carries both an auto gratuity and a tip."""
        platform = InMemoryPlatform()
        for seed in range(40):
            assembler = build_assembler(platform, random.Random(seed))
            order = assembler.assemble(MealPeriod.DINNER, sim_data, DINNER_TIME)
            if order is None:
                continue
            assert not (order.service_charge_amount and order.tip_amount)

    def test_at_most_one_discount_per_order(self, sim_data):
        """Open discount gates still yield a single discount per order."""
        platform = InMemoryPlatform()
        for seed in range(20):
            assembler = build_assembler(
                platform, random.Random(seed), discount_gates=DiscountGates.always()
            )
            order = assembler.assemble(
                MealPeriod.HAPPY_HOUR, sim_data, datetime(2026, 3, 11, 16, 0)
            )
            assert len(platform.calls_for("apply_discount", order.id)) <= 1
            if order.discount is not None:
                assert order.metadata["discount_applied"]["amount"] == order.discount.amount

    def test_subtotal_reflects_discount(self, platform, sim_data, quiet_gates):
        """The payable subtotal is items plus modifiers minus the discount."""
        assembler = build_assembler(
            platform, random.Random(5), gates=quiet_gates, discount_gates=DiscountGates.always()
        )

        order = assembler.assemble(MealPeriod.HAPPY_HOUR, sim_data, datetime(2026, 3, 11, 16, 0))

        gross = sum(line.line_total + line.modifier_total for line in order.lines)
        assert order.subtotal == gross - order.discount_amount
        assert platform.calculate_total(order.id) == order.subtotal

    def test_audit_failure_does_not_fail_order(self, platform, sim_data):
        """Audit mirroring is best-effort."""
        audit = MagicMock()
        audit.record_simulated_order.side_effect = RuntimeError("disk full")
        assembler = build_assembler(platform, random.Random(1), audit=audit)

        order = assembler.assemble(MealPeriod.LUNCH, sim_data, datetime(2026, 3, 11, 12, 0))

        assert order is not None
        audit.record_simulated_order.assert_called_once()

    def test_items_are_distinct(self, platform, sim_data):
        """An order never lists the same catalog item twice."""
        for seed in range(20):
            assembler = build_assembler(platform, random.Random(seed))
            order = assembler.assemble(MealPeriod.DINNER, sim_data, DINNER_TIME)
            if order is None:
                continue
            ids = [line.item.id for line in order.lines]
            assert len(ids) == len(set(ids))

    def test_required_modifier_groups_get_minimum(self, platform):
        """Required groups always get at least their minimum selections."""
        assembler = build_assembler(platform, random.Random(2))
        temp = next(g for g in platform.modifier_groups if g.id == "MG_TEMP")
        for _ in range(20):
            chosen = assembler.choose_modifiers(temp)
            assert len(chosen) >= temp.min_required

    def test_discounted_order_taxed_on_what_is_paid(self, platform, sim_data, quiet_gates):
        """Half off the check also halves the taxable base."""
        assembler = build_assembler(
            platform, random.Random(5), gates=quiet_gates, discounts=fixed_discount(0.5)
        )

        order = assembler.assemble(MealPeriod.LUNCH, sim_data, datetime(2026, 3, 11, 12, 0))

        assert order.discount_amount > 0
        assert order.tax_amount == calculate_items_tax(order.lines, order.discount_amount)
        assert order.tax_amount < calculate_items_tax(order.lines)
        # no catalog rate exceeds 18.25%; one cent of rounding per line
        assert order.tax_amount <= percent_of(order.subtotal, 18.25) + len(order.lines)

    def test_fully_comped_order_is_paid(self, platform, sim_data, quiet_gates):
        """A zero-total order settles without touching gift cards."""
        gates = replace(quiet_gates, gift_card_payment=1.0)
        assembler = build_assembler(
            platform, random.Random(5), gates=gates, discounts=fixed_discount(1.0)
        )

        order = assembler.assemble(
            MealPeriod.LUNCH, untaxed(sim_data), datetime(2026, 3, 11, 12, 0)
        )

        assert order is not None
        assert order.subtotal == 0
        assert order.tax_amount == 0
        assert [p.amount for p in order.payments] == [0]
        assert platform.calls_for("redeem_gift_card") == []
        assert platform.orders[order.id].state.value == "paid"
