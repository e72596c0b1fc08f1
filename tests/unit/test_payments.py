"""Unit tests for payment routing, split allocation and gift cards."""

import pytest

from pos_datagen.generators.base_types import PaymentPath, PaymentRequest
from pos_datagen.generators.gates import OrderGates
from pos_datagen.generators.payments import (
    DEBIT_CARD_TYPE,
    PaymentRouter,
    classify_tender_type,
    find_cash_tender,
    is_card_tender,
    is_gift_card_tender,
)
from pos_datagen.services.memory import InMemoryPlatform
from pos_datagen.services.payloads import build_split_payments
from pos_datagen.shared.exceptions import InvalidInputError
from pos_datagen.shared.models import DiningOption, PaymentSplit, TenderType


def gates(**overrides) -> OrderGates:
    base = {name: 0.0 for name in OrderGates.__dataclass_fields__}
    base.update(overrides)
    return OrderGates(**base)


def tenders_of(platform, *labels):
    return [t for t in platform.tenders if t.label in labels]


def request_for(platform, subtotal, *, tenders, tax=0, tip=0, dining=DiningOption.HERE,
                party_size=2, gift_cards=None):
    order = platform.create_order(employee_id="EMP_SERVER_1")
    return PaymentRequest(
        order_id=order.id,
        subtotal=subtotal,
        tax_amount=tax,
        tip_amount=tip,
        employee_id="EMP_SERVER_1",
        tenders=tenders,
        dining_option=dining,
        party_size=party_size,
        gift_cards=gift_cards or [],
        gift_card_tender=next(t for t in platform.tenders if is_gift_card_tender(t)),
    )


class TestTenderClassification:
    """Tender label helpers."""

    @pytest.mark.parametrize(
        "label,expected",
        [
            ("Cash", TenderType.CASH),
            ("Credit Card", TenderType.CREDIT_CARD),
            ("Debit Card", TenderType.DEBIT_CARD),
            ("Check", TenderType.CHECK),
            ("Gift Card", TenderType.GIFT_CARD),
            ("Mobile Pay", TenderType.OTHER),
        ],
    )
    def test_classify_tender_type(self, label, expected):
        """Labels map to tender categories."""
        assert classify_tender_type(label) is expected

    def test_card_and_cash_detection(self, platform):
        """Card tenders are found by label key; cash by its exact label."""
        assert {t.label for t in platform.tenders if is_card_tender(t)} == {"Credit Card", "Debit Card"}
        assert find_cash_tender(platform.tenders).id == "TENDER_CASH"


class TestGiftCardPayments:
    """Gift card redemption paths."""

    def test_partial_balance_splits_evenly(self, platform, rng):
        """A $25 card against a $50 order covers 50%, the rest goes on another tender."""
        card = platform.gift_cards["GC_001"]
        router = PaymentRouter(platform, rng, gift_card_gateway=platform, gates=gates(gift_card_payment=1.0))
        request = request_for(
            platform, 5000, tenders=tenders_of(platform, "Cash", "Check"), gift_cards=[card]
        )

        outcome = router.route(request)

        assert outcome.path is PaymentPath.GIFT_CARD_PARTIAL
        assert [s.percentage for s in outcome.splits] == [50, 50]
        assert outcome.splits[0].tender.id == "TENDER_GIFT"
        assert outcome.gift_card.amount_redeemed == 2500
        assert sum(p.amount for p in outcome.payments) == 5000
        assert platform.gift_cards["GC_001"].balance == 0

    def test_sufficient_balance_pays_in_full(self, platform, rng):
        """A $100 card covers a $50 order on the gift card tender alone."""
        card = platform.gift_cards["GC_003"]
        router = PaymentRouter(platform, rng, gift_card_gateway=platform, gates=gates(gift_card_payment=1.0))
        request = request_for(
            platform, 4600, tax=400, tenders=tenders_of(platform, "Cash"), gift_cards=[card]
        )

        outcome = router.route(request)

        assert outcome.path is PaymentPath.GIFT_CARD_FULL
        assert outcome.payments[0].tender_id == "TENDER_GIFT"
        assert platform.gift_cards["GC_003"].balance == 5000

    def test_empty_and_inactive_cards_fall_back(self, platform, rng):
        """Cards with no balance or inactive status are never redeemed."""
        cards = [platform.gift_cards["GC_004"], platform.gift_cards["GC_005"]]
        router = PaymentRouter(platform, rng, gift_card_gateway=platform, gates=gates(gift_card_payment=1.0))
        request = request_for(platform, 3000, tenders=tenders_of(platform, "Check"), gift_cards=cards)

        outcome = router.route(request)

        assert outcome.path is PaymentPath.SINGLE
        assert platform.calls_for("redeem_gift_card") == []

    def test_redemption_caps_at_balance(self, platform):
        """Redeeming more than the balance reports the shortfall."""
        redemption = platform.redeem_gift_card("GC_001", 4000)

        assert redemption.success
        assert redemption.amount_redeemed == 2500
        assert redemption.shortfall == 1500
        assert redemption.remaining_balance == 0


class TestSplitPayments:
    """Multi-tender splits."""

    def test_dine_in_group_split(self, platform, rng):
        """Split shares cover the subtotal and tip; tax rides on the first payment."""
        router = PaymentRouter(platform, rng, gates=gates(split_dine_in_group=1.0))
        request = request_for(
            platform, 8000, tax=660, tip=1600, party_size=4,
            tenders=tenders_of(platform, "Cash", "Check", "Mobile Pay"),
        )

        outcome = router.route(request)

        assert outcome.path is PaymentPath.SPLIT
        assert 2 <= len(outcome.payments) <= 3
        assert sum(p.amount for p in outcome.payments) == 8000
        assert sum(p.tip_amount for p in outcome.payments) == 1600
        assert [p.tax_amount for p in outcome.payments][0] == 660
        assert all(p.tax_amount == 0 for p in outcome.payments[1:])
        assert sum(s.percentage for s in outcome.splits) == 100

    def test_single_tender_never_splits(self, platform, rng):
        """With one tender available the order is paid in one go."""
        router = PaymentRouter(platform, rng, gates=gates(split_dine_in_group=1.0, split_other=1.0))
        request = request_for(platform, 8000, party_size=4, tenders=tenders_of(platform, "Check"))

        assert router.route(request).path is PaymentPath.SINGLE

    def test_allocation_last_share_absorbs_rounding(self, platform):
        """Shares always sum to the order amount."""
        splits = [
            PaymentSplit(tender=platform.tenders[0], percentage=33),
            PaymentSplit(tender=platform.tenders[1], percentage=33),
            PaymentSplit(tender=platform.tenders[5], percentage=34),
        ]
        shares = build_split_payments(total_amount=1001, splits=splits, tip_amount=199, tax_amount=83)

        assert [s["amount"] for s in shares] == [330, 330, 341]
        assert sum(s["tip_amount"] for s in shares) == 199
        assert [s["tax_amount"] for s in shares] == [83, 0, 0]

    def test_allocation_rejects_bad_percentages(self, platform):
        """Percentages that do not sum to 100 are refused."""
        splits = [
            PaymentSplit(tender=platform.tenders[0], percentage=40),
            PaymentSplit(tender=platform.tenders[1], percentage=40),
        ]
        with pytest.raises(InvalidInputError):
            build_split_payments(total_amount=1000, splits=splits)


class TestSingleTender:
    """Single-tender selection."""

    def test_small_orders_prefer_cash(self, platform, rng):
        """Checks under $20 go to cash and open the drawer."""
        router = PaymentRouter(platform, rng, cash_drawer=platform, gates=gates(small_order_cash=1.0))
        request = request_for(
            platform, 1500, tax=124, tip=225,
            tenders=tenders_of(platform, "Cash", "Check", "Mobile Pay"),
        )

        outcome = router.route(request)

        assert outcome.tenders[0].label == "Cash"
        assert platform.cash_events == [
            {"type": "CASH_ADJUSTMENT", "employee_id": "EMP_SERVER_1", "amount_change": 1849}
        ]

    def test_card_tenders_skipped_without_ecommerce(self, platform, rng):
        """Card tenders are not chosen when card processing is off."""
        router = PaymentRouter(platform, rng, card_processing=False, gates=gates(card_tender=1.0))
        for _ in range(20):
            request = request_for(platform, 5000, tenders=list(platform.tenders))
            outcome = router.route(request)
            assert not is_card_tender(outcome.tenders[0])


class TestCardPayments:
    """Ecommerce card charges."""

    def test_card_charge(self, platform, rng):
        """Card tenders are charged for the full amount including tip."""
        router = PaymentRouter(platform, rng, card_processing=True, gates=gates(card_tender=1.0))
        request = request_for(
            platform, 5000, tax=413, tip=900, tenders=tenders_of(platform, "Cash", "Credit Card")
        )

        outcome = router.route(request)

        assert outcome.path is PaymentPath.CARD
        call = platform.calls_for("process_card_payment", request.order_id)[0]
        assert call.payload["amount"] == 6313
        assert call.payload["tip_amount"] == 900

    def test_debit_tender_uses_debit_card(self, platform, rng):
        """Debit tenders always charge the debit test card."""
        router = PaymentRouter(platform, rng, card_processing=True)
        debit = next(t for t in platform.tenders if t.label == "Debit Card")
        assert router.select_card_type(debit) == DEBIT_CARD_TYPE

    def test_declined_card_falls_back_to_cash(self, rng):
        """A declined charge is settled in cash instead."""
        platform = InMemoryPlatform(decline_cards=True)
        router = PaymentRouter(
            platform, rng, cash_drawer=platform, card_processing=True, gates=gates(card_tender=1.0)
        )
        request = request_for(
            platform, 5000, tax=413, tenders=tenders_of(platform, "Cash", "Credit Card")
        )

        outcome = router.route(request)

        assert outcome.path is PaymentPath.CASH_FALLBACK
        assert outcome.tenders[0].label == "Cash"
        assert len(platform.cash_events) == 1

    def test_card_api_error_falls_back(self, rng):
        """Transport failures during a charge also fall back to cash."""
        platform = InMemoryPlatform(fail_operations={"process_card_payment"})
        router = PaymentRouter(platform, rng, card_processing=True, gates=gates(card_tender=1.0))
        request = request_for(
            platform, 5000, tenders=tenders_of(platform, "Cash", "Credit Card")
        )

        assert router.route(request).path is PaymentPath.CASH_FALLBACK


class TestZeroTotal:
    """Fully comped checks."""

    def test_comped_order_skips_gift_card_and_split(self, platform, rng):
        """A zero total settles with one zero-amount payment and no redemption."""
        card = platform.gift_cards["GC_003"]
        router = PaymentRouter(
            platform,
            rng,
            gift_card_gateway=platform,
            gates=gates(gift_card_payment=1.0, split_dine_in_group=1.0, split_other=1.0),
        )
        request = request_for(
            platform, 0, tenders=tenders_of(platform, "Check", "Cash"), party_size=4,
            gift_cards=[card],
        )

        outcome = router.route(request)

        assert outcome.path is PaymentPath.SINGLE
        assert outcome.tenders[0].label == "Cash"
        assert [p.amount for p in outcome.payments] == [0]
        assert platform.calls_for("redeem_gift_card") == []
        assert platform.gift_cards["GC_003"].balance == 10000
