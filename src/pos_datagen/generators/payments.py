"""
Payment routing for simulated orders.

Decides how an order's subtotal, tax and tip are settled: a gift card (in
full or split with another tender), a split across several tenders, a card
charged through the ecommerce API, or a single tender with a cash bias for
small checks.
"""

import logging
import random

from pos_datagen.services.interfaces import (
    CashDrawerGateway,
    GiftCardGateway,
    PaymentGateway,
)
from pos_datagen.shared import metrics
from pos_datagen.shared.exceptions import ApiError
from pos_datagen.shared.models import PaymentSplit, Tender, TenderType
from pos_datagen.shared.money import ratio_percent

from .base_types import PaymentOutcome, PaymentPath, PaymentRequest
from .distributions import generate_split_percentages
from .gates import (
    DEFAULT_ORDER_GATES,
    OrderGates,
    should_pay_with_gift_card,
    should_prefer_cash,
    should_split_payment,
    should_use_card_tender,
)

logger = logging.getLogger(__name__)

CARD_TENDER_KEYS = frozenset(
    {"com.clover.tender.credit_card", "com.clover.tender.debit_card"}
)
CARD_TYPES = ("visa", "mastercard", "discover", "amex")
DEBIT_CARD_TYPE = "visa_debit"

# Orders under $20 lean toward cash
SMALL_ORDER_THRESHOLD = 2000
MAX_SPLIT_TENDERS = 4


def is_card_tender(tender: Tender) -> bool:
    if tender.label_key in CARD_TENDER_KEYS:
        return True
    label = tender.label.lower()
    return "credit" in label or "debit" in label


def is_gift_card_tender(tender: Tender) -> bool:
    return "gift" in tender.label.lower()


def classify_tender_type(label: str) -> TenderType:
    """Map a free-text tender label to a tender category."""
    text = label.lower()
    if "debit" in text:
        return TenderType.DEBIT_CARD
    if "credit" in text:
        return TenderType.CREDIT_CARD
    if "cash" in text:
        return TenderType.CASH
    if "check" in text or "cheque" in text:
        return TenderType.CHECK
    if "gift" in text:
        return TenderType.GIFT_CARD
    return TenderType.OTHER


def find_cash_tender(tenders: list[Tender]) -> Tender | None:
    """The tender literally labelled "cash", if any."""
    return next((t for t in tenders if t.label.strip().lower() == "cash"), None)


def select_split_tenders(tenders: list[Tender] | None, count: int, rng: random.Random) -> list[Tender]:
    if not tenders or count < 1:
        return []
    return rng.sample(tenders, min(count, len(tenders)))


class PaymentRouter:
    """Settles orders through the payment, gift card and cash drawer gateways."""

    def __init__(
        self,
        payment_gateway: PaymentGateway,
        rng: random.Random,
        gift_card_gateway: GiftCardGateway | None = None,
        cash_drawer: CashDrawerGateway | None = None,
        card_processing: bool = False,
        gates: OrderGates = DEFAULT_ORDER_GATES,
    ):
        self._payments = payment_gateway
        self._gift_cards = gift_card_gateway
        self._cash_drawer = cash_drawer
        self._rng = rng
        self.card_processing = card_processing
        self.gates = gates

    def route(self, request: PaymentRequest) -> PaymentOutcome:
        """
        Settle one order.

        Raises:
            ApiError: if the platform rejects the final payment call
        """
        party_size = max(1, int(request.party_size))

        if request.total_with_tax <= 0:
            return self.settle_zero_total(request)

        if (
            request.gift_cards
            and request.gift_card_tender is not None
            and should_pay_with_gift_card(self._rng, self.gates)
        ):
            outcome = self.pay_with_gift_card(request)
            if outcome is not None:
                return outcome

        if len(request.tenders) > 1 and should_split_payment(
            self._rng, request.dining_option, party_size, self.gates
        ):
            return self.pay_split(request, party_size)

        return self.pay_single(request)

    def settle_zero_total(self, request: PaymentRequest) -> PaymentOutcome:
        """
        Close out a fully comped order with one zero-amount payment.

        Gift cards, splits and card charges all need a positive amount, so a
        comped check always settles on cash (or the first non-card tender).
        """
        tender = find_cash_tender(request.tenders)
        if tender is None:
            non_card = [t for t in request.tenders if not is_card_tender(t)]
            tender = non_card[0] if non_card else request.tenders[0]

        payment = self._payments.process_payment(
            request.order_id,
            amount=0,
            tender_id=tender.id,
            employee_id=request.employee_id,
            tip_amount=request.tip_amount,
            tax_amount=0,
        )
        metrics.payments_processed_total.labels(payment_path=PaymentPath.SINGLE.value).inc()
        logger.info(f"  Order {request.order_id} fully comped, settled on {tender.label}")
        return PaymentOutcome(
            path=PaymentPath.SINGLE,
            payments=[payment],
            tenders=[tender],
            amount=request.tip_amount,
        )

    def split_count(self, party_size: int, tender_count: int) -> int:
        upper = min(party_size, MAX_SPLIT_TENDERS, tender_count)
        if upper < 2:
            return 2
        return self._rng.randint(2, upper)

    def pay_split(self, request: PaymentRequest, party_size: int) -> PaymentOutcome:
        count = self.split_count(party_size, len(request.tenders))
        tenders = select_split_tenders(request.tenders, count, self._rng)
        percentages = generate_split_percentages(len(tenders), self._rng)
        splits = [PaymentSplit(tender=t, percentage=p) for t, p in zip(tenders, percentages)]

        payments = self._payments.process_split_payment(
            request.order_id,
            total_amount=request.subtotal,
            splits=splits,
            employee_id=request.employee_id,
            tip_amount=request.tip_amount,
            tax_amount=request.tax_amount,
        )
        metrics.payments_processed_total.labels(payment_path=PaymentPath.SPLIT.value).inc()
        logger.info(
            f"  Split payment across {len(splits)} tenders: "
            + ", ".join(f"{s.tender.label} {s.percentage}%" for s in splits)
        )
        return PaymentOutcome(
            path=PaymentPath.SPLIT,
            payments=payments,
            tenders=tenders,
            splits=splits,
            amount=request.total_with_tax + request.tip_amount,
        )

    def pay_with_gift_card(self, request: PaymentRequest) -> PaymentOutcome | None:
        """
        Redeem from a random active card, splitting any shortfall onto another tender.

        Returns None when no card can be used so the caller falls back to an
        ordinary payment.
        """
        if self._gift_cards is None or request.gift_card_tender is None:
            return None

        active = [card for card in request.gift_cards if card.is_redeemable]
        if not active:
            logger.debug("No gift cards with a balance, paying normally")
            return None

        card = self._rng.choice(active)
        total = request.total_with_tax
        try:
            redemption = self._gift_cards.redeem_gift_card(card.id, total)
        except ApiError as e:
            metrics.gateway_failures_total.labels(operation="redeem_gift_card").inc()
            logger.warning(f"Gift card {card.id} redemption failed: {e}")
            return None

        if not redemption.success:
            logger.debug(f"Gift card {card.id} not redeemed: {redemption.message}")
            return None

        gift_tender = request.gift_card_tender
        if redemption.shortfall <= 0:
            payment = self._payments.process_payment(
                request.order_id,
                amount=request.subtotal,
                tender_id=gift_tender.id,
                employee_id=request.employee_id,
                tip_amount=request.tip_amount,
                tax_amount=request.tax_amount,
            )
            metrics.payments_processed_total.labels(
                payment_path=PaymentPath.GIFT_CARD_FULL.value
            ).inc()
            logger.info(f"  Paid in full by gift card {card.id}")
            return PaymentOutcome(
                path=PaymentPath.GIFT_CARD_FULL,
                payments=[payment],
                tenders=[gift_tender],
                gift_card=redemption,
                amount=total + request.tip_amount,
            )

        others = [t for t in request.tenders if not is_gift_card_tender(t)]
        if not others:
            logger.warning(
                f"Gift card {card.id} left a shortfall of {redemption.shortfall} "
                "but no other tender is available"
            )
            return None

        gift_pct = min(99, max(1, ratio_percent(redemption.amount_redeemed, total)))
        other = self._rng.choice(others)
        splits = [
            PaymentSplit(tender=gift_tender, percentage=gift_pct),
            PaymentSplit(tender=other, percentage=100 - gift_pct),
        ]
        payments = self._payments.process_split_payment(
            request.order_id,
            total_amount=request.subtotal,
            splits=splits,
            employee_id=request.employee_id,
            tip_amount=request.tip_amount,
            tax_amount=request.tax_amount,
        )
        metrics.payments_processed_total.labels(
            payment_path=PaymentPath.GIFT_CARD_PARTIAL.value
        ).inc()
        logger.info(
            f"  Gift card {card.id} covered {gift_pct}%, remainder on {other.label}"
        )
        return PaymentOutcome(
            path=PaymentPath.GIFT_CARD_PARTIAL,
            payments=payments,
            tenders=[gift_tender, other],
            splits=splits,
            gift_card=redemption,
            amount=total + request.tip_amount,
        )

    def select_payment_tender(self, tenders: list[Tender], subtotal: int) -> Tender:
        if subtotal < SMALL_ORDER_THRESHOLD and should_prefer_cash(self._rng, self.gates):
            cash = find_cash_tender(tenders)
            if cash is not None:
                return cash

        if self.card_processing:
            cards = [t for t in tenders if is_card_tender(t)]
            if cards and should_use_card_tender(self._rng, self.gates):
                return self._rng.choice(cards)

        non_card = [t for t in tenders if not is_card_tender(t)] or tenders
        return self._rng.choice(non_card)

    def select_card_type(self, tender: Tender) -> str:
        if classify_tender_type(tender.label) is TenderType.DEBIT_CARD:
            return DEBIT_CARD_TYPE
        if tender.label_key == "com.clover.tender.debit_card":
            return DEBIT_CARD_TYPE
        return self._rng.choice(CARD_TYPES)

    def pay_single(self, request: PaymentRequest) -> PaymentOutcome:
        tender = self.select_payment_tender(request.tenders, request.subtotal)

        if self.card_processing and is_card_tender(tender):
            return self.pay_by_card(request, tender)

        payment = self._payments.process_payment(
            request.order_id,
            amount=request.subtotal,
            tender_id=tender.id,
            employee_id=request.employee_id,
            tip_amount=request.tip_amount,
            tax_amount=request.tax_amount,
        )
        total = request.total_with_tax + request.tip_amount
        if classify_tender_type(tender.label) is TenderType.CASH:
            self.record_cash(request.employee_id, total)

        metrics.payments_processed_total.labels(payment_path=PaymentPath.SINGLE.value).inc()
        logger.info(f"  Paid by {tender.label}")
        return PaymentOutcome(
            path=PaymentPath.SINGLE, payments=[payment], tenders=[tender], amount=total
        )

    def pay_by_card(self, request: PaymentRequest, tender: Tender) -> PaymentOutcome:
        """Charge a test card through the ecommerce API, falling back to cash."""
        card_type = self.select_card_type(tender)
        total = request.total_with_tax + request.tip_amount
        try:
            payment = self._payments.process_card_payment(
                request.order_id,
                amount=total,
                card_type=card_type,
                tip_amount=request.tip_amount,
                tax_amount=request.tax_amount,
            )
        except ApiError as e:
            metrics.gateway_failures_total.labels(operation="process_card_payment").inc()
            logger.warning(f"Card payment failed for order {request.order_id}: {e}")
            payment = None

        if payment is None:
            return self.fallback_to_cash(request)

        metrics.payments_processed_total.labels(payment_path=PaymentPath.CARD.value).inc()
        logger.info(f"  Charged {card_type} card via ecommerce")
        return PaymentOutcome(
            path=PaymentPath.CARD,
            payments=[payment],
            tenders=[tender],
            card_type=card_type,
            amount=total,
        )

    def fallback_to_cash(self, request: PaymentRequest) -> PaymentOutcome:
        tender = find_cash_tender(request.tenders)
        if tender is None:
            non_card = [t for t in request.tenders if not is_card_tender(t)]
            tender = non_card[0] if non_card else request.tenders[0]

        payment = self._payments.process_payment(
            request.order_id,
            amount=request.subtotal,
            tender_id=tender.id,
            employee_id=request.employee_id,
            tip_amount=request.tip_amount,
            tax_amount=request.tax_amount,
        )
        total = request.total_with_tax + request.tip_amount
        self.record_cash(request.employee_id, total)

        metrics.payments_processed_total.labels(
            payment_path=PaymentPath.CASH_FALLBACK.value
        ).inc()
        logger.info(f"  Card declined, paid by {tender.label} instead")
        return PaymentOutcome(
            path=PaymentPath.CASH_FALLBACK, payments=[payment], tenders=[tender], amount=total
        )

    def record_cash(self, employee_id: str, amount: int) -> None:
        """Best-effort cash drawer event."""
        if self._cash_drawer is None:
            return
        try:
            self._cash_drawer.record_cash_payment(employee_id, amount)
        except ApiError as e:
            metrics.gateway_failures_total.labels(operation="record_cash_payment").inc()
            logger.warning(f"Failed to record cash drawer event: {e}")
