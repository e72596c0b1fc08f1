"""
Daily statistics for one simulation run.

A fresh ``DailyStatistics`` is created per run and passed explicitly through
the orchestrator, assembler and refund processor. Every mutation goes
through a lock so worker threads can share one instance.
"""

import logging
import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from pos_datagen.shared.money import format_cents

from .base_types import PaymentPath, RefundResult, SimulatedOrder

logger = logging.getLogger(__name__)


@dataclass
class BucketTotals:
    orders: int = 0
    revenue: int = 0


@dataclass
class GiftCardTotals:
    payments: int = 0
    full_payments: int = 0
    partial_payments: int = 0
    amount_redeemed: int = 0


@dataclass
class RefundTotals:
    total: int = 0
    full: int = 0
    partial: int = 0
    amount: int = 0


@dataclass
class ChargeTotals:
    count: int = 0
    amount: int = 0


@dataclass
class DailyStatistics:
    """Counts and revenue accumulated across a simulated day."""

    orders: int = 0
    abandoned: int = 0
    revenue: int = 0
    tips: int = 0
    tax: int = 0
    discounts: int = 0
    discount_amount: int = 0
    by_period: dict[str, BucketTotals] = field(default_factory=dict)
    by_dining: dict[str, BucketTotals] = field(default_factory=dict)
    by_order_type: dict[str, BucketTotals] = field(default_factory=dict)
    by_discount_type: Counter = field(default_factory=Counter)
    by_tender: Counter = field(default_factory=Counter)
    by_payment_path: Counter = field(default_factory=Counter)
    gift_cards: GiftCardTotals = field(default_factory=GiftCardTotals)
    refunds: RefundTotals = field(default_factory=RefundTotals)
    service_charges: ChargeTotals = field(default_factory=ChargeTotals)
    card_payments: ChargeTotals = field(default_factory=ChargeTotals)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record_order(self, order: SimulatedOrder) -> None:
        with self._lock:
            self.orders += 1
            self.revenue += order.subtotal
            self.tips += order.tip_amount
            self.tax += order.tax_amount

            if order.discount is not None:
                self.discounts += 1
                self.discount_amount += order.discount.amount
                self.by_discount_type[order.discount.type.value] += 1

            for bucket, key in (
                (self.by_period, order.meal_period.value),
                (self.by_dining, order.dining_option.value),
                (self.by_order_type, order.order_type or "Unassigned"),
            ):
                totals = bucket.setdefault(key, BucketTotals())
                totals.orders += 1
                totals.revenue += order.subtotal

            if order.service_charge_amount:
                self.service_charges.count += 1
                self.service_charges.amount += order.service_charge_amount

            outcome = order.payment
            self.by_payment_path[outcome.path.value] += 1
            for tender in outcome.tenders:
                self.by_tender[tender.label] += 1

            if outcome.gift_card is not None:
                self.gift_cards.payments += 1
                self.gift_cards.amount_redeemed += outcome.gift_card.amount_redeemed
                if outcome.path is PaymentPath.GIFT_CARD_FULL:
                    self.gift_cards.full_payments += 1
                else:
                    self.gift_cards.partial_payments += 1

            if outcome.path is PaymentPath.CARD:
                self.card_payments.count += 1
                self.card_payments.amount += outcome.amount

    def record_abandoned(self) -> None:
        with self._lock:
            self.abandoned += 1

    def record_refund(self, refund: RefundResult) -> None:
        with self._lock:
            self.refunds.total += 1
            self.refunds.amount += refund.amount
            if refund.full:
                self.refunds.full += 1
            else:
                self.refunds.partial += 1

    @property
    def grand_total(self) -> int:
        return self.revenue + self.tips + self.tax + self.service_charges.amount

    def to_dict(self) -> dict[str, Any]:
        with self._lock:
            return {
                "orders": self.orders,
                "abandoned": self.abandoned,
                "revenue": self.revenue,
                "tips": self.tips,
                "tax": self.tax,
                "discounts": self.discounts,
                "discount_amount": self.discount_amount,
                "by_period": {k: vars(v).copy() for k, v in self.by_period.items()},
                "by_dining": {k: vars(v).copy() for k, v in self.by_dining.items()},
                "by_order_type": {k: vars(v).copy() for k, v in self.by_order_type.items()},
                "by_discount_type": dict(self.by_discount_type),
                "by_tender": dict(self.by_tender),
                "by_payment_path": dict(self.by_payment_path),
                "gift_cards": vars(self.gift_cards).copy(),
                "refunds": vars(self.refunds).copy(),
                "service_charges": vars(self.service_charges).copy(),
                "card_payments": vars(self.card_payments).copy(),
            }

    def summary_lines(self) -> list[str]:
        """Human-readable end-of-day report."""
        lines = [
            "=" * 60,
            "DAILY SUMMARY",
            "=" * 60,
            f"  Total Orders: {self.orders}",
            f"  Revenue:      {format_cents(self.revenue)}",
            f"  Tips:         {format_cents(self.tips)}",
            f"  Tax:          {format_cents(self.tax)}",
            f"  Grand Total:  {format_cents(self.grand_total)}",
        ]
        if self.abandoned:
            lines.append(f"  Abandoned:    {self.abandoned}")

        lines += ["", "BY MEAL PERIOD:"]
        for period, totals in self.by_period.items():
            avg = totals.revenue // totals.orders if totals.orders else 0
            lines.append(
                f"  {period:<12} {totals.orders:>3} orders | "
                f"{format_cents(totals.revenue)} | avg {format_cents(avg)}"
            )

        lines += ["", "BY DINING OPTION:"]
        for dining, totals in self.by_dining.items():
            lines.append(f"  {dining:<12} {totals.orders:>3} orders | {format_cents(totals.revenue)}")

        if self.by_discount_type:
            lines += ["", "BY DISCOUNT TYPE:"]
            for discount_type, count in self.by_discount_type.items():
                lines.append(f"  {discount_type:<15} {count} applied")
            lines.append(f"  Total discounted orders: {self.discounts}")

        if self.service_charges.count:
            lines += [
                "",
                "SERVICE CHARGES:",
                f"  Auto gratuity: {self.service_charges.count} "
                f"({format_cents(self.service_charges.amount)})",
            ]

        if self.card_payments.count:
            lines += [
                "",
                "CARD PAYMENTS:",
                f"  Charged:       {self.card_payments.count} "
                f"({format_cents(self.card_payments.amount)})",
            ]

        if self.gift_cards.payments:
            lines += [
                "",
                "GIFT CARDS:",
                f"  Payments:      {self.gift_cards.payments}",
                f"    Full:        {self.gift_cards.full_payments}",
                f"    Partial:     {self.gift_cards.partial_payments}",
                f"  Redeemed:      {format_cents(self.gift_cards.amount_redeemed)}",
            ]

        if self.refunds.total:
            lines += [
                "",
                "REFUNDS:",
                f"  Total:         {self.refunds.total}",
                f"    Full:        {self.refunds.full}",
                f"    Partial:     {self.refunds.partial}",
                f"  Amount:        {format_cents(self.refunds.amount)}",
            ]

        lines.append("=" * 60)
        return lines

    def log_summary(self, target: logging.Logger | None = None) -> None:
        log = target or logger
        for line in self.summary_lines():
            log.info(line)
