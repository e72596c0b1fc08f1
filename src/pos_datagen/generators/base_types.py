"""
Type definitions shared by the order simulation components.

These dataclasses live only for the duration of a run: the platform owns the
canonical order once it is paid.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from pos_datagen.shared.models import (
    Customer,
    DiningOption,
    DiscountType,
    Employee,
    GiftCard,
    GiftCardRedemption,
    Item,
    Modifier,
    ModifierGroup,
    OrderType,
    PaymentRecord,
    PaymentSplit,
    Tender,
)

from .loyalty import LoyaltyTier, loyalty_tier_for
from .meal_periods import MealPeriod


@dataclass(frozen=True)
class CustomerProfile:
    """A customer plus the ephemeral visit history sampled for one order."""

    customer: Customer
    visit_count: int = 0
    vip: bool = False

    @property
    def tier(self) -> LoyaltyTier:
        return loyalty_tier_for(self.visit_count)

    @property
    def customer_types(self) -> set[str]:
        types = {"returning" if self.visit_count > 0 else "new"}
        if self.tier is not LoyaltyTier.NONE:
            types.add("loyalty")
        if self.vip:
            types.add("vip")
        return types


@dataclass
class OrderLine:
    """A line item that made it onto the platform order, with its catalog item."""

    line_item_id: str
    item: Item
    quantity: int = 1
    note: str | None = None
    modifiers: list[Modifier] = field(default_factory=list)

    @property
    def unit_price(self) -> int:
        return self.item.price

    @property
    def category(self) -> str | None:
        return self.item.category_name

    @property
    def line_total(self) -> int:
        return self.item.price * self.quantity

    @property
    def modifier_total(self) -> int:
        return sum(m.price for m in self.modifiers) * self.quantity


@dataclass(frozen=True)
class DiscountContext:
    """Everything the discount waterfall looks at for one order."""

    order_id: str
    lines: list[OrderLine]
    order_total: int
    period: MealPeriod
    order_time: datetime
    customer: CustomerProfile | None = None


@dataclass
class DiscountCandidate:
    """
    A discount the resolver found eligible, with its computed effect.

    ``line_amounts`` maps line item IDs to amounts for item-scoped
    discounts; it is empty for order-level ones.
    """

    type: DiscountType
    name: str
    amount: int
    priority: int
    definition: Any = None
    line_amounts: dict[str, int] = field(default_factory=dict)
    discount_id: str | None = None
    code: str | None = None
    tier: str | None = None

    @property
    def is_line_scoped(self) -> bool:
        return bool(self.line_amounts)


@dataclass(frozen=True)
class AppliedDiscount:
    type: DiscountType
    name: str
    amount: int
    code: str | None = None
    tier: str | None = None

    def to_metadata(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type.value, "name": self.name, "amount": self.amount}
        if self.code:
            data["code"] = self.code
        if self.tier:
            data["tier"] = self.tier
        return data


class PaymentPath(str, Enum):
    SINGLE = "single"
    SPLIT = "split"
    GIFT_CARD_FULL = "gift_card_full"
    GIFT_CARD_PARTIAL = "gift_card_partial"
    CARD = "card"
    CASH_FALLBACK = "cash_fallback"


@dataclass
class PaymentRequest:
    order_id: str
    subtotal: int
    tax_amount: int
    tip_amount: int
    employee_id: str
    tenders: list[Tender]
    dining_option: DiningOption
    party_size: int
    gift_cards: list[GiftCard] = field(default_factory=list)
    gift_card_tender: Tender | None = None

    @property
    def total_with_tax(self) -> int:
        return self.subtotal + self.tax_amount


@dataclass
class PaymentOutcome:
    path: PaymentPath
    payments: list[PaymentRecord]
    tenders: list[Tender]
    splits: list[PaymentSplit] = field(default_factory=list)
    gift_card: GiftCardRedemption | None = None
    card_type: str | None = None
    amount: int = 0


@dataclass
class SimulatedOrder:
    """In-memory result for one paid order."""

    id: str
    business_date: date
    order_time: datetime
    meal_period: MealPeriod
    dining_option: DiningOption
    party_size: int
    employee_id: str
    lines: list[OrderLine]
    subtotal: int
    tax_amount: int
    tip_amount: int
    payment: PaymentOutcome
    customer_id: str | None = None
    order_type: str | None = None
    discount: AppliedDiscount | None = None
    service_charge_amount: int = 0
    modifier_count: int = 0
    modifier_amount: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def discount_amount(self) -> int:
        return self.discount.amount if self.discount else 0

    @property
    def total(self) -> int:
        return self.subtotal + self.tax_amount + self.tip_amount + self.service_charge_amount

    @property
    def payments(self) -> list[PaymentRecord]:
        return self.payment.payments


@dataclass
class SimulationData:
    """Catalog snapshot fetched once per run."""

    items: list[Item]
    employees: list[Employee]
    tenders: list[Tender]
    customers: list[Customer] = field(default_factory=list)
    gift_cards: list[GiftCard] = field(default_factory=list)
    gift_card_tender: Tender | None = None
    modifier_groups: dict[str, ModifierGroup] = field(default_factory=dict)
    order_types: list[OrderType] = field(default_factory=list)
    items_by_category: dict[str, list[Item]] = field(default_factory=dict)

    @staticmethod
    def group_by_category(items: list[Item]) -> dict[str, list[Item]]:
        grouped: dict[str, list[Item]] = {}
        for item in items:
            grouped.setdefault(item.category_name or "Other", []).append(item)
        return grouped


@dataclass(frozen=True)
class RefundResult:
    order_id: str
    payment_id: str
    amount: int
    full: bool
    reason: str
