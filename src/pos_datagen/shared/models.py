"""
Core data models for the POS data generator.

Two groups of pydantic models live here:

* Platform records (items, tenders, orders, payments...) as returned by the
  POS platform's REST API. Field aliases accept the platform's camelCase keys
  and nested ``{"elements": [...]}`` envelopes are unwrapped on validation.
* Local definitions (discounts, combos, coupons) shipped with the package in
  ``pos_datagen.sourcedata``. These use snake_case keys.

All monetary amounts are integers in cents.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pos_datagen.shared.money import percent_of

# Tax rates are stored by the platform in units of 100,000 per percent
TAX_RATE_SCALE = 100_000


def _unwrap_elements(value: Any) -> Any:
    """Accept either a plain list or the platform's ``{"elements": [...]}``."""
    if value is None:
        return []
    if isinstance(value, dict):
        return value.get("elements", [])
    return value


# ================================
# ENUMS
# ================================


class DiningOption(str, Enum):
    """How the guest receives the order."""

    HERE = "HERE"
    TO_GO = "TO_GO"
    DELIVERY = "DELIVERY"


class OrderState(str, Enum):
    """Terminal states a simulated order is moved to."""

    OPEN = "open"
    PAID = "paid"
    REFUNDED = "refunded"


class TenderType(str, Enum):
    """Payment tender categories derived from tender labels."""

    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    CASH = "cash"
    CHECK = "check"
    GIFT_CARD = "gift_card"
    OTHER = "other"


class DiscountType(str, Enum):
    """Waterfall step that produced an applied discount."""

    TIME_BASED = "time_based"
    LOYALTY = "loyalty"
    COMBO = "combo"
    PROMO_CODE = "promo_code"
    LINE_ITEM = "line_item"
    THRESHOLD = "threshold"
    LEGACY = "legacy"


# ================================
# PLATFORM RECORDS
# ================================


class PlatformModel(BaseModel):
    """Base for records parsed from platform responses."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Category(PlatformModel):
    id: str
    name: str
    sort_order: int = Field(0, alias="sortOrder")


class TaxRate(PlatformModel):
    """A merchant tax rate; ``rate`` is in platform units (825000 = 8.25%)."""

    id: str
    name: str
    rate: int = Field(0, ge=0)
    is_default: bool = Field(False, alias="isDefault")

    @property
    def percentage(self) -> float:
        return self.rate / TAX_RATE_SCALE


class Modifier(PlatformModel):
    id: str
    name: str
    price: int = Field(0, ge=0)


class ModifierGroup(PlatformModel):
    """A group of modifiers with selection bounds."""

    id: str
    name: str
    min_required: int = Field(0, alias="minRequired", ge=0)
    max_allowed: int | None = Field(None, alias="maxAllowed", ge=0)
    modifiers: list[Modifier] = Field(default_factory=list)

    @field_validator("modifiers", mode="before")
    @classmethod
    def unwrap_modifiers(cls, v):
        return _unwrap_elements(v)

    @field_validator("min_required", mode="before")
    @classmethod
    def default_min_required(cls, v):
        return 0 if v is None else v


class ModifierGroupRef(PlatformModel):
    id: str
    name: str | None = None


class Item(PlatformModel):
    """A menu item with its category, modifier group and tax associations."""

    id: str
    name: str
    price: int = Field(..., ge=0, description="Unit price in cents")
    category: str | None = Field(None, description="Flat category name (local data)")
    categories: list[Category] = Field(default_factory=list)
    modifier_groups: list[ModifierGroupRef] = Field(
        default_factory=list, alias="modifierGroups"
    )
    tax_rates: list[TaxRate] = Field(default_factory=list, alias="taxRates")

    @field_validator("categories", "modifier_groups", "tax_rates", mode="before")
    @classmethod
    def unwrap(cls, v):
        return _unwrap_elements(v)

    @property
    def category_name(self) -> str | None:
        """Name of the item's first category, if any."""
        if self.categories:
            return self.categories[0].name
        return self.category


class Tender(PlatformModel):
    id: str
    label: str
    label_key: str | None = Field(None, alias="labelKey")
    enabled: bool = True
    opens_cash_drawer: bool = Field(False, alias="opensCashDrawer")


class Employee(PlatformModel):
    id: str
    name: str
    role: str | None = None


class Customer(PlatformModel):
    id: str
    first_name: str | None = Field(None, alias="firstName")
    last_name: str | None = Field(None, alias="lastName")
    email: str | None = None


class OrderType(PlatformModel):
    id: str
    label: str
    is_default: bool = Field(False, alias="isDefault")


class GiftCard(PlatformModel):
    id: str
    card_number: str | None = Field(None, alias="cardNumber")
    balance: int = Field(0, ge=0)
    status: str = "ACTIVE"

    @property
    def is_redeemable(self) -> bool:
        return self.status.upper() == "ACTIVE" and self.balance > 0


class LineItemRecord(PlatformModel):
    """A line item as attached to a platform order."""

    id: str
    item_id: str | None = None
    name: str
    price: int = 0
    quantity: int = Field(1, ge=1)
    note: str | None = None


class PaymentRecord(PlatformModel):
    id: str
    amount: int = 0
    tip_amount: int = Field(0, alias="tipAmount")
    tax_amount: int = Field(0, alias="taxAmount")
    tender_id: str | None = None
    tender_label: str | None = None
    result: str = "SUCCESS"
    card_type: str | None = None


class OrderRecord(PlatformModel):
    id: str
    state: str = "open"
    total: int = 0
    employee_id: str | None = None
    customer_id: str | None = None
    line_items: list[LineItemRecord] = Field(default_factory=list, alias="lineItems")
    payments: list[PaymentRecord] = Field(default_factory=list)

    @field_validator("line_items", "payments", mode="before")
    @classmethod
    def unwrap(cls, v):
        return _unwrap_elements(v)


class GiftCardRedemption(BaseModel):
    """Outcome of redeeming against a gift card."""

    success: bool
    amount_redeemed: int = 0
    remaining_balance: int = 0
    shortfall: int = 0
    message: str = ""


class RefundRecord(PlatformModel):
    id: str
    payment_id: str
    amount: int
    reason: str | None = None
    full_refund: bool = Field(False, alias="fullRefund")


# ================================
# LOCAL DEFINITIONS
# ================================


class TimeRules(BaseModel):
    """Hour window ``[start_hour, end_hour)`` on optional weekdays (0=Monday)."""

    start_hour: int = Field(..., ge=0, le=23)
    end_hour: int = Field(..., ge=1, le=24)
    days: list[int] | None = None

    @field_validator("days")
    @classmethod
    def validate_days(cls, v: list[int] | None) -> list[int] | None:
        if v is not None and any(d < 0 or d > 6 for d in v):
            raise ValueError("days must be weekday numbers 0-6")
        return v

    def matches(self, at: datetime) -> bool:
        if self.days is not None and at.weekday() not in self.days:
            return False
        if self.start_hour < self.end_hour:
            return self.start_hour <= at.hour < self.end_hour
        # Window wraps past midnight
        return at.hour >= self.start_hour or at.hour < self.end_hour


class DiscountDefinition(BaseModel):
    """A configured discount, by percentage or flat amount."""

    id: str
    name: str
    type: str = Field("order", description="order, time_based, line_item, loyalty, threshold...")
    percentage: float | None = Field(None, gt=0, le=100)
    amount: int | None = Field(None, gt=0)
    applicable_categories: list[str] = Field(default_factory=list)
    min_order_amount: int | None = Field(None, ge=0)
    max_discount_amount: int | None = Field(None, gt=0)
    time_rules: TimeRules | None = None
    loyalty_tier: str | None = None

    @model_validator(mode="after")
    def require_value(self):
        if self.percentage is None and self.amount is None:
            raise ValueError(f"discount '{self.id}' needs a percentage or an amount")
        return self

    @property
    def is_line_item(self) -> bool:
        return self.type.startswith("line_item")

    def is_active_at(self, at: datetime) -> bool:
        return self.time_rules is None or self.time_rules.matches(at)

    def compute_amount(self, base_amount: int) -> int:
        """Absolute discount in cents against ``base_amount``, never above it."""
        if base_amount <= 0:
            return 0
        if self.percentage is not None:
            value = percent_of(base_amount, self.percentage)
        else:
            value = self.amount or 0
        if self.max_discount_amount is not None:
            value = min(value, self.max_discount_amount)
        return min(value, base_amount)


class ComboComponent(BaseModel):
    """One requirement of a combo: N units from a category or item list."""

    category: str | None = None
    items: list[str] | None = Field(None, description="Item IDs or names")
    quantity: int = Field(1, ge=1)

    @model_validator(mode="after")
    def require_selector(self):
        if not self.category and not self.items:
            raise ValueError("combo component needs a category or an item list")
        return self


class ComboDefinition(BaseModel):
    id: str
    name: str
    discount_type: Literal["percentage", "fixed"] = "percentage"
    discount_value: float = Field(..., gt=0)
    required_components: list[ComboComponent] = Field(..., min_length=1)
    applies_to: Literal["total", "matching_items", "cheapest_items"] = "total"
    max_items: int | None = Field(None, ge=1)
    max_discount_amount: int | None = Field(None, gt=0)
    time_rules: TimeRules | None = None
    active: bool = True


class CouponDefinition(BaseModel):
    """A promo code with its validity rules."""

    code: str
    name: str
    discount_type: Literal["percentage", "fixed"]
    discount_value: float = Field(..., gt=0)
    valid_from: date | None = None
    valid_until: date | None = None
    active: bool = True
    usage_limit: int | None = Field(None, ge=0)
    times_used: int = Field(0, ge=0)
    min_order_amount: int | None = Field(None, ge=0)
    max_discount_amount: int | None = Field(None, gt=0)
    customer_types: list[str] = Field(
        default_factory=list, description="any of new, returning, loyalty, vip"
    )
    valid_days: list[int] | None = None
    valid_hours: TimeRules | None = None
    applicable_categories: list[str] = Field(default_factory=list)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()


class PaymentSplit(BaseModel):
    """One share of a split payment: a tender and its whole-number percentage."""

    tender: Tender
    percentage: int = Field(..., gt=0, le=100)
