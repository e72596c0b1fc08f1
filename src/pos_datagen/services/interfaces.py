"""
Collaborator interfaces consumed by the simulation engine.

The engine never talks HTTP itself. It is handed objects satisfying these
protocols at construction: the REST gateways in ``services.platform`` for
real sandbox runs, or ``services.memory.InMemoryPlatform`` for dry runs and
tests. Gateway methods raise ``ApiError`` on transport or platform failures
and ``InvalidInputError`` on malformed requests.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pos_datagen.shared.models import (
    Category,
    ComboDefinition,
    CouponDefinition,
    Customer,
    DiningOption,
    DiscountDefinition,
    Employee,
    GiftCard,
    GiftCardRedemption,
    Item,
    LineItemRecord,
    ModifierGroup,
    OrderRecord,
    OrderState,
    OrderType,
    PaymentRecord,
    PaymentSplit,
    RefundRecord,
    TaxRate,
    Tender,
)

if TYPE_CHECKING:
    from pos_datagen.generators.base_types import SimulatedOrder

logger = logging.getLogger(__name__)


@runtime_checkable
class CatalogProvider(Protocol):
    """Read access to merchant catalog data and local discount definitions."""

    def get_items(self) -> list[Item]: ...

    def get_categories(self) -> list[Category]: ...

    def get_modifier_groups(self) -> list[ModifierGroup]: ...

    def get_discount_definitions(self) -> list[DiscountDefinition]: ...

    def get_combo_definitions(self) -> list[ComboDefinition]: ...

    def get_coupon_definitions(self) -> list[CouponDefinition]: ...

    def get_tax_rates(self) -> list[TaxRate]: ...

    def get_tenders(self) -> list[Tender]: ...

    def get_employees(self) -> list[Employee]: ...

    def get_customers(self) -> list[Customer]: ...

    def get_order_types(self) -> list[OrderType]: ...

    def get_gift_cards(self) -> list[GiftCard]: ...


class OrderGateway(Protocol):
    """Order lifecycle on the platform."""

    def create_order(self, *, employee_id: str, customer_id: str | None = None) -> OrderRecord: ...

    def add_line_item(
        self, order_id: str, *, item_id: str, quantity: int = 1, note: str | None = None
    ) -> LineItemRecord: ...

    def set_dining_option(self, order_id: str, dining_option: DiningOption) -> None: ...

    def set_order_type(self, order_id: str, order_type_id: str) -> None: ...

    def add_modification(self, order_id: str, line_item_id: str, modifier_id: str) -> None: ...

    def apply_discount(
        self, order_id: str, *, name: str, amount: int, discount_id: str | None = None
    ) -> dict[str, Any]:
        """Apply an order-level discount for a pre-computed absolute ``amount``."""
        ...

    def apply_line_item_discount(
        self, order_id: str, line_item_id: str, *, name: str, amount: int
    ) -> dict[str, Any]: ...

    def apply_service_charge(
        self, order_id: str, *, name: str, percentage: float, amount: int
    ) -> dict[str, Any]: ...

    def update_total(self, order_id: str, total: int) -> None: ...

    def update_state(self, order_id: str, state: OrderState) -> None: ...

    def get_order(self, order_id: str) -> OrderRecord: ...

    def calculate_total(self, order_id: str) -> int:
        """Item totals plus modifiers minus discounts, as the platform reports them."""
        ...

    def validate_total(self, order_id: str, expected_total: int) -> bool:
        """
        Compare a locally calculated total with the platform's.

        A mismatch is logged as a warning and reported as False; it is never
        raised.
        """
        reported = self.calculate_total(order_id)
        if reported != expected_total:
            logger.warning(
                f"Order {order_id} total mismatch: expected {expected_total}, "
                f"platform reports {reported}"
            )
            return False
        return True


class PaymentGateway(Protocol):
    def process_payment(
        self,
        order_id: str,
        *,
        amount: int,
        tender_id: str,
        employee_id: str,
        tip_amount: int = 0,
        tax_amount: int = 0,
    ) -> PaymentRecord: ...

    def process_split_payment(
        self,
        order_id: str,
        *,
        total_amount: int,
        splits: list[PaymentSplit],
        employee_id: str,
        tip_amount: int = 0,
        tax_amount: int = 0,
    ) -> list[PaymentRecord]: ...

    def process_card_payment(
        self,
        order_id: str,
        *,
        amount: int,
        card_type: str,
        tip_amount: int = 0,
        tax_amount: int = 0,
    ) -> PaymentRecord | None:
        """Tokenize a test card and charge it through the ecommerce API."""
        ...


class RefundGateway(Protocol):
    def create_full_refund(
        self, order_id: str, payment_id: str, *, reason: str
    ) -> RefundRecord: ...

    def create_partial_refund(
        self, order_id: str, payment_id: str, *, amount: int, reason: str
    ) -> RefundRecord: ...


class GiftCardGateway(Protocol):
    def fetch_gift_cards(self) -> list[GiftCard]: ...

    def redeem_gift_card(self, card_id: str, amount: int) -> GiftCardRedemption:
        """Redeem up to ``amount``; ``shortfall`` is what the card could not cover."""
        ...


class CashDrawerGateway(Protocol):
    def record_cash_payment(self, employee_id: str, amount: int) -> None: ...


class AuditSink(Protocol):
    """Best-effort local mirror of what the simulation sent to the platform."""

    def record_simulated_order(self, order: SimulatedOrder, merchant_id: str) -> None: ...

    def record_simulated_payment(
        self, order_id: str, payment: PaymentRecord, tender_name: str | None, payment_type: str
    ) -> None: ...

    def mark_refunded(self, order_id: str) -> None: ...

    def generate_daily_summary(
        self, merchant_id: str, business_date: date
    ) -> dict[str, Any] | None: ...


class NullAuditSink:
    """AuditSink that records nothing, used when auditing is disabled."""

    def record_simulated_order(self, order, merchant_id):
        return None

    def record_simulated_payment(self, order_id, payment, tender_name, payment_type):
        return None

    def mark_refunded(self, order_id):
        return None

    def generate_daily_summary(self, merchant_id, business_date):
        return None
