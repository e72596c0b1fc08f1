"""
In-process sandbox platform.

``InMemoryPlatform`` implements every gateway the engine consumes against a
catalog built from a ``sourcedata`` profile. It backs ``--dry-run`` and the
test suite, and records every call it receives in ``calls`` so tests can
assert on what the engine sent.
"""

import itertools
import logging
import threading
from dataclasses import dataclass, field
from types import ModuleType
from typing import Any

from pos_datagen.services.interfaces import OrderGateway
from pos_datagen.services.payloads import (
    build_discount_payload,
    build_service_charge_payload,
    build_split_payments,
    validate_dining_option,
)
from pos_datagen.shared.exceptions import ApiError, InvalidInputError
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

logger = logging.getLogger(__name__)


@dataclass
class _StoredLine:
    record: LineItemRecord
    modifier_ids: list[str] = field(default_factory=list)
    discounts: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class _StoredOrder:
    id: str
    employee_id: str
    customer_id: str | None = None
    state: OrderState = OrderState.OPEN
    dining_option: DiningOption | None = None
    order_type_id: str | None = None
    total: int = 0
    lines: dict[str, _StoredLine] = field(default_factory=dict)
    discounts: list[dict[str, Any]] = field(default_factory=list)
    service_charge: dict[str, Any] | None = None
    payments: list[PaymentRecord] = field(default_factory=list)


@dataclass(frozen=True)
class RecordedCall:
    operation: str
    payload: dict[str, Any]


class InMemoryPlatform(OrderGateway):
    """
    A complete fake POS merchant.

    Args:
        profile: ``sourcedata`` profile module; defaults to the default profile
        fail_operations: operation names that raise ``ApiError`` when called
        decline_cards: make ecommerce card charges return no payment
    """

    def __init__(
        self,
        profile: ModuleType | None = None,
        fail_operations: set[str] | None = None,
        decline_cards: bool = False,
    ):
        if profile is None:
            from pos_datagen.sourcedata import default as profile

        self.fail_operations = set(fail_operations or ())
        self.decline_cards = decline_cards
        self.calls: list[RecordedCall] = []
        self.cash_events: list[dict[str, Any]] = []
        self.refunds: list[RefundRecord] = []
        self.orders: dict[str, _StoredOrder] = {}
        self._ids = itertools.count(1)
        self._lock = threading.RLock()
        self._load_profile(profile)

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def _load_profile(self, profile: ModuleType) -> None:
        self.categories = [Category.model_validate(c) for c in profile.CATEGORIES]
        self.tax_rates = [TaxRate.model_validate(t) for t in profile.TAX_RATES]
        self.modifier_groups = [ModifierGroup.model_validate(g) for g in profile.MODIFIER_GROUPS]

        categories = {c.name: c for c in self.categories}
        tax_rates = {t.id: t for t in self.tax_rates}
        groups = {g.id: g for g in self.modifier_groups}

        self.items = []
        for raw in profile.ITEMS:
            data = dict(raw)
            category = categories.get(data.get("category", ""))
            data["categories"] = [category.model_dump()] if category else []
            data["taxRates"] = [tax_rates[t].model_dump() for t in data.get("taxRates", [])]
            data["modifierGroups"] = [
                {"id": g, "name": groups[g].name} for g in data.get("modifierGroups", [])
            ]
            self.items.append(Item.model_validate(data))

        self.tenders = [Tender.model_validate(t) for t in profile.TENDERS]
        self.employees = [Employee.model_validate(e) for e in profile.EMPLOYEES]
        self.customers = [Customer.model_validate(c) for c in profile.CUSTOMERS]
        self.order_types = [OrderType.model_validate(o) for o in profile.ORDER_TYPES]
        self.gift_cards = {g["id"]: GiftCard.model_validate(g) for g in profile.GIFT_CARDS}
        self.discount_definitions = [
            DiscountDefinition.model_validate(d) for d in profile.DISCOUNT_DEFINITIONS
        ]
        self.combo_definitions = [
            ComboDefinition.model_validate(c) for c in profile.COMBO_DEFINITIONS
        ]
        self.coupon_definitions = [
            CouponDefinition.model_validate(c) for c in profile.COUPON_DEFINITIONS
        ]
        self._items_by_id = {item.id: item for item in self.items}
        self._modifiers_by_id = {
            m.id: m for group in self.modifier_groups for m in group.modifiers
        }

    def get_items(self) -> list[Item]:
        self._record("get_items")
        return list(self.items)

    def get_categories(self) -> list[Category]:
        self._record("get_categories")
        return list(self.categories)

    def get_modifier_groups(self) -> list[ModifierGroup]:
        self._record("get_modifier_groups")
        return list(self.modifier_groups)

    def get_discount_definitions(self) -> list[DiscountDefinition]:
        self._record("get_discount_definitions")
        return list(self.discount_definitions)

    def get_combo_definitions(self) -> list[ComboDefinition]:
        self._record("get_combo_definitions")
        return list(self.combo_definitions)

    def get_coupon_definitions(self) -> list[CouponDefinition]:
        self._record("get_coupon_definitions")
        return list(self.coupon_definitions)

    def get_tax_rates(self) -> list[TaxRate]:
        self._record("get_tax_rates")
        return list(self.tax_rates)

    def get_tenders(self) -> list[Tender]:
        self._record("get_tenders")
        return list(self.tenders)

    def get_employees(self) -> list[Employee]:
        self._record("get_employees")
        return list(self.employees)

    def get_customers(self) -> list[Customer]:
        self._record("get_customers")
        return list(self.customers)

    def get_order_types(self) -> list[OrderType]:
        self._record("get_order_types")
        return list(self.order_types)

    def get_gift_cards(self) -> list[GiftCard]:
        return self.fetch_gift_cards()

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def create_order(self, *, employee_id: str, customer_id: str | None = None) -> OrderRecord:
        self._record("create_order", employee_id=employee_id, customer_id=customer_id)
        with self._lock:
            order = _StoredOrder(
                id=self._next_id("ORD"), employee_id=employee_id, customer_id=customer_id
            )
            self.orders[order.id] = order
        return self.get_order(order.id)

    def add_line_item(
        self, order_id: str, *, item_id: str, quantity: int = 1, note: str | None = None
    ) -> LineItemRecord:
        self._record("add_line_item", order_id=order_id, item_id=item_id, quantity=quantity, note=note)
        item = self._items_by_id.get(item_id)
        if item is None:
            raise ApiError(f"Item {item_id} not found", operation="add_line_item", status_code=404)
        with self._lock:
            order = self._order(order_id)
            record = LineItemRecord(
                id=self._next_id("LI"),
                item_id=item.id,
                name=item.name,
                price=item.price,
                quantity=quantity,
                note=note,
            )
            order.lines[record.id] = _StoredLine(record=record)
        return record

    def set_dining_option(self, order_id: str, dining_option: DiningOption) -> None:
        option = validate_dining_option(dining_option)
        self._record("set_dining_option", order_id=order_id, dining_option=option.value)
        with self._lock:
            self._order(order_id).dining_option = option

    def set_order_type(self, order_id: str, order_type_id: str) -> None:
        self._record("set_order_type", order_id=order_id, order_type_id=order_type_id)
        with self._lock:
            self._order(order_id).order_type_id = order_type_id

    def add_modification(self, order_id: str, line_item_id: str, modifier_id: str) -> None:
        self._record(
            "add_modification", order_id=order_id, line_item_id=line_item_id, modifier_id=modifier_id
        )
        if modifier_id not in self._modifiers_by_id:
            raise ApiError(
                f"Modifier {modifier_id} not found", operation="add_modification", status_code=404
            )
        with self._lock:
            self._line(order_id, line_item_id).modifier_ids.append(modifier_id)

    def apply_discount(
        self, order_id: str, *, name: str, amount: int, discount_id: str | None = None
    ) -> dict[str, Any]:
        payload = build_discount_payload(name, amount=amount, discount_id=discount_id)
        self._record("apply_discount", order_id=order_id, **payload)
        with self._lock:
            self._order(order_id).discounts.append(payload)
        return payload

    def apply_line_item_discount(
        self, order_id: str, line_item_id: str, *, name: str, amount: int
    ) -> dict[str, Any]:
        payload = build_discount_payload(name, amount=amount)
        self._record("apply_line_item_discount", order_id=order_id, line_item_id=line_item_id, **payload)
        with self._lock:
            self._line(order_id, line_item_id).discounts.append(payload)
        return payload

    def apply_service_charge(
        self, order_id: str, *, name: str, percentage: float, amount: int
    ) -> dict[str, Any]:
        payload = build_service_charge_payload(name, percentage, amount)
        self._record("apply_service_charge", order_id=order_id, **payload)
        with self._lock:
            self._order(order_id).service_charge = payload
        return payload

    def update_total(self, order_id: str, total: int) -> None:
        self._record("update_total", order_id=order_id, total=total)
        with self._lock:
            self._order(order_id).total = total

    def update_state(self, order_id: str, state: OrderState) -> None:
        self._record("update_state", order_id=order_id, state=OrderState(state).value)
        with self._lock:
            self._order(order_id).state = OrderState(state)

    def get_order(self, order_id: str) -> OrderRecord:
        with self._lock:
            order = self._order(order_id)
            return OrderRecord(
                id=order.id,
                state=order.state.value,
                total=order.total,
                employee_id=order.employee_id,
                customer_id=order.customer_id,
                line_items=[line.record for line in order.lines.values()],
                payments=list(order.payments),
            )

    def calculate_total(self, order_id: str) -> int:
        self._record("calculate_total", order_id=order_id)
        with self._lock:
            order = self._order(order_id)
            total = 0
            for line in order.lines.values():
                unit = line.record.price + sum(
                    self._modifiers_by_id[m].price for m in line.modifier_ids
                )
                total += unit * line.record.quantity
                total += sum(d["amount"] for d in line.discounts)
            total += sum(d["amount"] for d in order.discounts)
            return total

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    def process_payment(
        self,
        order_id: str,
        *,
        amount: int,
        tender_id: str,
        employee_id: str,
        tip_amount: int = 0,
        tax_amount: int = 0,
    ) -> PaymentRecord:
        self._record(
            "process_payment",
            order_id=order_id,
            amount=amount,
            tender_id=tender_id,
            employee_id=employee_id,
            tip_amount=tip_amount,
            tax_amount=tax_amount,
        )
        tender = self._tender(tender_id)
        return self._store_payment(
            order_id,
            PaymentRecord(
                id=self._next_id("PAY"),
                amount=amount,
                tip_amount=tip_amount,
                tax_amount=tax_amount,
                tender_id=tender.id,
                tender_label=tender.label,
            ),
        )

    def process_split_payment(
        self,
        order_id: str,
        *,
        total_amount: int,
        splits: list[PaymentSplit],
        employee_id: str,
        tip_amount: int = 0,
        tax_amount: int = 0,
    ) -> list[PaymentRecord]:
        allocations = build_split_payments(
            total_amount=total_amount, splits=splits, tip_amount=tip_amount, tax_amount=tax_amount
        )
        self._record(
            "process_split_payment",
            order_id=order_id,
            total_amount=total_amount,
            employee_id=employee_id,
            splits=allocations,
        )
        return [
            self._store_payment(
                order_id,
                PaymentRecord(
                    id=self._next_id("PAY"),
                    amount=share["amount"],
                    tip_amount=share["tip_amount"],
                    tax_amount=share["tax_amount"],
                    tender_id=share["tender_id"],
                    tender_label=share["tender_label"],
                ),
            )
            for share in allocations
        ]

    def process_card_payment(
        self,
        order_id: str,
        *,
        amount: int,
        card_type: str,
        tip_amount: int = 0,
        tax_amount: int = 0,
    ) -> PaymentRecord | None:
        self._record(
            "process_card_payment",
            order_id=order_id,
            amount=amount,
            card_type=card_type,
            tip_amount=tip_amount,
            tax_amount=tax_amount,
        )
        if self.decline_cards:
            logger.debug(f"Card {card_type} declined for order {order_id}")
            return None
        return self._store_payment(
            order_id,
            PaymentRecord(
                id=self._next_id("CHG"),
                amount=amount - tip_amount,
                tip_amount=tip_amount,
                tax_amount=tax_amount,
                card_type=card_type,
                tender_label="Credit Card",
            ),
        )

    def _store_payment(self, order_id: str, payment: PaymentRecord) -> PaymentRecord:
        with self._lock:
            self._order(order_id).payments.append(payment)
        return payment

    # ------------------------------------------------------------------
    # Refunds, gift cards, cash drawer
    # ------------------------------------------------------------------

    def create_full_refund(self, order_id: str, payment_id: str, *, reason: str) -> RefundRecord:
        self._record("create_full_refund", order_id=order_id, payment_id=payment_id, reason=reason)
        payment = self._payment(order_id, payment_id)
        return self._store_refund(order_id, payment, payment.amount, reason, full=True)

    def create_partial_refund(
        self, order_id: str, payment_id: str, *, amount: int, reason: str
    ) -> RefundRecord:
        self._record(
            "create_partial_refund",
            order_id=order_id,
            payment_id=payment_id,
            amount=amount,
            reason=reason,
        )
        payment = self._payment(order_id, payment_id)
        if amount <= 0 or amount > payment.amount:
            raise ApiError(
                f"Refund amount {amount} out of range for payment {payment_id}",
                operation="create_partial_refund",
                status_code=400,
            )
        return self._store_refund(order_id, payment, amount, reason, full=False)

    def _store_refund(
        self, order_id: str, payment: PaymentRecord, amount: int, reason: str, full: bool
    ) -> RefundRecord:
        refund = RefundRecord(
            id=self._next_id("REF"),
            payment_id=payment.id,
            amount=amount,
            reason=reason,
            full_refund=full,
        )
        with self._lock:
            self.refunds.append(refund)
            if full:
                self._order(order_id).state = OrderState.REFUNDED
        return refund

    def fetch_gift_cards(self) -> list[GiftCard]:
        self._record("fetch_gift_cards")
        with self._lock:
            return list(self.gift_cards.values())

    def redeem_gift_card(self, card_id: str, amount: int) -> GiftCardRedemption:
        self._record("redeem_gift_card", card_id=card_id, amount=amount)
        if amount <= 0:
            raise InvalidInputError("redemption amount must be positive", field="amount", value=amount)
        with self._lock:
            card = self.gift_cards.get(card_id)
            if card is None:
                return GiftCardRedemption(success=False, shortfall=amount, message="Gift card not found")
            if not card.is_redeemable:
                return GiftCardRedemption(
                    success=False,
                    remaining_balance=card.balance,
                    shortfall=amount,
                    message="Gift card has no available balance",
                )
            redeemed = min(amount, card.balance)
            remaining = card.balance - redeemed
            self.gift_cards[card_id] = card.model_copy(update={"balance": remaining})
        return GiftCardRedemption(
            success=True,
            amount_redeemed=redeemed,
            remaining_balance=remaining,
            shortfall=amount - redeemed,
            message="Redeemed",
        )

    def record_cash_payment(self, employee_id: str, amount: int) -> None:
        self._record("record_cash_payment", employee_id=employee_id, amount=amount)
        with self._lock:
            self.cash_events.append(
                {"type": "CASH_ADJUSTMENT", "employee_id": employee_id, "amount_change": amount}
            )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def calls_for(self, operation: str, order_id: str | None = None) -> list[RecordedCall]:
        with self._lock:
            return [
                c
                for c in self.calls
                if c.operation == operation
                and (order_id is None or c.payload.get("order_id") == order_id)
            ]

    def payment_calls(self, order_id: str | None = None) -> list[RecordedCall]:
        operations = ("process_payment", "process_split_payment", "process_card_payment")
        return [c for op in operations for c in self.calls_for(op, order_id)]

    def _record(self, operation: str, **payload: Any) -> None:
        with self._lock:
            self.calls.append(RecordedCall(operation, payload))
        if operation in self.fail_operations:
            raise ApiError(
                f"Simulated failure in {operation}", operation=operation, status_code=503
            )

    def _next_id(self, prefix: str) -> str:
        with self._lock:
            return f"{prefix}{next(self._ids):06d}"

    def _order(self, order_id: str) -> _StoredOrder:
        order = self.orders.get(order_id)
        if order is None:
            raise ApiError(f"Order {order_id} not found", status_code=404)
        return order

    def _line(self, order_id: str, line_item_id: str) -> _StoredLine:
        line = self._order(order_id).lines.get(line_item_id)
        if line is None:
            raise ApiError(f"Line item {line_item_id} not found", status_code=404)
        return line

    def _tender(self, tender_id: str) -> Tender:
        tender = next((t for t in self.tenders if t.id == tender_id), None)
        if tender is None:
            raise ApiError(f"Tender {tender_id} not found", status_code=404)
        return tender

    def _payment(self, order_id: str, payment_id: str) -> PaymentRecord:
        with self._lock:
            payment = next((p for p in self._order(order_id).payments if p.id == payment_id), None)
        if payment is None:
            raise ApiError(f"Payment {payment_id} not found", status_code=404)
        return payment
