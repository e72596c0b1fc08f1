"""
Assembly of one simulated restaurant order, end to end.

The assembler opens an order on the platform, fills it with items suited to
the meal period and party size, resolves a discount, computes tip, tax and
auto-gratuity, routes payment and closes the order. Optional steps
(modifiers, order type, notes, audit) fail soft; an order that ends up with
no line items is abandoned before any payment is attempted.
"""

import logging
import random
import time
from datetime import date, datetime
from typing import Any

from pos_datagen.services.interfaces import AuditSink, OrderGateway
from pos_datagen.services.payloads import AUTO_GRATUITY_NAME, AUTO_GRATUITY_PERCENTAGE
from pos_datagen.shared import metrics
from pos_datagen.shared.exceptions import ApiError
from pos_datagen.shared.models import (
    DiningOption,
    Item,
    Modifier,
    ModifierGroup,
    OrderState,
    OrderType,
    TAX_RATE_SCALE,
)
from pos_datagen.shared.money import allocate_proportionally, percent_of

from .base_types import (
    AppliedDiscount,
    CustomerProfile,
    DiscountContext,
    OrderLine,
    PaymentRequest,
    SimulatedOrder,
    SimulationData,
)
from .discounts import DiscountResolver
from .gates import (
    DEFAULT_ORDER_GATES,
    OrderGates,
    is_vip_visit,
    should_add_modifiers,
    should_add_note,
    should_attach_customer,
    should_bump_quantity,
    should_skip_takeout_tip,
    should_use_optional_group,
)
from .meal_periods import MealPeriod, MealPeriodScheduler
from .payments import PaymentRouter, classify_tender_type

logger = logging.getLogger(__name__)

NOTES = (
    "No onions",
    "Extra spicy",
    "Gluten-free",
    "Allergic to nuts",
    "Light ice",
    "No salt",
    "Well done",
    "Medium rare",
    "Extra sauce on side",
    "Dressing on side",
    "No cheese",
    "Add bacon",
    "Birthday celebration",
    "Anniversary dinner",
    "VIP customer",
    "Rush order",
    "Separate checks",
)

# Tip percentage ranges by dining option (inclusive)
TIP_RATES = {
    DiningOption.HERE: (15, 25),
    DiningOption.TO_GO: (0, 15),
    DiningOption.DELIVERY: (10, 20),
}
LARGE_PARTY_SIZE = 6
LARGE_PARTY_TIP_FLOOR = 18

ORDER_TYPE_LABELS = {
    DiningOption.HERE: ("dine in", "dine-in", "here"),
    DiningOption.TO_GO: ("takeout", "take out", "to go", "to-go"),
    DiningOption.DELIVERY: ("delivery",),
}

VISIT_COUNT_RANGE = (0, 60)
PREFERRED_ITEM_WEIGHT = 3
OPTIONAL_MODIFIER_PICKS = (1, 2)


def calculate_tip(
    subtotal: int,
    dining_option: DiningOption,
    party_size: int,
    rng: random.Random,
    gates: OrderGates = DEFAULT_ORDER_GATES,
) -> int:
    """Tip for a subtotal: dining-option range, 18% floor for big parties, takeout often 0."""
    low, high = TIP_RATES.get(dining_option, TIP_RATES[DiningOption.HERE])
    tip_percent = rng.randint(low, high)

    if party_size >= LARGE_PARTY_SIZE:
        tip_percent = max(tip_percent, LARGE_PARTY_TIP_FLOOR)

    if dining_option is DiningOption.TO_GO and should_skip_takeout_tip(rng, gates):
        tip_percent = 0

    return percent_of(subtotal, tip_percent)


def calculate_items_tax(lines: list[OrderLine], discount_amount: int = 0) -> int:
    """
    Sum of per-line tax from each item's assigned tax rates.

    An order-level discount is spread over the lines by value first, so each
    line is taxed on what the guest actually pays for it.
    """
    amounts = [line.line_total + line.modifier_total for line in lines]
    discount_amount = min(max(0, discount_amount), sum(amounts))
    shares = allocate_proportionally(discount_amount, amounts)

    total = 0
    for line, amount, share in zip(lines, amounts, shares):
        if not line.item.tax_rates:
            continue
        rate = sum(r.rate for r in line.item.tax_rates) / TAX_RATE_SCALE
        total += percent_of(max(0, amount - share), rate)
    return total


def calculate_tax(subtotal: int, rate: float) -> int:
    return percent_of(subtotal, rate)


def has_tax_associations(lines: list[OrderLine]) -> bool:
    return any(line.item.tax_rates for line in lines)


def resolve_order_type(
    dining_option: DiningOption, order_types: list[OrderType]
) -> OrderType | None:
    labels = ORDER_TYPE_LABELS.get(dining_option, ())
    for order_type in order_types:
        if order_type.label.strip().lower() in labels:
            return order_type
    return None


class OrderAssembler:
    """Builds one complete simulated order against the order gateway."""

    def __init__(
        self,
        order_gateway: OrderGateway,
        discount_resolver: DiscountResolver,
        payment_router: PaymentRouter,
        scheduler: MealPeriodScheduler,
        rng: random.Random,
        tax_rate: float = 8.25,
        audit: AuditSink | None = None,
        merchant_id: str = "",
        gates: OrderGates = DEFAULT_ORDER_GATES,
    ):
        self._orders = order_gateway
        self._discounts = discount_resolver
        self._payments = payment_router
        self._scheduler = scheduler
        self._rng = rng
        self.tax_rate = tax_rate
        self._audit = audit
        self.merchant_id = merchant_id
        self.gates = gates

    def assemble(
        self,
        period: MealPeriod,
        data: SimulationData,
        order_time: datetime,
        business_date: date | None = None,
    ) -> SimulatedOrder | None:
        """
        Build, discount, tax, tip and pay one order.

        Returns:
            The paid order, or None when it was abandoned
        """
        started = time.perf_counter()
        try:
            return self._assemble(period, data, order_time, business_date or order_time.date())
        finally:
            metrics.order_assembly_seconds.observe(time.perf_counter() - started)

    def _assemble(
        self, period: MealPeriod, data: SimulationData, order_time: datetime, business_date: date
    ) -> SimulatedOrder | None:
        employee = self._rng.choice(data.employees)
        customer = self.pick_customer(data)

        try:
            order = self._orders.create_order(
                employee_id=employee.id,
                customer_id=customer.customer.id if customer else None,
            )
        except ApiError as e:
            self._abandon_metric("create_failed", "create_order")
            logger.warning(f"Failed to create order: {e}")
            return None

        order_id = order.id
        logger.info(f"Created order: {order_id} ({period.value})")

        dining = self._scheduler.select_dining_option(period)
        try:
            self._orders.set_dining_option(order_id, dining)
        except ApiError as e:
            metrics.gateway_failures_total.labels(operation="set_dining_option").inc()
            logger.warning(f"Order {order_id}: could not set dining option: {e}")
        order_type = self.attach_order_type(order_id, dining, data.order_types)

        party_size = self._scheduler.party_size_for(period)
        item_count = self._scheduler.item_count_for(period, party_size)
        selected = self.select_items_for_period(period, data, item_count, party_size)
        lines = self.add_line_items(order_id, selected, party_size)

        if not lines:
            logger.warning(f"Order {order_id}: no line items added, skipping payment")
            try:
                self._orders.update_state(order_id, OrderState.OPEN)
            except ApiError as e:
                logger.warning(f"Order {order_id}: could not leave order open: {e}")
            self._abandon_metric("no_line_items")
            return None

        modifier_count, modifier_amount = self.apply_modifiers(
            order_id, lines, data.modifier_groups
        )

        preliminary_total = sum(line.line_total + line.modifier_total for line in lines)
        discount = self._discounts.apply_best(
            DiscountContext(
                order_id=order_id,
                lines=lines,
                order_total=preliminary_total,
                period=period,
                order_time=order_time,
                customer=customer,
            )
        )
        subtotal = max(0, preliminary_total - (discount.amount if discount else 0))
        try:
            self._orders.validate_total(order_id, subtotal)
        except ApiError as e:
            logger.warning(f"Order {order_id}: could not read back total: {e}")

        service_charge = 0
        tip_amount = 0
        if party_size >= LARGE_PARTY_SIZE:
            service_charge = self.apply_auto_gratuity(order_id, subtotal)
        if service_charge == 0:
            tip_amount = calculate_tip(subtotal, dining, party_size, self._rng, self.gates)

        if has_tax_associations(lines):
            tax_amount = calculate_items_tax(lines, discount.amount if discount else 0)
        else:
            tax_amount = calculate_tax(subtotal, self.tax_rate)

        try:
            self._orders.update_total(order_id, subtotal + service_charge + tax_amount)
        except ApiError as e:
            logger.warning(f"Order {order_id}: could not update total: {e}")

        try:
            outcome = self._payments.route(
                PaymentRequest(
                    order_id=order_id,
                    subtotal=subtotal + service_charge,
                    tax_amount=tax_amount,
                    tip_amount=tip_amount,
                    employee_id=employee.id,
                    tenders=data.tenders,
                    dining_option=dining,
                    party_size=party_size,
                    gift_cards=data.gift_cards,
                    gift_card_tender=data.gift_card_tender,
                )
            )
        except ApiError as e:
            self._abandon_metric("payment_failed", "payment")
            logger.warning(f"Order {order_id}: payment failed, leaving order open: {e}")
            return None

        try:
            self._orders.update_state(order_id, OrderState.PAID)
        except ApiError as e:
            metrics.gateway_failures_total.labels(operation="update_state").inc()
            logger.warning(f"Order {order_id}: could not mark paid: {e}")

        result = SimulatedOrder(
            id=order_id,
            business_date=business_date,
            order_time=order_time,
            meal_period=period,
            dining_option=dining,
            party_size=party_size,
            employee_id=employee.id,
            customer_id=customer.customer.id if customer else None,
            order_type=order_type.label if order_type else None,
            lines=lines,
            subtotal=subtotal,
            tax_amount=tax_amount,
            tip_amount=tip_amount,
            service_charge_amount=service_charge,
            discount=discount,
            modifier_count=modifier_count,
            modifier_amount=modifier_amount,
            payment=outcome,
        )
        result.metadata = self.build_metadata(result, discount)
        metrics.orders_generated_total.labels(meal_period=period.value).inc()
        self.mirror_to_audit(result)
        return result

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def pick_customer(self, data: SimulationData) -> CustomerProfile | None:
        if not data.customers or not should_attach_customer(self._rng, self.gates):
            return None
        return CustomerProfile(
            customer=self._rng.choice(data.customers),
            visit_count=self._rng.randint(*VISIT_COUNT_RANGE),
            vip=is_vip_visit(self._rng, self.gates),
        )

    def attach_order_type(
        self, order_id: str, dining: DiningOption, order_types: list[OrderType]
    ) -> OrderType | None:
        order_type = resolve_order_type(dining, order_types)
        if order_type is None:
            return None
        try:
            self._orders.set_order_type(order_id, order_type.id)
        except ApiError as e:
            metrics.gateway_failures_total.labels(operation="set_order_type").inc()
            logger.warning(f"Order {order_id}: could not set order type: {e}")
            return None
        return order_type

    def select_items_for_period(
        self, period: MealPeriod, data: SimulationData, count: int, party_size: int
    ) -> list[Item]:
        """
        Pick ``count`` distinct items, favouring the period's categories.

        Preferred-category items carry three times the weight of the rest of
        the menu. Parties of four or more first get one item from each
        preferred category so big tables don't order five of one thing.
        """
        preferred = self._scheduler.profile(period).preferred_categories

        weighted: list[Item] = []
        for category in preferred:
            for item in data.items_by_category.get(category, []):
                weighted.extend([item] * PREFERRED_ITEM_WEIGHT)
        weighted.extend(data.items)
        if not weighted or count < 1:
            return []

        if party_size >= 4:
            selected: list[Item] = []
            seen: set[str] = set()
            for category in preferred:
                items = data.items_by_category.get(category, [])
                if items and len(selected) < count:
                    item = self._rng.choice(items)
                    if item.id not in seen:
                        selected.append(item)
                        seen.add(item.id)

            max_attempts = len({item.id for item in weighted}) * 2
            attempts = 0
            while len(selected) < count and attempts < max_attempts:
                item = self._rng.choice(weighted)
                if item.id not in seen:
                    selected.append(item)
                    seen.add(item.id)
                attempts += 1
            return selected[:count]

        picked = self._rng.sample(weighted, min(count, len(weighted)))
        unique: dict[str, Item] = {}
        for item in picked:
            unique.setdefault(item.id, item)
        return list(unique.values())[:count]

    def add_line_items(self, order_id: str, items: list[Item], party_size: int) -> list[OrderLine]:
        lines: list[OrderLine] = []
        for item in items:
            quantity = (
                self._rng.randint(2, 3) if should_bump_quantity(self._rng, party_size, self.gates) else 1
            )
            note = self._rng.choice(NOTES) if should_add_note(self._rng, self.gates) else None
            try:
                record = self._orders.add_line_item(
                    order_id, item_id=item.id, quantity=quantity, note=note
                )
            except ApiError as e:
                metrics.gateway_failures_total.labels(operation="add_line_item").inc()
                logger.warning(f"Order {order_id}: failed to add {item.name}: {e}")
                continue
            lines.append(
                OrderLine(line_item_id=record.id, item=item, quantity=quantity, note=note)
            )
        return lines

    def choose_modifiers(self, group: ModifierGroup) -> list[Modifier]:
        """Required groups get at least their minimum; optional groups half the time 1-2."""
        if not group.modifiers:
            return []
        available = len(group.modifiers)

        if group.min_required > 0:
            upper = group.max_allowed if group.max_allowed else group.min_required
            upper = max(group.min_required, upper)
            count = self._rng.randint(group.min_required, upper)
        elif should_use_optional_group(self._rng, self.gates):
            count = self._rng.randint(*OPTIONAL_MODIFIER_PICKS)
            if group.max_allowed:
                count = min(count, group.max_allowed)
        else:
            return []

        return self._rng.sample(group.modifiers, min(count, available))

    def apply_modifiers(
        self, order_id: str, lines: list[OrderLine], groups: dict[str, ModifierGroup]
    ) -> tuple[int, int]:
        """Attach modifiers to some lines; returns (count, amount) that stuck."""
        count = 0
        amount = 0
        for line in lines:
            if not line.item.modifier_groups or not should_add_modifiers(self._rng, self.gates):
                continue
            for ref in line.item.modifier_groups:
                group = groups.get(ref.id)
                if group is None:
                    continue
                for modifier in self.choose_modifiers(group):
                    try:
                        self._orders.add_modification(order_id, line.line_item_id, modifier.id)
                    except ApiError as e:
                        metrics.gateway_failures_total.labels(operation="add_modification").inc()
                        logger.warning(
                            f"Order {order_id}: modifier {modifier.name} not applied: {e}"
                        )
                        continue
                    line.modifiers.append(modifier)
                    count += 1
                    amount += modifier.price * line.quantity
        return count, amount

    def apply_auto_gratuity(self, order_id: str, subtotal: int) -> int:
        """18% service charge for large parties; returns 0 if the platform refuses it."""
        amount = percent_of(subtotal, AUTO_GRATUITY_PERCENTAGE)
        try:
            self._orders.apply_service_charge(
                order_id,
                name=AUTO_GRATUITY_NAME,
                percentage=AUTO_GRATUITY_PERCENTAGE,
                amount=amount,
            )
        except ApiError as e:
            metrics.gateway_failures_total.labels(operation="apply_service_charge").inc()
            logger.warning(f"Order {order_id}: auto gratuity failed, tipping instead: {e}")
            return 0
        logger.info(f"  Auto gratuity applied: {amount} cents")
        return amount

    def build_metadata(
        self, order: SimulatedOrder, discount: AppliedDiscount | None
    ) -> dict[str, Any]:
        return {
            "period": order.meal_period.value,
            "dining": order.dining_option.value,
            "party_size": order.party_size,
            "tip": order.tip_amount,
            "tax": order.tax_amount,
            "service_charge": order.service_charge_amount,
            "order_time": order.order_time.isoformat(),
            "order_type": order.order_type,
            "discount_applied": discount.to_metadata() if discount else None,
            "modifiers": {"count": order.modifier_count, "amount": order.modifier_amount},
            "payment_path": order.payment.path.value,
        }

    def mirror_to_audit(self, order: SimulatedOrder) -> None:
        """Best-effort audit copy; never raises."""
        if self._audit is None:
            return
        try:
            self._audit.record_simulated_order(order, self.merchant_id)
            for payment in order.payments:
                label = payment.tender_label or next(
                    (t.label for t in order.payment.tenders if t.id == payment.tender_id), None
                )
                payment_type = (
                    "card" if payment.card_type else classify_tender_type(label or "").value
                )
                self._audit.record_simulated_payment(order.id, payment, label, payment_type)
        except Exception as e:
            logger.warning(f"Audit mirror failed for order {order.id}: {e}")

    def _abandon_metric(self, reason: str, operation: str | None = None) -> None:
        metrics.orders_abandoned_total.labels(reason=reason).inc()
        if operation:
            metrics.gateway_failures_total.labels(operation=operation).inc()
