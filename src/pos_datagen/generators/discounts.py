"""
Discount resolution for simulated orders.

Each order gets at most one discount. The resolver walks a fixed waterfall
of seven steps (time-based, loyalty, combo, promo code, line-item,
threshold, legacy). A step is attempted only when its probability gate
fires; the first step that finds an eligible candidate and gets it onto the
platform order wins, and no later step runs.

Amounts are always computed locally and submitted as absolute values. The
platform reads percentage-only discounts back as zero.
"""

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from pos_datagen.services.interfaces import CatalogProvider, OrderGateway
from pos_datagen.shared import metrics
from pos_datagen.shared.cache import DefinitionCache
from pos_datagen.shared.exceptions import ApiError
from pos_datagen.shared.models import (
    ComboComponent,
    ComboDefinition,
    CouponDefinition,
    DiscountDefinition,
    DiscountType,
)
from pos_datagen.shared.money import percent_of

from .base_types import AppliedDiscount, DiscountCandidate, DiscountContext, OrderLine
from .gates import DiscountGates, should_attempt_discount
from .loyalty import loyalty_rule_for
from .meal_periods import MealPeriod

logger = logging.getLogger(__name__)

# Codes a simulated guest might present at the register
PROMO_CODES = ("SAVE10", "SAVE20", "FIVER", "TENNER", "HAPPYHOUR", "BIRTHDAY15")

TIME_BASED_TYPES = ("time_based", "line_item_time_based")

# Waterfall order; lower number wins
PRIORITIES = {
    DiscountType.TIME_BASED: 1,
    DiscountType.LOYALTY: 2,
    DiscountType.COMBO: 3,
    DiscountType.PROMO_CODE: 4,
    DiscountType.LINE_ITEM: 5,
    DiscountType.THRESHOLD: 6,
    DiscountType.LEGACY: 7,
}

MIN_COMBO_LINES = 3


@dataclass(frozen=True)
class CouponValidation:
    valid: bool
    reason: str | None = None


def _matches_category(line: OrderLine, categories: list[str]) -> bool:
    category = line.category
    if not category:
        return False
    wanted = {c.lower() for c in categories}
    return category.lower() in wanted


def _component_accepts(component: ComboComponent, line: OrderLine) -> bool:
    if component.category and line.category:
        if component.category.lower() == line.category.lower():
            return True
    if component.items:
        keys = {ref.lower() for ref in component.items}
        return line.item.id.lower() in keys or line.item.name.lower() in keys
    return False


def match_combo(combo: ComboDefinition, lines: list[OrderLine]) -> dict[str, int] | None:
    """
    Assign order units to a combo's required components.

    A unit counts toward one component only. Returns units used per line item
    ID, or None when some component cannot be satisfied.
    """
    available = {line.line_item_id: line.quantity for line in lines}
    used: dict[str, int] = {}

    for component in combo.required_components:
        needed = component.quantity
        for line in lines:
            if needed == 0:
                break
            if not _component_accepts(component, line):
                continue
            take = min(available[line.line_item_id], needed)
            if take:
                available[line.line_item_id] -= take
                used[line.line_item_id] = used.get(line.line_item_id, 0) + take
                needed -= take
        if needed > 0:
            return None

    return used


def combo_discount_amount(
    combo: ComboDefinition, lines: list[OrderLine], used: dict[str, int]
) -> int:
    """Discount a combo is worth, based on its ``applies_to`` scope."""
    matched = [line for line in lines if line.line_item_id in used]

    if combo.applies_to == "matching_items":
        base = sum(line.line_total for line in matched)
    elif combo.applies_to == "cheapest_items":
        unit_prices = sorted(
            price
            for line in matched
            for price in [line.unit_price] * used[line.line_item_id]
        )
        limit = combo.max_items or len(unit_prices)
        base = sum(unit_prices[:limit])
    else:
        base = sum(line.line_total for line in lines)

    if base <= 0:
        return 0
    if combo.discount_type == "percentage":
        amount = percent_of(base, combo.discount_value)
    else:
        amount = int(combo.discount_value)
    if combo.max_discount_amount is not None:
        amount = min(amount, combo.max_discount_amount)
    return min(amount, base)


class DiscountResolver:
    """
    Chooses and applies the single discount for an order.

    Definitions are read through a bounded TTL cache so static discount,
    combo and coupon configuration is not re-read for every order.
    """

    def __init__(
        self,
        catalog: CatalogProvider,
        order_gateway: OrderGateway,
        rng: random.Random,
        gates: DiscountGates | None = None,
        cache: DefinitionCache | None = None,
        promo_codes: tuple[str, ...] = PROMO_CODES,
    ):
        self._catalog = catalog
        self._orders = order_gateway
        self._rng = rng
        self.gates = gates or DiscountGates()
        self._cache = cache or DefinitionCache()
        self.promo_codes = promo_codes

    # ------------------------------------------------------------------
    # Definitions
    # ------------------------------------------------------------------

    def discount_definitions(self) -> list[DiscountDefinition]:
        return self._cache.get("discounts", self._catalog.get_discount_definitions)

    def combo_definitions(self) -> list[ComboDefinition]:
        return self._cache.get("combos", self._catalog.get_combo_definitions)

    def coupon_definitions(self) -> list[CouponDefinition]:
        return self._cache.get("coupons", self._catalog.get_coupon_definitions)

    def invalidate_definitions(self) -> None:
        self._cache.invalidate()

    def find_coupon(self, code: str) -> CouponDefinition | None:
        wanted = code.strip().upper()
        return next((c for c in self.coupon_definitions() if c.code == wanted), None)

    # ------------------------------------------------------------------
    # Candidate discovery (no randomness except where a step picks at random)
    # ------------------------------------------------------------------

    def time_based_candidate(self, ctx: DiscountContext) -> DiscountCandidate | None:
        """First time-window discount valid at the order time."""
        valid = [
            d
            for d in self.discount_definitions()
            if d.type in TIME_BASED_TYPES and d.is_active_at(ctx.order_time)
        ]
        if not valid:
            return None
        return self._candidate_from_definition(DiscountType.TIME_BASED, valid[0], ctx)

    def loyalty_candidate(self, ctx: DiscountContext) -> DiscountCandidate | None:
        if ctx.customer is None:
            return None
        rule = loyalty_rule_for(ctx.customer.visit_count)
        if rule is None:
            return None

        definition = next(
            (
                d
                for d in self.discount_definitions()
                if d.type == "loyalty" and (d.loyalty_tier or "").lower() == rule.tier.value
            ),
            None,
        )
        if definition is None:
            definition = DiscountDefinition(
                id=f"loyalty_{rule.tier.value}",
                name=f"{rule.tier.value.title()} Loyalty Reward",
                type="loyalty",
                percentage=rule.percentage,
                loyalty_tier=rule.tier.value,
            )

        amount = definition.compute_amount(ctx.order_total)
        if amount <= 0:
            return None
        return DiscountCandidate(
            type=DiscountType.LOYALTY,
            name=definition.name,
            amount=amount,
            priority=PRIORITIES[DiscountType.LOYALTY],
            definition=definition,
            tier=rule.tier.value,
        )

    def detect_combos(
        self, lines: list[OrderLine], at: datetime | None = None
    ) -> list[DiscountCandidate]:
        """Every satisfiable active combo, most valuable first."""
        found: list[DiscountCandidate] = []
        for combo in self.combo_definitions():
            if not combo.active:
                continue
            if at is not None and combo.time_rules and not combo.time_rules.matches(at):
                continue
            used = match_combo(combo, lines)
            if used is None:
                continue
            amount = combo_discount_amount(combo, lines, used)
            if amount <= 0:
                continue
            found.append(
                DiscountCandidate(
                    type=DiscountType.COMBO,
                    name=combo.name,
                    amount=amount,
                    priority=PRIORITIES[DiscountType.COMBO],
                    definition=combo,
                )
            )
        found.sort(key=lambda c: c.amount, reverse=True)
        return found

    def combo_candidate(self, ctx: DiscountContext) -> DiscountCandidate | None:
        if len(ctx.lines) < MIN_COMBO_LINES:
            return None
        combos = self.detect_combos(ctx.lines, ctx.order_time)
        return combos[0] if combos else None

    def validate_coupon(self, coupon: CouponDefinition, ctx: DiscountContext) -> CouponValidation:
        """Check every restriction on a coupon, reporting the first that fails."""
        today = ctx.order_time.date()

        if not coupon.active:
            return CouponValidation(False, "inactive")
        if coupon.valid_from and today < coupon.valid_from:
            return CouponValidation(False, "not_yet_valid")
        if coupon.valid_until and today > coupon.valid_until:
            return CouponValidation(False, "expired")
        if coupon.usage_limit is not None and coupon.times_used >= coupon.usage_limit:
            return CouponValidation(False, "usage_limit_reached")
        if coupon.min_order_amount is not None and ctx.order_total < coupon.min_order_amount:
            return CouponValidation(False, "below_minimum")
        if coupon.customer_types:
            types = ctx.customer.customer_types if ctx.customer else {"guest"}
            if not types.intersection(t.lower() for t in coupon.customer_types):
                return CouponValidation(False, "customer_type")
        if coupon.valid_days is not None and ctx.order_time.weekday() not in coupon.valid_days:
            return CouponValidation(False, "day_restricted")
        if coupon.valid_hours and not coupon.valid_hours.matches(ctx.order_time):
            return CouponValidation(False, "hour_restricted")
        if coupon.applicable_categories and not any(
            _matches_category(line, coupon.applicable_categories) for line in ctx.lines
        ):
            return CouponValidation(False, "no_eligible_items")
        return CouponValidation(True)

    def coupon_amount(self, coupon: CouponDefinition, ctx: DiscountContext) -> int:
        if coupon.applicable_categories:
            base = sum(
                line.line_total
                for line in ctx.lines
                if _matches_category(line, coupon.applicable_categories)
            )
        else:
            base = ctx.order_total

        if base <= 0:
            return 0
        if coupon.discount_type == "percentage":
            amount = percent_of(base, coupon.discount_value)
        else:
            amount = int(coupon.discount_value)
        if coupon.max_discount_amount is not None:
            amount = min(amount, coupon.max_discount_amount)
        return min(amount, base)

    def promo_code_candidate(self, ctx: DiscountContext, code: str) -> DiscountCandidate | None:
        coupon = self.find_coupon(code)
        if coupon is None:
            logger.debug(f"Promo code {code} not recognised")
            return None

        validation = self.validate_coupon(coupon, ctx)
        if not validation.valid:
            logger.debug(f"Promo code {code} rejected: {validation.reason}")
            return None

        amount = self.coupon_amount(coupon, ctx)
        if amount <= 0:
            return None
        return DiscountCandidate(
            type=DiscountType.PROMO_CODE,
            name=coupon.name,
            amount=amount,
            priority=PRIORITIES[DiscountType.PROMO_CODE],
            definition=coupon,
            code=coupon.code,
        )

    def line_item_candidate(self, ctx: DiscountContext) -> DiscountCandidate | None:
        """A random line-item discount, applied to the first eligible line."""
        definitions = [d for d in self.discount_definitions() if d.is_line_item]
        if not definitions:
            return None

        definition = self._rng.choice(definitions)
        eligible = [
            line for line in ctx.lines if _matches_category(line, definition.applicable_categories)
        ]
        if not eligible:
            return None

        line = eligible[0]
        amount = definition.compute_amount(line.line_total)
        if amount <= 0:
            return None
        return DiscountCandidate(
            type=DiscountType.LINE_ITEM,
            name=definition.name,
            amount=amount,
            priority=PRIORITIES[DiscountType.LINE_ITEM],
            definition=definition,
            line_amounts={line.line_item_id: amount},
            discount_id=definition.id,
        )

    def threshold_candidate(self, ctx: DiscountContext) -> DiscountCandidate | None:
        """The most valuable threshold discount the order total unlocks."""
        qualifying = [
            d
            for d in self.discount_definitions()
            if d.type == "threshold"
            and d.min_order_amount is not None
            and ctx.order_total >= d.min_order_amount
        ]
        if not qualifying:
            return None
        best = max(qualifying, key=lambda d: d.compute_amount(ctx.order_total))
        return self._order_level_candidate(DiscountType.THRESHOLD, best, ctx)

    def legacy_candidate(self, ctx: DiscountContext) -> DiscountCandidate | None:
        """Any catalog discount at random, with no eligibility rules."""
        definitions = self.discount_definitions()
        if not definitions:
            return None
        return self._order_level_candidate(
            DiscountType.LEGACY, self._rng.choice(definitions), ctx
        )

    def _candidate_from_definition(
        self, discount_type: DiscountType, definition: DiscountDefinition, ctx: DiscountContext
    ) -> DiscountCandidate | None:
        """Build a candidate honouring the definition's declared scope."""
        if not definition.is_line_item:
            return self._order_level_candidate(discount_type, definition, ctx)

        line_amounts = {
            line.line_item_id: definition.compute_amount(line.line_total)
            for line in ctx.lines
            if _matches_category(line, definition.applicable_categories)
        }
        line_amounts = {k: v for k, v in line_amounts.items() if v > 0}
        if not line_amounts:
            return None
        return DiscountCandidate(
            type=discount_type,
            name=definition.name,
            amount=sum(line_amounts.values()),
            priority=PRIORITIES[discount_type],
            definition=definition,
            line_amounts=line_amounts,
            discount_id=definition.id,
        )

    def _order_level_candidate(
        self, discount_type: DiscountType, definition: DiscountDefinition, ctx: DiscountContext
    ) -> DiscountCandidate | None:
        amount = definition.compute_amount(ctx.order_total)
        if amount <= 0:
            return None
        return DiscountCandidate(
            type=discount_type,
            name=definition.name,
            amount=amount,
            priority=PRIORITIES[discount_type],
            definition=definition,
            discount_id=definition.id,
        )

    # ------------------------------------------------------------------
    # Waterfall
    # ------------------------------------------------------------------

    def _steps(
        self, ctx: DiscountContext
    ) -> list[tuple[DiscountType, Callable[[], bool], Callable[[], DiscountCandidate | None]]]:
        gates, rng = self.gates, self._rng
        return [
            (
                DiscountType.TIME_BASED,
                lambda: ctx.period is MealPeriod.HAPPY_HOUR
                and should_attempt_discount(rng, gates, "time_based"),
                lambda: self.time_based_candidate(ctx),
            ),
            (
                DiscountType.LOYALTY,
                lambda: ctx.customer is not None
                and should_attempt_discount(rng, gates, "loyalty"),
                lambda: self.loyalty_candidate(ctx),
            ),
            (
                DiscountType.COMBO,
                lambda: len(ctx.lines) >= MIN_COMBO_LINES
                and should_attempt_discount(rng, gates, "combo"),
                lambda: self.combo_candidate(ctx),
            ),
            (
                DiscountType.PROMO_CODE,
                lambda: should_attempt_discount(rng, gates, "promo_code"),
                lambda: self.promo_code_candidate(ctx, rng.choice(self.promo_codes)),
            ),
            (
                DiscountType.LINE_ITEM,
                lambda: should_attempt_discount(rng, gates, "line_item"),
                lambda: self.line_item_candidate(ctx),
            ),
            (
                DiscountType.THRESHOLD,
                lambda: should_attempt_discount(rng, gates, "threshold"),
                lambda: self.threshold_candidate(ctx),
            ),
            (
                DiscountType.LEGACY,
                lambda: should_attempt_discount(rng, gates, "legacy"),
                lambda: self.legacy_candidate(ctx),
            ),
        ]

    def apply_best(self, ctx: DiscountContext) -> AppliedDiscount | None:
        """
        Run the waterfall for one order.

        Returns:
            The discount that was applied, or None when no step produced one
        """
        for discount_type, gate, find in self._steps(ctx):
            if not gate():
                continue
            candidate = find()
            if candidate is None:
                continue

            applied_amount = self.apply_candidate(ctx.order_id, candidate)
            if applied_amount is None:
                continue

            metrics.discounts_applied_total.labels(discount_type=discount_type.value).inc()
            logger.info(
                f"  Applied {discount_type.value} discount: {candidate.name} "
                f"(-{applied_amount} cents)"
            )
            return AppliedDiscount(
                type=discount_type,
                name=candidate.name,
                amount=applied_amount,
                code=candidate.code,
                tier=candidate.tier,
            )
        return None

    def apply_candidate(self, order_id: str, candidate: DiscountCandidate) -> int | None:
        """
        Submit a candidate to the platform.

        Returns:
            The amount actually applied, or None if nothing reached the order
        """
        if not candidate.is_line_scoped:
            try:
                self._orders.apply_discount(
                    order_id,
                    name=candidate.name,
                    amount=candidate.amount,
                    discount_id=candidate.discount_id,
                )
            except ApiError as e:
                metrics.gateway_failures_total.labels(operation="apply_discount").inc()
                logger.warning(f"Order {order_id}: failed to apply {candidate.name}: {e}")
                return None
            return candidate.amount

        applied = 0
        for line_item_id, amount in candidate.line_amounts.items():
            try:
                self._orders.apply_line_item_discount(
                    order_id, line_item_id, name=candidate.name, amount=amount
                )
                applied += amount
            except ApiError as e:
                metrics.gateway_failures_total.labels(operation="apply_line_item_discount").inc()
                logger.warning(
                    f"Order {order_id}: failed to discount line {line_item_id}: {e}"
                )
        return applied or None

    def best_candidate(self, ctx: DiscountContext) -> DiscountCandidate | None:
        """
        Highest-value eligible candidate across every step, ignoring gates.

        Promo codes are each tried in turn. The legacy step is skipped since
        it has no eligibility of its own.
        """
        candidates: list[DiscountCandidate] = []
        if ctx.period is MealPeriod.HAPPY_HOUR:
            candidates.append(self.time_based_candidate(ctx))
        candidates.append(self.loyalty_candidate(ctx))
        candidates.append(self.combo_candidate(ctx))
        candidates.extend(self.promo_code_candidate(ctx, code) for code in self.promo_codes)
        definitions = [d for d in self.discount_definitions() if d.is_line_item]
        for definition in definitions:
            candidates.append(self._candidate_from_definition(DiscountType.LINE_ITEM, definition, ctx))
        candidates.append(self.threshold_candidate(ctx))

        eligible = [c for c in candidates if c is not None]
        if not eligible:
            return None
        return max(eligible, key=lambda c: (c.amount, -c.priority))
