"""
Named probability gates for the order simulation.

Each gate is a predicate over an injected random source, so the assembler,
discount resolver and payment router never call ``random`` directly and
tests can force any branch by passing a scripted generator or overriding a
probability.
"""

import random
from dataclasses import dataclass

from pos_datagen.shared.models import DiningOption


def roll(rng: random.Random, probability: float) -> bool:
    """True with the given probability."""
    if probability <= 0:
        return False
    if probability >= 1:
        return True
    return rng.random() < probability


@dataclass(frozen=True)
class DiscountGates:
    """Per-step probabilities of the discount waterfall."""

    time_based: float = 0.90
    loyalty: float = 0.15
    combo: float = 0.12
    promo_code: float = 0.08
    line_item: float = 0.10
    threshold: float = 0.20
    legacy: float = 0.05

    @classmethod
    def always(cls) -> "DiscountGates":
        return cls(1.0, 1.0, 1.0, 1.0, 1.0, 1.0, 1.0)

    @classmethod
    def never(cls) -> "DiscountGates":
        return cls(0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)


@dataclass(frozen=True)
class OrderGates:
    """Probabilities used while building and settling one order."""

    customer_attached: float = 0.60
    vip_customer: float = 0.05
    quantity_bump: float = 0.30
    line_note: float = 0.15
    modifiers: float = 0.30
    optional_modifier_group: float = 0.50
    takeout_tip_skipped: float = 0.30
    gift_card_payment: float = 0.10
    split_dine_in_group: float = 0.25
    split_other: float = 0.05
    small_order_cash: float = 0.40
    card_tender: float = 0.55
    full_refund: float = 0.60


DEFAULT_ORDER_GATES = OrderGates()


def should_attach_customer(rng: random.Random, gates: OrderGates = DEFAULT_ORDER_GATES) -> bool:
    return roll(rng, gates.customer_attached)


def is_vip_visit(rng: random.Random, gates: OrderGates = DEFAULT_ORDER_GATES) -> bool:
    return roll(rng, gates.vip_customer)


def should_bump_quantity(
    rng: random.Random, party_size: int, gates: OrderGates = DEFAULT_ORDER_GATES
) -> bool:
    """Larger parties sometimes order 2-3 of the same item."""
    return party_size > 2 and roll(rng, gates.quantity_bump)


def should_add_note(rng: random.Random, gates: OrderGates = DEFAULT_ORDER_GATES) -> bool:
    return roll(rng, gates.line_note)


def should_add_modifiers(rng: random.Random, gates: OrderGates = DEFAULT_ORDER_GATES) -> bool:
    return roll(rng, gates.modifiers)


def should_use_optional_group(
    rng: random.Random, gates: OrderGates = DEFAULT_ORDER_GATES
) -> bool:
    return roll(rng, gates.optional_modifier_group)


def should_skip_takeout_tip(
    rng: random.Random, gates: OrderGates = DEFAULT_ORDER_GATES
) -> bool:
    return roll(rng, gates.takeout_tip_skipped)


def should_pay_with_gift_card(
    rng: random.Random, gates: OrderGates = DEFAULT_ORDER_GATES
) -> bool:
    return roll(rng, gates.gift_card_payment)


def split_payment_probability(
    dining_option: DiningOption, party_size: int, gates: OrderGates = DEFAULT_ORDER_GATES
) -> float:
    """Dine-in groups split the check far more often than anyone else."""
    if dining_option is DiningOption.HERE and party_size >= 2:
        return gates.split_dine_in_group
    return gates.split_other


def should_split_payment(
    rng: random.Random,
    dining_option: DiningOption,
    party_size: int,
    gates: OrderGates = DEFAULT_ORDER_GATES,
) -> bool:
    return roll(rng, split_payment_probability(dining_option, party_size, gates))


def should_prefer_cash(rng: random.Random, gates: OrderGates = DEFAULT_ORDER_GATES) -> bool:
    return roll(rng, gates.small_order_cash)


def should_use_card_tender(
    rng: random.Random, gates: OrderGates = DEFAULT_ORDER_GATES
) -> bool:
    return roll(rng, gates.card_tender)


def should_refund_in_full(rng: random.Random, gates: OrderGates = DEFAULT_ORDER_GATES) -> bool:
    return roll(rng, gates.full_refund)


def should_attempt_discount(rng: random.Random, gates: DiscountGates, step: str) -> bool:
    """Gate for one waterfall step, e.g. ``should_attempt_discount(rng, gates, "combo")``."""
    return roll(rng, getattr(gates, step))
