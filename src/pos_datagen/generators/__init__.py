"""
Generators module for POS order simulation.

This module contains the simulation engine: meal-period scheduling,
discount resolution, payment routing, order assembly, refunds and the
day-level orchestrator that drives them.
"""

from .base_types import (
    AppliedDiscount,
    CustomerProfile,
    DiscountCandidate,
    DiscountContext,
    OrderLine,
    PaymentOutcome,
    PaymentPath,
    PaymentRequest,
    RefundResult,
    SimulatedOrder,
    SimulationData,
)
from .day_orchestrator import DayOrchestrator, DayResult
from .discounts import DiscountResolver
from .gates import DiscountGates, OrderGates
from .loyalty import LoyaltyTier, loyalty_tier_for
from .meal_periods import MealPeriod, MealPeriodScheduler
from .order_assembler import OrderAssembler
from .payments import PaymentRouter
from .refunds import RefundProcessor
from .statistics import DailyStatistics

__all__ = [
    "AppliedDiscount",
    "CustomerProfile",
    "DailyStatistics",
    "DayOrchestrator",
    "DayResult",
    "DiscountCandidate",
    "DiscountContext",
    "DiscountGates",
    "DiscountResolver",
    "LoyaltyTier",
    "MealPeriod",
    "MealPeriodScheduler",
    "OrderAssembler",
    "OrderGates",
    "OrderLine",
    "PaymentOutcome",
    "PaymentPath",
    "PaymentRequest",
    "PaymentRouter",
    "RefundProcessor",
    "RefundResult",
    "SimulatedOrder",
    "SimulationData",
    "loyalty_tier_for",
]
