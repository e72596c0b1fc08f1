"""
Default restaurant profile for simulation.

This module re-exports the active default profile's data.
Change the import source to switch profiles.

Usage:
    from pos_datagen.sourcedata.default import ITEMS, DISCOUNT_DEFINITIONS
"""

# Default profile: restaurant
# To switch profiles, change this import to a different profile module
from pos_datagen.sourcedata.restaurant import (
    CATEGORIES,
    COMBO_DEFINITIONS,
    COUPON_DEFINITIONS,
    CUSTOMERS,
    DISCOUNT_DEFINITIONS,
    EMPLOYEES,
    GIFT_CARDS,
    ITEMS,
    MODIFIER_GROUPS,
    ORDER_TYPES,
    TAX_RATES,
    TENDERS,
)

# Flat merchant rates applied when an order's items carry no tax rates
DEFAULT_TAX_RATES = TAX_RATES

__all__ = [
    "CATEGORIES",
    "ITEMS",
    "MODIFIER_GROUPS",
    "TAX_RATES",
    "DEFAULT_TAX_RATES",
    "EMPLOYEES",
    "CUSTOMERS",
    "TENDERS",
    "ORDER_TYPES",
    "GIFT_CARDS",
    "DISCOUNT_DEFINITIONS",
    "COMBO_DEFINITIONS",
    "COUPON_DEFINITIONS",
]
