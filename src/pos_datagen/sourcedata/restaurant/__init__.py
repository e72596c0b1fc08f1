"""
Demo restaurant profile source data.

A small full-service restaurant menu with breakfast, lunch, bar and dinner
items, plus the staff, tenders, gift cards and discount configuration the
simulator needs for a dry run.

All data is 100% synthetic and safe for demo/sandbox purposes.
"""

from pos_datagen.sourcedata.restaurant.discounts import (
    COMBO_DEFINITIONS,
    COUPON_DEFINITIONS,
    DISCOUNT_DEFINITIONS,
)
from pos_datagen.sourcedata.restaurant.menu import CATEGORIES, ITEMS, MODIFIER_GROUPS
from pos_datagen.sourcedata.restaurant.people import CUSTOMERS, EMPLOYEES
from pos_datagen.sourcedata.restaurant.tax_rates import TAX_RATES
from pos_datagen.sourcedata.restaurant.tenders import GIFT_CARDS, ORDER_TYPES, TENDERS

__all__ = [
    "CATEGORIES",
    "ITEMS",
    "MODIFIER_GROUPS",
    "TAX_RATES",
    "EMPLOYEES",
    "CUSTOMERS",
    "TENDERS",
    "ORDER_TYPES",
    "GIFT_CARDS",
    "DISCOUNT_DEFINITIONS",
    "COMBO_DEFINITIONS",
    "COUPON_DEFINITIONS",
]
