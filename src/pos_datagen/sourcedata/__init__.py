"""
Source data for the POS simulator.

This module provides curated catalog and discount data organized by
business profile. Each profile (e.g., restaurant) contains dictionaries of
synthetic but realistic data that the in-memory platform serves and that the
discount resolver reads its definitions from.

## Usage

Import from default profile (recommended):
    from pos_datagen.sourcedata.default import ITEMS, TENDERS

Import from a specific profile:
    from pos_datagen.sourcedata import restaurant
    items = restaurant.ITEMS

## Profile Structure

Each profile is a Python package containing data modules:

    sourcedata/
    ├── __init__.py          # Package init, exports available profiles
    ├── default.py           # Re-exports from active default profile
    └── restaurant/          # Full-service restaurant profile
        ├── __init__.py      # Exports all data constants
        ├── menu.py          # CATEGORIES, ITEMS, MODIFIER_GROUPS
        ├── tax_rates.py     # TAX_RATES
        ├── people.py        # EMPLOYEES, CUSTOMERS
        ├── tenders.py       # TENDERS, ORDER_TYPES, GIFT_CARDS
        └── discounts.py     # DISCOUNT_DEFINITIONS, COMBO_DEFINITIONS, COUPON_DEFINITIONS

## Data Format

Catalog constants use the platform's camelCase keys and validate into the
platform records in shared/models.py (Item, Tender, ModifierGroup...).
Items reference tax rates and modifier groups by ID. Discount, combo and
coupon constants use snake_case keys and validate into DiscountDefinition,
ComboDefinition and CouponDefinition.
"""

from pos_datagen.sourcedata import restaurant

__all__ = ["restaurant"]
