"""
POS Sandbox Data Generator

Simulates realistic restaurant trading days against a point-of-sale
platform's sandbox merchant:
- Meal-period order distributions with dining-option mixes
- Single-discount waterfall (time-based, loyalty, combo, promo, line-item, threshold)
- Tips, tax, auto-gratuity, split and gift-card payments, refunds
"""

__version__ = "1.0.0"
__author__ = "POS DataGen"
