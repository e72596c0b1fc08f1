"""Default merchant tax rates. ``rate`` is in units of 100,000 per percent."""

TAX_RATES = [
    {"id": "TAX_SALES", "name": "Sales Tax", "rate": 825_000, "isDefault": True},
    {"id": "TAX_ALCOHOL", "name": "Alcohol Tax", "rate": 1_000_000, "isDefault": False},
    {"id": "TAX_FOOD", "name": "Prepared Food Tax", "rate": 825_000, "isDefault": False},
]
