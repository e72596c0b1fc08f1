"""Tenders, order types and gift cards of the demo restaurant."""

TENDERS = [
    {"id": "TENDER_CASH", "label": "Cash", "labelKey": "com.clover.tender.cash",
     "enabled": True, "opensCashDrawer": True},
    {"id": "TENDER_CHECK", "label": "Check", "labelKey": "com.clover.tender.check",
     "enabled": True},
    {"id": "TENDER_CREDIT", "label": "Credit Card", "labelKey": "com.clover.tender.credit_card",
     "enabled": True},
    {"id": "TENDER_DEBIT", "label": "Debit Card", "labelKey": "com.clover.tender.debit_card",
     "enabled": True},
    {"id": "TENDER_GIFT", "label": "Gift Card", "labelKey": "com.clover.tender.gift_card",
     "enabled": True},
    {"id": "TENDER_MOBILE", "label": "Mobile Pay", "enabled": True},
]

ORDER_TYPES = [
    {"id": "OT_DINE_IN", "label": "Dine In", "isDefault": True},
    {"id": "OT_TAKEOUT", "label": "Takeout"},
    {"id": "OT_DELIVERY", "label": "Delivery"},
]

GIFT_CARDS = [
    {"id": "GC_001", "cardNumber": "6050110000000001", "balance": 2500, "status": "ACTIVE"},
    {"id": "GC_002", "cardNumber": "6050110000000002", "balance": 5000, "status": "ACTIVE"},
    {"id": "GC_003", "cardNumber": "6050110000000003", "balance": 10000, "status": "ACTIVE"},
    {"id": "GC_004", "cardNumber": "6050110000000004", "balance": 0, "status": "ACTIVE"},
    {"id": "GC_005", "cardNumber": "6050110000000005", "balance": 7500, "status": "INACTIVE"},
]
