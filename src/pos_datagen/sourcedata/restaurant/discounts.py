"""
Discount, combo and coupon definitions for the demo restaurant.

Amounts are in cents, percentages are whole percents. ``time_rules`` hours
are ``[start_hour, end_hour)`` in the merchant's local time; ``days`` uses
0=Monday.
"""

DISCOUNT_DEFINITIONS = [
    {
        "id": "DISC_HAPPY_HOUR",
        "name": "Happy Hour",
        "type": "time_based",
        "percentage": 15,
        "time_rules": {"start_hour": 15, "end_hour": 18},
    },
    {
        "id": "DISC_HAPPY_HOUR_APPS",
        "name": "Happy Hour Half-Price Apps",
        "type": "line_item_time_based",
        "percentage": 50,
        "applicable_categories": ["Appetizers"],
        "time_rules": {"start_hour": 15, "end_hour": 18, "days": [0, 1, 2, 3, 4]},
    },
    {
        "id": "DISC_EARLY_BIRD",
        "name": "Early Bird",
        "type": "time_based",
        "percentage": 10,
        "time_rules": {"start_hour": 7, "end_hour": 9},
    },
    {
        "id": "DISC_LOYALTY_BRONZE",
        "name": "Bronze Loyalty Reward",
        "type": "loyalty",
        "percentage": 5,
        "loyalty_tier": "bronze",
    },
    {
        "id": "DISC_LOYALTY_SILVER",
        "name": "Silver Loyalty Reward",
        "type": "loyalty",
        "percentage": 10,
        "loyalty_tier": "silver",
    },
    {
        "id": "DISC_LOYALTY_GOLD",
        "name": "Gold Loyalty Reward",
        "type": "loyalty",
        "percentage": 15,
        "loyalty_tier": "gold",
    },
    {
        "id": "DISC_LOYALTY_PLATINUM",
        "name": "Platinum Loyalty Reward",
        "type": "loyalty",
        "percentage": 20,
        "loyalty_tier": "platinum",
        "max_discount_amount": 5000,
    },
    {
        "id": "DISC_DESSERT",
        "name": "Dessert Special",
        "type": "line_item",
        "amount": 300,
        "applicable_categories": ["Desserts"],
    },
    {
        "id": "DISC_DRINK",
        "name": "Drink Upgrade",
        "type": "line_item",
        "percentage": 25,
        "applicable_categories": ["Drinks", "Alcoholic Beverages"],
    },
    {
        "id": "DISC_SPEND_50",
        "name": "$5 Off $50",
        "type": "threshold",
        "amount": 500,
        "min_order_amount": 5000,
    },
    {
        "id": "DISC_SPEND_100",
        "name": "10% Off $100",
        "type": "threshold",
        "percentage": 10,
        "min_order_amount": 10000,
        "max_discount_amount": 2500,
    },
    {
        "id": "DISC_EMPLOYEE",
        "name": "Employee Meal",
        "type": "order",
        "percentage": 50,
    },
    {
        "id": "DISC_MANAGER_COMP",
        "name": "Manager Comp",
        "type": "order",
        "amount": 1000,
    },
]

COMBO_DEFINITIONS = [
    {
        "id": "classic_meal",
        "name": "Classic Meal Deal",
        "discount_type": "percentage",
        "discount_value": 15,
        "required_components": [
            {"category": "Entrees", "quantity": 1},
            {"category": "Sides", "quantity": 1},
            {"category": "Drinks", "quantity": 1},
        ],
        "applies_to": "total",
    },
    {
        "id": "app_trio",
        "name": "Appetizer Trio",
        "discount_type": "fixed",
        "discount_value": 500,
        "required_components": [{"category": "Appetizers", "quantity": 3}],
        "applies_to": "matching_items",
    },
    {
        "id": "date_night",
        "name": "Date Night",
        "discount_type": "percentage",
        "discount_value": 20,
        "required_components": [
            {"category": "Entrees", "quantity": 2},
            {"category": "Desserts", "quantity": 1},
        ],
        "applies_to": "cheapest_items",
        "max_items": 1,
        "max_discount_amount": 1500,
        "time_rules": {"start_hour": 17, "end_hour": 23},
    },
    {
        "id": "brunch_combo",
        "name": "Brunch Combo",
        "discount_type": "fixed",
        "discount_value": 300,
        "required_components": [
            {"items": ["ITEM_BREAKFAST_PLATE"], "quantity": 1},
            {"items": ["ITEM_COFFEE", "ITEM_LEMONADE"], "quantity": 1},
            {"category": "Sides", "quantity": 1},
        ],
        "applies_to": "total",
        "time_rules": {"start_hour": 7, "end_hour": 12, "days": [5, 6]},
    },
]

COUPON_DEFINITIONS = [
    {
        "code": "SAVE10",
        "name": "10% Off",
        "discount_type": "percentage",
        "discount_value": 10,
        "min_order_amount": 1500,
    },
    {
        "code": "SAVE20",
        "name": "20% Off",
        "discount_type": "percentage",
        "discount_value": 20,
        "min_order_amount": 4000,
        "max_discount_amount": 2000,
    },
    {
        "code": "FIVER",
        "name": "$5 Off",
        "discount_type": "fixed",
        "discount_value": 500,
        "min_order_amount": 2500,
    },
    {
        "code": "TENNER",
        "name": "$10 Off",
        "discount_type": "fixed",
        "discount_value": 1000,
        "min_order_amount": 5000,
        "customer_types": ["returning", "loyalty", "vip"],
    },
    {
        "code": "HAPPYHOUR",
        "name": "Happy Hour Drinks",
        "discount_type": "percentage",
        "discount_value": 25,
        "valid_hours": {"start_hour": 15, "end_hour": 18},
        "applicable_categories": ["Alcoholic Beverages", "Drinks"],
    },
    {
        "code": "BIRTHDAY15",
        "name": "Birthday 15%",
        "discount_type": "percentage",
        "discount_value": 15,
        "usage_limit": 500,
        "max_discount_amount": 3000,
    },
    {
        "code": "SPRING2020",
        "name": "Retired Spring Promo",
        "discount_type": "percentage",
        "discount_value": 30,
        "active": False,
        "valid_until": "2020-06-30",
    },
]
