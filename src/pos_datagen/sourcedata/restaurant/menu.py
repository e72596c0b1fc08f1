"""Menu for the demo restaurant: categories, items and modifier groups."""

CATEGORIES = [
    {"id": "CAT_APPETIZERS", "name": "Appetizers", "sortOrder": 1},
    {"id": "CAT_ENTREES", "name": "Entrees", "sortOrder": 2},
    {"id": "CAT_SIDES", "name": "Sides", "sortOrder": 3},
    {"id": "CAT_DESSERTS", "name": "Desserts", "sortOrder": 4},
    {"id": "CAT_DRINKS", "name": "Drinks", "sortOrder": 5},
    {"id": "CAT_ALCOHOL", "name": "Alcoholic Beverages", "sortOrder": 6},
]

MODIFIER_GROUPS = [
    {
        "id": "MG_TEMP",
        "name": "Temperature",
        "minRequired": 1,
        "maxAllowed": 1,
        "modifiers": [
            {"id": "MOD_RARE", "name": "Rare", "price": 0},
            {"id": "MOD_MED_RARE", "name": "Medium Rare", "price": 0},
            {"id": "MOD_MEDIUM", "name": "Medium", "price": 0},
            {"id": "MOD_WELL", "name": "Well Done", "price": 0},
        ],
    },
    {
        "id": "MG_ADD_ONS",
        "name": "Add-Ons",
        "minRequired": 0,
        "maxAllowed": 3,
        "modifiers": [
            {"id": "MOD_BACON", "name": "Add Bacon", "price": 200},
            {"id": "MOD_CHEESE", "name": "Extra Cheese", "price": 100},
            {"id": "MOD_AVOCADO", "name": "Add Avocado", "price": 250},
            {"id": "MOD_EGG", "name": "Fried Egg", "price": 150},
        ],
    },
    {
        "id": "MG_DRESSING",
        "name": "Dressing",
        "minRequired": 1,
        "maxAllowed": 1,
        "modifiers": [
            {"id": "MOD_RANCH", "name": "Ranch", "price": 0},
            {"id": "MOD_CAESAR", "name": "Caesar", "price": 0},
            {"id": "MOD_VINAIGRETTE", "name": "Balsamic Vinaigrette", "price": 0},
        ],
    },
    {
        "id": "MG_DRINK_SIZE",
        "name": "Drink Size",
        "minRequired": 0,
        "maxAllowed": 1,
        "modifiers": [
            {"id": "MOD_LARGE", "name": "Large", "price": 100},
        ],
    },
]

# Prices in cents; tax rate IDs refer to tax_rates.TAX_RATES
ITEMS = [
    # Appetizers
    {"id": "ITEM_WINGS", "name": "Buffalo Wings", "price": 1299, "category": "Appetizers",
     "taxRates": ["TAX_FOOD"]},
    {"id": "ITEM_NACHOS", "name": "Loaded Nachos", "price": 1199, "category": "Appetizers",
     "taxRates": ["TAX_FOOD"], "modifierGroups": ["MG_ADD_ONS"]},
    {"id": "ITEM_CALAMARI", "name": "Fried Calamari", "price": 1399, "category": "Appetizers",
     "taxRates": ["TAX_FOOD"]},
    {"id": "ITEM_SPINACH_DIP", "name": "Spinach Artichoke Dip", "price": 1099,
     "category": "Appetizers", "taxRates": ["TAX_FOOD"]},
    # Entrees
    {"id": "ITEM_BURGER", "name": "Classic Burger", "price": 1499, "category": "Entrees",
     "taxRates": ["TAX_FOOD"], "modifierGroups": ["MG_TEMP", "MG_ADD_ONS"]},
    {"id": "ITEM_RIBEYE", "name": "Ribeye Steak", "price": 2899, "category": "Entrees",
     "taxRates": ["TAX_FOOD"], "modifierGroups": ["MG_TEMP"]},
    {"id": "ITEM_SALMON", "name": "Grilled Salmon", "price": 2299, "category": "Entrees",
     "taxRates": ["TAX_FOOD"]},
    {"id": "ITEM_CHICKEN_SANDWICH", "name": "Chicken Sandwich", "price": 1399,
     "category": "Entrees", "taxRates": ["TAX_FOOD"], "modifierGroups": ["MG_ADD_ONS"]},
    {"id": "ITEM_PASTA", "name": "Fettuccine Alfredo", "price": 1699, "category": "Entrees",
     "taxRates": ["TAX_FOOD"]},
    {"id": "ITEM_BREAKFAST_PLATE", "name": "Breakfast Plate", "price": 1199,
     "category": "Entrees", "taxRates": ["TAX_FOOD"], "modifierGroups": ["MG_ADD_ONS"]},
    # Sides
    {"id": "ITEM_FRIES", "name": "French Fries", "price": 499, "category": "Sides",
     "taxRates": ["TAX_FOOD"]},
    {"id": "ITEM_SALAD", "name": "House Salad", "price": 699, "category": "Sides",
     "taxRates": ["TAX_FOOD"], "modifierGroups": ["MG_DRESSING"]},
    {"id": "ITEM_ONION_RINGS", "name": "Onion Rings", "price": 599, "category": "Sides",
     "taxRates": ["TAX_FOOD"]},
    {"id": "ITEM_HASH_BROWNS", "name": "Hash Browns", "price": 399, "category": "Sides",
     "taxRates": ["TAX_FOOD"]},
    # Desserts
    {"id": "ITEM_CHEESECAKE", "name": "New York Cheesecake", "price": 899,
     "category": "Desserts", "taxRates": ["TAX_FOOD"]},
    {"id": "ITEM_BROWNIE", "name": "Brownie Sundae", "price": 799, "category": "Desserts",
     "taxRates": ["TAX_FOOD"]},
    # Drinks
    {"id": "ITEM_SODA", "name": "Fountain Soda", "price": 299, "category": "Drinks",
     "taxRates": ["TAX_SALES"], "modifierGroups": ["MG_DRINK_SIZE"]},
    {"id": "ITEM_ICED_TEA", "name": "Iced Tea", "price": 299, "category": "Drinks",
     "taxRates": ["TAX_SALES"], "modifierGroups": ["MG_DRINK_SIZE"]},
    {"id": "ITEM_COFFEE", "name": "Coffee", "price": 249, "category": "Drinks",
     "taxRates": ["TAX_SALES"]},
    {"id": "ITEM_LEMONADE", "name": "Fresh Lemonade", "price": 399, "category": "Drinks",
     "taxRates": ["TAX_SALES"]},
    # Alcoholic beverages
    {"id": "ITEM_DRAFT_BEER", "name": "Draft Beer", "price": 699,
     "category": "Alcoholic Beverages", "taxRates": ["TAX_SALES", "TAX_ALCOHOL"]},
    {"id": "ITEM_HOUSE_WINE", "name": "House Wine", "price": 899,
     "category": "Alcoholic Beverages", "taxRates": ["TAX_SALES", "TAX_ALCOHOL"]},
    {"id": "ITEM_MARGARITA", "name": "Margarita", "price": 1099,
     "category": "Alcoholic Beverages", "taxRates": ["TAX_SALES", "TAX_ALCOHOL"]},
]
