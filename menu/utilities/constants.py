from typing import Final

# Persistence keys (one per store)
MENU_STORAGE_KEY: Final[str] = "@taco_admin_menu"
CART_STORAGE_KEY: Final[str] = "@taco_app_cart"
SCHEMA_VERSION: Final[int] = 1

# Category offered by the admin console; "All" disables the filter
ALL_CATEGORIES: Final[str] = "All"
MENU_CATEGORIES: Final[list[str]] = [
    "Tacos", "Burritos", "Quesadillas", "Sides", "Drinks", "Desserts", "Breakfast"
]

SORT_KEYS: Final[tuple[str, ...]] = ("name", "price", "category", "popularity", "created")
SORT_DIRECTIONS: Final[tuple[str, ...]] = ("asc", "desc")

EXPORT_FORMATS: Final[tuple[str, ...]] = ("json", "csv")
MERGE_STRATEGIES: Final[tuple[str, ...]] = ("merge", "replace", "skip")
CSV_COLUMNS: Final[list[str]] = [
    "id", "name", "price", "description", "category", "available", "popularity", "revenue"
]

COPY_SUFFIX: Final[str] = " (Copy)"

# Share of an item's revenue attributed to each of its ingredients
INGREDIENT_REVENUE_SHARE: Final[float] = 0.1
MIN_INGREDIENT_COST: Final[float] = 0.01
