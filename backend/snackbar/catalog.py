# Overview: Static menu catalog (items, categories, add-on dressings).

"""
Menu Catalog

The menu is fixed at deploy time. Prices are whole currency units (INR) and
are snapshotted onto order lines at checkout, so editing this table never
changes historical orders.
"""

from __future__ import annotations

from dataclasses import dataclass

from .validation import NotFoundError, ValidationError


# =============================================================================
# CATEGORIES
# =============================================================================

BITES = "Bites"
SANDWICHES = "Sandwiches"
SALAD_BOWLS = "Salad Bowls"
FRUIT_BOWLS = "Fruit Bowls"
SMOOTHIES = "Smoothies"
JUICES = "Juices"
HOT_BEVERAGES = "Hot Beverages"
COLD_BEVERAGES = "Cold Beverages"
MISCELLANEOUS = "Miscellaneous"

CATEGORIES: tuple[str, ...] = (
    BITES,
    SANDWICHES,
    SALAD_BOWLS,
    FRUIT_BOWLS,
    SMOOTHIES,
    JUICES,
    HOT_BEVERAGES,
    COLD_BEVERAGES,
    MISCELLANEOUS,
)

# Reporting bucket for lines whose category cannot be resolved
OTHERS = "Others"


# =============================================================================
# ADD-ONS
# =============================================================================

# Dressing name -> price delta per unit
ADD_ONS: dict[str, int] = {
    "Yogurt": 0,
    "Chipotle": 0,
    "Mint": 0,
}


@dataclass(frozen=True)
class MenuItem:
    """A purchasable menu entry."""

    id: str
    name: str
    category: str
    base_price: int
    allows_add_ons: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "basePrice": self.base_price,
            "allowsAddOns": self.allows_add_ons,
        }


MENU: tuple[MenuItem, ...] = (
    MenuItem("bites-potato-cheese-balls", "Potato Cheese Balls", BITES, 80),
    MenuItem("bites-rice-paper-dahi-chat", "Rice Paper Dahi Chat", BITES, 80),
    MenuItem("bites-cheesy-soya-corn-kabab", "Cheesy Soya Corn Kabab", BITES, 80),
    MenuItem("bites-potato-stir-fry", "Potato Stir Fry", BITES, 80),
    MenuItem("bites-paneer-chickpea-nuggets", "Paneer Chickpea Nuggets", BITES, 80),

    MenuItem("sandwich-classic-veg", "Classic Veg Grill Sandwich", SANDWICHES, 80),
    MenuItem("sandwich-caramelized-onion-mushroom", "Caramelized Onion & Mushroom Sandwich", SANDWICHES, 80),
    MenuItem("sandwich-corn", "Corn Sandwich", SANDWICHES, 80),
    MenuItem("sandwich-avocado", "Avocado Sandwich", SANDWICHES, 80),

    MenuItem("salad-roasted-cauliflower-chickpea", "Roasted Cauliflower & Chickpea Salad", SALAD_BOWLS, 80, True),
    MenuItem("salad-roasted-crispy-potato", "Roasted Crispy Potato Salad", SALAD_BOWLS, 80, True),
    MenuItem("salad-classic-sprouts-peanuts", "Classic Sprouts Salad with Peanuts", SALAD_BOWLS, 80, True),
    MenuItem("salad-protein-packed-soya", "Protein-Packed Soya Salad", SALAD_BOWLS, 80, True),

    MenuItem("fruit-creamy-fruit-salad", "Creamy Fruit Salad", FRUIT_BOWLS, 80),
    MenuItem("fruit-cut-fruit-salad", "Cut Fruit Salad", FRUIT_BOWLS, 80),

    MenuItem("smoothie-chia-seeds", "Chia Seeds Smoothie", SMOOTHIES, 80),
    MenuItem("smoothie-chocolate", "Chocolate Smoothie", SMOOTHIES, 80),
    MenuItem("smoothie-banoffee", "Banoffee Smoothie", SMOOTHIES, 80),
    MenuItem("smoothie-avocado", "Avocado Smoothie (Seasonal)", SMOOTHIES, 80),

    MenuItem("juice-abc", "ABC", JUICES, 80),
    MenuItem("juice-cucumber-spinach-greenapple", "Cucumber Spinach Green Apple", JUICES, 80),
    MenuItem("juice-watermelon-crush", "Watermelon Crush Juice", JUICES, 80),
    MenuItem("juice-muskmelon", "Muskmelon Juice", JUICES, 80),
    MenuItem("juice-mint-lime-soda", "Mint & Lime Soda", JUICES, 80),

    MenuItem("hot-filter-coffee", "Filter Coffee (sugar/jaggery)", HOT_BEVERAGES, 80),
    MenuItem("hot-black-coffee", "Black Coffee", HOT_BEVERAGES, 80),
    MenuItem("hot-tea", "Tea", HOT_BEVERAGES, 80),
    MenuItem("hot-lemon-tea", "Lemon Tea", HOT_BEVERAGES, 80),
    MenuItem("hot-badam-milk", "Badam Milk", HOT_BEVERAGES, 80),

    MenuItem("cold-cold-coffee", "Cold Coffee", COLD_BEVERAGES, 80),
    MenuItem("cold-iced-tea", "Iced Tea", COLD_BEVERAGES, 80),
    MenuItem("cold-badam-milk", "Badam Milk", COLD_BEVERAGES, 80),
)

_BY_ID: dict[str, MenuItem] = {item.id: item for item in MENU}

# Name -> category fallback for report lines stored without a category.
# "Badam Milk" exists hot and cold; the first entry (hot) wins.
ITEM_TO_CATEGORY: dict[str, str] = {}
for _item in MENU:
    ITEM_TO_CATEGORY.setdefault(_item.name, _item.category)


def get_item(item_id: str) -> MenuItem:
    item = _BY_ID.get(item_id)
    if item is None:
        raise NotFoundError(f"Menu item {item_id!r} not found")
    return item


def items_in(category: str) -> list[MenuItem]:
    return [item for item in MENU if item.category == category]


def category_for(name: str) -> str | None:
    return ITEM_TO_CATEGORY.get(name)


def addon_price(name: str) -> int:
    if name not in ADD_ONS:
        raise ValidationError(f"Unknown add-on {name!r}")
    return ADD_ONS[name]


def unit_price(item: MenuItem, add_ons: list[str] | tuple[str, ...] = ()) -> int:
    """Base price plus the price of each chosen add-on."""
    return item.base_price + sum(addon_price(a) for a in add_ons)


def menu_to_dict() -> dict:
    return {
        "categories": list(CATEGORIES),
        "addOns": [{"name": name, "price": price} for name, price in ADD_ONS.items()],
        "items": [item.to_dict() for item in MENU],
    }
