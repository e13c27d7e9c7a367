# Overview: In-memory cart keyed by menu item + chosen add-ons.

"""
Cart Model

A cart maps a composite key (menu item id + sorted add-on names) to a
positive quantity. Selecting {Mint, Yogurt} and {Yogurt, Mint} lands on the
same entry. Entries never hold zero: decrementing to zero removes the key.

The key separator is a token that never appears in a catalog id, so an id
that is a prefix of another id ("salad-x" vs "salad-x-large") never matches
the wrong entries when parsing keys back.
"""

from __future__ import annotations

from . import catalog
from .validation import MAX_LINE_QTY, ValidationError, coerce_int


ADDON_KEY_SEPARATOR = "|addons:"
ADDON_JOINER = "+"


def cart_key(item_id: str, add_ons: list[str] | tuple[str, ...] | None = None) -> str:
    """Order-independent composite key for an item and its add-ons."""
    if ADDON_KEY_SEPARATOR in item_id:
        raise ValidationError(f"Invalid menu item id {item_id!r}")
    if not add_ons:
        return item_id
    return f"{item_id}{ADDON_KEY_SEPARATOR}{ADDON_JOINER.join(sorted(set(add_ons)))}"


def parse_cart_key(key: str) -> tuple[str, list[str]]:
    """Inverse of cart_key: (item_id, sorted add-ons)."""
    item_id, sep, rest = key.partition(ADDON_KEY_SEPARATOR)
    if not sep:
        return item_id, []
    return item_id, rest.split(ADDON_JOINER)


class Cart:
    """Selections accumulated before checkout."""

    def __init__(self) -> None:
        self.entries: dict[str, int] = {}
        self.out_of_stock: set[str] = set()
        self.employee = False

    def _check_add_ons(self, item: catalog.MenuItem, add_ons) -> list[str]:
        chosen = sorted(set(add_ons or []))
        if chosen and not item.allows_add_ons:
            raise ValidationError(f"{item.name} does not take add-ons")
        for name in chosen:
            catalog.addon_price(name)
        return chosen

    def increment(self, item_id: str, add_ons=None) -> int:
        """Add one unit. Out-of-stock items are ignored; returns the new quantity."""
        item = catalog.get_item(item_id)
        chosen = self._check_add_ons(item, add_ons)
        key = cart_key(item_id, chosen)
        if item_id in self.out_of_stock:
            return self.entries.get(key, 0)
        self.entries[key] = self.entries.get(key, 0) + 1
        return self.entries[key]

    def decrement(self, item_id: str, add_ons=None) -> int:
        key = cart_key(item_id, sorted(set(add_ons or [])))
        current = self.entries.get(key, 0)
        if current <= 1:
            self.entries.pop(key, None)
            return 0
        self.entries[key] = current - 1
        return self.entries[key]

    def quantity_of(self, item_id: str, add_ons=None) -> int:
        return self.entries.get(cart_key(item_id, sorted(set(add_ons or []))), 0)

    def clear(self) -> None:
        self.entries.clear()
        self.employee = False

    def set_out_of_stock(self, item_id: str, flag: bool = True) -> None:
        catalog.get_item(item_id)
        if not flag:
            self.out_of_stock.discard(item_id)
            return
        self.out_of_stock.add(item_id)
        for key in list(self.entries):
            if parse_cart_key(key)[0] == item_id:
                del self.entries[key]

    def item_count(self) -> int:
        return sum(self.entries.values())

    def total(self) -> int:
        total = 0
        for key, qty in self.entries.items():
            item_id, add_ons = parse_cart_key(key)
            total += catalog.unit_price(catalog.get_item(item_id), add_ons) * qty
        return total

    def to_order_payload(self) -> dict:
        """
        Snapshot the cart into a create-order body.

        Lines keep insertion order; categories are distinct in first-seen order.
        """
        items = []
        for key, qty in self.entries.items():
            item_id, add_ons = parse_cart_key(key)
            item = catalog.get_item(item_id)
            items.append({
                "name": item.name,
                "category": item.category,
                "qty": qty,
                "price": catalog.unit_price(item, add_ons),
                "addOns": add_ons,
            })
        return {
            "categories": list(dict.fromkeys(i["category"] for i in items)),
            "items": items,
            "totalAmount": 0 if self.employee else self.total(),
            "employee": self.employee,
        }


def build_cart(lines, out_of_stock=None, employee: bool = False) -> Cart:
    """
    Rebuild a cart from [{itemId, addOns?, qty}] lines.

    Out-of-stock ids are applied first, so their lines contribute nothing.
    """
    if not isinstance(lines, list):
        raise ValidationError("lines must be a list")
    if out_of_stock is not None and not isinstance(out_of_stock, list):
        raise ValidationError("outOfStock must be a list")

    cart = Cart()
    cart.employee = bool(employee)
    for item_id in out_of_stock or []:
        cart.set_out_of_stock(str(item_id), True)

    for i, line in enumerate(lines):
        if not isinstance(line, dict):
            raise ValidationError(f"lines[{i}] must be an object")
        item_id = line.get("itemId")
        if not item_id:
            raise ValidationError(f"lines[{i}].itemId is required")
        qty = coerce_int(line.get("qty", 1), f"lines[{i}].qty")
        if qty <= 0 or qty > MAX_LINE_QTY:
            raise ValidationError(f"lines[{i}].qty must be between 1 and {MAX_LINE_QTY}")
        add_ons = line.get("addOns")
        if add_ons is not None and not isinstance(add_ons, list):
            raise ValidationError(f"lines[{i}].addOns must be a list")
        for _ in range(qty):
            cart.increment(str(item_id), add_ons)
    return cart
