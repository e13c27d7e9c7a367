"""
Cart tests.

Verifies:
- Composite keys ignore add-on order
- Increment/decrement never store zero
- Out-of-stock items are ignored and purged across add-on variants
- Totals include add-on prices
- Checkout payload shape
"""

import pytest

from snackbar import catalog
from snackbar.cart import ADDON_KEY_SEPARATOR, Cart, build_cart, cart_key, parse_cart_key
from snackbar.validation import NotFoundError, ValidationError


SALAD = "salad-roasted-crispy-potato"
TEA = "hot-tea"


# =============================================================================
# COMPOSITE KEYS
# =============================================================================


class TestCartKey:

    def test_add_on_order_does_not_matter(self):
        assert cart_key(SALAD, ["Mint", "Yogurt"]) == cart_key(SALAD, ["Yogurt", "Mint"])

    def test_plain_item_key_is_item_id(self):
        assert cart_key(TEA) == TEA
        assert cart_key(TEA, []) == TEA

    def test_parse_round_trip(self):
        key = cart_key(SALAD, ["Yogurt", "Chipotle"])
        assert parse_cart_key(key) == (SALAD, ["Chipotle", "Yogurt"])
        assert parse_cart_key(TEA) == (TEA, [])

    def test_separator_cannot_appear_in_item_id(self):
        with pytest.raises(ValidationError):
            cart_key(f"x{ADDON_KEY_SEPARATOR}y")


# =============================================================================
# INCREMENT / DECREMENT
# =============================================================================


class TestIncrementDecrement:

    def test_same_add_ons_any_order_share_an_entry(self):
        cart = Cart()
        cart.increment(SALAD, ["Mint", "Yogurt"])
        cart.increment(SALAD, ["Yogurt", "Mint"])
        assert len(cart.entries) == 1
        assert cart.quantity_of(SALAD, ["Mint", "Yogurt"]) == 2

    def test_different_add_ons_are_different_entries(self):
        cart = Cart()
        cart.increment(SALAD, ["Mint"])
        cart.increment(SALAD)
        assert len(cart.entries) == 2
        assert cart.item_count() == 2

    def test_decrement_removes_entry_at_zero(self):
        cart = Cart()
        cart.increment(TEA)
        cart.increment(TEA)
        assert cart.decrement(TEA) == 1
        assert cart.decrement(TEA) == 0
        assert TEA not in cart.entries

    def test_decrement_missing_entry_is_noop(self):
        cart = Cart()
        assert cart.decrement(TEA) == 0
        assert cart.entries == {}

    def test_add_ons_rejected_on_items_that_do_not_take_them(self):
        cart = Cart()
        with pytest.raises(ValidationError):
            cart.increment(TEA, ["Mint"])

    def test_unknown_add_on_rejected(self):
        cart = Cart()
        with pytest.raises(ValidationError):
            cart.increment(SALAD, ["Ketchup"])

    def test_unknown_item_rejected(self):
        with pytest.raises(NotFoundError):
            Cart().increment("no-such-item")


# =============================================================================
# OUT OF STOCK
# =============================================================================


class TestOutOfStock:

    def test_increment_is_noop_when_out_of_stock(self):
        cart = Cart()
        cart.set_out_of_stock(TEA, True)
        assert cart.increment(TEA) == 0
        assert cart.entries == {}

    def test_marking_out_of_stock_purges_every_variant(self):
        cart = Cart()
        cart.increment(SALAD)
        cart.increment(SALAD, ["Mint"])
        cart.increment(SALAD, ["Mint", "Yogurt"])
        cart.increment(TEA)

        cart.set_out_of_stock(SALAD, True)

        assert list(cart.entries) == [TEA]

    def test_back_in_stock_allows_increment(self):
        cart = Cart()
        cart.set_out_of_stock(TEA, True)
        cart.set_out_of_stock(TEA, False)
        assert cart.increment(TEA) == 1


# =============================================================================
# TOTALS AND PAYLOAD
# =============================================================================


class TestTotals:

    def test_total_includes_add_on_prices(self, monkeypatch):
        monkeypatch.setitem(catalog.ADD_ONS, "Mint", 15)
        cart = Cart()
        cart.increment(SALAD, ["Mint"])
        cart.increment(SALAD, ["Mint"])
        cart.increment(TEA)
        assert cart.total() == (80 + 15) * 2 + 80

    def test_clear_resets_employee_flag(self):
        cart = Cart()
        cart.employee = True
        cart.increment(TEA)
        cart.clear()
        assert cart.entries == {}
        assert cart.employee is False

    def test_order_payload(self):
        cart = Cart()
        cart.increment(TEA)
        cart.increment(TEA)
        cart.increment(SALAD, ["Yogurt", "Mint"])

        payload = cart.to_order_payload()

        assert payload["categories"] == ["Hot Beverages", "Salad Bowls"]
        assert payload["totalAmount"] == 240
        assert payload["employee"] is False
        assert payload["items"][1] == {
            "name": "Roasted Crispy Potato Salad",
            "category": "Salad Bowls",
            "qty": 1,
            "price": 80,
            "addOns": ["Mint", "Yogurt"],
        }

    def test_employee_payload_total_is_zero(self):
        cart = Cart()
        cart.employee = True
        cart.increment(TEA)
        payload = cart.to_order_payload()
        assert payload["totalAmount"] == 0
        assert payload["items"][0]["price"] == 80


class TestBuildCart:

    def test_build_from_lines(self):
        cart = build_cart(
            [{"itemId": TEA, "qty": 3}, {"itemId": SALAD, "addOns": ["Mint"], "qty": 1}],
            out_of_stock=[SALAD],
        )
        assert cart.item_count() == 3
        assert cart.total() == 240

    def test_rejects_bad_qty(self):
        with pytest.raises(ValidationError):
            build_cart([{"itemId": TEA, "qty": 0}])
