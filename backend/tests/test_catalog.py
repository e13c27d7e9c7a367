import pytest

from snackbar import catalog
from snackbar.validation import NotFoundError, ValidationError


def test_menu_ids_are_unique():
    ids = [item.id for item in catalog.MENU]
    assert len(ids) == len(set(ids))


def test_every_item_belongs_to_a_known_category():
    for item in catalog.MENU:
        assert item.category in catalog.CATEGORIES


def test_only_salads_take_add_ons():
    for item in catalog.MENU:
        assert item.allows_add_ons == (item.category == catalog.SALAD_BOWLS)


def test_get_item():
    assert catalog.get_item("hot-tea").name == "Tea"
    with pytest.raises(NotFoundError):
        catalog.get_item("missing")


def test_category_for_name_lookup():
    assert catalog.category_for("Tea") == catalog.HOT_BEVERAGES
    assert catalog.category_for("Badam Milk") == catalog.HOT_BEVERAGES
    assert catalog.category_for("Unknown Thing") is None


def test_items_in_category():
    names = {item.name for item in catalog.items_in(catalog.COLD_BEVERAGES)}
    assert names == {"Cold Coffee", "Iced Tea", "Badam Milk"}
    assert catalog.items_in(catalog.MISCELLANEOUS) == []


def test_addon_price():
    assert catalog.addon_price("Mint") == 0
    with pytest.raises(ValidationError):
        catalog.addon_price("Ketchup")


def test_menu_to_dict_shape():
    data = catalog.menu_to_dict()
    assert data["categories"][0] == catalog.BITES
    assert {"name": "Yogurt", "price": 0} in data["addOns"]
    assert data["items"][0]["basePrice"] == 80
