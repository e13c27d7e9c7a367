# Overview: Flask API routes for the menu catalog and cart pricing.

from flask import Blueprint, request, jsonify, current_app

from .. import catalog
from ..cart import build_cart
from ..validation import NotFoundError, ValidationError


menu_bp = Blueprint("menu", __name__, url_prefix="/api/menu")


@menu_bp.get("")
def get_menu_route():
    return jsonify(catalog.menu_to_dict()), 200


@menu_bp.post("/quote")
def quote_route():
    """
    Price a cart server-side.

    Request body:
    {
        "lines": [{"itemId": "salad-roasted-crispy-potato", "addOns": ["Mint"], "qty": 2}],
        "outOfStock": ["juice-muskmelon"],   (optional)
        "employee": false                (optional)
    }

    Returns the create-order payload for the cart:
    {"categories", "items", "totalAmount", "employee", "itemCount"}
    """
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Request body must be a JSON object"}), 400

        cart = build_cart(data.get("lines", []), data.get("outOfStock"), data.get("employee", False))
        payload = cart.to_order_payload()
        payload["itemCount"] = cart.item_count()
        return jsonify(payload), 200
    except (ValidationError, NotFoundError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to quote cart")
        return jsonify({"error": "Internal server error"}), 500
