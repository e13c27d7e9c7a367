# Overview: Flask API routes for refund operations; parses input and returns JSON responses.

"""
Refund API Routes

The server clamps every requested quantity to what is still refundable on
the order line, so a stale client view can never over-refund.
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import refund_service
from ..validation import NotFoundError, PreconditionError, ValidationError


refunds_bp = Blueprint("refunds", __name__, url_prefix="/api/refunds")


@refunds_bp.post("")
def create_refund_route():
    """
    Request body:
    {
        "orderNumber": 12,
        "refundedItems": [{"name": "Tea", "qty": 1, "addOns": []?}]
    }

    Returns:
        201: {"refund": {...}, "refunds": [{...}]}
        400: invalid input, order not refundable, nothing left to refund
        404: order not found
    """
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Request body must be a JSON object"}), 400

        refund = refund_service.create_refund(data.get("orderNumber"), data.get("refundedItems"))
        payload = refund.to_dict()
        return jsonify({"refund": payload, "refunds": [payload]}), 201
    except (ValidationError, PreconditionError) as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to create refund")
        return jsonify({"error": "Internal server error"}), 500


@refunds_bp.get("")
def list_refunds_route():
    """All refunds newest first; ?orderNumber= narrows to one order."""
    try:
        order_number = request.args.get("orderNumber", type=int)
        refunds = refund_service.list_refunds(order_number)
        return jsonify([r.to_dict() for r in refunds]), 200
    except Exception:
        current_app.logger.exception("Failed to list refunds")
        return jsonify({"error": "Internal server error"}), 500


@refunds_bp.get("/orders/<int:order_number>/remaining")
def refundable_items_route(order_number: int):
    """Per-line ordered/refunded/remaining quantities for an order."""
    try:
        return jsonify({
            "orderNumber": order_number,
            "items": refund_service.refundable_items(order_number),
        }), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to compute refundable items for order #%s", order_number)
        return jsonify({"error": "Internal server error"}), 500
