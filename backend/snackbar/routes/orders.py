# Overview: Flask API routes for order operations; parses input and returns JSON responses.

"""
Order API Routes

LIFECYCLE: PENDING --confirm--> CONFIRMED --deliver--> DELIVERED

- POST   /api/orders                 checkout (creates PENDING)
- GET    /api/orders                 newest first, optional ?status=
- DELETE /api/orders                 purge all (staff session required)
- GET    /api/orders/<id>
- PUT    /api/orders/<id>            edit items/categories/status
- PATCH  /api/orders/<id>/confirm    also mirrors the order to the ledger
- PATCH  /api/orders/<id>/deliver
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..services import order_service
from ..validation import ConflictError, NotFoundError, PreconditionError, ValidationError


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


# =============================================================================
# COLLECTION
# =============================================================================

@orders_bp.post("")
def create_order_route():
    """
    Request body:
    {
        "categories": ["Bites"],                       (optional)
        "items": [{"name", "category", "qty", "price", "addOns"?}],
        "totalAmount": 160,                            (optional, recomputed)
        "employee": false                              (alias: isEmployeeOrder)
    }

    Returns:
        201: created order
        400: invalid input
        409: order number could not be allocated
    """
    try:
        data = _json_body()
        order = order_service.create_order(
            items=data.get("items"),
            categories=data.get("categories"),
            total_amount=data.get("totalAmount"),
            is_employee_order=bool(data.get("employee", data.get("isEmployeeOrder", False))),
        )
        return jsonify(order.to_dict()), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("")
def list_orders_route():
    try:
        orders = order_service.list_orders(status=request.args.get("status"))
        return jsonify([o.to_dict() for o in orders]), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.delete("")
@require_auth
def delete_all_orders_route():
    """Irreversible purge of every order. Refund records are kept."""
    try:
        deleted = order_service.delete_all_orders()
        current_app.logger.warning("Order purge requested by %s", g.current_user.username)
        return jsonify({"deletedCount": deleted}), 200
    except Exception:
        current_app.logger.exception("Failed to delete orders")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# SINGLE ORDER
# =============================================================================

@orders_bp.get("/<int:order_id>")
def get_order_route(order_id: int):
    try:
        return jsonify(order_service.get_order(order_id).to_dict()), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to fetch order %s", order_id)
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.put("/<int:order_id>")
def update_order_route(order_id: int):
    """
    Request body (all optional):
    {"items": [...], "categories": [...], "status": "CONFIRMED"}

    Returns:
        200: updated order
        400: invalid input, or status moving backwards
        404: order not found
        409: editing items of a delivered order
    """
    try:
        data = _json_body()
        order = order_service.update_order(
            order_id,
            items=data.get("items"),
            categories=data.get("categories"),
            status=data.get("status"),
        )
        return jsonify(order.to_dict()), 200
    except (ValidationError, PreconditionError) as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update order %s", order_id)
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.patch("/<int:order_id>/confirm")
def confirm_order_route(order_id: int):
    try:
        return jsonify(order_service.confirm_order(order_id).to_dict()), 200
    except PreconditionError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to confirm order %s", order_id)
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.patch("/<int:order_id>/deliver")
def deliver_order_route(order_id: int):
    try:
        return jsonify(order_service.deliver_order(order_id).to_dict()), 200
    except PreconditionError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to deliver order %s", order_id)
        return jsonify({"error": "Internal server error"}), 500
