# Overview: Service-layer operations for refunds; encapsulates business logic and database work.

"""
Refund Service

WHY: Refunds must never exceed what was ordered. The client shows a
remaining quantity, but that view can be stale, so the server re-derives
remaining per order line and clamps every request to it.

DESIGN:
- One Refund record per refund action, one RefundItem per refunded order line.
- Prices and categories come from the order snapshot, never from the client.
- Lines are identified by (name, add-ons). A request without addOns is spread
  across every line with that name, in order.
- Fully refunded lines are skipped. A request that refunds nothing writes
  nothing and raises PreconditionError.
- Only CONFIRMED or DELIVERED orders are refundable; PENDING orders are
  edited instead.

INVARIANT: for every order line, sum(refunded qty) <= ordered qty.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Order, Refund, RefundItem
from ..models.orders import ORDER_STATUS_CONFIRMED, ORDER_STATUS_DELIVERED
from ..validation import (
    NotFoundError,
    PreconditionError,
    ValidationError,
    coerce_int,
    normalize_refund_request,
)
from . import ledger_export_service
from .concurrency import run_with_retry


REFUNDABLE_STATUSES = (ORDER_STATUS_CONFIRMED, ORDER_STATUS_DELIVERED)


def _line_key(name: str, add_ons) -> tuple[str, tuple[str, ...]]:
    return name, tuple(sorted(add_ons or []))


def _refunded_qty_by_line(order: Order) -> dict[tuple, int]:
    """Refunded qty per line key, counting only refunds made against this order row."""
    rows = (
        db.session.query(RefundItem.name, RefundItem.add_ons, RefundItem.qty)
        .join(Refund, Refund.id == RefundItem.refund_id)
        .filter(Refund.order_id == order.id)
        .all()
    )
    refunded: dict[tuple, int] = {}
    for name, add_ons, qty in rows:
        key = _line_key(name, add_ons)
        refunded[key] = refunded.get(key, 0) + qty
    return refunded


def _load_order(order_number: int) -> Order:
    order = db.session.query(Order).filter_by(order_number=order_number).first()
    if not order:
        raise NotFoundError(f"Order #{order_number} not found")
    return order


def _line_state(order: Order) -> dict[tuple, dict]:
    """
    Ordered map of order line key -> remaining state.

    Duplicate lines (same name and add-ons) are merged; the first line's
    price and category are used.
    """
    refunded = _refunded_qty_by_line(order)
    lines: dict[tuple, dict] = {}
    for item in order.items:
        key = _line_key(item.name, item.add_ons)
        if key not in lines:
            lines[key] = {
                "name": item.name,
                "category": item.category,
                "addOns": list(key[1]),
                "price": item.unit_price,
                "orderedQty": 0,
            }
        lines[key]["orderedQty"] += item.qty

    for key, line in lines.items():
        line["refundedQty"] = refunded.get(key, 0)
        line["remaining"] = max(0, line["orderedQty"] - line["refundedQty"])
    return lines


# =============================================================================
# QUERIES
# =============================================================================

def refundable_items(order_number: int) -> list[dict]:
    """
    Per-line refund view of an order:
    [{name, category, addOns, price, orderedQty, refundedQty, remaining}]

    Raises NotFoundError for an unknown order number.
    """
    order = _load_order(order_number)
    return list(_line_state(order).values())


def remaining_for(order_number: int, item_name: str) -> int:
    """Ordered minus refunded quantity of item_name on the order (never negative)."""
    order = _load_order(order_number)
    return sum(
        line["remaining"]
        for line in _line_state(order).values()
        if line["name"] == item_name
    )


def list_refunds(order_number: int | None = None) -> list[Refund]:
    """All refunds (or one order's), newest first."""
    query = db.session.query(Refund)
    if order_number is not None:
        query = query.filter(Refund.order_number == order_number)
    return query.order_by(Refund.created_at.desc(), Refund.id.desc()).all()


def list_refunds_for_order(order_number: int) -> list[Refund]:
    return list_refunds(order_number)


def get_refund(refund_id: int) -> Refund:
    refund = db.session.get(Refund, refund_id)
    if not refund:
        raise NotFoundError(f"Refund {refund_id} not found")
    return refund


# =============================================================================
# CREATE
# =============================================================================

def create_refund(order_number, refunded_items) -> Refund:
    """
    Record a refund against an order.

    Args:
        order_number: Order number the refund applies to
        refunded_items: [{name, qty, addOns?}]; other fields are ignored

    Returns:
        The committed Refund (refund_amount = sum of unit price x refunded qty)

    Raises:
        ValidationError: malformed payload, or an item that is not on the order
        NotFoundError: unknown order number
        PreconditionError: order not refundable, or nothing left to refund
    """
    if order_number is None:
        raise ValidationError("orderNumber is required")
    order_number = coerce_int(order_number, "orderNumber")
    if not isinstance(refunded_items, list) or not refunded_items:
        raise ValidationError("refundedItems must be a non-empty list")
    requests = [normalize_refund_request(raw, i) for i, raw in enumerate(refunded_items)]

    def _op() -> Refund:
        order = _load_order(order_number)
        if order.status not in REFUNDABLE_STATUSES:
            raise PreconditionError(
                f"Order #{order_number} is {order.status}; only CONFIRMED or DELIVERED orders can be refunded"
            )

        lines = _line_state(order)
        granted: dict[tuple, int] = {}
        for req in requests:
            candidates = [
                (key, line) for key, line in lines.items()
                if line["name"] == req["name"]
                and (req["addOns"] is None or line["addOns"] == req["addOns"])
            ]
            if not candidates:
                raise ValidationError(f"{req['name']!r} is not on order #{order_number}")

            wanted = req["qty"]
            for key, line in candidates:
                if wanted <= 0:
                    break
                take = min(wanted, line["remaining"])
                if take <= 0:
                    continue
                line["remaining"] -= take
                wanted -= take
                granted[key] = granted.get(key, 0) + take

            if wanted > 0:
                current_app.logger.info(
                    "Refund on order #%s: %s clamped (%s unit(s) over remaining)",
                    order_number, req["name"], wanted,
                )

        if not granted:
            raise PreconditionError(f"Nothing left to refund on order #{order_number}")

        items = [
            RefundItem(
                name=lines[key]["name"],
                category=lines[key]["category"],
                qty=qty,
                unit_price=lines[key]["price"],
                add_ons=list(lines[key]["addOns"]),
            )
            for key, qty in granted.items()
        ]
        refund = Refund(
            order_id=order.id,
            order_number=order_number,
            refund_amount=sum(i.unit_price * i.qty for i in items),
            items=items,
        )
        db.session.add(refund)
        db.session.commit()
        return refund

    refund = run_with_retry(_op)
    current_app.logger.info(
        "Refund %s recorded on order #%s (%s line(s), amount %s)",
        refund.id, refund.order_number, len(refund.items), refund.refund_amount,
    )
    ledger_export_service.export_refund(refund)
    return refund
