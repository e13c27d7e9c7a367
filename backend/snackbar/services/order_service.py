"""
Order Lifecycle Service

LIFECYCLE:
    PENDING --confirm--> CONFIRMED --deliver--> DELIVERED

- Checkout creates a PENDING order with the next sequential order number.
- Items may be edited while PENDING or CONFIRMED; DELIVERED orders are frozen.
- Confirming mirrors the order into the spreadsheet ledger after commit. A
  ledger failure is logged and never rolls the confirmation back.
- Status never moves backwards and nothing leaves DELIVERED.

CONCURRENCY: the order number is "max + 1" guarded by a unique constraint.
Two checkouts that read the same max collide on insert; the loser rolls back
and retries with a fresh max. Concurrent edits of the same order are caught
by the version_id column and re-run against the latest row (last write wins).
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Order, OrderItem
from ..models.orders import (
    ORDER_STATUS_CONFIRMED,
    ORDER_STATUS_DELIVERED,
    ORDER_STATUS_PENDING,
    ORDER_STATUS_RANK,
)
from ..validation import (
    ConflictError,
    NotFoundError,
    PreconditionError,
    ValidationError,
    coerce_int,
    normalize_categories,
    normalize_order_items,
)
from snackbar.time_utils import utcnow
from . import ledger_export_service
from .concurrency import TRANSIENT_ERRORS, run_with_retry


# =============================================================================
# HELPERS
# =============================================================================

def _max_order_number() -> int:
    return db.session.query(func.max(Order.order_number)).scalar() or 0


def next_order_number() -> int:
    """Next sequential order number; 1 when no orders exist."""
    return _max_order_number() + 1


def compute_total(items: list[dict], is_employee_order: bool) -> int:
    """Sum of price x qty; employee orders are never charged."""
    if is_employee_order:
        return 0
    return sum(item["price"] * item["qty"] for item in items)


def _build_items(items: list[dict]) -> list[OrderItem]:
    return [
        OrderItem(
            position=i,
            name=item["name"],
            category=item["category"],
            qty=item["qty"],
            unit_price=item["price"],
            add_ons=list(item["addOns"]),
        )
        for i, item in enumerate(items)
    ]


def _load(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if not order:
        raise NotFoundError(f"Order {order_id} not found")
    return order


def _parse_status(status) -> str:
    if not isinstance(status, str):
        raise ValidationError("status must be a string")
    value = status.strip().upper()
    if value not in ORDER_STATUS_RANK:
        raise ValidationError(
            f"status must be one of {', '.join(ORDER_STATUS_RANK)}; got {status!r}"
        )
    return value


# =============================================================================
# CREATE / READ
# =============================================================================

def create_order(
    *,
    items,
    categories=None,
    total_amount=None,
    is_employee_order: bool = False,
) -> Order:
    """
    Create a PENDING order from a checkout payload.

    The stored total is always recomputed from the lines. A client total that
    disagrees is logged and ignored.

    Raises:
        ValidationError: empty/malformed items, bad totalAmount
        ConflictError: order number could not be allocated within the retry budget
    """
    normalized = normalize_order_items(items)
    category_list = normalize_categories(categories, normalized)
    is_employee_order = bool(is_employee_order)

    if total_amount is not None:
        client_total = coerce_int(total_amount, "totalAmount")
        if client_total < 0:
            raise ValidationError("totalAmount must be >= 0")
    else:
        client_total = None

    total = compute_total(normalized, is_employee_order)
    if client_total is not None and client_total != total:
        current_app.logger.warning(
            "create_order: client totalAmount %s differs from computed %s; using computed",
            client_total, total,
        )

    def _op() -> Order:
        order = Order(
            order_number=next_order_number(),
            categories=category_list,
            total_amount=total,
            status=ORDER_STATUS_PENDING,
            is_employee_order=is_employee_order,
            items=_build_items(normalized),
        )
        db.session.add(order)
        db.session.commit()
        return order

    attempts = current_app.config.get("ORDER_NUMBER_ATTEMPTS", 5)
    try:
        order = run_with_retry(
            _op,
            attempts=attempts,
            backoff_base=0.01,
            retry_on=(IntegrityError,) + TRANSIENT_ERRORS,
        )
    except IntegrityError as exc:
        raise ConflictError(
            f"create_order: could not allocate an order number after {attempts} attempts"
        ) from exc

    current_app.logger.info(
        "Order #%s created (%s items, total %s%s)",
        order.order_number, len(order.items), order.total_amount,
        ", employee" if order.is_employee_order else "",
    )
    return order


def get_order(order_id: int) -> Order:
    """Raises NotFoundError when absent."""
    return _load(order_id)


def get_order_by_number(order_number: int) -> Order:
    order = db.session.query(Order).filter_by(order_number=order_number).first()
    if not order:
        raise NotFoundError(f"Order #{order_number} not found")
    return order


def list_orders(status: str | None = None) -> list[Order]:
    """All orders, newest first."""
    query = db.session.query(Order)
    if status:
        query = query.filter(Order.status == _parse_status(status))
    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


# =============================================================================
# UPDATE
# =============================================================================

def update_order(order_id: int, *, items=None, categories=None, status=None) -> Order:
    """
    Edit an order.

    - items: replaces all lines; total recomputed server-side
    - categories: replaces the category list (derived from items when omitted)
    - status: forward-only overwrite; DELIVERED stamps deliveredAt. Leaving
      PENDING this way exports to the ledger after commit, as confirm does.

    Raises:
        ValidationError: malformed items/categories/status
        NotFoundError: unknown order
        ConflictError: items changed on a DELIVERED order (or in the same
            request that delivers it)
        PreconditionError: status would move backwards
    """
    normalized = normalize_order_items(items) if items is not None else None
    new_status = _parse_status(status) if status is not None else None

    def _op() -> tuple[Order, bool]:
        order = _load(order_id)
        was_pending = order.status == ORDER_STATUS_PENDING

        if normalized is not None:
            if ORDER_STATUS_DELIVERED in (order.status, new_status):
                raise ConflictError(f"Cannot edit a delivered order (#{order.order_number})")

        if new_status is not None and ORDER_STATUS_RANK[new_status] < ORDER_STATUS_RANK[order.status]:
            raise PreconditionError(
                f"Order #{order.order_number} cannot move from {order.status} back to {new_status}"
            )

        if normalized is not None:
            order.items = _build_items(normalized)
            order.categories = normalize_categories(categories, normalized)
            order.total_amount = compute_total(normalized, order.is_employee_order)
        elif categories is not None:
            current = [item.to_dict() for item in order.items]
            order.categories = normalize_categories(categories, current)

        if new_status is not None and new_status != order.status:
            order.status = new_status
            if new_status == ORDER_STATUS_DELIVERED and order.delivered_at is None:
                order.delivered_at = utcnow()

        order.updated_at = utcnow()
        db.session.commit()
        return order, was_pending and order.status != ORDER_STATUS_PENDING

    order, left_pending = run_with_retry(_op)
    if left_pending:
        current_app.logger.info("Order #%s moved to %s by edit", order.order_number, order.status)
        ledger_export_service.export_confirmed_order(order)
    return order


# =============================================================================
# TRANSITIONS
# =============================================================================

def confirm_order(order_id: int) -> Order:
    """
    PENDING -> CONFIRMED, then export to the ledger.

    Re-confirming a CONFIRMED order is a no-op and does not export twice.

    Raises:
        NotFoundError: unknown order
        PreconditionError: order already DELIVERED
    """
    def _op() -> tuple[Order, bool]:
        order = _load(order_id)
        if order.status == ORDER_STATUS_DELIVERED:
            raise PreconditionError(f"Order #{order.order_number} is already DELIVERED")
        if order.status == ORDER_STATUS_CONFIRMED:
            return order, False
        order.status = ORDER_STATUS_CONFIRMED
        order.updated_at = utcnow()
        db.session.commit()
        return order, True

    order, changed = run_with_retry(_op)
    if changed:
        current_app.logger.info("Order #%s confirmed", order.order_number)
        ledger_export_service.export_confirmed_order(order)
    return order


def deliver_order(order_id: int) -> Order:
    """
    CONFIRMED -> DELIVERED.

    Raises:
        NotFoundError: unknown order
        PreconditionError: order is not currently CONFIRMED
    """
    def _op() -> Order:
        order = _load(order_id)
        if order.status != ORDER_STATUS_CONFIRMED:
            raise PreconditionError(
                f"Only CONFIRMED orders can be marked DELIVERED (order #{order.order_number} is {order.status})"
            )
        now = utcnow()
        order.status = ORDER_STATUS_DELIVERED
        order.delivered_at = now
        order.updated_at = now
        db.session.commit()
        return order

    order = run_with_retry(_op)
    current_app.logger.info("Order #%s delivered", order.order_number)
    return order


def delete_all_orders() -> int:
    """
    Purge every order. Returns the number of orders deleted.

    Irreversible. Refunds are left in place (their order reference is advisory).
    Callers gate this behind a staff session.
    """
    db.session.query(OrderItem).delete(synchronize_session=False)
    deleted = db.session.query(Order).delete(synchronize_session=False)
    db.session.commit()
    current_app.logger.warning("All orders purged (%s deleted)", deleted)
    return deleted
