from __future__ import annotations

from ..extensions import db
from snackbar.time_utils import to_utc_z, utcnow


ORDER_STATUS_PENDING = "PENDING"
ORDER_STATUS_CONFIRMED = "CONFIRMED"
ORDER_STATUS_DELIVERED = "DELIVERED"

# Position in the lifecycle; status may only move forward
ORDER_STATUS_RANK = {
    ORDER_STATUS_PENDING: 0,
    ORDER_STATUS_CONFIRMED: 1,
    ORDER_STATUS_DELIVERED: 2,
}


class Order(db.Model):
    """
    Placed order.

    Items are snapshots (name/category/price at checkout), so catalog changes
    never rewrite history. total_amount is recomputed server-side from the
    lines and forced to 0 for employee orders.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.UniqueConstraint("order_number", name="uq_orders_order_number"),
        db.Index("ix_orders_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Sequential, human-facing number (max + 1)
    order_number = db.Column(db.Integer, nullable=False)

    categories = db.Column(db.JSON, nullable=False, default=list)
    total_amount = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default=ORDER_STATUS_PENDING, index=True)
    is_employee_order = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    delivered_at = db.Column(db.DateTime(timezone=True), nullable=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    items = db.relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Order id={self.id} number={self.order_number} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "orderNumber": self.order_number,
            "categories": list(self.categories or []),
            "items": [item.to_dict() for item in self.items],
            "totalAmount": self.total_amount,
            "status": self.status,
            "isEmployeeOrder": self.is_employee_order,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
            "deliveredAt": to_utc_z(self.delivered_at) if self.delivered_at else None,
        }


class OrderItem(db.Model):
    """One snapshotted line on an order."""
    __tablename__ = "order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)

    name = db.Column(db.String(120), nullable=False)
    category = db.Column(db.String(64), nullable=False)
    qty = db.Column(db.Integer, nullable=False)
    # Includes add-on deltas
    unit_price = db.Column(db.Integer, nullable=False)
    add_ons = db.Column(db.JSON, nullable=False, default=list)

    order = db.relationship("Order", back_populates="items")

    @property
    def line_total(self) -> int:
        return self.unit_price * self.qty

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "category": self.category,
            "qty": self.qty,
            "price": self.unit_price,
            "addOns": list(self.add_ons or []),
        }
