from __future__ import annotations

from ..extensions import db
from snackbar.time_utils import to_utc_z, utcnow


class Refund(db.Model):
    """
    One refund action against an order.

    IMMUTABLE: refunds are never updated or deleted. order_id and order_number
    are advisory references (no foreign key), so refunds survive an order
    purge. Remaining quantities are computed by order_id, since order numbers
    restart after a purge.
    """
    __tablename__ = "refunds"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, nullable=True, index=True)
    order_number = db.Column(db.Integer, nullable=False, index=True)
    refund_amount = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    items = db.relationship(
        "RefundItem",
        back_populates="refund",
        order_by="RefundItem.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Refund id={self.id} order={self.order_number} amount={self.refund_amount}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "orderNumber": self.order_number,
            "refundedItems": [item.to_dict() for item in self.items],
            "refundAmount": self.refund_amount,
            "createdAt": to_utc_z(self.created_at),
        }


class RefundItem(db.Model):
    """Refunded quantity of one order line, priced from the order snapshot."""
    __tablename__ = "refund_items"
    __table_args__ = (
        db.Index("ix_refund_items_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    refund_id = db.Column(db.Integer, db.ForeignKey("refunds.id", ondelete="CASCADE"), nullable=False, index=True)

    name = db.Column(db.String(120), nullable=False)
    category = db.Column(db.String(64), nullable=False)
    qty = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Integer, nullable=False)
    add_ons = db.Column(db.JSON, nullable=False, default=list)

    refund = db.relationship("Refund", back_populates="items")

    @property
    def amount(self) -> int:
        return self.unit_price * self.qty

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "category": self.category,
            "qty": self.qty,
            "price": self.unit_price,
            "addOns": list(self.add_ons or []),
        }
