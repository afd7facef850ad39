"""
Order Model — Order Service
Payment type: COD | Online
Status: PLACED (COD) | PENDING_PAYMENT (Online, awaiting provider) | PAID
An Online order that fails payment is deleted, not given a status.
"""

import uuid
from datetime import datetime, timezone
from order_service.extensions import db

PAYMENT_COD = "COD"
PAYMENT_ONLINE = "Online"

STATUS_PLACED = "PLACED"
STATUS_PENDING_PAYMENT = "PENDING_PAYMENT"
STATUS_PAID = "PAID"


class Order(db.Model):
    __tablename__ = "orders"

    order_id = db.Column(
        db.UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    user_id = db.Column(db.UUID(as_uuid=True), nullable=False, index=True)
    address_id = db.Column(
        db.UUID(as_uuid=True),
        db.ForeignKey("addresses.address_id"),
        nullable=False
    )
    amount = db.Column(db.BigInteger, nullable=False)
    payment_type = db.Column(
        db.Enum(PAYMENT_COD, PAYMENT_ONLINE, name="payment_type"),
        nullable=False
    )
    status = db.Column(
        db.Enum(STATUS_PLACED, STATUS_PENDING_PAYMENT, STATUS_PAID, name="order_status"),
        nullable=False,
        default=STATUS_PLACED
    )
    is_paid = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True
    )
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)

    address = db.relationship("Address", lazy="selectin")
    items = db.relationship(
        "OrderItem",
        lazy="selectin",
        order_by="OrderItem.position",
        cascade="all, delete-orphan",
        back_populates="order",
    )

    def to_dict(self):
        return {
            "_id":         str(self.order_id),
            "userId":      str(self.user_id),
            "items":       [item.to_dict() for item in self.items],
            "amount":      self.amount,
            "address":     self.address.to_dict() if self.address else None,
            "status":      self.status,
            "paymentType": self.payment_type,
            "isPaid":      self.is_paid,
            "createdAt":   self.created_at.isoformat(),
            "paidAt":      self.paid_at.isoformat() if self.paid_at else None,
        }


class OrderItem(db.Model):
    __tablename__ = "order_items"

    order_id = db.Column(
        db.UUID(as_uuid=True),
        db.ForeignKey("orders.order_id", ondelete="CASCADE"),
        primary_key=True
    )
    position = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(
        db.UUID(as_uuid=True),
        db.ForeignKey("products.product_id"),
        nullable=False
    )
    quantity = db.Column(db.Integer, nullable=False)

    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_order_items_quantity"),
    )

    order = db.relationship("Order", back_populates="items")
    product = db.relationship("Product", lazy="selectin")

    def to_dict(self):
        return {
            "product":  self.product.to_dict() if self.product else None,
            "quantity": self.quantity,
        }
