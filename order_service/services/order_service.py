"""
Order Service — Order Service
Order store: create, point lookup, atomic point update/delete, visible listing.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import or_
from order_service.errors import OrderNotFound, ValidationError
from order_service.extensions import db
from order_service.models.address import Address
from order_service.models.order import (
    Order,
    OrderItem,
    PAYMENT_COD,
    PAYMENT_ONLINE,
    STATUS_PAID,
    STATUS_PENDING_PAYMENT,
    STATUS_PLACED,
)


def to_uuid(value):
    """Parse an id from the wire; None when it is not a well-formed UUID."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def parse_order_request(data):
    """
    Validate {items: [{product, quantity}], address} from the request body.
    Returns ([(product_id, quantity), ...], address_id).
    """
    items = data.get("items")
    address = data.get("address")
    if not address or not isinstance(items, list) or not items:
        raise ValidationError("Invalid order data")

    parsed = []
    for item in items:
        if not isinstance(item, dict):
            raise ValidationError("Invalid order data")
        product_id = to_uuid(item.get("product"))
        quantity = item.get("quantity")
        if product_id is None:
            raise ValidationError("Invalid order data")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("Invalid order data")
        parsed.append((product_id, quantity))

    address_id = to_uuid(address)
    if address_id is None or db.session.get(Address, address_id) is None:
        raise ValidationError("Address not found")

    return parsed, address_id


def create_order(user_id, address_id, quote, payment_type):
    """
    Persist a priced order.
    COD orders are PLACED; Online orders wait in PENDING_PAYMENT until the
    payment provider confirms them. Neither is created paid.
    """
    order = Order(
        user_id=to_uuid(user_id),
        address_id=address_id,
        amount=quote.amount,
        payment_type=payment_type,
        status=STATUS_PENDING_PAYMENT if payment_type == PAYMENT_ONLINE else STATUS_PLACED,
        is_paid=False,
    )
    order.items = [
        OrderItem(position=i, product_id=li.product.product_id, quantity=li.quantity)
        for i, li in enumerate(quote.line_items)
    ]
    db.session.add(order)
    db.session.commit()
    return order


def get_order_by_id(order_id):
    oid = to_uuid(order_id)
    order = db.session.get(Order, oid) if oid else None
    if order is None:
        raise OrderNotFound(order_id)
    return order


def update_order_fields(order_id, fields, expected_status=None):
    """
    Single UPDATE statement keyed by id, optionally guarded by the current status.
    Returns True when the row changed, False when the guard did not match.
    Raises OrderNotFound when no such order exists.
    """
    oid = to_uuid(order_id)
    if oid is None:
        raise OrderNotFound(order_id)

    stmt = db.update(Order).where(Order.order_id == oid)
    if expected_status is not None:
        stmt = stmt.where(Order.status == expected_status)
    result = db.session.execute(stmt.values(**fields))
    db.session.commit()

    if result.rowcount:
        return True
    if expected_status is not None and db.session.get(Order, oid) is not None:
        return False
    raise OrderNotFound(order_id)


def mark_order_paid(order_id):
    return update_order_fields(
        order_id,
        {"is_paid": True, "status": STATUS_PAID, "paid_at": datetime.now(timezone.utc)},
        expected_status=STATUS_PENDING_PAYMENT,
    )


def delete_order(order_id, expected_status=None):
    """
    Delete an order and its items in one transaction.
    The order row is locked first so a concurrent status update cannot slip in
    between the guard and the delete.
    Returns True when deleted, False when the status guard did not match.
    Raises OrderNotFound when no such order exists.
    """
    oid = to_uuid(order_id)
    if oid is None:
        raise OrderNotFound(order_id)

    stmt = db.select(Order.order_id).where(Order.order_id == oid)
    if expected_status is not None:
        stmt = stmt.where(Order.status == expected_status)

    try:
        if db.session.execute(stmt.with_for_update()).scalar_one_or_none() is None:
            db.session.rollback()
            if expected_status is not None and db.session.get(Order, oid) is not None:
                return False
            raise OrderNotFound(order_id)

        db.session.execute(db.delete(OrderItem).where(OrderItem.order_id == oid))
        db.session.execute(db.delete(Order).where(Order.order_id == oid))
        db.session.commit()
    except OrderNotFound:
        raise
    except Exception:
        db.session.rollback()
        raise
    return True


def list_orders(user_id=None):
    """
    Orders a buyer or seller may see: COD orders, plus Online orders only once
    paid. Most recent first, items/products/address eagerly loaded.
    """
    query = Order.query.filter(
        or_(Order.payment_type == PAYMENT_COD, Order.is_paid.is_(True))
    )
    if user_id is not None:
        query = query.filter(Order.user_id == to_uuid(user_id))
    return query.order_by(Order.created_at.desc()).all()
