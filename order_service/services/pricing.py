"""
Pricing — Order Service
Amounts are always re-derived from stored product prices; a client-supplied
amount is never read.
"""

from collections import namedtuple
from order_service.errors import ProductNotFound
from order_service.models.product import Product

TAX_PERCENT = 2

LineItem = namedtuple("LineItem", ["product", "quantity"])
Quote = namedtuple("Quote", ["line_items", "subtotal", "tax", "amount"])


def tax_for(subtotal):
    # floor(subtotal * 0.02) without going through floats
    return subtotal * TAX_PERCENT // 100


def resolve_line_items(items):
    """
    Resolve (product_id, quantity) pairs against the product table in one query.
    Raises ProductNotFound for the first id that does not resolve, so nothing
    downstream ever sees a partial order.
    """
    product_ids = {product_id for product_id, _ in items}
    products = {
        p.product_id: p
        for p in Product.query.filter(Product.product_id.in_(product_ids)).all()
    }

    line_items = []
    for product_id, quantity in items:
        product = products.get(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        line_items.append(LineItem(product, quantity))
    return line_items


def price_items(items):
    line_items = resolve_line_items(items)
    subtotal = sum(li.product.offer_price * li.quantity for li in line_items)
    tax = tax_for(subtotal)
    return Quote(line_items, subtotal, tax, subtotal + tax)
