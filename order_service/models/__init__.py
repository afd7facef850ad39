from order_service.models.product import Product
from order_service.models.address import Address
from order_service.models.user import User
from order_service.models.order import Order, OrderItem
