from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required
from sqlalchemy.exc import SQLAlchemyError
from order_service.auth import seller_required
from order_service.errors import OrderServiceError, ValidationError
from order_service.extensions import db
from order_service.models.order import PAYMENT_COD, PAYMENT_ONLINE
from order_service.services.order_service import create_order, list_orders, parse_order_request, to_uuid
from order_service.services.pricing import price_items

order_bp = Blueprint('orders', __name__)


def _failure(message, status_code):
    return jsonify({'success': False, 'message': message}), status_code


def _buyer_id():
    user_id = to_uuid(get_jwt_identity())
    if user_id is None:
        raise ValidationError('Invalid user')
    return user_id


@order_bp.route('/cod', methods=['POST'])
@jwt_required()
def place_order_cod():
    """
    Place a Cash on Delivery order
    ---
    tags:
      - Orders
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - items
            - address
          properties:
            items:
              type: array
              items:
                type: object
                properties:
                  product:
                    type: string
                  quantity:
                    type: integer
            address:
              type: string
    responses:
      200:
        description: Order placed
      400:
        description: Invalid order data
      500:
        description: Order could not be placed
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}

    try:
        user_id = _buyer_id()
        items, address_id = parse_order_request(data)
        current_app.logger.info("Received COD order from %s (%d items)", user_id, len(items))
        quote = price_items(items)
        order = create_order(user_id, address_id, quote, PAYMENT_COD)
    except ValidationError as e:
        current_app.logger.warning("Invalid COD order: %s", e.message)
        return _failure(e.message, 400)
    except OrderServiceError as e:
        current_app.logger.error("COD order failed: %s", e.message)
        return _failure(e.message, e.status_code)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Database error placing COD order: %s", e)
        return _failure('Order could not be placed', 500)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Unexpected error placing COD order")
        return _failure('Order could not be placed', 500)

    current_app.logger.info("COD order %s created, amount %d", order.order_id, order.amount)
    return jsonify({'success': True, 'message': 'Order placed successfully'}), 200


@order_bp.route('/stripe', methods=['POST'])
@jwt_required()
def place_order_stripe():
    """
    Place an online order and open a Stripe Checkout session
    ---
    tags:
      - Orders
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - items
            - address
          properties:
            items:
              type: array
              items:
                type: object
                properties:
                  product:
                    type: string
                  quantity:
                    type: integer
            address:
              type: string
    responses:
      200:
        description: Checkout session created, url to redirect the buyer to
      400:
        description: Invalid order data
      500:
        description: Order or checkout session could not be created
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    origin = request.headers.get('Origin') or current_app.config['FRONTEND_URL']
    checkout = current_app.extensions['checkout']

    try:
        user_id = _buyer_id()
        items, address_id = parse_order_request(data)
        current_app.logger.info("Received online order from %s (%d items)", user_id, len(items))
        quote = price_items(items)

        # The row must exist before a session can reference its id
        order = create_order(user_id, address_id, quote, PAYMENT_ONLINE)
        current_app.logger.info("Online order %s pending payment, amount %d", order.order_id, order.amount)

        line_items = [
            {'name': li.product.name, 'unit_price': li.product.offer_price, 'quantity': li.quantity}
            for li in quote.line_items
        ]
        if quote.tax:
            line_items.append({'name': 'Tax', 'unit_price': quote.tax, 'quantity': 1})

        session_id, url = checkout.create_session(
            line_items,
            success_url=f"{origin}/loader?next=my-orders",
            cancel_url=f"{origin}/cart",
            metadata={'orderId': str(order.order_id), 'userId': str(user_id)},
        )
    except ValidationError as e:
        current_app.logger.warning("Invalid online order: %s", e.message)
        return _failure(e.message, 400)
    except OrderServiceError as e:
        current_app.logger.error("Online order failed: %s", e.message)
        return _failure(e.message, e.status_code)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Database error placing online order: %s", e)
        return _failure('Order could not be placed', 500)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Unexpected error placing online order")
        return _failure('Order could not be placed', 500)

    current_app.logger.info("Stripe session %s created for order %s", session_id, order.order_id)
    return jsonify({'success': True, 'url': url}), 200


@order_bp.route('/user', methods=['GET'])
@jwt_required()
def get_user_orders():
    """
    Orders of the authenticated buyer
    ---
    tags:
      - Orders
    security:
      - Bearer: []
    responses:
      200:
        description: COD orders and paid online orders, newest first
    """
    try:
        orders = list_orders(_buyer_id())
    except ValidationError as e:
        return _failure(e.message, 400)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Database error listing user orders: %s", e)
        return _failure('Could not load orders', 500)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Unexpected error listing user orders")
        return _failure('Could not load orders', 500)

    return jsonify({'success': True, 'orders': [o.to_dict() for o in orders]}), 200


@order_bp.route('/seller', methods=['GET'])
@seller_required
def get_all_orders():
    """
    All orders (seller / admin)
    ---
    tags:
      - Orders
    security:
      - Bearer: []
    responses:
      200:
        description: COD orders and paid online orders, newest first
      403:
        description: Not a seller
    """
    try:
        orders = list_orders()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Database error listing orders: %s", e)
        return _failure('Could not load orders', 500)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Unexpected error listing orders")
        return _failure('Could not load orders', 500)

    return jsonify({'success': True, 'orders': [o.to_dict() for o in orders]}), 200
