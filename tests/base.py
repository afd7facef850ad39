import hashlib
import hmac
import json
import time
import unittest
import uuid
from datetime import datetime, timezone
from flask_jwt_extended import create_access_token
from order_service.app import create_app
from order_service.errors import CheckoutSessionFailed, ProviderCallFailed
from order_service.extensions import db
from order_service.models import Address, Order, OrderItem, Product, User
from order_service.services.checkout import StripeCheckout

WEBHOOK_SECRET = "whsec_unit_test"


def sign(payload, secret=WEBHOOK_SECRET, timestamp=None):
    """Stripe-Signature header for a raw body, the way Stripe computes it."""
    ts = int(time.time()) if timestamp is None else timestamp
    signed = f"{ts}.".encode("utf-8") + payload
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"


class FakeCheckout(StripeCheckout):
    """Real signature checks, no network for sessions."""

    def __init__(self):
        super().__init__(api_key="sk_test_unused", webhook_secret=WEBHOOK_SECRET)
        self.created = []
        self.sessions_by_intent = {}
        self.fail_create = False
        self.fail_lookup = False

    def create_session(self, line_items, success_url, cancel_url, metadata):
        if self.fail_create:
            raise CheckoutSessionFailed("Checkout session failed: card_declined")
        session_id = f"cs_test_{len(self.created) + 1}"
        self.created.append({
            "id": session_id,
            "line_items": line_items,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata,
        })
        return session_id, f"https://checkout.stripe.test/{session_id}"

    def find_session_metadata(self, payment_intent_id):
        if self.fail_lookup:
            raise ProviderCallFailed("Session lookup failed: timeout")
        return self.sessions_by_intent.get(payment_intent_id)


class OrderServiceTestCase(unittest.TestCase):
    def setUp(self):
        self.checkout = FakeCheckout()
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "SQLALCHEMY_ENGINE_OPTIONS": {},
            "JWT_SECRET_KEY": "test-secret-with-enough-length-for-hs256",
            "FRONTEND_URL": "http://shop.test",
        }, checkout=self.checkout)
        self.ctx = self.app.app_context()
        self.ctx.push()
        db.create_all()
        self.client = self.app.test_client()

        self.buyer = User(name="Ann Buyer", email="ann@example.com", cart_items={"p1": 2})
        self.other = User(name="Bob Other", email="bob@example.com", cart_items={})
        db.session.add_all([self.buyer, self.other])
        db.session.commit()

        self.address = self.make_address(self.buyer.user_id)
        self.apple = self.make_product("Apple", 100)
        self.bread = self.make_product("Bread", 50)

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        self.ctx.pop()

    def make_product(self, name, price):
        product = Product(name=name, offer_price=price)
        db.session.add(product)
        db.session.commit()
        return product

    def make_address(self, user_id):
        address = Address(
            user_id=user_id, first_name="Ann", last_name="Buyer",
            street="1 Main St", city="Springfield", country="US",
        )
        db.session.add(address)
        db.session.commit()
        return address

    def make_order(self, user_id, payment_type="COD", status="PLACED", is_paid=False, created_at=None):
        order = Order(
            user_id=user_id,
            address_id=self.address.address_id,
            amount=102,
            payment_type=payment_type,
            status=status,
            is_paid=is_paid,
            created_at=created_at or datetime.now(timezone.utc),
        )
        order.items = [OrderItem(position=0, product_id=self.apple.product_id, quantity=1)]
        db.session.add(order)
        db.session.commit()
        return order

    def reload(self, model, pk):
        db.session.expire_all()
        return db.session.get(model, pk)

    def auth_headers(self, user_id, role=None):
        claims = {"role": role} if role else None
        token = create_access_token(identity=str(user_id), additional_claims=claims)
        return {"Authorization": f"Bearer {token}"}

    def order_body(self, *lines):
        return {
            "userId": str(self.buyer.user_id),
            "items": [{"product": str(p.product_id), "quantity": q} for p, q in lines],
            "address": str(self.address.address_id),
        }

    def post_event(self, event, secret=WEBHOOK_SECRET, signature=None):
        payload = json.dumps(event).encode("utf-8")
        headers = {"Stripe-Signature": signature or sign(payload, secret)}
        return self.client.post("/webhook", data=payload, headers=headers,
                                content_type="application/json")

    @staticmethod
    def session_completed(order_id=None, user_id=None):
        metadata = {}
        if order_id is not None:
            metadata["orderId"] = str(order_id)
        if user_id is not None:
            metadata["userId"] = str(user_id)
        return {
            "id": f"evt_{uuid.uuid4().hex[:12]}",
            "type": "checkout.session.completed",
            "data": {"object": {"id": "cs_test_1", "object": "checkout.session", "metadata": metadata}},
        }

    @staticmethod
    def payment_failed(payment_intent_id):
        return {
            "id": f"evt_{uuid.uuid4().hex[:12]}",
            "type": "payment_intent.payment_failed",
            "data": {"object": {"id": payment_intent_id, "object": "payment_intent"}},
        }
