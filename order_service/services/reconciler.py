"""
Reconciler — Order Service
Applies Stripe webhook events to local order state.

Online order lifecycle:
    PENDING_PAYMENT -> PAID     (checkout.session.completed)
    PENDING_PAYMENT -> removed  (payment_intent.payment_failed)

Delivery is at-least-once and in any order, so every transition must be safe
to apply again, and a missing order is never an error.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from order_service.errors import OrderNotFound, SignatureInvalid
from order_service.models.order import STATUS_PENDING_PAYMENT
from order_service.services.cart_service import clear_cart
from order_service.services.order_service import delete_order, mark_order_paid

logger = logging.getLogger(__name__)

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
PAYMENT_INTENT_FAILED = "payment_intent.payment_failed"


@dataclass(frozen=True)
class CheckoutSessionCompleted:
    event_id: str
    order_id: Optional[str] = None
    owner_id: Optional[str] = None


@dataclass(frozen=True)
class PaymentIntentFailed:
    event_id: str
    payment_intent_id: str


@dataclass(frozen=True)
class IgnoredEvent:
    event_id: str
    event_type: str


def parse_event(data):
    """Map a verified Stripe event onto one of the event types above."""
    if not isinstance(data, dict) or not data.get("type"):
        raise SignatureInvalid("Invalid event")

    event_id = data.get("id")
    event_type = data["type"]
    envelope = data.get("data")
    obj = envelope.get("object") if isinstance(envelope, dict) else None
    if not isinstance(obj, dict):
        obj = {}

    if event_type == CHECKOUT_SESSION_COMPLETED:
        metadata = obj.get("metadata")
        if not isinstance(metadata, dict):
            metadata = {}
        return CheckoutSessionCompleted(
            event_id=event_id,
            order_id=metadata.get("orderId"),
            owner_id=metadata.get("userId"),
        )
    if event_type == PAYMENT_INTENT_FAILED and obj.get("id"):
        return PaymentIntentFailed(event_id=event_id, payment_intent_id=obj["id"])
    return IgnoredEvent(event_id=event_id, event_type=event_type)


def construct_event(payload, sig_header, checkout):
    """Verify the raw body, then parse it. Raises SignatureInvalid."""
    return parse_event(checkout.construct_event(payload, sig_header))


def reconcile(event, checkout):
    if isinstance(event, CheckoutSessionCompleted):
        _apply_session_completed(event)
    elif isinstance(event, PaymentIntentFailed):
        _apply_payment_failed(event, checkout)
    else:
        logger.info("Unhandled event type: %s", event.event_type)


def _apply_session_completed(event):
    if event.order_id:
        try:
            if mark_order_paid(event.order_id):
                logger.info("Order %s marked paid (event %s)", event.order_id, event.event_id)
            else:
                logger.info("Order %s not awaiting payment, left as is", event.order_id)
        except OrderNotFound:
            logger.warning("Order %s not found for event %s", event.order_id, event.event_id)
    else:
        logger.warning("No orderId in session metadata (event %s)", event.event_id)

    if event.owner_id:
        if not clear_cart(event.owner_id):
            logger.warning("User %s not found, cart not cleared", event.owner_id)
    else:
        logger.warning("No userId in session metadata (event %s)", event.event_id)


def _apply_payment_failed(event, checkout):
    metadata = checkout.find_session_metadata(event.payment_intent_id)
    order_id = (metadata or {}).get("orderId")
    if not order_id:
        logger.info("No order linked to payment intent %s", event.payment_intent_id)
        return

    try:
        if delete_order(order_id, expected_status=STATUS_PENDING_PAYMENT):
            logger.info("Order %s removed after failed payment", order_id)
        else:
            logger.info("Order %s already settled, not removed", order_id)
    except OrderNotFound:
        logger.info("Order %s already removed", order_id)
