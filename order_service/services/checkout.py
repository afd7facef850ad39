"""
Checkout — Order Service
Adapter around Stripe hosted Checkout. Constructed once per app and stored in
app.extensions["checkout"], so tests can hand create_app() a fake instead.
"""

import logging
import stripe
from order_service.errors import CheckoutSessionFailed, ProviderCallFailed, SignatureInvalid

logger = logging.getLogger(__name__)


class StripeCheckout:
    def __init__(self, api_key, webhook_secret, currency="usd", timeout=10, tolerance=300):
        self.webhook_secret = webhook_secret
        self.currency = currency
        self.tolerance = tolerance
        self.client = stripe.StripeClient(
            api_key,
            http_client=stripe.RequestsClient(timeout=timeout),
        )

    def create_session(self, line_items, success_url, cancel_url, metadata):
        """
        Open a hosted payment session and return (session_id, redirect_url).
        line_items: [{"name", "unit_price", "quantity"}], unit_price in whole
        currency units; Stripe wants minor units.
        """
        params = {
            "payment_method_types": ["card"],
            "mode": "payment",
            "success_url": success_url,
            "cancel_url": cancel_url,
            "line_items": [
                {
                    "price_data": {
                        "currency": self.currency,
                        "product_data": {"name": item["name"]},
                        "unit_amount": item["unit_price"] * 100,
                    },
                    "quantity": item["quantity"],
                }
                for item in line_items
            ],
            "metadata": {k: str(v) for k, v in metadata.items()},
        }
        try:
            session = self.client.checkout.sessions.create(params=params)
        except stripe.StripeError as e:
            logger.error("Stripe session creation failed: %s", e)
            raise CheckoutSessionFailed(f"Checkout session failed: {e.user_message or e}") from e
        return session.id, session.url

    def find_session_metadata(self, payment_intent_id):
        """
        Correlation metadata of the first checkout session tied to a payment
        intent, or None when Stripe knows no such session.
        """
        try:
            sessions = self.client.checkout.sessions.list(
                params={"payment_intent": payment_intent_id, "limit": 1}
            )
        except stripe.StripeError as e:
            logger.error("Stripe session lookup failed for %s: %s", payment_intent_id, e)
            raise ProviderCallFailed(f"Session lookup failed: {e}") from e

        if not sessions.data:
            return None
        metadata = sessions.data[0].metadata
        return dict(metadata) if metadata else {}

    def construct_event(self, payload, sig_header):
        """
        Check the Stripe-Signature header against the exact raw body bytes and
        build the event from them. Raises SignatureInvalid otherwise.
        """
        if not sig_header:
            raise SignatureInvalid("Missing Stripe-Signature header")
        try:
            return stripe.Webhook.construct_event(
                payload, sig_header, self.webhook_secret, self.tolerance
            )
        except ValueError as e:
            # Invalid payload
            raise SignatureInvalid("Invalid payload") from e
        except stripe.SignatureVerificationError as e:
            raise SignatureInvalid(str(e)) from e

