from flask import Blueprint, current_app, jsonify, request
from order_service.errors import SignatureInvalid
from order_service.extensions import db
from order_service.services.reconciler import construct_event, reconcile

webhooks_bp = Blueprint('webhooks', __name__)


@webhooks_bp.route('/webhook', methods=['POST'])
def stripe_webhook():
    """
    Handle Stripe Webhooks
    ---
    tags:
      - Webhooks
    responses:
      200:
        description: Event processed (or deliberately ignored)
      400:
        description: Invalid payload or signature, do not retry
      500:
        description: Processing failed, Stripe should retry
    """
    # Signatures cover the exact bytes received
    payload = request.get_data(cache=False)
    sig_header = request.headers.get('Stripe-Signature')
    checkout = current_app.extensions['checkout']

    try:
        event = construct_event(payload, sig_header, checkout)
    except SignatureInvalid as e:
        current_app.logger.warning("Rejected webhook: %s", e.message)
        return f"Webhook Error: {e.message}", 400, {'Content-Type': 'text/plain'}

    current_app.logger.info("Webhook event %s received: %s", event.event_id, type(event).__name__)
    try:
        reconcile(event, checkout)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Webhook processing failed for event %s", event.event_id)
        return "Webhook processing failed.", 500, {'Content-Type': 'text/plain'}

    return jsonify({'received': True}), 200
