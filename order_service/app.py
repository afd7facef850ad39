"""
Order Service — Flask application
Places COD and Stripe Checkout orders, reconciles Stripe webhooks, lists orders.
"""

import logging
import os
from datetime import datetime, timezone
from dotenv import load_dotenv
from flask import Flask, jsonify
from flasgger import Swagger
from order_service.extensions import db, jwt
from order_service import models  # noqa: F401  register models
from order_service.services.checkout import StripeCheckout

load_dotenv()


def _database_uri():
    if os.environ.get('DATABASE_URL'):
        return os.environ['DATABASE_URL']
    return (
        f"postgresql://{os.environ.get('DB_USER', 'order_svc_user')}"
        f":{os.environ.get('DB_PASS', 'password')}"
        f"@{os.environ.get('DB_HOST', 'orders-db')}"
        f":5432"
        f"/{os.environ.get('DB_NAME', 'orders_db')}"
    )


def _engine_options():
    """Pool settings plus libpq connect and statement timeouts, in seconds from env."""
    db_timeout = int(os.environ.get('DB_TIMEOUT', 5))
    return {
        'pool_pre_ping': True,
        'pool_timeout': int(os.environ.get('DB_POOL_TIMEOUT', 5)),
        'connect_args': {
            'connect_timeout': db_timeout,
            'options': f"-c statement_timeout={db_timeout * 1000}",
        },
    }


def create_app(test_config=None, checkout=None):
    app = Flask(__name__)

    # Configuration
    app.config['SQLALCHEMY_DATABASE_URI'] = _database_uri()
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['SQLALCHEMY_ENGINE_OPTIONS'] = _engine_options()
    app.config['JWT_SECRET_KEY'] = os.environ.get('JWT_SECRET', 'dev-secret-change-me')
    app.config['STRIPE_SECRET_KEY'] = os.environ.get('STRIPE_SECRET_KEY', 'sk_test_placeholder')
    app.config['STRIPE_WEBHOOK_SECRET'] = os.environ.get('STRIPE_WEBHOOK_SECRET', 'whsec_test_secret')
    app.config['STRIPE_TIMEOUT'] = int(os.environ.get('STRIPE_TIMEOUT', 10))
    app.config['STRIPE_WEBHOOK_TOLERANCE'] = int(os.environ.get('STRIPE_WEBHOOK_TOLERANCE', 300))
    app.config['CURRENCY'] = os.environ.get('CURRENCY', 'usd')
    app.config['FRONTEND_URL'] = os.environ.get('FRONTEND_URL', 'http://localhost:5173')
    app.config['LOG_LEVEL'] = os.environ.get('LOG_LEVEL', 'INFO')

    if test_config:
        app.config.update(test_config)

    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger('order_service').setLevel(app.config['LOG_LEVEL'])

    # Initialize Extensions
    db.init_app(app)
    jwt.init_app(app)

    if checkout is None:
        checkout = StripeCheckout(
            api_key=app.config['STRIPE_SECRET_KEY'],
            webhook_secret=app.config['STRIPE_WEBHOOK_SECRET'],
            currency=app.config['CURRENCY'],
            timeout=app.config['STRIPE_TIMEOUT'],
            tolerance=app.config['STRIPE_WEBHOOK_TOLERANCE'],
        )
    app.extensions['checkout'] = checkout

    Swagger(app)

    # Register Blueprints
    from order_service.routes.orders import order_bp
    app.register_blueprint(order_bp, url_prefix='/api/order')

    from order_service.routes.webhooks import webhooks_bp
    app.register_blueprint(webhooks_bp)

    # --- Health check ---------------------------------------------------
    @app.route('/health')
    def health():
        try:
            db.session.execute(db.text('SELECT 1'))
            return jsonify({
                "status": "healthy",
                "service": "order-service",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }), 200
        except Exception as e:
            return jsonify({"service": "order-service", "status": "unhealthy", "error": str(e)}), 503

    @app.cli.command('init-db')
    def init_db():
        """Create all tables."""
        db.create_all()
        print("Tables created")

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(host='0.0.0.0', port=5001)
