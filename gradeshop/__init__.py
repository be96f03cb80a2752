import logging
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from .extensions import db, jwt, cors, migrate
from .config import Config
from .utils.api import api_error

logger = logging.getLogger(__name__)

def _configure_logging(app):
    logging.basicConfig(
        level=getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

def register_error_handlers(app):
    from .services.cart_service import CartError
    from .services.payment_gateway import PaymentGatewayError

    @app.errorhandler(CartError)
    def handle_cart_error(e):
        r = jsonify(api_error(e.message)); r.status_code = e.status
        return r

    @app.errorhandler(ValueError)
    def handle_value_error(e):
        r = jsonify(api_error(str(e))); r.status_code = 422
        return r

    @app.errorhandler(PaymentGatewayError)
    def handle_gateway_error(e):
        logger.error("payment gateway error: %s", e)
        r = jsonify(api_error("Payment service unavailable, please try again", {"detail": str(e)}))
        r.status_code = 502
        return r

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        r = jsonify(api_error(e.description or e.name)); r.status_code = e.code
        return r

def create_app(config_object=Config):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)
    config_object.init_app(app)

    _configure_logging(app)

    # Init extensions
    db.init_app(app)
    jwt.init_app(app)
    cors.init_app(app, resources={r"/api/*": {"origins": "*"}}, expose_headers=["X-Cart-Id", "X-Order-Code"])
    migrate.init_app(app, db)

    # Register blueprints
    from .cart import bp as cart_bp; app.register_blueprint(cart_bp)
    from .checkout import bp as checkout_bp; app.register_blueprint(checkout_bp)
    from .discount import bp as discount_bp; app.register_blueprint(discount_bp)
    from .order import bp as order_bp; app.register_blueprint(order_bp)

    register_error_handlers(app)

    from .cli import register_cli
    register_cli(app)

    @app.get("/")
    def health():
        return jsonify(ok=True, msg="API running")

    with app.app_context():
        from . import model  # noqa: F401
        db.create_all()

    logger.info("gradeshop ready: gateway=%s currency=%s", app.config["PAYMENT_GATEWAY"], app.config["CURRENCY"])
    return app
