import os
from datetime import timedelta

class Config:
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False
    MAX_CONTENT_LENGTH = 1 * 1024 * 1024
    ENV = os.getenv("FLASK_ENV", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "dev-secret-change-me")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=12)

    # Shop pricing
    CURRENCY = os.getenv("CURRENCY", "gbp")
    FLAT_SHIPPING_RATE = os.getenv("FLAT_SHIPPING_RATE", "4.99")
    FREE_SHIPPING_THRESHOLD = os.getenv("FREE_SHIPPING_THRESHOLD", "50.00")
    MIN_CHARGE_AMOUNT = int(os.getenv("MIN_CHARGE_AMOUNT", "50"))  # minor units

    # Payments: "sandbox" settles in-process, "stripe" talks to the Stripe API
    PAYMENT_GATEWAY = os.getenv("PAYMENT_GATEWAY", "sandbox")
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
    STRIPE_API_BASE = os.getenv("STRIPE_API_BASE", "https://api.stripe.com/v1")
    PAYMENT_TIMEOUT = float(os.getenv("PAYMENT_TIMEOUT", "30"))

    @staticmethod
    def init_app(app):
        if not os.getenv("DATABASE_URL"):
            os.makedirs(app.instance_path, exist_ok=True)
            app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{os.path.join(app.instance_path, 'gradeshop.db')}"
        else:
            app.config["SQLALCHEMY_DATABASE_URI"] = os.getenv("DATABASE_URL")

class TestConfig(Config):
    TESTING = True
    LOG_LEVEL = "WARNING"
    JWT_SECRET_KEY = "test-secret-key-with-enough-length-for-hs256"
    PAYMENT_GATEWAY = "sandbox"
    CURRENCY = "gbp"
    FLAT_SHIPPING_RATE = "4.99"
    FREE_SHIPPING_THRESHOLD = "50.00"
    MIN_CHARGE_AMOUNT = 50

    @staticmethod
    def init_app(app):
        app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite:///:memory:"
