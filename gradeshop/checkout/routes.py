# gradeshop/checkout/routes.py
import logging
from flask import request, jsonify

from ..extensions import db
from ..pricing import DiscountError
from ..services import cart_service, checkout_service
from ..services.stores import CartStore
from ..utils.api import api_ok, api_error
from ..utils.timeutil import utcnow
from . import bp

logger = logging.getLogger(__name__)

def ok(msg, data=None, status=200):
    r = jsonify(api_ok(msg, data)); r.status_code = status; return r
def err(msg, status=400, data=None):
    r = jsonify(api_error(msg, data)); r.status_code = status; return r

def _cart_uuid():
    return request.headers.get("X-Cart-Id")

@bp.get("/summary")
def summary():
    cart = CartStore().get_cart(_cart_uuid())
    pricing = cart_service.price_cart(cart, utcnow())
    db.session.commit()
    resp = ok("summary", pricing.as_api())
    resp.headers["X-Cart-Id"] = cart.uuid
    return resp

@bp.post("/payment-intent")
def payment_intent():
    """
    Quote the cart and open a payment intent for exactly that amount.
    Body (optional): { "metadata": {...} }
    """
    cart_uuid = _cart_uuid()
    if not cart_uuid:
        return err("X-Cart-Id header is required", 422)
    cart = CartStore().get_cart(cart_uuid, create=False)
    if not cart:
        return err("cart not found", 404)

    data = request.get_json(silent=True) or {}
    outcome = checkout_service.create_payment_intent(cart, utcnow(), metadata=data.get("metadata"))
    db.session.commit()

    if outcome.error is not None:
        status = 409 if isinstance(outcome.error, DiscountError) else 422
        return err(outcome.error.message, status, {
            **outcome.error.as_api(),
            **outcome.pricing.as_api(),
        })

    intent = outcome.intent
    resp = ok("payment intent created", {
        "client_secret": intent.client_secret,
        "payment_intent_id": intent.intent_id,
        "amount": intent.amount,
        "currency": intent.currency,
        **outcome.pricing.as_api(),
    }, status=201)
    resp.headers["X-Cart-Id"] = cart.uuid
    return resp

@bp.post("/confirm")
def confirm():
    """
    Body: {
      "payment_intent_id": "pi_...",
      "customer": {"name", "email", "phone"},
      "shipping_address": {...}
    }
    """
    cart_uuid = _cart_uuid()
    data = request.get_json(silent=True) or {}
    intent_id = (data.get("payment_intent_id") or "").strip()
    if not cart_uuid:
        return err("X-Cart-Id header is required", 422)
    if not intent_id:
        return err("payment_intent_id is required", 422)

    customer = data.get("customer") or {}
    if not customer.get("email") or not customer.get("name"):
        return err("customer name and email are required", 422)

    outcome = checkout_service.confirm_payment(
        cart_uuid, intent_id, utcnow(),
        customer=customer,
        shipping_address=data.get("shipping_address") or {},
    )

    if outcome.status == "created":
        resp = ok("order created", {"order": outcome.order.as_api()}, status=201)
        resp.headers["X-Order-Code"] = outcome.order.code
        return resp
    if outcome.status == "existing":
        return ok("order already created", {"order": outcome.order.as_api()})
    if outcome.status == "payment_incomplete":
        return err(outcome.error.message, 402, outcome.error.as_api())

    # captured but not reconciled: never report this as a failed payment
    return ok(outcome.error.message, {
        "order_status": "pending_verification",
        "payment_reference": intent_id,
        "reference": outcome.exception.id if outcome.exception else None,
    }, status=202)
