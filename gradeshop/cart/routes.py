# gradeshop/cart/routes.py
from __future__ import annotations
from flask import request, jsonify

from ..extensions import db
from ..services import cart_service
from ..services.cart_service import CartError
from ..services.stores import CartStore
from ..pricing import DiscountErrorKind
from ..utils.api import api_ok, api_error
from ..utils.money import round_money
from ..utils.timeutil import utcnow
from . import bp

# ---- standard API response format ------------------------------------------
def ok(msg, data=None, status=200):
    r = jsonify(api_ok(msg, data)); r.status_code = status; return r
def err(msg, status=400, data=None):
    r = jsonify(api_error(msg, data)); r.status_code = status; return r

_DISCOUNT_STATUS = {
    DiscountErrorKind.NOT_FOUND: 404,
    DiscountErrorKind.ALREADY_APPLIED: 409,
    DiscountErrorKind.NOT_STACKABLE: 409,
    DiscountErrorKind.DUPLICATE_FREE_SHIPPING: 409,
}

# ---- helpers ---------------------------------------------------------------

def _resolve_cart():
    return CartStore().get_cart(request.headers.get("X-Cart-Id"))

def _respond(msg, pricing, status=200, extra_adjustments=None, extra=None):
    db.session.commit()
    data = pricing.as_api()
    data.update(extra or {})
    if extra_adjustments:
        data["adjustments"] = extra_adjustments + data["adjustments"]
    resp = ok(msg, data, status=status)
    resp.headers["X-Cart-Id"] = pricing.cart.uuid
    return resp

def _priced(cart):
    return cart_service.price_cart(cart, utcnow())

# ---- endpoints -------------------------------------------------------------

@bp.get("")
def get_cart():
    cart = _resolve_cart()
    return _respond("cart", _priced(cart))

@bp.post("/items")
def add_item():
    """
    Body: { "product_id": int, "quantity": int }
    Header: X-Cart-Id: <uuid>
    """
    cart = _resolve_cart()
    data = request.get_json(silent=True) or {}
    if not data.get("product_id"):
        return err("product_id is required", 422)
    try:
        adjustments = cart_service.add_item(cart, data.get("product_id"), data.get("quantity", 1))
    except CartError as e:
        db.session.rollback()
        return err(e.message, e.status)
    return _respond("item added", _priced(cart), status=201, extra_adjustments=adjustments)

@bp.put("/items/<int:product_id>")
@bp.patch("/items/<int:product_id>")
def update_item(product_id: int):
    """
    Body: { "quantity": int }
    Quantity below 1 removes the line; above stock is capped.
    """
    cart = _resolve_cart()
    data = request.get_json(silent=True) or {}
    if "quantity" not in data:
        return err("quantity is required", 422)
    try:
        adjustments = cart_service.set_quantity(cart, product_id, data.get("quantity"))
    except CartError as e:
        db.session.rollback()
        return err(e.message, e.status)
    return _respond("item updated", _priced(cart), extra_adjustments=adjustments)

@bp.delete("/items/<int:product_id>")
def remove_item(product_id: int):
    cart = _resolve_cart()
    if not cart_service.remove_item(cart, product_id):
        return err("item not found in this cart", 404)
    return _respond("item removed", _priced(cart))

@bp.delete("/items")
def clear_items():
    cart = _resolve_cart()
    cart_service.clear_items(cart)
    return _respond("all items removed", _priced(cart))

# ---- discount codes --------------------------------------------------------

@bp.post("/discounts")
def apply_discount():
    """
    Body: { "code": "SAVE20" }
    Runs the full admission check against the codes already applied.
    """
    cart = _resolve_cart()
    data = request.get_json(silent=True) or {}
    code = (data.get("code") or "").strip()
    if not code:
        return err("Please enter a discount code", 422)

    pricing, applied, derr = cart_service.apply_code(cart, code, utcnow())
    if derr:
        db.session.commit()
        resp = err(derr.message, _DISCOUNT_STATUS.get(derr.kind, 422), {
            **derr.as_api(),
            **pricing.as_api(),
        })
        resp.headers["X-Cart-Id"] = cart.uuid
        return resp

    return _respond("discount applied", pricing, extra={"applied": {
        "code": applied.rule.code,
        "type": applied.rule.kind.value,
        "description": applied.rule.description,
        "savings": str(round_money(applied.savings)),
    }})

@bp.delete("/discounts/<code>")
def remove_discount(code: str):
    cart = _resolve_cart()
    if not cart_service.remove_code(cart, code):
        return err("discount code not applied to this cart", 404)
    return _respond("discount removed", _priced(cart))

@bp.delete("/discounts")
def clear_discounts():
    cart = _resolve_cart()
    cart_service.clear_codes(cart)
    return _respond("all discounts removed", _priced(cart))
