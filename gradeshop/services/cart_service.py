import logging
from dataclasses import dataclass, field

from flask import current_app

from ..extensions import db
from ..model import Cart, CartDiscount, CartItem, Product
from ..pricing import (
    OrderSummary,
    ShippingPolicy,
    cart_subtotal,
    compute_summary,
    evaluate_discount,
    revalidate,
)
from .stores import CartStore, CatalogStore, DiscountRegistry

logger = logging.getLogger(__name__)


class CartError(ValueError):
    def __init__(self, message: str, status: int = 422):
        super().__init__(message)
        self.message = message
        self.status = status


@dataclass
class CartPricing:
    cart: Cart
    lines: list
    applied: tuple
    summary: OrderSummary
    adjustments: list = field(default_factory=list)
    removed_discounts: list = field(default_factory=list)

    def as_api(self):
        return {
            "cart": self.cart.as_api(),
            "summary": self.summary.as_api(),
            "adjustments": self.adjustments,
            "removed_discounts": [e.as_api() for _, e in self.removed_discounts],
        }


def shipping_policy(config=None) -> ShippingPolicy:
    config = config or current_app.config
    return ShippingPolicy(
        flat_rate=config["FLAT_SHIPPING_RATE"],
        free_shipping_threshold=config["FREE_SHIPPING_THRESHOLD"],
    )


def sync_stock(cart: Cart, catalog: CatalogStore) -> list:
    """
    Clamp every line to live stock. Lines whose product is gone or sold out
    are removed. Returns the adjustments made, for the customer to see.
    """
    adjustments = []
    for it in list(cart.items):
        snap = catalog.get_product(it.product_id)
        available = snap.stock if snap else 0
        if available <= 0:
            adjustments.append({
                "product_id": it.product_id,
                "requested": it.quantity,
                "quantity": 0,
                "reason": "out_of_stock" if snap else "unavailable",
            })
            cart.items.remove(it)
        elif it.quantity > available:
            adjustments.append({
                "product_id": it.product_id,
                "requested": it.quantity,
                "quantity": available,
                "reason": "insufficient_stock",
            })
            it.quantity = available
    if adjustments:
        logger.info("cart %s adjusted to stock: %s", cart.uuid, adjustments)
        db.session.flush()
    return adjustments


def _drop_links(cart: Cart, dropped) -> None:
    for rule, _err in dropped:
        link = cart.find_discount_link(rule.code)
        if link:
            cart.discounts.remove(link)
    if dropped:
        db.session.flush()


def price_cart(cart: Cart, now, *, catalog=None, registry=None, carts=None) -> CartPricing:
    """Stock check, re-validate applied codes, then price from scratch."""
    catalog = catalog or CatalogStore()
    registry = registry or DiscountRegistry()
    carts = carts or CartStore()

    adjustments = sync_stock(cart, catalog)
    lines = carts.get_lines(cart)
    subtotal = cart_subtotal(lines)

    kept, dropped = revalidate(carts.applied_rules(cart), subtotal, now, registry)
    _drop_links(cart, dropped)

    summary = compute_summary(lines, shipping_policy(), kept, now)
    return CartPricing(
        cart=cart,
        lines=lines,
        applied=kept,
        summary=summary,
        adjustments=adjustments,
        removed_discounts=dropped,
    )


def _active_product(product_id) -> Product:
    try:
        product_id = int(product_id)
    except (TypeError, ValueError):
        raise CartError("product_id must be an integer")
    product = db.session.get(Product, product_id)
    if not product or product.status is False:
        raise CartError("product not found or inactive", 404)
    return product


def _parse_qty(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise CartError("quantity must be an integer")


def add_item(cart: Cart, product_id, quantity=1) -> list:
    """Add or top up a line; the quantity is capped at available stock."""
    qty = _parse_qty(quantity)
    if qty < 1:
        raise CartError("quantity must be >= 1")

    product = _active_product(product_id)
    available = product.available
    if available <= 0:
        raise CartError("out of stock", 409)

    adjustments = []
    item = cart.find_item(product.id)
    wanted = qty + (item.quantity if item else 0)
    new_qty = min(wanted, available)
    if new_qty < wanted:
        adjustments.append({
            "product_id": product.id,
            "requested": wanted,
            "quantity": new_qty,
            "reason": "insufficient_stock",
        })

    if item:
        item.quantity = new_qty
    else:
        cart.items.append(CartItem(product_id=product.id, product=product, quantity=new_qty))
    db.session.flush()
    return adjustments


def set_quantity(cart: Cart, product_id, quantity) -> list:
    """Set a line's quantity. Anything below 1 deletes the line."""
    qty = _parse_qty(quantity)
    item = cart.find_item(int(product_id))
    if qty < 1:
        if item:
            cart.items.remove(item)
            db.session.flush()
        return []

    product = _active_product(product_id)
    available = product.available
    if available <= 0:
        raise CartError("out of stock", 409)

    adjustments = []
    if qty > available:
        adjustments.append({
            "product_id": product.id,
            "requested": qty,
            "quantity": available,
            "reason": "insufficient_stock",
        })
        qty = available

    if item:
        item.quantity = qty
    else:
        cart.items.append(CartItem(product_id=product.id, product=product, quantity=qty))
    db.session.flush()
    return adjustments


def remove_item(cart: Cart, product_id) -> bool:
    item = cart.find_item(int(product_id))
    if not item:
        return False
    cart.items.remove(item)
    db.session.flush()
    return True


def clear_items(cart: Cart) -> None:
    cart.items.clear()
    db.session.flush()


def apply_code(cart: Cart, code: str, now, *, registry=None):
    """
    Returns (CartPricing, AppliedDiscount, None) on success or
    (CartPricing, None, DiscountError) when the code is refused.
    """
    registry = registry or DiscountRegistry()
    pricing = price_cart(cart, now, registry=registry)

    result, err = evaluate_discount(code, pricing.applied, pricing.summary.subtotal, now, registry)
    if err:
        return pricing, None, err

    row = registry.find_row(result.rule.code)
    cart.discounts.append(CartDiscount(discount_id=row.id, discount=row))
    db.session.flush()
    logger.info("discount %s applied to cart %s", row.code, cart.uuid)

    return price_cart(cart, now, registry=registry), result, None


def remove_code(cart: Cart, code: str) -> bool:
    link = cart.find_discount_link(code)
    if not link:
        return False
    cart.discounts.remove(link)
    db.session.flush()
    return True


def clear_codes(cart: Cart) -> None:
    cart.discounts.clear()
    db.session.flush()
