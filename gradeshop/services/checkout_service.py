"""
Checkout orchestration: quote, payment intent, confirmation.

The pricing core stays pure; this module does the reading and writing
around it. Routes own nothing but request parsing and response shaping.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..model import Cart, Order, PaymentException, Product
from ..pricing import (
    DiscountError,
    DiscountErrorKind,
    GatewayIntent,
    ReconcileError,
    ReconcileErrorKind,
    check_admission,
    quote_charge,
    reconcile_and_charge,
)
from .cart_service import CartError, CartPricing, price_cart
from .payment_gateway import get_gateway
from .stores import CartStore, DiscountRegistry, OrderStore, PaymentExceptionStore

logger = logging.getLogger(__name__)

PENDING_VERIFICATION_MESSAGE = "Your payment was received and your order is pending verification. Please contact support."


@dataclass
class IntentOutcome:
    pricing: CartPricing
    intent: Optional[GatewayIntent] = None
    error: Optional[Exception] = None    # DiscountError | ReconcileError


@dataclass
class ConfirmOutcome:
    status: str                          # created | existing | payment_incomplete | pending_verification
    order: Optional[Order] = None
    error: Optional[ReconcileError] = None
    exception: Optional[PaymentException] = None


def full_admission(pricing: CartPricing, now, registry: DiscountRegistry) -> Optional[DiscountError]:
    """
    Re-run every admission check for the applied codes with fresh registry
    data, in application order. Catches codes exhausted since they were added.
    """
    subtotal = pricing.summary.subtotal
    for i, rule in enumerate(pricing.applied):
        fresh = registry.find_by_code(rule.code)
        if fresh is None:
            return DiscountError(DiscountErrorKind.NOT_FOUND, rule.code)
        err = check_admission(fresh, pricing.applied[:i], subtotal, now)
        if err:
            return err
    return None


def create_payment_intent(cart: Cart, now, *, gateway=None, registry=None, metadata=None) -> IntentOutcome:
    gateway = gateway or get_gateway()
    registry = registry or DiscountRegistry()
    cfg = current_app.config
    currency = cfg["CURRENCY"]

    pricing = price_cart(cart, now, registry=registry)

    err = full_admission(pricing, now, registry)
    if err:
        logger.info("payment intent refused for cart %s: %s %s", cart.uuid, err.kind.value, err.code)
        return IntentOutcome(pricing=pricing, error=err)

    amount, rerr = quote_charge(pricing.summary, cfg["MIN_CHARGE_AMOUNT"], currency)
    if rerr:
        return IntentOutcome(pricing=pricing, error=rerr)

    meta = {
        "cart_uuid": cart.uuid,
        "discount_codes": ",".join(pricing.summary.applied_codes),
        "source": "gradeshop",
    }
    meta.update(metadata or {})
    intent = gateway.create_intent(amount, currency, meta)
    logger.info("payment intent %s for cart %s: %s %s", intent.intent_id, cart.uuid, amount, currency)
    return IntentOutcome(pricing=pricing, intent=intent)


def _decrement_stock(lines) -> bool:
    for line in lines:
        result = db.session.execute(
            update(Product)
            .where(Product.id == line.product_id)
            .where(Product.stock >= line.quantity)
            .values(stock=Product.stock - line.quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
    return True


def _escalate(intent: GatewayIntent, cart_uuid, err: ReconcileError, exceptions: PaymentExceptionStore) -> ConfirmOutcome:
    row = exceptions.record(
        payment_reference=intent.intent_id,
        reason=err.kind.value,
        cart_uuid=cart_uuid,
        quoted_amount=intent.amount,
        expected_amount=err.details.get("expected_amount"),
        captured_amount=intent.captured_amount,
        currency=intent.currency,
        detail={k: v for k, v in err.details.items() if k != "payment_reference"} | {"message": err.message},
    )
    db.session.commit()
    shown = ReconcileError(err.kind, PENDING_VERIFICATION_MESSAGE, payment_reference=intent.intent_id)
    return ConfirmOutcome(status="pending_verification", error=shown, exception=row)


def confirm_payment(cart_uuid: str, intent_id: str, now, *, customer=None, shipping_address=None,
                    gateway=None, registry=None) -> ConfirmOutcome:
    """
    Turn a captured payment into an order, or flag it for an operator.

    Idempotent per payment reference: a second confirmation of the same
    intent returns the order (or the open escalation) from the first.
    """
    gateway = gateway or get_gateway()
    registry = registry or DiscountRegistry()
    carts, orders, exceptions = CartStore(), OrderStore(), PaymentExceptionStore()
    currency = current_app.config["CURRENCY"]

    existing = orders.find_by_payment_reference(intent_id)
    if existing:
        return ConfirmOutcome(status="existing", order=existing)

    open_exc = exceptions.open_for(intent_id)
    if open_exc:
        shown = ReconcileError(ReconcileErrorKind(open_exc.reason), PENDING_VERIFICATION_MESSAGE,
                               payment_reference=intent_id)
        return ConfirmOutcome(status="pending_verification", error=shown, exception=open_exc)

    intent = gateway.get_intent(intent_id)

    intent_cart = intent.metadata.get("cart_uuid")
    if intent_cart and intent_cart != cart_uuid:
        raise CartError("payment does not belong to this cart", 409)

    if not intent.succeeded:
        return ConfirmOutcome(
            status="payment_incomplete",
            error=ReconcileError(ReconcileErrorKind.PAYMENT_INCOMPLETE, "Payment has not completed",
                                 payment_reference=intent_id, payment_status=intent.status),
        )

    cart = carts.get_by_uuid(cart_uuid)
    if cart is None:
        raise CartError("cart not found", 404)

    # price again from live data; the cart may have changed since the quote
    pricing = price_cart(cart, now, registry=registry)

    derr = full_admission(pricing, now, registry)
    if derr:
        logger.error("captured payment %s: discount %s no longer admissible (%s)",
                     intent_id, derr.code, derr.kind.value)
        return _escalate(intent, cart_uuid, ReconcileError(
            ReconcileErrorKind.DISCOUNT_UNAVAILABLE, derr.message,
            payment_reference=intent_id, discount_code=derr.code, discount_error=derr.kind.value,
        ), exceptions)

    record, rerr = reconcile_and_charge(pricing.summary, intent, currency)
    if rerr:
        return _escalate(intent, cart_uuid, rerr, exceptions)

    try:
        order = orders.insert(record, pricing.lines, customer=customer,
                              shipping_address=shipping_address, cart_uuid=cart_uuid)

        for code in record.discount_codes:
            if not registry.increment_usage(code):
                db.session.rollback()
                return _escalate(intent, cart_uuid, ReconcileError(
                    ReconcileErrorKind.DISCOUNT_UNAVAILABLE,
                    "discount usage limit reached concurrently",
                    payment_reference=intent_id, discount_code=code,
                    discount_error=DiscountErrorKind.USAGE_LIMIT_REACHED.value,
                ), exceptions)

        if not _decrement_stock(pricing.lines):
            db.session.rollback()
            return _escalate(intent, cart_uuid, ReconcileError(
                ReconcileErrorKind.STOCK_UNAVAILABLE,
                "stock sold out before the order was recorded",
                payment_reference=intent_id,
            ), exceptions)

        carts.close(cart)
        db.session.commit()
    except IntegrityError:
        # a concurrent confirmation of the same intent committed first
        db.session.rollback()
        existing = orders.find_by_payment_reference(intent_id)
        if existing is None:
            logger.exception("order creation failed for captured payment %s", intent_id)
            raise
        logger.info("payment %s already confirmed concurrently as order %s", intent_id, existing.code)
        return ConfirmOutcome(status="existing", order=existing)
    except Exception:
        db.session.rollback()
        logger.exception("order creation failed for captured payment %s", intent_id)
        raise

    logger.info("order %s created for payment %s: %s %s",
                order.code, intent_id, record.charge_amount, record.currency)
    return ConfirmOutcome(status="created", order=order)
