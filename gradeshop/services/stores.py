# gradeshop/services/stores.py
"""
SQLAlchemy-backed collaborators for the pricing core.

Each store exposes the narrow contract the checkout needs and nothing more.
None of them commit; the caller owns the transaction.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import func, or_, update

from ..extensions import db
from ..model import Cart, DiscountCode, Order, OrderItem, PaymentException, Product
from ..pricing import CartLine, DiscountRule, OrderRecord
from ..utils.money import D, from_minor_units, round_money
from ..utils.timeutil import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProductSnapshot:
    product_id: int
    name: str
    price: Decimal
    stock: int


class CatalogStore:
    def get_product(self, product_id) -> ProductSnapshot | None:
        p = db.session.get(Product, product_id)
        if not p:
            return None
        return ProductSnapshot(product_id=p.id, name=p.name, price=D(p.price), stock=p.available)


class DiscountRegistry:
    def _row(self, code) -> DiscountCode | None:
        code = (code or "").strip()
        if not code:
            return None
        return DiscountCode.query.filter(func.lower(DiscountCode.code) == code.lower()).first()

    def find_by_code(self, code) -> DiscountRule | None:
        row = self._row(code)
        return row.to_rule() if row else None

    def find_row(self, code) -> DiscountCode | None:
        return self._row(code)

    def increment_usage(self, code) -> bool:
        """
        Atomic increment-if-below-limit. Returns False when the limit was
        already reached (possibly by a concurrent checkout).
        """
        code = (code or "").strip().lower()
        stmt = (
            update(DiscountCode)
            .where(func.lower(DiscountCode.code) == code)
            .where(or_(DiscountCode.usage_limit.is_(None), DiscountCode.usage_count < DiscountCode.usage_limit))
            .values(usage_count=DiscountCode.usage_count + 1)
            .execution_options(synchronize_session=False)
        )
        result = db.session.execute(stmt)
        ok = result.rowcount == 1
        if not ok:
            logger.warning("usage increment refused for %s: limit reached", code)
        return ok


class CartStore:
    def get_cart(self, cart_uuid: str | None, create: bool = True) -> Cart | None:
        q = Cart.query.filter_by(status="active")
        cart = q.filter(Cart.uuid == cart_uuid).first() if cart_uuid else None
        if cart is None and create:
            cart = Cart(status="active")
            db.session.add(cart)
            db.session.flush()
        return cart

    def get_by_uuid(self, cart_uuid: str) -> Cart | None:
        return Cart.query.filter(Cart.uuid == cart_uuid).first()

    def get_lines(self, cart: Cart) -> list[CartLine]:
        """Cart lines priced from the live product row."""
        lines = []
        for it in cart.items:
            p = it.product
            lines.append(CartLine(
                product_id=it.product_id,
                unit_price=D(p.price),
                quantity=it.quantity,
                name=p.name,
            ))
        return lines

    def applied_rules(self, cart: Cart) -> tuple:
        return tuple(l.discount.to_rule() for l in cart.discounts if l.discount)

    def close(self, cart: Cart, status: str = "checked_out") -> None:
        cart.status = status
        cart.items.clear()
        cart.discounts.clear()


def _gen_order_code():
    return "GS-" + utcnow().strftime("%Y%m%d") + "-" + uuid.uuid4().hex[:6].upper()


class OrderStore:
    def find_by_payment_reference(self, ref: str) -> Order | None:
        return Order.query.filter_by(payment_reference=ref).first()

    def insert(self, record: OrderRecord, lines, customer: dict | None = None,
               shipping_address: dict | None = None, cart_uuid: str | None = None) -> Order:
        customer = customer or {}
        order = Order(
            code=_gen_order_code(),
            status="paid",
            customer_name=customer.get("name"),
            email=(customer.get("email") or "").strip().lower() or None,
            phone=customer.get("phone"),
            address_json=shipping_address or {},
            subtotal=round_money(record.subtotal),
            product_discount_total=round_money(record.product_discount_amount),
            shipping_total=round_money(record.shipping),
            # exactly what was captured
            total=from_minor_units(record.charge_amount),
            charge_amount=record.charge_amount,
            currency=record.currency,
            discount_codes=list(record.discount_codes),
            payment_reference=record.payment_reference,
            cart_uuid=cart_uuid,
        )
        for line in lines:
            order.items.append(OrderItem(
                product_id=line.product_id,
                name=line.name,
                unit_price=line.unit_price,
                quantity=line.quantity,
                line_total=round_money(line.line_total),
            ))
        db.session.add(order)
        db.session.flush()
        return order


class PaymentExceptionStore:
    def record(self, payment_reference: str, reason: str, cart_uuid: str | None = None,
               quoted_amount=None, expected_amount=None, captured_amount=None,
               currency=None, detail=None) -> PaymentException:
        existing = PaymentException.query.filter_by(
            payment_reference=payment_reference, reason=reason, resolved=False,
        ).first()
        if existing:
            return existing
        row = PaymentException(
            payment_reference=payment_reference,
            reason=reason,
            cart_uuid=cart_uuid,
            quoted_amount=quoted_amount,
            expected_amount=expected_amount,
            captured_amount=captured_amount,
            currency=currency,
            detail=detail or {},
        )
        db.session.add(row)
        db.session.flush()
        logger.error("payment %s flagged for manual reconciliation: %s", payment_reference, reason)
        return row

    def open_for(self, payment_reference: str) -> PaymentException | None:
        return PaymentException.query.filter_by(payment_reference=payment_reference, resolved=False).first()
