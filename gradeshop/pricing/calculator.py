from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from .types import CartLine, DiscountKind, DiscountLine, OrderSummary, ShippingPolicy

ZERO = Decimal("0")


def cart_subtotal(lines) -> Decimal:
    return sum((line.line_total for line in lines), ZERO)


def _contribution(rule, subtotal: Decimal) -> Decimal:
    # percentages always apply to the original subtotal, never a running total
    if rule.kind == DiscountKind.PERCENTAGE:
        return subtotal * rule.value / Decimal(100)
    if rule.kind == DiscountKind.FIXED:
        return rule.value
    return ZERO


def compute_summary(lines, policy: ShippingPolicy, applied, now: datetime | None = None) -> OrderSummary:
    """
    Price a cart from scratch.

    Pure: equal inputs give an equal summary. Totals do not depend on the
    order the rules were applied in.
    """
    lines = tuple(lines)
    applied = tuple(applied)
    for line in lines:
        if not isinstance(line, CartLine):
            raise TypeError(f"expected CartLine, got {type(line).__name__}")

    subtotal = cart_subtotal(lines)

    if not lines or subtotal >= policy.free_shipping_threshold:
        base_shipping = ZERO
    else:
        base_shipping = policy.flat_rate

    product_discount = ZERO
    free_shipping = False
    discount_lines = []
    for rule in applied:
        if rule.kind == DiscountKind.FREE_SHIPPING:
            free_shipping = True
            discount_lines.append(DiscountLine(rule.code, rule.kind, base_shipping))
            continue
        amount = _contribution(rule, subtotal)
        product_discount += amount
        discount_lines.append(DiscountLine(rule.code, rule.kind, min(amount, subtotal)))

    # stacked codes can never discount more than the goods are worth
    product_discount = min(product_discount, subtotal)

    shipping_discount = base_shipping if free_shipping else ZERO
    final_shipping = base_shipping - shipping_discount

    total = max(ZERO, subtotal - product_discount + final_shipping)

    return OrderSummary(
        subtotal=subtotal,
        product_discount_amount=product_discount,
        base_shipping=base_shipping,
        shipping_discount_amount=shipping_discount,
        final_shipping=final_shipping,
        total=total,
        discount_lines=tuple(discount_lines),
        applied_codes=tuple(rule.code for rule in applied),
        free_shipping_remaining=max(ZERO, policy.free_shipping_threshold - subtotal),
        item_count=sum(line.quantity for line in lines),
    )
