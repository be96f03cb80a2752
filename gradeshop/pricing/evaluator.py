"""
Discount admission.

Decides whether a submitted code may join the set already applied to a cart
and what it saves in isolation. Nothing here raises for business conditions;
every check returns a ``DiscountError`` instead.
"""
from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from ..utils.money import D
from .errors import DiscountError, DiscountErrorKind
from .types import AppliedDiscount, DiscountKind, DiscountRule, normalize_code

logger = logging.getLogger(__name__)


def _savings(rule: DiscountRule, subtotal: Decimal) -> Decimal:
    if rule.kind == DiscountKind.PERCENTAGE:
        return subtotal * rule.value / Decimal(100)
    if rule.kind == DiscountKind.FIXED:
        return min(rule.value, subtotal)
    # shipping savings depend on the shipping rate; the calculator resolves them
    return Decimal("0")


def _validity_error(rule: DiscountRule, subtotal: Decimal, now: datetime):
    """Checks that depend only on the rule, the clock and the subtotal."""
    if not rule.is_active:
        return DiscountError(DiscountErrorKind.INACTIVE, rule.code)
    if rule.starts_at and now < rule.starts_at:
        return DiscountError(DiscountErrorKind.NOT_YET_VALID, rule.code)
    if rule.ends_at and now > rule.ends_at:
        return DiscountError(DiscountErrorKind.EXPIRED, rule.code)
    if subtotal < rule.minimum_order:
        return DiscountError(
            DiscountErrorKind.BELOW_MINIMUM_ORDER,
            rule.code,
            minimum_order=rule.minimum_order,
        )
    return None


def check_admission(rule: DiscountRule, applied, subtotal, now: datetime):
    """Run every admission check after the registry lookup.

    ``applied`` must not contain ``rule`` itself when re-checking a code at
    payment time; pass the other applied rules instead.
    """
    subtotal = D(subtotal)
    applied = tuple(applied)

    if any(a.matches(rule.code) for a in applied):
        return DiscountError(DiscountErrorKind.ALREADY_APPLIED, rule.code)

    if applied and (not rule.is_stackable or any(not a.is_stackable for a in applied)):
        return DiscountError(DiscountErrorKind.NOT_STACKABLE, rule.code)

    if rule.is_free_shipping and any(a.is_free_shipping for a in applied):
        return DiscountError(DiscountErrorKind.DUPLICATE_FREE_SHIPPING, rule.code)

    err = _validity_error(rule, subtotal, now)
    if err:
        return err

    if rule.usage_limit is not None and rule.usage_count >= rule.usage_limit:
        return DiscountError(DiscountErrorKind.USAGE_LIMIT_REACHED, rule.code)

    return None


def evaluate_discount(code, applied, subtotal, now: datetime, registry):
    """
    Returns (AppliedDiscount, None) when ``code`` may be added to ``applied``,
    otherwise (None, DiscountError). The first failing check wins.
    """
    rule = registry.find_by_code(normalize_code(code))
    if rule is None:
        logger.info("discount %r rejected: not_found", code)
        return None, DiscountError(DiscountErrorKind.NOT_FOUND, (code or "").strip())

    err = check_admission(rule, applied, subtotal, now)
    if err:
        logger.info("discount %r rejected: %s", rule.code, err.kind.value)
        return None, err

    return AppliedDiscount(rule=rule, savings=_savings(rule, D(subtotal))), None


def apply_discount(code, applied, subtotal, now: datetime, registry):
    """Like evaluate_discount, but returns the new applied tuple on success."""
    result, err = evaluate_discount(code, applied, subtotal, now, registry)
    if err:
        return tuple(applied), result, err
    return tuple(applied) + (result.rule,), result, None


def remove_discount(applied, code) -> tuple:
    return tuple(a for a in applied if not a.matches(code))


def clear_discounts() -> tuple:
    return ()


def revalidate(applied, subtotal, now: datetime, registry=None):
    """
    Re-check applied codes after the cart changed.

    A code is dropped when it no longer exists (only checked with a
    registry), was deactivated, fell outside its window or the subtotal
    dropped below its minimum order. Returns (kept, dropped) where dropped is
    a list of (rule, DiscountError).
    """
    subtotal = D(subtotal)
    kept, dropped = [], []
    for rule in applied:
        current = rule
        if registry is not None:
            current = registry.find_by_code(normalize_code(rule.code))
            if current is None:
                dropped.append((rule, DiscountError(DiscountErrorKind.NOT_FOUND, rule.code)))
                continue
        err = _validity_error(current, subtotal, now)
        if err:
            logger.info("discount %s removed from cart: %s", rule.code, err.kind.value)
            dropped.append((current, err))
        else:
            kept.append(current)
    return tuple(kept), dropped
