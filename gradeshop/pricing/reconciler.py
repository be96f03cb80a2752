"""
Bridge between the decimal order total and the integer amount a payment
gateway charges, plus the post-capture consistency check.
"""
from __future__ import annotations

import logging

from ..utils.money import format_money, from_minor_units, to_minor_units
from .errors import ReconcileError, ReconcileErrorKind
from .types import GatewayIntent, OrderRecord, OrderSummary

logger = logging.getLogger(__name__)

DEFAULT_MINIMUM_CHARGE = 50


def charge_amount(total) -> int:
    return to_minor_units(total)


def quote_charge(summary: OrderSummary, minimum_charge: int = DEFAULT_MINIMUM_CHARGE, currency: str = "gbp"):
    """Returns (amount_in_minor_units, None) or (None, ReconcileError)."""
    amount = charge_amount(summary.total)
    if amount < minimum_charge:
        return None, ReconcileError(
            ReconcileErrorKind.INVALID_AMOUNT,
            f"Order total must be at least {format_money(from_minor_units(minimum_charge), currency)} to pay by card",
            amount=amount,
            minimum=minimum_charge,
        )
    return amount, None


def reconcile_and_charge(summary: OrderSummary, gateway_result: GatewayIntent, currency: str | None = None):
    """
    Check a captured payment against a freshly computed summary.

    ``gateway_result.amount`` is the amount quoted when the intent was
    created. Returns (OrderRecord, None) or (None, ReconcileError).
    """
    ref = gateway_result.intent_id

    if not gateway_result.succeeded:
        return None, ReconcileError(
            ReconcileErrorKind.PAYMENT_INCOMPLETE,
            "Payment has not completed",
            payment_reference=ref,
            payment_status=gateway_result.status,
        )

    quoted = int(gateway_result.amount)
    expected = charge_amount(summary.total)
    captured = gateway_result.captured_amount

    if expected != quoted or (captured is not None and int(captured) != quoted):
        logger.error(
            "amount mismatch on %s: quoted=%s expected=%s captured=%s",
            ref, quoted, expected, captured,
        )
        return None, ReconcileError(
            ReconcileErrorKind.AMOUNT_MISMATCH,
            "Your order is pending verification. Please contact support.",
            payment_reference=ref,
            quoted_amount=quoted,
            expected_amount=expected,
            captured_amount=captured,
        )

    record = OrderRecord(
        subtotal=summary.subtotal,
        product_discount_amount=summary.product_discount_amount,
        shipping=summary.final_shipping,
        total=summary.total,
        charge_amount=quoted,
        currency=(currency or gateway_result.currency or "gbp").lower(),
        discount_codes=tuple(summary.applied_codes),
        payment_reference=ref,
    )
    return record, None
