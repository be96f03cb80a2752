# Pricing & discount core. Pure functions, no Flask, no database.

from .types import (
    AppliedDiscount,
    CartLine,
    DiscountKind,
    DiscountLine,
    DiscountRule,
    GatewayIntent,
    OrderRecord,
    OrderSummary,
    ShippingPolicy,
    normalize_code,
)
from .errors import DiscountError, DiscountErrorKind, ReconcileError, ReconcileErrorKind
from .evaluator import (
    apply_discount,
    check_admission,
    clear_discounts,
    evaluate_discount,
    remove_discount,
    revalidate,
)
from .calculator import cart_subtotal, compute_summary
from .reconciler import charge_amount, quote_charge, reconcile_and_charge

__all__ = [
    "AppliedDiscount",
    "CartLine",
    "DiscountKind",
    "DiscountLine",
    "DiscountRule",
    "GatewayIntent",
    "OrderRecord",
    "OrderSummary",
    "ShippingPolicy",
    "normalize_code",
    "DiscountError",
    "DiscountErrorKind",
    "ReconcileError",
    "ReconcileErrorKind",
    "apply_discount",
    "check_admission",
    "clear_discounts",
    "evaluate_discount",
    "remove_discount",
    "revalidate",
    "cart_subtotal",
    "compute_summary",
    "charge_amount",
    "quote_charge",
    "reconcile_and_charge",
]
