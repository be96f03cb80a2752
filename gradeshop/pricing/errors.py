from __future__ import annotations

from enum import Enum

from ..utils.money import format_money


class DiscountErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    ALREADY_APPLIED = "already_applied"
    NOT_STACKABLE = "not_stackable"
    DUPLICATE_FREE_SHIPPING = "duplicate_free_shipping"
    INACTIVE = "inactive"
    NOT_YET_VALID = "not_yet_valid"
    EXPIRED = "expired"
    BELOW_MINIMUM_ORDER = "below_minimum_order"
    USAGE_LIMIT_REACHED = "usage_limit_reached"


DISCOUNT_MESSAGES = {
    DiscountErrorKind.NOT_FOUND: "Invalid discount code",
    DiscountErrorKind.ALREADY_APPLIED: "This discount code is already applied",
    DiscountErrorKind.NOT_STACKABLE: "This discount cannot be combined with other offers",
    DiscountErrorKind.DUPLICATE_FREE_SHIPPING: "Only one free shipping code can be applied",
    DiscountErrorKind.INACTIVE: "This discount code is not active",
    DiscountErrorKind.NOT_YET_VALID: "This discount code is not yet valid",
    DiscountErrorKind.EXPIRED: "This discount code has expired",
    DiscountErrorKind.BELOW_MINIMUM_ORDER: "Minimum order of {minimum} required for this discount",
    DiscountErrorKind.USAGE_LIMIT_REACHED: "This discount code has reached its usage limit",
}


class DiscountError(Exception):
    """A user-correctable reason a code cannot be (or stay) applied."""

    def __init__(self, kind: DiscountErrorKind, code: str = "", message: str | None = None,
                 minimum_order=None, currency: str = "gbp"):
        self.kind = DiscountErrorKind(kind)
        self.code = code
        if message is None and self.kind == DiscountErrorKind.BELOW_MINIMUM_ORDER:
            if minimum_order is None:
                raise TypeError("below_minimum_order needs the minimum_order it failed")
            message = DISCOUNT_MESSAGES[self.kind].format(minimum=format_money(minimum_order, currency))
        self.message = message or DISCOUNT_MESSAGES[self.kind]
        super().__init__(self.message)

    def as_api(self) -> dict:
        return {"error": self.kind.value, "code": self.code, "message": self.message}


class ReconcileErrorKind(str, Enum):
    INVALID_AMOUNT = "invalid_amount"
    PAYMENT_INCOMPLETE = "payment_incomplete"
    AMOUNT_MISMATCH = "amount_mismatch"
    DISCOUNT_UNAVAILABLE = "discount_unavailable"
    STOCK_UNAVAILABLE = "stock_unavailable"


# kinds the customer can fix by changing the cart or retrying payment
USER_CORRECTABLE = {ReconcileErrorKind.INVALID_AMOUNT, ReconcileErrorKind.PAYMENT_INCOMPLETE}


class ReconcileError(Exception):
    def __init__(self, kind: ReconcileErrorKind, message: str, **details):
        self.kind = ReconcileErrorKind(kind)
        self.message = message
        self.details = details
        super().__init__(message)

    @property
    def user_correctable(self) -> bool:
        return self.kind in USER_CORRECTABLE

    def as_api(self) -> dict:
        return {"error": self.kind.value, "message": self.message, **self.details}
