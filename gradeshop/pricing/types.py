"""Value types shared by the pricing core.

Everything here is immutable. Money is ``Decimal`` and is never rounded
inside a calculation; see ``OrderSummary.rounded`` for display values.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from ..utils.money import D, round_money


class DiscountKind(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    FREE_SHIPPING = "free_shipping"


def normalize_code(code) -> str:
    return (code or "").strip().lower()


@dataclass(frozen=True)
class DiscountRule:
    """A discount code as the pricing core sees it."""
    code: str
    kind: DiscountKind
    value: Decimal = Decimal("0")
    minimum_order: Decimal = Decimal("0")
    usage_limit: Optional[int] = None
    usage_count: int = 0
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    is_active: bool = True
    is_stackable: bool = False
    description: str = ""

    def __post_init__(self):
        kind = DiscountKind(self.kind)
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "value", D(self.value))
        object.__setattr__(self, "minimum_order", D(self.minimum_order))

        if kind == DiscountKind.FREE_SHIPPING:
            object.__setattr__(self, "value", Decimal("0"))
        elif kind == DiscountKind.PERCENTAGE and not (0 <= self.value <= 100):
            raise ValueError(f"percentage discount {self.code!r} must be within 0..100")
        elif kind == DiscountKind.FIXED and self.value < 0:
            raise ValueError(f"fixed discount {self.code!r} must be >= 0")

        if self.minimum_order < 0:
            raise ValueError("minimum_order must be >= 0")
        if self.usage_count < 0:
            raise ValueError("usage_count must be >= 0")
        if self.usage_limit is not None and self.usage_limit < 1:
            raise ValueError("usage_limit must be a positive integer")

    @property
    def is_free_shipping(self) -> bool:
        return self.kind == DiscountKind.FREE_SHIPPING

    def matches(self, code) -> bool:
        return normalize_code(self.code) == normalize_code(code)


@dataclass(frozen=True)
class CartLine:
    product_id: int
    unit_price: Decimal
    quantity: int
    name: str = ""

    def __post_init__(self):
        object.__setattr__(self, "unit_price", D(self.unit_price))
        if self.unit_price < 0:
            raise ValueError(f"unit_price for product {self.product_id} is negative")
        if int(self.quantity) < 1:
            raise ValueError(f"quantity for product {self.product_id} must be >= 1")

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class ShippingPolicy:
    flat_rate: Decimal
    free_shipping_threshold: Decimal

    def __post_init__(self):
        object.__setattr__(self, "flat_rate", D(self.flat_rate))
        object.__setattr__(self, "free_shipping_threshold", D(self.free_shipping_threshold))


@dataclass(frozen=True)
class AppliedDiscount:
    rule: DiscountRule
    savings: Decimal


@dataclass(frozen=True)
class DiscountLine:
    code: str
    kind: DiscountKind
    amount: Decimal


@dataclass(frozen=True)
class OrderSummary:
    subtotal: Decimal
    product_discount_amount: Decimal
    base_shipping: Decimal
    shipping_discount_amount: Decimal
    final_shipping: Decimal
    total: Decimal
    discount_lines: tuple = ()
    applied_codes: tuple = ()
    free_shipping_remaining: Decimal = Decimal("0")
    item_count: int = 0

    @property
    def total_discount_amount(self) -> Decimal:
        return self.product_discount_amount + self.shipping_discount_amount

    def rounded(self) -> dict:
        return {
            "subtotal": round_money(self.subtotal),
            "product_discount_amount": round_money(self.product_discount_amount),
            "base_shipping": round_money(self.base_shipping),
            "shipping_discount_amount": round_money(self.shipping_discount_amount),
            "total_discount_amount": round_money(self.total_discount_amount),
            "shipping": round_money(self.final_shipping),
            "total": round_money(self.total),
            "free_shipping_remaining": round_money(self.free_shipping_remaining),
        }

    def as_api(self) -> dict:
        out = {k: str(v) for k, v in self.rounded().items()}
        out["item_count"] = self.item_count
        out["discounts"] = [
            {"code": dl.code, "type": dl.kind.value, "amount": str(round_money(dl.amount))}
            for dl in self.discount_lines
        ]
        return out


@dataclass(frozen=True)
class GatewayIntent:
    intent_id: str
    status: str
    amount: int
    currency: str
    client_secret: Optional[str] = None
    captured_amount: Optional[int] = None
    metadata: dict = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded"


@dataclass(frozen=True)
class OrderRecord:
    subtotal: Decimal
    product_discount_amount: Decimal
    shipping: Decimal
    total: Decimal
    charge_amount: int
    currency: str
    discount_codes: tuple
    payment_reference: str
