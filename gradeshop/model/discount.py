# --- gradeshop/model/discount.py ---

from ..extensions import db
from ..pricing import DiscountRule
from ..utils.money import D, round_money
from ..utils.timeutil import iso
from sqlalchemy.sql import func

class DiscountCode(db.Model):
    __tablename__ = "discount_code"

    id = db.Column(db.Integer, primary_key=True)
    # stored upper-case; lookups are case-insensitive
    code = db.Column(db.String(64), unique=True, nullable=False, index=True)
    description = db.Column(db.String(255), nullable=False, default="")

    # "percentage" | "fixed" | "free_shipping"
    kind = db.Column(db.String(16), nullable=False, default="percentage")
    value = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    minimum_order = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    usage_limit = db.Column(db.Integer, nullable=True)        # None = unlimited
    usage_count = db.Column(db.Integer, nullable=False, default=0)
    starts_at = db.Column(db.DateTime, nullable=True)
    ends_at = db.Column(db.DateTime, nullable=True)

    active = db.Column(db.Boolean, default=True, index=True)
    stackable = db.Column(db.Boolean, default=False)

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    links = db.relationship("CartDiscount", back_populates="discount", cascade="all, delete-orphan", lazy="selectin")

    def to_rule(self) -> DiscountRule:
        return DiscountRule(
            code=self.code,
            kind=self.kind,
            value=D(self.value),
            minimum_order=D(self.minimum_order),
            usage_limit=self.usage_limit,
            usage_count=int(self.usage_count or 0),
            starts_at=self.starts_at,
            ends_at=self.ends_at,
            is_active=bool(self.active),
            is_stackable=bool(self.stackable),
            description=self.description or "",
        )

    def as_api(self):
        return {
            "id": self.id,
            "code": self.code,
            "description": self.description,
            "type": self.kind,
            "value": str(round_money(D(self.value))),
            "minimum_order": str(round_money(D(self.minimum_order))),
            "usage_limit": self.usage_limit,
            "usage_count": self.usage_count,
            "starts_at": iso(self.starts_at),
            "ends_at": iso(self.ends_at),
            "active": self.active,
            "stackable": self.stackable,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

class CartDiscount(db.Model):
    __tablename__ = "cart_discount"
    id = db.Column(db.Integer, primary_key=True)
    cart_id = db.Column(db.Integer, db.ForeignKey("cart.id", ondelete="CASCADE"), index=True, nullable=False)
    discount_id = db.Column(db.Integer, db.ForeignKey("discount_code.id", ondelete="CASCADE"), index=True, nullable=False)
    cart = db.relationship("Cart", back_populates="discounts")
    discount = db.relationship("DiscountCode", back_populates="links")
