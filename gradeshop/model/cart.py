# gradeshop/model/cart.py
from __future__ import annotations
import uuid as _uuid
from sqlalchemy.sql import func
from ..extensions import db
from ..utils.timeutil import iso
from .discount import CartDiscount

class Cart(db.Model):
    __tablename__ = "cart"

    id = db.Column(db.Integer, primary_key=True)
    uuid = db.Column(db.String(36), unique=True, index=True, default=lambda: str(_uuid.uuid4()))
    status = db.Column(db.String(16), default="active", index=True)   # active | checked_out | abandoned
    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    items = db.relationship(
        "CartItem",
        backref="cart",
        cascade="all, delete-orphan",
        lazy="joined",
        order_by="CartItem.id.asc()"
    )

    # applied discount codes, in the order they were applied
    discounts = db.relationship(
        "CartDiscount",
        back_populates="cart",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="CartDiscount.id.asc()",
    )

    def find_item(self, product_id: int) -> CartItem | None:
        return next((i for i in self.items if i.product_id == product_id), None)

    def find_discount_link(self, code: str) -> CartDiscount | None:
        code = (code or "").strip().lower()
        return next((l for l in self.discounts if l.discount and l.discount.code.lower() == code), None)

    def as_api(self):
        return {
            "id": self.id,
            "uuid": self.uuid,
            "status": self.status,
            "items": [i.as_api() for i in self.items],
            "discount_codes": [l.discount.code for l in self.discounts if l.discount],
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }


class CartItem(db.Model):
    __tablename__ = "cart_item"

    id = db.Column(db.Integer, primary_key=True)
    cart_id = db.Column(db.Integer, db.ForeignKey("cart.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("product.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    # price is always read live from the product
    product = db.relationship("Product", lazy="joined")

    def as_api(self):
        p = self.product
        return {
            "id": self.id,
            "product_id": self.product_id,
            "name": p.name if p else None,
            "slug": p.slug if p else None,
            "unit_price": str(p.price) if p else None,
            "quantity": self.quantity,
        }
