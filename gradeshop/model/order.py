from ..extensions import db
from ..utils.money import D, round_money
from ..utils.timeutil import iso, utcnow

ORDER_STATUSES = ("paid", "processing", "shipped", "completed", "cancelled")

def _money(v):
    return str(round_money(D(v))) if v is not None else None

class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(32), unique=True, index=True)  # e.g., "GS-20251022-4F9A1C"
    status = db.Column(db.String(20), default="paid", index=True)

    # Customer snapshot
    customer_name = db.Column(db.String(120))
    email = db.Column(db.String(120), index=True)
    phone = db.Column(db.String(50))
    address_json = db.Column(db.JSON)

    # Money snapshot, exactly as charged
    subtotal = db.Column(db.Numeric(12, 2))
    product_discount_total = db.Column(db.Numeric(12, 2))
    shipping_total = db.Column(db.Numeric(12, 2))
    total = db.Column(db.Numeric(12, 2))
    charge_amount = db.Column(db.Integer, nullable=False)        # minor units
    currency = db.Column(db.String(3), default="gbp")
    discount_codes = db.Column(db.JSON, default=list)            # code strings, not references

    payment_reference = db.Column(db.String(255), unique=True, index=True, nullable=False)
    cart_uuid = db.Column(db.String(36), index=True)

    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    items = db.relationship(
        "OrderItem",
        backref="order",
        cascade="all, delete-orphan",
        lazy="joined"
    )

    def as_api(self):
        return {
            "id": self.id,
            "code": self.code,
            "status": self.status,
            "customer": {
                "name": self.customer_name,
                "email": self.email,
                "phone": self.phone,
                "address": self.address_json,
            },
            "money": {
                "subtotal": _money(self.subtotal),
                "product_discount_total": _money(self.product_discount_total),
                "shipping_total": _money(self.shipping_total),
                "total": _money(self.total),
                "charge_amount": self.charge_amount,
                "currency": self.currency,
            },
            "discount_codes": list(self.discount_codes or []),
            "payment_reference": self.payment_reference,
            "items": [i.as_api() for i in self.items],
            "created_at": iso(self.created_at),
            "cart_uuid": self.cart_uuid,
        }

class OrderItem(db.Model):
    __tablename__ = "order_items"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)

    product_id = db.Column(db.Integer, index=True)
    name = db.Column(db.String(255))
    unit_price = db.Column(db.Numeric(12, 2))
    quantity = db.Column(db.Integer, nullable=False)
    line_total = db.Column(db.Numeric(12, 2))

    def as_api(self):
        return {
            "product_id": self.product_id,
            "name": self.name,
            "unit_price": _money(self.unit_price),
            "quantity": self.quantity,
            "line_total": _money(self.line_total),
        }
