from ..extensions import db
from ..utils.timeutil import iso, utcnow

class PaymentException(db.Model):
    """A captured payment that could not become an order; needs an operator."""
    __tablename__ = "payment_exceptions"

    id = db.Column(db.Integer, primary_key=True)
    payment_reference = db.Column(db.String(255), index=True, nullable=False)
    cart_uuid = db.Column(db.String(36), index=True)
    reason = db.Column(db.String(32), nullable=False)      # amount_mismatch | discount_unavailable
    quoted_amount = db.Column(db.Integer)
    expected_amount = db.Column(db.Integer)
    captured_amount = db.Column(db.Integer)
    currency = db.Column(db.String(3))
    detail = db.Column(db.JSON)
    resolved = db.Column(db.Boolean, default=False, index=True)
    resolution_note = db.Column(db.String(255))

    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    resolved_at = db.Column(db.DateTime)

    def as_api(self):
        return {
            "id": self.id,
            "payment_reference": self.payment_reference,
            "cart_uuid": self.cart_uuid,
            "reason": self.reason,
            "quoted_amount": self.quoted_amount,
            "expected_amount": self.expected_amount,
            "captured_amount": self.captured_amount,
            "currency": self.currency,
            "detail": self.detail,
            "resolved": self.resolved,
            "resolution_note": self.resolution_note,
            "created_at": iso(self.created_at),
            "resolved_at": iso(self.resolved_at),
        }
