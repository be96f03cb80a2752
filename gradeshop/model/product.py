# gradeshop/model/product.py
from ..extensions import db
from ..utils.money import D, round_money
from sqlalchemy.sql import func

class Product(db.Model):
    __tablename__ = "product"
    id = db.Column(db.Integer, primary_key=True)
    slug = db.Column(db.String(255), unique=True, index=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    sku = db.Column(db.String(64), unique=True, index=True)
    description = db.Column(db.Text)

    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    stock = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.Boolean, default=True)          # False hides it from the shop

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    @property
    def available(self) -> int:
        if self.status is False:
            return 0
        return max(int(self.stock or 0), 0)

    def as_api(self):
        return {
            "id": self.id,
            "slug": self.slug,
            "name": self.name,
            "sku": self.sku,
            "description": self.description,
            "price": str(round_money(D(self.price))),
            "stock": self.stock,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
