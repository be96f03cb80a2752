# tests/conftest.py
from datetime import datetime
from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token

from gradeshop import create_app
from gradeshop.config import TestConfig
from gradeshop.extensions import db
from gradeshop.model import DiscountCode, Product
from gradeshop.pricing import DiscountRule, ShippingPolicy, normalize_code

NOW = datetime(2025, 6, 1, 12, 0, 0)


class FakeRegistry:
    """Dict-backed discount registry for the pure pricing tests."""

    def __init__(self, *rules):
        self.rules = {normalize_code(r.code): r for r in rules}

    def find_by_code(self, code):
        return self.rules.get(normalize_code(code))


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def policy():
    return ShippingPolicy(flat_rate=Decimal("4.99"), free_shipping_threshold=Decimal("50.00"))


@pytest.fixture
def save20():
    return DiscountRule(code="SAVE20", kind="percentage", value=Decimal("20"), is_stackable=True)


@pytest.fixture
def freeship():
    return DiscountRule(code="FREESHIP", kind="free_shipping", is_stackable=True)


@pytest.fixture
def vip50():
    return DiscountRule(code="VIP50", kind="fixed", value=Decimal("50"), is_stackable=False)


# ---- app / database ---------------------------------------------------------

@pytest.fixture
def app():
    app = create_app(TestConfig)
    ctx = app.app_context()
    ctx.push()
    yield app
    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_headers(app):
    token = create_access_token(identity="ops", additional_claims={"role": "admin"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def products(app):
    rows = [
        Product(slug="grading-standard", sku="GRD-STD", name="Card Grading - Standard", price=Decimal("20.00"), stock=10),
        Product(slug="diamond-sleeve", sku="ACC-DSL", name="Diamond Sleeve Upgrade", price=Decimal("2.50"), stock=3),
        Product(slug="charizard-slab", sku="SLB-0001", name="Charizard Base Set Holo - Graded 9", price=Decimal("1250.00"), stock=1),
    ]
    db.session.add_all(rows)
    db.session.commit()
    return {p.sku: p.id for p in rows}


@pytest.fixture
def make_code(app):
    def _make(code, kind="percentage", value="0", **kw):
        row = DiscountCode(
            code=code.upper(),
            description=kw.pop("description", f"{code} offer"),
            kind=kind,
            value=Decimal(str(value)),
            minimum_order=Decimal(str(kw.pop("minimum_order", "0"))),
            usage_limit=kw.pop("usage_limit", None),
            usage_count=kw.pop("usage_count", 0),
            starts_at=kw.pop("starts_at", None),
            ends_at=kw.pop("ends_at", None),
            active=kw.pop("active", True),
            stackable=kw.pop("stackable", False),
        )
        db.session.add(row)
        db.session.commit()
        return row
    return _make


@pytest.fixture
def gateway(app):
    from gradeshop.services.payment_gateway import get_gateway
    return get_gateway()
