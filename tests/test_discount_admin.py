# tests/test_discount_admin.py
import pytest

from gradeshop.model import DiscountCode


@pytest.fixture
def payload():
    return {
        "code": "summer10",
        "description": "10% off grading",
        "type": "percentage",
        "value": "10",
        "minimum_order": "25",
        "usage_limit": 100,
        "starts_at": "2025-06-01T00:00:00Z",
        "ends_at": "2025-08-31T23:59:59Z",
        "stackable": True,
    }


def test_requires_admin_token(client):
    assert client.get("/api/admin/discounts").status_code == 401


def test_staff_token_is_forbidden(client, app):
    from flask_jwt_extended import create_access_token
    token = create_access_token(identity="till", additional_claims={"role": "staff"})
    resp = client.get("/api/admin/discounts", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 403


def test_create_and_fetch(client, admin_headers, payload):
    resp = client.post("/api/admin/discounts", json=payload, headers=admin_headers)
    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert data["code"] == "SUMMER10"
    assert data["value"] == "10.00"
    assert data["minimum_order"] == "25.00"
    assert data["usage_count"] == 0
    assert data["stackable"] is True

    fetched = client.get(f"/api/admin/discounts/{data['id']}", headers=admin_headers).get_json()["data"]
    assert fetched["starts_at"].startswith("2025-06-01T00:00:00")


def test_duplicate_code_is_case_insensitive(client, admin_headers, payload):
    client.post("/api/admin/discounts", json=payload, headers=admin_headers)
    resp = client.post("/api/admin/discounts", json={**payload, "code": "Summer10"}, headers=admin_headers)
    assert resp.status_code == 409


@pytest.mark.parametrize("override, message", [
    ({"type": "bogus"}, "type must be"),
    ({"value": "0"}, "value must be > 0"),
    ({"value": "120"}, "percentage value must be <= 100"),
    ({"description": ""}, "description is required"),
    ({"ends_at": "2025-05-01T00:00:00Z"}, "ends_at must not be before starts_at"),
    ({"starts_at": "next tuesday"}, "Invalid datetime format"),
])
def test_validation(client, admin_headers, payload, override, message):
    resp = client.post("/api/admin/discounts", json={**payload, **override}, headers=admin_headers)
    assert resp.status_code == 400
    assert message in resp.get_json()["message"]


def test_free_shipping_ignores_value(client, admin_headers):
    resp = client.post("/api/admin/discounts", json={
        "code": "SHIPIT", "description": "Free delivery", "type": "free_shipping", "value": "12",
    }, headers=admin_headers)
    assert resp.status_code == 201
    assert resp.get_json()["data"]["value"] == "0.00"


def test_update_keeps_usage_count(client, admin_headers, make_code):
    row = make_code("LOYAL", "fixed", "5", usage_count=7, usage_limit=10)
    resp = client.patch(f"/api/admin/discounts/{row.id}", json={"value": "7.50", "usage_limit": 0}, headers=admin_headers)
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["value"] == "7.50"
    assert data["usage_limit"] is None
    assert data["usage_count"] == 7


def test_toggle_and_filter(client, admin_headers, make_code):
    row = make_code("ON", "fixed", "5")
    make_code("ALSO", "fixed", "5")
    resp = client.post(f"/api/admin/discounts/{row.id}/toggle", headers=admin_headers)
    assert resp.get_json()["data"]["active"] is False

    listed = client.get("/api/admin/discounts?active=true", headers=admin_headers).get_json()["data"]
    assert [d["code"] for d in listed["items"]] == ["ALSO"]


def test_delete_detaches_from_carts(client, admin_headers, make_code, products):
    row = make_code("GONE", "fixed", "5")
    headers = {"X-Cart-Id": client.get("/api/cart").headers["X-Cart-Id"]}
    client.post("/api/cart/items", json={"product_id": products["GRD-STD"], "quantity": 1}, headers=headers)
    client.post("/api/cart/discounts", json={"code": "GONE"}, headers=headers)

    assert client.delete(f"/api/admin/discounts/{row.id}", headers=admin_headers).status_code == 200
    assert DiscountCode.query.count() == 0

    data = client.get("/api/cart", headers=headers).get_json()["data"]
    assert data["cart"]["discount_codes"] == []
    assert data["summary"]["total"] == "24.99"
