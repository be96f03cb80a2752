# tests/test_cart_routes.py
from gradeshop.extensions import db
from gradeshop.model import Product


def new_cart(client):
    resp = client.get("/api/cart")
    assert resp.status_code == 200
    return {"X-Cart-Id": resp.headers["X-Cart-Id"]}


def add(client, headers, product_id, quantity=1):
    return client.post("/api/cart/items", json={"product_id": product_id, "quantity": quantity}, headers=headers)


def test_add_item_prices_cart(client, products):
    headers = new_cart(client)
    resp = add(client, headers, products["GRD-STD"], 2)
    assert resp.status_code == 201
    summary = resp.get_json()["data"]["summary"]
    assert summary["subtotal"] == "40.00"
    assert summary["shipping"] == "4.99"
    assert summary["total"] == "44.99"
    assert summary["free_shipping_remaining"] == "10.00"
    assert summary["item_count"] == 2


def test_quantity_is_clamped_to_stock(client, products):
    headers = new_cart(client)
    resp = add(client, headers, products["ACC-DSL"], 5)
    data = resp.get_json()["data"]
    assert data["cart"]["items"][0]["quantity"] == 3
    assert data["adjustments"][0]["reason"] == "insufficient_stock"
    assert data["adjustments"][0]["quantity"] == 3


def test_stock_drop_is_surfaced_on_next_read(client, products):
    headers = new_cart(client)
    add(client, headers, products["ACC-DSL"], 3)
    db.session.get(Product, products["ACC-DSL"]).stock = 1
    db.session.commit()

    data = client.get("/api/cart", headers=headers).get_json()["data"]
    assert data["cart"]["items"][0]["quantity"] == 1
    assert data["adjustments"] == [{
        "product_id": products["ACC-DSL"], "requested": 3, "quantity": 1, "reason": "insufficient_stock",
    }]


def test_sold_out_line_is_removed(client, products):
    headers = new_cart(client)
    add(client, headers, products["SLB-0001"], 1)
    db.session.get(Product, products["SLB-0001"]).stock = 0
    db.session.commit()

    data = client.get("/api/cart", headers=headers).get_json()["data"]
    assert data["cart"]["items"] == []
    assert data["adjustments"][0]["reason"] == "out_of_stock"


def test_unknown_product(client, products):
    headers = new_cart(client)
    resp = add(client, headers, 999)
    assert resp.status_code == 404


def test_set_quantity_below_one_removes_line(client, products):
    headers = new_cart(client)
    add(client, headers, products["GRD-STD"], 2)
    resp = client.patch(f"/api/cart/items/{products['GRD-STD']}", json={"quantity": 0}, headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()["data"]["cart"]["items"] == []


def test_apply_discount_code(client, products, make_code):
    make_code("SAVE20", "percentage", "20", stackable=True)
    make_code("FREESHIP", "free_shipping", stackable=True)
    headers = new_cart(client)
    add(client, headers, products["GRD-STD"], 2)

    resp = client.post("/api/cart/discounts", json={"code": "save20"}, headers=headers)
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["applied"]["code"] == "SAVE20"
    assert data["applied"]["savings"] == "8.00"
    assert data["summary"]["total"] == "36.99"

    resp = client.post("/api/cart/discounts", json={"code": "FREESHIP"}, headers=headers)
    data = resp.get_json()["data"]
    assert data["summary"]["shipping"] == "0.00"
    assert data["summary"]["total"] == "32.00"
    assert data["cart"]["discount_codes"] == ["SAVE20", "FREESHIP"]


def test_rejected_code_returns_reason(client, products, make_code):
    make_code("SAVE20", "percentage", "20", stackable=True)
    make_code("VIP50", "fixed", "50")
    headers = new_cart(client)
    add(client, headers, products["GRD-STD"], 5)
    client.post("/api/cart/discounts", json={"code": "SAVE20"}, headers=headers)

    resp = client.post("/api/cart/discounts", json={"code": "VIP50"}, headers=headers)
    assert resp.status_code == 409
    body = resp.get_json()
    assert body["status"] is False
    assert body["data"]["error"] == "not_stackable"
    assert body["data"]["cart"]["discount_codes"] == ["SAVE20"]


def test_invalid_code_and_blank_code(client, products):
    headers = new_cart(client)
    assert client.post("/api/cart/discounts", json={"code": "NOPE"}, headers=headers).status_code == 404
    resp = client.post("/api/cart/discounts", json={"code": "  "}, headers=headers)
    assert resp.status_code == 422
    assert resp.get_json()["message"] == "Please enter a discount code"


def test_minimum_order_message(client, products, make_code):
    make_code("MIN20", "percentage", "10", minimum_order="20")
    headers = new_cart(client)
    add(client, headers, products["ACC-DSL"], 2)
    resp = client.post("/api/cart/discounts", json={"code": "MIN20"}, headers=headers)
    assert resp.status_code == 422
    assert resp.get_json()["message"] == "Minimum order of £20.00 required for this discount"


def test_code_dropped_when_cart_shrinks_below_minimum(client, products, make_code):
    make_code("MIN30", "fixed", "5", minimum_order="30")
    headers = new_cart(client)
    add(client, headers, products["GRD-STD"], 2)
    assert client.post("/api/cart/discounts", json={"code": "MIN30"}, headers=headers).status_code == 200

    resp = client.patch(f"/api/cart/items/{products['GRD-STD']}", json={"quantity": 1}, headers=headers)
    data = resp.get_json()["data"]
    assert data["cart"]["discount_codes"] == []
    assert data["removed_discounts"][0]["code"] == "MIN30"
    assert data["removed_discounts"][0]["error"] == "below_minimum_order"
    assert data["summary"]["total"] == "24.99"


def test_remove_and_clear_codes(client, products, make_code):
    make_code("SAVE20", "percentage", "20", stackable=True)
    make_code("FREESHIP", "free_shipping", stackable=True)
    headers = new_cart(client)
    add(client, headers, products["GRD-STD"], 1)
    client.post("/api/cart/discounts", json={"code": "SAVE20"}, headers=headers)
    client.post("/api/cart/discounts", json={"code": "FREESHIP"}, headers=headers)

    resp = client.delete("/api/cart/discounts/save20", headers=headers)
    assert resp.get_json()["data"]["cart"]["discount_codes"] == ["FREESHIP"]
    assert client.delete("/api/cart/discounts/save20", headers=headers).status_code == 404

    resp = client.delete("/api/cart/discounts", headers=headers)
    assert resp.get_json()["data"]["cart"]["discount_codes"] == []
