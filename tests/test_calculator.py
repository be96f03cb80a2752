# tests/test_calculator.py
from decimal import Decimal
from itertools import permutations

import pytest

from gradeshop.pricing import CartLine, DiscountRule, compute_summary


def lines_worth(amount):
    return [CartLine(product_id=1, unit_price=Decimal(amount), quantity=1, name="Grading")]


def test_no_discounts_adds_flat_shipping(policy, now):
    s = compute_summary(lines_worth("40.00"), policy, (), now)
    assert s.subtotal == Decimal("40.00")
    assert s.base_shipping == Decimal("4.99")
    assert s.total == Decimal("44.99")


def test_percentage_code(policy, now, save20):
    s = compute_summary(lines_worth("40.00"), policy, (save20,), now)
    assert s.product_discount_amount == Decimal("8.00")
    assert s.total == Decimal("36.99")


def test_percentage_and_free_shipping(policy, now, save20, freeship):
    s = compute_summary(lines_worth("40.00"), policy, (save20, freeship), now)
    assert s.final_shipping == Decimal("0")
    assert s.shipping_discount_amount == Decimal("4.99")
    assert s.total == Decimal("32.00")
    assert [(d.code, d.amount) for d in s.discount_lines] == [
        ("SAVE20", Decimal("8.00")),
        ("FREESHIP", Decimal("4.99")),
    ]


def test_threshold_is_inclusive(policy, now):
    s = compute_summary(lines_worth("50.00"), policy, (), now)
    assert s.base_shipping == Decimal("0")
    assert s.free_shipping_remaining == Decimal("0")


def test_free_shipping_remaining(policy, now):
    s = compute_summary(lines_worth("42.50"), policy, (), now)
    assert s.free_shipping_remaining == Decimal("7.50")


def test_empty_cart_has_no_shipping(policy, now):
    s = compute_summary([], policy, (), now)
    assert s.subtotal == Decimal("0")
    assert s.final_shipping == Decimal("0")
    assert s.total == Decimal("0")


def test_capping_law(policy, now):
    codes = [DiscountRule(code=f"TEN{i}", kind="fixed", value="10", is_stackable=True) for i in range(6)]
    s = compute_summary(lines_worth("25.00"), policy, codes, now)
    assert s.product_discount_amount == Decimal("25.00")
    # shipping is still charged on a fully discounted cart
    assert s.total == Decimal("4.99")


def test_percentages_use_original_subtotal(policy, now):
    a = DiscountRule(code="A10", kind="percentage", value="10", is_stackable=True)
    b = DiscountRule(code="B10", kind="percentage", value="10", is_stackable=True)
    s = compute_summary(lines_worth("100.00"), policy, (a, b), now)
    # additive, not compounding (81.00)
    assert s.product_discount_amount == Decimal("20.00")
    assert s.total == Decimal("80.00")


def test_commutativity(policy, now, save20, freeship):
    five = DiscountRule(code="FIVE", kind="fixed", value="5", is_stackable=True)
    totals = {
        compute_summary(lines_worth("37.33"), policy, order, now).total
        for order in permutations((save20, freeship, five))
    }
    assert len(totals) == 1


def test_free_shipping_never_touches_product_discount(policy, now, freeship):
    s = compute_summary(lines_worth("20.00"), policy, (freeship,), now)
    assert s.product_discount_amount == Decimal("0")
    assert s.final_shipping == Decimal("0")
    assert s.total == Decimal("20.00")


def test_no_intermediate_rounding(policy, now):
    third = DiscountRule(code="THIRD", kind="percentage", value="33.33", is_stackable=True)
    s = compute_summary(lines_worth("10.01"), policy, (third, ), now)
    assert s.product_discount_amount == Decimal("10.01") * Decimal("33.33") / 100
    assert s.rounded()["product_discount_amount"] == Decimal("3.34")


def test_idempotent(policy, now, save20, freeship):
    lines = [
        CartLine(product_id=1, unit_price="14.99", quantity=2),
        CartLine(product_id=2, unit_price="2.50", quantity=3),
    ]
    assert compute_summary(lines, policy, (save20, freeship), now) == compute_summary(lines, policy, (save20, freeship), now)


@pytest.mark.parametrize("amount", ["0.00", "0.01", "4.99", "49.99", "50.00", "1250.00"])
def test_total_never_negative(policy, now, vip50, amount):
    s = compute_summary(lines_worth(amount) if amount != "0.00" else [], policy, (vip50,), now)
    assert s.total >= 0
    assert s.total == s.subtotal - s.product_discount_amount + s.final_shipping


def test_rejects_non_cart_lines(policy, now):
    with pytest.raises(TypeError):
        compute_summary([{"unit_price": "1", "quantity": 1}], policy, (), now)


def test_cart_line_rejects_bad_quantity():
    with pytest.raises(ValueError):
        CartLine(product_id=1, unit_price="5.00", quantity=0)
    with pytest.raises(ValueError):
        CartLine(product_id=1, unit_price="-1", quantity=1)


def test_summary_as_api_uses_two_places(policy, now, save20):
    data = compute_summary(lines_worth("40.00"), policy, (save20,), now).as_api()
    assert data["total"] == "36.99"
    assert data["product_discount_amount"] == "8.00"
    assert data["discounts"] == [{"code": "SAVE20", "type": "percentage", "amount": "8.00"}]


def test_applied_codes_from_a_generator(policy, now, save20, freeship):
    s = compute_summary(lines_worth("40.00"), policy, (r for r in [save20, freeship]), now)
    assert s.product_discount_amount == Decimal("8.00")
    assert s.applied_codes == ("SAVE20", "FREESHIP")
    assert s.total == Decimal("32.00")
