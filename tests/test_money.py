# tests/test_money.py
from decimal import Decimal

from gradeshop.utils.money import D, format_money, from_minor_units, round_money, to_minor_units


def test_d_accepts_strings_numbers_and_none():
    assert D("4.99") == Decimal("4.99")
    assert D(5) == Decimal("5")
    assert D(None) == Decimal("0")
    assert D(0.1) == Decimal("0.1")


def test_round_money_half_up():
    assert round_money(Decimal("2.675")) == Decimal("2.68")
    assert round_money(Decimal("2.665")) == Decimal("2.67")
    assert round_money(Decimal("-0.005")) == Decimal("-0.01")


def test_minor_units():
    assert to_minor_units(Decimal("36.99")) == 3699
    assert to_minor_units(Decimal("0.495")) == 50
    assert from_minor_units(3699) == Decimal("36.99")


def test_format_money():
    assert format_money(Decimal("20")) == "£20.00"
    assert format_money(Decimal("0.5"), "usd") == "$0.50"
    assert format_money(Decimal("1"), "jpy") == "1.00"
