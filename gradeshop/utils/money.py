# gradeshop/utils/money.py

from decimal import Decimal, ROUND_HALF_UP

Money = Decimal

CENT = Decimal("0.01")
MINOR_UNITS = Decimal("100")

CURRENCY_SYMBOLS = {"gbp": "£", "usd": "$", "eur": "€"}

def D(x) -> Money:
    return x if isinstance(x, Decimal) else Decimal(str(x or "0"))

def round_money(x: Money) -> Money:
    return D(x).quantize(CENT, rounding=ROUND_HALF_UP)

def to_minor_units(x: Money) -> int:
    # pence/cents; half-up at the last step only
    return int((D(x) * MINOR_UNITS).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

def from_minor_units(amount: int) -> Money:
    return (Decimal(int(amount)) / MINOR_UNITS).quantize(CENT)

def format_money(x, currency: str = "gbp") -> str:
    symbol = CURRENCY_SYMBOLS.get((currency or "").lower(), "")
    return f"{symbol}{round_money(x):.2f}"
