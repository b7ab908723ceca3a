"""
Currency units used at the payment boundary.

Stripe speaks Cents, invoices are priced in Dollars and the ledger counts
Credits (1 credit = $1 = 100 cents). Conversions live here and nowhere else.
"""
from decimal import ROUND_HALF_UP, Decimal
from typing import NewType

Cents = NewType("Cents", int)
Dollars = NewType("Dollars", Decimal)
Credits = NewType("Credits", Decimal)

CENTS_PER_DOLLAR = 100
CREDITS_PER_DOLLAR = Decimal("1")
MIN_CHARGE_CENTS = Cents(100)

_TWO_PLACES = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Decimal from int/float/str/Decimal, quantized to cents precision."""
    if isinstance(value, Decimal):
        return value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)
    return Decimal(str(value)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def cents_to_dollars(cents: Cents) -> Dollars:
    return Dollars(to_decimal(Decimal(int(cents)) / CENTS_PER_DOLLAR))


def dollars_to_cents(dollars) -> Cents:
    return Cents(int((to_decimal(dollars) * CENTS_PER_DOLLAR).to_integral_value(rounding=ROUND_HALF_UP)))


def cents_to_credits(cents: Cents) -> Credits:
    return Credits(to_decimal(cents_to_dollars(cents) * CREDITS_PER_DOLLAR))


def credits_to_cents(credits) -> Cents:
    return dollars_to_cents(to_decimal(credits) / CREDITS_PER_DOLLAR)


def format_usd(dollars) -> str:
    """'$1,234.50'"""
    return f"${to_decimal(dollars):,.2f}"


def format_credits(credits) -> str:
    """Whole credit counts render without decimals: '10', '2.5'."""
    value = to_decimal(credits)
    if value == value.to_integral_value():
        return str(int(value))
    return str(value.normalize())
