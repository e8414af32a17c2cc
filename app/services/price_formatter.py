# app/services/price_formatter.py
"""
Money display helpers.

Amounts are integer cents everywhere in the app; this module is the only
place that converts to and from "$12.99" style strings. Rounding is
half-up on cents (never banker's rounding) so computed discounts and tax
never drift by a cent.
"""
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable

_PRICE_NOISE = re.compile(r"[$,\s]")


def to_decimal(value: int | float | Decimal | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps 0.0875 as 0.0875 instead of its binary expansion
    return Decimal(str(value))


def is_finite(value: int | float | Decimal | str) -> bool:
    try:
        return to_decimal(value).is_finite()
    except InvalidOperation:
        return False


def round_half_up(value: int | float | Decimal) -> int:
    """Round to the nearest integer, halves away from zero. NaN and infinities give 0."""
    if not is_finite(value):
        return 0
    return int(to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_price(cents: int | None, currency: str = "$") -> str:
    """
    1299 -> "$12.99", None/0 -> "$0.00", -500 -> "-$5.00"
    """
    if not cents:
        return f"{currency}0.00"

    sign = "-" if cents < 0 else ""
    dollars = (Decimal(abs(cents)) / 100).quantize(Decimal("0.01"))
    return f"{sign}{currency}{dollars}"


def format_discount_amount(cents: int, currency: str = "$") -> str:
    """Breakdown style for deductions: 500 -> "-$5.00"."""
    return format_price(-abs(cents), currency=currency)


def parse_price(text: str | int | float | None) -> int:
    """
    "$1,234.56" -> 123456. Blank or unparseable input -> 0.
    """
    if text is None:
        return 0

    clean = _PRICE_NOISE.sub("", str(text))
    if not clean:
        return 0

    try:
        amount = Decimal(clean)
        if not amount.is_finite():
            return 0
        return round_half_up(amount * 100)
    except (InvalidOperation, ValueError):
        return 0


def price_range(prices: Iterable[int | None], currency: str = "$") -> str:
    """
    "$5.00 - $12.00" for differing prices, a single price otherwise.
    Zero and missing prices are ignored.
    """
    clean = [p for p in prices if p]
    if not clean:
        return format_price(0, currency=currency)

    low, high = min(clean), max(clean)
    if low == high:
        return format_price(low, currency=currency)
    return f"{format_price(low, currency=currency)} - {format_price(high, currency=currency)}"


def cents_to_dollars(cents: int | None) -> float:
    if cents is None:
        return 0.0
    return float((Decimal(cents) / 100).quantize(Decimal("0.01")))


def dollars_to_cents(dollars: int | float | Decimal | None) -> int:
    if dollars is None:
        return 0
    return round_half_up(to_decimal(dollars) * 100)


def percentage_saved(original_cents: int, savings_cents: int) -> float:
    """Savings as a percentage of the original, one decimal place."""
    if original_cents <= 0:
        return 0.0
    pct = Decimal(savings_cents) * 100 / Decimal(original_cents)
    return float(pct.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def valid_price(price) -> bool:
    """Whole, non-negative cents."""
    return isinstance(price, int) and not isinstance(price, bool) and price >= 0


def tax_amount(price_cents: int | None, tax_rate: float | Decimal | None) -> int:
    """Tax on `price_cents` at a decimal rate (0.0875 for 8.75%), half-up."""
    if not price_cents or price_cents <= 0:
        return 0
    if tax_rate is None or not is_finite(tax_rate) or to_decimal(tax_rate) <= 0:
        return 0
    return round_half_up(Decimal(price_cents) * to_decimal(tax_rate))


def price_with_tax(price_cents: int | None, tax_rate: float | Decimal | None) -> int:
    if price_cents is None:
        return 0
    return price_cents + tax_amount(price_cents, tax_rate)


def discount_percentage(original_cents: int | None, sale_cents: int | None) -> float:
    """How far `sale_cents` is below `original_cents`, in percent. 0.0 unless it is lower."""
    if not original_cents or original_cents <= 0:
        return 0.0
    if sale_cents is None or sale_cents >= original_cents:
        return 0.0
    return percentage_saved(original_cents, original_cents - sale_cents)


def compare_prices(first_cents: int, second_cents: int) -> str:
    """"higher", "lower" or "equal", read as first relative to second."""
    if first_cents == second_cents:
        return "equal"
    return "higher" if first_cents > second_cents else "lower"


def average_price(prices: Iterable[int | None]) -> int:
    """Mean of the non-zero prices, half-up. 0 when there are none."""
    clean = [p for p in prices if p]
    if not clean:
        return 0
    return round_half_up(Decimal(sum(clean)) / len(clean))
