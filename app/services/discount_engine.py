# app/services/discount_engine.py
"""
Stateless discount calculators.

Every function takes amounts in cents plus rule parameters and returns a
DiscountResult. Inputs are never mutated and nothing here raises: bad or
non-qualifying input yields the "none" result (all zeros).

Results always satisfy 0 <= discount <= original and
final == original - discount.
"""
from decimal import Decimal
from numbers import Real
from typing import Any, Iterable, Sequence

from pydantic import ValidationError

from app.schemas.pricing import BulkTier, DiscountResult, DiscountTier
from app.services.price_formatter import (
    format_price,
    is_finite,
    percentage_saved,
    round_half_up,
    to_decimal,
)


def no_discount() -> DiscountResult:
    return DiscountResult()


def _is_number(*values: Any) -> bool:
    """Real, finite and not a bool."""
    return all(
        isinstance(v, (Real, Decimal)) and not isinstance(v, bool) and is_finite(v)
        for v in values
    )


def _is_int(*values: Any) -> bool:
    return all(isinstance(v, int) and not isinstance(v, bool) for v in values)


def _result(original: int, discount: int, **fields: Any) -> DiscountResult:
    discount = max(0, min(discount, original))
    return DiscountResult(
        original_amount_cents=original,
        discount_amount_cents=discount,
        final_amount_cents=original - discount,
        savings_cents=discount,
        **fields,
    )


def _percent_of(amount_cents: int, percentage: float | Decimal) -> int:
    return round_half_up(Decimal(amount_cents) * to_decimal(percentage) / 100)


def percentage_discount(amount_cents: int, percentage: float) -> DiscountResult:
    """
    `percentage`% off `amount_cents`, rounded half-up, capped at the amount.

    0% of a positive amount is a zero-savings percentage result, so
    final + discount still equals the amount.
    """
    if not (_is_int(amount_cents) and _is_number(percentage)):
        return no_discount()
    if amount_cents <= 0 or percentage < 0:
        return no_discount()

    return _result(
        amount_cents,
        _percent_of(amount_cents, percentage),
        type="percentage",
        percentage=float(percentage),
    )


def fixed_discount(amount_cents: int, discount_cents: int) -> DiscountResult:
    """Flat amount off, never more than the amount itself."""
    if not _is_int(amount_cents, discount_cents):
        return no_discount()
    if amount_cents <= 0 or discount_cents <= 0:
        return no_discount()

    return _result(amount_cents, discount_cents, type="fixed")


def quantity_discount(
    quantity: int,
    unit_price_cents: int,
    min_quantity: int,
    percentage: float,
) -> DiscountResult:
    """`percentage`% off the line total once `quantity` reaches `min_quantity`."""
    if not (_is_int(quantity, unit_price_cents, min_quantity) and _is_number(percentage)):
        return no_discount()
    if quantity <= 0 or unit_price_cents <= 0 or percentage <= 0:
        return no_discount()
    if quantity < min_quantity:
        return no_discount()

    original = quantity * unit_price_cents
    return _result(
        original,
        _percent_of(original, percentage),
        type="quantity",
        percentage=float(percentage),
        quantity=quantity,
        unit_price_cents=unit_price_cents,
        min_quantity=min_quantity,
    )


def buy_x_get_y_free(
    quantity: int,
    unit_price_cents: int,
    buy_quantity: int,
    free_quantity: int,
) -> DiscountResult:
    """
    Every complete group of `buy_quantity` units earns `free_quantity` free
    units. A partial final group earns nothing: 7 units on buy-3-get-1
    gives 2 free units, not 3.
    """
    if not _is_int(quantity, unit_price_cents, buy_quantity, free_quantity):
        return no_discount()
    if buy_quantity <= 0 or free_quantity <= 0 or unit_price_cents <= 0:
        return no_discount()
    if quantity < buy_quantity:
        return no_discount()

    free_items = (quantity // buy_quantity) * free_quantity
    original = quantity * unit_price_cents
    return _result(
        original,
        free_items * unit_price_cents,
        type="buy_x_get_y_free",
        quantity=quantity,
        unit_price_cents=unit_price_cents,
        buy_quantity=buy_quantity,
        free_quantity=free_quantity,
        free_items=free_items,
    )


def _coerce_tiers(tiers: Iterable[Any] | None, model: type) -> list:
    coerced = []
    for tier in tiers or []:
        if isinstance(tier, model):
            coerced.append(tier)
            continue
        try:
            coerced.append(model.model_validate(tier))
        except ValidationError:
            continue
    return coerced


def tiered_discount(
    amount_cents: int,
    tiers: Sequence[DiscountTier | dict],
) -> DiscountResult:
    """
    Among tiers whose threshold the amount reaches, apply the one with the
    greatest percentage (not the greatest threshold). Equal percentages keep
    the first listed tier.
    """
    if not _is_int(amount_cents) or amount_cents <= 0:
        return no_discount()

    qualifying = [
        t for t in _coerce_tiers(tiers, DiscountTier)
        if amount_cents >= t.min_amount_cents and _is_number(t.percentage) and t.percentage > 0
    ]
    if not qualifying:
        return no_discount()

    best_tier = max(qualifying, key=lambda t: t.percentage)
    result = percentage_discount(amount_cents, best_tier.percentage)
    if result.type == "none":
        return result
    return result.model_copy(update={"type": "tiered", "tier": best_tier})


def bulk_discount(
    quantity: int,
    unit_price_cents: int,
    tiers: Sequence[BulkTier | dict],
) -> DiscountResult:
    """
    Among tiers whose min_quantity is reached, charge the lowest tier unit
    price for every unit. A tier that is not cheaper than the regular unit
    price yields no discount.
    """
    if not _is_int(quantity, unit_price_cents):
        return no_discount()
    if quantity <= 0 or unit_price_cents <= 0:
        return no_discount()

    qualifying = [
        t for t in _coerce_tiers(tiers, BulkTier)
        if quantity >= t.min_quantity and t.price_cents >= 0
    ]
    if not qualifying:
        return no_discount()

    best_tier = min(qualifying, key=lambda t: t.price_cents)
    if best_tier.price_cents >= unit_price_cents:
        return no_discount()

    original = quantity * unit_price_cents
    return _result(
        original,
        original - quantity * best_tier.price_cents,
        type="bulk",
        quantity=quantity,
        unit_price_cents=unit_price_cents,
        discounted_unit_price_cents=best_tier.price_cents,
        bulk_tier=best_tier,
    )


def best_discount(results: Sequence[DiscountResult]) -> DiscountResult:
    """
    Pick the single most valuable proposal; ties keep the earliest.
    Used for comparing alternatives, not for the stacked cart discounts.
    """
    if not results:
        return no_discount()
    return max(results, key=lambda r: r.savings_cents)


def total_savings(results: Iterable[DiscountResult]) -> int:
    return sum(r.savings_cents for r in results)


def describe_discount(result: DiscountResult) -> str:
    if result.description:
        return result.description

    if result.type == "percentage":
        return f"{_pct(result.percentage)}% off"
    if result.type == "fixed":
        return f"{format_price(result.discount_amount_cents)} off"
    if result.type == "quantity":
        return f"{_pct(result.percentage)}% off for {result.min_quantity}+ items"
    if result.type == "buy_x_get_y_free":
        return f"Buy {result.buy_quantity} get {result.free_quantity} free"
    if result.type == "tiered" and result.tier is not None:
        return (
            f"{_pct(result.tier.percentage)}% off orders over "
            f"{format_price(result.tier.min_amount_cents)}"
        )
    if result.type == "bulk":
        return f"Bulk pricing: {format_price(result.discounted_unit_price_cents)} each"
    return "Discount applied"


def format_discount(result: DiscountResult) -> dict[str, Any]:
    """Display dict for a discount; empty when nothing was saved."""
    if result.savings_cents <= 0:
        return {}

    return {
        "type": result.type,
        "description": describe_discount(result),
        "original_amount": format_price(result.original_amount_cents),
        "discount_amount": format_price(result.discount_amount_cents),
        "final_amount": format_price(result.final_amount_cents),
        "savings": format_price(result.savings_cents),
        "percentage_saved": percentage_saved(
            result.original_amount_cents, result.savings_cents
        ),
    }


def _pct(value: float | None) -> str:
    # 10.0 -> "10", 7.5 -> "7.5"
    if value is None:
        return "0"
    return f"{value:g}"
