# app/services/shipping_estimator.py
"""
Shipping cost estimation over a cart snapshot.

  total = base_fee + weight_fee + distance_fee

  weight_fee   = total_weight_kg * per_kg_fee          (0 unless per_kg_fee > 0)
  distance_fee = base_fee * 10% * (distance_km / 100) * distance_multiplier
                 (0 unless both the destination distance and the
                 method's multiplier are present)

Each component is rounded half-up to whole cents and is never negative.
Express and international pricing and shipping discounts work on an
already quoted cost. Pure computation: no database access.
"""
from decimal import Decimal
from numbers import Real
from typing import Any, Sequence

from app.models.product import DEFAULT_VARIANT_WEIGHT_KG
from app.models.shipping import ShippingMethod
from app.schemas.cart import CartSnapshot
from app.schemas.pricing import (
    ExpressShippingQuote,
    FreeShippingEligibility,
    InternationalShippingQuote,
    ShippingDestination,
    ShippingDiscount,
    ShippingQuote,
)
from app.services.price_formatter import (
    format_price,
    is_finite,
    round_half_up,
    to_decimal,
    valid_price,
)

DISTANCE_FEE_RATE = Decimal("0.10")
DISTANCE_UNIT_KM = Decimal("100")

DEFAULT_EXPRESS_MULTIPLIER = 1.5
DEFAULT_INTERNATIONAL_RATE = 2.0


def total_weight(snapshot: CartSnapshot | None) -> Decimal:
    if snapshot is None or snapshot.is_empty:
        return Decimal("0")

    weight = Decimal("0")
    for line in snapshot.lines:
        unit_weight = line.weight_kg if line.weight_kg is not None else DEFAULT_VARIANT_WEIGHT_KG
        weight += to_decimal(unit_weight) * line.quantity
    return weight


def weight_fee(snapshot: CartSnapshot, method: ShippingMethod) -> int:
    if not method.per_kg_fee_cents or method.per_kg_fee_cents <= 0:
        return 0

    weight = total_weight(snapshot)
    if weight <= 0:
        return 0
    return round_half_up(weight * method.per_kg_fee_cents)


def distance_fee(
    destination: ShippingDestination | None,
    method: ShippingMethod,
) -> int:
    if destination is None or destination.distance_km is None:
        return 0
    if method.distance_multiplier is None:
        return 0

    fee = (
        Decimal(method.base_fee_cents)
        * DISTANCE_FEE_RATE
        * (to_decimal(destination.distance_km) / DISTANCE_UNIT_KM)
        * to_decimal(method.distance_multiplier)
    )
    return max(0, round_half_up(fee))


def no_shipping() -> ShippingQuote:
    return ShippingQuote(breakdown=_breakdown(0, 0, 0, 0))


def estimate(
    snapshot: CartSnapshot | None,
    method: ShippingMethod | None,
    destination: ShippingDestination | None = None,
) -> ShippingQuote:
    """
    Quote for shipping the cart with `method` to `destination`.
    Empty carts and a missing method cost nothing.
    """
    if snapshot is None or snapshot.is_empty or method is None:
        return no_shipping()

    base = max(0, method.base_fee_cents)
    by_weight = weight_fee(snapshot, method)
    by_distance = distance_fee(destination, method)
    total = base + by_weight + by_distance

    return ShippingQuote(
        shipping_method_id=method.id,
        shipping_method=method.name,
        base_fee_cents=base,
        weight_fee_cents=by_weight,
        distance_fee_cents=by_distance,
        total_cents=total,
        total_weight_kg=float(total_weight(snapshot)),
        estimated_days=method.estimated_days,
        breakdown=_breakdown(base, by_weight, by_distance, total),
    )


def shipping_options(
    snapshot: CartSnapshot | None,
    methods: Sequence[ShippingMethod],
    destination: ShippingDestination | None = None,
) -> list[ShippingQuote]:
    """Quotes for every method, cheapest first (stable for equal cost)."""
    if snapshot is None or snapshot.is_empty:
        return []

    quotes = [estimate(snapshot, method, destination) for method in methods]
    return sorted(quotes, key=lambda q: q.total_cents)


def free_shipping_eligibility(
    cart_total_cents: int,
    threshold_cents: int,
) -> FreeShippingEligibility:
    qualifies = cart_total_cents >= threshold_cents
    amount_needed = 0 if qualifies else threshold_cents - cart_total_cents

    return FreeShippingEligibility(
        qualifies=qualifies,
        threshold_cents=threshold_cents,
        cart_total_cents=cart_total_cents,
        amount_needed_cents=amount_needed,
        threshold=format_price(threshold_cents),
        cart_total=format_price(cart_total_cents),
        amount_needed=format_price(amount_needed),
    )


def _factor(value: Any, minimum: float) -> float | None:
    """A finite real >= minimum as float, else None."""
    if isinstance(value, bool) or not isinstance(value, (Real, Decimal)):
        return None
    if not is_finite(value) or value < minimum:
        return None
    return float(value)


def express_shipping(
    base_shipping_cents: int,
    express_multiplier: float = DEFAULT_EXPRESS_MULTIPLIER,
) -> ExpressShippingQuote:
    """
    Express upgrade of a standard shipping cost. A multiplier below 1 or
    not a number adds no surcharge.
    """
    if not valid_price(base_shipping_cents):
        return ExpressShippingQuote(breakdown=_express_breakdown(0, 0, 0))

    multiplier = _factor(express_multiplier, 1.0) or 1.0
    total = round_half_up(Decimal(base_shipping_cents) * to_decimal(multiplier))
    surcharge = total - base_shipping_cents

    return ExpressShippingQuote(
        base_shipping_cents=base_shipping_cents,
        express_multiplier=multiplier,
        surcharge_cents=surcharge,
        total_cents=total,
        breakdown=_express_breakdown(base_shipping_cents, surcharge, total),
    )


def international_shipping(
    base_shipping_cents: int,
    international_rate: float = DEFAULT_INTERNATIONAL_RATE,
    customs_fee_cents: int = 0,
) -> InternationalShippingQuote:
    """
    Domestic cost scaled by `international_rate`, plus a flat customs fee.
    A rate that is not a positive number counts as 1; a bad fee as 0.
    """
    if not valid_price(base_shipping_cents):
        return InternationalShippingQuote(breakdown=_international_breakdown(0, 0, 0, 0))

    rate = _factor(international_rate, 0.0) or 1.0
    customs = customs_fee_cents if valid_price(customs_fee_cents) else 0
    international_base = round_half_up(Decimal(base_shipping_cents) * to_decimal(rate))
    total = international_base + customs

    return InternationalShippingQuote(
        domestic_shipping_cents=base_shipping_cents,
        international_rate=rate,
        international_base_cents=international_base,
        customs_fee_cents=customs,
        total_cents=total,
        breakdown=_international_breakdown(
            base_shipping_cents, international_base, customs, total
        ),
    )


def shipping_discount(
    shipping_cost_cents: int,
    discount_percentage: float,
) -> ShippingDiscount:
    """
    `discount_percentage`% off a shipping cost, half-up, never below zero.
    No cost or no positive percentage gives the all-zero result.
    """
    if not valid_price(shipping_cost_cents) or shipping_cost_cents == 0:
        return ShippingDiscount()

    percentage = _factor(discount_percentage, 0.0)
    if not percentage:
        return ShippingDiscount()

    percentage = min(percentage, 100.0)
    discount = round_half_up(
        Decimal(shipping_cost_cents) * to_decimal(percentage) / 100
    )
    final = shipping_cost_cents - discount

    return ShippingDiscount(
        original_cost_cents=shipping_cost_cents,
        discount_percentage=percentage,
        discount_amount_cents=discount,
        final_cost_cents=final,
        breakdown={
            "original_cost": format_price(shipping_cost_cents),
            "discount": format_price(discount),
            "final_cost": format_price(final),
        },
    )


def _breakdown(base: int, by_weight: int, by_distance: int, total: int) -> dict[str, str]:
    return {
        "base_fee": format_price(base),
        "weight_fee": format_price(by_weight),
        "distance_fee": format_price(by_distance),
        "total": format_price(total),
    }


def _express_breakdown(base: int, surcharge: int, total: int) -> dict[str, str]:
    return {
        "base_shipping": format_price(base),
        "express_surcharge": format_price(surcharge),
        "total": format_price(total),
    }


def _international_breakdown(
    domestic: int, international_base: int, customs: int, total: int
) -> dict[str, str]:
    return {
        "domestic_equivalent": format_price(domestic),
        "international_base": format_price(international_base),
        "customs_fee": format_price(customs),
        "total": format_price(total),
    }
