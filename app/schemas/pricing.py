# app/schemas/pricing.py
import uuid
from typing import Literal

from sqlmodel import SQLModel, Field

DiscountType = Literal[
    "none",
    "percentage",
    "fixed",
    "quantity",
    "buy_x_get_y_free",
    "tiered",
    "bulk",
]


class DiscountTier(SQLModel):
    """
    Cart-amount tier: `percentage` off once the amount reaches `min_amount_cents`.
    """

    min_amount_cents: int
    percentage: float


class BulkTier(SQLModel):
    """
    Quantity tier: every unit costs `price_cents` once `min_quantity` is reached.
    """

    min_quantity: int
    price_cents: int


class DiscountResult(SQLModel):
    """
    Outcome of a single discount rule.

    Invariants (kept by services/discount_engine.py):
      0 <= discount_amount_cents <= original_amount_cents
      final_amount_cents == original_amount_cents - discount_amount_cents
      savings_cents == discount_amount_cents
    """

    type: DiscountType = "none"
    original_amount_cents: int = 0
    discount_amount_cents: int = 0
    final_amount_cents: int = 0
    savings_cents: int = 0

    # Rule parameters, populated per type
    percentage: float | None = None
    quantity: int | None = None
    unit_price_cents: int | None = None
    min_quantity: int | None = None
    buy_quantity: int | None = None
    free_quantity: int | None = None
    free_items: int | None = None
    discounted_unit_price_cents: int | None = None
    tier: DiscountTier | None = None
    bulk_tier: BulkTier | None = None

    # Context attached by the totals pipeline
    item_id: uuid.UUID | None = None
    item_name: str | None = None
    code: str | None = None
    description: str | None = None


class ShippingDestination(SQLModel):
    distance_km: float | None = Field(default=None, ge=0)


class ShippingQuote(SQLModel):
    """
    total_cents == base_fee_cents + weight_fee_cents + distance_fee_cents
    """

    shipping_method_id: uuid.UUID | None = None
    shipping_method: str = "None"
    base_fee_cents: int = 0
    weight_fee_cents: int = 0
    distance_fee_cents: int = 0
    total_cents: int = 0
    total_weight_kg: float = 0.0
    estimated_days: int | None = None
    breakdown: dict[str, str] = Field(default_factory=dict)


class ExpressShippingQuote(SQLModel):
    """total_cents == base_shipping_cents + surcharge_cents"""

    base_shipping_cents: int = 0
    express_multiplier: float = 1.0
    surcharge_cents: int = 0
    total_cents: int = 0
    breakdown: dict[str, str] = Field(default_factory=dict)


class InternationalShippingQuote(SQLModel):
    """total_cents == international_base_cents + customs_fee_cents"""

    domestic_shipping_cents: int = 0
    international_rate: float = 1.0
    international_base_cents: int = 0
    customs_fee_cents: int = 0
    total_cents: int = 0
    breakdown: dict[str, str] = Field(default_factory=dict)


class ShippingDiscount(SQLModel):
    """
    Percentage off a shipping cost. All zeros when nothing applies.
    final_cost_cents == original_cost_cents - discount_amount_cents
    """

    original_cost_cents: int = 0
    discount_percentage: float = 0.0
    discount_amount_cents: int = 0
    final_cost_cents: int = 0
    breakdown: dict[str, str] = Field(default_factory=dict)


class FreeShippingEligibility(SQLModel):
    qualifies: bool
    threshold_cents: int
    cart_total_cents: int
    amount_needed_cents: int
    threshold: str
    cart_total: str
    amount_needed: str


class BreakdownLine(SQLModel):
    label: str
    amount_cents: int
    formatted_amount: str


class CartTotals(SQLModel):
    """
    Full pricing breakdown for a cart snapshot. Every intermediate value is
    exposed in cents alongside its display string.
    """

    subtotal_cents: int = 0
    subtotal: str = "$0.00"

    discount_cents: int = 0
    discount: str = "$0.00"
    discount_details: list[DiscountResult] = Field(default_factory=list)

    discounted_subtotal_cents: int = 0
    discounted_subtotal: str = "$0.00"

    tax_rate: float = 0.0
    tax_cents: int = 0
    tax: str = "$0.00"

    shipping_cents: int = 0
    shipping: str = "$0.00"
    shipping_quote: ShippingQuote | None = None

    total_cents: int = 0
    total: str = "$0.00"

    currency: str = "USD"
    item_count: int = 0
    applied_codes: list[str] = Field(default_factory=list)
    unrecognized_codes: list[str] = Field(default_factory=list)
    breakdown: list[BreakdownLine] = Field(default_factory=list)


class DiscountSummaryLine(SQLModel):
    type: DiscountType
    description: str
    savings_cents: int
    savings: str


class SavingsSummary(SQLModel):
    total_savings_cents: int
    total_savings: str
    discount_count: int
    savings_percentage: float
    discounts_applied: list[DiscountSummaryLine]
