# app/services/cart_totals_service.py
import logging
from typing import Iterable

from app.models.shipping import ShippingMethod
from app.schemas.cart import CartSnapshot
from app.schemas.pricing import (
    BreakdownLine,
    CartTotals,
    DiscountResult,
    DiscountSummaryLine,
    DiscountTier,
    FreeShippingEligibility,
    SavingsSummary,
    ShippingDestination,
    ShippingQuote,
)
from app.services import discount_engine, shipping_estimator
from app.services.price_formatter import (
    format_discount_amount,
    format_price,
    percentage_saved,
    tax_amount,
)

# 10% off a line once it reaches 5 units
QUANTITY_DISCOUNT_MIN_QUANTITY = 5
QUANTITY_DISCOUNT_PERCENTAGE = 10.0

# Cart-level tiers on the pre-discount subtotal
CART_DISCOUNT_TIERS: list[DiscountTier] = [
    DiscountTier(min_amount_cents=10000, percentage=5.0),
    DiscountTier(min_amount_cents=20000, percentage=10.0),
    DiscountTier(min_amount_cents=50000, percentage=15.0),
]

# Promotional codes, applied to the pre-discount subtotal
SAVE10_PERCENTAGE = 10.0
WELCOME20_CENTS = 2000


def _code_discount(code: str, subtotal_cents: int) -> DiscountResult | None:
    if code == "SAVE10":
        result = discount_engine.percentage_discount(subtotal_cents, SAVE10_PERCENTAGE)
        description = "10% off with code SAVE10"
    elif code == "WELCOME20":
        result = discount_engine.fixed_discount(subtotal_cents, WELCOME20_CENTS)
        description = "$20 off with code WELCOME20"
    else:
        return None
    return result.model_copy(update={"code": code, "description": description})


def normalize_codes(codes: Iterable[str] | None) -> list[str]:
    """Upper-case, strip and de-duplicate while keeping first-seen order."""
    seen: list[str] = []
    for code in codes or []:
        clean = (code or "").strip().upper()
        if clean and clean not in seen:
            seen.append(clean)
    return seen


class CartTotalsService:
    """
    Prices a cart snapshot:

      1. subtotal            = sum(quantity * unit price)
      2. discounts           = per-line quantity discounts
                             + cart tier discount
                             + promotional codes (if given)
                               -- all applicable discounts STACK --
      3. discounted subtotal = subtotal - discounts, floored at 0
      4. tax                 = round_half_up(discounted subtotal * tax_rate)
      5. total               = discounted subtotal + tax (+ shipping)

    Pure and re-run on every read; the same snapshot always yields the
    same totals.
    """

    def __init__(
        self,
        tax_rate: float = 0.0875,
        currency: str = "USD",
        logger: logging.Logger | None = None,
    ):
        self.tax_rate = tax_rate
        self.currency = currency
        self.log = logger or logging.getLogger(__name__)

    # ---- public operations ----

    def calculate(
        self,
        snapshot: CartSnapshot,
        discount_codes: Iterable[str] | None = None,
        shipping_method: ShippingMethod | None = None,
        destination: ShippingDestination | None = None,
    ) -> CartTotals:
        if snapshot.is_empty:
            return self.empty_totals()

        subtotal = snapshot.subtotal_cents
        discounts = self.automatic_discounts(snapshot)

        codes = normalize_codes(discount_codes)
        applied: list[str] = []
        unrecognized: list[str] = []
        for code in codes:
            result = _code_discount(code, subtotal)
            if result is None:
                unrecognized.append(code)
                continue
            applied.append(code)
            if result.savings_cents > 0:
                discounts.append(result)

        quote = None
        if shipping_method is not None:
            quote = shipping_estimator.estimate(snapshot, shipping_method, destination)

        totals = self._build(snapshot, subtotal, discounts, quote)
        totals.applied_codes = applied
        totals.unrecognized_codes = unrecognized

        self.log.debug(
            "Cart %s totals: subtotal=%s discount=%s tax=%s shipping=%s total=%s",
            snapshot.cart_id,
            totals.subtotal_cents,
            totals.discount_cents,
            totals.tax_cents,
            totals.shipping_cents,
            totals.total_cents,
        )
        return totals

    def calculate_with_shipping(
        self,
        snapshot: CartSnapshot,
        shipping_method: ShippingMethod,
        destination: ShippingDestination | None = None,
    ) -> CartTotals:
        return self.calculate(
            snapshot, shipping_method=shipping_method, destination=destination
        )

    def calculate_with_discount_codes(
        self,
        snapshot: CartSnapshot,
        discount_codes: Iterable[str],
    ) -> CartTotals:
        return self.calculate(snapshot, discount_codes=discount_codes)

    def free_shipping_eligibility(
        self,
        snapshot: CartSnapshot,
        threshold_cents: int = 5000,
    ) -> FreeShippingEligibility:
        totals = self.calculate(snapshot)
        return shipping_estimator.free_shipping_eligibility(
            totals.total_cents, threshold_cents
        )

    def savings_summary(self, snapshot: CartSnapshot) -> SavingsSummary:
        totals = self.calculate(snapshot)
        return SavingsSummary(
            total_savings_cents=totals.discount_cents,
            total_savings=totals.discount,
            discount_count=len(totals.discount_details),
            savings_percentage=percentage_saved(
                totals.subtotal_cents, totals.discount_cents
            ),
            discounts_applied=[
                DiscountSummaryLine(
                    type=d.type,
                    description=discount_engine.describe_discount(d),
                    savings_cents=d.savings_cents,
                    savings=format_price(d.savings_cents),
                )
                for d in totals.discount_details
            ],
        )

    def automatic_discounts(self, snapshot: CartSnapshot) -> list[DiscountResult]:
        """Discounts every cart gets without a code."""
        discounts: list[DiscountResult] = []

        for line in snapshot.lines:
            result = discount_engine.quantity_discount(
                line.quantity,
                line.unit_price_cents,
                QUANTITY_DISCOUNT_MIN_QUANTITY,
                QUANTITY_DISCOUNT_PERCENTAGE,
            )
            if result.savings_cents > 0:
                discounts.append(
                    result.model_copy(
                        update={"item_id": line.item_id, "item_name": line.product_name}
                    )
                )

        tier = discount_engine.tiered_discount(snapshot.subtotal_cents, CART_DISCOUNT_TIERS)
        if tier.savings_cents > 0:
            discounts.append(tier)

        return discounts

    def tax_for(self, taxable_cents: int) -> int:
        return tax_amount(taxable_cents, self.tax_rate)

    def empty_totals(self) -> CartTotals:
        return CartTotals(tax_rate=self.tax_rate, currency=self.currency)

    # ---- internal helpers ----

    def _build(
        self,
        snapshot: CartSnapshot,
        subtotal: int,
        discounts: list[DiscountResult],
        quote: ShippingQuote | None,
    ) -> CartTotals:
        discount_total = min(discount_engine.total_savings(discounts), subtotal)
        discounted_subtotal = max(0, subtotal - discount_total)
        tax = self.tax_for(discounted_subtotal)
        shipping = quote.total_cents if quote is not None else 0
        total = discounted_subtotal + tax + shipping

        return CartTotals(
            subtotal_cents=subtotal,
            subtotal=format_price(subtotal),
            discount_cents=discount_total,
            discount=format_price(discount_total),
            discount_details=discounts,
            discounted_subtotal_cents=discounted_subtotal,
            discounted_subtotal=format_price(discounted_subtotal),
            tax_rate=self.tax_rate,
            tax_cents=tax,
            tax=format_price(tax),
            shipping_cents=shipping,
            shipping=format_price(shipping),
            shipping_quote=quote,
            total_cents=total,
            total=format_price(total),
            currency=self.currency,
            item_count=snapshot.total_items,
            breakdown=self._breakdown(subtotal, discount_total, tax, shipping),
        )

    @staticmethod
    def _breakdown(
        subtotal: int,
        discount: int,
        tax: int,
        shipping: int,
    ) -> list[BreakdownLine]:
        lines = [
            BreakdownLine(label="Subtotal", amount_cents=subtotal, formatted_amount=format_price(subtotal)),
            BreakdownLine(label="Discounts", amount_cents=-discount, formatted_amount=format_discount_amount(discount)),
            BreakdownLine(label="Tax", amount_cents=tax, formatted_amount=format_price(tax)),
            BreakdownLine(label="Shipping", amount_cents=shipping, formatted_amount=format_price(shipping)),
        ]
        return [line for line in lines if line.amount_cents != 0]
