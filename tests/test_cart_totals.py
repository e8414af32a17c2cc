# tests/test_cart_totals.py
import uuid

from app.models.shipping import ShippingMethod
from app.schemas.cart import CartLine, CartSnapshot
from app.schemas.pricing import ShippingDestination
from app.services.cart_totals_service import CartTotalsService, normalize_codes


def line(quantity, price, name="Atom Tee", weight_kg=None):
    return CartLine(
        item_id=uuid.uuid4(),
        variant_id=uuid.uuid4(),
        product_name=name,
        unit_price_cents=price,
        quantity=quantity,
        stock_quantity=100,
        weight_kg=weight_kg,
    )


def cart(*lines):
    return CartSnapshot(cart_id=uuid.uuid4(), lines=list(lines))


service = CartTotalsService(tax_rate=0.0875)


def test_quantity_discount_scenario():
    totals = service.calculate(cart(line(10, 500)))

    assert totals.subtotal_cents == 5000
    assert totals.discount_cents == 500
    assert totals.discounted_subtotal_cents == 4500
    # 4500 * 0.0875 = 393.75
    assert totals.tax_cents == 394
    assert totals.total_cents == 4894
    assert totals.total == "$48.94"
    assert totals.item_count == 10


def test_totals_are_idempotent():
    snapshot = cart(line(10, 500), line(1, 2500))
    assert service.calculate(snapshot) == service.calculate(snapshot)


def test_empty_cart_totals_are_zero():
    totals = service.calculate(cart())
    assert totals.total_cents == 0
    assert totals.breakdown == []
    assert totals.tax_rate == 0.0875


def test_quantity_and_tier_discounts_stack():
    # 6 * 2000 = 12000: 10% line discount (1200) + 5% tier (600)
    totals = service.calculate(cart(line(6, 2000)))
    assert [d.type for d in totals.discount_details] == ["quantity", "tiered"]
    assert totals.discount_cents == 1800
    assert totals.discounted_subtotal_cents == 10200


def test_discount_codes():
    snapshot = cart(line(2, 2000))
    totals = service.calculate(snapshot, discount_codes=[" save10 ", "WELCOME20", "BOGUS", "SAVE10"])

    assert totals.applied_codes == ["SAVE10", "WELCOME20"]
    assert totals.unrecognized_codes == ["BOGUS"]
    # 10% of 4000 + 2000
    assert totals.discount_cents == 2400
    assert {d.code for d in totals.discount_details} == {"SAVE10", "WELCOME20"}


def test_stacked_discounts_never_exceed_subtotal():
    totals = service.calculate(cart(line(1, 1500)), discount_codes=["WELCOME20", "SAVE10"])
    assert totals.discount_cents == 1500
    assert totals.discounted_subtotal_cents == 0
    assert totals.tax_cents == 0
    assert totals.total_cents == 0


def test_shipping_is_added_after_tax():
    method = ShippingMethod(id=uuid.uuid4(), name="Standard", base_fee_cents=500, per_kg_fee_cents=100)
    snapshot = cart(line(2, 1000, weight_kg=1.0))
    totals = service.calculate_with_shipping(snapshot, method, ShippingDestination(distance_km=10))

    # 2000 subtotal, tax 175, shipping 500 + 2kg * 100
    assert totals.tax_cents == 175
    assert totals.shipping_cents == 700
    assert totals.total_cents == 2875
    assert totals.shipping_quote.shipping_method == "Standard"


def test_breakdown_omits_zero_lines():
    totals = service.calculate(cart(line(1, 1000)))
    assert [b.label for b in totals.breakdown] == ["Subtotal", "Tax"]

    totals = service.calculate(cart(line(5, 1000)))
    discount_line = next(b for b in totals.breakdown if b.label == "Discounts")
    assert discount_line.amount_cents == -500
    assert discount_line.formatted_amount == "-$5.00"


def test_free_shipping_uses_current_total():
    # 5000 - 500 discount + 394 tax = 4894
    eligibility = service.free_shipping_eligibility(cart(line(10, 500)), 5000)
    assert eligibility.qualifies is False
    assert eligibility.amount_needed_cents == 106


def test_savings_summary():
    summary = service.savings_summary(cart(line(10, 500)))
    assert summary.total_savings_cents == 500
    assert summary.discount_count == 1
    assert summary.savings_percentage == 10.0
    assert summary.discounts_applied[0].description == "10% off for 5+ items"


def test_normalize_codes():
    assert normalize_codes(None) == []
    assert normalize_codes(["a", " A", "", "b"]) == ["A", "B"]
