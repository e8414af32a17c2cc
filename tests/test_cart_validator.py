# tests/test_cart_validator.py
import uuid

from app.models.product import ProductVariant
from app.schemas.cart import CartLine, CartSnapshot
from app.services import inventory_guard
from app.services.cart_validator import CartValidator


def line(quantity=1, price=1000, stock=10, name="Atom Tee", active=True):
    return CartLine(
        item_id=uuid.uuid4(),
        variant_id=uuid.uuid4(),
        product_name=name,
        unit_price_cents=price,
        quantity=quantity,
        stock_quantity=stock,
        product_active=active,
    )


def cart(*lines, status="active"):
    return CartSnapshot(cart_id=uuid.uuid4(), status=status, lines=list(lines))


def category(report, name):
    return next(c for c in report.categories if c.category == name)


validator = CartValidator()


def test_inventory_guard_checks():
    variant = ProductVariant(product_id=uuid.uuid4(), sku="A", price_cents=100, stock_quantity=3)
    assert inventory_guard.available(variant, 3)
    assert not inventory_guard.available(variant, 4)
    assert not inventory_guard.available(None)
    assert inventory_guard.low_stock(variant)
    assert not inventory_guard.low_stock(variant, threshold=2)

    variant.stock_quantity = 0
    assert not inventory_guard.in_stock(variant)
    assert not inventory_guard.low_stock(variant)


def test_valid_cart_passes_state_checks():
    report = validator.validate_state(cart(line(2)))
    assert report.overall_valid
    assert report.checkout_ready is False
    assert report.summary.total_categories == 3
    assert report.summary.overall_status == "valid"


def test_empty_cart_fails_basic_validation():
    report = validator.validate_state(cart())
    assert not report.overall_valid
    assert category(report, "Basic Cart Validation").errors == ["Cart is empty"]


def test_inventory_shortfall_is_reported_per_line():
    report = validator.validate_state(cart(line(4, stock=3, name="Quark Mug"), line(1)))
    inventory = category(report, "Inventory Validation")
    assert not inventory.valid
    assert inventory.errors == ["Quark Mug: requested 4, only 3 available"]
    # other categories are still computed independently
    assert category(report, "Business Rules Validation").valid


def test_business_rule_limits():
    small = CartValidator(max_items=5, max_lines=1)
    report = small.validate_state(cart(line(3, stock=50), line(3, stock=50)))
    errors = category(report, "Business Rules Validation").errors
    assert "Cart cannot contain more than 5 items" in errors
    assert "Cart cannot contain more than 1 different products" in errors


def test_checkout_adds_minimum_order_and_item_limits():
    report = validator.validate_for_checkout(cart(line(1, price=500)))
    assert report.summary.total_categories == 6
    assert not report.checkout_ready
    assert category(report, "Minimum Order Validation").errors == [
        "Minimum order is $10.00. Current total: $5.00"
    ]

    report = validator.validate_for_checkout(cart(line(11, price=500, stock=50, name="Ion Pen")))
    assert category(report, "Item Limits Validation").errors == [
        "Maximum 10 units allowed for Ion Pen"
    ]


def test_checkout_ready_when_everything_passes():
    report = validator.validate_for_checkout(cart(line(2, price=1000)))
    assert report.overall_valid
    assert report.checkout_ready


def test_inactive_product_blocks_checkout():
    report = validator.validate_for_checkout(cart(line(2, name="Old Tee", active=False)))
    assert category(report, "Checkout Readiness").errors == ["Old Tee is no longer available"]


def test_item_addition_accounts_for_quantity_in_cart():
    variant = ProductVariant(id=uuid.uuid4(), product_id=uuid.uuid4(), sku="A", price_cents=100, stock_quantity=5)
    existing = line(3, stock=5)
    existing.variant_id = variant.id
    snapshot = cart(existing)

    assert validator.validate_item_addition(snapshot, variant, "Atom Tee", 2).valid

    result = validator.validate_item_addition(snapshot, variant, "Atom Tee", 3)
    assert not result.valid
    assert result.errors == ["Can only add 2 more Atom Tee to cart"]

    existing.quantity = 5
    result = validator.validate_item_addition(snapshot, variant, "Atom Tee", 1)
    assert result.errors == ["Atom Tee is already at maximum quantity in cart"]


def test_item_addition_rejects_out_of_stock_and_non_positive():
    variant = ProductVariant(id=uuid.uuid4(), product_id=uuid.uuid4(), sku="A", price_cents=100, stock_quantity=0)
    result = validator.validate_item_addition(cart(), variant, "Atom Tee", 1)
    assert "Atom Tee is out of stock" in result.errors

    variant.stock_quantity = 5
    assert not validator.validate_item_addition(cart(), variant, "Atom Tee", 0).valid


def test_quantity_update():
    current = line(2, stock=4, name="Atom Tee")
    assert validator.validate_quantity_update(current, 0).valid
    assert validator.validate_quantity_update(current, 4).valid
    assert not validator.validate_quantity_update(current, -1).valid

    result = validator.validate_quantity_update(current, 5)
    assert result.errors == ["Only 4 Atom Tee available"]


def test_warnings():
    warnings = validator.warnings(cart(line(2, stock=3, name="Low"), line(12, stock=100, name="Bulk")))
    assert [(w.type, w.product_name) for w in warnings] == [
        ("low_stock", "Low"),
        ("high_quantity", "Bulk"),
    ]
    assert warnings[0].message == "Only 3 left in stock"
    assert warnings[1].severity == "info"
