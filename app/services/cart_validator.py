# app/services/cart_validator.py
"""
Cart validation over a CartSnapshot.

Each category is computed independently and reported as a
ValidationCategory; the ValidationReport ANDs them together. Nothing here
raises or touches the database.
"""
from app.core.config import Settings
from app.models.product import ProductVariant
from app.schemas.cart import CartLine, CartSnapshot
from app.schemas.validation import (
    ValidationCategory,
    ValidationReport,
    ValidationWarning,
)
from app.services import inventory_guard
from app.services.price_formatter import format_price


def _line_name(line: CartLine) -> str:
    return line.product_name or line.sku or str(line.variant_id)


def _category(
    name: str,
    errors: list[str],
    ok_message: str,
    fail_message: str,
) -> ValidationCategory:
    return ValidationCategory(
        category=name,
        valid=not errors,
        message=fail_message if errors else ok_message,
        errors=errors,
    )


class CartValidator:
    """
    Business-rule gate for cart mutations and checkout.

    Limits default to the values the storefront ships with and can be
    overridden per instance (see `from_settings`).
    """

    def __init__(
        self,
        max_items: int = 50,
        max_lines: int = 20,
        min_order_cents: int = 1000,
        max_units_per_item: int = 10,
        low_stock_threshold: int = inventory_guard.DEFAULT_LOW_STOCK_THRESHOLD,
        high_quantity_warning: int = 10,
    ):
        self.max_items = max_items
        self.max_lines = max_lines
        self.min_order_cents = min_order_cents
        self.max_units_per_item = max_units_per_item
        self.low_stock_threshold = low_stock_threshold
        self.high_quantity_warning = high_quantity_warning

    @classmethod
    def from_settings(cls, settings: Settings) -> "CartValidator":
        return cls(
            max_items=settings.MAX_CART_ITEMS,
            max_lines=settings.MAX_CART_LINES,
            min_order_cents=settings.MIN_ORDER_CENTS,
            max_units_per_item=settings.MAX_UNITS_PER_ITEM,
            low_stock_threshold=settings.LOW_STOCK_THRESHOLD,
            high_quantity_warning=settings.HIGH_QUANTITY_WARNING,
        )

    # ---- categories ----

    def validate_basic(self, snapshot: CartSnapshot) -> ValidationCategory:
        errors: list[str] = []
        if snapshot.is_empty:
            errors.append("Cart is empty")
        if snapshot.status != "active":
            errors.append("Cart is not active")

        return _category(
            "Basic Cart Validation",
            errors,
            "Cart is valid",
            "Cart validation failed",
        )

    def validate_inventory(self, snapshot: CartSnapshot) -> ValidationCategory:
        errors = [
            f"{_line_name(line)}: requested {line.quantity}, "
            f"only {inventory_guard.available_quantity(line)} available"
            for line in snapshot.lines
            if not inventory_guard.available(line, line.quantity)
        ]
        return _category(
            "Inventory Validation",
            errors,
            "All items are in stock",
            "Some items have inventory issues",
        )

    def validate_business_rules(self, snapshot: CartSnapshot) -> ValidationCategory:
        errors: list[str] = []
        if snapshot.total_items > self.max_items:
            errors.append(f"Cart cannot contain more than {self.max_items} items")
        if snapshot.line_count > self.max_lines:
            errors.append(
                f"Cart cannot contain more than {self.max_lines} different products"
            )

        return _category(
            "Business Rules Validation",
            errors,
            "All business rules satisfied",
            "Business rule violations found",
        )

    def validate_checkout_readiness(self, snapshot: CartSnapshot) -> ValidationCategory:
        errors: list[str] = []
        if snapshot.subtotal_cents <= 0:
            errors.append("Cart total must be greater than zero")

        for line in snapshot.lines:
            if not inventory_guard.in_stock(line) or not line.product_active:
                errors.append(f"{_line_name(line)} is no longer available")

        return _category(
            "Checkout Readiness",
            errors,
            "Cart is ready for checkout",
            "Cart is not ready for checkout",
        )

    def validate_minimum_order(self, snapshot: CartSnapshot) -> ValidationCategory:
        errors: list[str] = []
        if snapshot.subtotal_cents < self.min_order_cents:
            errors.append(
                f"Minimum order is {format_price(self.min_order_cents)}. "
                f"Current total: {format_price(snapshot.subtotal_cents)}"
            )

        return _category(
            "Minimum Order Validation",
            errors,
            "Minimum order requirement met",
            "Minimum order requirement not met",
        )

    def validate_item_limits(self, snapshot: CartSnapshot) -> ValidationCategory:
        errors = [
            f"Maximum {self.max_units_per_item} units allowed for {_line_name(line)}"
            for line in snapshot.lines
            if line.quantity > self.max_units_per_item
        ]
        return _category(
            "Item Limits Validation",
            errors,
            "All item limits respected",
            "Some items exceed limits",
        )

    # ---- reports ----

    def validate_state(self, snapshot: CartSnapshot) -> ValidationReport:
        return ValidationReport.from_categories(
            [
                self.validate_basic(snapshot),
                self.validate_inventory(snapshot),
                self.validate_business_rules(snapshot),
            ]
        )

    def validate_for_checkout(self, snapshot: CartSnapshot) -> ValidationReport:
        return ValidationReport.from_categories(
            [
                self.validate_basic(snapshot),
                self.validate_inventory(snapshot),
                self.validate_business_rules(snapshot),
                self.validate_checkout_readiness(snapshot),
                self.validate_minimum_order(snapshot),
                self.validate_item_limits(snapshot),
            ],
            checkout=True,
        )

    # ---- mutation gates ----

    def validate_item_addition(
        self,
        snapshot: CartSnapshot,
        variant: ProductVariant,
        product_name: str,
        quantity: int,
    ) -> ValidationCategory:
        """
        Can `quantity` more units of `variant` go into this cart?
        Accounts for units of the same variant already in the cart.
        """
        if quantity <= 0:
            return _category("Item Addition", ["Quantity must be positive"], "", "Cannot add item to cart")

        errors: list[str] = []
        if not inventory_guard.in_stock(variant):
            errors.append(f"{product_name} is out of stock")

        existing = snapshot.line_for_variant(variant.id)
        current = existing.quantity if existing else 0
        if current + quantity > variant.stock_quantity:
            max_additional = variant.stock_quantity - current
            if max_additional <= 0:
                errors.append(f"{product_name} is already at maximum quantity in cart")
            else:
                errors.append(f"Can only add {max_additional} more {product_name} to cart")

        if snapshot.status != "active":
            errors.append("Cannot add items to inactive cart")

        return _category(
            "Item Addition",
            errors,
            "Item can be added to cart",
            "Cannot add item to cart",
        )

    def validate_quantity_update(
        self,
        line: CartLine,
        quantity: int,
    ) -> ValidationCategory:
        """
        0 is a valid removal; otherwise the new absolute quantity must fit
        in current stock.
        """
        if quantity < 0:
            return _category("Quantity Update", ["Quantity must be non-negative"], "", "Cannot update quantity")
        if quantity == 0:
            return _category("Quantity Update", [], "Item removal is valid", "")

        errors: list[str] = []
        name = _line_name(line)
        if not inventory_guard.in_stock(line):
            errors.append(f"{name} is out of stock")
        if quantity > line.stock_quantity:
            errors.append(f"Only {inventory_guard.available_quantity(line)} {name} available")

        return _category(
            "Quantity Update",
            errors,
            "Quantity update is valid",
            "Cannot update quantity",
        )

    # ---- non-blocking ----

    def warnings(self, snapshot: CartSnapshot) -> list[ValidationWarning]:
        found: list[ValidationWarning] = []
        for line in snapshot.lines:
            name = _line_name(line)
            if inventory_guard.low_stock(line, self.low_stock_threshold):
                found.append(
                    ValidationWarning(
                        type="low_stock",
                        item_id=line.item_id,
                        product_name=name,
                        message=f"Only {line.stock_quantity} left in stock",
                        severity="warning",
                    )
                )
            if line.quantity > self.high_quantity_warning:
                found.append(
                    ValidationWarning(
                        type="high_quantity",
                        item_id=line.item_id,
                        product_name=name,
                        message=f"Large quantity ({line.quantity}) - please verify",
                        severity="info",
                    )
                )
        return found
