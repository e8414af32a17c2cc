# app/services/cart_service.py
import logging
import uuid
from typing import Iterable

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from app.core.config import Settings
from app.core.results import ServiceResult
from app.models.cart import Cart, CartItem
from app.repositories.cart_repo import CartRepository
from app.repositories.product_repo import ProductRepository
from app.repositories.shipping_repo import ShippingMethodRepository
from app.schemas.cart import (
    CartItemMutation,
    CartItemRead,
    CartLine,
    CartOwner,
    CartSnapshot,
    CartSummary,
)
from app.schemas.pricing import ShippingDestination
from app.services import inventory_guard, shipping_estimator
from app.services.cart_totals_service import CartTotalsService
from app.services.cart_validator import CartValidator
from app.services.price_formatter import format_price
from app.services.variant_options import ordered_options


class CartService:
    """
    Business logic for cart operations.

    Responsibilities:
      - find-or-create the owner's active cart (user or guest session)
      - validate variant existence, product active flag and stock
      - apply quantity changes as atomic stock-checked writes
      - build snapshots for totals, validation, shipping and savings

    Every read rebuilds the snapshot from current rows; nothing is cached.
    """

    def __init__(
        self,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
        shipping_repo: ShippingMethodRepository,
        totals: CartTotalsService | None = None,
        validator: CartValidator | None = None,
        free_shipping_threshold_cents: int = 5000,
        low_stock_threshold: int = inventory_guard.DEFAULT_LOW_STOCK_THRESHOLD,
        logger: logging.Logger | None = None,
    ):
        self.cart_repo = cart_repo
        self.product_repo = product_repo
        self.shipping_repo = shipping_repo
        self.totals = totals or CartTotalsService()
        self.validator = validator or CartValidator()
        self.free_shipping_threshold_cents = free_shipping_threshold_cents
        self.low_stock_threshold = low_stock_threshold
        self.log = logger or logging.getLogger(__name__)

    @classmethod
    def from_settings(cls, settings: Settings) -> "CartService":
        """Wire repositories, pricing and validation from app settings."""
        return cls(
            CartRepository(),
            ProductRepository(),
            ShippingMethodRepository(),
            totals=CartTotalsService(tax_rate=settings.TAX_RATE, currency=settings.CURRENCY),
            validator=CartValidator.from_settings(settings),
            free_shipping_threshold_cents=settings.FREE_SHIPPING_THRESHOLD_CENTS,
            low_stock_threshold=settings.LOW_STOCK_THRESHOLD,
        )

    # ---- internal helpers ----

    def _create_cart(self, session: Session, owner: CartOwner) -> Cart:
        """
        Open the owner's active cart. If a concurrent request opened one
        first, the unique active-cart index rejects this insert and that
        cart is used instead.
        """
        try:
            cart = self.cart_repo.create(
                session, Cart(user_id=owner.user_id, session_id=owner.session_id)
            )
        except IntegrityError:
            session.rollback()
            cart = self.cart_repo.get_active_for_owner(session, owner)
            if cart is None:
                raise
            return cart

        self.log.info("Created cart %s for %s", cart.id, owner.describe())
        return cart

    def build_snapshot(self, session: Session, cart: Cart | None) -> CartSnapshot:
        """
        Join the cart's items with their variants and products.
        """
        if cart is None:
            return CartSnapshot()

        items = self.cart_repo.list_items(session, cart.id)
        variants = self.product_repo.get_variants(session, (it.variant_id for it in items))
        products = self.product_repo.get_many(
            session, (v.product_id for v in variants.values())
        )

        lines: list[CartLine] = []
        for it in items:
            variant = variants[it.variant_id]
            product = products.get(variant.product_id)
            lines.append(
                CartLine(
                    item_id=it.id,
                    variant_id=variant.id,
                    product_id=variant.product_id,
                    product_name=product.name if product else "",
                    sku=variant.sku,
                    options=ordered_options(product.option_names, variant.options) if product else [],
                    unit_price_cents=variant.price_cents,
                    quantity=it.quantity,
                    stock_quantity=variant.stock_quantity,
                    weight_kg=variant.weight_kg,
                    product_active=bool(product and product.is_active),
                )
            )

        return CartSnapshot(cart_id=cart.id, status=cart.status, lines=lines)

    def _owner_snapshot(self, session: Session, owner: CartOwner) -> CartSnapshot:
        return self.build_snapshot(session, self.cart_repo.get_active_for_owner(session, owner))

    def _item_read(self, line: CartLine) -> CartItemRead:
        return CartItemRead(
            id=line.item_id,
            product_id=line.product_id,
            product_name=line.product_name,
            variant_id=line.variant_id,
            variant_sku=line.sku,
            variant_options=line.options,
            quantity=line.quantity,
            unit_price_cents=line.unit_price_cents,
            unit_price=format_price(line.unit_price_cents),
            total_price_cents=line.line_total_cents,
            total_price=format_price(line.line_total_cents),
            in_stock=line.in_stock,
            available_quantity=inventory_guard.available_quantity(line),
            low_stock=inventory_guard.low_stock(line, self.low_stock_threshold),
        )

    def _summary(self, snapshot: CartSnapshot) -> CartSummary:
        if snapshot.is_empty:
            return CartSummary(id=snapshot.cart_id)

        return CartSummary(
            id=snapshot.cart_id,
            status=snapshot.status,
            total_items=snapshot.total_items,
            item_count=snapshot.line_count,
            total_price_cents=snapshot.subtotal_cents,
            total_price=format_price(snapshot.subtotal_cents),
            items=[self._item_read(line) for line in snapshot.lines],
        )

    def _mutation(self, snapshot: CartSnapshot, item_id: uuid.UUID | None) -> CartItemMutation:
        line = next((l for l in snapshot.lines if l.item_id == item_id), None)
        return CartItemMutation(
            cart_item=self._item_read(line) if line else None,
            cart_summary=self._summary(snapshot),
        )

    def _db_failure(self, session: Session, action: str, owner: CartOwner) -> ServiceResult:
        session.rollback()
        self.log.exception("Failed to %s for %s", action, owner.describe())
        return ServiceResult.internal_error()

    # ---- public operations ----

    def get_cart(self, session: Session, owner: CartOwner) -> ServiceResult:
        """
        Summary of the owner's active cart. No cart is created on read;
        an owner without one gets the empty summary.
        """
        snapshot = self._owner_snapshot(session, owner)
        return ServiceResult.success("Cart retrieved", self._summary(snapshot))

    def add_item(
        self,
        session: Session,
        owner: CartOwner,
        variant_id: uuid.UUID,
        quantity: int = 1,
    ) -> ServiceResult:
        """
        Add `quantity` units of a variant to the owner's cart.

        Rules:
          - variant must exist, its product must be active
          - existing quantity + quantity <= stock_quantity
          - repeated adds of the same variant merge into one line
        """
        try:
            variant = self.product_repo.get_variant(session, variant_id)
            if variant is None:
                return ServiceResult.not_found("Product variant not found")

            product = self.product_repo.get_by_id(session, variant.product_id)
            if product is None or not product.is_active:
                return ServiceResult.invalid(
                    "Cannot add item to cart",
                    ["Product is no longer available"],
                )

            # a rejected add must not leave an empty cart behind
            cart = self.cart_repo.get_active_for_owner(session, owner)
            snapshot = self.build_snapshot(session, cart)

            check = self.validator.validate_item_addition(snapshot, variant, product.name, quantity)
            if not check.valid:
                return ServiceResult.invalid(check.message, check.errors)

            if cart is None:
                cart = self._create_cart(session, owner)

            item_id, written = self._write_addition(session, cart.id, variant.id, quantity)
            if not written:
                return ServiceResult.invalid(
                    "Cannot add item to cart",
                    [f"Not enough stock for {product.name}"],
                )

            self.cart_repo.touch(session, cart)
            self.log.info(
                "Added %s x %s to cart %s (%s)",
                quantity, variant.sku, cart.id, owner.describe(),
            )
            return ServiceResult.success(
                f"{product.name} added to cart",
                self._mutation(self.build_snapshot(session, cart), item_id),
            )
        except SQLAlchemyError:
            return self._db_failure(session, "add item", owner)

    def _write_addition(
        self,
        session: Session,
        cart_id: uuid.UUID,
        variant_id: uuid.UUID,
        quantity: int,
    ) -> tuple[uuid.UUID | None, bool]:
        """
        Insert-or-increment. The insert path is only taken when the whole
        quantity fits in stock; a concurrent insert of the same line falls
        back to the conditional increment.
        """
        existing = self.cart_repo.get_item(session, cart_id, variant_id)
        if existing is None:
            try:
                item = self.cart_repo.create_item(
                    session,
                    CartItem(cart_id=cart_id, variant_id=variant_id, quantity=quantity),
                )
                return item.id, True
            except IntegrityError:
                session.rollback()
                existing = self.cart_repo.get_item(session, cart_id, variant_id)
                if existing is None:
                    raise

        written = self.cart_repo.increment_quantity(session, existing.id, variant_id, quantity)
        return existing.id, written

    def update_item(
        self,
        session: Session,
        owner: CartOwner,
        item_id: uuid.UUID,
        quantity: int,
    ) -> ServiceResult:
        """
        Set the absolute quantity of a line. 0 removes the line.
        """
        try:
            cart = self.cart_repo.get_active_for_owner(session, owner)
            item = self.cart_repo.get_item_in_cart(session, cart.id, item_id) if cart else None
            if item is None:
                return ServiceResult.not_found("Cart item not found")

            snapshot = self.build_snapshot(session, cart)
            line = next(l for l in snapshot.lines if l.item_id == item.id)

            check = self.validator.validate_quantity_update(line, quantity)
            if not check.valid:
                return ServiceResult.invalid(check.message, check.errors)

            if quantity == 0:
                self.cart_repo.delete_item(session, item)
                self.cart_repo.touch(session, cart)
                self.log.info("Removed item %s from cart %s", item_id, cart.id)
                return ServiceResult.success(
                    "Item removed from cart",
                    self._mutation(self.build_snapshot(session, cart), None),
                )

            if not self.cart_repo.set_quantity(session, item_id, line.variant_id, quantity):
                return ServiceResult.invalid(
                    "Cannot update quantity",
                    [f"Not enough stock for {line.product_name or line.sku}"],
                )

            self.cart_repo.touch(session, cart)
            self.log.info("Set item %s in cart %s to %s", item_id, cart.id, quantity)
            return ServiceResult.success(
                "Cart updated",
                self._mutation(self.build_snapshot(session, cart), item_id),
            )
        except SQLAlchemyError:
            return self._db_failure(session, "update item", owner)

    def remove_item(
        self,
        session: Session,
        owner: CartOwner,
        item_id: uuid.UUID,
    ) -> ServiceResult:
        try:
            cart = self.cart_repo.get_active_for_owner(session, owner)
            item = self.cart_repo.get_item_in_cart(session, cart.id, item_id) if cart else None
            if item is None:
                return ServiceResult.not_found("Cart item not found")

            self.cart_repo.delete_item(session, item)
            self.cart_repo.touch(session, cart)
            self.log.info("Removed item %s from cart %s", item_id, cart.id)
            return ServiceResult.success(
                "Item removed from cart",
                self._summary(self.build_snapshot(session, cart)),
            )
        except SQLAlchemyError:
            return self._db_failure(session, "remove item", owner)

    def clear_cart(self, session: Session, owner: CartOwner) -> ServiceResult:
        """
        Remove every line. The cart row itself stays active.
        """
        try:
            cart = self.cart_repo.get_active_for_owner(session, owner)
            if cart is None:
                return ServiceResult.success("Cart cleared", CartSummary())

            self.cart_repo.clear_items(session, cart.id)
            self.cart_repo.touch(session, cart)
            self.log.info("Cleared cart %s", cart.id)
            return ServiceResult.success("Cart cleared", CartSummary(id=cart.id))
        except SQLAlchemyError:
            return self._db_failure(session, "clear cart", owner)

    def get_totals(
        self,
        session: Session,
        owner: CartOwner,
        discount_codes: Iterable[str] | None = None,
        shipping_method_id: uuid.UUID | None = None,
        destination: ShippingDestination | None = None,
    ) -> ServiceResult:
        method = None
        if shipping_method_id is not None:
            method = self.shipping_repo.get_by_id(session, shipping_method_id)
            if method is None:
                return ServiceResult.not_found("Shipping method not found")

        snapshot = self._owner_snapshot(session, owner)
        totals = self.totals.calculate(
            snapshot,
            discount_codes=discount_codes,
            shipping_method=method,
            destination=destination,
        )
        return ServiceResult.success("Cart totals calculated", totals)

    def validate(
        self,
        session: Session,
        owner: CartOwner,
        checkout: bool = False,
    ) -> ServiceResult:
        """
        Full validation report. An invalid cart is still a successful
        call; the verdict is inside the report.
        """
        snapshot = self._owner_snapshot(session, owner)
        if checkout:
            report = self.validator.validate_for_checkout(snapshot)
        else:
            report = self.validator.validate_state(snapshot)
        return ServiceResult.success("Cart validated", report)

    def warnings(self, session: Session, owner: CartOwner) -> ServiceResult:
        snapshot = self._owner_snapshot(session, owner)
        return ServiceResult.success("Cart warnings", self.validator.warnings(snapshot))

    def shipping_options(
        self,
        session: Session,
        owner: CartOwner,
        destination: ShippingDestination | None = None,
    ) -> ServiceResult:
        snapshot = self._owner_snapshot(session, owner)
        methods = self.shipping_repo.list_methods(session)
        quotes = shipping_estimator.shipping_options(snapshot, methods, destination)
        return ServiceResult.success("Shipping options", quotes)

    def free_shipping(
        self,
        session: Session,
        owner: CartOwner,
        threshold_cents: int | None = None,
    ) -> ServiceResult:
        if threshold_cents is None:
            threshold_cents = self.free_shipping_threshold_cents
        snapshot = self._owner_snapshot(session, owner)
        eligibility = self.totals.free_shipping_eligibility(snapshot, threshold_cents)
        return ServiceResult.success("Free shipping eligibility", eligibility)

    def savings(self, session: Session, owner: CartOwner) -> ServiceResult:
        snapshot = self._owner_snapshot(session, owner)
        return ServiceResult.success("Cart savings", self.totals.savings_summary(snapshot))
