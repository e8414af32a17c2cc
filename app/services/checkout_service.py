# app/services/checkout_service.py
import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.core.results import ServiceResult
from app.models.order import Order, OrderItem
from app.models.user import User
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.cart import CartOwner
from app.schemas.order import (
    CheckoutRequest,
    CheckoutResult,
    OrderItemRead,
    OrderRead,
    OrderWithItemsRead,
)
from app.schemas.pricing import ShippingDestination
from app.services.cart_service import CartService
from app.services.price_formatter import format_price


class CheckoutService:
    """
    Business logic for turning a cart into an order.

    Responsibilities:
      - run checkout validation on the user's active cart
      - price the cart (discount codes, optional shipping)
      - reserve stock, create the order and complete the cart in ONE
        transaction; any failed reservation rolls everything back
    """

    def __init__(
        self,
        cart_service: CartService,
        order_repo: OrderRepository,
        product_repo: ProductRepository,
        logger: logging.Logger | None = None,
    ):
        self.cart_service = cart_service
        self.order_repo = order_repo
        self.product_repo = product_repo
        self.log = logger or logging.getLogger(__name__)

    # -------- internal helpers --------

    @staticmethod
    def _order_fields(order: Order) -> dict:
        return dict(
            id=order.id,
            user_id=order.user_id,
            cart_id=order.cart_id,
            shipping_method_id=order.shipping_method_id,
            status=order.status,
            subtotal_cents=order.subtotal_cents,
            discount_cents=order.discount_cents,
            shipping_cents=order.shipping_cents,
            tax_cents=order.tax_cents,
            total_cents=order.total_cents,
            currency=order.currency,
            created_at=order.created_at,
        )

    def _build_order_with_items(self, order: Order, items: list[OrderItem]) -> OrderWithItemsRead:
        item_reads = [
            OrderItemRead(
                id=it.id,
                order_id=it.order_id,
                variant_id=it.variant_id,
                quantity=it.quantity,
                unit_price_cents=it.unit_price_cents,
                line_total_cents=it.quantity * it.unit_price_cents,
            )
            for it in items
        ]
        return OrderWithItemsRead(
            **self._order_fields(order),
            items=item_reads,
            total=format_price(order.total_cents),
        )

    # -------- user-facing operations --------

    def checkout(
        self,
        session: Session,
        user: User,
        payload: CheckoutRequest,
    ) -> ServiceResult:
        """
        Place an order from the user's active cart.

        Validation failures carry the full ValidationReport in `data`.
        """
        cart_repo = self.cart_service.cart_repo
        cart = cart_repo.get_active_for_owner(session, CartOwner(user_id=user.id))
        snapshot = self.cart_service.build_snapshot(session, cart)

        report = self.cart_service.validator.validate_for_checkout(snapshot)
        if not report.overall_valid:
            return ServiceResult.invalid(
                "Cart is not ready for checkout",
                report.errors,
                data=report,
            )

        method = None
        if payload.shipping_method_id is not None:
            method = self.cart_service.shipping_repo.get_by_id(session, payload.shipping_method_id)
            if method is None:
                return ServiceResult.not_found("Shipping method not found")

        destination = None
        if payload.distance_km is not None:
            destination = ShippingDestination(distance_km=payload.distance_km)

        cart_id = cart.id
        totals = self.cart_service.totals.calculate(
            snapshot,
            discount_codes=payload.discount_codes,
            shipping_method=method,
            destination=destination,
        )

        try:
            # fixed lock order across concurrent checkouts
            for line in sorted(snapshot.lines, key=lambda l: l.variant_id):
                if not self.product_repo.reserve_stock(session, line.variant_id, line.quantity):
                    session.rollback()
                    name = line.product_name or line.sku
                    self.log.warning(
                        "Checkout for cart %s rejected: insufficient stock for %s",
                        cart_id, line.sku,
                    )
                    return ServiceResult.invalid(
                        "Insufficient stock",
                        [f"{name}: not enough stock to complete checkout"],
                    )

            if not cart_repo.transition_status(session, cart_id, "active", "completed"):
                session.rollback()
                return ServiceResult.invalid(
                    "Cart is not ready for checkout",
                    ["Cart is no longer active"],
                )

            order, items = self.order_repo.place(
                session,
                Order(
                    user_id=user.id,
                    cart_id=cart_id,
                    shipping_method_id=method.id if method else None,
                    status="pending",
                    subtotal_cents=totals.subtotal_cents,
                    discount_cents=totals.discount_cents,
                    shipping_cents=totals.shipping_cents,
                    tax_cents=totals.tax_cents,
                    total_cents=totals.total_cents,
                    currency=totals.currency,
                ),
                [
                    OrderItem(
                        variant_id=line.variant_id,
                        quantity=line.quantity,
                        unit_price_cents=line.unit_price_cents,
                    )
                    for line in snapshot.lines
                ],
            )

            order_read = self._build_order_with_items(order, items)
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            self.log.exception("Checkout failed for cart %s", cart_id)
            return ServiceResult.internal_error()

        self.log.info(
            "Order %s placed by user %s (cart %s, total %s)",
            order_read.id, user.id, cart_id, order_read.total,
        )
        return ServiceResult.success(
            "Order placed",
            CheckoutResult(order=order_read, totals=totals),
        )

    def list_orders(
        self,
        session: Session,
        user: User,
        skip: int = 0,
        limit: int = 50,
    ) -> list[OrderRead]:
        orders = self.order_repo.list_for_user(session, user.id, skip=skip, limit=limit)
        return [OrderRead(**self._order_fields(o)) for o in orders]

    def get_order(
        self,
        session: Session,
        user: User,
        order_id: uuid.UUID,
    ) -> ServiceResult:
        """
        Order detail. Other users' orders are reported as not found.
        """
        order = self.order_repo.get_for_user(session, user.id, order_id)
        if not order:
            return ServiceResult.not_found("Order not found")

        items = self.order_repo.items_for(session, order.id)
        return ServiceResult.success(
            "Order retrieved",
            self._build_order_with_items(order, items),
        )
