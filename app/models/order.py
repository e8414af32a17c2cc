# app/models/order.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Order(SQLModel, table=True):
    """
    Customer order created by checkout from an active cart.

    All money columns are integer cents and mirror the CartTotals
    computed at checkout time.
    """

    __tablename__ = "orders"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    cart_id: uuid.UUID = Field(
        foreign_key="carts.id",
        index=True,
    )

    shipping_method_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="shipping_methods.id",
    )

    # pending (payment and fulfilment are handled elsewhere)
    status: str = Field(
        default="pending",
        index=True,
    )

    subtotal_cents: int = Field(ge=0)
    discount_cents: int = Field(default=0, ge=0)
    shipping_cents: int = Field(default=0, ge=0)
    tax_cents: int = Field(default=0, ge=0)
    total_cents: int = Field(ge=0)
    currency: str = Field(default="USD", max_length=3)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )


class OrderItem(SQLModel, table=True):
    """
    Line item inside an order (unit price snapshotted at checkout).
    """

    __tablename__ = "order_items"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
    )

    variant_id: uuid.UUID = Field(
        foreign_key="product_variants.id",
        index=True,
    )

    quantity: int = Field(
        gt=0,
        description="Quantity ordered (>=1)",
    )

    unit_price_cents: int = Field(
        ge=0,
        description="Unit price at time of order (pre-tax)",
    )
