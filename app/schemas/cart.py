# app/schemas/cart.py
import uuid
from datetime import datetime

from pydantic import model_validator
from sqlmodel import SQLModel, Field

from app.schemas.product import VariantOption


class CartOwner(SQLModel):
    """
    Identity a cart is keyed by: exactly one of user_id / session_id.
    """

    user_id: uuid.UUID | None = None
    session_id: str | None = None

    @model_validator(mode="after")
    def exactly_one_owner(self) -> "CartOwner":
        if (self.user_id is None) == (self.session_id is None):
            raise ValueError("cart owner must be either a user or a session")
        return self

    def describe(self) -> str:
        if self.user_id is not None:
            return f"user:{self.user_id}"
        return f"session:{self.session_id}"


# ---- Snapshot used by the pricing engine ----


class CartLine(SQLModel):
    """
    One cart item joined with its variant/product at read time.
    """

    item_id: uuid.UUID | None = None
    variant_id: uuid.UUID
    product_id: uuid.UUID | None = None
    product_name: str = ""
    sku: str = ""
    options: list[VariantOption] = Field(default_factory=list)
    unit_price_cents: int
    quantity: int
    stock_quantity: int = 0
    weight_kg: float | None = None
    product_active: bool = True

    @property
    def line_total_cents(self) -> int:
        return self.quantity * self.unit_price_cents

    @property
    def in_stock(self) -> bool:
        return self.stock_quantity > 0


class CartSnapshot(SQLModel):
    """
    Immutable view of a cart used for totals and validation.
    Rebuilt from the database on every read.
    """

    cart_id: uuid.UUID | None = None
    status: str = "active"
    lines: list[CartLine] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def total_items(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def line_count(self) -> int:
        return len(self.lines)

    @property
    def subtotal_cents(self) -> int:
        return sum(line.line_total_cents for line in self.lines)

    def line_for_variant(self, variant_id: uuid.UUID) -> CartLine | None:
        for line in self.lines:
            if line.variant_id == variant_id:
                return line
        return None


# ---- Request payloads ----


class CartItemCreate(SQLModel):
    """
    Payload for adding to cart.
    """

    variant_id: uuid.UUID
    quantity: int = Field(default=1, gt=0)


class CartItemUpdate(SQLModel):
    """
    Payload for updating quantity of a cart item. 0 removes the item.
    """

    quantity: int = Field(ge=0)


# ---- Read models ----


class CartItemRead(SQLModel):
    """
    Read model for a single cart line, including stock status.
    """

    id: uuid.UUID
    product_id: uuid.UUID | None
    product_name: str
    variant_id: uuid.UUID
    variant_sku: str
    variant_options: list[VariantOption]
    quantity: int
    unit_price_cents: int
    unit_price: str
    total_price_cents: int
    total_price: str
    in_stock: bool
    available_quantity: int
    low_stock: bool


class CartSummary(SQLModel):
    """
    Cart response model with totals (pre-discount, pre-tax).
    """

    id: uuid.UUID | None = None
    status: str = "empty"
    total_items: int = 0
    item_count: int = 0
    total_price_cents: int = 0
    total_price: str = "$0.00"
    items: list[CartItemRead] = Field(default_factory=list)


class CartItemMutation(SQLModel):
    """
    Response for add/update: the touched line (None when removed) plus
    the refreshed cart summary.
    """

    cart_item: CartItemRead | None = None
    cart_summary: CartSummary


# ---- Abandonment ----


class AbandonmentSweepResult(SQLModel):
    abandoned_count: int
    cutoff: datetime


class AbandonedCartRead(SQLModel):
    cart_id: uuid.UUID
    user_id: uuid.UUID | None
    session_id: str | None
    item_count: int
    cart_value_cents: int
    cart_value: str
    last_activity: datetime
