# app/schemas/order.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from app.schemas.pricing import CartTotals

OrderStatus = Literal["pending"]


class CheckoutRequest(SQLModel):
    """
    Payload for converting the current cart into an order.

    Backend derives:
      - user_id from token
      - items and totals from the active cart
      - status = 'pending'
    """

    model_config = ConfigDict(extra="forbid")

    shipping_method_id: uuid.UUID | None = None
    distance_km: float | None = Field(default=None, ge=0)
    discount_codes: list[str] = Field(default_factory=list)

    @field_validator("discount_codes")
    @classmethod
    def strip_codes(cls, v: list[str]) -> list[str]:
        return [code.strip() for code in v if code and code.strip()]


class OrderRead(SQLModel):
    """
    Lightweight representation of an order (without items).
    """

    id: uuid.UUID
    user_id: uuid.UUID
    cart_id: uuid.UUID
    shipping_method_id: uuid.UUID | None
    status: OrderStatus
    subtotal_cents: int
    discount_cents: int
    shipping_cents: int
    tax_cents: int
    total_cents: int
    currency: str
    created_at: datetime


class OrderItemRead(SQLModel):
    id: uuid.UUID
    order_id: uuid.UUID
    variant_id: uuid.UUID
    quantity: int
    unit_price_cents: int
    line_total_cents: int


class OrderWithItemsRead(OrderRead):
    """
    Full order view including items.
    """

    items: list[OrderItemRead]
    total: str


class CheckoutResult(SQLModel):
    order: OrderWithItemsRead
    totals: CartTotals
