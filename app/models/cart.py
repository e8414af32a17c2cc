# app/models/cart.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Index, UniqueConstraint, text
from sqlmodel import SQLModel, Field

CART_STATUSES = ("active", "abandoned", "completed")

# active -> abandoned (idle sweep), active -> completed (checkout)
ALLOWED_CART_TRANSITIONS: dict[str, set[str]] = {
    "active": {"abandoned", "completed"},
    "abandoned": set(),
    "completed": set(),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Cart(SQLModel, table=True):
    """
    Shopping cart.

    Owned by exactly one of:
      - an authenticated user (user_id)
      - an anonymous session token (session_id)

    The row survives "clear"; only its items are removed.
    """

    __tablename__ = "carts"
    __table_args__ = (
        CheckConstraint(
            "(user_id IS NULL) <> (session_id IS NULL)",
            name="ck_carts_single_owner",
        ),
        # at most one active cart per owner
        Index(
            "uq_carts_active_user",
            "user_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
        Index(
            "uq_carts_active_session",
            "session_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="users.id",
        index=True,
    )

    session_id: str | None = Field(
        default=None,
        max_length=128,
        index=True,
    )

    # active | abandoned | completed
    status: str = Field(
        default="active",
        index=True,
    )

    created_at: datetime = Field(default_factory=_utcnow)

    # Bumped by every item mutation; drives the abandonment sweep
    updated_at: datetime = Field(default_factory=_utcnow, index=True)


class CartItem(SQLModel, table=True):
    """
    Line in a cart. One row per (cart, variant); quantity is always >= 1,
    a quantity of 0 means the row is deleted.
    """

    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("cart_id", "variant_id", name="uq_cart_items_cart_variant"),
        CheckConstraint("quantity > 0", name="ck_cart_items_quantity_positive"),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    cart_id: uuid.UUID = Field(
        foreign_key="carts.id",
        index=True,
    )

    variant_id: uuid.UUID = Field(
        foreign_key="product_variants.id",
        index=True,
    )

    quantity: int = Field(
        gt=0,
        description="Must be >= 1",
    )

    created_at: datetime = Field(default_factory=_utcnow)
