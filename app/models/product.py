# app/models/product.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field

# Used by shipping when a variant has no weight recorded
DEFAULT_VARIANT_WEIGHT_KG = 0.5


class Product(SQLModel, table=True):
    """
    Product line in the catalog.

    `option_names` is the ordered option schema shared by every variant of
    this product, e.g. ["color", "size"]. Variants must supply exactly these
    keys in their `options` mapping.
    """

    __tablename__ = "products"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(
        max_length=100,
        min_length=1,
        index=True,
        description="Display name of the product",
    )

    slug: str = Field(
        max_length=255,
        unique=True,
        index=True,
        description="URL-friendly identifier (unique)",
    )

    description: str | None = Field(default=None)

    is_active: bool = Field(
        default=True,
        index=True,
        description="Whether this product is visible / purchasable",
    )

    option_names: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
        description="Ordered option schema for variants of this product",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )


class ProductVariant(SQLModel, table=True):
    """
    Purchasable SKU of a product.

    Money is stored in integer cents. `stock_quantity` is the only shared
    mutable counter between carts; it is only ever decremented through the
    conditional update in ProductRepository.reserve_stock.
    """

    __tablename__ = "product_variants"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    sku: str = Field(
        max_length=64,
        unique=True,
        index=True,
    )

    price_cents: int = Field(
        ge=0,
        description="Unit price in minor currency units",
    )

    stock_quantity: int = Field(
        default=0,
        ge=0,
        description="Units currently in stock",
    )

    weight_kg: float | None = Field(
        default=None,
        ge=0,
        description="Shipping weight per unit; 0.5kg assumed when missing",
    )

    options: dict[str, str] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
        description="option name -> value, keyed by Product.option_names",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    @property
    def in_stock(self) -> bool:
        return self.stock_quantity > 0
