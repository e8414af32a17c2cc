# app/schemas/product.py
import uuid
from datetime import datetime

from sqlmodel import SQLModel


class VariantOption(SQLModel):
    """
    One (option name, value) pair, e.g. ("size", "M").
    Lists of these are ordered by the product's option schema.
    """

    name: str
    value: str


class OptionValues(SQLModel):
    """
    All distinct values offered for one option across a product's variants.
    """

    name: str
    values: list[str]


class VariantRead(SQLModel):
    id: uuid.UUID
    product_id: uuid.UUID
    sku: str
    price_cents: int
    price: str
    stock_quantity: int
    in_stock: bool
    low_stock: bool
    weight_kg: float | None
    options: list[VariantOption]


class ProductRead(SQLModel):
    """
    Product representation for listings.
    """

    id: uuid.UUID
    name: str
    slug: str
    description: str | None
    is_active: bool
    option_names: list[str]
    price_range: str
    created_at: datetime


class ProductDetail(ProductRead):
    """
    Product with its variants and selectable option values.
    """

    variants: list[VariantRead]
    available_options: list[OptionValues]
